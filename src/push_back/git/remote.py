"""
Ephemeral authenticated remote.

Adds a reserved remote pointing at the triggering repository and an
``http.<origin>/.extraheader`` entry carrying the access token, so the push
never relies on credentials stored by an earlier step. Both are removed
at the end of the run.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from ..actions import set_secret
from ..core.config import DEFAULT_REMOTE_NAME
from ..core.exceptions import RemoteCollisionError
from .repository import GitRepository
from .snapshot import ConfigSnapshot


@dataclass(frozen=True)
class RemoteDescriptor:
    """The remote created for one run."""

    name: str
    url: str
    auth_header_key: str


def build_remote_url(server_url: str, repository: str) -> str:
    """
    URL of *repository* (``owner/repo``) on the server at *server_url*.

    The server path is kept (GitHub Enterprise may live under a prefix),
    normalized to end with ``/``; query and fragment are dropped.
    """
    parts = urlsplit(server_url)
    path = parts.path
    if not path.endswith("/"):
        path += "/"
    path += f"{repository}.git"
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def auth_header_key(server_url: str) -> str:
    """Host-scoped config key for the HTTP auth header, e.g. ``http.https://github.com/.extraheader``."""
    parts = urlsplit(server_url)
    return f"http.{parts.scheme}://{parts.netloc}/.extraheader"


def encode_credentials(token: str) -> str:
    """Base64 of ``x-access-token:<token>``, as used by GitHub basic auth."""
    return base64.b64encode(f"x-access-token:{token}".encode("utf-8")).decode("ascii")


class EphemeralRemoteManager:
    """
    Creates and removes the reserved push remote.

    The remote name is reserved: if it is already configured the run fails
    instead of reusing or renaming it, and a remote this run did not create
    is never removed.
    """

    def __init__(
        self,
        repository: GitRepository,
        snapshot: ConfigSnapshot,
        remote_name: str = DEFAULT_REMOTE_NAME,
    ):
        self.repository = repository
        self.snapshot = snapshot
        self.remote_name = remote_name
        self.descriptor: Optional[RemoteDescriptor] = None
        self.logger = logging.getLogger(__name__)

        # Set once the name is known to be free, before anything is added
        self._owns_name = False

    def create(self, token: str, server_url: str, repository: str) -> RemoteDescriptor:
        """
        Add the remote and its auth header.

        Args:
            token: Access token used for the push
            server_url: Base URL of the GitHub server
            repository: ``owner/repo`` of the target repository

        Returns:
            Descriptor of the created remote

        Raises:
            RemoteCollisionError: If a remote with the reserved name exists
            SubprocessError: If git fails to add the remote or header
        """
        configured = self.repository.remote_names()
        self.logger.debug(f"Configured remote names: {', '.join(configured)}")
        if self.remote_name in configured:
            raise RemoteCollisionError(self.remote_name, configured)
        self._owns_name = True

        self.logger.debug(f"Server URL: {server_url}")
        header_key = auth_header_key(server_url)
        self.snapshot.capture(header_key)

        url = build_remote_url(server_url, repository)
        self.descriptor = RemoteDescriptor(name=self.remote_name, url=url, auth_header_key=header_key)

        self.logger.debug("Adding remote")
        self.repository.add_remote(self.remote_name, url)
        self.logger.info(f"Remote added: {url}")

        self.logger.info("Setting up credentials")
        set_secret(token)
        credentials = encode_credentials(token)
        set_secret(credentials)
        self.repository.config_set(header_key, f"Authorization: basic {credentials}")

        return self.descriptor

    def destroy(self, descriptor: Optional[RemoteDescriptor] = None) -> bool:
        """
        Remove the remote if this run added it. No-op otherwise.

        The auth header is restored through the snapshot, not here.

        Returns:
            True if a remote was removed
        """
        name = descriptor.name if descriptor else self.remote_name
        if not self._owns_name:
            self.logger.debug(f"Remote '{name}' was not created by this run, nothing to remove")
            return False

        if name not in self.repository.remote_names():
            self.logger.debug(f"Remote '{name}' is not configured, nothing to remove")
            self._owns_name = False
            return False

        self.repository.remove_remote(name)
        self._owns_name = False
        self.logger.info(f"Remote removed: {name}")
        return True
