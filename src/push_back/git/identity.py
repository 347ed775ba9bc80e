"""
Committer identity management.

Resolves the name and email recorded on the push-back commit, writes them
to the repository's local config and puts the previous values back once
the run is over.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..core.exceptions import ConfigurationError, PushBackError
from .repository import GitRepository
from .snapshot import ConfigSnapshot

NAME_KEY = "user.name"
EMAIL_KEY = "user.email"


@dataclass(frozen=True)
class CommitIdentity:
    """Committer name and email, with where each value came from."""

    name: str
    email: str
    name_source: str = "input"  # input | config | actor | owner
    email_source: str = "input"  # input | config | noreply

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


def noreply_email(name: str, host: str = "github.com") -> str:
    """Synthesize the no-reply address GitHub uses for *name*."""
    return f"{name}@users.noreply.{host}"


def _first(*candidates: Tuple[Optional[str], str]) -> Tuple[Optional[str], Optional[str]]:
    for value, source in candidates:
        if value:
            return value, source
    return None, None


class CommitIdentityManager:
    """
    Applies a committer identity for the duration of a run.

    Prior values of ``user.name``/``user.email`` go into the shared
    ConfigSnapshot before they are overwritten.
    """

    def __init__(self, repository: GitRepository, snapshot: Optional[ConfigSnapshot] = None):
        self.repository = repository
        self.snapshot = snapshot if snapshot is not None else ConfigSnapshot(repository)
        self.logger = logging.getLogger(__name__)

    def capture(self, key: str) -> Optional[Tuple[str, ...]]:
        """Read the existing local value of *key* into the snapshot. No mutation."""
        return self.snapshot.capture(key)

    def resolve(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        actor: Optional[str] = None,
        repository_owner: Optional[str] = None,
        noreply_host: str = "github.com",
    ) -> CommitIdentity:
        """
        Resolve the committer identity; the first non-empty candidate wins.

        Name: explicit *name*, configured ``user.name``, *actor*,
        *repository_owner*. Email: explicit *email*, configured
        ``user.email``, no-reply address built from the resolved name.

        Raises:
            ConfigurationError: If no candidate yields a name
        """
        configured_name = self.repository.config_get(NAME_KEY)
        if configured_name:
            self.logger.debug(f"Configured committer name: {configured_name}")

        resolved_name, name_source = _first(
            (name, "input"),
            (configured_name, "config"),
            (actor, "actor"),
            (repository_owner, "owner"),
        )
        if not resolved_name:
            raise ConfigurationError(
                "Cannot determine committer name",
                error_code="COMMITTER_UNKNOWN",
                suggestions=["Set the 'committerName' input"],
            )

        configured_email = self.repository.config_get(EMAIL_KEY)
        if configured_email:
            self.logger.debug(f"Configured committer email: {configured_email}")

        resolved_email, email_source = _first(
            (email, "input"),
            (configured_email, "config"),
            (noreply_email(resolved_name, noreply_host), "noreply"),
        )

        return CommitIdentity(
            name=resolved_name,
            email=resolved_email,
            name_source=name_source,
            email_source=email_source,
        )

    def apply(self, identity: CommitIdentity) -> None:
        """Snapshot then write ``user.name`` and ``user.email``."""
        self.capture(NAME_KEY)
        self.logger.info(f"Committer name: {identity.name}")
        self.repository.config_set(NAME_KEY, identity.name)

        self.capture(EMAIL_KEY)
        self.logger.info(f"Committer email: {identity.email}")
        self.repository.config_set(EMAIL_KEY, identity.email)

    def restore(self, snapshot: Optional[ConfigSnapshot] = None) -> List[PushBackError]:
        """
        Restore every entry of *snapshot* (this manager's own by default).

        Idempotent; keys removed in the meantime are tolerated.

        Returns:
            Errors encountered while restoring
        """
        return (snapshot if snapshot is not None else self.snapshot).restore()
