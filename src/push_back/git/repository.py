"""
Repository handle for push-back.

Thin wrapper over GitPython's command interface. Every git invocation goes
through GitRepository.run so failures surface as SubprocessError or
TransportError with registered secrets redacted from the message.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from git import Git, Repo, InvalidGitRepositoryError, NoSuchPathError, GitCommandError

from ..core.exceptions import RepositoryError, SubprocessError, TransportError
from ..core.masking import redact

# `git config` exit codes
CONFIG_KEY_MISSING = 1
CONFIG_NOTHING_TO_UNSET = 5


def _error_details(error: GitCommandError) -> str:
    """Extract the useful part of git's stderr from a GitCommandError."""
    details = (error.stderr or "").strip()
    if details.startswith("stderr:"):
        details = details[len("stderr:"):].strip().strip("'").strip()
    return redact(details)


def _command_line(args: Sequence[str]) -> str:
    return redact(" ".join(["git", *args]))


class GitRepository:
    """
    Working tree plus the git subcommands push-back needs.

    Owned by a single run; no two invocations ever overlap.
    """

    def __init__(self, path: str = ".", network_timeout: Optional[float] = None):
        """
        Open the repository containing *path*.

        Args:
            path: Working tree directory
            network_timeout: Seconds before ls-remote/push are killed

        Raises:
            RepositoryError: If *path* is not inside a git working tree
        """
        self.path = Path(path).resolve()
        self.network_timeout = network_timeout
        self.logger = logging.getLogger(__name__)

        try:
            self.repo = Repo(self.path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryError(str(self.path), f"not a git repository ({e.__class__.__name__})")

        if self.repo.bare:
            raise RepositoryError(str(self.path), "bare repositories have no working tree")

        self.working_dir = Path(self.repo.working_tree_dir)

        # Commands run from the workspace so pathspecs are relative to it
        self.git = Git(str(self.path))

    def run(self, operation: str, *args: str, allowed_status: Sequence[int] = ()) -> str:
        """
        Run a git subcommand and return its stdout.

        Args:
            operation: Human-readable name used in error messages
            *args: Arguments after ``git``
            allowed_status: Non-zero exit codes that are not errors; the
                command then returns an empty string

        Raises:
            SubprocessError: If git exits with an unexpected status
        """
        try:
            return self.git.execute(["git", *args])
        except GitCommandError as e:
            if e.status in allowed_status:
                return ""
            raise SubprocessError(
                operation,
                command=_command_line(args),
                status=e.status if isinstance(e.status, int) else None,
                error_details=_error_details(e),
                cause=e,
            )

    def run_network(self, operation: str, *args: str, remote_url: Optional[str] = None) -> str:
        """
        Run a git subcommand that talks to a remote, bounded by the network timeout.

        Raises:
            TransportError: If the command fails or times out
        """
        kwargs = {}
        if self.network_timeout:
            kwargs["kill_after_timeout"] = self.network_timeout

        try:
            return self.git.execute(["git", *args], **kwargs)
        except GitCommandError as e:
            raise TransportError(
                operation,
                remote_url=remote_url,
                timeout=self.network_timeout,
                command=_command_line(args),
                status=e.status if isinstance(e.status, int) else None,
                error_details=_error_details(e),
                cause=e,
            )

    # Working tree

    def status_porcelain(self, pathspecs: Sequence[str] = ()) -> str:
        args = ["status", "--porcelain=v1", "-z", "--untracked-files=all"]
        if pathspecs:
            args += ["--", *pathspecs]
        return self.run("status", *args)

    def add_all(self, pathspecs: Sequence[str] = ()) -> None:
        args = ["add", "--all"]
        if pathspecs:
            args += ["--", *pathspecs]
        self.run("add", *args)

    def commit(self, message: str, pathspecs: Sequence[str] = ()) -> None:
        args = ["commit", "-m", message]
        if pathspecs:
            args += ["--", *pathspecs]
        self.run("commit", *args)

    def head_sha(self) -> Optional[str]:
        """SHA of HEAD, or None on an unborn branch."""
        sha = self.run("rev-parse", "rev-parse", "--verify", "-q", "HEAD", allowed_status=(1,))
        return sha.strip() or None

    def current_branch(self) -> Optional[str]:
        """Short name of the checked-out branch, or None when HEAD is detached."""
        name = self.run(
            "symbolic-ref", "symbolic-ref", "--short", "-q", "HEAD", allowed_status=(1,)
        ).strip()
        return name or None

    # Config (repository-local scope unless stated otherwise)

    def config_get(self, key: str, local: bool = False) -> Optional[str]:
        """
        Read a config value.

        Args:
            key: Config key, e.g. ``user.name``
            local: Only consult the repository's own config file

        Returns:
            The (last) value, or None if the key is not set
        """
        args = ["config"] + (["--local"] if local else []) + ["--get", key]
        value = self.run("config get", *args, allowed_status=(CONFIG_KEY_MISSING,))
        return value or None

    def config_get_all(self, key: str) -> Optional[List[str]]:
        """All local values of *key*, or None if it is not set locally."""
        if not self._config_key_exists(key, local=True):
            return None
        output = self.run("config get", "config", "--local", "-z", "--get-all", key)
        return output.split("\0")[:-1] if output.endswith("\0") else output.split("\0")

    def config_set(self, key: str, value: str) -> None:
        self.run("config set", "config", "--local", "--replace-all", key, value)

    def config_add(self, key: str, value: str) -> None:
        self.run("config set", "config", "--local", "--add", key, value)

    def config_unset(self, key: str) -> bool:
        """
        Remove every local value of *key*.

        Returns:
            False if the key was already absent
        """
        if not self._config_key_exists(key, local=True):
            return False
        self.run(
            "config unset",
            "config",
            "--local",
            "--unset-all",
            key,
            allowed_status=(CONFIG_NOTHING_TO_UNSET,),
        )
        return True

    def _config_key_exists(self, key: str, local: bool) -> bool:
        args = ["config"] + (["--local"] if local else []) + ["--get-all", key]
        try:
            self.git.execute(["git", *args])
            return True
        except GitCommandError as e:
            if e.status == CONFIG_KEY_MISSING:
                return False
            raise SubprocessError(
                "config get",
                command=_command_line(args),
                status=e.status if isinstance(e.status, int) else None,
                error_details=_error_details(e),
                cause=e,
            )

    # Remotes

    def remote_names(self) -> List[str]:
        output = self.run("remote list", "remote")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def add_remote(self, name: str, url: str) -> None:
        self.run("remote add", "remote", "add", name, url)

    def remove_remote(self, name: str) -> None:
        self.run("remote remove", "remote", "remove", name)

    def ls_remote(self, remote: str, ref: str, remote_url: Optional[str] = None) -> str:
        return self.run_network("ls-remote", "ls-remote", remote, ref, remote_url=remote_url)

    def push(
        self, remote: str, refspec: str, force: bool = False, remote_url: Optional[str] = None
    ) -> None:
        args = ["push"] + (["--force"] if force else []) + [remote, refspec]
        self.run_network("push", *args, remote_url=remote_url)
