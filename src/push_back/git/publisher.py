"""
Conflict-aware publishing.

Before a normal push, the remote branch tip is compared with the commit the
new work was built on. If somebody else moved the branch in the meantime the
push is skipped and reported instead of being rejected or clobbering their
commits.

The comparison and the push are two separate network round trips; a writer
landing between them is caught only by the server's own fast-forward check,
which then surfaces as a TransportError.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.exceptions import DetachedHeadError
from .remote import RemoteDescriptor
from .repository import GitRepository


class PushOutcome(Enum):
    """Externally visible result of a run."""

    NOTHING_CHANGED = "nothing-changed"
    REMOTE_CHANGED = "remote-changed"
    PUSHED_SUCCESSFULLY = "pushed-successfully"


@dataclass(frozen=True)
class PublishResult:
    """Decision taken by the publisher for one push attempt."""

    outcome: PushOutcome
    remote_tip: Optional[str] = None
    forced: bool = False


def resolve_target_branch(repository: GitRepository, target_branch: Optional[str] = None) -> str:
    """
    Branch to push to: *target_branch* if given, else the checked-out branch.

    Raises:
        DetachedHeadError: If HEAD is detached and no branch was given
    """
    if target_branch:
        return target_branch

    current = repository.current_branch()
    if current is None:
        raise DetachedHeadError(str(repository.working_dir))
    return current


class ConflictAwarePublisher:
    """Pushes HEAD to a remote branch unless the branch moved underneath us."""

    def __init__(self, repository: GitRepository):
        self.repository = repository
        self.logger = logging.getLogger(__name__)

    def remote_tip(self, remote: RemoteDescriptor, branch: str) -> Optional[str]:
        """
        Current SHA of *branch* on *remote*, or None if the branch does not exist.

        Raises:
            TransportError: If the remote cannot be queried
        """
        ref = f"refs/heads/{branch}"
        output = self.repository.ls_remote(remote.name, ref, remote_url=remote.url)
        for line in output.splitlines():
            sha, _, name = line.partition("\t")
            if name.strip() == ref:
                return sha.strip()
        return None

    def publish(
        self,
        remote: RemoteDescriptor,
        target_branch: str,
        base_sha: Optional[str],
        force_push: bool = False,
    ) -> PublishResult:
        """
        Push HEAD to *target_branch* on *remote*.

        Args:
            remote: Remote created for this run
            target_branch: Destination branch name
            base_sha: HEAD before the local commit was made (None on an unborn branch)
            force_push: Overwrite the remote branch unconditionally

        Returns:
            PublishResult with REMOTE_CHANGED or PUSHED_SUCCESSFULLY

        Raises:
            TransportError: If the lookup or push fails or times out
        """
        refspec = f"HEAD:refs/heads/{target_branch}"

        if force_push:
            self.repository.push(remote.name, refspec, force=True, remote_url=remote.url)
            self.logger.info(f"Force pushed to '{target_branch}'")
            return PublishResult(PushOutcome.PUSHED_SUCCESSFULLY, forced=True)

        tip = self.remote_tip(remote, target_branch)
        if tip:
            self.logger.info(f"Target remote branch last commit SHA: {tip}")
            if tip != base_sha:
                return PublishResult(PushOutcome.REMOTE_CHANGED, remote_tip=tip)
        else:
            self.logger.info("Target branch doesn't exist")

        self.repository.push(remote.name, refspec, remote_url=remote.url)
        self.logger.info(f"Pushed to '{target_branch}'")
        return PublishResult(PushOutcome.PUSHED_SUCCESSFULLY, remote_tip=tip)
