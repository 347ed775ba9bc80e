"""
Push-back workflow.

Sequences change detection, commit, ephemeral remote setup and the
conflict-aware push, and guarantees that every temporary change to the
repository's config is rolled back before the run returns or raises.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from . import actions
from .core.config import Config
from .core.exceptions import CleanupError
from .git.changes import ChangeDetector
from .git.identity import CommitIdentityManager
from .git.publisher import ConflictAwarePublisher, PushOutcome, resolve_target_branch
from .git.remote import EphemeralRemoteManager, RemoteDescriptor
from .git.repository import GitRepository
from .git.snapshot import ConfigSnapshot


@dataclass
class RunResult:
    """Outcome of a run plus what was observed on the way."""

    target_branch: Optional[str] = None
    outcome: Optional[PushOutcome] = None
    changed_files: List[str] = field(default_factory=list)
    base_sha: Optional[str] = None
    commit_sha: Optional[str] = None
    remote_tip: Optional[str] = None
    cleanup_errors: List[Exception] = field(default_factory=list)

    def set_outcome(self, outcome: PushOutcome) -> None:
        """Record the terminal outcome. It can only be set once."""
        if self.outcome is not None:
            raise RuntimeError(f"Outcome already set to {self.outcome.value}")
        self.outcome = outcome


class PushBackWorkflow:
    """
    Commits local changes and pushes them back to the triggering repository.

    One instance drives one run against one working tree.
    """

    def __init__(self, config: Config, repository: Optional[GitRepository] = None):
        """
        Initialize the workflow.

        Args:
            config: Validated configuration
            repository: Repository handle (opened from the workspace if None)
        """
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.repository = repository or GitRepository(
            config.environment.workspace, network_timeout=config.settings.network_timeout
        )

        self.snapshot = ConfigSnapshot(self.repository)
        self.detector = ChangeDetector(self.repository)
        self.identity = CommitIdentityManager(self.repository, self.snapshot)
        self.remotes = EphemeralRemoteManager(
            self.repository, self.snapshot, remote_name=config.settings.remote_name
        )
        self.publisher = ConflictAwarePublisher(self.repository)

    def run(self) -> RunResult:
        """
        Execute the push-back sequence.

        Returns:
            RunResult whose outcome is one of the PushOutcome values

        Raises:
            ConfigurationError: Before any mutation, if no target branch can be found
            RemoteCollisionError: If the reserved remote already exists
            SubprocessError: If a git command fails (TransportError for remote I/O)
            CleanupError: If the run succeeded but the rollback did not
        """
        inputs = self.config.inputs
        environment = self.config.environment
        result = RunResult()

        result.target_branch = resolve_target_branch(self.repository, inputs.target_branch)

        with actions.group("Checking Git status"):
            changes = self.detector.changed_files(inputs.files)
            result.changed_files = changes.paths
            self.logger.info(f"{len(changes)} files changed")

        if not changes:
            self.logger.info("No files were changed, nothing to commit")
            result.set_outcome(PushOutcome.NOTHING_CHANGED)
            return result

        with actions.group("Getting HEAD commit SHA"):
            result.base_sha = self.repository.head_sha()
            self.logger.info(f"HEAD commit SHA: {result.base_sha or '(none, unborn branch)'}")

        try:
            with actions.group("Configuring Git committer info"):
                identity = self.identity.resolve(
                    name=inputs.committer_name,
                    email=inputs.committer_email,
                    actor=environment.actor,
                    repository_owner=environment.repository_owner,
                    noreply_host=environment.server_host,
                )
                self.identity.apply(identity)

            with actions.group(f"Committing {len(changes)} files"):
                self.repository.add_all(inputs.files)
                self.repository.commit(inputs.message, inputs.files)
                result.commit_sha = self.repository.head_sha()
                self.logger.info(f"{len(changes)} files committed")

            with actions.group(f"Adding '{self.remotes.remote_name}' remote"):
                remote = self.remotes.create(
                    inputs.github_token, environment.server_url, environment.repository
                )

            self._publish(remote, result)
        finally:
            self._cleanup(result)

        if result.cleanup_errors:
            raise CleanupError(result.cleanup_errors, result)
        return result

    def _publish(self, remote: RemoteDescriptor, result: RunResult) -> None:
        force_push = self.config.inputs.force_push
        title = f"Pushing changes to '{result.target_branch}' branch"
        if force_push:
            title += " (force push enabled)"

        with actions.group(title):
            decision = self.publisher.publish(
                remote, result.target_branch, result.base_sha, force_push=force_push
            )
        result.remote_tip = decision.remote_tip

        if decision.outcome is PushOutcome.REMOTE_CHANGED:
            self.logger.warning(
                f"Remote repository branch '{result.target_branch}' has been changed, "
                "skipping push back"
            )
        result.set_outcome(decision.outcome)

    def _cleanup(self, result: RunResult) -> None:
        """
        Remove the remote and restore the snapshot. Always runs once per run.

        Failures are logged and collected in *result*; they never replace an
        error already propagating from the run.
        """
        with actions.group(f"Removing '{self.remotes.remote_name}' remote"):
            try:
                self.remotes.destroy()
            except Exception as e:
                self.logger.error(f"Failed to remove remote '{self.remotes.remote_name}': {e}")
                result.cleanup_errors.append(e)

        with actions.group("Restoring previous config values"):
            try:
                result.cleanup_errors.extend(self.identity.restore(self.snapshot))
            except Exception as e:
                self.logger.error(f"Failed to restore config values: {e}")
                result.cleanup_errors.append(e)
