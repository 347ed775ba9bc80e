"""
Git operations for push-back.

Change detection, committer identity, the ephemeral authenticated remote
and the conflict-aware push, all on top of a single GitRepository handle.
"""

from .repository import GitRepository
from .changes import ChangeDetector, ChangeSet, FileChange
from .snapshot import ConfigSnapshot
from .identity import CommitIdentity, CommitIdentityManager
from .remote import EphemeralRemoteManager, RemoteDescriptor
from .publisher import ConflictAwarePublisher, PublishResult, PushOutcome, resolve_target_branch

__all__ = [
    "GitRepository",
    "ChangeDetector",
    "ChangeSet",
    "FileChange",
    "ConfigSnapshot",
    "CommitIdentity",
    "CommitIdentityManager",
    "EphemeralRemoteManager",
    "RemoteDescriptor",
    "ConflictAwarePublisher",
    "PublishResult",
    "PushOutcome",
    "resolve_target_branch",
]
