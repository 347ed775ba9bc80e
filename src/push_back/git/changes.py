"""
Change detection for push-back.

Reports which paths inside the requested scope differ from HEAD, including
untracked files, without touching the index or the working tree.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from .repository import GitRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileChange:
    """One entry of ``git status --porcelain``."""

    path: str
    status: str  # two-letter XY code, e.g. " M", "??", "R "
    original_path: Optional[str] = None  # source of a rename or copy

    @property
    def is_untracked(self) -> bool:
        return self.status == "??"


@dataclass(frozen=True)
class ChangeSet:
    """Immutable snapshot of the changed paths within a scope."""

    scope: Tuple[str, ...]
    changes: Tuple[FileChange, ...] = ()

    @property
    def paths(self) -> List[str]:
        return [change.path for change in self.changes]

    def __len__(self) -> int:
        return len(self.changes)

    def __bool__(self) -> bool:
        return bool(self.changes)

    def __iter__(self) -> Iterator[FileChange]:
        return iter(self.changes)


def parse_porcelain(output: str) -> List[FileChange]:
    """
    Parse NUL-separated ``git status --porcelain=v1 -z`` output.

    Renames and copies are followed by an extra entry holding the source path.
    """
    entries = output.split("\0")
    changes = []
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue
        status, path = entry[:2], entry[3:]
        original_path = None
        if status[0] in "RC" and i < len(entries):
            original_path = entries[i]
            i += 1
        changes.append(FileChange(path=path, status=status, original_path=original_path))
    return changes


class ChangeDetector:
    """Read-only view of the working tree status."""

    def __init__(self, repository: GitRepository):
        self.repository = repository

    def changed_files(self, scope: Sequence[str] = ()) -> ChangeSet:
        """
        Query working-tree status restricted to *scope*.

        Args:
            scope: Path patterns; empty means the whole tree

        Returns:
            ChangeSet of every modified, deleted, renamed or untracked path
        """
        scope = tuple(scope)
        output = self.repository.status_porcelain(scope)
        changes = tuple(parse_porcelain(output))
        for change in changes:
            logger.debug(f"{change.status} {change.path}")
        return ChangeSet(scope=scope, changes=changes)
