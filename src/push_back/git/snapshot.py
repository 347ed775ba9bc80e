"""
Config snapshot and restore.

Each key push-back overwrites in the repository's local config is captured
first. Restoring writes the captured values back verbatim, or unsets the
key when it did not exist before the run.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..core.exceptions import PushBackError
from .repository import GitRepository


class ConfigSnapshot:
    """
    Prior local values of config keys, in capture order.

    A value of None records that the key was absent.
    """

    def __init__(self, repository: GitRepository):
        self.repository = repository
        self.logger = logging.getLogger(__name__)
        self._entries: Dict[str, Optional[Tuple[str, ...]]] = {}

    def capture(self, key: str) -> Optional[Tuple[str, ...]]:
        """
        Record the current local value(s) of *key* without changing anything.

        Only the first capture of a key counts; a later capture would see a
        value this run wrote itself.

        Returns:
            The recorded values, or None if the key was absent
        """
        if key in self._entries:
            return self._entries[key]

        values = self.repository.config_get_all(key)
        self._entries[key] = tuple(values) if values is not None else None
        if values is None:
            self.logger.debug(f"Config '{key}' not set before this run")
        else:
            self.logger.debug(f"Captured {len(values)} value(s) of config '{key}'")
        return self._entries[key]

    def keys(self) -> List[str]:
        return list(self._entries)

    def is_absent(self, key: str) -> bool:
        return self._entries.get(key) is None

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def restore_key(self, key: str) -> None:
        """
        Put *key* back the way it was. Safe to call repeatedly.

        Raises:
            KeyError: If *key* was never captured
            SubprocessError: If git refuses the change
        """
        prior = self._entries[key]
        self.repository.config_unset(key)
        if prior is None:
            self.logger.info(f"Removed config '{key}'")
            return

        for value in prior:
            self.repository.config_add(key, value)
        self.logger.info(f"Restored previous value of config '{key}'")

    def restore(self) -> List[PushBackError]:
        """
        Restore every captured key, in capture order.

        A failure on one key does not stop the others.

        Returns:
            The errors encountered, empty on full success
        """
        errors = []
        for key in self._entries:
            try:
                self.restore_key(key)
            except PushBackError as e:
                self.logger.error(f"Failed to restore config '{key}': {e}")
                errors.append(e)
        return errors
