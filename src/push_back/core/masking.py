"""
Secret registry and log redaction.

Values registered here (access tokens, encoded credentials) are replaced
with ``***`` in every log record and in error text built from git output.
"""

import logging
import threading
from typing import Iterable, List, Optional

MASK = "***"


class SecretRegistry:
    """Thread-safe set of values that must never appear in output."""

    def __init__(self):
        self._secrets: List[str] = []
        self._lock = threading.RLock()

    def add(self, value: Optional[str]) -> None:
        """Register a secret. Empty values and duplicates are ignored."""
        if not value:
            return
        with self._lock:
            if value not in self._secrets:
                self._secrets.append(value)
                # Longest first so a secret containing another is fully masked
                self._secrets.sort(key=len, reverse=True)

    def clear(self) -> None:
        with self._lock:
            self._secrets.clear()

    def __contains__(self, value: str) -> bool:
        with self._lock:
            return value in self._secrets

    def __len__(self) -> int:
        with self._lock:
            return len(self._secrets)

    def redact(self, text):
        """Return *text* with every registered secret replaced by the mask."""
        if not text or not isinstance(text, str):
            return text
        with self._lock:
            for secret in self._secrets:
                text = text.replace(secret, MASK)
        return text

    def redact_all(self, values: Iterable[str]) -> List[str]:
        return [self.redact(value) for value in values]


class SecretMaskingFilter(logging.Filter):
    """Logging filter that redacts registered secrets from each record."""

    def __init__(self, registry: Optional["SecretRegistry"] = None):
        super().__init__()
        self.registry = registry

    def filter(self, record: logging.LogRecord) -> bool:
        registry = self.registry if self.registry is not None else get_secret_registry()
        if len(registry):
            record.msg = registry.redact(record.getMessage())
            record.args = None
        return True


# Global registry instance
_secret_registry = None


def get_secret_registry() -> SecretRegistry:
    """
    Get global secret registry instance.

    Returns:
        SecretRegistry shared by logging and error formatting
    """
    global _secret_registry
    if _secret_registry is None:
        _secret_registry = SecretRegistry()
    return _secret_registry


def redact(text):
    """Redact registered secrets using the global registry."""
    return get_secret_registry().redact(text)
