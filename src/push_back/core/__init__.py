"""
push-back core module.

Configuration management, the exception hierarchy and secret redaction
shared by every other part of the package.
"""

from .exceptions import PushBackError, ConfigurationError, GitError
from .config import Config, ConfigManager

__all__ = ["PushBackError", "ConfigurationError", "GitError", "Config", "ConfigManager"]
