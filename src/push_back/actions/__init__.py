"""
GitHub Actions integration for push-back.

Wraps the runner's workflow command protocol: outputs, secret
masks, log groups and annotations.
"""

from .commands import (
    error,
    group,
    is_debug,
    is_running_in_actions,
    issue_command,
    set_output,
    set_secret,
    warning,
)
from .formatter import WorkflowCommandFormatter, setup_logging

__all__ = [
    "error",
    "group",
    "is_debug",
    "is_running_in_actions",
    "issue_command",
    "set_output",
    "set_secret",
    "warning",
    "WorkflowCommandFormatter",
    "setup_logging",
]
