"""
Custom exception hierarchy for push-back error handling.

Every failure the push-back step can report derives from PushBackError,
which carries context data and resolution suggestions so the runner log
tells the user what to fix.
"""

from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
import traceback
import time


@dataclass
class ErrorContext:
    """Where a failure happened and the values involved."""

    component: str  # e.g. "remote_manager"
    operation: str  # e.g. "create_remote"
    data: Dict[str, Any]
    timestamp: float = field(default_factory=time.time)
    user_friendly: bool = True


class PushBackError(Exception):
    """
    Failure reported as the step error.

    *error_code* is stable for callers that branch on it; *suggestions*
    feed the runner annotation (only the first is shown).
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        suggestions: Optional[List[str]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or ErrorContext(
            component="unknown", operation="unknown", data={}, timestamp=time.time()
        )
        self.suggestions = suggestions or []
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form of the error."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": {
                "component": self.context.component,
                "operation": self.context.operation,
                "data": self.context.data,
                "timestamp": self.context.timestamp,
                "user_friendly": self.context.user_friendly,
            },
            "suggestions": self.suggestions,
            "cause": str(self.cause) if self.cause else None,
            "traceback": traceback.format_exc() if self.cause else None,
        }

    def __str__(self) -> str:
        return self.message


class ConfigurationError(PushBackError):
    """The configuration makes the run impossible."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault(
            "context",
            ErrorContext(component="config_manager", operation="config_operation", data={}),
        )
        super().__init__(message, **kwargs)


class ConfigFileError(ConfigurationError):
    """Raised for settings file issues."""

    def __init__(self, file_path: str, operation: str, error_details: Optional[str] = None):
        message = f"Configuration file error during {operation}: {file_path}"
        if error_details:
            message += f": {error_details}"

        suggestions = [
            "Verify file path and permissions",
            "Check file format (YAML/JSON)",
            "Remove the settings file to run with defaults",
        ]

        super().__init__(
            message,
            error_code="CONFIG_FILE_ERROR",
            context=ErrorContext(
                component="config_manager",
                operation=operation,
                data={"file_path": file_path, "error_details": error_details},
            ),
            suggestions=suggestions,
        )
        self.file_path = file_path
        self.operation = operation
        self.error_details = error_details


class ConfigValidationError(ConfigurationError):
    """Raised for invalid configuration values."""

    def __init__(self, field_name: str, field_value: Any, validation_error: str):
        message = (
            f"Invalid configuration value for '{field_name}': {field_value} - {validation_error}"
        )

        super().__init__(
            message,
            error_code="CONFIG_VALIDATION_FAILED",
            context=ErrorContext(
                component="config_manager",
                operation="validate_config",
                data={
                    "field_name": field_name,
                    "field_value": str(field_value),
                    "validation_error": validation_error,
                },
            ),
            suggestions=["Check the action inputs and settings file for typos"],
        )
        self.field_name = field_name
        self.field_value = field_value
        self.validation_error = validation_error


class ConfigMissingError(ConfigurationError):
    """Raised when a required input or environment variable is missing."""

    def __init__(self, missing_keys: List[str], config_section: Optional[str] = None):
        section_msg = f" in {config_section}" if config_section else ""
        message = f"Required configuration missing{section_msg}: {', '.join(missing_keys)}"

        suggestions = [
            "Set the missing inputs in the workflow step's 'with:' block",
            "Run the step inside GitHub Actions so GITHUB_* variables are defined",
        ]

        super().__init__(
            message,
            error_code="CONFIG_MISSING_REQUIRED",
            context=ErrorContext(
                component="config_manager",
                operation="check_requirements",
                data={"missing_keys": missing_keys, "config_section": config_section},
            ),
            suggestions=suggestions,
        )
        self.missing_keys = missing_keys
        self.config_section = config_section


class DetachedHeadError(ConfigurationError):
    """Raised when no push destination can be inferred from a detached HEAD."""

    def __init__(self, repo_path: str):
        super().__init__(
            "'targetBranch' input parameter should be set, as HEAD is detached from any branch",
            error_code="DETACHED_HEAD",
            context=ErrorContext(
                component="publisher",
                operation="resolve_target_branch",
                data={"repo_path": repo_path},
            ),
            suggestions=[
                "Set the 'targetBranch' input",
                "Check out a branch with 'actions/checkout' using 'ref: <branch>'",
            ],
        )
        self.repo_path = repo_path


class RemoteCollisionError(ConfigurationError):
    """Raised when the reserved push remote is already configured."""

    def __init__(self, remote_name: str, configured_remotes: Optional[List[str]] = None):
        super().__init__(
            f"Remote already exists: {remote_name}",
            error_code="REMOTE_COLLISION",
            context=ErrorContext(
                component="remote_manager",
                operation="create_remote",
                data={"remote_name": remote_name, "configured_remotes": configured_remotes or []},
            ),
            suggestions=[
                f"Remove the '{remote_name}' remote before this step",
                "Do not run two push-back steps against the same working tree at once",
            ],
        )
        self.remote_name = remote_name
        self.configured_remotes = configured_remotes or []


class GitError(PushBackError):
    """A git operation failed."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault(
            "context", ErrorContext(component="git_interface", operation="git_operation", data={})
        )
        super().__init__(message, **kwargs)


class RepositoryError(GitError):
    """Raised when the working tree is not a usable git repository."""

    def __init__(self, repo_path: str, error_details: Optional[str] = None):
        message = f"Git repository error in {repo_path}"
        if error_details:
            message += f": {error_details}"

        super().__init__(
            message,
            error_code="GIT_REPOSITORY_ERROR",
            context=ErrorContext(
                component="git_interface",
                operation="open_repository",
                data={"repo_path": repo_path, "error_details": error_details},
            ),
            suggestions=[
                "Run 'actions/checkout' before this step",
                "Point GITHUB_WORKSPACE or --repo-path at the working tree",
            ],
        )
        self.repo_path = repo_path
        self.error_details = error_details


class SubprocessError(GitError):
    """Raised when a git invocation exits non-zero unexpectedly."""

    def __init__(
        self,
        operation: str,
        command: Optional[str] = None,
        status: Optional[int] = None,
        error_details: Optional[str] = None,
        **kwargs,
    ):
        message = f"Git {operation} failed"
        if status is not None:
            message += f" (exit code {status})"
        if error_details:
            message += f": {error_details}"

        kwargs.setdefault(
            "context",
            ErrorContext(
                component="git_interface",
                operation=operation,
                data={"command": command, "status": status, "error_details": error_details},
            ),
        )
        kwargs.setdefault("error_code", "GIT_COMMAND_FAILED")
        kwargs.setdefault("suggestions", ["Re-run the step with debug logging enabled"])
        super().__init__(message, **kwargs)
        self.operation = operation
        self.command = command
        self.status = status
        self.error_details = error_details


class TransportError(SubprocessError):
    """Raised when talking to the remote fails, is rejected, or times out."""

    def __init__(
        self,
        operation: str,
        remote_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs,
    ):
        suggestions = [
            "Check that the token has 'contents: write' permission",
            "Check that the target branch is not protected against this push",
        ]
        if timeout:
            suggestions.append(f"The operation is limited to {timeout:g}s, check network access")

        super().__init__(
            operation,
            error_code="GIT_TRANSPORT_FAILED",
            suggestions=suggestions,
            **kwargs,
        )
        self.context.data.update({"remote_url": remote_url, "timeout": timeout})
        self.remote_url = remote_url
        self.timeout = timeout


# Error handling utilities


def format_error_for_user(error: Exception) -> str:
    """
    Convert an error to the message reported as the step failure.

    Args:
        error: Exception instance

    Returns:
        User-facing error message
    """
    if not isinstance(error, PushBackError):
        return f"Unexpected error: {str(error)}"

    message = error.message
    if error.suggestions:
        message += f"\nSuggestion: {error.suggestions[0]}"
    return message


class CleanupError(PushBackError):
    """Raised when the run itself succeeded but temporary git state could not be removed."""

    def __init__(self, errors: List[Exception], result: Any = None):
        details = "; ".join(str(error) for error in errors)
        super().__init__(
            f"Failed to restore repository state after push-back: {details}",
            error_code="CLEANUP_FAILED",
            context=ErrorContext(
                component="workflow",
                operation="cleanup",
                data={"errors": [str(error) for error in errors]},
            ),
            suggestions=[
                "Inspect .git/config for a leftover 'push-back' remote or extraheader entry",
            ],
        )
        self.errors = errors
        self.result = result
