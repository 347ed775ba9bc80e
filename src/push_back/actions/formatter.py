"""Log formatting for the Actions runner."""

import logging
import sys

from ..core.masking import SecretMaskingFilter, get_secret_registry
from .commands import escape_data


class WorkflowCommandFormatter(logging.Formatter):
    """
    Formatter that turns log levels into runner annotations.

    Under Actions, DEBUG records become ``::debug::`` lines (shown only when
    step debug is enabled) and WARNING/ERROR records become annotations.
    Outside Actions it behaves like a plain level-prefixed formatter.
    """

    COMMANDS = {
        logging.DEBUG: "debug",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def __init__(self, workflow_commands: bool = True):
        super().__init__("%(message)s")
        self.workflow_commands = workflow_commands

    def format(self, record):
        """Format log record with the matching workflow command prefix."""
        message = get_secret_registry().redact(super().format(record))
        if not self.workflow_commands:
            return f"{record.levelname}: {message}" if record.levelno != logging.INFO else message

        command = self.COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{escape_data(message)}"

    def formatException(self, ei):
        return get_secret_registry().redact(super().formatException(ei))


def setup_logging(debug: bool = False, workflow_commands: bool = True) -> logging.Handler:
    """
    Configure logging levels and output format.

    Args:
        debug: Emit DEBUG records, including GitPython's command trace
        workflow_commands: Format records as runner workflow commands

    Returns:
        The installed stdout handler
    """
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(WorkflowCommandFormatter(workflow_commands))
    handler.addFilter(SecretMaskingFilter())

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if isinstance(existing.formatter, WorkflowCommandFormatter):
            root_logger.removeHandler(existing)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # GitPython logs every command line on the "git" logger
    logging.getLogger("git").setLevel(logging.DEBUG if debug else logging.WARNING)

    return handler
