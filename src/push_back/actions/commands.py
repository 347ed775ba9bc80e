"""
GitHub Actions runner protocol.

Workflow commands (``::group::``, ``::add-mask::``, annotations), step
inputs and step outputs, written the way the runner expects them.
"""

import os
import sys
import uuid
from contextlib import contextmanager
from typing import Dict, Optional, TextIO

from ..core.masking import get_secret_registry


def is_running_in_actions(env: Optional[Dict[str, str]] = None) -> bool:
    """True when executing inside a GitHub Actions job."""
    env = os.environ if env is None else env
    return env.get("GITHUB_ACTIONS", "").lower() == "true"


def is_debug(env: Optional[Dict[str, str]] = None) -> bool:
    """True when step debug logging is enabled for the run."""
    env = os.environ if env is None else env
    return (
        env.get("ACTIONS_STEP_DEBUG", "").lower() == "true"
        or env.get("RUNNER_DEBUG", "") == "1"
    )


def escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


def issue_command(
    command: str,
    message: str = "",
    properties: Optional[Dict[str, str]] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Write a workflow command line.

    Args:
        command: Command name, e.g. ``warning`` or ``add-mask``
        message: Command payload
        properties: Optional ``key=value`` properties
        stream: Output stream (stdout by default)
    """
    stream = stream or sys.stdout
    line = f"::{command}"
    if properties:
        line += " " + ",".join(
            f"{key}={escape_property(str(value))}" for key, value in properties.items() if value
        )
    line += f"::{escape_data(message)}"
    stream.write(line + os.linesep)
    stream.flush()


def set_secret(value: str, stream: Optional[TextIO] = None) -> None:
    """Register *value* with the runner mask and the local log redaction."""
    if not value:
        return
    get_secret_registry().add(value)
    issue_command("add-mask", value, stream=stream)


def set_output(
    name: str,
    value: str,
    env: Optional[Dict[str, str]] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Set a step output.

    Appends to the ``GITHUB_OUTPUT`` file when the runner provides one,
    otherwise falls back to the legacy ``set-output`` command.
    """
    env = os.environ if env is None else env
    output_file = env.get("GITHUB_OUTPUT")
    if not output_file:
        issue_command("set-output", value, {"name": name}, stream=stream)
        return

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name or delimiter in value:
        raise ValueError(f"Unexpected delimiter collision for output '{name}'")
    with open(output_file, "a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}{os.linesep}{value}{os.linesep}{delimiter}{os.linesep}")


def warning(message: str, stream: Optional[TextIO] = None) -> None:
    issue_command("warning", get_secret_registry().redact(message), stream=stream)


def error(message: str, stream: Optional[TextIO] = None) -> None:
    issue_command("error", get_secret_registry().redact(message), stream=stream)


@contextmanager
def group(title: str, stream: Optional[TextIO] = None):
    """
    Fold the log lines emitted inside the block under *title*.

    The group is closed even when the block raises.
    """
    stream = stream or sys.stdout
    issue_command("group", get_secret_registry().redact(title), stream=stream)
    try:
        yield
    finally:
        issue_command("endgroup", stream=stream)
