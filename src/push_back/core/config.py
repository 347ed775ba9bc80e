"""
Configuration management for push-back.

Collects the step inputs, the runner environment and optional settings
from a YAML or JSON file, with defaults and validation.
"""

import os
import json
import yaml
import copy
from typing import Dict, Any, Optional, List, Mapping
from dataclasses import dataclass, field, asdict
from urllib.parse import urlsplit

from .exceptions import ConfigFileError, ConfigValidationError, ConfigMissingError

DEFAULT_SERVER_URL = "https://github.com"
DEFAULT_REMOTE_NAME = "push-back"
DEFAULT_NETWORK_TIMEOUT = 300.0  # seconds


def parse_files(value: Optional[str]) -> List[str]:
    """Split the newline-delimited ``files`` input into trimmed patterns."""
    if not value:
        return []
    return [line.strip() for line in value.splitlines() if line.strip()]


def parse_flag(value: Optional[str]) -> bool:
    """Only a case-insensitive ``true`` enables a flag input."""
    return (value or "").strip().lower() == "true"


@dataclass
class ActionInputs:
    """Values passed to the step through its ``with:`` block."""

    github_token: str = ""
    message: str = ""
    files: List[str] = field(default_factory=list)
    committer_name: str = ""
    committer_email: str = ""
    force_push: bool = False
    target_branch: str = ""


@dataclass
class RunnerEnvironment:
    """Runner-provided context for the triggering repository."""

    repository: str = ""  # owner/repo
    server_url: str = DEFAULT_SERVER_URL
    actor: str = ""
    workspace: str = "."
    debug: bool = False

    @property
    def repository_owner(self) -> str:
        return self.repository.split("/")[0]

    @property
    def server_host(self) -> str:
        return urlsplit(self.server_url).hostname or "github.com"


@dataclass
class PushBackSettings:
    """Tunables that normally keep their defaults."""

    remote_name: str = DEFAULT_REMOTE_NAME
    network_timeout: float = DEFAULT_NETWORK_TIMEOUT
    log_level: str = "INFO"


@dataclass
class Config:
    """Main configuration class for push-back."""

    inputs: ActionInputs = field(default_factory=ActionInputs)
    environment: RunnerEnvironment = field(default_factory=RunnerEnvironment)
    settings: PushBackSettings = field(default_factory=PushBackSettings)

    # Runtime state
    config_file: Optional[str] = None


class ConfigManager:
    """
    Configuration manager with file loading, environment overrides and validation.

    Precedence, lowest first: defaults, settings file, environment
    (``INPUT_*``, ``GITHUB_*``, ``PUSH_BACK_*``), explicit overrides.
    """

    SECTIONS = ("inputs", "environment", "settings")

    def __init__(
        self, config_path: Optional[str] = None, env: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to settings file (YAML or JSON)
            env: Environment mapping (``os.environ`` if None)
        """
        self.env = os.environ if env is None else env
        self.config_path = config_path or self.env.get("PUSH_BACK_CONFIG") or None
        self.config = Config()

        if self.config_path:
            self.load_config(self.config_path)

        self._apply_env_overrides()

    def load_config(self, config_path: Optional[str] = None) -> Config:
        """
        Load settings from file.

        Args:
            config_path: Path to settings file

        Returns:
            Loaded Config object

        Raises:
            ConfigFileError: If file cannot be loaded
        """
        if config_path:
            self.config_path = config_path

        if not self.config_path or not os.path.exists(self.config_path):
            raise ConfigFileError(self.config_path or "", "load_config", "file not found")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                if self.config_path.endswith((".yaml", ".yml")):
                    data = yaml.safe_load(f) or {}
                elif self.config_path.endswith(".json"):
                    data = json.load(f)
                else:
                    raise ConfigFileError(
                        self.config_path, "load_config", "unsupported format, use .yaml or .json"
                    )
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigFileError(self.config_path, "load_config", f"Invalid format: {e}")
        except OSError as e:
            raise ConfigFileError(self.config_path, "load_config", str(e))

        if not isinstance(data, dict):
            raise ConfigFileError(self.config_path, "load_config", "top level must be a mapping")

        self.config = self._merge_with_defaults(data)
        self.config.config_file = self.config_path
        return self.config

    def apply_overrides(self, overrides: Dict[str, Dict[str, Any]]) -> Config:
        """
        Apply explicit per-section overrides, e.g. from command-line flags.

        ``None`` values are skipped so unset flags keep earlier values.

        Raises:
            ConfigValidationError: If a section or key is unknown
        """
        for section, values in overrides.items():
            if section not in self.SECTIONS:
                raise ConfigValidationError(section, values, "unknown configuration section")
            section_config = getattr(self.config, section)
            for key, value in values.items():
                if value is None:
                    continue
                if not hasattr(section_config, key):
                    raise ConfigValidationError(f"{section}.{key}", value, "unknown key")
                setattr(section_config, key, value)
        return self.config

    def validate(self) -> Config:
        """
        Validate configuration values.

        Raises:
            ConfigMissingError: If required inputs or environment are missing
            ConfigValidationError: If configuration is invalid
        """
        if not self.config.environment.repository:
            raise ConfigMissingError(["GITHUB_REPOSITORY"], "runner environment")

        missing = [
            name
            for name, value in (
                ("githubToken", self.config.inputs.github_token),
                ("message", self.config.inputs.message),
            )
            if not value
        ]
        if missing:
            raise ConfigMissingError(missing, "action inputs")

        repository = self.config.environment.repository
        owner, _, name = repository.partition("/")
        if not owner or not name:
            raise ConfigValidationError("GITHUB_REPOSITORY", repository, "expected 'owner/repo'")

        parts = urlsplit(self.config.environment.server_url)
        if not parts.scheme or (parts.scheme != "file" and not parts.netloc):
            raise ConfigValidationError(
                "server_url", self.config.environment.server_url, "expected an absolute URL"
            )

        remote_name = self.config.settings.remote_name
        if not remote_name or any(c.isspace() for c in remote_name) or "/" in remote_name:
            raise ConfigValidationError("remote_name", remote_name, "must be a single path segment")

        if not self.config.settings.network_timeout > 0:
            raise ConfigValidationError(
                "network_timeout", self.config.settings.network_timeout, "must be positive"
            )

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.config.settings.log_level not in valid_levels:
            raise ConfigValidationError(
                "log_level", self.config.settings.log_level, f"must be one of {valid_levels}"
            )

        return self.config

    def _merge_with_defaults(self, data: Dict[str, Any]) -> Config:
        """Build a Config from file data; unknown sections or keys are errors."""
        unknown = [key for key in data if key not in self.SECTIONS]
        if unknown:
            raise ConfigValidationError(", ".join(unknown), data, "unknown configuration section")

        default_dict = asdict(Config())
        default_dict.pop("config_file", None)
        merged = self._deep_merge(default_dict, data)

        try:
            return Config(
                inputs=ActionInputs(**merged["inputs"]),
                environment=RunnerEnvironment(**merged["environment"]),
                settings=PushBackSettings(**merged["settings"]),
            )
        except TypeError as e:
            raise ConfigValidationError("settings file", self.config_path, str(e))

    def _deep_merge(self, default: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively overlay *override* on a copy of *default*."""
        result = copy.deepcopy(default)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _input(self, name: str) -> Optional[str]:
        """Read a step input; None when the runner did not set it."""
        key = f"INPUT_{name.replace(' ', '_').upper()}"
        if key not in self.env:
            return None
        return self.env[key].strip()

    def _apply_env_overrides(self):
        """Apply step inputs and runner environment variables."""
        inputs = self.config.inputs
        environment = self.config.environment
        settings = self.config.settings

        # Step inputs
        if self._input("githubToken") is not None:
            inputs.github_token = self._input("githubToken")
        if not inputs.github_token and self.env.get("GITHUB_TOKEN"):
            inputs.github_token = self.env["GITHUB_TOKEN"]
        if self._input("message") is not None:
            inputs.message = self._input("message")
        if self._input("files") is not None:
            inputs.files = parse_files(self._input("files"))
        if self._input("committerName") is not None:
            inputs.committer_name = self._input("committerName")
        if self._input("committerEmail") is not None:
            inputs.committer_email = self._input("committerEmail")
        if self._input("forcePush") is not None:
            inputs.force_push = parse_flag(self._input("forcePush"))
        if self._input("targetBranch") is not None:
            inputs.target_branch = self._input("targetBranch")

        # Runner environment
        if self.env.get("GITHUB_REPOSITORY"):
            environment.repository = self.env["GITHUB_REPOSITORY"]
        server_url = self.env.get("GITHUB_SERVER_URL") or self.env.get("GITHUB_URL")
        if server_url:
            environment.server_url = server_url
        if self.env.get("GITHUB_ACTOR"):
            environment.actor = self.env["GITHUB_ACTOR"]
        if self.env.get("GITHUB_WORKSPACE"):
            environment.workspace = self.env["GITHUB_WORKSPACE"]
        if (
            self.env.get("ACTIONS_STEP_DEBUG", "").lower() == "true"
            or self.env.get("RUNNER_DEBUG") == "1"
        ):
            environment.debug = True

        # Settings overrides
        if "PUSH_BACK_REMOTE_NAME" in self.env:
            settings.remote_name = self.env["PUSH_BACK_REMOTE_NAME"]
        if "PUSH_BACK_NETWORK_TIMEOUT" in self.env:
            try:
                settings.network_timeout = float(self.env["PUSH_BACK_NETWORK_TIMEOUT"])
            except ValueError:
                raise ConfigValidationError(
                    "PUSH_BACK_NETWORK_TIMEOUT",
                    self.env["PUSH_BACK_NETWORK_TIMEOUT"],
                    "must be a number of seconds",
                )
        if "PUSH_BACK_LOG_LEVEL" in self.env:
            settings.log_level = self.env["PUSH_BACK_LOG_LEVEL"].upper()

    def get_config_summary(self) -> Dict[str, Any]:
        """
        Get summary of current configuration, without secrets.

        Returns:
            Dictionary with configuration summary
        """
        return {
            "config_file": self.config.config_file,
            "inputs": {
                "github_token_set": bool(self.config.inputs.github_token),
                "files": list(self.config.inputs.files),
                "committer_name": self.config.inputs.committer_name,
                "committer_email": self.config.inputs.committer_email,
                "force_push": self.config.inputs.force_push,
                "target_branch": self.config.inputs.target_branch,
            },
            "environment": {
                "repository": self.config.environment.repository,
                "server_url": self.config.environment.server_url,
                "actor": self.config.environment.actor,
                "workspace": self.config.environment.workspace,
                "debug": self.config.environment.debug,
            },
            "settings": asdict(self.config.settings),
        }
