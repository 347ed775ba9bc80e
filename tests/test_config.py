"""Tests for configuration loading, environment overrides and validation."""

import json

import pytest
import yaml

from push_back.core.config import (
    DEFAULT_NETWORK_TIMEOUT,
    DEFAULT_REMOTE_NAME,
    DEFAULT_SERVER_URL,
    ConfigManager,
    parse_files,
    parse_flag,
)
from push_back.core.exceptions import (
    ConfigFileError,
    ConfigMissingError,
    ConfigValidationError,
    ConfigurationError,
)

RUNNER_ENV = {
    "INPUT_GITHUBTOKEN": "ghs_secret",
    "INPUT_MESSAGE": "Update docs",
    "GITHUB_REPOSITORY": "octo/demo",
    "GITHUB_ACTOR": "octocat",
    "GITHUB_WORKSPACE": "/workspace/demo",
}


class TestInputParsing:
    """Test parsing of raw input strings."""

    def test_files_split_on_lines(self):
        assert parse_files("docs/\n  dist/*.js \n\n\nREADME.md\n") == ["docs/", "dist/*.js", "README.md"]

    def test_files_empty(self):
        assert parse_files("") == []
        assert parse_files(None) == []
        assert parse_files("  \n ") == []

    @pytest.mark.parametrize("value", ["true", "TRUE", "True", " true "])
    def test_flag_true(self, value):
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", ["", None, "false", "yes", "1", "on"])
    def test_flag_anything_else_is_false(self, value):
        assert parse_flag(value) is False


class TestEnvironment:
    """Test values read from the runner environment."""

    def test_defaults(self):
        config = ConfigManager(env={}).config

        assert config.environment.server_url == DEFAULT_SERVER_URL
        assert config.settings.remote_name == DEFAULT_REMOTE_NAME
        assert config.settings.network_timeout == DEFAULT_NETWORK_TIMEOUT
        assert config.inputs.force_push is False
        assert config.inputs.files == []

    def test_inputs_and_runner_variables(self):
        env = dict(
            RUNNER_ENV,
            INPUT_FILES="docs\ndist\n",
            INPUT_COMMITTERNAME="Docs Bot",
            INPUT_COMMITTEREMAIL="docs@example.com",
            INPUT_FORCEPUSH="True",
            INPUT_TARGETBRANCH="gh-pages",
        )

        config = ConfigManager(env=env).validate()

        assert config.inputs.github_token == "ghs_secret"
        assert config.inputs.message == "Update docs"
        assert config.inputs.files == ["docs", "dist"]
        assert config.inputs.committer_name == "Docs Bot"
        assert config.inputs.committer_email == "docs@example.com"
        assert config.inputs.force_push is True
        assert config.inputs.target_branch == "gh-pages"
        assert config.environment.repository_owner == "octo"
        assert config.environment.actor == "octocat"
        assert config.environment.workspace == "/workspace/demo"

    def test_server_url_fallbacks(self):
        assert ConfigManager(env={"GITHUB_URL": "https://ghe.example.com"}).config.environment.server_url == (
            "https://ghe.example.com"
        )

        env = {"GITHUB_SERVER_URL": "https://primary.example.com", "GITHUB_URL": "https://other.example.com"}
        environment = ConfigManager(env=env).config.environment
        assert environment.server_url == "https://primary.example.com"
        assert environment.server_host == "primary.example.com"

    def test_github_token_fallback(self):
        env = dict(RUNNER_ENV, GITHUB_TOKEN="ghs_fallback")
        del env["INPUT_GITHUBTOKEN"]

        assert ConfigManager(env=env).config.inputs.github_token == "ghs_fallback"

    def test_input_token_beats_fallback(self):
        env = dict(RUNNER_ENV, GITHUB_TOKEN="ghs_fallback")

        assert ConfigManager(env=env).config.inputs.github_token == "ghs_secret"

    @pytest.mark.parametrize(
        "env, expected",
        [
            ({"ACTIONS_STEP_DEBUG": "true"}, True),
            ({"RUNNER_DEBUG": "1"}, True),
            ({"RUNNER_DEBUG": "0"}, False),
            ({}, False),
        ],
    )
    def test_debug_flag(self, env, expected):
        assert ConfigManager(env=env).config.environment.debug is expected

    def test_settings_variables(self):
        env = dict(
            RUNNER_ENV,
            PUSH_BACK_REMOTE_NAME="ci-push",
            PUSH_BACK_NETWORK_TIMEOUT="45",
            PUSH_BACK_LOG_LEVEL="debug",
        )

        settings = ConfigManager(env=env).validate().settings

        assert settings.remote_name == "ci-push"
        assert settings.network_timeout == 45.0
        assert settings.log_level == "DEBUG"

    def test_bad_timeout_variable(self):
        with pytest.raises(ConfigValidationError):
            ConfigManager(env={"PUSH_BACK_NETWORK_TIMEOUT": "soon"})


class TestValidation:
    """Test ConfigManager.validate."""

    def test_missing_repository(self):
        env = dict(RUNNER_ENV)
        del env["GITHUB_REPOSITORY"]

        with pytest.raises(ConfigMissingError) as excinfo:
            ConfigManager(env=env).validate()

        assert excinfo.value.missing_keys == ["GITHUB_REPOSITORY"]

    def test_missing_required_inputs(self):
        with pytest.raises(ConfigMissingError) as excinfo:
            ConfigManager(env={"GITHUB_REPOSITORY": "octo/demo"}).validate()

        assert excinfo.value.missing_keys == ["githubToken", "message"]
        assert isinstance(excinfo.value, ConfigurationError)

    def test_blank_message_is_missing(self):
        env = dict(RUNNER_ENV, INPUT_MESSAGE="   ")

        with pytest.raises(ConfigMissingError):
            ConfigManager(env=env).validate()

    @pytest.mark.parametrize("repository", ["demo", "/demo", "octo/"])
    def test_malformed_repository(self, repository):
        env = dict(RUNNER_ENV, GITHUB_REPOSITORY=repository)

        with pytest.raises(ConfigValidationError):
            ConfigManager(env=env).validate()

    def test_relative_server_url(self):
        env = dict(RUNNER_ENV, GITHUB_SERVER_URL="github.com")

        with pytest.raises(ConfigValidationError):
            ConfigManager(env=env).validate()

    @pytest.mark.parametrize("name", ["", "has space", "a/b"])
    def test_bad_remote_name(self, name):
        env = dict(RUNNER_ENV, PUSH_BACK_REMOTE_NAME=name)

        with pytest.raises(ConfigValidationError):
            ConfigManager(env=env).validate()

    def test_bad_log_level(self):
        env = dict(RUNNER_ENV, PUSH_BACK_LOG_LEVEL="chatty")

        with pytest.raises(ConfigValidationError):
            ConfigManager(env=env).validate()


class TestSettingsFile:
    """Test loading settings from YAML and JSON files."""

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "push-back.yaml"
        path.write_text(yaml.safe_dump({"settings": {"network_timeout": 30, "remote_name": "ci"}}))

        manager = ConfigManager(config_path=str(path), env=RUNNER_ENV)
        config = manager.validate()

        assert config.settings.network_timeout == 30
        assert config.settings.remote_name == "ci"
        assert config.settings.log_level == "INFO"
        assert config.config_file == str(path)

    def test_json_file(self, tmp_path):
        path = tmp_path / "push-back.json"
        path.write_text(json.dumps({"inputs": {"message": "From file"}}))

        config = ConfigManager(config_path=str(path), env={}).config

        assert config.inputs.message == "From file"

    def test_environment_beats_file(self, tmp_path):
        path = tmp_path / "push-back.yml"
        path.write_text("settings:\n  remote_name: from-file\n")

        config = ConfigManager(
            config_path=str(path), env={"PUSH_BACK_REMOTE_NAME": "from-env"}
        ).config

        assert config.settings.remote_name == "from-env"

    def test_config_path_from_environment(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("settings:\n  log_level: WARNING\n")

        config = ConfigManager(env={"PUSH_BACK_CONFIG": str(path)}).config

        assert config.settings.log_level == "WARNING"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigFileError):
            ConfigManager(config_path=str(tmp_path / "absent.yaml"), env={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("settings: [unclosed\n")

        with pytest.raises(ConfigFileError):
            ConfigManager(config_path=str(path), env={})

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text("")

        with pytest.raises(ConfigFileError):
            ConfigManager(config_path=str(path), env={})

    def test_unknown_section(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("retry:\n  attempts: 3\n")

        with pytest.raises(ConfigValidationError):
            ConfigManager(config_path=str(path), env={})

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("settings:\n  attempts: 3\n")

        with pytest.raises(ConfigValidationError):
            ConfigManager(config_path=str(path), env={})


class TestOverrides:
    """Test explicit overrides and the summary."""

    def test_none_values_are_skipped(self):
        manager = ConfigManager(env=RUNNER_ENV)

        manager.apply_overrides({"inputs": {"message": None, "target_branch": "release"}})

        assert manager.config.inputs.message == "Update docs"
        assert manager.config.inputs.target_branch == "release"

    def test_unknown_override_key(self):
        with pytest.raises(ConfigValidationError):
            ConfigManager(env={}).apply_overrides({"inputs": {"retries": 3}})

    def test_summary_hides_token(self):
        summary = ConfigManager(env=RUNNER_ENV).get_config_summary()

        assert summary["inputs"]["github_token_set"] is True
        assert "ghs_secret" not in str(summary)
