"""Tests for config module."""

import os
import pytest

from productive_sync.config import (
    DEFAULT_API_URL,
    DEFAULT_CHATGPT_MODEL,
    ApiCredentials,
    Config,
    ConfigError,
    parse_scan_dirs,
    require_env,
    today_iso,
    validate_date,
)


class TestConfigFromEnv:
    """Tests for Config.from_env."""

    def test_complete_env(self, sample_env, tmp_path):
        """Test all values are read with defaults applied."""
        config = Config.from_env(sample_env, date="2026-02-12", confirm=True)

        assert config.productive_api_token == "test-token-12345"
        assert config.productive_org_id == "org-1"
        assert config.productive_person_id == "person-1"
        assert config.chatgpt_api_key == "sk-test"
        assert config.scan_dirs == (str(tmp_path / "work"),)
        assert config.git_author_name == "Jane Doe"
        assert config.codex_sessions_dir == str(tmp_path / "sessions")
        assert config.date == "2026-02-12"
        assert config.confirm is True
        assert config.chatgpt_model == DEFAULT_CHATGPT_MODEL
        assert config.productive_api_url == DEFAULT_API_URL
        assert config.openai_base_url == ""

    def test_defaults_to_today(self, sample_env):
        """Test run date defaults to the local date."""
        config = Config.from_env(sample_env)

        assert config.date == today_iso()
        assert config.confirm is False

    def test_missing_variables_listed_together(self, sample_env):
        """Test one error names every missing variable."""
        del sample_env["PRODUCTIVE_ORG_ID"]
        del sample_env["GIT_AUTHOR_NAME"]
        sample_env["SCAN_DIRS"] = ""

        with pytest.raises(ConfigError) as exc_info:
            Config.from_env(sample_env)

        message = str(exc_info.value)
        assert "PRODUCTIVE_ORG_ID" in message
        assert "GIT_AUTHOR_NAME" in message
        assert "SCAN_DIRS" in message
        assert "PRODUCTIVE_API_TOKEN" not in message

    def test_openai_key_alias(self, sample_env):
        """Test OPENAI_API_KEY is accepted in place of CHATGPT_API_KEY."""
        del sample_env["CHATGPT_API_KEY"]
        sample_env["OPENAI_API_KEY"] = "sk-openai"

        assert Config.from_env(sample_env).chatgpt_api_key == "sk-openai"

    def test_missing_llm_key(self, sample_env):
        """Test one of the key variables is required."""
        del sample_env["CHATGPT_API_KEY"]

        with pytest.raises(ConfigError, match="CHATGPT_API_KEY, OPENAI_API_KEY"):
            Config.from_env(sample_env)

    def test_scan_dirs_without_folders(self, sample_env):
        """Test SCAN_DIRS made of separators only."""
        sample_env["SCAN_DIRS"] = " , ,"

        with pytest.raises(ConfigError, match="SCAN_DIRS"):
            Config.from_env(sample_env)

    def test_invalid_date(self, sample_env):
        """Test bad --date values."""
        with pytest.raises(ConfigError, match="Invalid date format"):
            Config.from_env(sample_env, date="12-02-2026")

    def test_optional_overrides(self, sample_env):
        """Test model, endpoint and API URL overrides."""
        sample_env.update({
            "CHATGPT_MODEL": "gpt-4.1",
            "OPENAI_BASE_URL": "http://localhost:11434/v1",
            "PRODUCTIVE_API_URL": "https://staging.example.com/api/v2",
        })

        config = Config.from_env(sample_env)

        assert config.llm.model == "gpt-4.1"
        assert config.llm.base_url == "http://localhost:11434/v1"
        assert config.credentials.base_url == "https://staging.example.com/api/v2"
        assert config.credentials.api_token == "test-token-12345"

    def test_sessions_dir_expands_home(self, sample_env):
        """Test ~ in CODEX_SESSIONS_DIR."""
        sample_env["CODEX_SESSIONS_DIR"] = "~/.codex/sessions"

        config = Config.from_env(sample_env)

        assert config.codex_sessions_dir == os.path.expanduser("~/.codex/sessions")

    def test_config_is_immutable(self, sample_config):
        """Test frozen dataclass."""
        with pytest.raises(AttributeError):
            sample_config.date = "2026-01-01"


class TestHelpers:
    """Tests for config helpers."""

    @pytest.mark.parametrize("value", ["2026-02-12", "2024-02-29"])
    def test_validate_date_ok(self, value):
        """Test valid dates pass through."""
        assert validate_date(value) == value

    @pytest.mark.parametrize("value", ["2026-2-12", "2026/02/12", "yesterday", "2026-02-30", "2026-13-01"])
    def test_validate_date_rejects(self, value):
        """Test malformed and impossible dates."""
        with pytest.raises(ConfigError):
            validate_date(value)

    def test_parse_scan_dirs(self):
        """Test trimming, blanks and home expansion."""
        assert parse_scan_dirs(" /a , ,/b/c,~/x ") == ("/a", "/b/c", os.path.expanduser("~/x"))

    def test_require_env(self):
        """Test present and missing variables."""
        assert require_env("A", {"A": "1"}) == "1"
        with pytest.raises(ConfigError, match="Missing required environment variable: B"):
            require_env("B", {"B": ""})

    def test_api_credentials_from_env(self):
        """Test credentials with default URL."""
        credentials = ApiCredentials.from_env({"PRODUCTIVE_API_TOKEN": "t", "PRODUCTIVE_ORG_ID": "o"})

        assert credentials == ApiCredentials(api_token="t", org_id="o", base_url=DEFAULT_API_URL)
