"""Unit tests for fileops configuration schema and manager."""

import json

import pytest
from pydantic import ValidationError

from fileops.config import (
    ConfigurationError,
    FileOpsSettings,
    ParserConfig,
    get_config_path,
    load_config,
    merge_with_env,
    save_config,
)
from fileops.config.constants import DEFAULT_BLOCK_WINDOW, DEFAULT_SESSION_MAX_AGE_DAYS


@pytest.mark.unit
class TestSchema:
    """Tests for configuration models."""

    def test_defaults(self):
        """Test default settings."""
        settings = FileOpsSettings()
        assert settings.log_level == "info"
        assert settings.parser.loose_fallback is True
        assert settings.parser.block_window == DEFAULT_BLOCK_WINDOW
        assert "py" in settings.parser.extensions
        assert settings.session.max_age_days == DEFAULT_SESSION_MAX_AGE_DAYS

    def test_extensions_normalized(self):
        """Test extensions are lowercased and stripped of dots."""
        assert ParserConfig(extensions=[".PY", "Md"]).extensions == ("py", "md")
        assert ParserConfig(extensions=".txt").extensions == ("txt",)

    def test_empty_extension_rejected(self):
        """Test empty extensions are rejected."""
        with pytest.raises(ValidationError):
            ParserConfig(extensions=["py", "."])

    def test_parser_config_is_frozen(self):
        """Test parser configuration cannot be mutated."""
        config = ParserConfig()
        with pytest.raises(ValidationError):
            config.loose_fallback = False

    def test_log_level_validated(self):
        """Test log levels are normalized and validated."""
        assert FileOpsSettings(log_level="DEBUG").log_level == "debug"
        with pytest.raises(ValidationError, match="Invalid log level"):
            FileOpsSettings(log_level="loud")

    def test_data_dir_expanded(self):
        """Test a ~ in the data directory is expanded."""
        settings = FileOpsSettings(session={"data_dir": "~/fileops-test"})
        assert not settings.session.data_dir.startswith("~")


@pytest.mark.unit
class TestManager:
    """Tests for loading and saving configuration."""

    def test_config_path_from_env(self, tmp_path):
        """Test FILEOPS_CONFIG points at the configuration file."""
        assert get_config_path() == tmp_path / "settings.json"

    def test_missing_file_gives_defaults(self, isolated_env):
        """Test a missing file gives defaults plus env overrides."""
        settings = load_config()
        assert settings.parser == ParserConfig()
        assert settings.session.data_dir == str(isolated_env)

    def test_save_and_load(self, tmp_path):
        """Test saved settings load back."""
        path = tmp_path / "custom.json"
        save_config(FileOpsSettings(log_level="warning", parser={"block_window": 50}), path)
        loaded = load_config(path)
        assert loaded.log_level == "warning"
        assert loaded.parser.block_window == 50

    def test_invalid_json(self, tmp_path):
        """Test invalid JSON raises ConfigurationError."""
        path = tmp_path / "bad.json"
        path.write_text("{nope")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_config(path)

    def test_non_object(self, tmp_path):
        """Test a JSON document that is not an object is rejected."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError, match="must contain a JSON object"):
            load_config(path)

    def test_validation_error(self, tmp_path):
        """Test invalid values raise ConfigurationError."""
        path = tmp_path / "invalid.json"
        path.write_text(json.dumps({"execution": {"max_content_bytes": 0}}))
        with pytest.raises(ConfigurationError, match="validation failed"):
            load_config(path)

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """Test environment variables take precedence over the file."""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"log_level": "error", "parser": {"block_window": 10}}))
        monkeypatch.setenv("FILEOPS_LOG_LEVEL", "debug")
        monkeypatch.setenv("FILEOPS_LOOSE_FALLBACK", "false")

        settings = load_config(path)
        assert settings.log_level == "debug"
        assert settings.parser.loose_fallback is False
        assert settings.parser.block_window == 10

    def test_merge_with_env_empty(self, monkeypatch):
        """Test no overrides without environment variables."""
        monkeypatch.delenv("FILEOPS_DATA_DIR")
        assert merge_with_env() == {}
