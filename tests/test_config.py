"""
Unit tests for configuration loading and validation.

Tests strict validation, defaults and environment overrides.
"""

import os
import tempfile

import pytest
import yaml

from ai_guidebook.config.loader import (
    CONFIG_PATH_ENV,
    DB_PATH_ENV,
    AppConfig,
    DashboardConfig,
    LoggingConfig,
    StorageConfig,
    load_app_config,
)
from ai_guidebook.core.aggregator import TimeRange


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a complete configuration loads correctly."""
        config_path = self._write_config({
            "storage": {"db_path": "/tmp/usage.db"},
            "dashboard": {"default_time_range": "90d", "top_tools_limit": 3},
            "declaration": {"student_name": "Ada Lovelace"},
            "logging": {"level": "info"},
        })
        config = load_app_config(config_path, environ={})

        assert config.storage.db_path == "/tmp/usage.db"
        assert config.dashboard.default_time_range == TimeRange.LAST_90_DAYS
        assert config.dashboard.top_tools_limit == 3
        assert config.declaration.student_name == "Ada Lovelace"
        assert config.logging.level == "INFO"

    def test_defaults_without_file(self):
        """No path and no environment variable gives defaults."""
        config = load_app_config(environ={})

        assert config == AppConfig()
        assert config.storage.db_path == "ai_guidebook.db"
        assert config.dashboard.default_time_range == TimeRange.LAST_30_DAYS
        assert config.dashboard.top_tools_limit == 5
        assert config.declaration.student_name is None
        assert config.logging.level == "WARNING"

    def test_partial_config_keeps_other_defaults(self):
        """Sections and keys left out fall back to defaults."""
        config_path = self._write_config({"dashboard": {"top_tools_limit": 10}})
        config = load_app_config(config_path, environ={})

        assert config.dashboard.top_tools_limit == 10
        assert config.dashboard.default_time_range == TimeRange.LAST_30_DAYS
        assert config.storage == StorageConfig()

    def test_empty_file_gives_defaults(self):
        """An empty YAML file means all defaults."""
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        open(config_path, 'w').close()

        assert load_app_config(config_path, environ={}) == AppConfig()

    def test_missing_file_raises(self):
        """An explicit path that doesn't exist is an error."""
        with pytest.raises(FileNotFoundError):
            load_app_config(os.path.join(self.temp_dir, "missing.yaml"), environ={})

    def test_invalid_yaml_raises(self):
        """Malformed YAML is reported."""
        config_path = os.path.join(self.temp_dir, "bad.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("storage: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            load_app_config(config_path, environ={})

    def test_non_mapping_root_rejected(self):
        config_path = self._write_config(["storage"])
        with pytest.raises(ValueError, match="must be a dictionary"):
            load_app_config(config_path, environ={})

    def test_unknown_top_level_key_rejected(self):
        config_path = self._write_config({"storage": {}, "budget": {"daily": 1}})
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_app_config(config_path, environ={})

    def test_unknown_section_key_rejected(self):
        config_path = self._write_config({"dashboard": {"top_tools": 5}})
        with pytest.raises(ValueError, match="Unknown keys in dashboard"):
            load_app_config(config_path, environ={})

    def test_section_must_be_mapping(self):
        config_path = self._write_config({"storage": "usage.db"})
        with pytest.raises(ValueError, match="'storage' must be a dictionary"):
            load_app_config(config_path, environ={})

    @pytest.mark.parametrize("limit", [0, -1, "5", 2.5, True])
    def test_invalid_top_tools_limit(self, limit):
        config_path = self._write_config({"dashboard": {"top_tools_limit": limit}})
        with pytest.raises(ValueError, match="top_tools_limit"):
            load_app_config(config_path, environ={})

    def test_invalid_time_range(self):
        config_path = self._write_config({"dashboard": {"default_time_range": "14d"}})
        with pytest.raises(ValueError, match="must be one of"):
            load_app_config(config_path, environ={})

    def test_invalid_log_level(self):
        config_path = self._write_config({"logging": {"level": "LOUD"}})
        with pytest.raises(ValueError, match="level"):
            load_app_config(config_path, environ={})

    def test_db_path_must_be_string(self):
        config_path = self._write_config({"storage": {"db_path": 42}})
        with pytest.raises(ValueError, match="db_path"):
            load_app_config(config_path, environ={})

    def test_blank_student_name_is_none(self):
        config_path = self._write_config({"declaration": {"student_name": "  "}})
        assert load_app_config(config_path, environ={}).declaration.student_name is None


class TestEnvironmentOverrides:
    """Test configuration from environment variables."""

    def test_config_path_from_environment(self, tmp_path):
        config_path = tmp_path / "guidebook.yaml"
        config_path.write_text(yaml.dump({"dashboard": {"top_tools_limit": 2}}), encoding="utf-8")

        config = load_app_config(environ={CONFIG_PATH_ENV: str(config_path)})
        assert config.dashboard.top_tools_limit == 2

    def test_explicit_path_wins_over_environment(self, tmp_path):
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text(yaml.dump({"dashboard": {"top_tools_limit": 7}}), encoding="utf-8")

        config = load_app_config(
            str(explicit),
            environ={CONFIG_PATH_ENV: str(tmp_path / "missing.yaml")}
        )
        assert config.dashboard.top_tools_limit == 7

    def test_db_path_override(self, tmp_path):
        config_path = tmp_path / "guidebook.yaml"
        config_path.write_text(yaml.dump({"storage": {"db_path": "from-file.db"}}), encoding="utf-8")

        config = load_app_config(str(config_path), environ={DB_PATH_ENV: "from-env.db"})
        assert config.storage.db_path == "from-env.db"


class TestConfigDataclasses:
    """Test dataclass-level validation."""

    def test_empty_db_path_rejected(self):
        with pytest.raises(ValueError, match="db_path cannot be empty"):
            StorageConfig(db_path=" ")

    def test_non_positive_limit_rejected(self):
        with pytest.raises(ValueError, match="top_tools_limit must be > 0"):
            DashboardConfig(top_tools_limit=0)

    def test_unknown_level_rejected(self):
        with pytest.raises(ValueError):
            LoggingConfig(level="verbose")
