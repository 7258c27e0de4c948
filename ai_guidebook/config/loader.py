"""
Configuration management and loading.

Handles application settings and environment variables.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ai_guidebook.core.aggregator import DEFAULT_TOP_TOOLS, TimeRange
from ai_guidebook.storage.db import DEFAULT_DB_PATH

CONFIG_PATH_ENV = "AI_GUIDEBOOK_CONFIG"
DB_PATH_ENV = "AI_GUIDEBOOK_DB_PATH"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class StorageConfig:
    """Where usage records are persisted."""
    db_path: str = DEFAULT_DB_PATH

    def __post_init__(self):
        """Validate the database path is usable."""
        if not self.db_path or not self.db_path.strip():
            raise ValueError("db_path cannot be empty")


@dataclass(frozen=True)
class DashboardConfig:
    """Defaults for the usage dashboard."""
    default_time_range: TimeRange = TimeRange.LAST_30_DAYS
    top_tools_limit: int = DEFAULT_TOP_TOOLS

    def __post_init__(self):
        """Validate the ranking size is positive."""
        if self.top_tools_limit <= 0:
            raise ValueError("top_tools_limit must be > 0")


@dataclass(frozen=True)
class DeclarationConfig:
    """Settings for the generated declaration."""
    student_name: Optional[str] = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "WARNING"

    def __post_init__(self):
        """Validate the level is one the logging module knows."""
        if self.level not in LOG_LEVELS:
            raise ValueError(f"logging level must be one of: {list(LOG_LEVELS)}")


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    declaration: DeclarationConfig = field(default_factory=DeclarationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_app_config(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> AppConfig:
    """Load configuration from a YAML file and the environment.

    The file path comes from ``path`` or, failing that, the
    ``AI_GUIDEBOOK_CONFIG`` environment variable. Without either, defaults
    are used. ``AI_GUIDEBOOK_DB_PATH`` overrides ``storage.db_path``.

    Args:
        path: Optional path to a YAML configuration file
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    environ = os.environ if environ is None else environ
    path = path or environ.get(CONFIG_PATH_ENV)

    config = _load_config_file(path) if path else AppConfig()

    db_path = environ.get(DB_PATH_ENV)
    if db_path:
        config = replace(config, storage=StorageConfig(db_path=db_path))

    return config


def _load_config_file(path: str) -> AppConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    # An empty file means "all defaults"
    if raw_config is None:
        return AppConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'storage', 'dashboard', 'declaration', 'logging'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    return AppConfig(
        storage=_parse_storage(_section(raw_config, 'storage', {'db_path'})),
        dashboard=_parse_dashboard(
            _section(raw_config, 'dashboard', {'default_time_range', 'top_tools_limit'})
        ),
        declaration=_parse_declaration(_section(raw_config, 'declaration', {'student_name'})),
        logging=_parse_logging(_section(raw_config, 'logging', {'level'})),
    )


def _section(raw_config: Dict, name: str, allowed_keys: set) -> Dict[str, Any]:
    """Fetch an optional section and reject keys it does not define."""
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {name}: {unknown_keys}")
    return data


def _parse_storage(data: Dict[str, Any]) -> StorageConfig:
    if 'db_path' not in data:
        return StorageConfig()

    db_path = data['db_path']
    if not isinstance(db_path, str):
        raise ValueError("'db_path' in storage must be a string")
    return StorageConfig(db_path=db_path)


def _parse_dashboard(data: Dict[str, Any]) -> DashboardConfig:
    defaults = DashboardConfig()

    time_range = defaults.default_time_range
    if 'default_time_range' in data:
        range_str = data['default_time_range']
        if not isinstance(range_str, str):
            raise ValueError("'default_time_range' in dashboard must be a string")
        try:
            time_range = TimeRange(range_str.lower())
        except ValueError:
            valid_ranges = [r.value for r in TimeRange]
            raise ValueError(f"'default_time_range' in dashboard must be one of: {valid_ranges}")

    limit = data.get('top_tools_limit', defaults.top_tools_limit)
    # bool is an int subclass
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValueError("'top_tools_limit' in dashboard must be an integer > 0")

    return DashboardConfig(default_time_range=time_range, top_tools_limit=limit)


def _parse_declaration(data: Dict[str, Any]) -> DeclarationConfig:
    name = data.get('student_name')
    if name is None:
        return DeclarationConfig()
    if not isinstance(name, str):
        raise ValueError("'student_name' in declaration must be a string")
    return DeclarationConfig(student_name=name.strip() or None)


def _parse_logging(data: Dict[str, Any]) -> LoggingConfig:
    level = data.get('level', LoggingConfig().level)
    if not isinstance(level, str):
        raise ValueError("'level' in logging must be a string")
    try:
        return LoggingConfig(level=level.upper())
    except ValueError:
        raise ValueError(f"'level' in logging must be one of: {list(LOG_LEVELS)}")
