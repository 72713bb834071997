"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reset support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from toolbridge.config.merge import merge_configs
from toolbridge.config.paths import get_config_paths
from toolbridge.config.schema import (
    DEFAULT_ARTIFACT_NAME,
    DEFAULT_RUNTIME,
    Config,
    LoggingConfig,
    SessionConfig,
    ToolConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("toolbridge.config")

_cached_config: Config | None = None

# Environment variable -> (section, key)
_ENV_OVERRIDES = {
    "TOOLBRIDGE_LOG": ("logging", "file"),
    "TOOLBRIDGE_HOME": ("tool", "directory"),
    "TOOLBRIDGE_SOURCE_URL": ("tool", "source_url"),
    "TOOLBRIDGE_RUNTIME": ("tool", "runtime"),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables."""
    overrides: dict[str, Any] = {}
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            overrides.setdefault(section, {})[key] = value
    return overrides


def _str_list(value: Any, default: list[str]) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    if isinstance(value, str):
        return value.split()
    return list(default)


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    tool_data = data.get("tool") or {}
    defaults = ToolConfig()
    tool = ToolConfig(
        directory=tool_data.get("directory"),
        artifact_name=tool_data.get("artifact_name") or DEFAULT_ARTIFACT_NAME,
        source_url=tool_data.get("source_url"),
        runtime=tool_data.get("runtime") or DEFAULT_RUNTIME,
        runtime_args=_str_list(tool_data.get("runtime_args"), defaults.runtime_args),
        repl_args=_str_list(tool_data.get("repl_args"), defaults.repl_args),
        fetch_timeout=float(tool_data.get("fetch_timeout", defaults.fetch_timeout)),
    )

    session_data = data.get("session") or {}
    session = SessionConfig(
        default_name=session_data.get("default_name") or "repl",
        history_file=session_data.get("history_file"),
        restart_grace=float(session_data.get("restart_grace", SessionConfig.restart_grace)),
    )

    log_data = data.get("logging") or {}
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    known_keys = {"tool", "session", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(tool=tool, session=session, logging=logging_config, extra=extra)


def load_config(project_root: str | Path | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($project_root/.toolbridge/config.yaml)
    3. User config (~/.config/toolbridge/config.yaml or %APPDATA%)
    4. System config (/etc/toolbridge/ or %PROGRAMDATA%)

    Args:
        project_root: Project directory for project-level config.
        reload: Force reload even if cached.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []

    for path in get_config_paths(project_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    # Cache only global config (no project_root)
    if project_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config. Useful for testing or forcing a reload."""
    global _cached_config
    _cached_config = None
