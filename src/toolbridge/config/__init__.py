"""Configuration management for toolbridge.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/toolbridge/ or %PROGRAMDATA%)
- User-level config (~/.config/toolbridge/ or %APPDATA%)
- Project-level config ($project_root/.toolbridge/)
- Environment variable overrides (highest priority)

Example usage:
    from toolbridge.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.tool.runtime)
"""

from toolbridge.config.loader import (
    get_config,
    load_config,
    reset_config,
)
from toolbridge.config.paths import (
    get_config_paths,
    get_default_tool_dir,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from toolbridge.config.schema import (
    Config,
    LoggingConfig,
    SessionConfig,
    ToolConfig,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    # Schema types
    "ToolConfig",
    "SessionConfig",
    "LoggingConfig",
    # Path utilities
    "get_config_paths",
    "get_default_tool_dir",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
