"""Configuration management for agent-bridge.

Configuration is loaded from ~/.agent-bridge/config.toml (or the file named by
``BRIDGE_CONFIG``) and merged over built-in defaults. Per-provider base
directories can additionally be overridden through environment variables,
which always win over the file.

Example config file:
    [sources.codex]
    path = "~/.codex/sessions"

    [sources.gemini]
    path = "~/work/gemini-tmp"

    [limits]
    max_scan_files = 500
    max_file_size = 10485760
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from agent_bridge.paths import expand_home

# Use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_ENV_VAR = "BRIDGE_CONFIG"

# Environment variables overriding each provider's base directory.
SOURCE_ENV_VARS: dict[str, str] = {
    "codex": "BRIDGE_CODEX_SESSIONS_DIR",
    "claude": "BRIDGE_CLAUDE_PROJECTS_DIR",
    "gemini": "BRIDGE_GEMINI_TMP_DIR",
    "cursor": "BRIDGE_CURSOR_DATA_DIR",
}


class SourceConfig(BaseModel):
    """Configuration for a session source adapter."""

    enabled: bool = True
    path: str = ""


class LimitsConfig(BaseModel):
    """Hard resource ceilings applied while scanning and reading."""

    max_scan_files: int = Field(default=1000, ge=1)
    max_file_size: int = Field(default=50 * 1024 * 1024, ge=1)
    max_handoff_size: int = Field(default=1024 * 1024, ge=1)


class Config(BaseModel):
    """Main configuration model for agent-bridge."""

    sources: dict[str, SourceConfig] = Field(default_factory=dict)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)

    def get_source_path(self, source_name: str) -> Path | None:
        """Get the expanded base directory for a source.

        The provider's environment variable takes precedence over the
        configured path.

        Args:
            source_name: The name of the source (e.g., 'codex', 'claude').

        Returns:
            Expanded Path object, or None if the source has no path.
        """
        env_var = SOURCE_ENV_VARS.get(source_name)
        if env_var:
            override = os.environ.get(env_var)
            if override:
                return Path(expand_home(override))

        if source_name not in self.sources:
            return None

        path_str = self.sources[source_name].path
        if not path_str:
            return None

        return Path(expand_home(path_str))

    def is_source_enabled(self, source_name: str) -> bool:
        """Check if a source is enabled."""
        if source_name not in self.sources:
            return False
        return self.sources[source_name].enabled


def _default_cursor_path() -> str:
    if sys.platform == "darwin":
        return "~/Library/Application Support/Cursor"
    return "~/.cursor"


def get_default_config() -> Config:
    """Get the default configuration with all sources configured.

    Returns:
        Config object with default values for all sources.
    """
    default_sources = {
        "codex": SourceConfig(enabled=True, path="~/.codex/sessions"),
        "claude": SourceConfig(enabled=True, path="~/.claude/projects"),
        "gemini": SourceConfig(enabled=True, path="~/.gemini/tmp"),
        "cursor": SourceConfig(enabled=True, path=_default_cursor_path()),
    }

    return Config(sources=default_sources, limits=LimitsConfig())


def default_config_path() -> Path:
    """Return the config file location, honoring ``BRIDGE_CONFIG``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(expand_home(override))
    return Path.home() / ".agent-bridge" / "config.toml"


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from a TOML file.

    If the file doesn't exist, returns the default configuration.
    Partial configurations are merged with defaults.

    Args:
        config_path: Path to the config file. Defaults to ~/.agent-bridge/config.toml.

    Returns:
        Config object with loaded or default values.
    """
    if config_path is None:
        config_path = default_config_path()

    default_config = get_default_config()

    if not config_path.exists():
        return default_config

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        # Return defaults if file can't be read or parsed
        return default_config

    try:
        return _merge_config(default_config, data)
    except ValidationError:
        return default_config


def _merge_config(default: Config, data: dict[str, Any]) -> Config:
    """Merge loaded config data with defaults."""
    sources = dict(default.sources)

    if "sources" in data:
        for source_name, source_data in data["sources"].items():
            if not isinstance(source_data, dict):
                continue
            if source_name in sources:
                existing = sources[source_name]
                sources[source_name] = SourceConfig(
                    enabled=source_data.get("enabled", existing.enabled),
                    path=source_data.get("path", existing.path),
                )
            else:
                sources[source_name] = SourceConfig(**source_data)

    limits_data = data.get("limits", {})
    limits = LimitsConfig(
        max_scan_files=limits_data.get("max_scan_files", default.limits.max_scan_files),
        max_file_size=limits_data.get("max_file_size", default.limits.max_file_size),
        max_handoff_size=limits_data.get("max_handoff_size", default.limits.max_handoff_size),
    )

    return Config(sources=sources, limits=limits)


# Global config cache
_config_cache: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Loads from the config file on first call, then returns the cached instance.
    """
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache


def _clear_config_cache() -> None:
    """Clear the config cache. Used for testing."""
    global _config_cache
    _config_cache = None
