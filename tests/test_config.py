"""Tests for configuration module."""

from pathlib import Path

import pytest

from agent_bridge.config import (
    Config,
    LimitsConfig,
    SourceConfig,
    default_config_path,
    get_config,
    get_default_config,
    load_config,
    _clear_config_cache,
)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory."""
    path = tmp_path / "config-dir"
    path.mkdir()
    return path


class TestDefaultConfig:
    """Tests for default configuration when no file exists."""

    def test_default_config_returns_valid_config(self):
        """Default config should return a valid Config object."""
        config = get_default_config()
        assert isinstance(config, Config)

    def test_default_config_has_all_sources(self):
        """Default config should have entries for every supported agent."""
        config = get_default_config()
        for source in ["codex", "claude", "gemini", "cursor"]:
            assert source in config.sources
            assert isinstance(config.sources[source], SourceConfig)

    def test_default_sources_are_enabled(self):
        config = get_default_config()
        for source_name, source_config in config.sources.items():
            assert source_config.enabled is True, f"{source_name} should be enabled"

    def test_default_limits(self):
        """Default limits match the scanning and reading ceilings."""
        limits = get_default_config().limits
        assert limits.max_scan_files == 1000
        assert limits.max_file_size == 50 * 1024 * 1024
        assert limits.max_handoff_size == 1024 * 1024

    def test_default_paths_are_under_home(self):
        config = get_default_config()
        assert config.get_source_path("codex") == Path.home() / ".codex" / "sessions"
        assert config.get_source_path("claude") == Path.home() / ".claude" / "projects"
        assert config.get_source_path("gemini") == Path.home() / ".gemini" / "tmp"


class TestLoadConfigMissingFile:
    """Tests for loading config when file doesn't exist."""

    def test_load_config_missing_file_returns_defaults(self, temp_config_dir):
        config = load_config(temp_config_dir / "config.toml")

        default_config = get_default_config()
        assert len(config.sources) == len(default_config.sources)
        assert config.limits == default_config.limits

    def test_load_config_missing_directory_returns_defaults(self, temp_config_dir):
        config = load_config(temp_config_dir / "nonexistent" / "config.toml")

        assert isinstance(config, Config)
        assert len(config.sources) > 0


class TestLoadConfigFromFile:
    """Tests for loading config from a TOML file."""

    def test_load_config_parses_sources(self, temp_config_dir):
        config_content = """
[sources.codex]
enabled = true
path = "/custom/codex/path"

[sources.claude]
enabled = false
path = "/custom/claude/path"
"""
        config_path = temp_config_dir / "config.toml"
        config_path.write_text(config_content)

        config = load_config(config_path)

        assert config.sources["codex"].path == "/custom/codex/path"
        assert config.sources["claude"].enabled is False
        assert config.sources["claude"].path == "/custom/claude/path"

    def test_load_config_parses_limits(self, temp_config_dir):
        config_path = temp_config_dir / "config.toml"
        config_path.write_text("[limits]\nmax_scan_files = 25\n")

        config = load_config(config_path)

        assert config.limits.max_scan_files == 25
        # Unset limits keep their defaults
        assert config.limits.max_file_size == LimitsConfig().max_file_size

    def test_load_config_merges_with_defaults(self, temp_config_dir):
        config_path = temp_config_dir / "config.toml"
        config_path.write_text('[sources.gemini]\npath = "/custom/gemini"\n')

        config = load_config(config_path)

        assert config.sources["gemini"].path == "/custom/gemini"
        assert config.sources["gemini"].enabled is True
        assert config.sources["codex"].path == "~/.codex/sessions"

    def test_invalid_toml_returns_defaults(self, temp_config_dir):
        config_path = temp_config_dir / "config.toml"
        config_path.write_text("this is [not toml")

        config = load_config(config_path)

        assert config.limits == get_default_config().limits

    def test_invalid_limit_returns_defaults(self, temp_config_dir):
        config_path = temp_config_dir / "config.toml"
        config_path.write_text("[limits]\nmax_scan_files = 0\n")

        config = load_config(config_path)

        assert config.limits.max_scan_files == 1000


class TestGetSourcePath:
    """Tests for get_source_path method."""

    def test_expand_path_with_tilde(self, temp_config_dir):
        config_path = temp_config_dir / "config.toml"
        config_path.write_text('[sources.codex]\npath = "~/codex-logs"\n')

        expanded_path = load_config(config_path).get_source_path("codex")

        assert expanded_path is not None
        assert "~" not in str(expanded_path)
        assert expanded_path == Path.home() / "codex-logs"

    def test_environment_override_wins(self, temp_config_dir, monkeypatch):
        """The provider environment variable takes precedence over the file."""
        config_path = temp_config_dir / "config.toml"
        config_path.write_text('[sources.codex]\npath = "/from/file"\n')
        monkeypatch.setenv("BRIDGE_CODEX_SESSIONS_DIR", "/from/env")

        assert load_config(config_path).get_source_path("codex") == Path("/from/env")

    def test_get_source_path_unknown_source(self):
        assert get_default_config().get_source_path("nonexistent_source") is None

    def test_is_source_enabled_unknown_source(self):
        assert get_default_config().is_source_enabled("nonexistent_source") is False


class TestConfigSingleton:
    """Tests for global config access."""

    def test_get_config_is_cached(self):
        _clear_config_cache()

        config1 = get_config()
        config2 = get_config()

        assert config1 is config2

    def test_config_path_from_environment(self, temp_config_dir, monkeypatch):
        config_path = temp_config_dir / "custom.toml"
        config_path.write_text("[limits]\nmax_scan_files = 7\n")
        monkeypatch.setenv("BRIDGE_CONFIG", str(config_path))
        _clear_config_cache()

        assert default_config_path() == config_path
        assert get_config().limits.max_scan_files == 7
