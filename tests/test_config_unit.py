"""Unit tests for user configuration."""

import pytest

import config
from config import DEFAULT_LIMITS, is_debug_enabled, load_limits


@pytest.fixture
def config_file(monkeypatch, tmp_path):
    path = tmp_path / ".things_bridge_config.yaml"
    monkeypatch.setattr(config, "USER_CONFIG_PATH", path)
    monkeypatch.delenv("THINGS_BRIDGE_DEBUG", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    return path


class TestLoadLimits:
    """Tests for load_limits."""

    def test_defaults_without_file(self, config_file):
        assert load_limits() == DEFAULT_LIMITS

    def test_default_values(self):
        assert DEFAULT_LIMITS.max_string_length == 2000
        assert DEFAULT_LIMITS.max_array_length == 100
        assert DEFAULT_LIMITS.max_notes_length == 10000
        assert DEFAULT_LIMITS.max_request_size == 32 * 1024
        assert DEFAULT_LIMITS.max_script_size == 100 * 1024
        assert DEFAULT_LIMITS.jxa_timeout == 30.0
        assert DEFAULT_LIMITS.jxa_max_buffer == 256 * 1024

    def test_overrides(self, config_file):
        config_file.write_text("limits:\n  jxa_timeout: 10\n  max_string_length: 500\n  colour: blue\n", encoding="utf-8")
        limits = load_limits()
        assert limits.jxa_timeout == 10.0
        assert isinstance(limits.jxa_timeout, float)
        assert limits.max_string_length == 500
        assert limits.max_notes_length == DEFAULT_LIMITS.max_notes_length

    @pytest.mark.parametrize("value", ["0", "-3", "fast", "true"])
    def test_rejects_bad_values(self, config_file, value):
        config_file.write_text(f"limits:\n  max_script_size: {value}\n", encoding="utf-8")
        with pytest.raises(ValueError, match="max_script_size"):
            load_limits()

    def test_rejects_non_mapping_section(self, config_file):
        config_file.write_text("limits: [1, 2]\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_limits()

    def test_broken_yaml_falls_back_to_defaults(self, config_file):
        config_file.write_text("limits: {unclosed\n", encoding="utf-8")
        assert load_limits() == DEFAULT_LIMITS


class TestDebug:
    """Tests for is_debug_enabled."""

    def test_off_by_default(self, config_file):
        assert is_debug_enabled() is False

    @pytest.mark.parametrize("name", ["THINGS_BRIDGE_DEBUG", "DEBUG"])
    def test_environment(self, config_file, monkeypatch, name):
        monkeypatch.setenv(name, "TRUE")
        assert is_debug_enabled() is True

    def test_config_flag(self, config_file):
        config_file.write_text("debug: true\n", encoding="utf-8")
        assert is_debug_enabled() is True
