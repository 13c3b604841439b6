"""Tests for configuration system."""
import os
import tempfile

import pytest

from liveserve.config import (
    Config, load_config, set_config, get_config,
    generate_env_var_name, get_all_env_mappings, load_all_env_overrides,
    _convert_env_value, dump_config_toml, dump_config_env
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep stray LIVESERVE_* variables out of these tests."""
    for env_var in list(os.environ):
        if env_var.startswith("LIVESERVE_"):
            monkeypatch.delenv(env_var)


def test_default_config():
    """Test default configuration values."""
    config = Config()

    assert config.server.host == "0.0.0.0"
    assert config.server.port == 1024
    assert config.server.fallback_ports == []
    assert config.watch.debounce_ms == 100
    assert config.watch.ignore_dotfiles is True
    assert config.overlays.assets_dir == ""


def test_config_from_dict():
    """Test creating config from dictionary."""
    config = Config(server={"port": 8080, "fallback_ports": [8081, 8082]},
                    watch={"debounce_ms": 20})

    assert config.server.port == 8080
    assert config.server.fallback_ports == [8081, 8082]
    assert config.watch.debounce_ms == 20
    # Defaults should still apply
    assert config.server.host == "0.0.0.0"
    assert config.watch.ignore_dotfiles is True


def test_load_config_no_file():
    """Test loading config when no file exists."""
    config = load_config("/nonexistent/path")

    assert config.server.port == 1024


def test_load_config_from_file(tmp_path):
    """Test loading config from TOML file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text("""
[server]
host = "127.0.0.1"
port = 8888
fallback_ports = [8889]

[watch]
ignore_dotfiles = false
""")

    config = load_config(str(config_path))

    assert config.server.host == "127.0.0.1"
    assert config.server.port == 8888
    assert config.server.fallback_ports == [8889]
    assert config.watch.ignore_dotfiles is False
    # Unspecified values keep defaults
    assert config.watch.debounce_ms == 100


def test_environment_variable_overrides(tmp_path, monkeypatch):
    """Environment variables win over file values."""
    config_path = tmp_path / "config.toml"
    config_path.write_text("""
[server]
port = 7777

[watch]
debounce_ms = 500
""")
    monkeypatch.setenv("LIVESERVE_SERVER_PORT", "9999")
    monkeypatch.setenv("LIVESERVE_WATCH_IGNORE_DOTFILES", "false")

    config = load_config(str(config_path))

    assert config.server.port == 9999
    assert config.watch.ignore_dotfiles is False
    assert config.watch.debounce_ms == 500


def test_environment_config_file(monkeypatch):
    """Test LIVESERVE_CONFIG_FILE environment variable."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.toml', delete=False) as f:
        f.write("[server]\nport = 5555\n")
        config_path = f.name

    monkeypatch.setenv("LIVESERVE_CONFIG_FILE", config_path)
    try:
        config = load_config()  # No explicit path
        assert config.server.port == 5555
    finally:
        os.unlink(config_path)


def test_list_env_override(monkeypatch):
    """Comma-separated values fill list fields."""
    monkeypatch.setenv("LIVESERVE_SERVER_FALLBACK_PORTS", "8081, 8082")

    config = load_config("/nonexistent/path")

    assert config.server.fallback_ports == [8081, 8082]


def test_global_config_management(reset_global_config):
    """Test global config get/set functions."""
    set_config(None)

    config1 = get_config()
    assert config1.server.port == 1024

    # Second call should return same instance
    assert get_config() is config1

    custom_config = Config(server={"port": 8888})
    set_config(custom_config)
    assert get_config() is custom_config


@pytest.mark.parametrize("env_value,expected", [
    ("true", True), ("True", True), ("1", True), ("yes", True), ("on", True),
    ("false", False), ("False", False), ("0", False), ("no", False), ("off", False),
])
def test_boolean_env_vars(monkeypatch, env_value, expected):
    """Test boolean environment variable parsing."""
    monkeypatch.setenv("LIVESERVE_WATCH_IGNORE_DOTFILES", env_value)

    config = load_config("/nonexistent/path")

    assert config.watch.ignore_dotfiles is expected


def test_generate_env_var_name():
    """Test environment variable name generation."""
    assert generate_env_var_name("server", "port") == "LIVESERVE_SERVER_PORT"
    assert generate_env_var_name("watch", "debounce_ms") == "LIVESERVE_WATCH_DEBOUNCE_MS"
    assert generate_env_var_name("overlays", "assets_dir") == "LIVESERVE_OVERLAYS_ASSETS_DIR"


def test_get_all_env_mappings():
    """Every field is reachable through a LIVESERVE_* variable."""
    mappings = get_all_env_mappings()

    assert mappings
    for env_var, (section, field) in mappings.items():
        assert env_var.startswith("LIVESERVE_")
        assert env_var == generate_env_var_name(section, field)

    assert mappings["LIVESERVE_SERVER_PORT"] == ("server", "port")
    assert mappings["LIVESERVE_SERVER_FALLBACK_PORTS"] == ("server", "fallback_ports")


def test_convert_env_value():
    """Test environment variable value conversion."""
    assert _convert_env_value("true") is True
    assert _convert_env_value("off") is False
    assert _convert_env_value("123") == 123
    assert _convert_env_value("-456") == -456
    assert _convert_env_value("0.0.0.0") == "0.0.0.0"
    assert _convert_env_value("/some/path") == "/some/path"


def test_load_all_env_overrides(monkeypatch):
    """Test programmatic environment variable loading."""
    monkeypatch.setenv("LIVESERVE_SERVER_HOST", "127.0.0.1")
    monkeypatch.setenv("LIVESERVE_SERVER_PORT", "8888")
    monkeypatch.setenv("LIVESERVE_WATCH_DEBOUNCE_MS", "50")

    overrides = load_all_env_overrides()

    assert overrides == {
        "server": {"host": "127.0.0.1", "port": 8888},
        "watch": {"debounce_ms": 50},
    }


def test_dump_config_toml():
    """Test TOML configuration output."""
    config = Config(server={"port": 9999, "fallback_ports": [1025]},
                    watch={"ignore_dotfiles": False})

    toml_output = dump_config_toml(config)

    assert "[server]" in toml_output
    assert "[watch]" in toml_output
    assert "port = 9999" in toml_output
    assert "fallback_ports = [" in toml_output
    assert "ignore_dotfiles = false" in toml_output


def test_dump_config_env():
    """Test environment variable configuration output."""
    config = Config(server={"port": 9999, "fallback_ports": [1025, 1026]})

    lines = dump_config_env(config).split("\n")

    assert "LIVESERVE_SERVER_HOST=0.0.0.0" in lines
    assert "LIVESERVE_SERVER_PORT=9999" in lines
    assert "LIVESERVE_SERVER_FALLBACK_PORTS=1025,1026" in lines
    assert "LIVESERVE_WATCH_DEBOUNCE_MS=100" in lines
    assert "LIVESERVE_WATCH_IGNORE_DOTFILES=true" in lines
    assert "LIVESERVE_OVERLAYS_ASSETS_DIR=" in lines


def test_env_dump_loads_back(monkeypatch):
    """Variables printed by dump_config_env reproduce the config."""
    config = Config(server={"host": "127.0.0.1", "port": 8888, "fallback_ports": [8889]},
                    watch={"debounce_ms": 5, "ignore_dotfiles": False})

    for line in dump_config_env(config).split("\n"):
        env_var, value = line.split("=", 1)
        monkeypatch.setenv(env_var, value)

    assert load_config("/nonexistent/path") == config
