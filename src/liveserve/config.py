"""Configuration loading for liveserve.

Values come from three layers, later ones winning:

1. Defaults defined on the models below
2. A TOML file (``$LIVESERVE_CONFIG_FILE`` or ``~/.config/liveserve/config.toml``)
3. Environment variables named ``LIVESERVE_<SECTION>_<FIELD>``
"""
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, get_origin

import tomli_w
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "LIVESERVE"
DEFAULT_CONFIG_PATH = Path("~/.config/liveserve/config.toml")


class ServerConfig(BaseModel):
    """Listening socket settings."""
    host: str = Field("0.0.0.0", description="Interface to bind")
    port: int = Field(1024, description="Preferred port")
    fallback_ports: List[int] = Field(default_factory=list,
                                      description="Ports probed after the preferred one")


class WatchConfig(BaseModel):
    """Filesystem watch settings."""
    debounce_ms: int = Field(100, description="Window in which change events coalesce into one reload")
    ignore_dotfiles: bool = Field(True, description="Ignore paths with a dot-prefixed component")


class OverlaysConfig(BaseModel):
    """Overlay script settings."""
    assets_dir: str = Field("", description="Directory holding overlay scripts; empty uses the packaged ones")


class Config(BaseModel):
    """Effective liveserve configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    overlays: OverlaysConfig = Field(default_factory=OverlaysConfig)


_config: Optional[Config] = None


def generate_env_var_name(section: str, field: str) -> str:
    """Build the environment variable name for a config field."""
    return f"{ENV_PREFIX}_{section.upper()}_{field.upper()}"


def get_all_env_mappings() -> Dict[str, Tuple[str, str]]:
    """Map every environment variable name to its (section, field)."""
    mappings = {}
    for section, section_info in Config.model_fields.items():
        section_model = section_info.annotation
        for field in section_model.model_fields:
            mappings[generate_env_var_name(section, field)] = (section, field)
    return mappings


def _convert_env_value(value: str) -> Any:
    """Convert an environment string to bool, int or leave it as str."""
    lowered = value.lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    try:
        return int(value)
    except ValueError:
        return value


def _is_list_field(section: str, field: str) -> bool:
    section_model = Config.model_fields[section].annotation
    return get_origin(section_model.model_fields[field].annotation) in (list, List)


def load_all_env_overrides() -> Dict[str, Dict[str, Any]]:
    """Collect overrides from all LIVESERVE_* environment variables."""
    overrides: Dict[str, Dict[str, Any]] = {}
    for env_var, (section, field) in get_all_env_mappings().items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        if _is_list_field(section, field):
            # Items are converted one by one so "8080" stays 8080, not True
            value = [int(item) if item.strip().lstrip("-").isdigit() else item.strip()
                     for item in raw.split(",") if item.strip()]
        else:
            value = _convert_env_value(raw)
        overrides.setdefault(section, {})[field] = value
        logger.debug(f"Config override from {env_var}")
    return overrides


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Explicit TOML file. Falls back to $LIVESERVE_CONFIG_FILE,
            then to ~/.config/liveserve/config.toml.

    Returns:
        The merged configuration. A missing file yields defaults.
    """
    if config_path is None:
        config_path = os.environ.get(f"{ENV_PREFIX}_CONFIG_FILE", str(DEFAULT_CONFIG_PATH))

    path = Path(config_path).expanduser()
    data: Dict[str, Any] = {}
    if path.is_file():
        with open(path, "rb") as f:
            data = tomllib.load(f)
        logger.debug(f"Loaded config file {path}")

    for section, values in load_all_env_overrides().items():
        data.setdefault(section, {}).update(values)

    return Config(**data)


def get_config() -> Config:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the process-wide config (None forces a reload on next get)."""
    global _config
    _config = config


def dump_config_toml(config: Config) -> str:
    """Render a config as TOML."""
    return tomli_w.dumps(config.model_dump())


def _format_env_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(str(item) for item in value)
    return str(value)


def dump_config_env(config: Config) -> str:
    """Render a config as LIVESERVE_* environment assignments."""
    lines = []
    dumped = config.model_dump()
    for env_var, (section, field) in get_all_env_mappings().items():
        lines.append(f"{env_var}={_format_env_value(dumped[section][field])}")
    return "\n".join(lines)
