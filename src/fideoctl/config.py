"""Configuration for fideoctl.

Values come from, in increasing priority: built-in defaults, a TOML file,
and FIDEOCTL_<SECTION>_<FIELD> environment variables.
"""
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import tomli_w
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "FIDEOCTL"
DEFAULT_CONFIG_FILE = "~/.config/fideoctl/config.toml"

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


class OutputConfig(BaseModel):
    """Where new stream configurations record to."""
    directory: str = Field("", description="Default stream directory; empty means the desktop")


class ServerConfig(BaseModel):
    """Control plane web bundle and response settings.

    The listener itself always binds 0.0.0.0 on an OS assigned port.
    """
    dist_dir: str = Field("", description="Web bundle directory; empty uses the packaged one")
    compress: bool = Field(True, description="Gzip HTTP responses")


class ControlConfig(BaseModel):
    """Desktop-side supervisor settings."""
    retry_step: float = Field(10.0, description="Seconds added to the retry delay after each failed start")
    path_length: int = Field(8, description="Length of generated path tokens")
    settings_file: str = Field("~/.config/fideoctl/web_control.json",
                               description="Where the web control state is persisted")


class Config(BaseModel):
    """Top level configuration."""
    output: OutputConfig = Field(default_factory=OutputConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    control: ControlConfig = Field(default_factory=ControlConfig)


_config: Optional[Config] = None


def generate_env_var_name(section: str, field: str) -> str:
    """Build the environment variable name for a config field."""
    return f"{ENV_PREFIX}_{section.upper()}_{field.upper()}"


def get_all_env_mappings() -> Dict[str, Tuple[str, str]]:
    """Map every overridable environment variable to its (section, field)."""
    mappings = {}
    for section, section_info in Config.model_fields.items():
        for field in section_info.annotation.model_fields:
            mappings[generate_env_var_name(section, field)] = (section, field)
    return mappings


def _convert_env_value(value: str) -> Union[bool, int, float, str]:
    """Convert an environment string to bool, int, float or leave it as str."""
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        return value


def _field_annotation(section: str, field: str) -> Any:
    section_model = Config.model_fields[section].annotation
    return section_model.model_fields[field].annotation


def load_all_env_overrides() -> Dict[str, Dict[str, Any]]:
    """Collect all FIDEOCTL_* overrides present in the environment."""
    overrides: Dict[str, Dict[str, Any]] = {}
    for env_var, (section, field) in get_all_env_mappings().items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue

        annotation = _field_annotation(section, field)
        if annotation is str:
            value = raw
        else:
            value = _convert_env_value(raw)
            # "0"/"1" read as booleans; numeric fields want the number back
            if isinstance(value, bool) and annotation is not bool:
                value = raw

        overrides.setdefault(section, {})[field] = value
    return overrides


def _resolve_config_path(path: Optional[Union[str, Path]]) -> Path:
    if path is not None:
        return Path(path).expanduser()
    return Path(os.environ.get(f"{ENV_PREFIX}_CONFIG_FILE", DEFAULT_CONFIG_FILE)).expanduser()


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    """Load configuration from file and environment.

    Args:
        path: TOML file to read. Defaults to $FIDEOCTL_CONFIG_FILE, then
            ~/.config/fideoctl/config.toml. A missing file is not an error.

    Returns:
        Merged configuration
    """
    data: Dict[str, Dict[str, Any]] = {}

    config_path = _resolve_config_path(path)
    if config_path.is_file():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        logger.debug(f"Loaded config from {config_path}")

    for section, values in load_all_env_overrides().items():
        data.setdefault(section, {}).update(values)

    return Config(**data)


def get_config() -> Config:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the process-wide configuration (None forces a reload)."""
    global _config
    _config = config


def dump_config_toml(config: Config) -> str:
    """Render a configuration as TOML."""
    return tomli_w.dumps(config.model_dump())


def dump_config_env(config: Config) -> str:
    """Render a configuration as KEY=value environment lines."""
    lines = []
    for env_var, (section, field) in get_all_env_mappings().items():
        value = getattr(getattr(config, section), field)
        if isinstance(value, bool):
            value = "true" if value else "false"
        lines.append(f"{env_var}={value}")
    return "\n".join(lines)
