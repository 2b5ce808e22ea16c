"""Configuration loading for envar.

Settings come from a YAML file (``--config``, ``$ENVAR_CONFIG`` or
``~/.config/envar/config.yml``) and may be overridden per key with
``ENVAR_*`` environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from envar.broadcast.base import DEFAULT_TIMEOUT_MS
from envar.broadcast.signal_file import DEFAULT_POLL_INTERVAL_MS, DEFAULT_SIGNAL_DIR
from envar.errors import ConfigError
from envar.logging import LOG_LEVELS, get_logger
from envar.models import SetMode
from envar.stores.file_store import DEFAULT_MACHINE_STORE, DEFAULT_USER_STORE

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = "~/.config/envar/config.yml"
CONFIG_ENV_VAR = "ENVAR_CONFIG"

STORE_BACKENDS = ("auto", "file", "registry", "memory")
BROADCAST_BACKENDS = ("auto", "windows", "signal_file", "none")
DEFAULT_MODES = ("append", "none")

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "ENVAR_STORE": (None, "store"),
    "ENVAR_USER_STORE": (None, "user_store"),
    "ENVAR_MACHINE_STORE": (None, "machine_store"),
    "ENVAR_BROADCAST_BACKEND": ("broadcast", "backend"),
    "ENVAR_SIGNAL_DIR": ("broadcast", "signal_dir"),
}

TOP_LEVEL_KEYS = {
    "store",
    "user_store",
    "machine_store",
    "default_mode",
    "broadcast",
    "log_level",
}
BROADCAST_KEYS = {"backend", "timeout_ms", "signal_dir", "poll_interval_ms"}


@dataclass
class BroadcastConfig:
    """Settings for the change broadcaster."""

    backend: str = "auto"
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    signal_dir: str = DEFAULT_SIGNAL_DIR
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS


@dataclass
class EnvarConfig:
    """Resolved envar settings."""

    store: str = "auto"
    user_store: str = DEFAULT_USER_STORE
    machine_store: str = DEFAULT_MACHINE_STORE
    default_mode: str = "append"
    broadcast: BroadcastConfig = field(default_factory=BroadcastConfig)
    log_level: str = "warning"
    source: Optional[str] = None

    @property
    def resolved_default_mode(self) -> Optional[SetMode]:
        """Mode applied to set requests that name none."""
        return SetMode.APPEND if self.default_mode == "append" else None

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], source: str = "<dict>"
    ) -> "EnvarConfig":
        """Build and validate a configuration from parsed YAML.

        Raises:
            ConfigError: If a value has the wrong type or is not allowed
        """
        if not isinstance(data, Mapping):
            raise ConfigError(source, "top level must be a mapping")

        for key in sorted(set(data) - TOP_LEVEL_KEYS):
            logger.warning(f"Ignoring unknown configuration key '{key}' in {source}")

        broadcast_data = data.get("broadcast") or {}
        if not isinstance(broadcast_data, Mapping):
            raise ConfigError(source, "'broadcast' must be a mapping")
        for key in sorted(set(broadcast_data) - BROADCAST_KEYS):
            logger.warning(
                f"Ignoring unknown configuration key 'broadcast.{key}' in {source}"
            )

        config = cls(
            store=_choice(data, "store", STORE_BACKENDS, "auto", source),
            user_store=_text(data, "user_store", DEFAULT_USER_STORE, source),
            machine_store=_text(data, "machine_store", DEFAULT_MACHINE_STORE, source),
            default_mode=_choice(data, "default_mode", DEFAULT_MODES, "append", source),
            broadcast=BroadcastConfig(
                backend=_choice(
                    broadcast_data, "backend", BROADCAST_BACKENDS, "auto", source
                ),
                timeout_ms=_positive_int(
                    broadcast_data, "timeout_ms", DEFAULT_TIMEOUT_MS, source
                ),
                signal_dir=_text(
                    broadcast_data, "signal_dir", DEFAULT_SIGNAL_DIR, source
                ),
                poll_interval_ms=_positive_int(
                    broadcast_data, "poll_interval_ms", DEFAULT_POLL_INTERVAL_MS, source
                ),
            ),
            log_level=_choice(
                data, "log_level", tuple(LOG_LEVELS), "warning", source
            ),
            source=source,
        )
        return config


def _choice(
    data: Mapping[str, Any], key: str, allowed: tuple, default: str, source: str
) -> str:
    value = data.get(key, default)
    if value is None:
        # YAML reads a bare 'none' as a string but '~' or 'null' as None
        value = "none" if "none" in allowed else default
    value = str(value).lower()
    if value not in allowed:
        raise ConfigError(
            source, f"'{key}' must be one of {', '.join(allowed)} (got '{value}')"
        )
    return value


def _text(data: Mapping[str, Any], key: str, default: str, source: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value:
        raise ConfigError(source, f"'{key}' must be a non-empty string")
    return value


def _positive_int(
    data: Mapping[str, Any], key: str, default: int, source: str
) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(source, f"'{key}' must be a positive integer")
    return value


def _apply_env_overrides(
    data: Dict[str, Any], environ: Mapping[str, str]
) -> Dict[str, Any]:
    merged = dict(data)
    merged["broadcast"] = dict(merged.get("broadcast") or {})
    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_var)
        if not value:
            continue
        logger.debug(f"Configuration key '{key}' overridden by {env_var}")
        if section is None:
            merged[key] = value
        else:
            merged[section][key] = value
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(str(path), f"malformed YAML: {e}") from e
    except OSError as e:
        raise ConfigError(str(path), e.strerror or str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping")
    return data


def load_config(
    path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> EnvarConfig:
    """Load configuration from file and environment.

    Args:
        path: Explicit configuration file; must exist if given
        environ: Environment to read overrides from (defaults to os.environ)

    Returns:
        Resolved configuration

    Raises:
        ConfigError: If an explicit file is missing or any file is invalid
    """
    environ = os.environ if environ is None else environ
    explicit = path or environ.get(CONFIG_ENV_VAR)
    config_path = Path(explicit or DEFAULT_CONFIG_PATH).expanduser()

    data: Dict[str, Any] = {}
    source = "<defaults>"
    if config_path.is_file():
        data = _read_yaml(config_path)
        source = str(config_path)
        logger.debug(f"Loaded configuration from {config_path}")
    elif explicit:
        raise ConfigError(str(config_path), "file does not exist")

    return EnvarConfig.from_dict(_apply_env_overrides(data, environ), source)
