import os
from datetime import timedelta, tzinfo
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import toml
import yaml
from dotenv import dotenv_values

from yearsago.timeline.models import StorageConfig

ENV_PREFIX = "YEARSAGO_"


class ConfigError(Exception):
    pass


def _project_root() -> Path:
    # yearsago/config/config.py -> yearsago/config -> yearsago -> repo root
    return Path(__file__).resolve().parents[2]


def get_default_config() -> Dict[str, Any]:
    """Get default configuration"""
    return {
        # Shared storage written by the app, read by the widget
        "storage_root": os.path.join(os.path.expanduser("~"), ".yearsago", "shared"),
        "image_filename": "featured.jpg",
        "record_prefix": "featured_",
        "record_suffix": ".txt",
        "snapshot_filename": "featured_date.txt",

        # Carousel schedule
        "entry_stride_minutes": 60,
        "refresh_interval_minutes": 60,
        "timezone": "",  # empty = local time

        # Logging
        "log_file": "logs/yearsago.log",
        "log_level": "INFO",
        "log_console": False,
    }


def _coerce(key: str, value: Any, default: Any) -> Any:
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{key} must be an integer, got {value!r}") from e
    return value


def read_config_file(config_file: Path) -> Dict[str, Any]:
    """
    Load a TOML or YAML config file into a flat dict.
    """
    suffix = config_file.suffix.lower()
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            if suffix == ".toml":
                data = toml.load(f)
            elif suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                raise ConfigError(f"Unsupported config file type: {config_file}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_file}: {e}") from e
    except (toml.TomlDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Malformed config file {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_file} must contain a mapping")
    return data


def _env_overrides(env_vars: Mapping[str, Optional[str]], defaults: Dict[str, Any]) -> Dict[str, Any]:
    overrides = {}
    for key in defaults:
        value = env_vars.get(ENV_PREFIX + key.upper())
        if value is not None:
            overrides[key] = value
    return overrides


def _default_config_file(environ: Mapping[str, str]) -> Optional[Path]:
    explicit = environ.get(ENV_PREFIX + "CONFIG_FILE")
    if explicit:
        return Path(explicit).expanduser()
    candidate = _project_root() / "yearsago" / "config" / "config.toml"
    return candidate if candidate.exists() else None


def _default_env_file() -> Optional[Path]:
    root = _project_root()
    env_candidates = [root / "yearsago" / ".env", root / ".env"]
    return next((p for p in env_candidates if p.exists()), None)


def load_config(
    config_file: Optional[Path] = None,
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Build the configuration: defaults < config file < .env < process environment.

    Environment keys are the config keys upper-cased with a ``YEARSAGO_`` prefix,
    e.g. ``YEARSAGO_STORAGE_ROOT``.
    """
    environ = os.environ if environ is None else environ
    defaults = get_default_config()
    config = dict(defaults)

    if config_file is None:
        config_file = _default_config_file(environ)
    if config_file is not None:
        config.update(read_config_file(Path(config_file)))

    if env_file is None:
        env_file = _default_env_file()
    if env_file is not None and Path(env_file).exists():
        config.update(_env_overrides(dotenv_values(env_file), defaults))

    config.update(_env_overrides(environ, defaults))

    for key, default in defaults.items():
        config[key] = _coerce(key, config[key], default)
    config["storage_root"] = os.path.expanduser(str(config["storage_root"]))
    return config


def storage_config(config: Mapping[str, Any]) -> StorageConfig:
    return StorageConfig(
        root=Path(config["storage_root"]),
        image_filename=config["image_filename"],
        record_prefix=config["record_prefix"],
        record_suffix=config["record_suffix"],
        snapshot_filename=config["snapshot_filename"],
    )


def timeline_settings(config: Mapping[str, Any]) -> Tuple[timedelta, timedelta]:
    """Return ``(stride, refresh_after)`` for the generator."""
    stride = int(config["entry_stride_minutes"])
    refresh = int(config["refresh_interval_minutes"])
    if stride <= 0 or refresh <= 0:
        raise ConfigError("entry_stride_minutes and refresh_interval_minutes must be positive")
    return timedelta(minutes=stride), timedelta(minutes=refresh)


def resolve_timezone(config: Mapping[str, Any]) -> Optional[tzinfo]:
    name = (config.get("timezone") or "").strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown timezone {name!r}") from e
