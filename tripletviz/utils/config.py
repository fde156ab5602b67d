# Config Utilities
import logging
import os
import random
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from tripletviz.config_models import LAYOUT_TYPES, LayoutSettings, StoreSettings

CONFIG_PATH_ENV = "TRIPLETVIZ_CONFIG"

# Default config shipped inside the package
PACKAGE_CONFIG_PATH = os.path.abspath(
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "config.yaml")
)

DEFAULT_CONFIG_PATH = PACKAGE_CONFIG_PATH

logger = logging.getLogger(__name__)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load YAML configuration file"""
    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH

    if not os.path.exists(config_path):
        # Support paths relative to the repository root
        if not os.path.isabs(config_path):
            pkg_root = Path(__file__).resolve().parents[2]
            alt_path = pkg_root / config_path
            if os.path.exists(alt_path):
                config_path = str(alt_path)
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found at {config_path}")

    logger.info("Loading config from: %s", config_path)
    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    return config


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries"""
    result = base_config.copy()
    for key, value in override_config.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_config_with_overrides(
    config_path: str | None = None, overrides: Dict[str, Any] | None = None
) -> Dict[str, Any]:
    """Convenience wrapper around :func:`load_config` applying ``overrides``."""

    cfg = load_config(config_path)
    if overrides:
        cfg = merge_configs(cfg, overrides)
    return cfg


def _env_override(key: str) -> Optional[str]:
    """Helper to fetch environment variable overrides."""
    env_key = f"LAYOUT_{key.upper()}"
    return os.environ.get(env_key)


_SCALAR_TYPES = (bool, int, float, str)


def _coerce(value: str, current: Any) -> Any:
    if isinstance(current, bool):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return type(current)(value)


def _scalar_fields() -> Dict[str, Any]:
    """Return the :class:`LayoutSettings` fields whose default is a scalar."""
    base = LayoutSettings()
    return {
        name: getattr(base, name)
        for name in LayoutSettings.__dataclass_fields__
        if isinstance(getattr(base, name), _SCALAR_TYPES)
    }


def get_layout_settings(config: Dict[str, Any]) -> LayoutSettings:
    """Return layout configuration as :class:`LayoutSettings`."""

    defaults = config.get("layout", {}).copy()
    for field_name in LayoutSettings.__dataclass_fields__:
        defaults.setdefault(field_name, getattr(LayoutSettings(), field_name))

    # Only scalar fields may be overridden with LAYOUT_<FIELD> environment variables
    env_overrides = {
        k: _coerce(v, default)
        for k, default in _scalar_fields().items()
        if (v := _env_override(k)) is not None
    }

    settings = LayoutSettings.from_dict({**defaults, **env_overrides})
    if settings.layout_type not in LAYOUT_TYPES:
        logger.error(
            "Unknown layout_type %r, falling back to link_distance", settings.layout_type
        )
        settings.layout_type = "link_distance"
    return settings


def get_redis_config(config: Dict[str, Any]) -> Dict[str, Any]:
    return config.get("databases", {}).get("redis", {"host": "localhost", "port": 6379})


def default_database_name() -> str:
    return f"Userdb-{random.random() * 100}"


def get_store_settings(config: Dict[str, Any]) -> StoreSettings:
    """Return triplet store configuration as :class:`StoreSettings`."""

    defaults = {**get_redis_config(config), **config.get("store", {})}
    settings = StoreSettings.from_dict(defaults)
    if not settings.database_name or not isinstance(settings.database_name, str):
        logger.error("Make sure database_name property exists and is a string.")
        logger.error("Choosing a default name for the database.")
        settings.database_name = default_database_name()
    return settings
