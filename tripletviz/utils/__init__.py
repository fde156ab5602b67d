"""Utility helpers for tripletviz."""

from .config import (
    get_layout_settings,
    get_redis_config,
    get_store_settings,
    load_config,
    load_config_with_overrides,
    merge_configs,
)

__all__ = [
    "get_layout_settings",
    "get_redis_config",
    "get_store_settings",
    "load_config",
    "load_config_with_overrides",
    "merge_configs",
]
