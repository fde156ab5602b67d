"""Triplet store backends."""

from __future__ import annotations

from tripletviz.config_models import StoreSettings

from .base import TripletStore
from .memory import MemoryTripletStore

__all__ = ["TripletStore", "MemoryTripletStore", "RedisTripletStore", "create_store"]


def __getattr__(name: str):
    if name == "RedisTripletStore":
        from .redis_store import RedisTripletStore as _RedisTripletStore

        return _RedisTripletStore
    raise AttributeError(name)


def create_store(settings: StoreSettings) -> TripletStore:
    """Return the backend selected by ``settings.backend``."""

    if settings.backend == "memory":
        return MemoryTripletStore(name=settings.database_name or "memory")
    if settings.backend == "redis":
        from .redis_store import RedisTripletStore

        return RedisTripletStore(
            database_name=settings.database_name or "default",
            host=settings.host,
            port=settings.port,
        )
    raise ValueError(f"Unknown store backend: {settings.backend}")
