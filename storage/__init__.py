"""Storage package — queue and cache documents."""

from __future__ import annotations

import threading
from pathlib import Path

from config import settings
from storage.cache_store import CacheStore
from storage.queue_store import QueueStore
from utils.serial import SerializationMode

__all__ = ["CacheStore", "QueueStore", "get_cache_store", "get_queue_store"]


def get_queue_store(mode: SerializationMode) -> QueueStore:
    """Return the queue store for *mode* as configured in settings."""
    filename = (
        settings.jbk_queue_file if mode is SerializationMode.JBK else settings.lot_queue_file
    )
    return QueueStore(
        Path(settings.queue_dir) / filename,
        mode,
        lock_timeout=settings.lock_timeout_seconds,
        poll_interval=settings.lock_poll_interval,
    )


_cache_store: CacheStore | None = None
_cache_store_lock = threading.Lock()


def get_cache_store() -> CacheStore:
    """Return the process-wide cache store.

    A single instance is shared so every caller goes through the same lock.
    """
    global _cache_store
    with _cache_store_lock:
        if _cache_store is None:
            _cache_store = CacheStore(
                Path(settings.cache_dir) / settings.cache_file,
                policy=settings.reservation_policy,
                teardown=settings.cache_teardown,
            )
        return _cache_store
