"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from config import settings
from storage.cache_store import CacheStore
from storage.queue_store import QueueStore
from utils.serial import SerializationMode


def write_queue(path: Path, mapping: dict[str, int]) -> None:
    """Provision a queue document with *mapping*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(mapping), encoding="utf-8")


def read_queue(path: Path) -> dict[str, int]:
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def queue_dir(tmp_path: Path) -> Path:
    """Stand-in for the shared queue directory."""
    path = tmp_path / "serial_queues"
    path.mkdir()
    return path


@pytest.fixture
def jbk_queue(queue_dir: Path) -> QueueStore:
    """JBK queue with two provisioned parts."""
    path = queue_dir / "_jbk_queue.json"
    write_queue(path, {"5P-A100": 7, "5P-B200": 499})
    return QueueStore(path, SerializationMode.JBK, lock_timeout=2.0, poll_interval=0.01)


@pytest.fixture
def lot_queue(queue_dir: Path) -> QueueStore:
    """Lot queue with one provisioned part."""
    path = queue_dir / "_lot_queue.json"
    write_queue(path, {"5P-A100": 7})
    return QueueStore(path, SerializationMode.LOT, lock_timeout=2.0, poll_interval=0.01)


@pytest.fixture
def cache_store(tmp_path: Path) -> CacheStore:
    """Empty cache store under a directory that does not exist yet."""
    return CacheStore(tmp_path / "SerialCache" / "serial_cache.json")


@pytest.fixture
def history_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the print history at a temp file."""
    path = tmp_path / "logs" / "print_history.log"
    monkeypatch.setattr(settings, "print_history_path", str(path))
    return path


@pytest.fixture
def _patch_stores(
    jbk_queue: QueueStore,
    lot_queue: QueueStore,
    cache_store: CacheStore,
    history_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Route the services to the temp queue and cache stores."""
    queues = {SerializationMode.JBK: jbk_queue, SerializationMode.LOT: lot_queue}
    monkeypatch.setattr("services.serializer.get_queue_store", queues.__getitem__)
    monkeypatch.setattr("services.serializer.get_cache_store", lambda: cache_store)
    monkeypatch.setattr("services.reconciliation.get_cache_store", lambda: cache_store)
