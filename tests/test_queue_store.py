"""Tests for storage.queue_store."""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from pathlib import Path

import pytest
from conftest import read_queue, write_queue

from exceptions import LockTimeoutError, NotFoundError, StorageUnavailableError
from storage.files import locked
from storage.queue_store import QueueStore, next_value
from utils.serial import SerializationMode


def _draw_many(path: str, count: int) -> list[int]:
    store = QueueStore(Path(path), SerializationMode.LOT, lock_timeout=30.0, poll_interval=0.001)
    return [store.draw("5P-A100") for _ in range(count)]


# =========================================================================
# next_value
# =========================================================================


class TestNextValue:
    def test_increments(self) -> None:
        assert next_value(0, 500) == 1
        assert next_value(499, 500) == 500

    def test_wraps_at_ceiling(self) -> None:
        assert next_value(500, 500) == 0


# =========================================================================
# peek
# =========================================================================


class TestPeek:
    def test_returns_stored_value(self, jbk_queue: QueueStore) -> None:
        assert jbk_queue.peek("5P-A100") == 7

    def test_does_not_mutate(self, jbk_queue: QueueStore) -> None:
        jbk_queue.peek("5P-A100")
        jbk_queue.peek("5P-A100")
        assert read_queue(jbk_queue.path)["5P-A100"] == 7

    def test_unknown_part(self, jbk_queue: QueueStore) -> None:
        with pytest.raises(NotFoundError, match="Could not find a JBK # Queue for the Part: 9X"):
            jbk_queue.peek("9X")

    def test_missing_document(self, tmp_path: Path) -> None:
        store = QueueStore(tmp_path / "absent.json", SerializationMode.JBK)
        with pytest.raises(StorageUnavailableError):
            store.peek("5P-A100")


# =========================================================================
# draw
# =========================================================================


class TestDraw:
    def test_issues_stored_value_and_advances(self, jbk_queue: QueueStore) -> None:
        assert jbk_queue.draw("5P-A100") == 7
        assert read_queue(jbk_queue.path)["5P-A100"] == 8

    def test_sequence_has_no_gaps(self, jbk_queue: QueueStore) -> None:
        drawn = [jbk_queue.draw("5P-A100") for _ in range(5)]
        assert drawn == [7, 8, 9, 10, 11]

    def test_other_parts_untouched(self, jbk_queue: QueueStore) -> None:
        jbk_queue.draw("5P-A100")
        assert read_queue(jbk_queue.path)["5P-B200"] == 499

    def test_reaches_ceiling_then_wraps(self, jbk_queue: QueueStore) -> None:
        drawn = [jbk_queue.draw("5P-B200") for _ in range(3)]
        assert drawn == [499, 500, 0]
        assert jbk_queue.peek("5P-B200") == 1

    def test_stored_ceiling_resets_to_zero(self, jbk_queue: QueueStore) -> None:
        write_queue(jbk_queue.path, {"5P-A100": 500})
        assert jbk_queue.draw("5P-A100") == 500
        assert read_queue(jbk_queue.path)["5P-A100"] == 0

    def test_value_above_ceiling_treated_as_zero(self, jbk_queue: QueueStore) -> None:
        write_queue(jbk_queue.path, {"5P-A100": 999})
        assert jbk_queue.peek("5P-A100") == 0
        assert jbk_queue.draw("5P-A100") == 0
        assert read_queue(jbk_queue.path)["5P-A100"] == 1

    def test_lot_ceiling(self, lot_queue: QueueStore) -> None:
        write_queue(lot_queue.path, {"5P-A100": 999_999_999})
        assert lot_queue.draw("5P-A100") == 999_999_999
        assert lot_queue.draw("5P-A100") == 0

    def test_unknown_part_writes_nothing(self, jbk_queue: QueueStore) -> None:
        before = jbk_queue.path.read_text()
        with pytest.raises(NotFoundError):
            jbk_queue.draw("9X")
        assert jbk_queue.path.read_text() == before

    def test_corrupt_document(self, jbk_queue: QueueStore) -> None:
        jbk_queue.path.write_text("{not json")
        with pytest.raises(StorageUnavailableError, match="JBK # Queue"):
            jbk_queue.draw("5P-A100")

    def test_lock_timeout(self, jbk_queue: QueueStore) -> None:
        jbk_queue.lock_timeout = 0.1
        with locked(jbk_queue.path, timeout=1.0):
            with pytest.raises(LockTimeoutError):
                jbk_queue.draw("5P-A100")
        assert read_queue(jbk_queue.path)["5P-A100"] == 7

    def test_concurrent_draws_are_distinct(self, queue_dir: Path) -> None:
        path = queue_dir / "_lot_queue.json"
        write_queue(path, {"5P-A100": 1})
        store = QueueStore(path, SerializationMode.LOT, lock_timeout=30.0, poll_interval=0.001)

        with ThreadPoolExecutor(max_workers=8) as pool:
            drawn = list(pool.map(lambda _: store.draw("5P-A100"), range(40)))

        assert sorted(drawn) == list(range(1, 41))
        assert store.peek("5P-A100") == 41

    def test_concurrent_draws_across_instances(self, queue_dir: Path) -> None:
        path = queue_dir / "_jbk_queue.json"
        write_queue(path, {"5P-A100": 0})
        stores = [
            QueueStore(path, SerializationMode.JBK, lock_timeout=30.0, poll_interval=0.001)
            for _ in range(4)
        ]

        with ThreadPoolExecutor(max_workers=4) as pool:
            drawn = list(pool.map(lambda i: stores[i % 4].draw("5P-A100"), range(20)))

        assert len(set(drawn)) == 20

    def test_concurrent_draws_across_processes(self, queue_dir: Path) -> None:
        path = queue_dir / "_lot_queue.json"
        write_queue(path, {"5P-A100": 1})

        with ProcessPoolExecutor(max_workers=4) as pool:
            batches = list(pool.map(_draw_many, [str(path)] * 4, [5] * 4))

        drawn = [value for batch in batches for value in batch]
        assert sorted(drawn) == list(range(1, 21))
        assert read_queue(path)["5P-A100"] == 21


# =========================================================================
# parts
# =========================================================================


def test_parts_sorted(jbk_queue: QueueStore) -> None:
    assert jbk_queue.parts() == ["5P-A100", "5P-B200"]
