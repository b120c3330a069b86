"""Local serial cache: numbers drawn from a queue but not yet committed.

The cache holds at most one reserved number per part. It lives in local
application storage, so only threads of this process touch it; every
operation runs behind one lock per store. When the last reservation is
released the file and its directory are removed and recreated on the next
reservation.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from config import RESERVATION_POLICIES
from exceptions import ConflictingReservationError
from storage.files import read_mapping, write_mapping
from utils.serial import parse_serial

logger = logging.getLogger(__name__)

_LABEL = "Serial Cache"


class CacheStore:
    """File-backed ``{part: reserved number}`` mapping."""

    def __init__(
        self,
        path: str | Path,
        policy: str = "reject",
        teardown: bool = True,
    ) -> None:
        if policy not in RESERVATION_POLICIES:
            msg = f"policy must be one of {RESERVATION_POLICIES}"
            raise ValueError(msg)
        self.path = Path(path)
        self.policy = policy
        self.teardown = teardown
        self.lock = threading.RLock()

    def _load(self) -> dict[str, int]:
        return read_mapping(self.path, _LABEL, missing_ok=True)

    def _remove_files(self) -> None:
        self.path.unlink(missing_ok=True)
        try:
            self.path.parent.rmdir()
        except OSError:
            # Directory holds other files; leave it.
            logger.debug("Kept cache directory %s", self.path.parent)

    def find(self, part: str) -> int | None:
        """Return the number reserved for *part*, or None."""
        with self.lock:
            return self._load().get(part)

    def entries(self) -> dict[str, int]:
        """Return a snapshot of every reservation."""
        with self.lock:
            return dict(self._load())

    def reserve(self, part: str, value: int | str) -> None:
        """Reserve *value* for *part*.

        Re-reserving the same value is a no-op. A different value already
        reserved for the part raises ConflictingReservationError under the
        ``reject`` policy and is replaced, with a warning, under ``overwrite``.
        """
        value = parse_serial(value)
        with self.lock:
            cache = self._load()
            existing = cache.get(part)
            if existing == value:
                return
            if existing is not None:
                if self.policy == "reject":
                    raise ConflictingReservationError(part, existing, value)
                logger.warning(
                    "Overwriting reserved serial %d for %s with %d", existing, part, value
                )
            cache[part] = value
            write_mapping(self.path, cache, _LABEL)
            logger.info("Reserved serial %d for %s", value, part)

    def release(self, part: str, value: int | str) -> bool:
        """Drop the reservation for *part* if it still holds *value*.

        *value* may be the integer or the zero-padded serial ("007").

        Returns True when a reservation was removed.
        """
        value = parse_serial(value)
        with self.lock:
            cache = self._load()
            existing = cache.get(part)
            if existing is None:
                return False
            if existing != value:
                logger.warning(
                    "Not releasing %d for %s: cache holds %d", value, part, existing
                )
                return False

            del cache[part]
            if not cache and self.teardown:
                self._remove_files()
            else:
                write_mapping(self.path, cache, _LABEL)
            logger.info("Released serial %d for %s", value, part)
            return True
