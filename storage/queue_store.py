"""Shared serial queue: the authoritative next-unissued number per part.

One JSON document per serialization mode lives on shared storage and is
written by every workstation. Each draw runs its load-mutate-save cycle
under an exclusive lock on the document's sidecar lock file, so two
concurrent draws for the same part can never issue the same number.

Wraparound rule: a draw issues the stored value and stores
``(value + 1) mod (ceiling + 1)``. Storing the ceiling therefore issues the
ceiling and resets the part to 0. A stored value above the ceiling (left by
an older ceiling or a manual edit) is treated as 0.
"""

from __future__ import annotations

import logging
from pathlib import Path

from exceptions import NotFoundError
from storage.files import locked, read_mapping, write_mapping
from utils.serial import SerializationMode

logger = logging.getLogger(__name__)


def next_value(value: int, ceiling: int) -> int:
    """Return the value stored after issuing *value*."""
    return 0 if value >= ceiling else value + 1


class QueueStore:
    """File-backed per-part counter for one serialization mode."""

    def __init__(
        self,
        path: str | Path,
        mode: SerializationMode,
        lock_timeout: float = 10.0,
        poll_interval: float = 0.05,
    ) -> None:
        self.path = Path(path)
        self.mode = mode
        self.lock_timeout = lock_timeout
        self.poll_interval = poll_interval

    @property
    def label(self) -> str:
        return f"{self.mode.value} # Queue"

    def _load(self) -> dict[str, int]:
        return read_mapping(self.path, self.label)

    def _lookup(self, queue: dict[str, int], part: str) -> int:
        try:
            return queue[part]
        except KeyError:
            msg = f"Could not find a {self.label} for the Part: {part}"
            raise NotFoundError(msg) from None

    def peek(self, part: str) -> int:
        """Return the number the next draw for *part* would issue."""
        value = self._lookup(self._load(), part)
        return 0 if value > self.mode.ceiling else value

    def draw(self, part: str) -> int:
        """Issue the queued number for *part* and advance the queue.

        The advanced document is persisted before the issued number is
        returned. Nothing is written when the part is not provisioned or
        the document cannot be read.
        """
        with locked(self.path, self.lock_timeout, self.poll_interval):
            queue = self._load()
            stored = self._lookup(queue, part)
            issued = 0 if stored > self.mode.ceiling else stored
            queue[part] = next_value(issued, self.mode.ceiling)
            write_mapping(self.path, queue, self.label)

        if queue[part] == 0:
            logger.warning(
                "%s for %s wrapped to 0 after issuing %d", self.label, part, issued
            )
        logger.info("Drew %s %d for %s", self.mode.value, issued, part)
        return issued

    def parts(self) -> list[str]:
        """Return the provisioned part identifiers, sorted."""
        return sorted(self._load())
