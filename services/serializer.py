"""Serial number allocation for new labels.

A cached number for the part is reused before anything is drawn, so a run
of partial labels for one lot keeps showing the same serial. Only a cache
miss draws from the shared queue.
"""

from __future__ import annotations

import logging

from exceptions import SerialError
from storage import get_cache_store, get_queue_store
from utils.serial import SerializationMode, format_serial, normalize_part

logger = logging.getLogger(__name__)


def allocate(
    part: str,
    mode: SerializationMode | str,
    is_full_unit: bool,
    queue_key: str | None = None,
) -> str:
    """Return the formatted serial number to print on the next label for *part*.

    *queue_key* selects the queue entry to draw from when it differs from
    the part (e.g. a model number shared by several parts); the cache is
    always keyed by *part*.

    For a full unit any reservation for the part is released; for a partial
    unit the issued number is reserved so the next label reuses it. Both are
    provisional until ``reconciliation.finalize`` records the print outcome.

    Raises NotFoundError for an unprovisioned queue entry,
    StorageUnavailableError/LockTimeoutError for storage failures and
    ConflictingReservationError when the cache refuses the reservation.
    If the failure comes after a fresh draw, the error carries the drawn
    number as ``drawn`` and ``serial`` and is no longer retryable: pass the
    serial to ``finalize`` once the cache is writable instead of drawing again.
    """
    mode = SerializationMode.parse(mode)
    part = normalize_part(part)
    key = normalize_part(queue_key) if queue_key else part
    cache = get_cache_store()

    # Lookup, draw and cache update form one step for this process.
    with cache.lock:
        issued = cache.find(part)
        drawn = issued is None
        if issued is None:
            issued = get_queue_store(mode).draw(key)
        else:
            logger.info("Reusing cached serial %d for %s", issued, part)

        serial = format_serial(issued, mode)
        try:
            if is_full_unit:
                cache.release(part, issued)
            else:
                cache.reserve(part, issued)
        except SerialError as exc:
            if drawn:
                # The queue has already advanced; hand the number back to
                # the caller so it can still be finalized.
                exc.drawn = issued
                exc.serial = serial
                exc.retryable = False
                logger.error(
                    "%s serial %s was drawn for %s but could not be cached",
                    mode.value, serial, part,
                )
            raise
    return serial


def peek(part: str, mode: SerializationMode | str, queue_key: str | None = None) -> str:
    """Return the serial the next label for *part* would get, without consuming it."""
    mode = SerializationMode.parse(mode)
    part = normalize_part(part)
    cached = get_cache_store().find(part)
    if cached is not None:
        return format_serial(cached, mode)
    key = normalize_part(queue_key) if queue_key else part
    return format_serial(get_queue_store(mode).peek(key), mode)
