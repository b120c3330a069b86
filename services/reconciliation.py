"""Print-outcome reconciliation: settle the cache once a print resolves.

A finished full unit releases its number. Every other outcome (a failed
print, or a partial label for a lot that is still open) keeps the number
reserved so the next allocation for the part reuses it instead of drawing
a new one.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from config import settings
from services.print_history import PrintEvent, record_print_event
from storage import get_cache_store
from utils.serial import normalize_part, parse_serial

logger = logging.getLogger(__name__)


def finalize(part: str, serial: str, succeeded: bool, is_full_unit: bool) -> str:
    """Apply the outcome of one print attempt to the cache.

    Returns the action taken: ``"released"`` or ``"reserved"``. The cache
    is updated before the print history is written.
    """
    part = normalize_part(part)
    value = parse_serial(serial)
    cache = get_cache_store()

    if succeeded and is_full_unit:
        cache.release(part, value)
        action = "released"
    else:
        if not succeeded:
            logger.warning("Print failed for %s serial %s; holding it for reuse", part, serial)
        cache.reserve(part, value)
        action = "reserved"

    if settings.history_enabled:
        record_print_event(
            PrintEvent(
                timestamp=datetime.now(UTC),
                part=part,
                serial=str(serial).strip(),
                full_unit=is_full_unit,
                printed=succeeded,
                action=action,
            ),
            settings.print_history_path,
        )
    return action
