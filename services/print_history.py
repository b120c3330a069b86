"""Append-only print history log.

One comma-separated line per print attempt:
``timestamp,part,serial,unit,outcome,action``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

_write_lock = threading.Lock()


class PrintEvent(BaseModel):
    timestamp: datetime
    part: str
    serial: str
    full_unit: bool
    printed: bool
    action: Literal["released", "reserved"]

    def to_line(self) -> str:
        """Serialise as one log line (commas in the part are dropped)."""
        return ",".join([
            self.timestamp.isoformat(timespec="seconds"),
            self.part.replace(",", ""),
            self.serial,
            "full" if self.full_unit else "partial",
            "printed" if self.printed else "failed",
            self.action,
        ])

    @classmethod
    def from_line(cls, line: str) -> PrintEvent:
        fields = line.strip().split(",")
        if len(fields) != 6:
            msg = f"Malformed print history line: {line!r}"
            raise ValueError(msg)
        timestamp, part, serial, unit, outcome, action = fields
        return cls(
            timestamp=datetime.fromisoformat(timestamp),
            part=part,
            serial=serial,
            full_unit=unit == "full",
            printed=outcome == "printed",
            action=action,
        )


def record_print_event(event: PrintEvent, path: str | Path) -> None:
    """Append *event* to the history file at *path*."""
    path = Path(path)
    try:
        with _write_lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as fh:
                fh.write(event.to_line() + "\n")
    except OSError as exc:
        logger.error("Could not log print of %s for %s: %s", event.serial, event.part, exc)
        msg = f"Cannot write print history {path}: {exc}"
        raise StorageUnavailableError(msg) from exc


def read_history(path: str | Path, limit: int | None = None) -> list[PrintEvent]:
    """Return the logged events, oldest first; only the last *limit* if given.

    Lines that do not parse are logged and skipped.
    """
    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    except OSError as exc:
        msg = f"Cannot read print history {path}: {exc}"
        raise StorageUnavailableError(msg) from exc

    events = []
    for number, line in enumerate(lines, 1):
        if not line.strip():
            continue
        try:
            events.append(PrintEvent.from_line(line))
        except ValueError as exc:
            # A crash mid-append leaves a truncated line; keep the rest.
            logger.warning("Skipping print history line %d in %s: %s", number, path, exc)
    if limit is not None:
        events = events[-limit:] if limit > 0 else []
    return events
