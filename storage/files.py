"""JSON document helpers for the queue and cache files.

Both stores keep a flat ``{part: integer}`` mapping that is read in full and
written in full. Writes go to a temp file that is renamed into place, so a
reader never sees a half-written document. Queue documents are additionally
guarded by an exclusive lock on a ``.lock`` sidecar file, which lets the data
file itself be replaced while the lock is held.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from exceptions import LockTimeoutError, StorageUnavailableError

logger = logging.getLogger(__name__)

_LOCK_SUFFIX = ".lock"


# ---------------------------------------------------------------------------
# Locking
# ---------------------------------------------------------------------------


@contextmanager
def locked(path: Path, timeout: float, poll_interval: float = 0.05) -> Iterator[None]:
    """Hold an exclusive advisory lock on *path* for the duration of the block.

    Raises LockTimeoutError if the lock is not acquired within *timeout*
    seconds, and StorageUnavailableError if the lock file cannot be opened.
    """
    lock_path = path.with_suffix(path.suffix + _LOCK_SUFFIX)
    try:
        handle = lock_path.open("a+", encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot open lock file {lock_path}: {exc}"
        raise StorageUnavailableError(msg) from exc

    with handle:
        deadline = time.monotonic() + timeout
        while True:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    msg = f"Timed out after {timeout}s waiting for lock on {path.name}"
                    raise LockTimeoutError(msg) from None
                time.sleep(poll_interval)
            except OSError as exc:
                msg = f"Cannot lock {lock_path}: {exc}"
                raise StorageUnavailableError(msg) from exc
        logger.debug("Acquired lock on %s", path)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            logger.debug("Released lock on %s", path)


# ---------------------------------------------------------------------------
# Read / write
# ---------------------------------------------------------------------------


def read_mapping(path: Path, label: str, *, missing_ok: bool = False) -> dict[str, int]:
    """Load a ``{part: integer}`` document.

    An empty file is an empty mapping. A missing file is an empty mapping
    only when *missing_ok*; otherwise it, like any unreadable or malformed
    document, raises StorageUnavailableError.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        if missing_ok:
            return {}
        msg = f"{label} file not found: {path}"
        raise StorageUnavailableError(msg) from exc
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read {label} file {path}: {exc}"
        raise StorageUnavailableError(msg) from exc

    if not raw.strip():
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Failed to deserialize the {label}: {exc}"
        raise StorageUnavailableError(msg) from exc

    if not isinstance(data, dict):
        msg = f"The {label} must be a JSON object"
        raise StorageUnavailableError(msg)

    mapping: dict[str, int] = {}
    for key, value in data.items():
        # bool is an int subclass; reject it along with floats and strings
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            msg = f"The {label} holds an invalid value for {key!r}: {value!r}"
            raise StorageUnavailableError(msg)
        mapping[key] = value
    return mapping


def write_mapping(path: Path, mapping: dict[str, int], label: str) -> None:
    """Replace *path* with *mapping* atomically."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
    except OSError as exc:
        msg = f"Cannot write {label} file {path}: {exc}"
        raise StorageUnavailableError(msg) from exc

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp_handle:
            json.dump(mapping, tmp_handle, indent=2, sort_keys=True)
            tmp_handle.flush()
            os.fsync(tmp_handle.fileno())
        os.replace(tmp_path, str(path))
    except OSError as exc:
        try:
            os.unlink(tmp_path)
        except OSError:
            logger.warning("Could not remove temp file %s", tmp_path)
        msg = f"Cannot write {label} file {path}: {exc}"
        raise StorageUnavailableError(msg) from exc

    _fsync_directory(path.parent)


def _fsync_directory(directory: Path) -> None:
    """Flush a rename in *directory* to disk.

    The new document is already in place, so a failure here is only logged.
    """
    try:
        fd = os.open(str(directory), os.O_RDONLY)
    except OSError as exc:
        logger.warning("Could not open %s to sync it: %s", directory, exc)
        return
    try:
        os.fsync(fd)
    except OSError as exc:
        logger.warning("Could not sync directory %s: %s", directory, exc)
    finally:
        os.close(fd)
