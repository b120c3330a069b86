"""Application configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, model_validator

load_dotenv()

_PROJECT_ROOT = Path(__file__).resolve().parent

logger = logging.getLogger(__name__)

RESERVATION_POLICIES = ("reject", "overwrite")


class Config(BaseModel):
    """Centralised app configuration backed by env vars."""

    # Queue documents (shared storage)
    queue_dir: str = str(_PROJECT_ROOT / "data" / "serial_queues")
    jbk_queue_file: str = "_jbk_queue.json"
    lot_queue_file: str = "_lot_queue.json"
    lock_timeout_seconds: float = 10.0
    lock_poll_interval: float = 0.05

    # Serial cache (local storage)
    cache_dir: str = str(_PROJECT_ROOT / "data" / "SerialCache")
    cache_file: str = "serial_cache.json"
    cache_teardown: bool = True
    reservation_policy: str = "reject"

    # Print history ("" disables)
    print_history_path: str = str(_PROJECT_ROOT / "data" / "logs" / "print_history.log")

    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_fields(self) -> Config:
        """Reject unusable values and warn about missing shared storage."""
        if self.reservation_policy not in RESERVATION_POLICIES:
            msg = f"reservation_policy must be one of {RESERVATION_POLICIES}"
            raise ValueError(msg)
        if self.lock_timeout_seconds <= 0 or self.lock_poll_interval <= 0:
            msg = "lock timeout and poll interval must be positive"
            raise ValueError(msg)
        if not Path(self.queue_dir).is_dir():
            logger.warning("SERIAL_QUEUE_DIR %s does not exist — draws will fail", self.queue_dir)
        return self

    @property
    def history_enabled(self) -> bool:
        return bool(self.print_history_path)

    @classmethod
    def from_env(cls) -> Config:
        """Build config from environment variables."""
        return cls(
            queue_dir=os.getenv(
                "SERIAL_QUEUE_DIR", str(_PROJECT_ROOT / "data" / "serial_queues")
            ),
            jbk_queue_file=os.getenv("JBK_QUEUE_FILE", "_jbk_queue.json"),
            lot_queue_file=os.getenv("LOT_QUEUE_FILE", "_lot_queue.json"),
            lock_timeout_seconds=float(os.getenv("QUEUE_LOCK_TIMEOUT", "10")),
            lock_poll_interval=float(os.getenv("QUEUE_LOCK_POLL_INTERVAL", "0.05")),
            cache_dir=os.getenv("SERIAL_CACHE_DIR", str(_PROJECT_ROOT / "data" / "SerialCache")),
            cache_file=os.getenv("SERIAL_CACHE_FILE", "serial_cache.json"),
            cache_teardown=os.getenv("SERIAL_CACHE_TEARDOWN", "true").lower()
            in ("1", "true", "yes"),
            reservation_policy=os.getenv("RESERVATION_POLICY", "reject").lower(),
            print_history_path=os.getenv(
                "PRINT_HISTORY_PATH",
                str(_PROJECT_ROOT / "data" / "logs" / "print_history.log"),
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


settings = Config.from_env()
