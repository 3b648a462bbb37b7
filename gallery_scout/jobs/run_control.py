"""Run control: company cap, soft stop conditions and cancellation."""
import asyncio
import time
import logging
from typing import Optional
from dataclasses import dataclass, field

from gallery_scout.config import config

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class RunControl:
    """Controls how much of a refresh runs and whether it is aborted."""

    max_companies: int = field(default_factory=lambda: config.MAX_COMPANIES)
    stop_after_minutes: Optional[float] = None
    max_errors: Optional[int] = None
    max_consecutive_errors: Optional[int] = None

    # Internal state
    start_time: float = field(default_factory=time.time)
    error_count: int = 0
    consecutive_errors: int = 0
    _cancel_event: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)

    def cancel(self) -> None:
        """Abort the refresh. In-flight page loads are cancelled; the cache is left alone."""
        if not self._cancel_event.is_set():
            logger.warning("Cancellation requested")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def wait_cancelled(self) -> None:
        await self._cancel_event.wait()

    def cap(self, items: list) -> list:
        """The first `max_companies` items."""
        if len(items) > self.max_companies:
            logger.info(f"Capping {len(items)} companies to max_companies={self.max_companies}")
        return items[: self.max_companies]

    def should_stop(self) -> tuple[bool, Optional[str]]:
        """Check soft stop conditions. Returns (should_stop, reason)."""
        if self.cancelled:
            return True, "cancelled"

        elapsed_minutes = (time.time() - self.start_time) / 60
        if self.stop_after_minutes and elapsed_minutes >= self.stop_after_minutes:
            return True, f"Reached stop_after_minutes={self.stop_after_minutes}"

        if self.max_errors and self.error_count >= self.max_errors:
            return True, f"Reached max_errors={self.max_errors}"

        if self.max_consecutive_errors and self.consecutive_errors >= self.max_consecutive_errors:
            return True, f"Reached max_consecutive_errors={self.max_consecutive_errors}"

        return False, None

    def record_error(self) -> None:
        self.error_count += 1
        self.consecutive_errors += 1

    def record_success(self) -> None:
        self.consecutive_errors = 0

    def get_summary(self) -> dict:
        """Get summary statistics."""
        elapsed_minutes = (time.time() - self.start_time) / 60
        return {
            "elapsed_minutes": round(elapsed_minutes, 2),
            "max_companies": self.max_companies,
            "error_count": self.error_count,
            "consecutive_errors": self.consecutive_errors,
            "cancelled": self.cancelled,
        }
