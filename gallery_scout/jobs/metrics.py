"""Counters for one refresh run."""
import time
import logging
from collections import defaultdict
from typing import Dict

logger = logging.getLogger(__name__)


class Metrics:
    """Track refresh progress and throughput."""

    def __init__(self, total: int):
        self.total = total
        self.start_time = time.time()
        self.counters: Dict[str, int] = defaultdict(int)

    def increment(self, key: str, amount: int = 1) -> None:
        """Increment a counter."""
        self.counters[key] += amount

    def get_rate(self) -> float:
        """Companies processed per second."""
        elapsed = time.time() - self.start_time
        processed = self.counters["processed"]
        if elapsed > 0:
            return processed / elapsed
        return 0.0

    def report(self) -> None:
        """Log current progress."""
        processed = self.counters["processed"]
        pct = processed * 100 // self.total if self.total > 0 else 0
        logger.info(
            f"Progress: {processed}/{self.total} ({pct}%) | "
            f"OK: {self.counters['ok']} | "
            f"Failed: {self.counters['failed']} | "
            f"Skipped: {self.counters['skipped']}"
        )

    def get_summary(self) -> Dict:
        """Get summary statistics."""
        return {
            "total": self.total,
            "processed": self.counters["processed"],
            "ok": self.counters["ok"],
            "failed": self.counters["failed"],
            "skipped": self.counters["skipped"],
            "rate": self.get_rate(),
            "elapsed_seconds": time.time() - self.start_time,
        }
