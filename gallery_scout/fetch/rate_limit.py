"""Per-domain spacing of page loads."""
import asyncio
import logging
import time
from collections import defaultdict
from typing import Dict
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class RateLimiter:
    """Keeps page loads against one domain at least 1/rate seconds apart."""

    def __init__(self, rate_per_second: float):
        self.rate_per_second = rate_per_second
        self.min_interval = 1.0 / rate_per_second if rate_per_second > 0 else 0.0
        self._next_slot: Dict[str, float] = defaultdict(float)
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @staticmethod
    def domain_of(url: str) -> str:
        parsed = urlparse(url)
        return parsed.netloc.lower()

    async def acquire(self, url: str) -> None:
        """Wait for this domain's next free slot, then reserve the one after it."""
        if not self.min_interval:
            return
        domain = self.domain_of(url)
        async with self._locks[domain]:
            now = time.monotonic()
            wait_time = self._next_slot[domain] - now
            if wait_time > 0:
                logger.debug(f"Rate limit: waiting {wait_time:.2f}s before {domain}")
                await asyncio.sleep(wait_time)
            self._next_slot[domain] = max(now, self._next_slot[domain]) + self.min_interval
