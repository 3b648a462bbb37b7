"""JSON snapshot of the latest scrape, with a freshness window."""
import asyncio
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, Optional

import aiofiles
import orjson
from pydantic import ValidationError

from gallery_scout.config import config
from gallery_scout.errors import CacheMissError, PersistenceError
from gallery_scout.parse.models import CacheSnapshot, CompanyRecord, utc_now

logger = logging.getLogger(__name__)

def freshness_window(hours: Optional[float] = None) -> timedelta:
    return timedelta(hours=config.FRESHNESS_HOURS if hours is None else hours)


def is_fresh(last_updated: datetime, now: datetime, window: Optional[timedelta] = None) -> bool:
    """A snapshot is fresh while strictly younger than the window."""
    window = window or freshness_window()
    return now - last_updated < window


class CacheStore:
    """Loads and overwrites the single cache file. No scraping logic here."""

    def __init__(
        self,
        path: Optional[Path] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.path = Path(path or config.CACHE_FILE)
        self.clock = clock
        # Serializes concurrent saves through this store; last writer wins
        self._write_lock = asyncio.Lock()

    async def load(self) -> CacheSnapshot:
        """Read the snapshot. Raises CacheMissError when there is nothing usable."""
        try:
            async with aiofiles.open(self.path, "rb") as f:
                data = await f.read()
        except FileNotFoundError as e:
            raise CacheMissError(f"No cache file at {self.path}", path=self.path) from e
        except OSError as e:
            raise CacheMissError(f"Cannot read cache file {self.path}: {e}", path=self.path) from e

        try:
            snapshot = CacheSnapshot.model_validate(orjson.loads(data))
        except orjson.JSONDecodeError as e:
            raise CacheMissError(f"Cache file {self.path} is not valid JSON: {e}", path=self.path) from e
        except ValidationError as e:
            raise CacheMissError(
                f"Cache file {self.path} has an incompatible structure: {e.error_count()} errors",
                path=self.path,
            ) from e

        logger.debug(f"Loaded {len(snapshot.startups)} records from {self.path}")
        return snapshot

    async def save(self, records: Iterable[CompanyRecord]) -> CacheSnapshot:
        """
        Overwrite the cache with `records`, stamped with the current time.

        The file is written to a temporary sibling and renamed into place, so
        readers never see a half-written snapshot. Raises PersistenceError.
        """
        try:
            snapshot = CacheSnapshot(startups=list(records), last_updated=self.clock())
        except ValidationError as e:
            raise PersistenceError(f"Refusing to write invalid snapshot: {e}", path=self.path) from e
        payload = orjson.dumps(snapshot.model_dump(mode="json"), option=orjson.OPT_INDENT_2)
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        async with self._write_lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                async with aiofiles.open(tmp_path, "wb") as f:
                    await f.write(payload)
                os.replace(tmp_path, self.path)
            except OSError as e:
                raise PersistenceError(f"Cannot write cache file {self.path}: {e}", path=self.path) from e

        logger.info(f"Saved {len(snapshot.startups)} records to {self.path}")
        return snapshot

    def delete(self) -> bool:
        """Remove the cache file. Returns whether anything was deleted."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Deleted cache file {self.path}")
        return True
