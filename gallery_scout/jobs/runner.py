"""Pipeline orchestrator: cache freshness check, refresh and write-back."""
import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional

from gallery_scout.config import config
from gallery_scout.errors import CacheMissError, FetchError, PersistenceError
from gallery_scout.fetch.gallery import GalleryFetcher
from gallery_scout.jobs.metrics import Metrics
from gallery_scout.jobs.run_control import RunControl
from gallery_scout.parse.extractor import extract_company_record
from gallery_scout.parse.models import (
    CacheSnapshot,
    CompanyPreview,
    CompanyRecord,
    RecordsResult,
    utc_now,
)
from gallery_scout.store.cache import CacheStore, freshness_window, is_fresh

logger = logging.getLogger(__name__)


class RefreshCancelled(Exception):
    """Raised internally when a RunControl is cancelled mid-refresh."""


class PipelineRunner:
    """
    Orchestrates one scrape-extract-cache run per `get_records()` call.

    The runner keeps no state between runs other than the cache file:
    a fresh snapshot is returned as is, otherwise the listing is scraped,
    up to `max_companies` detail pages are fetched concurrently and the
    result overwrites the cache.
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        fetcher_factory: Callable[[], Any] = GalleryFetcher,
        concurrency: Optional[int] = None,
        max_companies: Optional[int] = None,
        freshness: Optional[timedelta] = None,
        cache_file: Optional[Path] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.clock = clock
        self.store = store or CacheStore(cache_file, clock=clock)
        self.fetcher_factory = fetcher_factory
        self.concurrency = concurrency or config.CONCURRENCY
        self.max_companies = max_companies or config.MAX_COMPANIES
        self.freshness = freshness or freshness_window()
        self._active_controls: set[RunControl] = set()

    def cancel(self) -> int:
        """Cancel every refresh currently running on this runner. Returns how many."""
        controls = list(self._active_controls)
        for run_control in controls:
            run_control.cancel()
        return len(controls)

    async def get_records(
        self,
        force_refresh: bool = False,
        run_control: Optional[RunControl] = None,
    ) -> RecordsResult:
        """
        Return company records and their freshness metadata.

        Never raises for scrape or cache problems: those are logged and
        degrade to cached, partial or empty results. Only cancellation of
        the awaiting task itself propagates.
        """
        run_control = run_control or RunControl(max_companies=self.max_companies)
        self._active_controls.add(run_control)
        try:
            return await self._get_records(force_refresh, run_control)
        finally:
            self._active_controls.discard(run_control)

    async def _get_records(self, force_refresh: bool, run_control: RunControl) -> RecordsResult:
        snapshot = None
        if force_refresh:
            logger.info("Forced refresh, ignoring cache")
        else:
            snapshot = await self._load_cache()
            if snapshot is not None:
                age = self.clock() - snapshot.last_updated
                if is_fresh(snapshot.last_updated, self.clock(), self.freshness):
                    logger.info(f"Using cached data ({len(snapshot.startups)} companies, age {age})")
                    return RecordsResult(
                        records=snapshot.startups,
                        last_updated=snapshot.last_updated,
                        from_cache=True,
                    )
                logger.info(f"Cache is stale (age {age}), refreshing")

        try:
            records = await self._run_cancellable(self._refresh(run_control), run_control)
        except RefreshCancelled:
            return self._cancelled_result(snapshot)

        if records is None:
            return RecordsResult(records=[], from_cache=False)

        if run_control.cancelled:
            return self._cancelled_result(snapshot)

        saved = await self._save_cache(records)
        return RecordsResult(
            records=records,
            last_updated=saved.last_updated if saved else None,
            from_cache=False,
        )

    async def _load_cache(self) -> Optional[CacheSnapshot]:
        try:
            return await self.store.load()
        except CacheMissError as e:
            logger.info(f"Cache miss: {e}")
        except Exception as e:
            logger.warning(f"Cache load failed: {e}")
        return None

    async def _save_cache(self, records: list[CompanyRecord]) -> Optional[CacheSnapshot]:
        try:
            return await self.store.save(records)
        except PersistenceError as e:
            logger.error(f"Cache save failed: {e}")
        except Exception as e:
            logger.error(f"Cache save failed unexpectedly: {e}", exc_info=True)
        return None

    def _cancelled_result(self, snapshot: Optional[CacheSnapshot]) -> RecordsResult:
        logger.warning("Refresh cancelled, cache left untouched")
        if snapshot is not None:
            return RecordsResult(
                records=snapshot.startups,
                last_updated=snapshot.last_updated,
                from_cache=True,
                cancelled=True,
            )
        return RecordsResult(records=[], cancelled=True)

    async def _run_cancellable(self, coro, run_control: RunControl):
        """Await `coro` unless `run_control` is cancelled first."""
        refresh = asyncio.create_task(coro)
        cancel_wait = asyncio.create_task(run_control.wait_cancelled())
        try:
            done, _ = await asyncio.wait(
                {refresh, cancel_wait}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_wait.cancel()
            if not refresh.done():
                refresh.cancel()
                await asyncio.gather(refresh, return_exceptions=True)

        if refresh in done:
            return refresh.result()
        raise RefreshCancelled()

    async def _refresh(self, run_control: RunControl) -> Optional[list[CompanyRecord]]:
        """Scrape listing and details. None means the listing could not be scraped."""
        try:
            async with self.fetcher_factory() as fetcher:
                return await self._scrape_all(fetcher, run_control)
        except Exception as e:
            logger.error(f"Refresh failed: {e}", exc_info=True)
            return None

    async def _scrape_all(self, fetcher: Any, run_control: RunControl) -> Optional[list[CompanyRecord]]:
        try:
            previews = await fetcher.list_previews()
        except FetchError as e:
            logger.error(f"Homepage fetch failed: {e}")
            return None

        selected = run_control.cap(previews)
        metrics = Metrics(len(selected))
        semaphore = asyncio.Semaphore(max(1, min(self.concurrency, len(selected))))

        async def process(index: int, preview: CompanyPreview) -> tuple[int, Optional[CompanyRecord]]:
            async with semaphore:
                should_stop, reason = run_control.should_stop()
                if should_stop:
                    logger.debug(f"Skipping {preview.slug}: {reason}")
                    metrics.increment("skipped")
                    return index, None
                record = await self._scrape_company(fetcher, preview, run_control, metrics)
                if metrics.counters["processed"] % 5 == 0:
                    metrics.report()
                return index, record

        results = await asyncio.gather(
            *(process(i, preview) for i, preview in enumerate(selected)),
            return_exceptions=True,
        )

        indexed = []
        for result in results:
            if isinstance(result, BaseException):
                logger.error(f"Company task crashed: {result}")
                continue
            indexed.append(result)
        indexed.sort(key=lambda item: item[0])
        records = [record for _, record in indexed if record is not None]

        self._final_report(metrics, run_control, len(previews))
        return records

    async def _scrape_company(
        self,
        fetcher: Any,
        preview: CompanyPreview,
        run_control: RunControl,
        metrics: Metrics,
    ) -> Optional[CompanyRecord]:
        """Detail fetch + extraction for one preview. Failures are logged and skipped."""
        try:
            raw = await fetcher.fetch_detail(preview.slug)
        except FetchError as e:
            logger.warning(f"Failed to fetch {preview.slug}: {e}")
            run_control.record_error()
            metrics.increment("failed")
            return None
        except Exception as e:
            logger.error(f"Unexpected error fetching {preview.slug}: {e}", exc_info=True)
            run_control.record_error()
            metrics.increment("failed")
            return None
        finally:
            metrics.increment("processed")

        record = extract_company_record(preview.slug, raw, fetched_at=self.clock())
        if not record.tagline and preview.tagline:
            record = record.model_copy(update={"tagline": preview.tagline})

        run_control.record_success()
        metrics.increment("ok")
        logger.debug(f"Scraped {preview.slug}: {record.name!r}")
        return record

    def _final_report(self, metrics: Metrics, run_control: RunControl, found: int) -> None:
        summary = metrics.get_summary()
        run_summary = run_control.get_summary()

        logger.info("=" * 60)
        logger.info("REFRESH REPORT")
        logger.info(f"Companies on listing: {found}")
        logger.info(f"Attempted: {summary['total']} (cap {run_summary['max_companies']})")
        logger.info(f"OK: {summary['ok']}")
        logger.info(f"Failed: {summary['failed']}")
        logger.info(f"Skipped: {summary['skipped']}")
        logger.info(f"Elapsed: {summary['elapsed_seconds']:.1f}s ({summary['rate']:.2f} companies/s)")
        logger.info("=" * 60)
