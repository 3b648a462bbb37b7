"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

import orjson

from gallery_scout.config import config, Config
from gallery_scout.logging_conf import setup_logging
from gallery_scout.fetch.client import BrowserClient
from gallery_scout.fetch.gallery import GalleryFetcher
from gallery_scout.jobs.run_control import RunControl
from gallery_scout.jobs.runner import PipelineRunner
from gallery_scout.parse.models import RecordsResult

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="startups.gallery scraper")

    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Scrape even if the cache is still fresh",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help=f"Maximum companies to scrape (default: {config.MAX_COMPANIES})",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help=f"Detail pages rendered in parallel (default: {config.CONCURRENCY})",
    )
    parser.add_argument(
        "--cache-file",
        type=Path,
        default=None,
        help=f"Cache file path (default: {config.CACHE_FILE})",
    )
    parser.add_argument(
        "--stop-after-minutes",
        type=float,
        default=None,
        help="Stop starting new detail pages after M minutes",
    )
    parser.add_argument(
        "--max-errors",
        type=int,
        default=None,
        help="Stop starting new detail pages after N failures",
    )
    parser.add_argument(
        "--max-consecutive-errors",
        type=int,
        default=None,
        help="Stop starting new detail pages after N failures in a row",
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print records as JSON on stdout",
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode (verbose logs, low concurrency)",
    )

    return parser.parse_args(argv)


def print_summary(result: RecordsResult) -> None:
    """Log a compact table of the records."""
    source = "cache" if result.from_cache else "fresh scrape"
    updated = result.last_updated.isoformat() if result.last_updated else "not saved"
    logger.info(f"{len(result.records)} companies from {source} (last updated: {updated})")
    for record in result.records:
        logger.info(
            f"  {record.name or record.slug:<30} | {record.funding_stage or '-':<12} | "
            f"{record.industry or '-':<20} | {record.team_size or '-':<8} | {record.tagline}"
        )


async def run(args: argparse.Namespace) -> RecordsResult:
    headless = False if args.headful else None
    runner = PipelineRunner(
        fetcher_factory=lambda: GalleryFetcher(BrowserClient(headless=headless)),
        concurrency=args.concurrency,
        max_companies=args.limit,
        cache_file=args.cache_file,
    )
    run_control = RunControl(
        max_companies=runner.max_companies,
        stop_after_minutes=args.stop_after_minutes,
        max_errors=args.max_errors,
        max_consecutive_errors=args.max_consecutive_errors,
    )
    return await runner.get_records(force_refresh=args.refresh, run_control=run_control)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging("DEBUG" if args.dev else None)

    if args.dev and args.concurrency is None:
        config.CONCURRENCY = 2

    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    try:
        result = asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user, cache left untouched")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    if args.json:
        payload = [record.model_dump(mode="json") for record in result.records]
        sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode() + "\n")
    else:
        print_summary(result)

    if not result.records:
        logger.warning("No companies found")


if __name__ == "__main__":
    main()
