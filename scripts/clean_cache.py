#!/usr/bin/env python3
"""Utility script to inspect or delete the startups cache file."""
import asyncio
import sys
from pathlib import Path

from gallery_scout.config import config
from gallery_scout.errors import CacheMissError
from gallery_scout.parse.models import utc_now
from gallery_scout.store.cache import CacheStore, is_fresh


def show_stats(path: Path) -> None:
    """Show record count and age of the cache file."""
    store = CacheStore(path)
    try:
        snapshot = asyncio.run(store.load())
    except CacheMissError as e:
        print(f"Cache file: {path}")
        print(f"No usable cache: {e}")
        return

    now = utc_now()
    with_funding = sum(1 for record in snapshot.startups if record.funding_announcement)
    fully_scraped = sum(1 for record in snapshot.startups if record.fully_scraped)

    print(f"Cache file: {path}")
    print(f"Total records: {len(snapshot.startups)}")
    print(f"Fully scraped: {fully_scraped}")
    print(f"With funding announcement: {with_funding}")
    print(f"Last updated: {snapshot.last_updated.isoformat()} (age {now - snapshot.last_updated})")
    print(f"Status: {'fresh' if is_fresh(snapshot.last_updated, now) else 'stale'}")


def delete_cache(path: Path) -> None:
    """Delete the cache file so the next run scrapes again."""
    if CacheStore(path).delete():
        print(f"Deleted {path}")
    else:
        print(f"No cache file at {path}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage:")
        print("  python scripts/clean_cache.py stats [path]      # Show cache status")
        print("  python scripts/clean_cache.py delete [path]     # Delete the cache file")
        sys.exit(1)

    command = sys.argv[1]
    cache_path = Path(sys.argv[2]) if len(sys.argv) > 2 else config.CACHE_FILE

    if command == "stats":
        show_stats(cache_path)
    elif command == "delete":
        confirm = input(f"Delete {cache_path}? (yes/no): ")
        if confirm.lower() == "yes":
            delete_cache(cache_path)
        else:
            print("Cancelled")
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)
