"""Tests for run control and rate limiting."""
import asyncio
import time

import pytest
from gallery_scout.fetch.endpoints import get_company_url
from gallery_scout.fetch.rate_limit import RateLimiter
from gallery_scout.jobs.run_control import RunControl


def test_cap_keeps_first_items():
    """cap() keeps the first max_companies items in order."""
    control = RunControl(max_companies=3)
    assert control.cap(list(range(10))) == [0, 1, 2]
    assert control.cap([1]) == [1]


def test_should_stop_on_errors():
    """max_errors is a soft stop."""
    control = RunControl(max_errors=2)
    assert control.should_stop() == (False, None)
    control.record_error()
    control.record_error()
    should_stop, reason = control.should_stop()
    assert should_stop is True
    assert "max_errors" in reason


def test_consecutive_errors_reset_on_success():
    """max_consecutive_errors only counts failures in a row."""
    control = RunControl(max_consecutive_errors=2)
    control.record_error()
    control.record_success()
    control.record_error()
    assert control.should_stop() == (False, None)
    control.record_error()
    should_stop, reason = control.should_stop()
    assert should_stop is True
    assert "max_consecutive_errors" in reason


def test_should_stop_after_time_budget():
    """stop_after_minutes is measured from start_time."""
    control = RunControl(stop_after_minutes=1, start_time=time.time() - 120)
    should_stop, reason = control.should_stop()
    assert should_stop is True
    assert "stop_after_minutes" in reason


@pytest.mark.asyncio
async def test_cancel_sets_flag_and_wakes_waiters():
    """cancel() is visible to should_stop() and wait_cancelled()."""
    control = RunControl()
    waiter = asyncio.create_task(control.wait_cancelled())
    control.cancel()
    await asyncio.wait_for(waiter, timeout=1)
    assert control.cancelled is True
    assert control.should_stop() == (True, "cancelled")


def test_company_url_escapes_slug():
    """Slugs are inserted into the detail URL template."""
    assert get_company_url("acme") == "https://startups.gallery/companies/acme"
    assert get_company_url("a/b") == "https://startups.gallery/companies/a%2Fb"


@pytest.mark.asyncio
async def test_rate_limiter_spaces_same_domain():
    """Two loads on one domain are at least min_interval apart."""
    limiter = RateLimiter(rate_per_second=20)
    start = time.monotonic()
    await limiter.acquire("https://startups.gallery/a")
    await limiter.acquire("https://startups.gallery/b")
    assert time.monotonic() - start >= 0.045


@pytest.mark.asyncio
async def test_rate_limiter_disabled():
    """A rate of zero never waits."""
    limiter = RateLimiter(rate_per_second=0)
    start = time.monotonic()
    for _ in range(5):
        await limiter.acquire("https://startups.gallery")
    assert time.monotonic() - start < 0.05
