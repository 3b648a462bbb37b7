"""Headless browser client with readiness waits, retries and rate limiting."""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from playwright.async_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gallery_scout.config import config
from gallery_scout.errors import FetchError
from gallery_scout.fetch.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class RenderedPage:
    """Content of a page after client-side rendering finished."""

    url: str
    title: str
    text: str
    html: str


class BrowserClient:
    """Renders pages in Playwright Chromium; one browser context per session."""

    def __init__(
        self,
        headless: Optional[bool] = None,
        rate_per_domain: Optional[float] = None,
        nav_timeout: Optional[int] = None,
        ready_timeout: Optional[int] = None,
        settle_timeout: Optional[int] = None,
    ):
        self.headless = config.HEADLESS if headless is None else headless
        self.nav_timeout_ms = (nav_timeout or config.NAV_TIMEOUT) * 1000
        self.ready_timeout_ms = (ready_timeout or config.READY_TIMEOUT) * 1000
        self.settle_timeout_ms = (config.SETTLE_TIMEOUT if settle_timeout is None else settle_timeout) * 1000
        self.rate_limiter = RateLimiter(
            config.RATE_PER_DOMAIN if rate_per_domain is None else rate_per_domain
        )
        self.pages_rendered = 0

        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Launch Chromium once; later calls are no-ops."""
        if self._context is not None:
            return
        logger.info(f"Starting Playwright Chromium browser (headless={self.headless})")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        self._context = await self._browser.new_context(
            user_agent=config.USER_AGENT,
            viewport={"width": 1440, "height": 900},
        )

    async def close(self) -> None:
        """Tear down context, browser and driver, in that order."""
        if self._context is not None:
            try:
                await self._context.close()
            except PlaywrightError as e:
                logger.warning(f"Error closing browser context: {e}")
            self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None

    async def render(self, url: str, ready_selector: str, slug: Optional[str] = None) -> RenderedPage:
        """
        Load a page and return its rendered content.

        Waits for `ready_selector` to be attached instead of sleeping a fixed
        delay. Navigation or readiness timeouts are retried; whatever is left
        is raised as FetchError.
        """
        if self._context is None:
            raise FetchError("Browser not started", url=url, slug=slug)
        try:
            page = await self._render_with_retries(url, ready_selector)
        except PlaywrightTimeoutError as e:
            raise FetchError(f"Timed out rendering page: {e}", url=url, slug=slug) from e
        except PlaywrightError as e:
            raise FetchError(f"Navigation failed: {e}", url=url, slug=slug) from e

        self.pages_rendered += 1
        return page

    @retry(
        stop=stop_after_attempt(config.MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(PlaywrightTimeoutError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _render_with_retries(self, url: str, ready_selector: str) -> RenderedPage:
        await self.rate_limiter.acquire(url)

        page = await self._context.new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
            await page.wait_for_selector(ready_selector, state="attached", timeout=self.ready_timeout_ms)
            await self._settle(page, url)

            return RenderedPage(
                url=page.url,
                title=await page.title(),
                text=await page.inner_text("body"),
                html=await page.content(),
            )
        finally:
            await page.close()

    async def _settle(self, page: Any, url: str) -> None:
        """Bounded idle-network wait so late client-side requests can land."""
        if not self.settle_timeout_ms:
            return
        try:
            await page.wait_for_load_state("networkidle", timeout=self.settle_timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug(f"Network not idle after {self.settle_timeout_ms}ms for {url}, reading anyway")
