"""Listing and detail page retrieval for startups.gallery."""
import logging
from typing import Optional

from gallery_scout.config import config
from gallery_scout.fetch.client import BrowserClient
from gallery_scout.fetch.endpoints import get_company_url, get_listing_url
from gallery_scout.parse.html_parser import parse_detail_page
from gallery_scout.parse.listing import parse_listing_page
from gallery_scout.parse.models import CompanyPreview, RawDetailContent

logger = logging.getLogger(__name__)


class GalleryFetcher:
    """Preview lister and detail fetcher sharing one browser session."""

    def __init__(self, client: Optional[BrowserClient] = None):
        self.client = client or BrowserClient()

    async def __aenter__(self):
        await self.client.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.close()

    async def list_previews(self) -> list[CompanyPreview]:
        """Deduplicated company previews from the listing page. Raises FetchError."""
        url = get_listing_url()
        page = await self.client.render(url, config.LISTING_READY_SELECTOR)
        previews = parse_listing_page(page.html)
        logger.info(f"Found {len(previews)} companies on {url}")
        return previews

    async def fetch_detail(self, slug: str) -> RawDetailContent:
        """Raw content of one company page. Raises FetchError carrying the slug."""
        url = get_company_url(slug)
        page = await self.client.render(url, config.DETAIL_READY_SELECTOR, slug=slug)
        return parse_detail_page(page.html, page.url, title=page.title, text=page.text)
