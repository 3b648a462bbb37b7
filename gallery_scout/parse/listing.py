"""Extract company previews from the rendered listing page."""
import logging
from typing import Iterable
from urllib.parse import urlparse

from selectolax.parser import HTMLParser

from gallery_scout.parse.html_parser import node_text
from gallery_scout.parse.models import CompanyPreview

logger = logging.getLogger(__name__)

COMPANY_LINK_SELECTOR = 'a[href*="/companies/"]'


def slug_from_href(href: str) -> str:
    """Final path segment of a company link ("" for a trailing slash)."""
    if not href:
        return ""
    path = urlparse(href).path
    return path.split("/")[-1]


def extract_previews(html: str) -> list[CompanyPreview]:
    """Every company card on the page, duplicates included, in document order."""
    if not html:
        return []

    parser = HTMLParser(html)
    previews = []
    for card in parser.css(COMPANY_LINK_SELECTOR):
        previews.append(
            CompanyPreview(
                slug=slug_from_href(card.attributes.get("href") or ""),
                name=node_text(card.css_first("h3")),
                tagline=node_text(card.css_first("p")),
            )
        )
    return previews


def dedupe_previews(previews: Iterable[CompanyPreview]) -> list[CompanyPreview]:
    """Keep the first occurrence of each slug and drop cards without one."""
    seen: set[str] = set()
    unique = []
    for preview in previews:
        if not preview.slug or preview.slug in seen:
            continue
        seen.add(preview.slug)
        unique.append(preview)
    return unique


def parse_listing_page(html: str) -> list[CompanyPreview]:
    """Deduplicated previews from the listing page, in first-seen order."""
    found = extract_previews(html)
    unique = dedupe_previews(found)
    logger.debug(f"Listing page: {len(found)} company links, {len(unique)} unique slugs")
    return unique
