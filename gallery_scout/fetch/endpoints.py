"""URL builders for startups.gallery pages."""
from urllib.parse import quote

from gallery_scout.config import config


def get_listing_url() -> str:
    """The directory page listing every company card."""
    return config.LISTING_URL


def get_company_url(slug: str) -> str:
    """Detail page URL for a company slug."""
    return config.DETAIL_URL_TEMPLATE.format(slug=quote(slug, safe=""))
