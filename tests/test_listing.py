"""Tests for listing page preview extraction."""
import pytest
from gallery_scout.parse.listing import (
    dedupe_previews,
    extract_previews,
    parse_listing_page,
    slug_from_href,
)
from gallery_scout.parse.models import CompanyPreview


LISTING_HTML = """
<html><body>
  <nav><a href="/about">About</a></nav>
  <a href="/companies/acme"><h3> Acme Inc </h3><p>Widgets for everyone</p></a>
  <a href="https://startups.gallery/companies/globex"><h3>Globex</h3></a>
  <a href="/companies/acme"><h3>Acme Duplicate</h3><p>Other tagline</p></a>
  <a href="/companies/"><h3>No slug</h3></a>
  <a href="/companies/initech?ref=home"><div><h3>Initech</h3><p>TPS
  reports</p></div></a>
</body></html>
"""


def test_slug_from_href():
    """Final path segment, ignoring query strings."""
    assert slug_from_href("/companies/acme") == "acme"
    assert slug_from_href("https://startups.gallery/companies/acme?x=1") == "acme"
    assert slug_from_href("/companies/") == ""
    assert slug_from_href("") == ""


def test_extract_previews_reads_cards():
    """Name from h3, tagline from p, both trimmed; missing parts are empty."""
    previews = extract_previews(LISTING_HTML)
    assert [p.slug for p in previews] == ["acme", "globex", "acme", "", "initech"]
    assert previews[0].name == "Acme Inc"
    assert previews[0].tagline == "Widgets for everyone"
    assert previews[1].tagline == ""
    assert previews[4].tagline == "TPS reports"


def test_parse_listing_page_dedupes_first_wins():
    """Each slug once, first occurrence kept, empty slugs dropped, order preserved."""
    previews = parse_listing_page(LISTING_HTML)
    assert [p.slug for p in previews] == ["acme", "globex", "initech"]
    assert previews[0].name == "Acme Inc"
    assert previews[0].tagline == "Widgets for everyone"


def test_dedupe_previews_many_repeats():
    """Repeated slugs collapse to their first occurrence."""
    previews = [
        CompanyPreview(slug=f"co-{i % 3}", name=f"Company {i}", tagline=f"t{i}")
        for i in range(9)
    ]
    unique = dedupe_previews(previews)
    assert [p.slug for p in unique] == ["co-0", "co-1", "co-2"]
    assert [p.name for p in unique] == ["Company 0", "Company 1", "Company 2"]


@pytest.mark.parametrize("html", ["", "<html><body><p>Nothing</p></body></html>"])
def test_no_company_links(html):
    """Pages without company links give no previews."""
    assert parse_listing_page(html) == []
