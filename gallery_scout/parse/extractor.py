"""
Turn raw detail-page content into a CompanyRecord.

Pure and deterministic: no I/O, never raises on content. Fields that
cannot be located stay empty.
"""
import logging
import re
from datetime import datetime
from enum import Enum
from typing import Optional

from gallery_scout.config import config
from gallery_scout.parse.models import CompanyRecord, RawDetailContent, utc_now

logger = logging.getLogger(__name__)

WEBSITE_LABEL = "Visit Website"
JOBS_LABEL = "View Jobs"

# href fragment -> record field
CATEGORY_FIELDS = (
    ("/categories/locations/", "location"),
    ("/categories/stages/", "funding_stage"),
    ("/categories/industries/", "industry"),
    ("/categories/work-type/", "work_type"),
)

TAGLINE_SKIP_MARKERS = ("Visit", "View", "Raised", "Backed by", "Get Updates")
SEPARATOR_GLYPH = "·"
DESCRIPTION_SKIP_MARKERS = ("Raised", "Posted on", "Explore similar")
TAGLINE_MAX_LEN = 100
DESCRIPTION_MIN_LEN = 100

FUNDING_ANNOUNCEMENT_RE = re.compile(
    r"Raised \$[\d.]+[MBK]+ (Seed|Series [A-Z]|Pre-Seed|Venture) on .+"
)
TEAM_SIZE_RE = re.compile(r"\b(\d+[-–]\d+)\b")


class ScanState(Enum):
    SEEKING_NAME = "seeking_name"
    SEEKING_TAGLINE = "seeking_tagline"
    SEEKING_DESCRIPTION = "seeking_description"
    DONE = "done"


def strip_site_suffix(title: str, suffix: Optional[str] = None) -> str:
    """Company name from the page title."""
    suffix = config.SITE_TITLE_SUFFIX if suffix is None else suffix
    if suffix and title.endswith(suffix):
        return title[: -len(suffix)]
    return title


def is_tagline_noise(line: str) -> bool:
    """Lines skipped outright while looking for the tagline."""
    return (
        not line
        or line == SEPARATOR_GLYPH
        or any(marker in line for marker in TAGLINE_SKIP_MARKERS)
    )


def is_description(line: str) -> bool:
    return len(line) > DESCRIPTION_MIN_LEN and not any(
        marker in line for marker in DESCRIPTION_SKIP_MARKERS
    )


def find_funding_announcement(lines: list[str]) -> str:
    """First line that is exactly a funding announcement."""
    for line in lines:
        if FUNDING_ANNOUNCEMENT_RE.fullmatch(line):
            return line
    return ""


def find_team_size(text: str) -> str:
    match = TEAM_SIZE_RE.search(text or "")
    return match.group(1) if match else ""


def scan_lines(lines: list[str], name: str) -> tuple[str, str]:
    """
    Walk the body lines once and return (tagline, description).

    Nothing is captured until a line equal to the company name is seen.
    After that the first short line that is not button/boilerplate text is
    the tagline, and the first long paragraph is the description, which
    also ends the scan.
    """
    state = ScanState.SEEKING_NAME
    tagline = ""
    description = ""

    for line in lines:
        if state is ScanState.DONE:
            break
        if line == name:
            if state is ScanState.SEEKING_NAME:
                state = ScanState.SEEKING_TAGLINE
            continue
        if state is ScanState.SEEKING_NAME:
            continue

        if state is ScanState.SEEKING_TAGLINE:
            if is_tagline_noise(line):
                continue
            if 1 < len(line) < TAGLINE_MAX_LEN:
                tagline = line
                state = ScanState.SEEKING_DESCRIPTION
                continue

        if is_description(line):
            description = line
            state = ScanState.DONE

    return tagline, description


def extract_company_record(
    slug: str,
    raw: RawDetailContent,
    fetched_at: Optional[datetime] = None,
) -> CompanyRecord:
    """Build a fully scraped CompanyRecord from a rendered detail page."""
    name = strip_site_suffix(raw.title)
    fields: dict[str, str] = {}

    if raw.images:
        fields["banner_url"] = raw.images[0].src
    if len(raw.images) > 1:
        fields["logo_url"] = raw.images[1].src

    for anchor in raw.anchors:
        text = anchor.text.strip()
        if text == WEBSITE_LABEL:
            fields["website_url"] = anchor.href
        elif text == JOBS_LABEL:
            fields["jobs_url"] = anchor.href
        # Last matching anchor wins
        for fragment, field_name in CATEGORY_FIELDS:
            if fragment in anchor.href:
                fields[field_name] = text
                break

    lines = [line.strip() for line in (raw.text or "").split("\n")]
    tagline, description = scan_lines(lines, name)

    record = CompanyRecord(
        name=name,
        slug=slug,
        tagline=tagline,
        description=description,
        funding_announcement=find_funding_announcement(lines),
        team_size=find_team_size(raw.text),
        fully_scraped=True,
        last_fetched=fetched_at or utc_now(),
        **fields,
    )

    if not name:
        logger.debug(f"No company name in page title for {slug}")
    if not description:
        logger.debug(f"No description paragraph found for {slug}")
    return record
