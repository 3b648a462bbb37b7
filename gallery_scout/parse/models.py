"""Data models for scraped companies and the cache snapshot."""
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Interpret naive timestamps as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CompanyPreview(BaseModel):
    """Lightweight company card found on the listing page."""

    slug: str
    name: str = ""
    tagline: str = ""


class Anchor(BaseModel):
    text: str = ""
    href: str = ""


class Image(BaseModel):
    src: str = ""
    alt: str = ""


class RawDetailContent(BaseModel):
    """Everything read from a rendered detail page, before interpretation."""

    title: str = ""
    text: str = ""
    anchors: list[Anchor] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)


class CompanyRecord(BaseModel):
    """Company record extracted from a startups.gallery detail page."""

    name: str = ""
    slug: str = Field(..., min_length=1, description="Company slug (primary key)")
    tagline: str = ""
    description: str = ""
    banner_url: str = ""
    logo_url: str = ""
    website_url: str = ""
    jobs_url: str = ""
    location: str = ""
    funding_stage: str = ""
    industry: str = ""
    work_type: str = ""
    team_size: str = Field(default="", description="Free-text range, e.g. 11-50")
    funding_announcement: str = ""
    last_fetched: Optional[datetime] = None
    fully_scraped: bool = Field(default=False, description="True only when the detail page was parsed")

    @field_validator("last_fetched")
    @classmethod
    def normalize_last_fetched(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class CacheSnapshot(BaseModel):
    """The persisted collection plus the moment it was written."""

    startups: list[CompanyRecord]
    last_updated: datetime

    @field_validator("last_updated")
    @classmethod
    def normalize_last_updated(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @model_validator(mode="after")
    def check_unique_slugs(self) -> "CacheSnapshot":
        seen: set[str] = set()
        for record in self.startups:
            if record.slug in seen:
                raise ValueError(f"duplicate slug in snapshot: {record.slug}")
            seen.add(record.slug)
        return self


class RecordsResult(BaseModel):
    """Records handed to the presentation layer, with freshness metadata."""

    records: list[CompanyRecord] = Field(default_factory=list)
    last_updated: Optional[datetime] = None
    from_cache: bool = False
    cancelled: bool = False
