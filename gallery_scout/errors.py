"""Exception types raised by the scrape-extract-cache pipeline."""
from pathlib import Path
from typing import Optional


class ScoutError(Exception):
    """Base class for all gallery_scout errors."""


class FetchError(ScoutError):
    """A listing or detail page could not be rendered."""

    def __init__(self, message: str, url: Optional[str] = None, slug: Optional[str] = None):
        super().__init__(message)
        self.url = url
        self.slug = slug

    def __str__(self) -> str:
        context = self.slug or self.url
        base = super().__str__()
        return f"{base} ({context})" if context else base


class CacheMissError(ScoutError):
    """No usable cache snapshot: absent, unreadable or malformed."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class PersistenceError(ScoutError):
    """Writing the cache snapshot failed."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path
