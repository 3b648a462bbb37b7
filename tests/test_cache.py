"""Tests for the cache store and freshness predicate."""
from datetime import datetime, timedelta, timezone

import orjson
import pytest
from gallery_scout.errors import CacheMissError, PersistenceError
from gallery_scout.parse.models import CompanyRecord
from gallery_scout.store.cache import CacheStore, is_fresh

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_records():
    return [
        CompanyRecord(
            name="Acme Inc",
            slug="acme",
            tagline="Widgets for everyone",
            description="A long description",
            website_url="https://acme.example",
            team_size="11-50",
            funding_announcement="Raised $2M Seed on Jan 2024",
            last_fetched=NOW - timedelta(minutes=5),
            fully_scraped=True,
        ),
        CompanyRecord(name="Globex", slug="globex"),
    ]


@pytest.mark.asyncio
async def test_save_then_load_round_trip(tmp_path):
    """Loaded records equal the saved ones, stamped with the save time."""
    store = CacheStore(tmp_path / "cache.json", clock=lambda: NOW)
    records = make_records()

    saved = await store.save(records)
    loaded = await store.load()

    assert saved.last_updated == NOW
    assert loaded.last_updated == NOW
    assert loaded.startups == records


@pytest.mark.asyncio
async def test_file_layout(tmp_path):
    """The document has startups and last_updated keys with snake_case fields."""
    path = tmp_path / "cache.json"
    await CacheStore(path, clock=lambda: NOW).save(make_records())

    data = orjson.loads(path.read_bytes())
    assert set(data) == {"startups", "last_updated"}
    assert data["startups"][0]["slug"] == "acme"
    assert data["startups"][0]["funding_announcement"] == "Raised $2M Seed on Jan 2024"
    assert data["startups"][0]["fully_scraped"] is True
    assert datetime.fromisoformat(data["last_updated"].replace("Z", "+00:00")) == NOW


@pytest.mark.asyncio
async def test_save_overwrites_previous_content(tmp_path):
    """Each save replaces the whole collection."""
    store = CacheStore(tmp_path / "cache.json", clock=lambda: NOW)
    await store.save(make_records())
    await store.save([CompanyRecord(name="Initech", slug="initech")])

    loaded = await store.load()
    assert [r.slug for r in loaded.startups] == ["initech"]
    assert not (tmp_path / "cache.json.tmp").exists()


@pytest.mark.asyncio
async def test_load_missing_file(tmp_path):
    """No prior save is a cache miss."""
    with pytest.raises(CacheMissError):
        await CacheStore(tmp_path / "missing.json").load()


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [
    b"",
    b"not json at all",
    b"[1, 2, 3]",
    b'{"startups": "nope", "last_updated": "2026-03-01T12:00:00Z"}',
    b'{"startups": []}',
    b'{"last_updated": "2026-03-01T11:00:00Z", "unrelated": 1}',
    b'{"startups": [{"name": "No slug"}], "last_updated": "2026-03-01T12:00:00Z"}',
    b'{"startups": [{"slug": "a"}, {"slug": "a"}], "last_updated": "2026-03-01T12:00:00Z"}',
])
async def test_load_corrupt_file(tmp_path, content):
    """Unparseable or incompatible content is a cache miss, not a crash."""
    path = tmp_path / "cache.json"
    path.write_bytes(content)
    with pytest.raises(CacheMissError):
        await CacheStore(path).load()


@pytest.mark.asyncio
async def test_naive_timestamp_read_as_utc(tmp_path):
    """Timestamps without offset are interpreted as UTC."""
    path = tmp_path / "cache.json"
    path.write_bytes(b'{"startups": [], "last_updated": "2026-03-01T12:00:00"}')
    snapshot = await CacheStore(path).load()
    assert snapshot.last_updated == NOW


@pytest.mark.asyncio
async def test_save_failure_raises_persistence_error(tmp_path):
    """Unwritable location surfaces as PersistenceError."""
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    store = CacheStore(blocker / "cache.json")
    with pytest.raises(PersistenceError):
        await store.save(make_records())


def test_delete(tmp_path):
    """Deleting reports whether a file was removed."""
    path = tmp_path / "cache.json"
    path.write_bytes(b"{}")
    store = CacheStore(path)
    assert store.delete() is True
    assert store.delete() is False


def test_freshness_boundary():
    """Fresh strictly inside the 24h window, stale at or beyond it."""
    window = timedelta(hours=24)
    assert is_fresh(NOW - timedelta(hours=23, minutes=59), NOW, window)
    assert not is_fresh(NOW - timedelta(hours=24), NOW, window)
    assert not is_fresh(NOW - timedelta(hours=24, seconds=1), NOW, window)
