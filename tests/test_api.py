"""Tests for the FastAPI read surface."""
from datetime import datetime, timedelta, timezone

import orjson
import pytest
from fastapi.testclient import TestClient

from gallery_scout.api import main as api_main
from gallery_scout.api.main import app, get_runner
from gallery_scout.config import config
from gallery_scout.jobs.run_control import RunControl
from gallery_scout.jobs.runner import PipelineRunner
from gallery_scout.parse.models import CompanyPreview, RawDetailContent

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class StubFetcher:
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def list_previews(self):
        return [CompanyPreview(slug="initech", name="Initech", tagline="TPS reports")]

    async def fetch_detail(self, slug):
        return RawDetailContent(title="Initech | startups.gallery", text="Initech")


@pytest.fixture
def cache_file(tmp_path):
    path = tmp_path / "cache.json"
    payload = {
        "startups": [
            {"name": "Acme Inc", "slug": "acme", "tagline": "Widgets", "fully_scraped": True},
            {"name": "Globex", "slug": "globex"},
        ],
        "last_updated": (NOW - timedelta(hours=1)).isoformat(),
    }
    path.write_bytes(orjson.dumps(payload))
    return path


@pytest.fixture
def client(cache_file):
    runner = PipelineRunner(
        fetcher_factory=StubFetcher,
        cache_file=cache_file,
        clock=lambda: NOW,
    )
    app.dependency_overrides[get_runner] = lambda: runner
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    """Health check."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_startups_from_fresh_cache(client):
    """Fresh cache is served with its metadata."""
    response = client.get("/startups")
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert [s["slug"] for s in body["startups"]] == ["acme", "globex"]
    assert body["from_cache"] is True
    assert body["fresh"] is True


def test_get_startup_by_slug(client):
    """Lookup by slug; unknown slugs are 404."""
    assert client.get("/startups/acme").json()["name"] == "Acme Inc"
    assert client.get("/startups/nope").status_code == 404


def test_refresh_requires_api_key(client, monkeypatch):
    """With API_KEY configured, refresh needs the header."""
    monkeypatch.setattr(config, "API_KEY", "secret")
    assert client.post("/refresh").status_code == 403

    response = client.post("/refresh", headers={"X-API-KEY": "secret"})
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"


def test_refresh_replaces_cache(client, cache_file, monkeypatch):
    """The background refresh overwrites the cache with the new scrape."""
    monkeypatch.setattr(config, "API_KEY", None)
    assert client.post("/refresh").status_code == 200

    stored = orjson.loads(cache_file.read_bytes())
    assert [s["slug"] for s in stored["startups"]] == ["initech"]
    assert stored["startups"][0]["tagline"] == "TPS reports"


def test_cancel_refresh_route(client, monkeypatch):
    """Cancel route aborts every refresh registered on the runner."""
    monkeypatch.setattr(config, "API_KEY", None)
    runner = app.dependency_overrides[get_runner]()
    control = RunControl()
    runner._active_controls.add(control)

    response = client.post("/refresh/cancel")

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert control.cancelled is True


def test_shutdown_cancels_running_refreshes(cache_file, monkeypatch):
    """Stopping the app cancels refreshes on the shared runner."""
    runner = PipelineRunner(fetcher_factory=StubFetcher, cache_file=cache_file, clock=lambda: NOW)
    control = RunControl()
    runner._active_controls.add(control)
    monkeypatch.setattr(api_main, "_runner", runner)

    with TestClient(app):
        assert control.cancelled is False
    assert control.cancelled is True
