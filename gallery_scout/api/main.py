"""FastAPI application exposing the cached company records."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, BackgroundTasks, Depends
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from gallery_scout.config import config
from gallery_scout.jobs.runner import PipelineRunner
from gallery_scout.parse.models import CompanyRecord, RecordsResult
from gallery_scout.store.cache import is_fresh

logger = logging.getLogger(__name__)

app = FastAPI(title="gallery-scout API", version="0.1.0")

# API Key security (if configured)
API_KEY_HEADER = APIKeyHeader(name="X-API-KEY", auto_error=False)

_runner: Optional[PipelineRunner] = None


def get_runner() -> PipelineRunner:
    """Shared runner so concurrent requests serialize cache writes."""
    global _runner
    if _runner is None:
        _runner = PipelineRunner()
    return _runner


def verify_api_key(api_key: Optional[str] = Depends(API_KEY_HEADER)) -> bool:
    """Verify API key if configured."""
    expected_key = config.API_KEY
    if expected_key:
        if not api_key or api_key != expected_key:
            raise HTTPException(status_code=403, detail="Invalid API key")
    return True


class StartupsResponse(BaseModel):
    """Records plus freshness metadata."""
    startups: list[CompanyRecord]
    count: int
    last_updated: Optional[datetime] = None
    from_cache: bool
    fresh: bool


class RefreshResponse(BaseModel):
    status: str
    message: str


def _to_response(result: RecordsResult, runner: PipelineRunner) -> StartupsResponse:
    fresh = bool(
        result.last_updated
        and is_fresh(result.last_updated, runner.clock(), runner.freshness)
    )
    return StartupsResponse(
        startups=result.records,
        count=len(result.records),
        last_updated=result.last_updated,
        from_cache=result.from_cache,
        fresh=fresh,
    )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/startups", response_model=StartupsResponse)
async def list_startups(runner: PipelineRunner = Depends(get_runner)):
    """Cached records, scraping first when the cache is missing or stale."""
    result = await runner.get_records()
    return _to_response(result, runner)


@app.get("/startups/{slug}", response_model=CompanyRecord)
async def get_startup(slug: str, runner: PipelineRunner = Depends(get_runner)):
    """One company by slug."""
    result = await runner.get_records()
    for record in result.records:
        if record.slug == slug:
            return record
    raise HTTPException(status_code=404, detail=f"Unknown company: {slug}")


@app.post("/refresh", response_model=RefreshResponse)
async def refresh(
    background_tasks: BackgroundTasks,
    runner: PipelineRunner = Depends(get_runner),
    _: bool = Depends(verify_api_key),
):
    """Start a forced refresh in the background."""
    background_tasks.add_task(_refresh_in_background, runner)
    return RefreshResponse(status="accepted", message="Refresh started")


@app.post("/refresh/cancel", response_model=RefreshResponse)
async def cancel_refresh(
    runner: PipelineRunner = Depends(get_runner),
    _: bool = Depends(verify_api_key),
):
    """Abort running refreshes; the cache keeps its previous content."""
    cancelled = runner.cancel()
    return RefreshResponse(status="cancelled", message=f"Cancelled {cancelled} refresh(es)")


@app.on_event("shutdown")
async def shutdown():
    """Abort in-flight refreshes so no partial scrape is written on exit."""
    if _runner is not None:
        cancelled = _runner.cancel()
        if cancelled:
            logger.info(f"Cancelled {cancelled} refresh(es) on shutdown")


async def _refresh_in_background(runner: PipelineRunner) -> None:
    result = await runner.get_records(force_refresh=True)
    logger.info(f"Background refresh finished with {len(result.records)} companies")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
