"""HTTP boundary: scrape endpoint and error-tag to status mapping."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tokscope.errors import ErrorKind, ScrapeError, ScrapeExhausted
from tokscope.scraper import TikTokScraper

logger = logging.getLogger(__name__)

API_TITLE = "tokscope"
API_VERSION = "0.1.0"

# One row per ErrorKind; test_api checks the table stays exhaustive.
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.PROFILE_NOT_FOUND: 404,
    ErrorKind.PROFILE_PRIVATE: 403,
    ErrorKind.PROXY_CONNECTION_FAILED: 502,
    ErrorKind.TUNNEL_CONNECTION_FAILED: 502,
    ErrorKind.CONNECTION_REFUSED: 503,
    ErrorKind.NETWORK_ERROR: 503,
    ErrorKind.CONNECTION_TIMED_OUT: 504,
    ErrorKind.NAVIGATION_TIMEOUT: 504,
    ErrorKind.BOT_DETECTION_SUSPECTED: 429,
    ErrorKind.SCRAPE_EXHAUSTED: 500,
}


class ScrapeRequest(BaseModel):
    username: str = ""
    user_id: str = ""


def status_for(error: ScrapeError) -> int:
    """HTTP status for *error*; exhaustion reports its last cause."""
    kind = error.kind
    if isinstance(error, ScrapeExhausted) and error.cause_kind is not None:
        kind = error.cause_kind
    return STATUS_BY_KIND[kind]


def error_body(error: ScrapeError) -> dict[str, Any]:
    return {
        "error": str(error),
        "kind": error.kind.value,
        "suggestion": error.suggestion,
    }


def create_app(scraper: TikTokScraper | None = None) -> FastAPI:
    """Build the API; *scraper* defaults to one configured from the environment."""
    app = FastAPI(title=API_TITLE, version=API_VERSION)
    app.state.scraper = scraper

    def get_scraper(request: Request) -> TikTokScraper:
        if request.app.state.scraper is None:
            request.app.state.scraper = TikTokScraper()
        return request.app.state.scraper

    @app.exception_handler(ScrapeError)
    async def handle_scrape_error(request: Request, exc: ScrapeError) -> JSONResponse:
        status = status_for(exc)
        logger.info("Scrape failed with %s -> %d: %s", exc.kind.value, status, exc)
        return JSONResponse(status_code=status, content=error_body(exc))

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/scrape")
    async def scrape(
        body: ScrapeRequest, scraper: TikTokScraper = Depends(get_scraper),
    ) -> dict[str, Any]:
        username = body.username.strip().removeprefix("@")
        user_id = body.user_id.strip()
        if not username or not user_id:
            raise HTTPException(status_code=400, detail="Username and userId are required")

        snapshot = await scraper.scrape(username)
        trend = {
            "id": f"{snapshot.username}_{int(time.time() * 1000)}",
            "user_id": user_id,
            **snapshot.model_dump(mode="json"),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        return {"success": True, "trend": trend}

    return app


app = create_app()
