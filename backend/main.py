import logging
import threading
import uuid
from typing import Any
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from backend.app.config import get_settings, setup_logging
from backend.app.errors import (
    InvalidCriteriaError,
    MissingAPIKeyError,
    StaleSearchError,
    UpstreamError,
    YouTubeQuotaExceededError,
)
from backend.app.models import SearchCriteria, SearchPage
from backend.app.services.csv_export import export_csv, export_filename
from backend.app.services.locales import supported_locales
from backend.app.services.pagination import MAX_PAGES, PaginationSession
from backend.app.services.pipeline import search
from backend.app.services.translation import translate_keyword

logger = logging.getLogger(__name__)

SESSION_LIMIT = 200
SESSIONS: dict[str, PaginationSession] = {}
SESSIONS_LOCK = threading.Lock()


class SearchRequest(SearchCriteria):
    page_token: str | None = None
    translate: bool = True


class SessionRequest(SearchCriteria):
    translate: bool = True


def resolve_keyword(criteria: SearchCriteria, translate: bool) -> str:
    if not translate:
        return criteria.keyword
    return translate_keyword(criteria.keyword, criteria.country)


def register_session(session: PaginationSession) -> str:
    session_id = uuid.uuid4().hex[:16]
    with SESSIONS_LOCK:
        SESSIONS[session_id] = session
        while len(SESSIONS) > SESSION_LIMIT:
            oldest = next(iter(SESSIONS))
            SESSIONS.pop(oldest, None)
    return session_id


def get_session(session_id: str) -> PaginationSession:
    with SESSIONS_LOCK:
        session = SESSIONS.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Search session not found")
    return session


def session_payload(session_id: str, session: PaginationSession, page: SearchPage) -> dict[str, Any]:
    payload = page.to_payload()
    payload["session_id"] = session_id
    payload["meta"] = {
        "keyword": session.criteria.keyword if session.criteria else None,
        "translatedKeyword": session.translated_keyword,
        "currentPage": session.current_page,
        "availablePages": session.available_pages(),
        "maxPages": MAX_PAGES,
        "count": len(page.records),
    }
    return payload


app = FastAPI()

settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup_configure_logging():
    setup_logging(get_settings().log_level)


@app.exception_handler(YouTubeQuotaExceededError)
async def youtube_quota_exceeded_handler(_request: Request, _exc: YouTubeQuotaExceededError):
    return JSONResponse(
        status_code=429,
        content={
            "detail": "YouTube API quota is currently exhausted. Please try again later.",
            "error_code": "youtube_quota_exhausted",
        },
    )


@app.exception_handler(UpstreamError)
async def youtube_upstream_error_handler(_request: Request, exc: UpstreamError):
    return JSONResponse(
        status_code=502,
        content={
            "detail": "Could not fetch YouTube data right now.",
            "error_code": exc.error_code,
            "stage": exc.stage,
        },
    )


@app.exception_handler(InvalidCriteriaError)
async def invalid_criteria_handler(_request: Request, exc: InvalidCriteriaError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(StaleSearchError)
async def stale_search_handler(_request: Request, exc: StaleSearchError):
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "error_code": "search_superseded"},
    )


@app.exception_handler(MissingAPIKeyError)
async def missing_api_key_handler(_request: Request, exc: MissingAPIKeyError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/locales")
def locales():
    return {"items": supported_locales()}


@app.post("/search")
def run_search(payload: SearchRequest):
    """
    One page of results, no session state. Callers thread nextPageToken
    back through page_token themselves.
    """
    keyword = resolve_keyword(payload, payload.translate)
    page = search(payload, keyword, payload.page_token)
    resp = page.to_payload()
    resp["meta"] = {
        "keyword": payload.keyword,
        "translatedKeyword": keyword,
        "count": len(page.records),
    }
    return resp


@app.post("/sessions")
def create_session(payload: SessionRequest):
    # Translated once here; page turns reuse it.
    keyword = resolve_keyword(payload, payload.translate)
    session = PaginationSession()
    page = session.new_search(payload, keyword)
    session_id = register_session(session)
    return session_payload(session_id, session, page)


@app.get("/sessions/{session_id}/pages/{page}")
def goto_session_page(session_id: str, page: int):
    session = get_session(session_id)
    result = session.goto_page(page)
    if result is None:
        raise HTTPException(
            status_code=409,
            detail=(
                f"Page {page} is not available. "
                f"Known pages: {', '.join(str(p) for p in session.available_pages())}; "
                f"current page: {session.current_page}"
            ),
        )
    return session_payload(session_id, session, result)


@app.get("/sessions/{session_id}/export.csv")
def export_session_page(session_id: str):
    session = get_session(session_id)
    if session.last_page is None or session.criteria is None:
        raise HTTPException(status_code=404, detail="Nothing to export yet")
    filename = export_filename(session.criteria.keyword)
    return Response(
        content=export_csv(session.last_page.records).encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@app.delete("/sessions/{session_id}")
def delete_session(session_id: str):
    with SESSIONS_LOCK:
        removed = SESSIONS.pop(session_id, None)
    if removed is None:
        raise HTTPException(status_code=404, detail="Search session not found")
    return {"ok": True}
