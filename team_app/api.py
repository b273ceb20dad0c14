"""JSON endpoints consumed by the dashboard frontend.

Run with ``uvicorn team_app.api:app``. Caller identity is established by the
identity proxy in front of this service, which forwards the signed-in
user's email in the ``X-User-Email`` header.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, FastAPI, Header, Query
from fastapi.responses import JSONResponse

from team_app.core.auth import is_allowed, normalize_email
from team_app.core.config import SEARCH_MIN_QUERY_LENGTH, ConfigError, JiraSettings, load_settings
from team_app.core.jira_client import JiraAPI, JiraRequestError
from team_app.core.service import BoardService, FeedService, GroomingError, GroomingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["dashboard"])

# Process-wide clients, created on first use and reused for the process lifetime
_API_CACHE: dict[tuple[str, str, str, float], JiraAPI] = {}

NOT_CONFIGURED = "Jira API not configured. Add JIRA_HOST, JIRA_EMAIL, and JIRA_API_TOKEN to .env"


def get_settings() -> JiraSettings:
    return load_settings()


def get_api(settings: JiraSettings = Depends(get_settings)) -> JiraAPI | None:
    """Shared JiraAPI for the configured credentials, or None when misconfigured."""
    if not settings.is_configured:
        return None
    server, email, token = settings.require_credentials()
    key = (server, email, token, settings.cache_ttl)
    api = _API_CACHE.get(key)
    if api is None:
        api = JiraAPI(server, email, token, cache_ttl=settings.cache_ttl)
        _API_CACHE[key] = api
    return api


def error_response(message: str, status: int = 500, **extra) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status)


@router.get("/manager/grooming")
def grooming(
    x_user_email: str | None = Header(default=None),
    settings: JiraSettings = Depends(get_settings),
    api: JiraAPI | None = Depends(get_api),
):
    if not is_allowed(x_user_email, settings.allowed_emails):
        return error_response("Unauthorized", 401)
    if api is None:
        logger.error("Grooming route - misconfigured Jira environment")
        return error_response("Misconfigured Jira Env", 500)
    try:
        report = GroomingService(api, settings).build_report(settings.project_key)
    except GroomingError as exc:
        logger.error("Grooming route failed: %s", exc)
        return error_response(str(exc), 500)
    return report.to_dict()


@router.get("/jira/releases")
def releases(
    settings: JiraSettings = Depends(get_settings),
    api: JiraAPI | None = Depends(get_api),
):
    if api is None:
        return {"releases": [], "error": "Jira API not configured"}
    items, error = BoardService(api, settings).fetch_releases(settings.project_key)
    payload: dict = {"releases": [r.to_dict() for r in items]}
    if error:
        payload["error"] = error
    return payload


@router.get("/jira/sprint")
def sprint(
    board_type: str | None = Query(default=None, alias="type"),
    settings: JiraSettings = Depends(get_settings),
    api: JiraAPI | None = Depends(get_api),
):
    if api is None or not board_type or board_type not in settings.board_ids:
        return error_response(
            "Jira configuration missing. Check JIRA_HOST, JIRA_EMAIL, JIRA_API_TOKEN, and JIRA board ids.",
            500,
        )
    try:
        progress = BoardService(api, settings).fetch_sprint_progress(board_type)
    except ConfigError as exc:
        return error_response(str(exc), 500)
    except JiraRequestError as exc:
        logger.error("Jira sprint request failed (%s): %s", exc.status, exc.body)
        return error_response(f"Jira API error: {exc.status}", 500, details=exc.body)
    return progress.to_dict()


@router.get("/jira/blockers")
def due_soon(
    settings: JiraSettings = Depends(get_settings),
    api: JiraAPI | None = Depends(get_api),
):
    if api is None:
        return {"issues": [], "error": NOT_CONFIGURED}
    items, error = FeedService(api, settings).due_soon(settings.project_key)
    payload: dict = {"issues": [item.to_dict() for item in items]}
    if error:
        payload["error"] = error
    return payload


@router.get("/jira/needs-reply")
def needs_reply(
    x_user_email: str | None = Header(default=None),
    settings: JiraSettings = Depends(get_settings),
    api: JiraAPI | None = Depends(get_api),
):
    email = normalize_email(x_user_email)
    if not email:
        return error_response("Unauthorized", 401)
    if api is None:
        return {"issues": [], "error": NOT_CONFIGURED}
    items, error = FeedService(api, settings).needs_reply(email, settings.project_key)
    payload: dict = {"issues": [item.to_dict() for item in items]}
    if error:
        payload["error"] = error
    return payload


@router.get("/jira/search")
def search(
    q: str | None = Query(default=None),
    settings: JiraSettings = Depends(get_settings),
    api: JiraAPI | None = Depends(get_api),
):
    if not q or len(q.strip()) < SEARCH_MIN_QUERY_LENGTH:
        return {"issues": []}
    if api is None:
        logger.error("Issue search - missing Jira configuration")
        return error_response("Jira configuration missing", 500)
    return {"issues": [hit.to_dict() for hit in FeedService(api, settings).search_issues(q)]}


def create_app() -> FastAPI:
    app = FastAPI(title="Team Dashboard API")
    app.include_router(router)
    return app


app = create_app()
