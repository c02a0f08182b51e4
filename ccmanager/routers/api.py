"""API routers exposing the session query interface."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ccmanager.errors import (
    AccessDeniedError,
    ClaudeDataError,
    DecodeError,
    NotFoundError,
)
from ccmanager.models import (
    ClaudeSession,
    ClaudeSettings,
    CommandLogEntry,
    FileContent,
    Message,
    ProjectSummary,
    SessionStats,
    TodoItem,
)

logger = logging.getLogger("ccmanager.api")

sessions_router = APIRouter(prefix="/api/sessions", tags=["sessions"])
commands_router = APIRouter(prefix="/api/commands", tags=["commands"])
projects_router = APIRouter(prefix="/api/projects", tags=["projects"])
claude_router = APIRouter(prefix="/api", tags=["claude"])


class WriteFileRequest(BaseModel):
    path: str
    content: str


class InvalidateRequest(BaseModel):
    sessionId: str | None = None


def _get_data_manager(request: Request):
    data_manager = getattr(request.app.state, "data_manager", None)
    if not data_manager:
        raise HTTPException(status_code=503, detail="Data manager not initialized")
    return data_manager


def _to_http_error(exc: ClaudeDataError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, AccessDeniedError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, DecodeError):
        logger.warning("Decode failure: %s", exc)
        return HTTPException(status_code=422, detail=str(exc))
    logger.error("Data access failure: %s", exc)
    return HTTPException(status_code=500, detail=str(exc))


# ── Sessions ───────────────────────────────────────────────────────

@sessions_router.get("", response_model=list[ClaudeSession])
async def list_sessions(request: Request):
    """List all sessions, newest conversation first."""
    try:
        return await _get_data_manager(request).list_sessions()
    except ClaudeDataError as e:
        raise _to_http_error(e)


@sessions_router.get("/changed", response_model=list[ClaudeSession])
async def list_changed_sessions(request: Request):
    """Sessions whose log file changed since the previous poll."""
    try:
        return await _get_data_manager(request).changed_sessions()
    except ClaudeDataError as e:
        raise _to_http_error(e)


@sessions_router.get("/search", response_model=list[ClaudeSession])
async def search_sessions(request: Request, q: str = Query("", description="Substring to match")):
    try:
        return await _get_data_manager(request).search_sessions(q)
    except ClaudeDataError as e:
        raise _to_http_error(e)


@sessions_router.get("/{session_id}/messages", response_model=list[Message])
async def get_session_messages(request: Request, session_id: str):
    """Full decoded message timeline for one session."""
    try:
        return await _get_data_manager(request).session_messages(session_id)
    except ClaudeDataError as e:
        raise _to_http_error(e)


@sessions_router.get("/{session_id}/export", response_class=PlainTextResponse)
async def export_session(request: Request, session_id: str):
    try:
        payload = await _get_data_manager(request).export_session_data(session_id)
    except ClaudeDataError as e:
        raise _to_http_error(e)
    return PlainTextResponse(payload, media_type="application/json")


# ── Commands ───────────────────────────────────────────────────────

@commands_router.get("", response_model=list[CommandLogEntry])
async def get_command_history(request: Request):
    try:
        return await _get_data_manager(request).command_history()
    except ClaudeDataError as e:
        raise _to_http_error(e)


@commands_router.get("/search", response_model=list[CommandLogEntry])
async def search_commands(request: Request, q: str = Query("", description="Substring to match")):
    try:
        return await _get_data_manager(request).search_commands(q)
    except ClaudeDataError as e:
        raise _to_http_error(e)


# ── Projects ───────────────────────────────────────────────────────

@projects_router.get("/summary", response_model=list[ProjectSummary])
async def get_project_summary(request: Request):
    """Per-project aggregates, most recently touched project first."""
    try:
        return await _get_data_manager(request).project_summary()
    except ClaudeDataError as e:
        raise _to_http_error(e)


@projects_router.get("/path-mapping", response_model=dict[str, str])
async def get_project_path_mapping(request: Request):
    try:
        return await _get_data_manager(request).project_path_mapping()
    except ClaudeDataError as e:
        raise _to_http_error(e)


# ── Todos, settings, stats, files ──────────────────────────────────

@claude_router.get("/todos", response_model=list[TodoItem])
async def get_todos(request: Request):
    try:
        return await _get_data_manager(request).todos()
    except ClaudeDataError as e:
        raise _to_http_error(e)


@claude_router.get("/settings", response_model=ClaudeSettings)
async def get_settings(request: Request):
    try:
        return await _get_data_manager(request).settings()
    except ClaudeDataError as e:
        raise _to_http_error(e)


@claude_router.get("/stats", response_model=SessionStats)
async def get_stats(request: Request):
    try:
        return await _get_data_manager(request).corpus_stats()
    except ClaudeDataError as e:
        raise _to_http_error(e)


@claude_router.get("/home")
def get_home_directory(request: Request):
    return {"path": _get_data_manager(request).home_directory()}


@claude_router.get("/files", response_model=FileContent)
async def read_file(request: Request, path: str = Query(..., min_length=1)):
    """Read a file that lives under a `.claude` directory."""
    try:
        content = await _get_data_manager(request).read_file(path)
    except ClaudeDataError as e:
        raise _to_http_error(e)
    return FileContent(path=path, content=content)


@claude_router.put("/files", response_model=FileContent)
async def write_file(request: Request, body: WriteFileRequest):
    """Write a file under a `.claude` directory, creating parent directories."""
    try:
        written = await _get_data_manager(request).write_file(body.path, body.content)
    except ClaudeDataError as e:
        raise _to_http_error(e)
    return FileContent(path=str(written), content=body.content)


@claude_router.post("/cache/invalidate")
async def invalidate_cache(request: Request, body: InvalidateRequest):
    data_manager = _get_data_manager(request)
    if body.sessionId:
        await data_manager.invalidate_session_cache(body.sessionId)
    else:
        await data_manager.invalidate_caches()
    return {"status": "ok", "sessionId": body.sessionId}
