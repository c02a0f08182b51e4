"""ccmanager FastAPI backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ccmanager import __version__, config
from ccmanager.data_manager import ClaudeDataManager
from ccmanager.observability import initialize as initialize_observability, shutdown as shutdown_observability
from ccmanager.routers.api import (
    claude_router,
    commands_router,
    projects_router,
    sessions_router,
)
from ccmanager.watcher import file_watcher

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger("ccmanager")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("ccmanager starting up (claude dir: %s)", config.CLAUDE_DIR)
    initialize_observability(app)

    data_manager = ClaudeDataManager(config.CLAUDE_DIR)
    app.state.data_manager = data_manager
    if not data_manager.claude_dir.exists():
        logger.warning("Claude directory %s not found; listings will be empty", data_manager.claude_dir)

    if config.WATCH_ENABLED:
        await file_watcher.start(data_manager, data_manager.claude_dir)

    yield

    logger.info("ccmanager shutting down")
    await file_watcher.stop()
    shutdown_observability(app)


app = FastAPI(
    title="ccmanager API",
    description="Session browser and statistics API for Claude Code logs",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:1420",
        "tauri://localhost",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sessions_router)
app.include_router(commands_router)
app.include_router(projects_router)
app.include_router(claude_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "claudeDir": str(config.CLAUDE_DIR),
        "watcher": "running" if file_watcher.is_running else "stopped",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ccmanager.main:app", host=config.HOST, port=config.PORT)
