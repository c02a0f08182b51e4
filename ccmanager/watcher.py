"""File watcher service using watchfiles.

Watches the Claude directory and invalidates cached message lists when
session logs (or anything else) change.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from watchfiles import Change, awatch

from ccmanager import config
from ccmanager.parsers.sessions import SESSION_SUFFIX

logger = logging.getLogger("ccmanager.watcher")


class FileWatcher:
    """Background watcher that drives cache invalidation.

    Uses `watchfiles` (Rust-accelerated) for efficient watching.
    """

    def __init__(self):
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._running = False

    async def start(self, data_manager, watch_dir: Path) -> None:
        """Start watching `watch_dir` recursively in a background task."""
        if self._running:
            logger.warning("File watcher already running")
            return
        if not watch_dir.exists():
            logger.warning("Watch path %s does not exist, watcher not started", watch_dir)
            return

        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop(data_manager, watch_dir))
        logger.info("File watcher started for %s", watch_dir)

    async def stop(self) -> None:
        self._running = False
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("File watcher stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    async def _watch_loop(self, data_manager, watch_dir: Path) -> None:
        try:
            async for changes in awatch(
                watch_dir,
                debounce=config.WATCH_DEBOUNCE_MS,
                recursive=True,
                stop_event=self._stop_event,
            ):
                if not self._running:
                    break
                try:
                    await apply_changes(data_manager, changes)
                except Exception as e:
                    logger.error(f"Error invalidating caches: {e}")
        except asyncio.CancelledError:
            logger.info("File watcher task cancelled")
        except Exception as e:
            logger.error(f"File watcher error: {e}")
        finally:
            self._running = False


def classify_changes(changes: set[tuple[Change, str]]) -> tuple[set[str], bool]:
    """Split a change batch into changed session ids and a full-invalidation flag.

    A session log change only touches its own session; any other path, or a
    batch with no paths at all, invalidates everything.
    """
    session_ids: set[str] = set()
    invalidate_all = not changes
    for _change_type, path_str in changes:
        path = Path(path_str)
        if path.suffix == SESSION_SUFFIX and path.stem:
            session_ids.add(path.stem)
        else:
            invalidate_all = True
    return session_ids, invalidate_all


async def apply_changes(data_manager, changes: set[tuple[Change, str]]) -> None:
    session_ids, invalidate_all = classify_changes(changes)
    if invalidate_all:
        logger.debug("Non-session change detected, clearing message cache")
        await data_manager.invalidate_caches()
        return
    for session_id in sorted(session_ids):
        await data_manager.invalidate_session_cache(session_id)


# Singleton instance
file_watcher = FileWatcher()
