"""In-memory caches shared by concurrent queries.

Two independent tables, each behind its own lock: decoded message lists
keyed by session id, and the last-seen mtime of every session log used by
the incremental ``changed_sessions`` query. Callers only ever get copies.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

from ccmanager.models import Message

logger = logging.getLogger("ccmanager.cache")


def _clone_messages(messages: list[Message]) -> list[Message]:
    return [message.model_copy(deep=True) for message in messages]


class SessionCache:
    def __init__(self) -> None:
        self._messages: dict[str, list[Message]] = {}
        self._messages_lock = asyncio.Lock()
        self._file_timestamps: dict[Path, datetime] = {}
        self._timestamps_lock = asyncio.Lock()

    async def get_messages(
        self,
        session_id: str,
        loader: Callable[[], Awaitable[list[Message]]],
    ) -> list[Message]:
        """Return cached messages for a session, decoding them on first use."""
        async with self._messages_lock:
            cached = self._messages.get(session_id)
            if cached is not None:
                return _clone_messages(cached)

        messages = await loader()

        async with self._messages_lock:
            self._messages[session_id] = messages
            return _clone_messages(messages)

    async def invalidate(self, session_id: str | None = None) -> None:
        """Drop one session's messages, or everything when no id is given."""
        async with self._messages_lock:
            if session_id is None:
                count = len(self._messages)
                self._messages.clear()
                logger.debug("Cleared message cache (%d sessions)", count)
            elif self._messages.pop(session_id, None) is not None:
                logger.debug("Invalidated message cache for session %s", session_id)

    async def cached_session_ids(self) -> list[str]:
        async with self._messages_lock:
            return sorted(self._messages)

    @asynccontextmanager
    async def file_timestamps(self) -> AsyncIterator[dict[Path, datetime]]:
        """Exclusive access to the path → last-seen mtime table."""
        async with self._timestamps_lock:
            yield self._file_timestamps
