"""Read-mostly query interface over the Claude data directory."""
from __future__ import annotations

import asyncio
import json
import logging
from collections import Counter
from datetime import datetime
from pathlib import Path

from ccmanager import config, file_access
from ccmanager.cache import SessionCache
from ccmanager.date_utils import file_modified_datetime
from ccmanager.errors import NotFoundError, StorageIOError
from ccmanager.models import (
    ClaudeSession,
    ClaudeSettings,
    CommandLogEntry,
    IdeInfo,
    Message,
    ProjectSummary,
    SessionStats,
    TodoItem,
)
from ccmanager.parsers import history
from ccmanager.parsers.ide import load_ide_infos, match_ide_info
from ccmanager.parsers.projects import build_project_path_mapping, list_project_dirs
from ccmanager.parsers.sessions import (
    SESSION_SUFFIX,
    list_session_files,
    parse_messages_file,
    parse_session_file,
)
from ccmanager.parsers.settings import load_settings
from ccmanager.parsers.todos import load_todos

logger = logging.getLogger("ccmanager")

# (log file, session id, resolved project path)
SessionFileRef = tuple[Path, str, str]


class ClaudeDataManager:
    """Builds session, project and corpus views from the Claude directory.

    Every listing re-reads the filesystem; only per-session message lists
    and the mtime table behind ``changed_sessions`` are cached.
    """

    def __init__(
        self,
        claude_dir: Path | None = None,
        preview_chars: int | None = None,
        cwd_sniff_lines: int | None = None,
    ):
        self.claude_dir = Path(claude_dir) if claude_dir else config.CLAUDE_DIR
        self.preview_chars = config.PREVIEW_MAX_CHARS if preview_chars is None else preview_chars
        self.cwd_sniff_lines = config.CWD_SNIFF_LINES if cwd_sniff_lines is None else cwd_sniff_lines
        self.cache = SessionCache()

    @property
    def projects_dir(self) -> Path:
        return self.claude_dir / config.PROJECTS_DIRNAME

    @property
    def todos_dir(self) -> Path:
        return self.claude_dir / config.TODOS_DIRNAME

    @property
    def ide_dir(self) -> Path:
        return self.claude_dir / config.IDE_DIRNAME

    @property
    def settings_file(self) -> Path:
        return self.claude_dir / config.SETTINGS_FILENAME

    @property
    def command_history_file(self) -> Path:
        return self.claude_dir / config.COMMAND_HISTORY_FILENAME

    # ── Sessions ───────────────────────────────────────────────────

    def _session_file_refs(self) -> list[SessionFileRef]:
        mapping = build_project_path_mapping(self.projects_dir, self.cwd_sniff_lines)
        refs: list[SessionFileRef] = []
        for dir_name, project_path in mapping.items():
            for session_file in list_session_files(self.projects_dir / dir_name):
                refs.append((session_file, session_file.stem, project_path))
        return refs

    async def _parse_session(self, ref: SessionFileRef) -> ClaudeSession:
        path, session_id, project_path = ref
        return await asyncio.to_thread(parse_session_file, path, session_id, project_path, self.preview_chars)

    @staticmethod
    def _attach_ide_info(sessions: list[ClaudeSession], ide_infos: list[IdeInfo]) -> None:
        if not ide_infos:
            return
        for session in sessions:
            session.ide_info = match_ide_info(session.project_path, ide_infos)

    async def list_sessions(self) -> list[ClaudeSession]:
        """All sessions, newest conversation first (by first timestamp)."""
        refs = await asyncio.to_thread(self._session_file_refs)
        sessions = list(await asyncio.gather(*(self._parse_session(ref) for ref in refs)))
        self._attach_ide_info(sessions, await asyncio.to_thread(load_ide_infos, self.ide_dir))
        sessions.sort(key=lambda s: s.first_timestamp, reverse=True)
        return sessions

    async def changed_sessions(self) -> list[ClaudeSession]:
        """Sessions whose log file changed since the previous call.

        The first call reports every session. Only the mtime is compared;
        any change means a full re-parse of that file. The mtime table is
        only updated when the whole poll succeeds, so a failed poll is
        reported again in full on the next call.
        """
        refs = await asyncio.to_thread(self._session_file_refs)
        changed: list[ClaudeSession] = []
        async with self.cache.file_timestamps() as seen:
            observed: dict[Path, datetime] = {}
            for ref in refs:
                path = ref[0]
                try:
                    current = await asyncio.to_thread(file_modified_datetime, path)
                except OSError as exc:
                    raise StorageIOError(f"Cannot stat session log {path}: {exc}") from exc
                last_known = seen.get(path)
                if last_known is not None and current <= last_known:
                    observed[path] = last_known
                    continue
                observed[path] = current
                changed.append(await self._parse_session(ref))

            # logs deleted since the last poll drop out of the table
            seen.clear()
            seen.update(observed)

        if changed:
            self._attach_ide_info(changed, await asyncio.to_thread(load_ide_infos, self.ide_dir))
            logger.info("Detected %d changed sessions", len(changed))
        changed.sort(key=lambda s: s.first_timestamp, reverse=True)
        return changed

    def _find_session_file(self, session_id: str) -> Path:
        invalid = not session_id or session_id in {".", ".."} or "/" in session_id or "\\" in session_id
        if not invalid:
            for project_dir in list_project_dirs(self.projects_dir):
                candidate = project_dir / f"{session_id}{SESSION_SUFFIX}"
                if candidate.is_file():
                    return candidate
        raise NotFoundError(f"Session file not found for ID: {session_id}")

    async def session_messages(self, session_id: str) -> list[Message]:
        async def _load() -> list[Message]:
            path = await asyncio.to_thread(self._find_session_file, session_id)
            return await asyncio.to_thread(parse_messages_file, path, session_id)

        return await self.cache.get_messages(session_id, _load)

    async def search_sessions(self, query: str) -> list[ClaudeSession]:
        needle = query.lower()
        return [
            session
            for session in await self.list_sessions()
            if needle in session.project_path.lower()
            or needle in session.session_id.lower()
            or (session.git_branch is not None and needle in session.git_branch.lower())
        ]

    async def export_session_data(self, session_id: str) -> str:
        messages = await self.session_messages(session_id)
        return json.dumps(
            [message.model_dump(mode="json") for message in messages],
            indent=2,
            ensure_ascii=False,
        )

    async def project_path_mapping(self) -> dict[str, str]:
        return await asyncio.to_thread(
            build_project_path_mapping, self.projects_dir, self.cwd_sniff_lines
        )

    # ── Cache invalidation (driven by the file watcher) ─────────────

    async def invalidate_caches(self) -> None:
        await self.cache.invalidate()

    async def invalidate_session_cache(self, session_id: str) -> None:
        await self.cache.invalidate(session_id)

    # ── Side files ─────────────────────────────────────────────────

    async def command_history(self) -> list[CommandLogEntry]:
        return await asyncio.to_thread(history.load_command_history, self.command_history_file)

    async def search_commands(self, query: str) -> list[CommandLogEntry]:
        return history.search_commands(await self.command_history(), query)

    async def todos(self) -> list[TodoItem]:
        return await asyncio.to_thread(load_todos, self.todos_dir)

    async def settings(self) -> ClaudeSettings:
        return await asyncio.to_thread(load_settings, self.settings_file)

    async def read_file(self, path: str) -> str:
        return await asyncio.to_thread(file_access.read_file, path)

    async def write_file(self, path: str, content: str) -> Path:
        return await asyncio.to_thread(file_access.write_file, path, content)

    @staticmethod
    def home_directory() -> str:
        return str(Path.home())

    # ── Aggregates ─────────────────────────────────────────────────

    async def project_summary(self) -> list[ProjectSummary]:
        """One summary per resolved project path, most recently touched first.

        Recency is the newest log file mtime, not any timestamp inside the
        logs.
        """
        sessions = await self.list_sessions()
        todos = await self.todos()
        open_todos = Counter(t.session_id for t in todos if t.is_open and t.session_id)

        summaries: dict[str, ProjectSummary] = {}
        for session in sessions:
            summary = summaries.get(session.project_path)
            if summary is None:
                summary = ProjectSummary(
                    project_path=session.project_path,
                    last_activity=session.file_modified_time,
                    latest_message=session.latest_content_preview,
                    ide_info=session.ide_info,
                )
                summaries[session.project_path] = summary
            elif session.file_modified_time > summary.last_activity:
                summary.last_activity = session.file_modified_time
                summary.latest_message = session.latest_content_preview

            summary.session_count += 1
            summary.total_messages += session.message_count
            summary.active_todos += open_todos.get(session.session_id, 0)

        return sorted(summaries.values(), key=lambda s: s.last_activity, reverse=True)

    async def corpus_stats(self) -> SessionStats:
        sessions, commands, todos = await asyncio.gather(
            self.list_sessions(),
            self.command_history(),
            self.todos(),
        )
        return SessionStats(
            total_sessions=len(sessions),
            total_messages=sum(s.message_count for s in sessions),
            total_commands=len(commands),
            active_projects=len({s.project_path for s in sessions}),
            pending_todos=sum(1 for t in todos if t.is_open),
        )
