import json
import tempfile
import types
import unittest
from pathlib import Path

from fastapi import HTTPException

from ccmanager.data_manager import ClaudeDataManager
from ccmanager.errors import StorageIOError
from ccmanager.routers import api


class _FailingManager:
    async def list_sessions(self):
        raise StorageIOError("disk went away")


class ApiRouterTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.claude_dir = Path(tmpdir.name) / ".claude"
        project_dir = self.claude_dir / "projects" / "-code-app"
        project_dir.mkdir(parents=True)
        (project_dir / "s1.jsonl").write_text(
            json.dumps(
                {
                    "type": "user",
                    "uuid": "u1",
                    "timestamp": "2025-07-20T10:00:00Z",
                    "cwd": "/code/app",
                    "message": {"role": "user", "content": "hello"},
                }
            )
            + "\n",
            encoding="utf-8",
        )
        self.manager = ClaudeDataManager(self.claude_dir)

    def _request(self, data_manager=None):
        return types.SimpleNamespace(
            app=types.SimpleNamespace(state=types.SimpleNamespace(data_manager=data_manager))
        )

    async def test_missing_manager_is_503(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await api.list_sessions(self._request(None))
        self.assertEqual(ctx.exception.status_code, 503)

    async def test_list_and_messages(self) -> None:
        request = self._request(self.manager)

        sessions = await api.list_sessions(request)
        messages = await api.get_session_messages(request, "s1")

        self.assertEqual([s.project_path for s in sessions], ["/code/app"])
        self.assertEqual(messages[0].content, "hello")

    async def test_unknown_session_is_404(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await api.get_session_messages(self._request(self.manager), "nope")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_export_is_json_text(self) -> None:
        response = await api.export_session(self._request(self.manager), "s1")
        self.assertEqual(response.media_type, "application/json")
        self.assertEqual(json.loads(response.body)[0]["id"], "u1")

    async def test_file_outside_claude_is_403(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await api.read_file(self._request(self.manager), path=str(self.claude_dir.parent / "x.txt"))
        self.assertEqual(ctx.exception.status_code, 403)

    async def test_write_then_read_file(self) -> None:
        target = str(self.claude_dir / "commands" / "a.md")
        request = self._request(self.manager)

        await api.write_file(request, api.WriteFileRequest(path=target, content="body"))
        result = await api.read_file(request, path=target)

        self.assertEqual(result.content, "body")

    async def test_malformed_settings_is_422(self) -> None:
        (self.claude_dir / "settings.json").write_text("{", encoding="utf-8")
        with self.assertRaises(HTTPException) as ctx:
            await api.get_settings(self._request(self.manager))
        self.assertEqual(ctx.exception.status_code, 422)

    async def test_storage_failure_is_500(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await api.list_sessions(self._request(_FailingManager()))
        self.assertEqual(ctx.exception.status_code, 500)

    async def test_invalidate_cache(self) -> None:
        request = self._request(self.manager)
        await api.get_session_messages(request, "s1")

        result = await api.invalidate_cache(request, api.InvalidateRequest(sessionId="s1"))

        self.assertEqual(result["status"], "ok")
        self.assertEqual(await self.manager.cache.cached_session_ids(), [])

    async def test_stats_and_home(self) -> None:
        request = self._request(self.manager)
        stats = await api.get_stats(request)
        self.assertEqual(stats.total_sessions, 1)
        self.assertEqual(api.get_home_directory(request), {"path": str(Path.home())})


if __name__ == "__main__":
    unittest.main()
