import unittest

from watchfiles import Change

from ccmanager.watcher import FileWatcher, apply_changes, classify_changes


class _RecordingManager:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str | None]] = []

    async def invalidate_caches(self) -> None:
        self.calls.append(("all", None))

    async def invalidate_session_cache(self, session_id: str) -> None:
        self.calls.append(("session", session_id))


class ChangeClassificationTests(unittest.TestCase):
    def test_session_logs_map_to_their_stem(self) -> None:
        ids, invalidate_all = classify_changes(
            {
                (Change.modified, "/h/.claude/projects/-a/s1.jsonl"),
                (Change.added, "/h/.claude/projects/-b/s2.jsonl"),
            }
        )
        self.assertEqual(ids, {"s1", "s2"})
        self.assertFalse(invalidate_all)

    def test_other_paths_invalidate_everything(self) -> None:
        ids, invalidate_all = classify_changes(
            {
                (Change.modified, "/h/.claude/projects/-a/s1.jsonl"),
                (Change.modified, "/h/.claude/settings.json"),
            }
        )
        self.assertEqual(ids, {"s1"})
        self.assertTrue(invalidate_all)

    def test_empty_batch_invalidates_everything(self) -> None:
        self.assertEqual(classify_changes(set()), (set(), True))


class ApplyChangesTests(unittest.IsolatedAsyncioTestCase):
    async def test_session_changes_are_targeted(self) -> None:
        manager = _RecordingManager()
        await apply_changes(
            manager,
            {
                (Change.modified, "/p/b.jsonl"),
                (Change.deleted, "/p/a.jsonl"),
            },
        )
        self.assertEqual(manager.calls, [("session", "a"), ("session", "b")])

    async def test_mixed_batch_clears_all_once(self) -> None:
        manager = _RecordingManager()
        await apply_changes(manager, {(Change.modified, "/p/a.jsonl"), (Change.added, "/todos/x.json")})
        self.assertEqual(manager.calls, [("all", None)])

    async def test_start_on_missing_directory_does_not_run(self) -> None:
        from pathlib import Path

        watcher = FileWatcher()
        await watcher.start(_RecordingManager(), Path("/definitely/not/here"))
        self.assertFalse(watcher.is_running)
        await watcher.stop()


if __name__ == "__main__":
    unittest.main()
