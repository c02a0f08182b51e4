import json
import tempfile
import unittest
from pathlib import Path

from ccmanager.parsers.projects import (
    build_project_path_mapping,
    decode_project_dir_name,
    resolve_project_path,
    sniff_cwd,
)


class ProjectResolverTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.projects_dir = Path(tmpdir.name) / "projects"
        self.projects_dir.mkdir()

    def _write(self, dir_name: str, file_name: str, records: list[dict]) -> Path:
        project_dir = self.projects_dir / dir_name
        project_dir.mkdir(exist_ok=True)
        path = project_dir / file_name
        path.write_text("\n".join(json.dumps(r) for r in records), encoding="utf-8")
        return path

    def test_naive_decoding_replaces_hyphens(self) -> None:
        self.assertEqual(decode_project_dir_name("-Users-me-my-app"), "/Users/me/my/app")

    def test_cwd_is_preferred_over_naive_decoding(self) -> None:
        project_dir = self._write(
            "-Users-me-my-app",
            "s1.jsonl",
            [{"type": "summary", "summary": "x"}, {"type": "user", "cwd": "/Users/me/my-app"}],
        ).parent
        self.assertEqual(resolve_project_path(project_dir), "/Users/me/my-app")

    def test_any_session_in_the_directory_can_supply_cwd(self) -> None:
        self._write("-work-web-ui", "a.jsonl", [{"type": "user"}])
        self._write("-work-web-ui", "b.jsonl", [{"type": "user", "cwd": "/work/web-ui"}])
        self.assertEqual(build_project_path_mapping(self.projects_dir), {"-work-web-ui": "/work/web-ui"})

    def test_cwd_beyond_sniff_window_is_ignored(self) -> None:
        records = [{"type": "user"} for _ in range(10)] + [{"type": "user", "cwd": "/late/cwd"}]
        path = self._write("-late-cwd-dir", "s.jsonl", records)
        self.assertIsNone(sniff_cwd(path, 10))
        self.assertEqual(sniff_cwd(path, 11), "/late/cwd")
        self.assertEqual(resolve_project_path(path.parent, 10), "/late/cwd/dir")

    def test_empty_directory_falls_back_to_naive_decoding(self) -> None:
        (self.projects_dir / "-tmp-empty").mkdir()
        self.assertEqual(build_project_path_mapping(self.projects_dir), {"-tmp-empty": "/tmp/empty"})

    def test_missing_projects_dir_yields_empty_mapping(self) -> None:
        self.assertEqual(build_project_path_mapping(self.projects_dir / "nope"), {})


if __name__ == "__main__":
    unittest.main()
