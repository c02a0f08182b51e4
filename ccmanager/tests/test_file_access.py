import tempfile
import unittest
from pathlib import Path

from ccmanager import file_access
from ccmanager.errors import AccessDeniedError, NotFoundError


class ClaudeFileAccessTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name)
        self.claude_dir = self.root / ".claude"
        self.claude_dir.mkdir()

    def test_paths_outside_claude_are_denied(self) -> None:
        outside = self.root / "notes.txt"
        outside.write_text("secret", encoding="utf-8")

        with self.assertRaises(AccessDeniedError):
            file_access.read_file(outside)
        with self.assertRaises(AccessDeniedError):
            file_access.write_file(outside, "x")
        # the directory itself is not a file inside it
        with self.assertRaises(AccessDeniedError):
            file_access.read_file(self.claude_dir)

    def test_parent_traversal_is_resolved_before_the_check(self) -> None:
        sneaky = self.claude_dir / ".." / "escape.txt"
        with self.assertRaises(AccessDeniedError):
            file_access.write_file(sneaky, "x")
        self.assertFalse((self.root / "escape.txt").exists())

    def test_write_creates_parents_and_read_round_trips(self) -> None:
        target = self.claude_dir / "commands" / "nested" / "hello.md"

        written = file_access.write_file(str(target), "# hi\n")

        self.assertEqual(written, target.resolve())
        self.assertEqual(file_access.read_file(str(target)), "# hi\n")

    def test_missing_file_inside_claude_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            file_access.read_file(self.claude_dir / "absent.json")


if __name__ == "__main__":
    unittest.main()
