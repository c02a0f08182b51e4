import unittest

from ccmanager.parsers.text import ELLIPSIS, clean_preview_text, truncate_preview


class PreviewTruncationTests(unittest.TestCase):
    def test_short_text_is_returned_cleaned(self) -> None:
        self.assertEqual(truncate_preview("  hello\nworld\r\n ", 200), "hello world")

    def test_control_characters_are_dropped_but_tabs_kept(self) -> None:
        self.assertEqual(clean_preview_text("a\x00b\x07c\td"), "abc\td")

    def test_long_text_is_cut_on_word_boundary(self) -> None:
        result = truncate_preview("the quick brown fox jumps", 12)
        self.assertEqual(result, f"the quick{ELLIPSIS}")

    def test_cut_is_hard_without_spaces(self) -> None:
        result = truncate_preview("abcdefghijklmnop", 5)
        self.assertEqual(result, f"abcde{ELLIPSIS}")

    def test_counts_code_points_not_bytes(self) -> None:
        text = "日本語のテキストです" * 3
        result = truncate_preview(text, 10)
        self.assertEqual(result, text[:10] + ELLIPSIS)
        self.assertEqual(len(result), 11)

    def test_output_never_exceeds_budget_plus_marker(self) -> None:
        samples = [
            "",
            "word " * 100,
            "x" * 500,
            "mixed 🙂 emoji 🙂 content " * 20,
            "line\nbreaks\rand\x1bcontrol",
        ]
        for sample in samples:
            for budget in (0, 1, 7, 50, 200):
                result = truncate_preview(sample, budget)
                self.assertLessEqual(len(result), budget + 1)
                if result.endswith(ELLIPSIS):
                    self.assertTrue(clean_preview_text(sample).startswith(result[:-1]))


if __name__ == "__main__":
    unittest.main()
