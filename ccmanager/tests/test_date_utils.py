import unittest
from datetime import datetime, timezone

from ccmanager.date_utils import parse_date_command_timestamp, parse_iso_timestamp


class IsoTimestampTests(unittest.TestCase):
    def test_fraction_of_any_precision_is_accepted(self) -> None:
        expected = datetime(2025, 7, 20, 10, 0, 0, 120000, tzinfo=timezone.utc)
        self.assertEqual(parse_iso_timestamp("2025-07-20T10:00:00.12Z"), expected)
        self.assertEqual(parse_iso_timestamp("2025-07-20T10:00:00.120Z"), expected)
        self.assertEqual(parse_iso_timestamp("2025-07-20T10:00:00.1200001Z"), expected)

    def test_offsets_are_converted_to_utc(self) -> None:
        self.assertEqual(
            parse_iso_timestamp("2025-07-20T19:00:00.5+09:00"),
            datetime(2025, 7, 20, 10, 0, 0, 500000, tzinfo=timezone.utc),
        )

    def test_naive_values_are_utc_and_junk_is_none(self) -> None:
        self.assertEqual(parse_iso_timestamp("2025-07-20T10:00:00"), datetime(2025, 7, 20, 10, tzinfo=timezone.utc))
        self.assertIsNone(parse_iso_timestamp("yesterday"))
        self.assertIsNone(parse_iso_timestamp(""))
        self.assertIsNone(parse_iso_timestamp(1721469600))

    def test_date_command_output_with_unknown_zone_is_none(self) -> None:
        self.assertIsNone(parse_date_command_timestamp("Thu Jul 17 15:18:23 XYZ 2025"))


if __name__ == "__main__":
    unittest.main()
