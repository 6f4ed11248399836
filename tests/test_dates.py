import unittest
from datetime import date, datetime, timezone

from consistency.dates import (
    date_range,
    days_ago,
    is_same_local_day,
    local_date_string,
    local_now,
    parse_day,
    parse_timestamp,
    to_local_day,
    week_bounds,
)


class TestCalendarDays(unittest.TestCase):
    def test_date_range_is_inclusive(self) -> None:
        days = date_range(date(2024, 1, 30), date(2024, 2, 2))
        self.assertEqual([d.isoformat() for d in days], ["2024-01-30", "2024-01-31", "2024-02-01", "2024-02-02"])

    def test_date_range_reversed_is_empty(self) -> None:
        self.assertEqual(date_range(date(2024, 1, 3), date(2024, 1, 1)), [])

    def test_week_starts_monday(self) -> None:
        self.assertEqual(week_bounds(date(2024, 1, 3)), (date(2024, 1, 1), date(2024, 1, 7)))
        self.assertEqual(week_bounds(date(2024, 1, 7)), (date(2024, 1, 1), date(2024, 1, 7)))

    def test_days_ago(self) -> None:
        self.assertEqual(days_ago(3, date(2024, 3, 2)), date(2024, 2, 28))

    def test_local_date_string_accepts_datetime(self) -> None:
        self.assertEqual(local_date_string(datetime(2024, 5, 6, 23, 59)), "2024-05-06")

    def test_local_now_unknown_zone_falls_back(self) -> None:
        self.assertIsNotNone(local_now("Not/AZone").tzinfo)


class TestParsing(unittest.TestCase):
    def test_parse_day(self) -> None:
        self.assertEqual(parse_day("2024-02-29"), date(2024, 2, 29))
        self.assertEqual(parse_day("2024-02-29T10:00:00"), date(2024, 2, 29))
        self.assertIsNone(parse_day("yesterday"))
        self.assertIsNone(parse_day(""))
        self.assertIsNone(parse_day(None))

    def test_parse_day_rejects_trailing_garbage(self) -> None:
        self.assertIsNone(parse_day("2024-01-01garbage"))
        self.assertIsNone(parse_day("2024-01-05zzz"))
        self.assertEqual(parse_day("2024-01-05T23:30:00Z"), date(2024, 1, 5))

    def test_naive_timestamp_is_utc(self) -> None:
        moment = parse_timestamp("2024-01-01T10:00:00")
        self.assertEqual(moment.tzinfo, timezone.utc)
        self.assertEqual(parse_timestamp("2024-01-01T10:00:00Z"), moment)
        self.assertIsNone(parse_timestamp("nope"))

    def test_local_day_shifts_late_utc_evening(self) -> None:
        self.assertEqual(to_local_day("2024-06-02T02:30:00+00:00", "America/New_York"), date(2024, 6, 1))
        self.assertEqual(to_local_day("2024-06-02T02:30:00+00:00", "Asia/Kolkata"), date(2024, 6, 2))

    def test_plain_day_passes_through(self) -> None:
        self.assertEqual(to_local_day("2024-06-02", "America/New_York"), date(2024, 6, 2))

    def test_same_local_day(self) -> None:
        self.assertTrue(is_same_local_day("2024-06-02T03:00:00Z", "2024-06-01", "America/New_York"))
        self.assertFalse(is_same_local_day("garbage", "2024-06-01"))


if __name__ == "__main__":
    unittest.main()
