import unittest
from datetime import date, timedelta

from consistency.streaks import activity_days, current_streak, longest_streak, streak_at_risk, streak_summary


class TestCurrentStreak(unittest.TestCase):
    def test_counts_back_from_today(self) -> None:
        today = date(2024, 3, 10)
        days = {today, today - timedelta(days=1), today - timedelta(days=2)}
        self.assertEqual(current_streak(days, today), 3)

    def test_missing_today_is_zero(self) -> None:
        today = date(2024, 3, 10)
        self.assertEqual(current_streak({today - timedelta(days=1)}, today), 0)
        self.assertEqual(current_streak(set(), today), 0)


class TestLongestStreak(unittest.TestCase):
    def test_longest_run(self) -> None:
        d = date(2024, 3, 1)
        days = {d, d + timedelta(days=1), d + timedelta(days=2), d + timedelta(days=5)}
        self.assertEqual(longest_streak(days), 3)

    def test_empty(self) -> None:
        self.assertEqual(longest_streak([]), 0)


class TestSummary(unittest.TestCase):
    def test_new_year_scenario(self) -> None:
        days = activity_days(["2024-01-01", "2024-01-02", "2024-01-03"])
        summary = streak_summary(days, date(2024, 1, 3))
        self.assertEqual((summary.current, summary.longest), (3, 3))

        days |= activity_days(["2024-01-05"])
        summary = streak_summary(days, date(2024, 1, 5))
        self.assertEqual(summary.as_dict(), {"current": 1, "longest": 3})

    def test_activity_days_skips_garbage(self) -> None:
        days = activity_days(["2024-01-01", None, "bad", "2024-01-05zzz", "2024-01-01T08:00:00"])
        self.assertEqual(days, {date(2024, 1, 1)})

    def test_at_risk_only_late_with_yesterday_active(self) -> None:
        today = date(2024, 3, 10)
        yesterday = {today - timedelta(days=1)}
        self.assertTrue(streak_at_risk(yesterday, today, hour=21, cutoff_hour=20))
        self.assertFalse(streak_at_risk(yesterday, today, hour=9, cutoff_hour=20))
        self.assertFalse(streak_at_risk(yesterday | {today}, today, hour=23, cutoff_hour=20))
        self.assertFalse(streak_at_risk(set(), today, hour=23, cutoff_hour=20))


if __name__ == "__main__":
    unittest.main()
