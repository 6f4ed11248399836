import unittest
from datetime import datetime

from consistency.slots import (
    Slot,
    format_minutes,
    format_slot,
    is_within,
    minutes_of_day,
    parse_slot,
    parse_time,
    slot_contains,
    slot_duration,
    slots_overlap,
)


class TestParseSlot(unittest.TestCase):
    def test_valid_slots_parse_to_minutes(self) -> None:
        self.assertEqual(parse_slot("09:00-10:00"), Slot(540, 600))
        self.assertEqual(parse_slot("6:15-7:15"), Slot(375, 435))
        self.assertEqual(parse_slot("23:00-01:00"), Slot(1380, 60))
        self.assertEqual(parse_slot("00:00-23:59"), Slot(0, 1439))

    def test_malformed_slots_return_none(self) -> None:
        malformed = [None, "", "09:00", "09:00-", "9-10-11", "25:00-26:00", "09:60-10:00", "ab:cd-ef:gh", 930]
        for raw in malformed + ["٠٩:٠٠-١٠:٠٠", "０９:00-10:00"]:
            with self.subTest(raw=raw):
                self.assertIsNone(parse_slot(raw))

    def test_parse_time(self) -> None:
        self.assertEqual(parse_time("7"), 420)
        self.assertEqual(parse_time(" 22:15 "), 1335)
        self.assertIsNone(parse_time("7:5"))


class TestWithin(unittest.TestCase):
    def test_daytime_slot_end_exclusive(self) -> None:
        self.assertTrue(is_within(540, 540, 600))
        self.assertTrue(is_within(599, 540, 600))
        self.assertFalse(is_within(600, 540, 600))

    def test_overnight_slot(self) -> None:
        self.assertTrue(is_within(0, 1380, 60))
        self.assertTrue(is_within(1381, 1380, 60))
        self.assertFalse(is_within(1379, 1380, 60))
        self.assertFalse(is_within(60, 1380, 60))

    def test_slot_contains(self) -> None:
        self.assertTrue(slot_contains(Slot(1380, 60), 30))


class TestSlotHelpers(unittest.TestCase):
    def test_duration(self) -> None:
        self.assertEqual(slot_duration(Slot(540, 600)), 60)
        self.assertEqual(slot_duration(Slot(1380, 60)), 120)

    def test_overlap(self) -> None:
        self.assertTrue(slots_overlap(Slot(540, 600), Slot(570, 630)))
        self.assertFalse(slots_overlap(Slot(540, 600), Slot(600, 660)))
        self.assertTrue(slots_overlap(Slot(1380, 60), Slot(30, 90)))

    def test_formatting(self) -> None:
        self.assertEqual(format_minutes(375), "06:15")
        self.assertEqual(format_minutes(1440 + 5), "00:05")
        self.assertEqual(format_slot(Slot(375, 435)), "06:15-07:15")
        self.assertEqual(minutes_of_day(datetime(2024, 1, 1, 18, 20)), 1100)


if __name__ == "__main__":
    unittest.main()
