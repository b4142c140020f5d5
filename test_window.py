import unittest
from datetime import date, datetime, time, timedelta, timezone

from models import Direction, Granularity
from window import (
    adjacent_window,
    current_date,
    load_timezone,
    resolve_window,
    shift_window,
)

UTC = timezone.utc
END_OF_DAY = time(23, 59, 59, 999000)


class TestDayWindow(unittest.TestCase):

    def test_day_window_covers_whole_calendar_day(self):
        window = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)
        self.assertEqual(window.start, datetime(2024, 6, 10, tzinfo=UTC))
        self.assertEqual(window.end, datetime.combine(date(2024, 6, 10), END_OF_DAY, UTC))
        self.assertLessEqual(window.start, window.end)

    def test_datetime_reference_is_truncated(self):
        window = resolve_window(datetime(2024, 6, 10, 15, 30), Granularity.DAY, UTC)
        self.assertEqual(window.start, datetime(2024, 6, 10, tzinfo=UTC))

    def test_local_timezone_when_none(self):
        window = resolve_window(date(2024, 6, 10), Granularity.DAY)
        self.assertIsNotNone(window.start.tzinfo)
        self.assertEqual(window.start.date(), date(2024, 6, 10))
        self.assertEqual((window.start.hour, window.start.minute), (0, 0))
        self.assertEqual(window.end.date(), date(2024, 6, 10))
        self.assertEqual(window.end.time(), END_OF_DAY)

    def test_adjacent_day_crosses_month_and_year(self):
        window = resolve_window(date(2024, 1, 1), Granularity.DAY, UTC)
        previous = adjacent_window(window, Direction.PREVIOUS, UTC)
        self.assertEqual(previous.start.date(), date(2023, 12, 31))
        leap = resolve_window(date(2024, 2, 28), Granularity.DAY, UTC)
        self.assertEqual(adjacent_window(leap, Direction.NEXT, UTC).start.date(), date(2024, 2, 29))


class TestWeekWindow(unittest.TestCase):

    def test_every_day_of_week_resolves_to_monday_through_sunday(self):
        monday = date(2024, 6, 10)
        for offset in range(7):
            day = monday + timedelta(days=offset)
            window = resolve_window(day, Granularity.WEEK, UTC)
            self.assertEqual(window.start, datetime(2024, 6, 10, tzinfo=UTC), day)
            self.assertEqual(window.end, datetime.combine(date(2024, 6, 16), END_OF_DAY, UTC))
            self.assertTrue(window.contains(datetime(day.year, day.month, day.day, 12, tzinfo=UTC)))

    def test_sunday_belongs_to_preceding_monday(self):
        window = resolve_window(date(2024, 6, 16), Granularity.WEEK, UTC)
        self.assertEqual(window.start.date(), date(2024, 6, 10))
        self.assertEqual(window.start.isoweekday(), 1)
        self.assertEqual(window.end.isoweekday(), 7)

    def test_week_spanning_year_boundary(self):
        window = resolve_window(date(2025, 1, 1), Granularity.WEEK, UTC)
        self.assertEqual(window.start.date(), date(2024, 12, 30))
        self.assertEqual(window.end.date(), date(2025, 1, 5))

    def test_previous_then_next_round_trips(self):
        start = date(2024, 1, 1)
        for offset in range(0, 400, 13):
            window = resolve_window(start + timedelta(days=offset), Granularity.WEEK, UTC)
            back = adjacent_window(window, Direction.PREVIOUS, UTC)
            self.assertEqual(back.start, window.start - timedelta(days=7))
            self.assertEqual(adjacent_window(back, Direction.NEXT, UTC), window)

    def test_shift_window(self):
        window = resolve_window(date(2024, 6, 12), Granularity.WEEK, UTC)
        self.assertEqual(shift_window(window, -2, UTC).start.date(), date(2024, 5, 27))
        self.assertEqual(shift_window(window, 1, UTC).start.date(), date(2024, 6, 17))
        self.assertEqual(shift_window(window, 0, UTC), window)

    def test_label(self):
        window = resolve_window(date(2024, 6, 12), Granularity.WEEK, UTC)
        self.assertEqual(window.label, "2024-W24 (2024-06-10 ~ 2024-06-16)")
        day = resolve_window(date(2024, 6, 12), Granularity.DAY, UTC)
        self.assertEqual(day.label, "2024-06-12")


class TestTimezone(unittest.TestCase):

    def test_empty_or_unknown_name_falls_back_to_local(self):
        self.assertIsNone(load_timezone(""))
        self.assertIsNone(load_timezone("Not/AZone"))

    def test_current_date_follows_zone(self):
        # UTC+14 与 UTC-12 相差 26 小时，日期必然不同
        east = current_date(load_timezone("Pacific/Kiritimati"))
        west = current_date(load_timezone("Etc/GMT+12"))
        self.assertGreater(east, west)
        self.assertEqual(current_date(), datetime.now().date())


if __name__ == "__main__":
    unittest.main()
