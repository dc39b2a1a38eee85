import unittest
from datetime import timedelta
from types import SimpleNamespace

from support import make_database, device_create

from waleki.core.exceptions import ValidationError, NotFoundError
from waleki.core.timeutils import utcnow
from waleki.crud.devices import create_device
from waleki.crud.readings import add_reading
from waleki.schemas.dashboard import TimeRange
from waleki.services.aggregation import (
    compute_dashboard_stats, compute_chart_series, compute_summary_statistics,
    compute_device_summary, recent_readings
)
from waleki.services.events import ChangeFeed

def levels(*values):
    return [SimpleNamespace(level=v) for v in values]

class TestSummaryStatistics(unittest.TestCase):
    """Test cases for min/max/average/trend over a reading sequence"""

    def test_empty_input_yields_no_statistics(self):
        self.assertIsNone(compute_summary_statistics([]))

    def test_single_reading(self):
        stats = compute_summary_statistics(levels(2.5))

        self.assertEqual(stats.count, 1)
        self.assertEqual((stats.min, stats.max, stats.average, stats.latest), (2.5, 2.5, 2.5, 2.5))
        self.assertIsNone(stats.trend)

    def test_trend_compares_last_two_readings(self):
        self.assertEqual(compute_summary_statistics(levels(3.0, 1.0, 2.0)).trend, "up")
        self.assertEqual(compute_summary_statistics(levels(1.0, 3.0, 2.0)).trend, "down")
        self.assertEqual(compute_summary_statistics(levels(1.0, 2.0, 2.0)).trend, "stable")

    def test_min_max_average_latest(self):
        stats = compute_summary_statistics(levels(1.0, 4.0, 2.5))

        self.assertEqual(stats.min, 1.0)
        self.assertEqual(stats.max, 4.0)
        self.assertAlmostEqual(stats.average, 2.5)
        self.assertEqual(stats.latest, 2.5)

class TestAggregationService(unittest.TestCase):
    """Test cases for dashboard statistics and chart series"""

    def setUp(self):
        self.engine, SessionTesting = make_database()
        self.db = SessionTesting()
        self.feed = ChangeFeed()
        self.now = utcnow()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _device(self, name="A"):
        return create_device(self.db, device_create(name=name), feed=self.feed)

    def _reading(self, device, level, minutes_ago=0, **kwargs):
        return add_reading(
            self.db, device.id, level,
            timestamp=self.now - timedelta(minutes=minutes_ago), feed=self.feed, **kwargs
        )

    def test_dashboard_average_is_average_of_device_averages(self):
        busy = self._device("Busy")
        quiet = self._device("Quiet")
        self._device("Silent")
        self._reading(busy, 1.0, minutes_ago=30)
        self._reading(busy, 3.0, minutes_ago=20)
        self._reading(quiet, 10.0, minutes_ago=10)

        stats = compute_dashboard_stats(self.db, now=self.now)

        # (2.0 + 10.0) / 2; a flat mean over readings would be 4.67
        self.assertEqual(stats.average_level, 6.0)
        self.assertEqual(stats.total_readings, 3)
        self.assertEqual(stats.total_devices, 3)
        self.assertEqual(stats.active_devices, 2)
        self.assertEqual(stats.last_update, self.now - timedelta(minutes=10))

    def test_dashboard_window_excludes_old_readings(self):
        device = self._device()
        self._reading(device, 2.0, minutes_ago=60)
        self._reading(device, 100.0, minutes_ago=25 * 60)

        stats = compute_dashboard_stats(self.db, now=self.now)

        self.assertEqual(stats.total_readings, 1)
        self.assertEqual(stats.average_level, 2.0)

    def test_dashboard_average_is_rounded(self):
        device = self._device()
        for level in (1.0, 1.0, 2.0):
            self._reading(device, level, minutes_ago=5)

        self.assertEqual(compute_dashboard_stats(self.db, now=self.now).average_level, 1.33)

    def test_dashboard_without_readings(self):
        self._device()

        stats = compute_dashboard_stats(self.db, now=self.now)

        self.assertEqual(stats.total_readings, 0)
        self.assertEqual(stats.average_level, 0.0)
        self.assertEqual(stats.last_update, self.now)
        self.assertEqual(stats.active_devices, 0)

    def test_chart_series_is_chronological_and_windowed(self):
        device = self._device()
        self._reading(device, 1.0, minutes_ago=120, temperature=18.0)
        self._reading(device, 2.0, minutes_ago=40, temperature=19.0)
        self._reading(device, 3.0, minutes_ago=20)

        series = compute_chart_series(self.db, device.id, TimeRange.HOUR_1, now=self.now)

        self.assertEqual([p.level for p in series], [2.0, 3.0])
        self.assertEqual(series[0].temperature, 19.0)
        self.assertIsNone(series[1].temperature)
        self.assertLess(series[0].timestamp, series[1].timestamp)

    def test_time_ranges_map_to_windows(self):
        device = self._device()
        for minutes in (10, 50, 5 * 60, 20 * 60, 6 * 24 * 60, 8 * 24 * 60):
            self._reading(device, 1.0, minutes_ago=minutes)

        expected = {"30min": 1, "1hour": 2, "6hours": 3, "1day": 4, "1week": 5}
        for time_range, count in expected.items():
            with self.subTest(time_range=time_range):
                self.assertEqual(len(compute_chart_series(self.db, device.id, time_range, now=self.now)), count)

    def test_chart_series_rejects_unknown_range_and_device(self):
        device = self._device()
        with self.assertRaises(ValidationError):
            compute_chart_series(self.db, device.id, "2days", now=self.now)
        with self.assertRaises(NotFoundError):
            compute_chart_series(self.db, 999, TimeRange.DAY_1, now=self.now)

    def test_device_summary(self):
        device = self._device()
        for i, level in enumerate([1.0, 2.0, 3.0, 4.0, 5.0, 4.5]):
            self._reading(device, level, minutes_ago=60 - i * 5)

        summary = compute_device_summary(self.db, device.id, "1day", now=self.now)

        self.assertEqual(summary.device.id, device.id)
        self.assertEqual(summary.total_readings, 6)
        self.assertEqual(len(summary.sample_readings), 5)
        self.assertEqual(summary.sample_readings[0].level, 4.5)
        self.assertEqual(summary.stats.latest, 4.5)
        self.assertEqual(summary.stats.trend, "down")
        self.assertEqual(summary.date_range.end - summary.date_range.start, timedelta(days=1))

    def test_device_summary_without_readings(self):
        device = self._device()

        summary = compute_device_summary(self.db, device.id, TimeRange.MINUTES_30, now=self.now)

        self.assertIsNone(summary.stats)
        self.assertEqual(summary.total_readings, 0)

    def test_recent_readings_covers_every_device(self):
        first = self._device("First")
        second = self._device("Second")
        self._reading(first, 1.0, minutes_ago=90)
        self._reading(first, 2.0, minutes_ago=30)
        self._reading(second, 5.0, minutes_ago=3 * 60)

        charts = {c.device_id: c for c in recent_readings(self.db, hours=2, now=self.now)}

        self.assertEqual(set(charts), {first.id, second.id})
        self.assertEqual([p.level for p in charts[first.id].data], [1.0, 2.0])
        self.assertEqual(charts[second.id].data, [])
        self.assertEqual(charts[second.id].device_name, "Second")

    def test_recent_readings_rejects_non_positive_hours(self):
        with self.assertRaises(ValidationError):
            recent_readings(self.db, hours=0)

if __name__ == '__main__':
    unittest.main()
