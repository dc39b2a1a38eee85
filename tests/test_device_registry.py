import unittest

from support import make_database, device_create, device_payload

from waleki.core.exceptions import ValidationError, NotFoundError
from waleki.crud.devices import (
    create_device, get_device, list_devices, update_device, delete_device, mark_seen
)
from waleki.crud.readings import add_reading, get_readings
from waleki.schemas.device import DeviceCreate, DeviceUpdate
from waleki.services.events import ChangeFeed

class TestDeviceRegistry(unittest.TestCase):
    """Test cases for device CRUD"""

    def setUp(self):
        self.engine, SessionTesting = make_database()
        self.db = SessionTesting()
        self.feed = ChangeFeed()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _create(self, **kwargs):
        return create_device(self.db, device_create(**kwargs), feed=self.feed)

    def test_new_device_starts_inactive_and_unseen(self):
        device = self._create(description="Main well")

        self.assertIsNotNone(device.id)
        self.assertEqual(device.status, "inactive")
        self.assertIsNone(device.last_seen)
        self.assertEqual(device.description, "Main well")
        self.assertEqual(device.settings, {
            "measurement_interval": 15,
            "alert_thresholds": {"low": 0.5, "high": 5.0},
            "calibration": {"offset": 0.0, "scale": 1.0}
        })

    def test_create_requires_name_location_and_settings(self):
        invalid = [
            device_payload(name=""),
            device_payload(location="   "),
            {"name": "A", "location": "L"},
            {"name": "A", "location": "L", "settings": {"measurementInterval": 15, "alertThresholds": {"low": 0.5, "high": 5.0}}},
            {"name": "A", "location": "L", "settings": {"measurementInterval": 15, "alertThresholds": {"low": 0.5}, "calibration": {"offset": 0, "scale": 1}}},
        ]
        for payload in invalid:
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError):
                    create_device(self.db, DeviceCreate.model_validate(payload), feed=self.feed)

        self.assertEqual(list_devices(self.db), [])

    def test_create_rejects_bad_settings_values(self):
        with self.assertRaises(ValidationError):
            self._create(interval=0)
        with self.assertRaises(ValidationError):
            self._create(low=5.0, high=5.0)
        with self.assertRaises(ValidationError):
            self._create(low=6.0, high=5.0)

    def test_get_unknown_device(self):
        with self.assertRaises(NotFoundError):
            get_device(self.db, 42)

    def test_list_devices_most_recent_first(self):
        first = self._create(name="First")
        second = self._create(name="Second")

        self.assertEqual([d.id for d in list_devices(self.db)], [second.id, first.id])

    def test_list_devices_by_status(self):
        first = self._create(name="First")
        self._create(name="Second")
        mark_seen(self.db, first.id, feed=self.feed)

        self.assertEqual([d.id for d in list_devices(self.db, status="active")], [first.id])

    def test_partial_threshold_update_keeps_other_settings(self):
        device = self._create()

        update_device(self.db, device.id, DeviceUpdate.model_validate(
            {"settings": {"alertThresholds": {"low": 1.0}}}
        ), feed=self.feed)

        device = get_device(self.db, device.id)
        self.assertEqual(device.alert_threshold_low, 1.0)
        self.assertEqual(device.alert_threshold_high, 5.0)
        self.assertEqual(device.measurement_interval, 15)
        self.assertEqual(device.calibration_scale, 1.0)
        self.assertEqual(device.name, "A")

    def test_update_plain_fields(self):
        device = self._create()

        update_device(self.db, device.id, DeviceUpdate(name="Renamed", status="error"), feed=self.feed)

        device = get_device(self.db, device.id)
        self.assertEqual(device.name, "Renamed")
        self.assertEqual(device.status, "error")
        self.assertEqual(device.location, "L")

    def test_update_rejects_inverted_thresholds(self):
        device = self._create()

        with self.assertRaises(ValidationError):
            update_device(self.db, device.id, DeviceUpdate.model_validate(
                {"settings": {"alertThresholds": {"low": 6.0}}}
            ), feed=self.feed)
        with self.assertRaises(ValidationError):
            update_device(self.db, device.id, DeviceUpdate(name=""), feed=self.feed)

        device = get_device(self.db, device.id)
        self.assertEqual(device.alert_threshold_low, 0.5)
        self.assertEqual(device.name, "A")

    def test_update_unknown_device(self):
        with self.assertRaises(NotFoundError):
            update_device(self.db, 42, DeviceUpdate(name="X"), feed=self.feed)

    def test_delete_cascades_to_readings(self):
        device = self._create()
        keep = self._create(name="Keep")
        device_id = device.id
        for level in (1.0, 2.0, 3.0):
            add_reading(self.db, device_id, level, feed=self.feed)
        add_reading(self.db, keep.id, 1.0, feed=self.feed)

        delete_device(self.db, device_id, feed=self.feed)

        self.assertEqual(get_readings(self.db, device_id), [])
        self.assertNotIn(device_id, [d.id for d in list_devices(self.db)])
        self.assertEqual(len(get_readings(self.db, keep.id)), 1)
        with self.assertRaises(NotFoundError):
            get_device(self.db, device_id)

    def test_delete_unknown_device(self):
        with self.assertRaises(NotFoundError):
            delete_device(self.db, 42, feed=self.feed)

    def test_mark_seen_promotes_only_inactive_devices(self):
        device = self._create()
        broken = self._create(name="Broken")
        update_device(self.db, broken.id, DeviceUpdate(status="error"), feed=self.feed)

        seen = mark_seen(self.db, device.id, feed=self.feed)
        still_broken = mark_seen(self.db, broken.id, feed=self.feed)

        self.assertEqual(seen.status, "active")
        self.assertIsNotNone(seen.last_seen)
        self.assertEqual(still_broken.status, "error")
        self.assertIsNotNone(still_broken.last_seen)

    def test_mutations_publish_device_events(self):
        events = []
        self.feed.subscribe("devices", events.append)

        device = self._create()
        device_id = device.id
        update_device(self.db, device_id, DeviceUpdate(name="B"), feed=self.feed)
        delete_device(self.db, device_id, feed=self.feed)

        self.assertEqual([e["event"] for e in events], ["created", "updated", "deleted"])
        self.assertTrue(all(e["device_id"] == device_id for e in events))

if __name__ == '__main__':
    unittest.main()
