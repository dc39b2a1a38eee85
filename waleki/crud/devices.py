"""
Device registry: CRUD for devices and the settings used by alert evaluation
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import desc
from sqlalchemy.orm import Session
import structlog

from waleki.core.exceptions import ValidationError, NotFoundError
from waleki.core.timeutils import utcnow
from waleki.models.device import Device
from waleki.schemas.device import DeviceCreate, DeviceUpdate
from waleki.services.events import ChangeFeed, change_feed, DEVICES_TOPIC

logger = structlog.get_logger(__name__)

def _validate_settings(measurement_interval: int, low: float, high: float):
    if measurement_interval < 1:
        raise ValidationError("Measurement interval must be at least 1 minute")
    if low >= high:
        raise ValidationError(
            f"Low alert threshold ({low}m) must be below high alert threshold ({high}m)"
        )

def _require_text(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""

def get_device(db: Session, device_id: int) -> Device:
    """Get a device by id or raise NotFoundError"""
    device = db.get(Device, device_id)
    if not device:
        raise NotFoundError("Device not found")
    return device

def list_devices(db: Session, status: Optional[str] = None) -> List[Device]:
    """All devices, most recently created first"""
    query = db.query(Device)
    if status:
        query = query.filter(Device.status == status)
    return query.order_by(desc(Device.created_at), desc(Device.id)).all()

def create_device(db: Session, device_in: DeviceCreate, feed: ChangeFeed = change_feed) -> Device:
    """Register a device; new devices start inactive and unseen"""

    if not (_require_text(device_in.name) and _require_text(device_in.location) and device_in.settings):
        raise ValidationError("Name, location, and settings are required")

    settings_in = device_in.settings
    thresholds = settings_in.alert_thresholds
    calibration = settings_in.calibration
    if (
        settings_in.measurement_interval is None
        or thresholds is None or thresholds.low is None or thresholds.high is None
        or calibration is None or calibration.offset is None or calibration.scale is None
    ):
        raise ValidationError("Invalid device settings")

    _validate_settings(settings_in.measurement_interval, thresholds.low, thresholds.high)

    device = Device(
        name=device_in.name.strip(),
        location=device_in.location.strip(),
        description=device_in.description,
        status="inactive",
        last_seen=None,
        measurement_interval=settings_in.measurement_interval,
        alert_threshold_low=thresholds.low,
        alert_threshold_high=thresholds.high,
        calibration_offset=calibration.offset,
        calibration_scale=calibration.scale
    )
    db.add(device)
    db.commit()
    db.refresh(device)

    logger.info("Device created", device_id=device.id, name=device.name)
    feed.publish(DEVICES_TOPIC, {"event": "created", "device_id": device.id})
    return device

def update_device(db: Session, device_id: int, device_in: DeviceUpdate, feed: ChangeFeed = change_feed) -> Device:
    """Partial update; nested settings fields merge one by one"""

    device = get_device(db, device_id)
    update_data = device_in.model_dump(exclude_unset=True)
    settings_data = update_data.pop("settings", None) or {}

    for field in ("name", "location"):
        if field in update_data and not _require_text(update_data[field]):
            raise ValidationError(f"{field.capitalize()} cannot be empty")

    thresholds = settings_data.get("alert_thresholds") or {}
    calibration = settings_data.get("calibration") or {}

    measurement_interval = settings_data.get("measurement_interval")
    if measurement_interval is None:
        measurement_interval = device.measurement_interval
    low = thresholds.get("low")
    if low is None:
        low = device.alert_threshold_low
    high = thresholds.get("high")
    if high is None:
        high = device.alert_threshold_high
    _validate_settings(measurement_interval, low, high)

    for field, value in update_data.items():
        if field == "status" and value is None:
            continue
        setattr(device, field, value.strip() if field in ("name", "location") else value)

    device.measurement_interval = measurement_interval
    device.alert_threshold_low = low
    device.alert_threshold_high = high
    if calibration.get("offset") is not None:
        device.calibration_offset = calibration["offset"]
    if calibration.get("scale") is not None:
        device.calibration_scale = calibration["scale"]

    db.commit()
    db.refresh(device)

    logger.info("Device updated", device_id=device.id, fields=sorted(update_data) + sorted(settings_data))
    feed.publish(DEVICES_TOPIC, {"event": "updated", "device_id": device.id})
    return device

def delete_device(db: Session, device_id: int, feed: ChangeFeed = change_feed):
    """Delete a device together with all of its readings"""
    from waleki.crud.readings import delete_readings_for_device

    device = get_device(db, device_id)
    removed = delete_readings_for_device(db, device_id, commit=False)
    db.delete(device)
    db.commit()

    logger.info("Device deleted", device_id=device_id, readings_removed=removed)
    feed.publish(DEVICES_TOPIC, {"event": "deleted", "device_id": device_id})

def touch_device(device: Device, seen_at: Optional[datetime] = None) -> Device:
    """Set last_seen and promote an inactive device; caller commits"""
    device.last_seen = seen_at or utcnow()
    if device.status == "inactive":
        device.status = "active"
        logger.info("Device status changed", device_id=device.id, old_status="inactive", new_status="active")
    return device

def mark_seen(db: Session, device_id: int, feed: ChangeFeed = change_feed) -> Device:
    """Record a sign of life from a device"""
    device = touch_device(get_device(db, device_id))
    db.commit()
    db.refresh(device)
    feed.publish(DEVICES_TOPIC, {"event": "seen", "device_id": device.id})
    return device
