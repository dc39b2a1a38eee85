"""
Reading store: time-stamped water level readings keyed by device and time
"""

import math
from datetime import datetime
from typing import List, Optional
from sqlalchemy import and_, desc, func
from sqlalchemy.orm import Session
import structlog

from waleki.core.exceptions import ValidationError
from waleki.core.timeutils import utcnow, to_naive_utc
from waleki.crud.devices import get_device, touch_device
from waleki.models.reading import WaterReading
from waleki.services.events import ChangeFeed, change_feed, DEVICES_TOPIC, READINGS_TOPIC, device_readings_topic

logger = structlog.get_logger(__name__)

def validate_reading_values(level: float, temperature: Optional[float] = None, battery_level: Optional[float] = None):
    """Raise ValidationError for physically impossible values"""
    # NaN compares False against every bound
    if not math.isfinite(level):
        raise ValidationError("Water level must be a finite number")
    if level < 0:
        raise ValidationError("Water level cannot be negative")
    if temperature is not None and (not math.isfinite(temperature) or temperature < -50 or temperature > 100):
        raise ValidationError("Temperature must be between -50°C and 100°C")
    if battery_level is not None and (not math.isfinite(battery_level) or battery_level < 0 or battery_level > 100):
        raise ValidationError("Battery level must be between 0% and 100%")

def reading_snapshot(reading: WaterReading) -> dict:
    return {
        "id": reading.id,
        "device_id": reading.device_id,
        "level": reading.level,
        "temperature": reading.temperature,
        "battery_level": reading.battery_level,
        "timestamp": reading.timestamp.isoformat(),
    }

def add_reading(
    db: Session,
    device_id: int,
    level: float,
    temperature: Optional[float] = None,
    battery_level: Optional[float] = None,
    timestamp: Optional[datetime] = None,
    feed: ChangeFeed = change_feed
) -> WaterReading:
    """Store a reading and refresh the owning device's last_seen/status in one transaction"""

    validate_reading_values(level, temperature, battery_level)
    device = get_device(db, device_id)

    now = utcnow()
    reading = WaterReading(
        device_id=device.id,
        level=level,
        temperature=temperature,
        battery_level=battery_level,
        timestamp=to_naive_utc(timestamp) or now
    )
    db.add(reading)
    touch_device(device, now)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(reading)

    snapshot = reading_snapshot(reading)
    feed.publish(READINGS_TOPIC, snapshot)
    feed.publish(device_readings_topic(device_id), snapshot)
    feed.publish(DEVICES_TOPIC, {"event": "seen", "device_id": device_id})
    return reading

def _readings_query(db: Session, device_id: Optional[int], start_time: Optional[datetime], end_time: Optional[datetime], *columns):
    query = db.query(*columns) if columns else db.query(WaterReading)
    filters = []
    if device_id is not None:
        filters.append(WaterReading.device_id == device_id)
    if start_time is not None:
        filters.append(WaterReading.timestamp >= to_naive_utc(start_time))
    if end_time is not None:
        filters.append(WaterReading.timestamp <= to_naive_utc(end_time))
    if filters:
        query = query.filter(and_(*filters))
    return query

def get_readings(
    db: Session,
    device_id: int,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    limit: Optional[int] = None
) -> List[WaterReading]:
    """Readings of one device, newest first; bounds are inclusive, limit keeps the newest"""

    query = _readings_query(db, device_id, start_time, end_time)
    query = query.order_by(desc(WaterReading.timestamp), desc(WaterReading.id))
    if limit is not None:
        query = query.limit(limit)
    return query.all()

def count_readings(
    db: Session,
    device_id: Optional[int] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None
) -> int:
    return _readings_query(db, device_id, start_time, end_time, func.count(WaterReading.id)).scalar() or 0

def delete_readings_for_device(db: Session, device_id: int, commit: bool = True) -> int:
    """Remove every reading of a device; safe to call repeatedly"""
    removed = db.query(WaterReading).filter(WaterReading.device_id == device_id).delete(synchronize_session=False)
    if commit:
        db.commit()
    if removed:
        logger.info("Readings deleted", device_id=device_id, count=removed)
    return removed
