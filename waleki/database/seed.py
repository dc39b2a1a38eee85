"""
Demo data for a fresh database.

Each table is seeded only while it is empty, so running the seed again is a
no-op. It runs once at startup before the API accepts requests.
"""

import math
import random
from datetime import timedelta
from sqlalchemy import func
from sqlalchemy.orm import Session
import structlog

from waleki.core.timeutils import utcnow
from waleki.models.device import Device
from waleki.models.reading import WaterReading
from waleki.models.user import User
from waleki.crud.users import create_user

logger = structlog.get_logger(__name__)

DEMO_USERS = [
    {"username": "admin", "email": "admin@waleki.com", "password": "admin123", "role": "admin"},
    {"username": "user", "email": "user@waleki.com", "password": "user123", "role": "user"},
]

DEMO_DEVICES = [
    {
        "name": "North Field Well Monitor",
        "location": "North Field, Plot A",
        "description": "Primary water source monitoring for agricultural irrigation",
        "status": "active",
        "measurement_interval": 15,
        "alert_threshold_low": 0.5,
        "alert_threshold_high": 5.0,
    },
    {
        "name": "South Well Sensor",
        "location": "South Field, Main Well",
        "description": "Backup water source monitoring",
        "status": "inactive",
        "measurement_interval": 30,
        "alert_threshold_low": 1.0,
        "alert_threshold_high": 4.5,
    },
    {
        "name": "East Field Monitoring Station",
        "location": "East Field, Sector B",
        "description": "Secondary monitoring for crop irrigation",
        "status": "active",
        "measurement_interval": 20,
        "alert_threshold_low": 0.8,
        "alert_threshold_high": 4.0,
    },
]

# 48 half-hourly readings for the first device
DEMO_READING_COUNT = 48
DEMO_READING_SPACING = timedelta(minutes=30)

def _is_empty(db: Session, model) -> bool:
    return (db.query(func.count(model.id)).scalar() or 0) == 0

def seed_demo_data(db: Session, rng: random.Random = None) -> dict:
    """Insert demo users, devices and readings into empty tables"""

    rng = rng or random.Random()
    created = {"users": 0, "devices": 0, "readings": 0}

    if _is_empty(db, User):
        for user_data in DEMO_USERS:
            create_user(db, **user_data)
            created["users"] += 1

    if _is_empty(db, Device):
        devices = [Device(**device_data) for device_data in DEMO_DEVICES]
        db.add_all(devices)
        db.flush()

        now = utcnow()
        devices[0].last_seen = now
        devices[2].last_seen = now - timedelta(hours=2)

        for i in range(DEMO_READING_COUNT):
            variation = math.sin(i * 0.3) * 0.5 + rng.random() * 0.2 - 0.1
            level = max(0.1, 2.5 + variation)
            db.add(WaterReading(
                device_id=devices[0].id,
                level=round(level, 2),
                temperature=round(20 + rng.random() * 10, 1),
                battery_level=max(20, 100 - i // 2),
                timestamp=now - i * DEMO_READING_SPACING
            ))
            created["readings"] += 1

        db.commit()
        created["devices"] = len(devices)

    if any(created.values()):
        logger.info("Demo data seeded", **created)
    else:
        logger.info("Demo data already present, skipping seed")
    return created
