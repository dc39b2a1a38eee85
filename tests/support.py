"""
Shared helpers for the test suite: an isolated in-memory database per test
"""

import os
import sys

# Must be set before waleki.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_DEMO_DATA", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy.orm import sessionmaker

from waleki.database.connection import build_engine, init_database
from waleki.schemas.device import DeviceCreate

def make_database():
    """Fresh in-memory engine with all tables and a session factory bound to it"""
    engine = build_engine("sqlite://")
    init_database(bind=engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)

def device_payload(name="A", location="L", low=0.5, high=5.0, interval=15, **extra) -> dict:
    payload = {
        "name": name,
        "location": location,
        "settings": {
            "measurementInterval": interval,
            "alertThresholds": {"low": low, "high": high},
            "calibration": {"offset": 0, "scale": 1}
        }
    }
    payload.update(extra)
    return payload

def device_create(**kwargs) -> DeviceCreate:
    return DeviceCreate.model_validate(device_payload(**kwargs))
