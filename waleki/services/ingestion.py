"""
Ingestion gateway for telemetry pushed by field devices
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
import structlog

from waleki.core.config import settings
from waleki.core.exceptions import WalekiError, ValidationError
from waleki.crud.devices import get_device, mark_seen
from waleki.crud.readings import add_reading
from waleki.models.device import Device
from waleki.models.reading import WaterReading
from waleki.schemas.reading import IngestPayload
from waleki.services.events import ChangeFeed, change_feed

logger = structlog.get_logger(__name__)

@dataclass
class IngestResult:
    reading: WaterReading
    alerts: List[str] = field(default_factory=list)

@dataclass
class BatchIngestResult:
    results: List[dict] = field(default_factory=list)  # {"index", "reading", "alerts"}
    errors: List[dict] = field(default_factory=list)  # {"index", "error"}

    @property
    def success(self) -> int:
        return len(self.results)

    @property
    def error_count(self) -> int:
        return len(self.errors)

def check_alert_thresholds(device: Device, level: float) -> List[str]:
    """Advisory messages for a level at or beyond the device thresholds"""
    alerts = []
    low = device.alert_threshold_low
    high = device.alert_threshold_high

    if level <= low:
        alerts.append(f"Water level critically low: {level}m (threshold: {low}m)")
    if level >= high:
        alerts.append(f"Water level critically high: {level}m (threshold: {high}m)")

    return alerts

def ingest(db: Session, payload: IngestPayload, feed: ChangeFeed = change_feed) -> IngestResult:
    """Validate, store and evaluate one reading"""

    if payload.device_id is None or payload.level is None:
        raise ValidationError("Device ID and water level are required")

    reading = add_reading(
        db,
        payload.device_id,
        payload.level,
        temperature=payload.temperature,
        battery_level=payload.battery_level,
        timestamp=payload.timestamp,
        feed=feed
    )
    device = get_device(db, payload.device_id)
    alerts = check_alert_thresholds(device, reading.level)

    logger.info("Reading ingested", device_id=device.id, reading_id=reading.id, level=reading.level)
    for alert in alerts:
        logger.warning("Threshold alert", device_id=device.id, alert=alert)

    return IngestResult(reading=reading, alerts=alerts)

def parse_payload(item: Any) -> IngestPayload:
    """Coerce one raw batch item, turning schema errors into a ValidationError"""
    if isinstance(item, IngestPayload):
        return item
    try:
        return IngestPayload.model_validate(item)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field_name = ".".join(str(part) for part in error["loc"]) or "reading"
        raise ValidationError(f"Invalid {field_name}: {error['msg']}")

def ingest_batch(
    db: Session,
    payloads: List[Any],
    feed: ChangeFeed = change_feed,
    max_items: Optional[int] = None
) -> BatchIngestResult:
    """Ingest every item independently; failures are reported per index and
    earlier successes stay stored. Items may be IngestPayload instances or raw dicts."""

    max_items = max_items or settings.max_batch_size
    if not payloads:
        raise ValidationError("Readings array is required and cannot be empty")
    if len(payloads) > max_items:
        raise ValidationError(f"Maximum {max_items} readings per batch")

    batch = BatchIngestResult()
    for index, item in enumerate(payloads):
        try:
            result = ingest(db, parse_payload(item), feed=feed)
            batch.results.append({"index": index, "reading": result.reading, "alerts": result.alerts})
        except WalekiError as e:
            batch.errors.append({"index": index, "error": e.message})
        except Exception as e:
            db.rollback()
            logger.error("Batch item failed", index=index, error=str(e))
            batch.errors.append({"index": index, "error": "Failed to process reading"})

    logger.info("Batch ingested", success=batch.success, error_count=batch.error_count)
    return batch

def heartbeat(db: Session, device_id: int, feed: ChangeFeed = change_feed) -> Device:
    """Device health check: refresh last_seen without storing a reading"""
    device = mark_seen(db, device_id, feed=feed)
    logger.info("Device heartbeat", device_id=device_id)
    return device
