"""
Telemetry ingestion endpoints for field devices
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
import structlog

from waleki.core.timeutils import utcnow
from waleki.database.connection import get_database
from waleki.schemas.dashboard import DeviceChartData
from waleki.schemas.reading import (
    IngestPayload, IngestResponse, BatchIngestRequest, BatchIngestResponse,
    BatchItemResult, BatchItemError, HeartbeatResponse, ReadingResponse
)
from waleki.services.aggregation import recent_readings
from waleki.services.ingestion import ingest, ingest_batch, heartbeat

logger = structlog.get_logger(__name__)
router = APIRouter()

@router.post("/data/ingest", response_model=IngestResponse, status_code=status.HTTP_201_CREATED)
async def ingest_water_data(payload: IngestPayload, db: Session = Depends(get_database)):
    """Receive one reading from a device"""

    result = ingest(db, payload)
    return IngestResponse(
        reading=ReadingResponse.model_validate(result.reading),
        alerts=result.alerts
    )

@router.post("/data/ingest/batch", response_model=BatchIngestResponse, status_code=status.HTTP_201_CREATED)
async def ingest_batch_water_data(request: BatchIngestRequest, db: Session = Depends(get_database)):
    """Receive up to 100 readings; each item succeeds or fails on its own"""

    batch = ingest_batch(db, request.readings)
    return BatchIngestResponse(
        message=f"Processed {batch.success} readings successfully",
        success=batch.success,
        error_count=batch.error_count,
        results=[
            BatchItemResult(
                index=item["index"],
                reading=ReadingResponse.model_validate(item["reading"]),
                alerts=item["alerts"]
            )
            for item in batch.results
        ],
        errors=[BatchItemError(**error) for error in batch.errors]
    )

@router.get("/data/recent", response_model=List[DeviceChartData])
async def get_recent_readings(
    hours: int = Query(24, ge=1, le=24 * 31),
    db: Session = Depends(get_database)
):
    """Chart data for all devices over the last hours"""
    return recent_readings(db, hours=hours)

@router.post("/data/health/{device_id}", response_model=HeartbeatResponse)
async def device_health_check(device_id: int, db: Session = Depends(get_database)):
    """Heartbeat from a device that has no reading to report"""

    device = heartbeat(db, device_id)
    return HeartbeatResponse(
        device_id=device.id,
        status=device.status,
        last_seen=device.last_seen,
        server_time=utcnow()
    )
