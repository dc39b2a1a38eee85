"""
Device management endpoints
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
import structlog

from waleki.api.deps import get_current_user, get_current_admin
from waleki.crud import devices as devices_crud
from waleki.crud.readings import get_readings
from waleki.database.connection import get_database
from waleki.schemas.auth import CurrentUser
from waleki.schemas.dashboard import TimeRange, ChartPoint, DeviceSummary
from waleki.schemas.device import DeviceCreate, DeviceUpdate, DeviceResponse, DeviceStatus
from waleki.schemas.reading import ReadingResponse
from waleki.services.aggregation import compute_chart_series, compute_device_summary

logger = structlog.get_logger(__name__)
router = APIRouter()

@router.get("/devices", response_model=List[DeviceResponse])
async def get_devices(
    device_status: Optional[DeviceStatus] = Query(None, alias="status"),
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get all devices, newest first"""
    return devices_crud.list_devices(db, status=device_status)

@router.get("/devices/{device_id}", response_model=DeviceResponse)
async def get_device(
    device_id: int,
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get a specific device"""
    return devices_crud.get_device(db, device_id)

@router.post("/devices", response_model=DeviceResponse, status_code=status.HTTP_201_CREATED)
async def create_device(
    device_data: DeviceCreate,
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_admin)
):
    """Create a new device (admin only)"""
    return devices_crud.create_device(db, device_data)

@router.put("/devices/{device_id}", response_model=DeviceResponse)
async def update_device(
    device_id: int,
    device_data: DeviceUpdate,
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_admin)
):
    """Update a device (admin only)"""
    return devices_crud.update_device(db, device_id, device_data)

@router.delete("/devices/{device_id}")
async def delete_device(
    device_id: int,
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_admin)
):
    """Delete a device and its readings (admin only)"""
    devices_crud.delete_device(db, device_id)
    return {"message": "Device deleted successfully"}

@router.get("/devices/{device_id}/readings", response_model=List[ReadingResponse])
async def get_device_readings(
    device_id: int,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    limit: Optional[int] = Query(None, ge=1, le=10000),
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get readings for a device, newest first"""

    # Verify device exists
    devices_crud.get_device(db, device_id)
    return get_readings(db, device_id, start_date, end_date, limit)

@router.get("/devices/{device_id}/chart", response_model=List[ChartPoint])
async def get_device_chart(
    device_id: int,
    time_range: TimeRange = Query(TimeRange.DAY_1, alias="timeRange"),
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Chronological chart series for the selected time range"""
    return compute_chart_series(db, device_id, time_range)

@router.get("/devices/{device_id}/summary", response_model=DeviceSummary)
async def get_device_summary(
    device_id: int,
    time_range: TimeRange = Query(TimeRange.DAY_1, alias="timeRange"),
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Summary statistics and the newest readings for the selected time range"""
    return compute_device_summary(db, device_id, time_range)
