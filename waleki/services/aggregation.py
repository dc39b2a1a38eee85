"""
Dashboard statistics and chart series derived from the reading store.

Nothing in this module writes to the database.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Union
from sqlalchemy import and_, func
from sqlalchemy.orm import Session
import structlog

from waleki.core.config import settings
from waleki.core.exceptions import ValidationError
from waleki.core.timeutils import utcnow
from waleki.crud.devices import get_device, list_devices
from waleki.crud.readings import get_readings
from waleki.models.device import Device
from waleki.models.reading import WaterReading
from waleki.schemas.dashboard import (
    TimeRange, DashboardStats, ChartPoint, DeviceChartData,
    SummaryStatistics, DateRange, DeviceSummary
)
from waleki.schemas.device import DeviceBrief
from waleki.schemas.reading import ReadingResponse

logger = structlog.get_logger(__name__)

SAMPLE_READINGS = 5

def _time_range(value: Union[TimeRange, str]) -> TimeRange:
    try:
        return TimeRange(value)
    except ValueError:
        allowed = ", ".join(item.value for item in TimeRange)
        raise ValidationError(f"Invalid time range '{value}', expected one of: {allowed}")

def compute_dashboard_stats(db: Session, now: Optional[datetime] = None, window_hours: Optional[int] = None) -> DashboardStats:
    """Device counts plus reading statistics over the trailing window.

    ``average_level`` is the mean of each device's own average level, taken
    over the devices that reported inside the window. A device with two
    readings weighs as much as one with two hundred.
    """

    now = now or utcnow()
    start_time = now - timedelta(hours=window_hours or settings.stats_window_hours)

    total_devices = db.query(func.count(Device.id)).scalar() or 0
    active_devices = db.query(func.count(Device.id)).filter(Device.status == "active").scalar() or 0

    per_device = db.query(
        WaterReading.device_id,
        func.count(WaterReading.id),
        func.avg(WaterReading.level),
        func.max(WaterReading.timestamp)
    ).filter(
        and_(
            WaterReading.timestamp >= start_time,
            WaterReading.timestamp <= now
        )
    ).group_by(WaterReading.device_id).all()

    total_readings = sum(count for _, count, _, _ in per_device)
    device_averages = [float(avg) for _, _, avg, _ in per_device if avg is not None]
    average_level = round(sum(device_averages) / len(device_averages), 2) if device_averages else 0.0
    latest = [last for _, _, _, last in per_device if last is not None]
    last_update = max(latest) if latest else now

    return DashboardStats(
        total_devices=total_devices,
        active_devices=active_devices,
        total_readings=total_readings,
        average_level=average_level,
        last_update=last_update
    )

def compute_chart_series(
    db: Session,
    device_id: int,
    time_range: Union[TimeRange, str],
    now: Optional[datetime] = None
) -> List[ChartPoint]:
    """Chronological (oldest first) points for a device over the selected range"""

    get_device(db, device_id)
    start_time, end_time = _time_range(time_range).window(now or utcnow())
    readings = get_readings(db, device_id, start_time, end_time)

    # The store returns newest first
    return [
        ChartPoint(timestamp=r.timestamp, level=r.level, temperature=r.temperature)
        for r in reversed(readings)
    ]

def compute_summary_statistics(readings: Iterable) -> Optional[SummaryStatistics]:
    """Min/max/average/latest/trend over readings in chronological order.

    Returns None for an empty input; trend needs at least two readings.
    """

    levels = [float(r.level) for r in readings]
    if not levels:
        return None

    trend = None
    if len(levels) >= 2:
        latest, previous = levels[-1], levels[-2]
        if latest > previous:
            trend = "up"
        elif latest < previous:
            trend = "down"
        else:
            trend = "stable"

    return SummaryStatistics(
        count=len(levels),
        min=min(levels),
        max=max(levels),
        average=sum(levels) / len(levels),
        latest=levels[-1],
        trend=trend
    )

def compute_device_summary(
    db: Session,
    device_id: int,
    time_range: Union[TimeRange, str] = TimeRange.DAY_1,
    now: Optional[datetime] = None
) -> DeviceSummary:
    """Statistics and a short sample of the newest readings for one device"""

    device = get_device(db, device_id)
    selected = _time_range(time_range)
    start_time, end_time = selected.window(now or utcnow())
    readings = get_readings(db, device_id, start_time, end_time)

    return DeviceSummary(
        device=DeviceBrief.model_validate(device),
        time_range=selected,
        date_range=DateRange(start=start_time, end=end_time),
        stats=compute_summary_statistics(reversed(readings)),
        sample_readings=[ReadingResponse.model_validate(r) for r in readings[:SAMPLE_READINGS]],
        total_readings=len(readings)
    )

def recent_readings(db: Session, hours: int = 24, now: Optional[datetime] = None) -> List[DeviceChartData]:
    """Chart data for every device over the last ``hours``"""

    if hours <= 0:
        raise ValidationError("Invalid hours parameter")

    end_time = now or utcnow()
    start_time = end_time - timedelta(hours=hours)

    charts = []
    for device in list_devices(db):
        readings = get_readings(db, device.id, start_time, end_time)
        charts.append(DeviceChartData(
            device_id=device.id,
            device_name=device.name,
            data=[
                ChartPoint(timestamp=r.timestamp, level=r.level, temperature=r.temperature)
                for r in reversed(readings)
            ]
        ))
    return charts
