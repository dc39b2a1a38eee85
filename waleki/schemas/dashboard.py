"""
Dashboard and chart Pydantic schemas
"""

from enum import Enum
from datetime import datetime, timedelta
from typing import Optional, List, Literal

from waleki.schemas.base import CamelModel
from waleki.schemas.device import DeviceBrief
from waleki.schemas.reading import ReadingResponse

class TimeRange(str, Enum):
    """Chart windows selectable from the UI"""
    MINUTES_30 = "30min"
    HOUR_1 = "1hour"
    HOURS_6 = "6hours"
    DAY_1 = "1day"
    WEEK_1 = "1week"

    @property
    def duration(self) -> timedelta:
        return _DURATIONS[self]

    def window(self, now: datetime):
        """Concrete [start, end] ending at now"""
        return now - self.duration, now

_DURATIONS = {
    TimeRange.MINUTES_30: timedelta(minutes=30),
    TimeRange.HOUR_1: timedelta(hours=1),
    TimeRange.HOURS_6: timedelta(hours=6),
    TimeRange.DAY_1: timedelta(days=1),
    TimeRange.WEEK_1: timedelta(days=7),
}

class DashboardStats(CamelModel):
    total_devices: int
    active_devices: int
    total_readings: int
    average_level: float
    last_update: datetime

class ChartPoint(CamelModel):
    timestamp: datetime
    level: float
    temperature: Optional[float] = None

class DeviceChartData(CamelModel):
    device_id: int
    device_name: str
    data: List[ChartPoint]

class SummaryStatistics(CamelModel):
    count: int
    min: float
    max: float
    average: float
    latest: float
    trend: Optional[Literal["up", "down", "stable"]] = None

class DateRange(CamelModel):
    start: datetime
    end: datetime

class DeviceSummary(CamelModel):
    device: DeviceBrief
    time_range: TimeRange
    date_range: DateRange
    stats: Optional[SummaryStatistics] = None
    sample_readings: List[ReadingResponse]
    total_readings: int
