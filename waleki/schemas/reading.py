"""
Reading and ingestion Pydantic schemas
"""

from pydantic import Field
from typing import Any, Optional, List
from datetime import datetime

from waleki.schemas.base import CamelModel

class ReadingResponse(CamelModel):
    """Schema for a stored reading"""
    id: int
    device_id: int
    level: float
    temperature: Optional[float] = None
    battery_level: Optional[float] = None
    timestamp: datetime

class IngestPayload(CamelModel):
    """Telemetry pushed by a field device"""
    device_id: Optional[int] = Field(None, description="Registered device id")
    level: Optional[float] = Field(None, description="Water level in meters")
    temperature: Optional[float] = Field(None, description="Water temperature in Celsius")
    battery_level: Optional[float] = Field(None, description="Battery charge in percent")
    timestamp: Optional[datetime] = Field(None, description="Sample time, defaults to server time")

class IngestResponse(CamelModel):
    message: str = "Data received successfully"
    reading: ReadingResponse
    alerts: List[str] = []

class BatchIngestRequest(CamelModel):
    # Raw items, validated one by one by the ingestion gateway
    readings: List[Any]

class BatchItemResult(CamelModel):
    index: int
    reading: ReadingResponse
    alerts: List[str] = []

class BatchItemError(CamelModel):
    index: int
    error: str

class BatchIngestResponse(CamelModel):
    message: str
    success: int
    error_count: int
    results: List[BatchItemResult]
    errors: List[BatchItemError]

class HeartbeatResponse(CamelModel):
    message: str = "Health check successful"
    device_id: int
    status: str
    last_seen: Optional[datetime] = None
    server_time: datetime
