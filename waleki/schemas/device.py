"""
Device Pydantic schemas
"""

from pydantic import Field
from typing import Optional, Literal
from datetime import datetime

from waleki.schemas.base import CamelModel

DeviceStatus = Literal["active", "inactive", "error"]

class AlertThresholds(CamelModel):
    """Level bounds that raise advisory alerts on ingestion"""
    low: float = Field(..., description="Critically low level (m)")
    high: float = Field(..., description="Critically high level (m)")

class Calibration(CamelModel):
    """Sensor calibration"""
    offset: float = Field(..., description="Offset added to raw readings")
    scale: float = Field(..., description="Scale applied to raw readings")

class DeviceSettings(CamelModel):
    """Full device settings as stored"""
    measurement_interval: int = Field(..., description="Measurement interval in minutes")
    alert_thresholds: AlertThresholds
    calibration: Calibration

# Input variants leave every field optional; completeness and ranges are
# checked by the device registry so create and partial update share one rule set.

class AlertThresholdsIn(CamelModel):
    low: Optional[float] = None
    high: Optional[float] = None

class CalibrationIn(CamelModel):
    offset: Optional[float] = None
    scale: Optional[float] = None

class DeviceSettingsIn(CamelModel):
    measurement_interval: Optional[int] = None
    alert_thresholds: Optional[AlertThresholdsIn] = None
    calibration: Optional[CalibrationIn] = None

class DeviceCreate(CamelModel):
    """Schema for creating a device"""
    name: Optional[str] = Field(None, description="Device name")
    location: Optional[str] = Field(None, description="Installation site")
    description: Optional[str] = Field(None, description="Free text description")
    settings: Optional[DeviceSettingsIn] = None

class DeviceUpdate(CamelModel):
    """Schema for updating a device; only supplied fields change"""
    name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    status: Optional[DeviceStatus] = None
    settings: Optional[DeviceSettingsIn] = None

class DeviceResponse(CamelModel):
    """Schema for device response"""
    id: int
    name: str
    location: str
    description: Optional[str] = None
    status: DeviceStatus
    last_seen: Optional[datetime] = None
    settings: DeviceSettings
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class DeviceBrief(CamelModel):
    """Device header used in summaries"""
    id: int
    name: str
    location: str
