"""
Device model for water-level monitoring stations
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, Text, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from waleki.database.connection import Base

DEVICE_STATUSES = ("active", "inactive", "error")

class Device(Base):
    """Device model representing a water-level sensor"""

    __tablename__ = "devices"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive', 'error')", name="ck_devices_status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(50), nullable=False, default="inactive")  # active, inactive, error
    last_seen = Column(DateTime, index=True)

    # Settings
    measurement_interval = Column(Integer, nullable=False, default=15)  # minutes
    alert_threshold_low = Column(Float, nullable=False, default=0.5)
    alert_threshold_high = Column(Float, nullable=False, default=5.0)
    calibration_offset = Column(Float, nullable=False, default=0.0)
    calibration_scale = Column(Float, nullable=False, default=1.0)

    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    readings = relationship(
        "WaterReading",
        back_populates="device",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    @property
    def settings(self) -> dict:
        """Nested settings view of the flat threshold/calibration columns"""
        return {
            "measurement_interval": self.measurement_interval,
            "alert_thresholds": {
                "low": self.alert_threshold_low,
                "high": self.alert_threshold_high
            },
            "calibration": {
                "offset": self.calibration_offset,
                "scale": self.calibration_scale
            }
        }

    def __repr__(self):
        return f"<Device(id={self.id}, name={self.name}, status={self.status})>"
