"""
Water level reading model for time-series data
"""

from sqlalchemy import Column, Integer, DateTime, Float, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from waleki.database.connection import Base

class WaterReading(Base):
    """One timestamped sample reported by a device"""

    __tablename__ = "water_readings"
    __table_args__ = (
        Index("idx_water_readings_device_timestamp", "device_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(Integer, ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    level = Column(Float, nullable=False)  # meters
    temperature = Column(Float)  # Celsius
    battery_level = Column(Float)  # percentage
    timestamp = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())

    # Relationship
    device = relationship("Device", back_populates="readings")

    def __repr__(self):
        return f"<WaterReading(device_id={self.device_id}, level={self.level}, timestamp={self.timestamp})>"
