# Models package
from .device import Device
from .reading import WaterReading
from .user import User

__all__ = ['Device', 'WaterReading', 'User']
