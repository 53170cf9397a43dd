"""
Catpoint - home security alarm coordinator

Decides the alarm state of a home from door/window/motion sensors, the
arming mode and a camera-based cat detector.
"""

__version__ = "0.1.0"

from catpoint.core.contracts import (
    AlarmStatus,
    ArmingStatus,
    BaseStatusListener,
    Sensor,
    SensorType,
)
from catpoint.service import SecurityService, UnknownSensorError
from catpoint.store import InMemoryStatusStore, SqlStatusStore

__all__ = [
    "AlarmStatus",
    "ArmingStatus",
    "BaseStatusListener",
    "InMemoryStatusStore",
    "SecurityService",
    "Sensor",
    "SensorType",
    "SqlStatusStore",
    "UnknownSensorError",
]
