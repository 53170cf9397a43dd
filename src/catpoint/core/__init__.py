"""
Core building blocks: data model, transition rules, listeners and configuration.
"""

from .config import ConfigError, ConfigService, ConfigSnapshot
from .contracts import (
    AlarmStatus,
    ArmingStatus,
    BaseStatusListener,
    CatDetectionStore,
    ImageService,
    Sensor,
    SensorType,
    StatusListener,
    StatusStore,
)
from .listeners import ListenerRegistry
from .rules import SensorEvent, alarm_after_arming, alarm_after_image, alarm_after_sensor_event

__all__ = [
    "AlarmStatus",
    "ArmingStatus",
    "BaseStatusListener",
    "CatDetectionStore",
    "ConfigError",
    "ConfigService",
    "ConfigSnapshot",
    "ImageService",
    "ListenerRegistry",
    "Sensor",
    "SensorEvent",
    "SensorType",
    "StatusListener",
    "StatusStore",
    "alarm_after_arming",
    "alarm_after_image",
    "alarm_after_sensor_event",
]
