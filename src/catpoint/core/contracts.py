"""
Data model and collaborator contracts for the Catpoint alarm coordinator.

The coordinator owns no durable state: alarm status, arming status and the
sensor set live behind a `StatusStore`, image classification behind an
`ImageService`, and change notifications go out to `StatusListener` observers.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class SensorType(str, Enum):
    """Physical category of a sensor."""

    DOOR = "DOOR"
    WINDOW = "WINDOW"
    MOTION = "MOTION"


class AlarmStatus(str, Enum):
    """Three-level threat state."""

    NO_ALARM = "NO_ALARM"
    PENDING_ALARM = "PENDING_ALARM"
    ALARM = "ALARM"

    @property
    def description(self) -> str:
        return _ALARM_DESCRIPTIONS[self]


class ArmingStatus(str, Enum):
    """Whether sensor and camera events may raise alarms."""

    DISARMED = "DISARMED"
    ARMED_HOME = "ARMED_HOME"
    ARMED_AWAY = "ARMED_AWAY"

    @property
    def description(self) -> str:
        return _ARMING_DESCRIPTIONS[self]

    @property
    def is_armed(self) -> bool:
        return self is not ArmingStatus.DISARMED


_ALARM_DESCRIPTIONS = {
    AlarmStatus.NO_ALARM: "Cool and Good",
    AlarmStatus.PENDING_ALARM: "I'm in Danger...",
    AlarmStatus.ALARM: "Awooga!",
}

_ARMING_DESCRIPTIONS = {
    ArmingStatus.DISARMED: "Disarmed",
    ArmingStatus.ARMED_HOME: "Armed - At Home",
    ArmingStatus.ARMED_AWAY: "Armed - Away",
}


class Sensor(BaseModel):
    """
    Named door/window/motion sensor.

    Identity is the (name, sensor_type) pair; the `active` flag is mutable
    state and does not take part in equality or hashing, so a sensor can be
    looked up in a set regardless of whether it is currently firing.
    """

    model_config = ConfigDict(validate_assignment=True)

    name: str = Field(min_length=1)
    sensor_type: SensorType
    active: bool = Field(default=False)

    @property
    def key(self) -> tuple[str, SensorType]:
        return (self.name, self.sensor_type)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sensor):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __lt__(self, other: Sensor) -> bool:
        return (self.name, self.sensor_type.value) < (other.name, other.sensor_type.value)


@runtime_checkable
class StatusStore(Protocol):
    """Persistence boundary for alarm status, arming status and the sensor set."""

    def get_alarm_status(self) -> AlarmStatus: ...

    def set_alarm_status(self, status: AlarmStatus) -> None: ...

    def get_arming_status(self) -> ArmingStatus: ...

    def set_arming_status(self, status: ArmingStatus) -> None: ...

    def get_sensors(self) -> set[Sensor]: ...

    def add_sensor(self, sensor: Sensor) -> None: ...

    def remove_sensor(self, sensor: Sensor) -> None: ...

    def update_sensor(self, sensor: Sensor) -> None: ...


@runtime_checkable
class CatDetectionStore(StatusStore, Protocol):
    """Store that also remembers the last camera verdict across restarts."""

    def get_cat_detected(self) -> bool: ...

    def set_cat_detected(self, cat_detected: bool) -> None: ...


@runtime_checkable
class ImageService(Protocol):
    """Image classifier answering "is there a cat in this picture?"."""

    def score_image(self, image: Any, confidence_threshold: float) -> bool: ...


@runtime_checkable
class StatusListener(Protocol):
    """Observer notified about coordinator state changes."""

    def on_status_changed(self, status: AlarmStatus) -> None: ...

    def on_arming_status_changed(self, status: ArmingStatus) -> None: ...

    def on_sensor_status_changed(self) -> None: ...

    def on_cat_detection_changed(self, cat_detected: bool) -> None: ...


class BaseStatusListener:
    """
    Convenience base class with no-op handlers.

    Observers subclass it and override only the notifications they care about.
    """

    def on_status_changed(self, status: AlarmStatus) -> None:
        return None

    def on_arming_status_changed(self, status: ArmingStatus) -> None:
        return None

    def on_sensor_status_changed(self) -> None:
        return None

    def on_cat_detection_changed(self, cat_detected: bool) -> None:
        return None


__all__ = [
    "AlarmStatus",
    "ArmingStatus",
    "BaseStatusListener",
    "CatDetectionStore",
    "ImageService",
    "Sensor",
    "SensorType",
    "StatusListener",
    "StatusStore",
]
