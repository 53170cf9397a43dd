"""
Pure alarm transition rules.

Each function answers "what should the alarm status become?" for one kind of
input and returns ``None`` when the current status must be left untouched.
They hold no state and perform no I/O so the whole rule set can be checked
without a store or observers.
"""

from __future__ import annotations

from dataclasses import dataclass

from .contracts import AlarmStatus, ArmingStatus


@dataclass(frozen=True)
class SensorEvent:
    """A requested activation change for one sensor."""

    was_active: bool
    active: bool

    @property
    def is_deactivation(self) -> bool:
        return self.was_active and not self.active


def alarm_after_sensor_event(
    alarm: AlarmStatus, arming: ArmingStatus, event: SensorEvent
) -> AlarmStatus | None:
    """Transition triggered by a sensor being activated or deactivated."""
    if alarm is AlarmStatus.ALARM:
        return None
    if event.active:
        if not arming.is_armed:
            return None
        if alarm is AlarmStatus.NO_ALARM:
            return AlarmStatus.PENDING_ALARM
        return AlarmStatus.ALARM
    # An already-inactive sensor going inactive again is not an event.
    if event.is_deactivation and alarm is AlarmStatus.PENDING_ALARM:
        return AlarmStatus.NO_ALARM
    return None


def alarm_after_arming(arming: ArmingStatus, cat_detected: bool) -> AlarmStatus | None:
    """Transition triggered by an arming mode change."""
    if arming is ArmingStatus.DISARMED:
        return AlarmStatus.NO_ALARM
    if cat_detected:
        return AlarmStatus.ALARM
    return None


def alarm_after_image(
    cat_detected: bool, arming: ArmingStatus, any_sensor_active: bool
) -> AlarmStatus | None:
    """Transition triggered by a classified camera image."""
    if cat_detected:
        if arming is ArmingStatus.ARMED_HOME:
            return AlarmStatus.ALARM
        return None
    if not any_sensor_active:
        return AlarmStatus.NO_ALARM
    return None


__all__ = [
    "SensorEvent",
    "alarm_after_arming",
    "alarm_after_image",
    "alarm_after_sensor_event",
]
