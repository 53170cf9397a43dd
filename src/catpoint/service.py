"""
Alarm coordinator for the Catpoint home security service.

`SecurityService` receives sensor toggles, arming requests and camera images,
decides the resulting alarm status with the rules in `catpoint.core.rules`,
writes the outcome to the injected `StatusStore` and notifies listeners.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from .core.contracts import (
    AlarmStatus,
    ArmingStatus,
    ImageService,
    Sensor,
    StatusListener,
    StatusStore,
)
from .core.listeners import ListenerRegistry
from .core.rules import (
    SensorEvent,
    alarm_after_arming,
    alarm_after_image,
    alarm_after_sensor_event,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 50.0


class UnknownSensorError(ValueError):
    """Raised when an operation references a sensor that was never added."""


class SecurityService:
    """
    Coordinates alarm state between sensors, the camera and the status store.

    Every public operation is a single read-decide-write critical section
    guarded by a re-entrant lock, so listeners may call back into the
    service while being notified.
    """

    def __init__(
        self,
        store: StatusStore,
        image_service: ImageService,
        *,
        listeners: ListenerRegistry | None = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        cat_detected: bool = False,
    ) -> None:
        self._store = store
        self._image_service = image_service
        self._listeners = listeners if listeners is not None else ListenerRegistry()
        self._confidence_threshold = float(confidence_threshold)
        self._cat_detected = bool(cat_detected)
        self._lock = threading.RLock()

    @property
    def cat_detected(self) -> bool:
        """Whether the most recently processed image contained a cat."""
        return self._cat_detected

    @property
    def listeners(self) -> ListenerRegistry:
        return self._listeners

    @property
    def confidence_threshold(self) -> float:
        return self._confidence_threshold

    # -- arming -----------------------------------------------------------

    def set_arming_status(self, arming_status: ArmingStatus | str) -> None:
        """
        Change the arming mode.

        Disarming always clears the alarm. Arming resets every sensor to
        inactive in one pass and raises the alarm straight away if the last
        processed image contained a cat.
        """
        status = ArmingStatus(arming_status)
        with self._lock:
            logger.info("Arming status changing to %s", status.value)
            self._store.set_arming_status(status)
            self._listeners.publish("on_arming_status_changed", status)
            if status.is_armed:
                self._reset_sensors()
            new_alarm = alarm_after_arming(status, self._cat_detected)
            if new_alarm is not None:
                self._set_alarm_status(new_alarm)

    def _reset_sensors(self) -> None:
        for sensor in list(self._store.get_sensors()):
            sensor.active = False
            self._store.update_sensor(sensor)
        logger.debug("All sensors reset to inactive")
        self._listeners.publish("on_sensor_status_changed")

    # -- sensors ----------------------------------------------------------

    def change_sensor_activation_status(self, sensor: Sensor, active: bool | None = None) -> None:
        """
        Apply a sensor activation change.

        When ``active`` is omitted the stored activation flag is inverted,
        which is how single "sensor fired/cleared" signals are reported.
        """
        with self._lock:
            stored = next((item for item in self._store.get_sensors() if item == sensor), None)
            if stored is None:
                raise UnknownSensorError(
                    f"Sensor {sensor.name!r} ({sensor.sensor_type.value}) is not registered."
                )
            # The store owns the flag; the caller's object may be stale.
            was_active = stored.active
            target = (not was_active) if active is None else bool(active)
            alarm = self._store.get_alarm_status()
            arming = self._store.get_arming_status()

            sensor.active = target
            self._store.update_sensor(sensor)
            logger.debug(
                "Sensor %s %s -> %s", sensor.name, _state_label(was_active), _state_label(target)
            )

            new_alarm = alarm_after_sensor_event(alarm, arming, SensorEvent(was_active, target))
            if new_alarm is not None:
                self._set_alarm_status(new_alarm)
            self._listeners.publish("on_sensor_status_changed")

    # -- camera -----------------------------------------------------------

    def process_image(self, image: Any) -> bool:
        """
        Classify ``image`` and update the alarm accordingly.

        Returns the detector verdict. The verdict is remembered even when it
        does not change the alarm so a later arming request can react to it.
        """
        with self._lock:
            cat_detected = bool(
                self._image_service.score_image(image, self._confidence_threshold)
            )
            self._cat_detected = cat_detected
            logger.info("Image processed: cat %s", "detected" if cat_detected else "not detected")

            any_active = False
            if not cat_detected:
                any_active = any(sensor.active for sensor in self._store.get_sensors())
            new_alarm = alarm_after_image(
                cat_detected, self._store.get_arming_status(), any_active
            )
            if new_alarm is not None:
                self._set_alarm_status(new_alarm)
            self._listeners.publish("on_cat_detection_changed", cat_detected)
            return cat_detected

    def _set_alarm_status(self, status: AlarmStatus) -> None:
        self._store.set_alarm_status(status)
        logger.info("Alarm status set to %s", status.value)
        self._listeners.publish("on_status_changed", status)

    # -- registry and accessors -------------------------------------------

    def add_status_listener(self, listener: StatusListener) -> None:
        self._listeners.add(listener)

    def remove_status_listener(self, listener: StatusListener) -> None:
        self._listeners.remove(listener)

    def add_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            self._store.add_sensor(sensor)
            self._listeners.publish("on_sensor_status_changed")

    def remove_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            self._store.remove_sensor(sensor)
            self._listeners.publish("on_sensor_status_changed")

    def get_alarm_status(self) -> AlarmStatus:
        return self._store.get_alarm_status()

    def get_arming_status(self) -> ArmingStatus:
        return self._store.get_arming_status()

    def get_sensors(self) -> set[Sensor]:
        return self._store.get_sensors()


def _state_label(active: bool) -> str:
    return "active" if active else "inactive"


__all__ = ["DEFAULT_CONFIDENCE_THRESHOLD", "SecurityService", "UnknownSensorError"]
