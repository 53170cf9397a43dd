"""Tests for the pure alarm transition rules."""

from __future__ import annotations

import pytest

from catpoint.core.contracts import AlarmStatus, ArmingStatus
from catpoint.core.rules import (
    SensorEvent,
    alarm_after_arming,
    alarm_after_image,
    alarm_after_sensor_event,
)

ARMED = [ArmingStatus.ARMED_HOME, ArmingStatus.ARMED_AWAY]
ACTIVATE = SensorEvent(was_active=False, active=True)
DEACTIVATE = SensorEvent(was_active=True, active=False)


@pytest.mark.parametrize("arming", ARMED)
def test_activation_while_armed_escalates(arming: ArmingStatus) -> None:
    assert alarm_after_sensor_event(AlarmStatus.NO_ALARM, arming, ACTIVATE) is (
        AlarmStatus.PENDING_ALARM
    )
    assert alarm_after_sensor_event(AlarmStatus.PENDING_ALARM, arming, ACTIVATE) is (
        AlarmStatus.ALARM
    )


def test_activation_of_already_active_sensor_while_pending_raises_alarm() -> None:
    event = SensorEvent(was_active=True, active=True)
    result = alarm_after_sensor_event(AlarmStatus.PENDING_ALARM, ArmingStatus.ARMED_AWAY, event)
    assert result is AlarmStatus.ALARM


@pytest.mark.parametrize("alarm", [AlarmStatus.NO_ALARM, AlarmStatus.PENDING_ALARM])
def test_activation_while_disarmed_is_ignored(alarm: AlarmStatus) -> None:
    assert alarm_after_sensor_event(alarm, ArmingStatus.DISARMED, ACTIVATE) is None


@pytest.mark.parametrize("arming", list(ArmingStatus))
@pytest.mark.parametrize("event", [ACTIVATE, DEACTIVATE, SensorEvent(False, False)])
def test_active_alarm_is_never_changed_by_sensors(
    arming: ArmingStatus, event: SensorEvent
) -> None:
    assert alarm_after_sensor_event(AlarmStatus.ALARM, arming, event) is None


@pytest.mark.parametrize("arming", list(ArmingStatus))
def test_deactivation_clears_pending(arming: ArmingStatus) -> None:
    assert alarm_after_sensor_event(AlarmStatus.PENDING_ALARM, arming, DEACTIVATE) is (
        AlarmStatus.NO_ALARM
    )


@pytest.mark.parametrize("alarm", list(AlarmStatus))
def test_deactivating_inactive_sensor_is_a_no_op(alarm: AlarmStatus) -> None:
    event = SensorEvent(was_active=False, active=False)
    assert alarm_after_sensor_event(alarm, ArmingStatus.ARMED_HOME, event) is None


def test_deactivation_without_pending_is_a_no_op() -> None:
    result = alarm_after_sensor_event(AlarmStatus.NO_ALARM, ArmingStatus.ARMED_HOME, DEACTIVATE)
    assert result is None


@pytest.mark.parametrize("cat_detected", [True, False])
def test_disarming_always_clears_alarm(cat_detected: bool) -> None:
    assert alarm_after_arming(ArmingStatus.DISARMED, cat_detected) is AlarmStatus.NO_ALARM


@pytest.mark.parametrize("arming", ARMED)
def test_arming_with_remembered_cat_raises_alarm(arming: ArmingStatus) -> None:
    assert alarm_after_arming(arming, True) is AlarmStatus.ALARM
    assert alarm_after_arming(arming, False) is None


def test_cat_while_armed_home_raises_alarm() -> None:
    assert alarm_after_image(True, ArmingStatus.ARMED_HOME, any_sensor_active=True) is (
        AlarmStatus.ALARM
    )


@pytest.mark.parametrize("arming", [ArmingStatus.ARMED_AWAY, ArmingStatus.DISARMED])
def test_cat_outside_armed_home_leaves_alarm(arming: ArmingStatus) -> None:
    assert alarm_after_image(True, arming, any_sensor_active=False) is None


@pytest.mark.parametrize("arming", list(ArmingStatus))
def test_no_cat_and_quiet_sensors_clears_alarm(arming: ArmingStatus) -> None:
    assert alarm_after_image(False, arming, any_sensor_active=False) is AlarmStatus.NO_ALARM
    assert alarm_after_image(False, arming, any_sensor_active=True) is None
