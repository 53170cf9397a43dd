from __future__ import annotations

import textwrap
from pathlib import Path
from unittest import mock

import pytest

from catpoint.core.config import ConfigService
from catpoint.core.contracts import AlarmStatus, ArmingStatus, Sensor, SensorType
from catpoint.store import InMemoryStatusStore


def _write_yaml(path: Path, content: str) -> None:
    path.write_text(textwrap.dedent(content).strip() + "\n", encoding="utf-8")


@pytest.fixture
def sample_config_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary configuration directory for tests.
    """

    config_dir = tmp_path / "config"
    config_dir.mkdir()
    database = tmp_path / "data" / "catpoint.db"
    config_yaml = f"""
    store:
      backend: "sql"
      database_url: "sqlite:///{database.as_posix()}"

    detector:
      backend: "fake"
      confidence_threshold: 65.0
      target_label: "cat"
      seed: 7

    metrics:
      enabled: true
      poll_seconds: 0.5

    logging:
      level: "debug"
    """
    _write_yaml(config_dir / "config.yaml", config_yaml)
    return config_dir


@pytest.fixture
def sample_config_service(sample_config_dir: Path) -> ConfigService:
    """Return a ConfigService wired to the temporary configuration."""

    return ConfigService(config_dir=sample_config_dir)


@pytest.fixture
def sensors() -> list[Sensor]:
    return [
        Sensor(name="sensorDoor", sensor_type=SensorType.DOOR),
        Sensor(name="sensorWindow", sensor_type=SensorType.WINDOW),
        Sensor(name="sensorMotion", sensor_type=SensorType.MOTION),
    ]


@pytest.fixture
def memory_store(sensors: list[Sensor]) -> InMemoryStatusStore:
    return InMemoryStatusStore(
        alarm_status=AlarmStatus.NO_ALARM,
        arming_status=ArmingStatus.DISARMED,
        sensors=sensors,
    )


@pytest.fixture
def mock_store(sensors: list[Sensor]) -> mock.MagicMock:
    """Store double that records writes and returns canned reads."""

    store = mock.create_autospec(InMemoryStatusStore, instance=True)
    store.get_sensors.return_value = set(sensors)
    store.get_alarm_status.return_value = AlarmStatus.NO_ALARM
    store.get_arming_status.return_value = ArmingStatus.DISARMED
    return store
