"""
Status store implementations.

`InMemoryStatusStore` backs tests and throwaway sessions; `SqlStatusStore`
persists alarm status, arming status and sensors with SQLModel so the state
survives restarts. Storage errors are not caught here: the coordinator must
never decide a transition from a failed read.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from sqlmodel import Field, Session, SQLModel, select
from sqlmodel import create_engine as sqlmodel_create_engine

from .core.contracts import (
    AlarmStatus,
    ArmingStatus,
    BaseStatusListener,
    CatDetectionStore,
    Sensor,
    SensorType,
)

logger = logging.getLogger(__name__)

DEFAULT_ALARM_STATUS = AlarmStatus.NO_ALARM
DEFAULT_ARMING_STATUS = ArmingStatus.DISARMED


class InMemoryStatusStore:
    """Volatile store keeping everything in process memory."""

    def __init__(
        self,
        *,
        alarm_status: AlarmStatus = DEFAULT_ALARM_STATUS,
        arming_status: ArmingStatus = DEFAULT_ARMING_STATUS,
        sensors: Iterable[Sensor] = (),
    ) -> None:
        self._alarm_status = AlarmStatus(alarm_status)
        self._arming_status = ArmingStatus(arming_status)
        self._sensors: set[Sensor] = set(sensors)
        self._cat_detected = False

    def get_alarm_status(self) -> AlarmStatus:
        return self._alarm_status

    def set_alarm_status(self, status: AlarmStatus) -> None:
        self._alarm_status = status

    def get_arming_status(self) -> ArmingStatus:
        return self._arming_status

    def set_arming_status(self, status: ArmingStatus) -> None:
        self._arming_status = status

    def get_cat_detected(self) -> bool:
        return self._cat_detected

    def set_cat_detected(self, cat_detected: bool) -> None:
        self._cat_detected = cat_detected

    def get_sensors(self) -> set[Sensor]:
        return set(self._sensors)

    def add_sensor(self, sensor: Sensor) -> None:
        self._sensors.add(sensor)

    def remove_sensor(self, sensor: Sensor) -> None:
        self._sensors.discard(sensor)

    def update_sensor(self, sensor: Sensor) -> None:
        # Replace so the stored object carries the caller's active flag.
        self._sensors.discard(sensor)
        self._sensors.add(sensor)


class SensorRecord(SQLModel, table=True):
    """Row describing one registered sensor."""

    __tablename__ = "sensor"

    name: str = Field(primary_key=True)
    sensor_type: str = Field(primary_key=True)
    active: bool = Field(default=False)


class SystemStatusRecord(SQLModel, table=True):
    """Single-row table holding the current alarm and arming status."""

    __tablename__ = "system_status"

    id: int = Field(default=1, primary_key=True)
    alarm_status: str = Field(default=DEFAULT_ALARM_STATUS.value)
    arming_status: str = Field(default=DEFAULT_ARMING_STATUS.value)
    cat_detected: bool = Field(default=False)


class SqlStatusStore:
    """Durable store backed by any SQLAlchemy-supported database."""

    def __init__(
        self,
        database_url: str = "sqlite:///data/catpoint.db",
        *,
        engine_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self._database_url = database_url
        factory = engine_factory or _default_engine_factory
        self._engine = factory(database_url)
        SQLModel.metadata.create_all(self._engine)
        logger.debug("SqlStatusStore ready on %s", database_url)

    @property
    def database_url(self) -> str:
        return self._database_url

    def get_alarm_status(self) -> AlarmStatus:
        with Session(self._engine) as session:
            return AlarmStatus(self._status_row(session).alarm_status)

    def set_alarm_status(self, status: AlarmStatus) -> None:
        with Session(self._engine) as session:
            row = self._status_row(session)
            row.alarm_status = AlarmStatus(status).value
            session.add(row)
            session.commit()

    def get_arming_status(self) -> ArmingStatus:
        with Session(self._engine) as session:
            return ArmingStatus(self._status_row(session).arming_status)

    def set_arming_status(self, status: ArmingStatus) -> None:
        with Session(self._engine) as session:
            row = self._status_row(session)
            row.arming_status = ArmingStatus(status).value
            session.add(row)
            session.commit()

    def get_cat_detected(self) -> bool:
        with Session(self._engine) as session:
            return self._status_row(session).cat_detected

    def set_cat_detected(self, cat_detected: bool) -> None:
        with Session(self._engine) as session:
            row = self._status_row(session)
            row.cat_detected = bool(cat_detected)
            session.add(row)
            session.commit()

    def get_sensors(self) -> set[Sensor]:
        with Session(self._engine) as session:
            records = session.exec(select(SensorRecord)).all()
            return {
                Sensor(
                    name=record.name,
                    sensor_type=SensorType(record.sensor_type),
                    active=record.active,
                )
                for record in records
            }

    def add_sensor(self, sensor: Sensor) -> None:
        with Session(self._engine) as session:
            if session.get(SensorRecord, _record_key(sensor)) is not None:
                return
            session.add(
                SensorRecord(
                    name=sensor.name,
                    sensor_type=sensor.sensor_type.value,
                    active=sensor.active,
                )
            )
            session.commit()

    def remove_sensor(self, sensor: Sensor) -> None:
        with Session(self._engine) as session:
            record = session.get(SensorRecord, _record_key(sensor))
            if record is None:
                return
            session.delete(record)
            session.commit()

    def update_sensor(self, sensor: Sensor) -> None:
        with Session(self._engine) as session:
            record = session.get(SensorRecord, _record_key(sensor))
            if record is None:
                record = SensorRecord(name=sensor.name, sensor_type=sensor.sensor_type.value)
            record.active = sensor.active
            session.add(record)
            session.commit()

    def _status_row(self, session: Session) -> SystemStatusRecord:
        row = session.get(SystemStatusRecord, 1)
        if row is None:
            row = SystemStatusRecord(id=1)
            session.add(row)
            session.commit()
            session.refresh(row)
        return row


class CatDetectionRecorder(BaseStatusListener):
    """Listener writing each camera verdict back to the store."""

    def __init__(self, store: CatDetectionStore) -> None:
        self._store = store

    def on_cat_detection_changed(self, cat_detected: bool) -> None:
        self._store.set_cat_detected(cat_detected)


def _record_key(sensor: Sensor) -> tuple[str, str]:
    return (sensor.name, sensor.sensor_type.value)


def _default_engine_factory(database_url: str):
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return sqlmodel_create_engine(database_url, echo=False, connect_args=connect_args)


__all__ = [
    "DEFAULT_ALARM_STATUS",
    "DEFAULT_ARMING_STATUS",
    "CatDetectionRecorder",
    "InMemoryStatusStore",
    "SensorRecord",
    "SqlStatusStore",
    "SystemStatusRecord",
]
