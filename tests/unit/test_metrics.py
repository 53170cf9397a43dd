from __future__ import annotations

from prometheus_client import CollectorRegistry

from catpoint.core.contracts import AlarmStatus, ArmingStatus, Sensor, SensorType
from catpoint.detector import FakeImageService
from catpoint.metrics import PrometheusStatusListener
from catpoint.service import SecurityService
from catpoint.store import InMemoryStatusStore


class FakeServer:
    def __init__(self) -> None:
        self.shutdown_called = False

    def shutdown(self) -> None:
        self.shutdown_called = True


class AlwaysCat(FakeImageService):
    def score_image(self, image, confidence_threshold: float) -> bool:
        return True


def _alarm(registry: CollectorRegistry, status: AlarmStatus) -> float | None:
    return registry.get_sample_value("catpoint_alarm_status", {"status": status.value})


def test_listener_tracks_coordinator_state() -> None:
    registry = CollectorRegistry()
    listener = PrometheusStatusListener(registry=registry)
    store = InMemoryStatusStore(sensors=[Sensor(name="front", sensor_type=SensorType.DOOR)])
    service = SecurityService(store, AlwaysCat())
    listener.seed(service.get_alarm_status(), service.get_arming_status())
    service.add_status_listener(listener)

    assert _alarm(registry, AlarmStatus.NO_ALARM) == 1

    service.set_arming_status(ArmingStatus.ARMED_HOME)
    service.process_image(b"frame")

    assert _alarm(registry, AlarmStatus.ALARM) == 1
    assert _alarm(registry, AlarmStatus.NO_ALARM) == 0
    assert (
        registry.get_sample_value("catpoint_arming_status", {"status": "ARMED_HOME"}) == 1
    )
    assert registry.get_sample_value("catpoint_cat_detected") == 1
    assert registry.get_sample_value("catpoint_images_processed_total") == 1
    assert registry.get_sample_value("catpoint_sensor_changes_total") == 1


def test_exporter_server_lifecycle() -> None:
    started = {}

    def factory(port: int, addr: str, _registry: CollectorRegistry) -> FakeServer:
        started["port"] = port
        started["addr"] = addr
        started["server"] = FakeServer()
        return started["server"]

    listener = PrometheusStatusListener(server_factory=factory)
    listener.start(port=9999, addr="127.0.0.1")
    listener.start(port=1234)
    listener.stop()

    assert started["port"] == 9999
    assert started["server"].shutdown_called is True
