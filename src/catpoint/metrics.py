"""
Expose coordinator state via Prometheus.

`PrometheusStatusListener` is registered like any other status listener and
mirrors alarm status, arming status and camera verdicts into gauges so
operators can alert on them without scraping logs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server

from .core.contracts import AlarmStatus, ArmingStatus, BaseStatusListener

logger = logging.getLogger(__name__)


def _default_server_factory(
    port: int, addr: str, registry: CollectorRegistry
) -> object:  # pragma: no cover - thin wrapper
    return start_http_server(port=port, addr=addr, registry=registry)


class PrometheusStatusListener(BaseStatusListener):
    """Status listener that exports alarm state as Prometheus metrics."""

    def __init__(
        self,
        *,
        registry: CollectorRegistry | None = None,
        server_factory: Callable[[int, str, CollectorRegistry], object] | None = None,
    ) -> None:
        self._registry = registry or CollectorRegistry()
        self._server_factory = server_factory or _default_server_factory
        self._server: object | None = None
        self._alarm_status = Gauge(
            "catpoint_alarm_status",
            "One-hot alarm status (1 for the current status).",
            ["status"],
            registry=self._registry,
        )
        self._arming_status = Gauge(
            "catpoint_arming_status",
            "One-hot arming status (1 for the current mode).",
            ["status"],
            registry=self._registry,
        )
        self._cat_detected = Gauge(
            "catpoint_cat_detected",
            "1 when the most recent image contained a cat.",
            registry=self._registry,
        )
        self._images_total = Counter(
            "catpoint_images_processed",
            "Images classified since startup.",
            registry=self._registry,
        )
        self._sensor_changes_total = Counter(
            "catpoint_sensor_changes",
            "Sensor set or activation changes since startup.",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def start(self, port: int = 9094, addr: str = "127.0.0.1") -> None:
        if self._server is None:
            self._server = self._server_factory(port, addr, self._registry)
            logger.info("Started Prometheus exporter on %s:%d", addr, port)

    def stop(self) -> None:
        server = getattr(self._server, "shutdown", None)
        if callable(server):
            server()
        self._server = None

    def seed(self, alarm: AlarmStatus, arming: ArmingStatus) -> None:
        """Initialise the gauges from the store before the first event."""
        self.on_status_changed(alarm)
        self.on_arming_status_changed(arming)

    def on_status_changed(self, status: AlarmStatus) -> None:
        for candidate in AlarmStatus:
            self._alarm_status.labels(status=candidate.value).set(
                1 if candidate is status else 0
            )

    def on_arming_status_changed(self, status: ArmingStatus) -> None:
        for candidate in ArmingStatus:
            self._arming_status.labels(status=candidate.value).set(
                1 if candidate is status else 0
            )

    def on_sensor_status_changed(self) -> None:
        self._sensor_changes_total.inc()

    def on_cat_detection_changed(self, cat_detected: bool) -> None:
        self._images_total.inc()
        self._cat_detected.set(1 if cat_detected else 0)


__all__ = ["PrometheusStatusListener"]
