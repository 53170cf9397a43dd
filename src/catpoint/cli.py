"""
Command line entrypoint for operating a Catpoint installation.

Each invocation loads the Dynaconf configuration, wires the status store,
the image service and optional Prometheus listener into a `SecurityService`,
applies one operator command and prints the resulting state. The `serve`
command instead keeps the Prometheus exporter running until interrupted.
"""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import sys
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from .core.config import (
    ConfigError,
    ConfigService,
    ConfigSnapshot,
    LoggingSettings,
    MetricsSettings,
)
from .core.contracts import (
    ArmingStatus,
    CatDetectionStore,
    ImageService,
    Sensor,
    SensorType,
    StatusStore,
)
from .detector import FakeImageService, YoloImageService
from .metrics import PrometheusStatusListener
from .service import SecurityService, UnknownSensorError
from .store import CatDetectionRecorder, InMemoryStatusStore, SqlStatusStore

LOGGER = logging.getLogger(__name__)
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

ARMING_CHOICES = {
    "home": ArmingStatus.ARMED_HOME,
    "away": ArmingStatus.ARMED_AWAY,
}


def _ensure_rotating_file_handler(
    log_file: Path,
    *,
    max_mb: int = 10,
    backup_count: int = 3,
) -> None:
    """Attach a rotating file handler pointed at ``log_file`` if missing."""

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create log directory %s: %s", log_file.parent, exc)
        return

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            existing = getattr(handler, "baseFilename", None)
            if existing and Path(existing) == log_file.resolve():
                return

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)


def configure_logging(level: str, settings: LoggingSettings | None = None) -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
    )
    if settings is not None and settings.file is not None:
        _ensure_rotating_file_handler(
            settings.file, max_mb=settings.max_mb, backup_count=settings.backup_count
        )


def build_store(snapshot: ConfigSnapshot) -> StatusStore:
    if snapshot.store.backend == "memory":
        return InMemoryStatusStore()
    return SqlStatusStore(snapshot.store.database_url)


def build_image_service(snapshot: ConfigSnapshot) -> ImageService:
    detector = snapshot.detector
    if detector.backend == "yolo":
        return YoloImageService(model_path=detector.model_path, target_label=detector.target_label)
    return FakeImageService(seed=detector.seed)


def build_service(
    snapshot: ConfigSnapshot,
    *,
    store: StatusStore | None = None,
    image_service: ImageService | None = None,
) -> SecurityService:
    """Wire a `SecurityService` from a validated configuration snapshot."""
    if store is None:
        store = build_store(snapshot)
    remembers_cat = isinstance(store, CatDetectionStore)
    service = SecurityService(
        store,
        image_service or build_image_service(snapshot),
        confidence_threshold=snapshot.detector.confidence_threshold,
        cat_detected=store.get_cat_detected() if remembers_cat else False,
    )
    if remembers_cat:
        service.add_status_listener(CatDetectionRecorder(store))
    if snapshot.metrics.enabled:
        listener = PrometheusStatusListener()
        listener.seed(service.get_alarm_status(), service.get_arming_status())
        service.add_status_listener(listener)
    LOGGER.debug(
        "SecurityService wired with %s store and %s detector",
        snapshot.store.backend,
        snapshot.detector.backend,
    )
    return service


def serve_metrics(
    service: SecurityService,
    settings: MetricsSettings,
    *,
    stop_event: threading.Event | None = None,
) -> None:
    """Serve Prometheus metrics until ``stop_event`` is set or the process is interrupted.

    Gauges are reseeded from the store every ``poll_seconds`` so changes made
    by other invocations against the same database show up on the exporter.
    """
    listener = next(
        (item for item in service.listeners if isinstance(item, PrometheusStatusListener)),
        None,
    )
    if listener is None:
        listener = PrometheusStatusListener()
        service.add_status_listener(listener)
    stop_event = stop_event or threading.Event()
    listener.start(port=settings.port, addr=settings.addr)
    try:
        while True:
            listener.seed(service.get_alarm_status(), service.get_arming_status())
            if stop_event.wait(settings.poll_seconds):
                break
    finally:
        listener.stop()
        LOGGER.info("Prometheus exporter stopped.")


def _lookup_sensor(service: SecurityService, name: str, sensor_type: SensorType) -> Sensor:
    wanted = Sensor(name=name, sensor_type=sensor_type)
    for sensor in service.get_sensors():
        if sensor == wanted:
            return sensor
    raise UnknownSensorError(f"Sensor {name!r} ({sensor_type.value}) is not registered.")


def run_command(service: SecurityService, args: argparse.Namespace, out: TextIO) -> None:
    command = args.command
    if command == "arm":
        service.set_arming_status(ARMING_CHOICES[args.mode])
    elif command == "disarm":
        service.set_arming_status(ArmingStatus.DISARMED)
    elif command == "image":
        cat_detected = service.process_image(args.path)
        print(f"Cat detected: {'yes' if cat_detected else 'no'}", file=out)
    elif command == "sensor":
        sensor_type = SensorType(args.sensor_type.upper())
        if args.action == "add":
            service.add_sensor(Sensor(name=args.name, sensor_type=sensor_type))
        elif args.action == "remove":
            service.remove_sensor(_lookup_sensor(service, args.name, sensor_type))
        elif args.action == "toggle":
            service.change_sensor_activation_status(
                _lookup_sensor(service, args.name, sensor_type)
            )
        else:
            service.change_sensor_activation_status(
                _lookup_sensor(service, args.name, sensor_type), args.state == "on"
            )
    print_status(service, out)


def print_status(service: SecurityService, out: TextIO) -> None:
    alarm = service.get_alarm_status()
    arming = service.get_arming_status()
    print(f"Alarm status: {alarm.value} ({alarm.description})", file=out)
    print(f"Arming status: {arming.value} ({arming.description})", file=out)
    for sensor in sorted(service.get_sensors()):
        state = "active" if sensor.active else "inactive"
        print(f"  {sensor.name} [{sensor.sensor_type.value}] {state}", file=out)


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Catpoint home security control.")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory that contains config.yaml (default: repo config/).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Python logging level (default: value from config, else INFO).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("status", help="Show alarm, arming and sensor status.")
    arm = commands.add_parser("arm", help="Arm the system.")
    arm.add_argument("mode", choices=sorted(ARMING_CHOICES))
    commands.add_parser("disarm", help="Disarm the system and clear the alarm.")
    commands.add_parser(
        "serve", help="Serve Prometheus metrics over HTTP until interrupted."
    )
    image = commands.add_parser("image", help="Run the cat detector on an image file.")
    image.add_argument("path", type=Path)

    sensor = commands.add_parser("sensor", help="Manage sensors.")
    actions = sensor.add_subparsers(dest="action", required=True)
    type_choices = [member.value.lower() for member in SensorType]
    for action, help_text in (
        ("add", "Register a sensor."),
        ("remove", "Remove a sensor."),
        ("toggle", "Invert a sensor's activation."),
        ("set", "Set a sensor's activation."),
    ):
        sub = actions.add_parser(action, help=help_text)
        sub.add_argument("name")
        sub.add_argument("sensor_type", type=str.lower, choices=type_choices)
        if action == "set":
            sub.add_argument("state", choices=["on", "off"])
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None, *, out: TextIO | None = None) -> int:
    args = parse_args(argv)
    out = out or sys.stdout
    try:
        config = ConfigService(config_dir=args.config_dir)
        snapshot = config.snapshot
        configure_logging(args.log_level or snapshot.logging.level, snapshot.logging)
        service = build_service(snapshot)
        if args.command == "serve":
            serve_metrics(service, snapshot.metrics)
        else:
            run_command(service, args, out)
    except ConfigError as exc:
        LOGGER.error("Configuration failed: %s", exc)
        return 2
    except UnknownSensorError as exc:
        LOGGER.error("%s", exc)
        return 2
    except KeyboardInterrupt:
        LOGGER.info("Interrupted by user.")
        return 0
    except Exception:  # pragma: no cover - surfaced to operator
        LOGGER.exception("Catpoint command failed.")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())


__all__ = ["build_service", "main", "parse_args", "run_command", "serve_metrics"]
