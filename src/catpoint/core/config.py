"""
Dynaconf-powered configuration loader with Pydantic validation.

The configuration service loads ``config.yaml`` from a config directory
(overridable through ``CATPOINT_*`` environment variables), validates it and
exposes a frozen `ConfigSnapshot` used to wire the store, the detector and
the metrics listener.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from dynaconf import Dynaconf
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

CONFIG_FILENAMES = ("config.yaml", "config.local.yaml")
_REPO_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_CONFIG_DIR = _REPO_ROOT / "config"
DEFAULT_DATABASE_URL = f"sqlite:///{(_REPO_ROOT / 'data' / 'catpoint.db').as_posix()}"


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    """Case-insensitive dictionary lookup helper."""
    value = raw.get(key) or raw.get(key.upper()) or raw.get(key.lower())
    if isinstance(value, dict):
        return {str(k).lower(): v for k, v in value.items()}
    return {}


class ConfigError(RuntimeError):
    """Raised when configuration files are missing or invalid."""


class StoreSettings(BaseModel):
    """Where alarm status, arming status and sensors are kept."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    backend: Literal["memory", "sql"] = Field(default="sql")
    database_url: str = Field(default=DEFAULT_DATABASE_URL)

    @property
    def sqlite_path(self) -> Path | None:
        prefix = "sqlite:///"
        if not self.database_url.startswith(prefix):
            return None
        location = self.database_url[len(prefix) :]
        if not location or location == ":memory:":
            return None
        return Path(location)

    def ensure_directories(self) -> None:
        path = self.sqlite_path
        if self.backend == "sql" and path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)


class DetectorSettings(BaseModel):
    """Image classification backend."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    backend: Literal["fake", "yolo"] = Field(default="fake")
    confidence_threshold: float = Field(default=50.0, ge=0.0, le=100.0)
    target_label: str = Field(default="cat", min_length=1)
    model_path: str | None = Field(default=None)
    seed: int | None = Field(default=None)


class MetricsSettings(BaseModel):
    """Prometheus exporter options."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    enabled: bool = Field(default=False)
    poll_seconds: float = Field(default=15.0, gt=0)
    addr: str = Field(default="127.0.0.1")
    port: int = Field(default=9094, ge=1, le=65535)


class LoggingSettings(BaseModel):
    """Root logger options applied by the CLI."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    level: str = Field(default="INFO")
    file: Path | None = Field(default=None)
    max_mb: int = Field(default=10, gt=0)
    backup_count: int = Field(default=3, ge=0)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class ConfigSnapshot(BaseModel):
    """Validated view over the whole configuration."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    store: StoreSettings = Field(default_factory=StoreSettings)
    detector: DetectorSettings = Field(default_factory=DetectorSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class ConfigService:
    """
    Runtime facade for loading and validating configuration.
    """

    def __init__(
        self,
        *,
        config_dir: str | Path | None = None,
        settings: Dynaconf | None = None,
    ) -> None:
        self._config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        if settings is None:
            settings_files = [self._config_dir / name for name in CONFIG_FILENAMES]
            existing_files = [str(path) for path in settings_files if path.exists()]
            if not existing_files:
                raise ConfigError(
                    f"No configuration files found in {self._config_dir}. "
                    "Expected at least config.yaml."
                )
            settings = Dynaconf(
                envvar_prefix="CATPOINT",
                settings_files=existing_files,
                load_dotenv=True,
                environments=False,
            )
        self._settings = settings
        self._snapshot = self._build_snapshot()
        self._snapshot.store.ensure_directories()

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def snapshot(self) -> ConfigSnapshot:
        """Latest validated configuration snapshot."""
        return self._snapshot

    def refresh(self) -> ConfigSnapshot:
        """Reload configuration files and rebuild the snapshot."""
        self._settings.reload()
        self._snapshot = self._build_snapshot()
        self._snapshot.store.ensure_directories()
        return self._snapshot

    def _build_snapshot(self) -> ConfigSnapshot:
        raw = self._settings.as_dict()
        data = {
            "store": _section(raw, "store"),
            "detector": _section(raw, "detector"),
            "metrics": _section(raw, "metrics"),
            "logging": _section(raw, "logging"),
        }
        try:
            return ConfigSnapshot.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Configuration validation failed: {exc}") from exc


__all__ = [
    "ConfigError",
    "ConfigService",
    "ConfigSnapshot",
    "DetectorSettings",
    "LoggingSettings",
    "MetricsSettings",
    "StoreSettings",
]
