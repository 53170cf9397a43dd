"""
Image services that decide whether a camera picture shows a cat.

`YoloImageService` is built around a swappable predictor so it can run with
the real Ultralytics model or a stubbed predictor during unit tests.
Thresholds are expressed in percent (0-100).
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import imageio.v3 as iio
import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionCandidate:
    """Represents a single detection result from the predictor."""

    label: str
    confidence: float
    bbox: tuple[float, float, float, float]


class PredictorProtocol:
    """Small protocol so we can swap predictor implementations."""

    def predict(self, image: np.ndarray) -> list[DetectionCandidate]:  # pragma: no cover - protocol
        raise NotImplementedError

    def class_names(self) -> Sequence[str]:  # pragma: no cover - protocol
        raise NotImplementedError


class UltralyticsPredictor(PredictorProtocol):
    """Adapter that wraps an Ultralytics YOLO model."""

    def __init__(self, model_path: str | None = None) -> None:
        try:
            from ultralytics import YOLO
        except ModuleNotFoundError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Ultralytics is not installed; install catpoint[yolo] for the yolo detector"
            ) from exc
        self._model = YOLO(model_path or "yolov8n.pt")
        names = getattr(self._model, "names", {})
        if isinstance(names, dict):
            self._class_names = [str(value) for value in names.values()]
        elif isinstance(names, list | tuple | set):
            self._class_names = [str(value) for value in names]
        else:
            self._class_names = []

    def predict(self, image: np.ndarray) -> list[DetectionCandidate]:  # pragma: no cover - heavy
        results = self._model(image, verbose=False)
        candidates: list[DetectionCandidate] = []
        for result in results:
            boxes = getattr(result, "boxes", None)
            names = getattr(result, "names", {})
            if boxes is None:
                continue
            for xyxy, cls_id, conf in zip(boxes.xyxy, boxes.cls, boxes.conf, strict=False):
                label = names.get(int(cls_id), str(int(cls_id)))
                bbox = tuple(float(value) for value in xyxy.tolist())  # type: ignore[assignment]
                candidates.append(
                    DetectionCandidate(label=label, confidence=float(conf), bbox=bbox)  # type: ignore[arg-type]
                )
        return candidates

    def class_names(self) -> Sequence[str]:  # pragma: no cover - simple getter
        return self._class_names


class YoloImageService:
    """Cat detector backed by a YOLO model."""

    def __init__(
        self,
        *,
        model_path: str | None = None,
        target_label: str = "cat",
        predictor_factory: Callable[[str | None], PredictorProtocol] | None = None,
    ) -> None:
        self._model_path = model_path
        self._target_label = target_label.lower()
        self._predictor_factory = predictor_factory or UltralyticsPredictor
        self._predictor: PredictorProtocol | None = None

    @property
    def target_label(self) -> str:
        return self._target_label

    def score_image(self, image: Any, confidence_threshold: float) -> bool:
        if not 0.0 <= confidence_threshold <= 100.0:
            raise ValueError("confidence_threshold must be between 0 and 100")
        predictor = self._ensure_predictor()
        candidates = predictor.predict(self._decode_image(image))
        for candidate in candidates:
            logger.debug(
                "Image contains %s (%.1f%%)", candidate.label, candidate.confidence * 100.0
            )
        return any(
            candidate.label.lower() == self._target_label
            and candidate.confidence * 100.0 >= confidence_threshold
            for candidate in candidates
        )

    def _ensure_predictor(self) -> PredictorProtocol:
        if self._predictor is None:
            predictor = self._predictor_factory(self._model_path)
            self._validate_target_label(predictor)
            self._predictor = predictor
            logger.info("YoloImageService loaded predictor for label %r", self._target_label)
        return self._predictor

    def _validate_target_label(self, predictor: PredictorProtocol) -> None:
        known = {name.lower() for name in predictor.class_names()}
        if known and self._target_label not in known:
            raise ValueError(
                f"Target label {self._target_label!r} is not a class of the loaded model"
            )

    def _decode_image(self, image: Any) -> np.ndarray:
        if isinstance(image, np.ndarray):
            return image
        if isinstance(image, bytes | bytearray):
            return iio.imread(bytes(image))
        if isinstance(image, str | Path):
            return iio.imread(Path(image))
        raise TypeError(f"Unsupported image type: {type(image).__name__}")


class FakeImageService:
    """
    Stand-in detector that answers at random.

    Used while no recognition backend is configured; pass ``seed`` for a
    reproducible sequence.
    """

    def __init__(self, *, seed: int | None = None) -> None:
        self._random = random.Random(seed)

    def score_image(self, image: Any, confidence_threshold: float) -> bool:
        return self._random.random() < 0.5


__all__ = [
    "DetectionCandidate",
    "FakeImageService",
    "PredictorProtocol",
    "UltralyticsPredictor",
    "YoloImageService",
]
