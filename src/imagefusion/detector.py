"""
Marker detection module.

Locates a coloured marker dot in a decoded poster raster. The detector
accumulates the axis-aligned bounding box of every pixel accepted by a colour
predicate and reports its centroid and width, normalised by the image size.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import numpy as np

from .markers import ColorPredicate, ColorRange

LOGGER = logging.getLogger(__name__)


class MidpointRounding(Enum):
    """How the bounding-box midpoint is computed."""
    EXACT = "exact"  # (min + max) / 2 as a float
    FLOOR = "floor"  # (min + max) // 2


class DetectionStatus(Enum):
    """Outcome variants of a detection call.

    DECODE_FAILED means no raster could be examined to completion: the asset
    was missing, its bytes did not decode, or the scan itself raised (for
    example a predicate error). It is the only failure variant, so callers
    that need the cause should read the service log.
    """
    FOUND = "found"
    NOT_FOUND = "not_found"
    DECODE_FAILED = "decode_failed"


@dataclass(frozen=True)
class Point:
    """2D point in normalised image coordinates."""

    x: float
    y: float


@dataclass(frozen=True)
class DetectionResult:
    """Normalised anchor of a detected marker."""

    position: Point  # Bounding-box centroid / (width, height)
    size: float  # Bounding-box width / image width


@dataclass(frozen=True)
class DetectionOutcome:
    """Detection status with the result when one was found.

    ``decode_failed()`` also covers failures raised while scanning a decoded
    raster; see DetectionStatus.
    """

    status: DetectionStatus
    result: Optional[DetectionResult] = None

    @property
    def found(self) -> bool:
        return self.status is DetectionStatus.FOUND

    @staticmethod
    def not_found() -> "DetectionOutcome":
        return DetectionOutcome(DetectionStatus.NOT_FOUND)

    @staticmethod
    def decode_failed() -> "DetectionOutcome":
        return DetectionOutcome(DetectionStatus.DECODE_FAILED)


@dataclass
class DetectorConfiguration:
    """Configuration for the marker detector."""

    midpoint_rounding: str = "exact"

    def __post_init__(self):
        # Raises ValueError for unknown modes
        MidpointRounding(self.midpoint_rounding)


class MarkerDetector:
    """Finds the bounding box of pixels matching a colour predicate."""

    def __init__(self, config: Optional[Dict] = None):
        """Initialize marker detector.

        Args:
            config: Detector section of the configuration dictionary
        """
        cfg = config or {}
        self.config = DetectorConfiguration(
            midpoint_rounding=cfg.get("midpoint_rounding", "exact"),
        )
        self.rounding = MidpointRounding(self.config.midpoint_rounding)

    def detect(self, image: Optional[np.ndarray], predicate: ColorPredicate) -> Optional[DetectionResult]:
        """Detect the marker matched by ``predicate``.

        Returns:
            DetectionResult, or None when no pixel matched or there is no image
        """
        return self.scan(image, predicate).result

    def scan(self, image: Optional[np.ndarray], predicate: ColorPredicate) -> DetectionOutcome:
        """Scan ``image`` and report the outcome explicitly.

        Args:
            image: (H, W, 3) or (H, W, 4) uint8 array in RGB(A) order, or None
                when the decoder produced nothing
            predicate: Callable (r, g, b) -> bool

        Returns:
            DetectionOutcome

        Raises:
            ValueError: If the array is not a non-empty RGB(A) raster
        """
        if image is None:
            return DetectionOutcome.decode_failed()

        if image.ndim != 3 or image.shape[2] < 3:
            raise ValueError(f"Expected an (H, W, 3|4) raster, got shape {image.shape}")

        height, width = image.shape[:2]
        if width == 0 or height == 0:
            raise ValueError(f"Empty raster: {width}x{height}")

        if isinstance(predicate, ColorRange):
            bbox = self._bounding_box_vectorized(image, predicate)
        else:
            bbox = self._bounding_box_scan(image, predicate)

        if bbox is None:
            return DetectionOutcome.not_found()

        min_x, min_y, max_x, max_y = bbox
        if self.rounding is MidpointRounding.FLOOR:
            center_x = float((min_x + max_x) // 2)
            center_y = float((min_y + max_y) // 2)
        else:
            center_x = (min_x + max_x) / 2
            center_y = (min_y + max_y) / 2

        result = DetectionResult(
            position=Point(center_x / width, center_y / height),
            size=(max_x - min_x) / width,
        )
        LOGGER.debug(
            "Marker bbox x=[%d, %d] y=[%d, %d] in %dx%d -> %s",
            min_x, max_x, min_y, max_y, width, height, result,
        )
        return DetectionOutcome(DetectionStatus.FOUND, result)

    @staticmethod
    def _bounding_box_scan(image: np.ndarray, predicate: ColorPredicate):
        """Visit every pixel in row-major order, calling the predicate."""
        height, width = image.shape[:2]
        min_x = min_y = float("inf")
        max_x = max_y = float("-inf")
        found = False

        rgb = image[..., :3].tolist()
        for y in range(height):
            row = rgb[y]
            for x in range(width):
                red, green, blue = row[x]
                if predicate(red, green, blue):
                    found = True
                    min_x = min(min_x, x)
                    min_y = min(min_y, y)
                    max_x = max(max_x, x)
                    max_y = max(max_y, y)

        if not found:
            return None
        return int(min_x), int(min_y), int(max_x), int(max_y)

    @staticmethod
    def _bounding_box_vectorized(image: np.ndarray, predicate: ColorRange):
        """Same bounding box as the pixel scan, evaluated with numpy."""
        mask = predicate.mask(image)
        cols = np.flatnonzero(mask.any(axis=0))
        if cols.size == 0:
            return None
        rows = np.flatnonzero(mask.any(axis=1))
        return int(cols[0]), int(rows[0]), int(cols[-1]), int(rows[-1])
