"""
Poster composition.

Places the generated QR code and the referral-code label onto the poster at
the anchors found by the marker detector. Positions arrive normalised to
[0, 1] and are scaled to the poster's pixel size here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import cv2
import numpy as np
import qrcode
from qrcode.constants import ERROR_CORRECT_M

from .detector import DetectionResult

LOGGER = logging.getLogger(__name__)


class QRCodeGenerator:
    """Renders a QR payload to an RGB array."""

    def __init__(self, data: str, error_correction: int = ERROR_CORRECT_M, border: int = 4):
        self.data = data
        self.error_correction = error_correction
        self.border = border
        self._modules: Optional[np.ndarray] = None

    def modules(self) -> np.ndarray:
        """Boolean module matrix including the quiet zone (True = dark)."""
        if self._modules is None:
            qr = qrcode.QRCode(
                error_correction=self.error_correction,
                box_size=1,
                border=self.border,
            )
            qr.add_data(self.data)
            qr.make(fit=True)
            self._modules = np.array(qr.get_matrix(), dtype=bool)
        return self._modules

    def render(self, side: int) -> np.ndarray:
        """Render the code as a ``side`` x ``side`` RGB uint8 image."""
        if side <= 0:
            raise ValueError(f"QR side must be positive, got {side}")
        gray = np.where(self.modules(), 0, 255).astype(np.uint8)
        gray = cv2.resize(gray, (side, side), interpolation=cv2.INTER_NEAREST)
        return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)


@dataclass
class ComposerConfiguration:
    """Configuration for poster composition."""

    qr_data: str = "https://yoursite.com"
    referral_code: str = "SKIBIDI"
    qr_scale: float = 0.25  # QR side / poster width
    text_scale: float = 0.04  # Label height / poster width
    text_color: Tuple[int, int, int] = (0, 0, 0)  # RGB
    no_marker_message: str = "No dots detected"


class PosterComposer:
    """Composites the QR code and referral label onto a poster."""

    FONT = cv2.FONT_HERSHEY_DUPLEX

    def __init__(self, config: Optional[Dict] = None, qr_generator: Optional[QRCodeGenerator] = None):
        """Initialize poster composer.

        Args:
            config: Overlay section of the configuration dictionary
            qr_generator: Optional pre-built QR generator
        """
        cfg = config or {}
        self.config = ComposerConfiguration(
            qr_data=cfg.get("qr_data", "https://yoursite.com"),
            referral_code=cfg.get("referral_code", "SKIBIDI"),
            qr_scale=cfg.get("qr_scale", 0.25),
            text_scale=cfg.get("text_scale", 0.04),
            text_color=tuple(cfg.get("text_color", (0, 0, 0))),
            no_marker_message=cfg.get("no_marker_message", "No dots detected"),
        )
        self.qr_generator = qr_generator or QRCodeGenerator(self.config.qr_data)

    def compose(
        self,
        poster: np.ndarray,
        qr_result: Optional[DetectionResult],
        referral_result: Optional[DetectionResult],
    ) -> np.ndarray:
        """Return a copy of ``poster`` with the overlays drawn.

        Args:
            poster: (H, W, 3|4) RGB(A) uint8 poster; alpha is dropped
            qr_result: Anchor for the QR code, or None to skip it
            referral_result: Anchor for the referral label, or None to skip it

        Returns:
            (H, W, 3) RGB uint8 image
        """
        canvas = np.ascontiguousarray(poster[..., :3]).copy()

        if qr_result is not None:
            self._draw_qr(canvas, qr_result)

        if referral_result is not None:
            self._draw_centered_text(
                canvas,
                self.config.referral_code,
                self._to_pixels(canvas, referral_result),
            )

        if qr_result is None and referral_result is None:
            height, width = canvas.shape[:2]
            LOGGER.info("No markers found, drawing fallback message")
            self._draw_centered_text(
                canvas, self.config.no_marker_message, (width / 2, height / 2)
            )

        return canvas

    @staticmethod
    def _to_pixels(canvas: np.ndarray, result: DetectionResult) -> Tuple[float, float]:
        height, width = canvas.shape[:2]
        return width * result.position.x, height * result.position.y

    def _draw_qr(self, canvas: np.ndarray, result: DetectionResult):
        height, width = canvas.shape[:2]
        side = max(1, int(round(width * self.config.qr_scale)))
        center_x, center_y = self._to_pixels(canvas, result)
        left = int(center_x - side / 2)
        top = int(center_y - side / 2)

        # Clip to the poster bounds
        x1, y1 = max(0, left), max(0, top)
        x2, y2 = min(width, left + side), min(height, top + side)
        if x1 >= x2 or y1 >= y2:
            LOGGER.warning("QR overlay at (%d, %d) falls outside the poster", left, top)
            return

        qr_image = self.qr_generator.render(side)
        canvas[y1:y2, x1:x2] = qr_image[y1 - top:y2 - top, x1 - left:x2 - left]
        LOGGER.debug("QR code placed at (%d, %d), side %dpx", left, top, side)

    def _draw_centered_text(self, canvas: np.ndarray, text: str, center: Tuple[float, float]):
        if not text:
            return
        width = canvas.shape[1]
        target_height = max(1.0, width * self.config.text_scale)

        (_, unit_height), _ = cv2.getTextSize(text, self.FONT, 1.0, 1)
        font_scale = target_height / max(unit_height, 1)
        # Bold weight
        thickness = max(2, int(round(font_scale * 2)))
        (text_width, text_height), _ = cv2.getTextSize(text, self.FONT, font_scale, thickness)

        origin = (
            int(center[0] - text_width / 2),
            int(center[1] + text_height / 2),
        )
        cv2.putText(
            canvas,
            text,
            origin,
            self.FONT,
            font_scale,
            self.config.text_color,
            thickness,
            cv2.LINE_AA,
        )


def write_image(path: Union[str, Path], rgb: np.ndarray) -> bool:
    """Write an RGB(A) array to disk; the format follows the file extension.

    Returns:
        bool: True if the file was written
    """
    if rgb.ndim == 3 and rgb.shape[2] == 4:
        bgr = cv2.cvtColor(rgb, cv2.COLOR_RGBA2BGRA)
    else:
        bgr = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)

    try:
        ok = cv2.imwrite(str(path), bgr)
    except cv2.error as e:
        LOGGER.error("Failed to write %s: %s", path, e)
        return False

    if not ok:
        LOGGER.error("Failed to write %s", path)
    return bool(ok)
