"""
Image decoding backends.

Turns compressed image bytes into an RGB(A) raster. The detection algorithm
only sees the resulting numpy array, so the backend can be swapped at startup:
- OpenCV (default)
- Pillow
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

LOGGER = logging.getLogger(__name__)


class DecodeError(ValueError):
    """Raised when bytes cannot be decoded into an image."""


class ImageDecoder(ABC):
    """Decodes compressed image bytes into an (H, W, 3|4) uint8 RGB(A) array."""

    name = ""

    @abstractmethod
    def decode(self, data: bytes) -> np.ndarray:
        """Decode ``data``.

        Raises:
            DecodeError: If the bytes are not a supported image
        """


class OpenCVImageDecoder(ImageDecoder):
    """Decoder backed by ``cv2.imdecode``."""

    name = "opencv"

    def decode(self, data: bytes) -> np.ndarray:
        if not data:
            raise DecodeError("Empty image data")

        buffer = np.frombuffer(data, dtype=np.uint8)
        try:
            image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
        except cv2.error as e:
            raise DecodeError(f"OpenCV could not decode image: {e}") from e

        if image is None:
            raise DecodeError("OpenCV could not decode image")

        if image.dtype == np.uint16:
            image = (image >> 8).astype(np.uint8)
        elif image.dtype != np.uint8:
            raise DecodeError(f"Unsupported sample type: {image.dtype}")

        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
        channels = image.shape[2]
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
        if channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        if channels == 1:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
        raise DecodeError(f"Unsupported channel count: {channels}")


class PillowImageDecoder(ImageDecoder):
    """Decoder backed by Pillow."""

    name = "pillow"

    def decode(self, data: bytes) -> np.ndarray:
        if not data:
            raise DecodeError("Empty image data")

        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                if img.mode in _WIDE_GRAY_MODES:
                    return _wide_gray_to_rgb(np.asarray(img))
                has_alpha = "A" in img.getbands() or "transparency" in img.info
                converted = img.convert("RGBA" if has_alpha else "RGB")
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"Pillow could not decode image: {e}") from e

        return np.asarray(converted, dtype=np.uint8).copy()


# 16-bit grayscale PNGs open in one of these modes depending on Pillow version.
# Image.convert("RGB") clips them at 255 instead of rescaling.
_WIDE_GRAY_MODES = ("I;16", "I;16B", "I;16L", "I")


def _wide_gray_to_rgb(samples: np.ndarray) -> np.ndarray:
    """Keep the high byte of 16-bit samples, as the OpenCV backend does."""
    high = (np.clip(samples, 0, 0xFFFF).astype(np.uint16) >> 8).astype(np.uint8)
    return np.dstack([high, high, high])


_DECODERS = {
    OpenCVImageDecoder.name: OpenCVImageDecoder,
    PillowImageDecoder.name: PillowImageDecoder,
}


def create_decoder(name: str = "opencv") -> ImageDecoder:
    """Create a decoder backend by name ("opencv" or "pillow")."""
    key = (name or "opencv").lower()
    try:
        decoder_cls = _DECODERS[key]
    except KeyError:
        raise ValueError(f"Unknown decoder '{name}', expected one of {sorted(_DECODERS)}") from None
    LOGGER.debug("Using %s image decoder", key)
    return decoder_cls()
