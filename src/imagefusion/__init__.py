"""
ImageFusion - poster overlay toolkit.

This package provides functionality for:
- Locating colour-coded marker dots in poster artwork
- Decoding poster images with interchangeable backends
- Compositing a QR code and a referral code at the detected anchors
"""

from .assets import AssetLoader, AssetNotFoundError
from .compose import ComposerConfiguration, PosterComposer, QRCodeGenerator, write_image
from .decoding import (
    DecodeError,
    ImageDecoder,
    OpenCVImageDecoder,
    PillowImageDecoder,
    create_decoder,
)
from .detector import (
    DetectionOutcome,
    DetectionResult,
    DetectionStatus,
    DetectorConfiguration,
    MarkerDetector,
    MidpointRounding,
    Point,
)
from .markers import (
    QR_MARKER,
    REFERRAL_MARKER,
    ColorRange,
    get_marker,
    is_marker_a,
    is_marker_b,
    marker_from_config,
)
from .service import MarkerService

__version__ = "0.1.0"

__all__ = [
    # Detection
    "MarkerDetector",
    "DetectorConfiguration",
    "MidpointRounding",
    "DetectionResult",
    "DetectionOutcome",
    "DetectionStatus",
    "Point",
    # Markers
    "ColorRange",
    "QR_MARKER",
    "REFERRAL_MARKER",
    "is_marker_a",
    "is_marker_b",
    "get_marker",
    "marker_from_config",
    # Decoding & assets
    "ImageDecoder",
    "OpenCVImageDecoder",
    "PillowImageDecoder",
    "create_decoder",
    "DecodeError",
    "AssetLoader",
    "AssetNotFoundError",
    # Service
    "MarkerService",
    # Composition
    "ComposerConfiguration",
    "PosterComposer",
    "QRCodeGenerator",
    "write_image",
]
