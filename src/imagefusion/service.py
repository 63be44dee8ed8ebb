"""
Asynchronous marker detection service.

Wires the asset loader, the image decoder and the marker detector together
and exposes the caller-facing detection entry points. Each call reads and
decodes its own copy of the poster on a worker thread, so concurrent calls
share no mutable state.

Every failure collapses to "no result" at this boundary; the outcome variants
remain available through ``detect_marker_outcome``.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional, Tuple

from .assets import AssetLoader, AssetNotFoundError
from .decoding import DecodeError, ImageDecoder, create_decoder
from .detector import DetectionOutcome, DetectionResult, DetectionStatus, MarkerDetector
from .markers import QR_MARKER, REFERRAL_MARKER, ColorPredicate, marker_from_config

LOGGER = logging.getLogger(__name__)


class MarkerService:
    """Detects marker dots in named poster assets."""

    def __init__(
        self,
        loader: Optional[AssetLoader] = None,
        decoder: Optional[ImageDecoder] = None,
        detector: Optional[MarkerDetector] = None,
        qr_marker: ColorPredicate = QR_MARKER,
        referral_marker: ColorPredicate = REFERRAL_MARKER,
        max_workers: int = 2,
    ):
        self.loader = loader or AssetLoader()
        self.decoder = decoder or create_decoder("opencv")
        self.detector = detector or MarkerDetector()
        self.qr_marker = qr_marker
        self.referral_marker = referral_marker
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="marker-detect"
        )

    @classmethod
    def from_config(cls, config: Dict) -> "MarkerService":
        """Build a service from a configuration dictionary (see utils.get_config)."""
        markers = config.get("markers") or {}
        return cls(
            loader=AssetLoader(config.get("asset_dir")),
            decoder=create_decoder(config.get("decoder", "opencv")),
            detector=MarkerDetector(config.get("detector")),
            qr_marker=marker_from_config("qr", markers.get("qr")),
            referral_marker=marker_from_config("referral", markers.get("referral")),
            max_workers=config.get("max_workers", 2),
        )

    # ------------------------------------------------------------------ #
    # Caller-facing API
    # ------------------------------------------------------------------ #
    async def detect_marker(self, asset_name: str, predicate: ColorPredicate) -> Optional[DetectionResult]:
        """Detect a marker in a named asset; None if absent for any reason."""
        outcome = await self.detect_marker_outcome(asset_name, predicate)
        return outcome.result

    async def detect_marker_outcome(self, asset_name: str, predicate: ColorPredicate) -> DetectionOutcome:
        """Detect a marker in a named asset, keeping the outcome variant."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, self._detect_sync, asset_name, predicate
        )

    async def detect_qr_position(self, asset_name: str) -> Optional[DetectionResult]:
        return await self.detect_marker(asset_name, self.qr_marker)

    async def detect_referral_position(self, asset_name: str) -> Optional[DetectionResult]:
        return await self.detect_marker(asset_name, self.referral_marker)

    async def detect_all(
        self, asset_name: str
    ) -> Tuple[Optional[DetectionResult], Optional[DetectionResult]]:
        """Run the QR and referral detections concurrently.

        Returns:
            (qr_result, referral_result)
        """
        qr_result, referral_result = await asyncio.gather(
            self.detect_qr_position(asset_name),
            self.detect_referral_position(asset_name),
        )
        return qr_result, referral_result

    # ------------------------------------------------------------------ #
    # Worker side
    # ------------------------------------------------------------------ #
    def _detect_sync(self, asset_name: str, predicate: ColorPredicate) -> DetectionOutcome:
        image = None
        try:
            data = self.loader.read_asset(asset_name)
            image = self.decoder.decode(data)
            return self.detector.scan(image, predicate)
        except AssetNotFoundError as e:
            LOGGER.warning("Asset unavailable: %s", e)
            return DetectionOutcome.decode_failed()
        except DecodeError as e:
            LOGGER.warning("Could not decode asset '%s': %s", asset_name, e)
            return DetectionOutcome.decode_failed()
        except Exception:
            LOGGER.exception(
                "Marker detection raised for asset '%s'; reporting it as %s",
                asset_name, DetectionStatus.DECODE_FAILED.name,
            )
            return DetectionOutcome.decode_failed()
        finally:
            # Drop the raster before handing the result back
            del image

    def cleanup(self):
        """Shut down the worker pool."""
        self._executor.shutdown(wait=True)
        LOGGER.debug("Marker service cleaned up")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()
