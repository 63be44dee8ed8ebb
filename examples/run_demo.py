"""
Demo script for running an ImageFusion demonstration.

Paints a synthetic poster with the two marker dots, detects them, and writes
both the fused poster and an annotated copy showing where the anchors were
found.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import cv2
import numpy as np

# Add src directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from imagefusion.assets import AssetLoader  # type: ignore
from imagefusion.compose import PosterComposer, write_image  # type: ignore
from imagefusion.service import MarkerService  # type: ignore
from imagefusion.utils import get_config, setup_logging  # type: ignore


LOGGER = logging.getLogger(__name__)


def _paint_poster(width=600, height=900):
    """Paint a poster with a green QR dot and a blue referral dot (RGB)."""
    poster = np.zeros((height, width, 3), dtype=np.uint8)
    poster[..., 0] = np.linspace(255, 120, height, dtype=np.uint8)[:, None]
    poster[..., 1] = 110
    poster[..., 2] = np.linspace(60, 180, width, dtype=np.uint8)[None, :]

    cv2.putText(poster, "GRAND OPENING", (60, 150), cv2.FONT_HERSHEY_DUPLEX, 1.8,
                (255, 255, 255), 3, cv2.LINE_AA)
    cv2.rectangle(poster, (width // 2 - 100, 520), (width // 2 + 100, 720), (250, 240, 220), -1)

    cv2.circle(poster, (width // 2, 620), 6, (0, 255, 106), -1)
    cv2.circle(poster, (width // 2, 790), 4, (0, 0, 255), -1)
    return poster


def _draw_anchor(frame, result, color, label):
    """Mark a detected anchor with a cross and its normalised coordinates."""
    if result is None:
        return

    height, width = frame.shape[:2]
    x = int(result.position.x * width)
    y = int(result.position.y * height)
    cv2.drawMarker(frame, (x, y), color, cv2.MARKER_CROSS, 24, 2, cv2.LINE_AA)
    cv2.putText(
        frame,
        f"{label} ({result.position.x:.3f}, {result.position.y:.3f}) size {result.size:.3f}",
        (x + 16, y - 8),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.5,
        color,
        1,
        cv2.LINE_AA,
    )


def run_demo(output_dir: Path, show: bool = False) -> bool:
    """Run the poster fusion demonstration."""
    print("ImageFusion - Demo")
    print("=" * 40)

    setup_logging()
    config = get_config()

    asset_dir = output_dir / "resources"
    poster_path = asset_dir / "drawable" / "poster1.png"
    poster_path.parent.mkdir(parents=True, exist_ok=True)
    poster = _paint_poster()
    if not write_image(poster_path, poster):
        return False
    LOGGER.info("Synthetic poster written to %s", poster_path)

    with MarkerService(loader=AssetLoader(asset_dir)) as service:
        qr_result, referral_result = asyncio.run(service.detect_all("poster1"))

    annotated = poster.copy()
    _draw_anchor(annotated, qr_result, (0, 255, 255), "QR")
    _draw_anchor(annotated, referral_result, (255, 255, 0), "Referral")

    fused = PosterComposer(config["overlay"]).compose(poster, qr_result, referral_result)

    ok = write_image(output_dir / "poster1_anchors.png", annotated)
    ok = write_image(output_dir / "poster1_fused.png", fused) and ok
    print(f"Outputs written to {output_dir}")

    if show:
        cv2.imshow("ImageFusion", cv2.cvtColor(np.hstack([annotated, fused]), cv2.COLOR_RGB2BGR))
        cv2.waitKey(0)
        cv2.destroyAllWindows()

    return ok


def main():
    """Main entry point for demo."""
    parser = argparse.ArgumentParser(description="ImageFusion demo")
    parser.add_argument("--output-dir", default="demo_output", help="Directory for generated images")
    parser.add_argument("--show", action="store_true", help="Display the result in a window")
    args = parser.parse_args()

    if not run_demo(Path(args.output_dir), show=args.show):
        sys.exit(1)


if __name__ == "__main__":
    main()
