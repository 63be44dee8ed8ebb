"""
Main entry point for the ImageFusion application.

Detects the QR and referral marker dots in a poster and writes a copy of the
poster with the QR code and referral label composited at those anchors.

Usage:
    imagefusion poster1                          # resources/drawable/poster1.png
    imagefusion path/to/poster.png -o out.png
    imagefusion poster1 --decoder pillow --verbose
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .assets import AssetNotFoundError
from .compose import PosterComposer, write_image
from .decoding import DecodeError
from .service import MarkerService
from .utils import get_config, setup_logging, validate_config

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="imagefusion",
        description="ImageFusion - place a QR code and referral code on a poster at its marker dots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Markers:
  #00FF6A (green) - QR code anchor
  #0000FF (blue)  - referral code anchor
        """,
    )

    parser.add_argument("poster", help="Asset name (e.g. poster1) or path to a poster image")
    parser.add_argument("--asset-dir", "-a", help="Asset root directory")
    parser.add_argument("--output", "-o", help="Output image path (default: <poster>_fused.png)")
    parser.add_argument("--qr-data", help="Text or URL encoded in the QR code")
    parser.add_argument("--referral-code", "-r", help="Referral code text")
    parser.add_argument("--decoder", "-d", choices=["opencv", "pillow"], help="Image decoder backend")
    parser.add_argument("--config", "-c", help="Path to JSON configuration file")
    parser.add_argument(
        "--verbose", "-V",
        action="store_true",
        help="Enable verbose/debug logging",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    """Merge command-line overrides into the loaded configuration."""
    config = get_config(args.config)
    if args.asset_dir:
        config["asset_dir"] = args.asset_dir
    if args.decoder:
        config["decoder"] = args.decoder
    if args.qr_data:
        config["overlay"]["qr_data"] = args.qr_data
    if args.referral_code:
        config["overlay"]["referral_code"] = args.referral_code
    return config


def _describe(label, result):
    if result is None:
        LOGGER.info("No %s dot detected", label)
    else:
        LOGGER.info(
            "%s dot found at position (%.4f, %.4f), size: %.4f",
            label.capitalize(), result.position.x, result.position.y, result.size,
        )


def run(args: argparse.Namespace) -> int:
    """Run detection and composition; returns the process exit code."""
    config = build_config(args)
    if not validate_config(config):
        return 1

    with MarkerService.from_config(config) as service:
        qr_result, referral_result = asyncio.run(service.detect_all(args.poster))
        _describe("green", qr_result)
        _describe("blue", referral_result)

        try:
            poster = service.decoder.decode(service.loader.read_asset(args.poster))
        except (AssetNotFoundError, DecodeError) as e:
            LOGGER.error("Cannot load poster '%s': %s", args.poster, e)
            return 1

    composer = PosterComposer(config.get("overlay"))
    fused = composer.compose(poster, qr_result, referral_result)

    output = Path(args.output) if args.output else Path(f"{Path(args.poster).stem}_fused.png")
    if not write_image(output, fused):
        return 1

    LOGGER.info("Fused poster written to %s", output)
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=log_level)

    LOGGER.info("Starting ImageFusion...")
    sys.exit(run(args))


if __name__ == "__main__":
    main()
