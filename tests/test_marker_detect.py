"""
Tests for marker detection functionality.
"""

import os
import random
import sys
import unittest

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from imagefusion.detector import (  # noqa: E402
    DetectionStatus,
    MarkerDetector,
    Point,
)
from imagefusion.markers import QR_MARKER, REFERRAL_MARKER, is_marker_a, is_marker_b  # noqa: E402

GREEN = (0, 255, 106)
BLUE = (0, 0, 255)


def make_raster(width, height, pixels=(), color=GREEN, channels=3):
    """Black RGB(A) raster with the given (x, y) pixels set to ``color``."""
    image = np.zeros((height, width, channels), dtype=np.uint8)
    if channels == 4:
        image[..., 3] = 255
    for x, y in pixels:
        image[y, x, :3] = color
    return image


class TestMarkerDetect(unittest.TestCase):
    """Test cases for marker detection."""

    def setUp(self):
        self.detector = MarkerDetector()
        # Two QR-marker pixels on row 4 of a 10x10 raster
        self.scenario = make_raster(10, 10, [(3, 4), (6, 4)])

    def test_two_pixel_scenario(self):
        """Midpoint of (3,4)-(6,4) in a 10x10 raster."""
        result = self.detector.detect(self.scenario, QR_MARKER)

        self.assertIsNotNone(result)
        self.assertAlmostEqual(result.position.x, 0.45)
        self.assertAlmostEqual(result.position.y, 0.4)
        self.assertAlmostEqual(result.size, 0.3)

    def test_scenario_with_other_marker_is_absent(self):
        self.assertIsNone(self.detector.detect(self.scenario, REFERRAL_MARKER))

    def test_no_match_returns_none(self):
        image = make_raster(16, 9, [(2, 2), (5, 7)], color=(128, 128, 128))
        self.assertIsNone(self.detector.detect(image, QR_MARKER))

        outcome = self.detector.scan(image, QR_MARKER)
        self.assertEqual(outcome.status, DetectionStatus.NOT_FOUND)
        self.assertIsNone(outcome.result)

    def test_single_pixel(self):
        """A lone match has zero size and sits at x0/W, y0/H."""
        image = make_raster(20, 8, [(5, 6)], color=BLUE)
        result = self.detector.detect(image, REFERRAL_MARKER)

        self.assertEqual(result.position, Point(5 / 20, 6 / 8))
        self.assertEqual(result.size, 0.0)

    def test_one_by_one_image(self):
        image = make_raster(1, 1, [(0, 0)])
        result = self.detector.detect(image, QR_MARKER)

        self.assertEqual(result.position, Point(0.0, 0.0))
        self.assertEqual(result.size, 0.0)

    def test_rectangle_bounding_box(self):
        """A filled rectangle [x1, x2] x [y1, y2] reports its centre and width."""
        image = np.zeros((60, 80, 3), dtype=np.uint8)
        x1, x2, y1, y2 = 10, 30, 20, 24
        image[y1:y2 + 1, x1:x2 + 1] = GREEN

        result = self.detector.detect(image, QR_MARKER)

        self.assertAlmostEqual(result.position.x, ((x1 + x2) / 2) / 80)
        self.assertAlmostEqual(result.position.y, ((y1 + y2) / 2) / 60)
        self.assertAlmostEqual(result.size, (x2 - x1) / 80)

    def test_size_uses_horizontal_extent_only(self):
        """A tall, narrow marker reports its width, not its height."""
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        image[10:90, 40:45] = GREEN

        result = self.detector.detect(image, QR_MARKER)

        self.assertAlmostEqual(result.size, 4 / 100)

    def test_floor_midpoint_rounding(self):
        detector = MarkerDetector({"midpoint_rounding": "floor"})
        image = make_raster(10, 10, [(3, 4), (6, 5)])

        result = detector.detect(image, QR_MARKER)

        self.assertAlmostEqual(result.position.x, 0.4)
        self.assertAlmostEqual(result.position.y, 0.4)
        self.assertAlmostEqual(result.size, 0.3)

    def test_invalid_midpoint_rounding(self):
        with self.assertRaises(ValueError):
            MarkerDetector({"midpoint_rounding": "ceil"})

    def test_scan_strategies_agree(self):
        """Vectorised and per-pixel scans accumulate the same bounding box."""
        rng = np.random.default_rng(7)
        image = rng.integers(0, 256, size=(40, 50, 3), dtype=np.uint8)
        image[5, 7] = GREEN
        image[33, 41] = GREEN
        image[12, 2] = BLUE

        for vectorised, plain in ((QR_MARKER, is_marker_a), (REFERRAL_MARKER, is_marker_b)):
            with self.subTest(marker=vectorised.name):
                self.assertEqual(
                    self.detector.scan(image, vectorised),
                    self.detector.scan(image, plain),
                )

    def test_mirrored_raster_mirrors_position(self):
        """Mirroring the raster mirrors the anchor and keeps the size."""
        image = make_raster(12, 7, [(1, 1), (4, 5), (9, 2)])
        flipped = image[::-1, ::-1]

        original = self.detector.detect(image, QR_MARKER)
        mirrored = self.detector.detect(flipped, QR_MARKER)

        # Mirroring maps the bbox [1, 9] x [1, 5] onto [2, 10] x [1, 5]
        self.assertAlmostEqual(original.size, mirrored.size)
        self.assertAlmostEqual(original.position.x, 5 / 12)
        self.assertAlmostEqual(mirrored.position.x, 6 / 12)
        self.assertAlmostEqual(original.position.y, mirrored.position.y)

    def test_result_independent_of_visit_order(self):
        """Accumulating the same matches in any order gives the scanned result."""
        width, height = 12, 7
        image = make_raster(width, height, [(6, 0), (1, 1), (9, 2), (4, 5)])
        matches = [
            (x, y)
            for y in range(height)
            for x in range(width)
            if is_marker_a(*image[y, x, :3].tolist())
        ]
        shuffled = list(matches)
        random.Random(3).shuffle(shuffled)

        expected = self.detector.detect(image, is_marker_a)

        for label, order in (("reversed", matches[::-1]), ("shuffled", shuffled)):
            with self.subTest(order=label):
                min_x = min_y = float("inf")
                max_x = max_y = float("-inf")
                for x, y in order:
                    min_x, max_x = min(min_x, x), max(max_x, x)
                    min_y, max_y = min(min_y, y), max(max_y, y)

                self.assertAlmostEqual(expected.position.x, (min_x + max_x) / 2 / width)
                self.assertAlmostEqual(expected.position.y, (min_y + max_y) / 2 / height)
                self.assertAlmostEqual(expected.size, (max_x - min_x) / width)

    def test_predicates_do_not_share_state(self):
        image = make_raster(10, 10, [(1, 1), (2, 2)])
        image[8, 8] = BLUE

        first_qr = self.detector.detect(image, QR_MARKER)
        referral = self.detector.detect(image, REFERRAL_MARKER)
        second_qr = self.detector.detect(image, QR_MARKER)

        self.assertEqual(first_qr, second_qr)
        self.assertEqual(referral.position, Point(0.8, 0.8))
        self.assertEqual(referral.size, 0.0)

    def test_alpha_channel_is_ignored(self):
        image = make_raster(10, 10, [(3, 4), (6, 4)], channels=4)
        image[..., 3] = 0

        result = self.detector.detect(image, QR_MARKER)

        self.assertAlmostEqual(result.position.x, 0.45)

    def test_custom_callable_predicate(self):
        image = make_raster(4, 4, [(2, 3)], color=(200, 10, 10))

        def is_red(red, green, blue):
            return red > 150 and green < 50 and blue < 50

        result = self.detector.detect(image, is_red)

        self.assertEqual(result.position, Point(0.5, 0.75))

    def test_missing_image_is_decode_failure(self):
        outcome = self.detector.scan(None, QR_MARKER)

        self.assertEqual(outcome.status, DetectionStatus.DECODE_FAILED)
        self.assertIsNone(self.detector.detect(None, QR_MARKER))

    def test_invalid_raster_shape(self):
        with self.assertRaises(ValueError):
            self.detector.scan(np.zeros((10, 10), dtype=np.uint8), QR_MARKER)
        with self.assertRaises(ValueError):
            self.detector.scan(np.zeros((0, 10, 3), dtype=np.uint8), QR_MARKER)

    def test_result_is_immutable(self):
        result = self.detector.detect(self.scenario, QR_MARKER)
        with self.assertRaises(AttributeError):
            result.size = 1.0


if __name__ == "__main__":
    unittest.main()
