"""
Marker colour predicates.

A marker dot is a small solid-colour disk painted into the poster artwork.
Each marker class is recognised by a fixed tolerance box in RGB space, tuned
by hand against one reference hue. No colour-space conversion is performed.

Supported markers:
- QR anchor, target #00FF6A
- Referral text anchor, target #0000FF
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

LOGGER = logging.getLogger(__name__)

ColorPredicate = Callable[[int, int, int], bool]

ChannelRange = Tuple[int, int]


@dataclass(frozen=True)
class ColorRange:
    """Inclusive per-channel bounds acting as a colour predicate."""

    red: ChannelRange
    green: ChannelRange
    blue: ChannelRange
    name: str = ""

    def __post_init__(self):
        for channel in ("red", "green", "blue"):
            low, high = getattr(self, channel)
            if not 0 <= low <= high <= 255:
                raise ValueError(f"Invalid {channel} range: ({low}, {high})")

    def __call__(self, red: int, green: int, blue: int) -> bool:
        return (
            self.red[0] <= red <= self.red[1]
            and self.green[0] <= green <= self.green[1]
            and self.blue[0] <= blue <= self.blue[1]
        )

    def mask(self, rgb: np.ndarray) -> np.ndarray:
        """Evaluate the predicate over an (H, W, 3+) uint8 array.

        Returns:
            Boolean array of shape (H, W)
        """
        r = rgb[..., 0]
        g = rgb[..., 1]
        b = rgb[..., 2]
        return (
            (r >= self.red[0]) & (r <= self.red[1])
            & (g >= self.green[0]) & (g <= self.green[1])
            & (b >= self.blue[0]) & (b <= self.blue[1])
        )


# r < 50, g > 200, 70 <= b <= 150
QR_MARKER = ColorRange(red=(0, 49), green=(201, 255), blue=(70, 150), name="qr")

# r < 50, g < 50, b > 200
REFERRAL_MARKER = ColorRange(red=(0, 49), green=(0, 49), blue=(201, 255), name="referral")


def is_marker_a(red: int, green: int, blue: int) -> bool:
    """Return True for pixels close to the QR anchor hue (#00FF6A)."""
    return red < 50 and green > 200 and 70 <= blue <= 150


def is_marker_b(red: int, green: int, blue: int) -> bool:
    """Return True for pixels close to the referral anchor hue (#0000FF)."""
    return red < 50 and green < 50 and blue > 200


_ALIASES: Dict[str, ColorRange] = {
    "qr": QR_MARKER,
    "green": QR_MARKER,
    "a": QR_MARKER,
    "referral": REFERRAL_MARKER,
    "blue": REFERRAL_MARKER,
    "b": REFERRAL_MARKER,
}


def get_marker(name: str) -> ColorRange:
    """Look up a predefined marker predicate by name."""
    try:
        return _ALIASES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown marker '{name}', expected one of {sorted(_ALIASES)}"
        ) from None


def marker_from_config(name: str, overrides: Optional[Mapping[str, Sequence[int]]] = None) -> ColorRange:
    """Build a marker predicate, applying channel overrides from config.

    Args:
        name: Predefined marker name ("qr" or "referral")
        overrides: Optional mapping such as {"blue": [60, 160]}

    Returns:
        ColorRange predicate
    """
    base = get_marker(name)
    if not overrides:
        return base

    unknown = set(overrides) - {"red", "green", "blue"}
    if unknown:
        raise ValueError(f"Unknown channel(s) in marker override: {sorted(unknown)}")

    bounds = {
        channel: tuple(int(v) for v in overrides.get(channel, getattr(base, channel)))
        for channel in ("red", "green", "blue")
    }
    marker = ColorRange(name=base.name, **bounds)
    LOGGER.debug("Marker '%s' overridden: %s", name, marker)
    return marker
