"""
Asset loading.

Poster images are looked up by logical name (e.g. "poster1") inside an asset
directory laid out as ``<asset_dir>/drawable/<name>.png``.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

LOGGER = logging.getLogger(__name__)


class AssetNotFoundError(FileNotFoundError):
    """Raised when a named asset cannot be located."""


class AssetLoader:
    """Reads packaged image assets by logical name."""

    def __init__(self, asset_dir: Union[str, Path, None] = None, extension: str = ".png"):
        """Initialize asset loader.

        Args:
            asset_dir: Root directory of the assets (defaults to cwd)
            extension: File extension appended to logical names
        """
        self.asset_dir = Path(asset_dir) if asset_dir is not None else Path.cwd()
        self.extension = extension

    def candidates(self, name: str) -> List[Path]:
        """Return the paths tried for ``name``, in lookup order."""
        filename = name if Path(name).suffix else f"{name}{self.extension}"
        return [
            self.asset_dir / "drawable" / filename,
            self.asset_dir / filename,
            Path(name),
        ]

    def resolve(self, name: str) -> Optional[Path]:
        """Return the first existing path for ``name``, or None."""
        for path in self.candidates(name):
            if path.is_file():
                return path
        return None

    def read_asset(self, name: str) -> bytes:
        """Read the raw bytes of a named asset.

        Raises:
            AssetNotFoundError: If no candidate path exists
        """
        path = self.resolve(name)
        if path is None:
            raise AssetNotFoundError(f"Asset '{name}' not found under {self.asset_dir}")

        LOGGER.debug("Reading asset '%s' from %s", name, path)
        return path.read_bytes()
