"""
Palettize Imaging Utilities
Image I/O, pixel color counting and recoloring with a computed palette.
"""
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
from loguru import logger
from PIL import Image

from palettize.exceptions import ImageLoadError
from palettize.services.colors.color import Color
from palettize.services.colors.color_space import rgb_array_to_lab

PathLike = Union[str, Path]

# Packed pixel key: bit 24 = fully transparent, bits 0-23 = RGB
TRANSPARENT_BIT = 1 << 24


def pack_pixels(rgba: np.ndarray) -> np.ndarray:
    """Pack an (N, 4) uint8 RGBA array into one uint32 key per pixel."""
    px = rgba.astype(np.uint32)
    transparent = (px[:, 3] == 0).astype(np.uint32)
    return (transparent << 24) | (px[:, 0] << 16) | (px[:, 1] << 8) | px[:, 2]


def unpack_key(key: int) -> Tuple[int, int, int, bool]:
    key = int(key)
    return (key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF, bool(key & TRANSPARENT_BIT)


def color_key(color: Color) -> int:
    key = (color.red << 16) | (color.green << 8) | color.blue
    return key | TRANSPARENT_BIT if color.is_transparent else key


class ImageRepository:
    """Loads and saves images on the local filesystem."""

    def get(self, path: PathLike) -> Image.Image:
        """
        Read an image and convert it to RGBA.

        Raises:
            ImageLoadError: If the file is missing or cannot be decoded
        """
        try:
            with Image.open(path) as image:
                image.load()
                rgba = image.convert("RGBA")
        except (OSError, Image.DecompressionBombError) as e:
            raise ImageLoadError(f"Failed to load image {path}: {e}") from e

        logger.debug(f"Loaded {path} ({rgba.width}x{rgba.height})")
        return rgba

    def save(self, image: Image.Image, path: PathLike) -> Path:
        path = Path(path)
        if path.suffix.lower() in (".jpg", ".jpeg") and image.mode != "RGB":
            image = image.convert("RGB")
        try:
            image.save(path)
        except (OSError, ValueError) as e:
            raise ImageLoadError(f"Failed to save image {path}: {e}") from e
        return path


class ColorsRetriever:
    """Counts the distinct colors of an image."""

    def __init__(self, image: Image.Image, max_edge: Optional[int] = None):
        self.image = image
        self.max_edge = max_edge

    def _pixels(self) -> np.ndarray:
        image = self.image
        if self.max_edge and max(image.size) > self.max_edge:
            image = image.copy()
            # Nearest keeps sampled colors verbatim, no blending
            image.thumbnail((self.max_edge, self.max_edge), Image.Resampling.NEAREST)
        return np.asarray(image.convert("RGBA"), dtype=np.uint8).reshape(-1, 4)

    def colors(self) -> List[Color]:
        """
        One Color per distinct RGB + transparency value.

        A pixel is fully transparent when its alpha is 0; any other alpha is
        treated as opaque. Percentages are pixel counts over the total.

        Returns:
            Colors ordered by descending percentage
        """
        pixels = self._pixels()
        total = pixels.shape[0]
        if total == 0:
            return []

        keys, counts = np.unique(pack_pixels(pixels), return_counts=True)
        order = np.argsort(-counts, kind="stable")

        colors = []
        for idx in order:
            r, g, b, transparent = unpack_key(keys[idx])
            colors.append(Color(r, g, b, float(counts[idx]) / total, transparent))

        logger.debug(f"Retrieved {len(colors)} distinct colors from {total} pixels")
        return colors

    __call__ = colors


class ImageRecolorer:
    """Repaints an image using only the colors of a palette."""

    def __init__(self, image: Image.Image):
        self.image = image

    def recolor(self, palette: Mapping[Color, float],
                reverse_index: Optional[Mapping[Color, Color]] = None,
                targets: Optional[Mapping[Color, Color]] = None) -> Image.Image:
        """
        Map every pixel to a palette color.

        A pixel whose color appears in ``reverse_index`` goes to its leader,
        then to that leader's absorption target. Pixels left unmapped, or
        mapped to a color outside the palette, go to the nearest palette color
        in Lab space within their transparency class when one exists. Alpha
        is preserved.

        Args:
            palette: Final ``{Color: percentage}`` palette
            reverse_index: Member -> leader mapping from the clusterer
            targets: Leader -> palette color mapping from the noise reducer

        Returns:
            New RGBA image
        """
        rgba = np.asarray(self.image.convert("RGBA"), dtype=np.uint8)
        palette_colors = list(palette)
        if not palette_colors:
            return Image.fromarray(rgba.copy())

        height, width = rgba.shape[:2]
        flat = rgba.reshape(-1, 4)
        keys, inverse = np.unique(pack_pixels(flat), return_inverse=True)
        inverse = inverse.reshape(-1)

        palette_index: Dict[Color, int] = {color: i for i, color in enumerate(palette_colors)}
        known: Dict[int, int] = {}
        for member, leader in (reverse_index or {}).items():
            target = (targets or {}).get(leader, leader)
            if target in palette_index:
                known[color_key(member)] = palette_index[target]

        choice = np.full(len(keys), -1, dtype=np.int64)
        for i, key in enumerate(keys):
            choice[i] = known.get(int(key), -1)

        unmapped = np.where(choice < 0)[0]
        if len(unmapped):
            choice[unmapped] = self._nearest(keys[unmapped], palette_colors)
            logger.debug(f"Recolor: {len(unmapped)} of {len(keys)} colors mapped by nearest palette color")

        palette_rgb = np.array([color.rgb for color in palette_colors], dtype=np.uint8)
        out = flat.copy()
        out[:, :3] = palette_rgb[choice[inverse]]
        return Image.fromarray(out.reshape(height, width, 4))

    __call__ = recolor

    @staticmethod
    def _nearest(keys: np.ndarray, palette_colors: List[Color]) -> np.ndarray:
        rgb = np.column_stack([(keys >> 16) & 0xFF, (keys >> 8) & 0xFF, keys & 0xFF])
        transparent = (keys & TRANSPARENT_BIT) > 0

        palette_lab = np.array([color.lab for color in palette_colors], dtype=np.float64)
        palette_transparent = np.array([color.is_transparent for color in palette_colors])

        # (N, 1, 3) - (1, k, 3) -> (N, k)
        distances = np.linalg.norm(
            rgb_array_to_lab(rgb)[:, None, :] - palette_lab[None, :, :],
            axis=2
        )
        mismatch = transparent[:, None] != palette_transparent[None, :]
        masked = np.where(mismatch, np.inf, distances)
        no_match = np.all(mismatch, axis=1)
        masked[no_match] = distances[no_match]
        return masked.argmin(axis=1)
