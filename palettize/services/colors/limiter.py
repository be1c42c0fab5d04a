"""
Colors limiter.

Caps the number of distinct colors handed to the clusterer, keeping the most
common ones and dropping colors too rare to matter.
"""

from typing import Iterable, List, Optional

from loguru import logger

from palettize.config import PaletteSettings
from palettize.services.colors.color import Color, WeightedColor, weighted


class ColorsLimiter:
    """Pre-filter that bounds the input size of the clustering stage."""

    def __init__(self, settings: Optional[PaletteSettings] = None):
        self.settings = settings if settings is not None else PaletteSettings()

    def limit(self, colors: Iterable[WeightedColor],
              settings: Optional[PaletteSettings] = None) -> List[Color]:
        """
        Keep the heaviest colors until any bound is hit.

        Colors are taken in descending percentage order while the retained
        count is below ``colors_limit``, the cumulative retained percentage is
        below ``min_percentage_sum`` and the color itself reaches
        ``min_color_percentage``.

        Returns:
            New list of retained colors, heaviest first
        """
        settings = settings if settings is not None else self.settings
        ordered = sorted(weighted(colors), key=lambda c: -c.percentage)

        retained: List[Color] = []
        percentage_sum = 0.0
        for color in ordered:
            if len(retained) >= settings.colors_limit:
                break
            if percentage_sum >= settings.min_percentage_sum:
                break
            if color.percentage < settings.min_color_percentage:
                break
            retained.append(color)
            percentage_sum += color.percentage

        logger.debug(f"Limited {len(ordered)} colors to {len(retained)} "
                     f"(retained weight {percentage_sum:.4f})")
        return retained

    __call__ = limit
