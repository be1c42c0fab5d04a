"""
Noise Reducer

Collapses a cluster set into the final flat palette. Clusters below the
significance floor are folded into the nearest surviving cluster of the same
transparency class, so the palette's total weight equals the cluster set's.
"""

from collections.abc import Mapping
from typing import Dict, List, Optional

from loguru import logger

from palettize.config import PaletteSettings
from palettize.services.colors.color import Color
from palettize.services.colors.color_space import get_distance_function


class NoiseReducer:
    """Turns clusters into a ``{Color: percentage}`` palette."""

    def __init__(self, settings: Optional[PaletteSettings] = None):
        self.settings = settings if settings is not None else PaletteSettings()

    def absorption_targets(self, cluster_set: Mapping,
                           settings: Optional[PaletteSettings] = None) -> Dict[Color, Color]:
        """
        Decide which palette color represents each leader.

        Survivors (at or above ``min_color_percentage``) represent themselves.
        A sub-floor leader maps to the closest survivor in its transparency
        class, ties going to the survivor listed first; with no such survivor
        it represents itself.
        """
        settings = settings if settings is not None else self.settings
        distance = get_distance_function(settings.color_similarity_method)
        floor = settings.min_color_percentage

        leaders: List[Color] = list(cluster_set)
        survivors = [leader for leader in leaders if leader.percentage >= floor]

        targets: Dict[Color, Color] = {}
        for leader in leaders:
            if leader.percentage >= floor:
                targets[leader] = leader
                continue

            nearest: Optional[Color] = None
            nearest_distance = 0.0
            for survivor in survivors:
                if survivor.transparency is not leader.transparency:
                    continue
                d = distance(leader, survivor)
                if nearest is None or d < nearest_distance:
                    nearest, nearest_distance = survivor, d

            targets[leader] = nearest if nearest is not None else leader
        return targets

    def reduce(self, cluster_set: Mapping,
               settings: Optional[PaletteSettings] = None) -> Dict[Color, float]:
        """
        Build the final palette.

        Args:
            cluster_set: Leader -> members mapping from the clusterer
            settings: Overrides the reducer's settings for this call

        Returns:
            ``{Color: percentage}`` ordered by descending percentage
        """
        settings = settings if settings is not None else self.settings
        targets = self.absorption_targets(cluster_set, settings)

        palette: Dict[Color, float] = {}
        absorbed = 0
        for leader, target in targets.items():
            if target is not leader:
                absorbed += 1
            palette[target] = palette.get(target, 0.0) + leader.percentage

        ordered = dict(sorted(palette.items(), key=lambda item: -item[1]))

        logger.debug(f"Reduced {len(targets)} clusters to {len(ordered)} palette colors "
                     f"({absorbed} absorbed below {settings.min_color_percentage})")
        return ordered

    __call__ = reduce
