"""
Palettize Pipeline Orchestrator

Wires the palette pipeline together:
image -> distinct colors -> limiter -> clusterer -> noise reducer -> palette
"""
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from loguru import logger

from palettize.config import PaletteSettings, get_settings
from palettize.schemas import PaletteReport, build_report
from palettize.services.colors import (
    ClusterSet,
    Color,
    ColorsClusterer,
    ColorsLimiter,
    NoiseReducer,
)
from palettize.services.imaging import (
    ColorsRetriever,
    ImageRecolorer,
    ImageRepository,
)
from palettize.services.observability import performance_monitor
from palettize.utils.logging import get_logger


@dataclass
class PipelineResult:
    """Intermediate and final products of one pipeline run."""
    distinct_colors: List[Color]
    limited_colors: List[Color]
    clusters: ClusterSet
    palette: Dict[Color, float]


class Painting:
    """An image and the collaborators used to extract its palette."""

    def __init__(self, path: Union[str, Path],
                 settings: Optional[PaletteSettings] = None,
                 image_repository: Optional[ImageRepository] = None,
                 colors_retriever: Optional[ColorsRetriever] = None,
                 colors_limiter: Optional[ColorsLimiter] = None,
                 colors_clusterer: Optional[ColorsClusterer] = None,
                 noise_reducer: Optional[NoiseReducer] = None,
                 image_recolorer: Optional[ImageRecolorer] = None,
                 max_edge: Optional[int] = None):
        self.path = Path(path)
        self.settings = settings if settings is not None else get_settings()
        self.image_repository = image_repository or ImageRepository()
        self.image = self.image_repository.get(self.path)
        self.colors_retriever = colors_retriever or ColorsRetriever(self.image, max_edge=max_edge)
        self.colors_limiter = colors_limiter or ColorsLimiter(self.settings)
        self.colors_clusterer = colors_clusterer or ColorsClusterer(self.settings)
        self.noise_reducer = noise_reducer or NoiseReducer(self.settings)
        self.image_recolorer = image_recolorer or ImageRecolorer(self.image)

    def _stage(self, name: str, **counts):
        if self.settings.debug:
            return performance_monitor(name, **counts)
        return nullcontext()

    def run(self) -> PipelineResult:
        """Run every stage and keep the intermediate results."""
        settings = self.settings

        with self._stage("color_retrieval"):
            distinct = self.colors_retriever.colors()

        with self._stage("color_limiting", color_count=len(distinct)):
            limited = self.colors_limiter.limit(distinct, settings)

        with self._stage("color_clustering", color_count=len(limited)):
            clusters = self.colors_clusterer.clusters(limited, settings)

        with self._stage("noise_reduction", cluster_count=len(clusters)):
            palette = self.noise_reducer.reduce(clusters, settings)

        get_logger().info(f"Extracted palette for {self.path.name}", extra={
            "distinct_colors": len(distinct),
            "limited_colors": len(limited),
            "clusters": len(clusters),
            "palette_colors": len(palette),
        })
        return PipelineResult(distinct, limited, clusters, palette)

    def palette(self) -> Dict[Color, float]:
        """Final ``{Color: percentage}`` palette, heaviest first."""
        return self.run().palette

    def report(self, result: Optional[PipelineResult] = None) -> PaletteReport:
        """Palette report; reuses ``result`` when the pipeline already ran."""
        if result is None:
            result = self.run()
        targets = self.noise_reducer.absorption_targets(result.clusters, self.settings)

        member_counts: Dict[Color, int] = {}
        for leader, cluster in result.clusters.items():
            target = targets[leader]
            member_counts[target] = member_counts.get(target, 0) + len(cluster)

        return build_report(
            result.palette,
            self.settings,
            member_counts=member_counts,
            source=str(self.path),
            distinct_colors=len(result.distinct_colors),
            clustered_colors=len(result.limited_colors),
        )

    def recolor(self, output_path: Union[str, Path],
                result: Optional[PipelineResult] = None) -> Path:
        """Repaint the image with its own palette and save it."""
        if result is None:
            result = self.run()
        reverse_index = self.colors_clusterer.reversed_clusters(result.clusters)
        targets = self.noise_reducer.absorption_targets(result.clusters, self.settings)

        with self._stage("recolor", cluster_count=len(result.palette)):
            image = self.image_recolorer.recolor(result.palette, reverse_index, targets)

        saved = self.image_repository.save(image, output_path)
        logger.info(f"Recolored {self.path.name} -> {saved}")
        return saved
