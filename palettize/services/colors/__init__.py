"""
Palettize Colors Module

Provides the perceptual color model, the limiter that bounds clustering
input, the clusterer that groups similar colors under a leader, and the
noise reducer that collapses clusters into the final palette.
"""

from palettize.services.colors.color import Color, TransparencyClass, weighted
from palettize.services.colors.color_space import (
    SIMILARITY_METHODS,
    get_distance_function,
    rgb_to_lab,
)
from palettize.services.colors.limiter import ColorsLimiter
from palettize.services.colors.clusterer import Cluster, ClusterSet, ColorsClusterer
from palettize.services.colors.noise_reducer import NoiseReducer

__all__ = [
    'Color',
    'TransparencyClass',
    'weighted',
    'SIMILARITY_METHODS',
    'get_distance_function',
    'rgb_to_lab',
    'ColorsLimiter',
    'Cluster',
    'ClusterSet',
    'ColorsClusterer',
    'NoiseReducer',
]
