"""
Test configuration and fixtures for palettize tests.
"""
import numpy as np
import pytest
from loguru import logger
from PIL import Image

from palettize.config import PaletteSettings
from palettize.services.colors import Color


@pytest.fixture(autouse=True)
def reset_observability():
    """Reset metrics before each test and drop log sinks added by a test."""
    from palettize.services.observability import get_metrics_collector
    get_metrics_collector().reset()
    yield
    logger.remove()


@pytest.fixture
def settings():
    return PaletteSettings()


@pytest.fixture
def black():
    return Color(0, 0, 0)


@pytest.fixture
def white():
    return Color(255, 255, 255)


@pytest.fixture
def pseudo_blacks():
    """Three near-black colors well within the default threshold of black."""
    return [Color(4, 0, 0), Color(5, 0, 0), Color(6, 0, 0)]


@pytest.fixture
def make_image(tmp_path):
    """
    Write an RGBA PNG built from ``(rgba, pixel_count)`` pairs.

    Pixels are laid out row-major on a 10-pixel-wide canvas, so the counts
    must add up to a multiple of 10.
    """
    def _make(regions, name="image.png"):
        pixels = []
        for rgba, count in regions:
            pixels.extend([rgba] * count)
        arr = np.array(pixels, dtype=np.uint8).reshape(-1, 10, 4)
        path = tmp_path / name
        Image.fromarray(arr).save(path)
        return path

    return _make
