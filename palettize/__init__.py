"""
Palettize

Extracts a small, perceptually distinct color palette from an image by
clustering its weighted pixel colors in CIE Lab space.
"""

__version__ = "1.0.0"
