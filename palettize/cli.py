#!/usr/bin/env python3
"""
Extract a color palette from an image.

Usage:
    palettize photo.png
    palettize photo.png --max-colors 6 --threshold 20 --json
    palettize photo.png --recolor photo_palette.png
"""

import argparse
import sys
from typing import List, Optional

from loguru import logger

from palettize.config import get_settings
from palettize.exceptions import PaletteError
from palettize.services.colors.color_space import SIMILARITY_METHODS
from palettize.services.orchestrator import Painting
from palettize.utils.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="palettize",
        description="Extract a reduced color palette from an image"
    )
    parser.add_argument("image", help="Path to the input image")
    parser.add_argument("--max-colors", type=int, dest="max_colors_count",
                        help="Maximum number of palette colors")
    parser.add_argument("--threshold", type=float, dest="color_similarity_threshold",
                        help="Distance at or below which colors are grouped")
    parser.add_argument("--method", choices=sorted(SIMILARITY_METHODS),
                        dest="color_similarity_method",
                        help="Color distance used for similarity")
    parser.add_argument("--colors-limit", type=int, dest="colors_limit",
                        help="Maximum number of distinct colors to cluster")
    parser.add_argument("--min-color-percentage", type=float, dest="min_color_percentage",
                        help="Weight below which colors are treated as noise")
    parser.add_argument("--max-edge", type=int, default=None,
                        help="Downscale the image so its longest edge is at most this many pixels")
    parser.add_argument("--json", action="store_true",
                        help="Print the palette report as JSON")
    parser.add_argument("--recolor", metavar="OUTPUT",
                        help="Also write the image repainted with the palette")
    parser.add_argument("--debug", action="store_true", default=None,
                        help="Log per-stage diagnostics")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings().with_overrides(
            max_colors_count=args.max_colors_count,
            color_similarity_threshold=args.color_similarity_threshold,
            color_similarity_method=args.color_similarity_method,
            colors_limit=args.colors_limit,
            min_color_percentage=args.min_color_percentage,
            debug=args.debug,
        )
        configure_logging("DEBUG" if settings.debug else settings.log_level)

        painting = Painting(args.image, settings=settings, max_edge=args.max_edge)
        result = painting.run()
        report = painting.report(result)

        if args.json:
            print(report.model_dump_json(indent=2))
        else:
            for entry in report.palette:
                suffix = "  (transparent)" if entry.transparent else ""
                print(f"{entry.hex}  {entry.ratio * 100:6.2f}%{suffix}")

        if args.recolor:
            painting.recolor(args.recolor, result)

    except PaletteError as e:
        logger.error(f"palettize failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
