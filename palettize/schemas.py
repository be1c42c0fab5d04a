"""
Palettize Report Schemas
Pydantic models describing an extracted palette.
"""
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from palettize.config import PaletteSettings
from palettize.exceptions import PaletteError
from palettize.services.colors.color import PERCENTAGE_TOLERANCE, Color


class PaletteEntry(BaseModel):
    """Single palette color with its share of the image."""
    hex: str = Field(
        ...,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Hex color code in format #RRGGBB"
    )
    rgb: List[int] = Field(
        ...,
        min_length=3,
        max_length=3,
        description="RGB channels, each 0-255"
    )
    ratio: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Fraction (0.0-1.0) of the image this color represents"
    )
    transparent: bool = Field(False, description="Whether the color is fully transparent")
    member_count: Optional[int] = Field(
        None,
        ge=1,
        description="Number of source colors grouped under this palette color"
    )


class PaletteReport(BaseModel):
    """Extracted palette plus the parameters that produced it."""
    source: Optional[str] = Field(None, description="Image the palette was extracted from")
    palette: List[PaletteEntry] = Field(..., description="Palette entries, heaviest first")
    total_ratio: float = Field(..., ge=0.0, description="Sum of entry ratios")
    distinct_colors: int = Field(0, ge=0, description="Distinct colors found in the image")
    clustered_colors: int = Field(0, ge=0, description="Colors kept by the limiter")
    settings: Dict[str, object] = Field(default_factory=dict, description="Algorithm parameters")


def _entry_ratio(color: Color, ratio: float) -> float:
    # Only float accumulation error may be clamped
    ratio = float(ratio)
    if ratio > 1.0 + PERCENTAGE_TOLERANCE:
        raise PaletteError(f"Palette weight for {color.hex} exceeds 1: {ratio}")
    return min(1.0, ratio)


def build_report(palette: Mapping[Color, float],
                 settings: PaletteSettings,
                 member_counts: Optional[Mapping[Color, int]] = None,
                 source: Optional[str] = None,
                 distinct_colors: int = 0,
                 clustered_colors: int = 0) -> PaletteReport:
    """Convert a ``{Color: percentage}`` palette into a PaletteReport."""
    entries = []
    for color, ratio in palette.items():
        entries.append(PaletteEntry(
            hex=color.hex,
            rgb=list(color.rgb),
            ratio=_entry_ratio(color, ratio),
            transparent=color.is_transparent,
            member_count=(member_counts or {}).get(color),
        ))

    return PaletteReport(
        source=source,
        palette=entries,
        total_ratio=float(sum(palette.values())),
        distinct_colors=distinct_colors,
        clustered_colors=clustered_colors,
        settings=settings.model_dump(exclude={"log_level"}),
    )
