"""
Color value entity.

A Color is one distinct observed RGB + transparency value carrying the
fraction of the image it covers. Colors hash by identity, so two instances
with the same RGB stay distinct keys in cluster mappings.
"""

from enum import Enum
from numbers import Integral
from typing import Iterable, Iterator, Optional, Tuple, Union

from palettize.exceptions import InvalidColorError
from palettize.services.colors.color_space import Lab, get_distance_function, rgb_to_lab

# Leader totals are float sums and may overshoot 1.0 by rounding error
PERCENTAGE_TOLERANCE = 1e-9


class TransparencyClass(Enum):
    """Partition of colors that similarity never crosses."""
    OPAQUE = "opaque"
    FULLY_TRANSPARENT = "fully_transparent"


def _validate_channel(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidColorError(f"{name} channel must be an int, got {value!r}")
    value = int(value)
    if not 0 <= value <= 255:
        raise InvalidColorError(f"{name} channel out of range [0, 255]: {value}")
    return value


def _validate_percentage(value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidColorError(f"percentage must be a number, got {value!r}")
    if not 0.0 <= value <= 1.0 + PERCENTAGE_TOLERANCE:
        raise InvalidColorError(f"percentage out of range [0, 1]: {value}")
    return value


class Color:
    """An RGB color with a transparency class and a mutable weight."""

    __slots__ = ("_red", "_green", "_blue", "transparency", "_percentage", "_lab")

    def __init__(self, red: int, green: int, blue: int,
                 percentage: float = 1.0,
                 transparent: Union[bool, TransparencyClass] = False):
        self._red = _validate_channel("red", red)
        self._green = _validate_channel("green", green)
        self._blue = _validate_channel("blue", blue)
        if isinstance(transparent, TransparencyClass):
            self.transparency = transparent
        else:
            self.transparency = (
                TransparencyClass.FULLY_TRANSPARENT if transparent else TransparencyClass.OPAQUE
            )
        self._percentage = _validate_percentage(percentage)
        self._lab: Optional[Lab] = None

    @classmethod
    def from_hex(cls, hex_color: str, percentage: float = 1.0,
                 transparent: bool = False) -> "Color":
        """Build a color from ``#RRGGBB``."""
        hex_clean = hex_color.lstrip('#')
        if len(hex_clean) != 6:
            raise InvalidColorError(f"Invalid hex color format: {hex_color}")
        try:
            r, g, b = (int(hex_clean[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            raise InvalidColorError(f"Invalid hex color format: {hex_color}")
        return cls(r, g, b, percentage, transparent)

    # RGB channels invalidate the cached Lab value when reassigned

    @property
    def red(self) -> int:
        return self._red

    @red.setter
    def red(self, value: int):
        self._red = _validate_channel("red", value)
        self._lab = None

    @property
    def green(self) -> int:
        return self._green

    @green.setter
    def green(self, value: int):
        self._green = _validate_channel("green", value)
        self._lab = None

    @property
    def blue(self) -> int:
        return self._blue

    @blue.setter
    def blue(self, value: int):
        self._blue = _validate_channel("blue", value)
        self._lab = None

    @property
    def percentage(self) -> float:
        return self._percentage

    @percentage.setter
    def percentage(self, value: float):
        self._percentage = _validate_percentage(value)

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return self._red, self._green, self._blue

    @property
    def hex(self) -> str:
        return f"#{self._red:02X}{self._green:02X}{self._blue:02X}"

    @property
    def is_transparent(self) -> bool:
        return self.transparency is TransparencyClass.FULLY_TRANSPARENT

    @property
    def lab(self) -> Lab:
        """CIE Lab coordinates, computed on first access."""
        if self._lab is None:
            self._lab = rgb_to_lab(self.rgb)
        return self._lab

    def distance_to(self, other: "Color", method="lab") -> float:
        return get_distance_function(method)(self, other)

    def similar_to(self, other: "Color", threshold: float, method="lab") -> bool:
        """
        Check perceptual similarity.

        Colors in different transparency classes are never similar; otherwise
        they are similar when their distance is at most ``threshold``.
        """
        if self.transparency is not other.transparency:
            return False
        return self.distance_to(other, method) <= threshold

    def __repr__(self) -> str:
        suffix = ", transparent" if self.is_transparent else ""
        return f"Color({self.hex}, {self._percentage:.4f}{suffix})"


WeightedColor = Union[Color, Tuple[Color, float]]


def weighted(colors: Iterable[WeightedColor]) -> Iterator[Color]:
    """
    Yield colors from a sequence of Colors or ``(Color, percentage)`` pairs.

    For pairs the supplied percentage is assigned to the color first.
    """
    for item in colors:
        if isinstance(item, Color):
            yield item
            continue
        color, percentage = item
        color.percentage = percentage
        yield color
