"""
Color Space Conversion and Distance

sRGB (D65) to CIE L*a*b* conversion plus the distance functions used for
color similarity. Scalar functions work on one color at a time and are what
the clusterer calls; ``rgb_array_to_lab`` is the numpy version for
image-sized workloads.
"""

import math
from typing import Callable, Dict, Tuple, Union

import numpy as np

from palettize.exceptions import ConfigurationError

Lab = Tuple[float, float, float]
RGB = Tuple[int, int, int]

# D65 reference white
WHITE_X = 0.95047
WHITE_Y = 1.0
WHITE_Z = 1.08883

EPSILON = 216.0 / 24389.0
KAPPA = 24389.0 / 27.0


def _linearize(channel: int) -> float:
    """Undo sRGB companding for an 8-bit channel."""
    c = channel / 255.0
    if c > 0.04045:
        return ((c + 0.055) / 1.055) ** 2.4
    return c / 12.92


def _lab_f(t: float) -> float:
    if t > EPSILON:
        return t ** (1.0 / 3.0)
    return (KAPPA * t + 16.0) / 116.0


def rgb_to_lab(rgb: RGB) -> Lab:
    """
    Convert an 8-bit sRGB triple to CIE L*a*b*.

    Args:
        rgb: (R, G, B) with each channel in [0, 255]

    Returns:
        (L*, a*, b*) with L* in [0, 100]

    Example:
        >>> rgb_to_lab((255, 255, 255))
        (100.0, 0.0, 0.0)  # approximately
    """
    r, g, b = (_linearize(c) for c in rgb)

    x = r * 0.4124564 + g * 0.3575761 + b * 0.1804375
    y = r * 0.2126729 + g * 0.7151522 + b * 0.0721750
    z = r * 0.0193339 + g * 0.1191920 + b * 0.9503041

    fx = _lab_f(x / WHITE_X)
    fy = _lab_f(y / WHITE_Y)
    fz = _lab_f(z / WHITE_Z)

    L = 116.0 * fy - 16.0
    a = 500.0 * (fx - fy)
    b_star = 200.0 * (fy - fz)
    return L, a, b_star


def rgb_array_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert an (N, 3) array of 8-bit RGB values to an (N, 3) Lab array."""
    rgb_norm = np.asarray(rgb, dtype=np.float64) / 255.0

    mask = rgb_norm > 0.04045
    rgb_linear = np.where(mask, ((rgb_norm + 0.055) / 1.055) ** 2.4, rgb_norm / 12.92)

    r, g, b = rgb_linear[:, 0], rgb_linear[:, 1], rgb_linear[:, 2]
    x = (r * 0.4124564 + g * 0.3575761 + b * 0.1804375) / WHITE_X
    y = (r * 0.2126729 + g * 0.7151522 + b * 0.0721750) / WHITE_Y
    z = (r * 0.0193339 + g * 0.1191920 + b * 0.9503041) / WHITE_Z

    xyz = np.column_stack([x, y, z])
    f = np.where(xyz > EPSILON, np.cbrt(xyz), (KAPPA * xyz + 16.0) / 116.0)

    L = 116.0 * f[:, 1] - 16.0
    a = 500.0 * (f[:, 0] - f[:, 1])
    b_star = 200.0 * (f[:, 1] - f[:, 2])
    return np.column_stack([L, a, b_star])


def delta_e_cie1976(lab1: Lab, lab2: Lab) -> float:
    """Euclidean distance between two Lab triples."""
    return math.sqrt(
        (lab1[0] - lab2[0]) ** 2
        + (lab1[1] - lab2[1]) ** 2
        + (lab1[2] - lab2[2]) ** 2
    )


def delta_e_cie2000(lab1: Lab, lab2: Lab,
                    kL: float = 1.0, kC: float = 1.0, kH: float = 1.0) -> float:
    """
    CIEDE2000 color difference.

    References:
    - Sharma, G., Wu, W., & Dalal, E. N. (2005).
      "The CIEDE2000 color-difference formula: Implementation notes,
       supplementary test data, and mathematical observations."
    """
    L1, a1, b1 = lab1
    L2, a2, b2 = lab2

    C1 = math.hypot(a1, b1)
    C2 = math.hypot(a2, b2)
    C_bar = (C1 + C2) / 2.0

    G = 0.5 * (1 - math.sqrt(C_bar ** 7 / (C_bar ** 7 + 25 ** 7)))
    a1_prime = (1 + G) * a1
    a2_prime = (1 + G) * a2

    C1_prime = math.hypot(a1_prime, b1)
    C2_prime = math.hypot(a2_prime, b2)

    h1_prime = math.degrees(math.atan2(b1, a1_prime)) % 360 if C1_prime else 0.0
    h2_prime = math.degrees(math.atan2(b2, a2_prime)) % 360 if C2_prime else 0.0

    delta_L_prime = L2 - L1
    delta_C_prime = C2_prime - C1_prime

    if C1_prime * C2_prime == 0:
        delta_h_prime = 0.0
    else:
        diff = h2_prime - h1_prime
        if abs(diff) <= 180:
            delta_h_prime = diff
        elif diff > 180:
            delta_h_prime = diff - 360
        else:
            delta_h_prime = diff + 360

    delta_H_prime = 2 * math.sqrt(C1_prime * C2_prime) * math.sin(math.radians(delta_h_prime / 2.0))

    L_bar_prime = (L1 + L2) / 2.0
    C_bar_prime = (C1_prime + C2_prime) / 2.0

    if C1_prime * C2_prime == 0:
        H_bar_prime = h1_prime + h2_prime
    else:
        sum_h = h1_prime + h2_prime
        if abs(h1_prime - h2_prime) <= 180:
            H_bar_prime = sum_h / 2.0
        elif sum_h < 360:
            H_bar_prime = (sum_h + 360) / 2.0
        else:
            H_bar_prime = (sum_h - 360) / 2.0

    T = (
        1.0
        - 0.17 * math.cos(math.radians(H_bar_prime - 30))
        + 0.24 * math.cos(math.radians(2 * H_bar_prime))
        + 0.32 * math.cos(math.radians(3 * H_bar_prime + 6))
        - 0.20 * math.cos(math.radians(4 * H_bar_prime - 63))
    )

    SL = 1 + (0.015 * (L_bar_prime - 50) ** 2) / math.sqrt(20 + (L_bar_prime - 50) ** 2)
    SC = 1 + 0.045 * C_bar_prime
    SH = 1 + 0.015 * C_bar_prime * T

    delta_theta = 30 * math.exp(-(((H_bar_prime - 275) / 25) ** 2))
    RC = 2 * math.sqrt(C_bar_prime ** 7 / (C_bar_prime ** 7 + 25 ** 7))
    RT = -math.sin(math.radians(2 * delta_theta)) * RC

    dL = delta_L_prime / (kL * SL)
    dC = delta_C_prime / (kC * SC)
    dH = delta_H_prime / (kH * SH)
    return math.sqrt(max(0.0, dL ** 2 + dC ** 2 + dH ** 2 + RT * dC * dH))


def lab_distance(color_a, color_b) -> float:
    """Perceptual distance: Euclidean distance between Lab coordinates."""
    return delta_e_cie1976(color_a.lab, color_b.lab)


def ciede2000_distance(color_a, color_b) -> float:
    return delta_e_cie2000(color_a.lab, color_b.lab)


def rgb_distance(color_a, color_b) -> float:
    return math.sqrt(
        (color_a.red - color_b.red) ** 2
        + (color_a.green - color_b.green) ** 2
        + (color_a.blue - color_b.blue) ** 2
    )


DistanceFunction = Callable[..., float]

SIMILARITY_METHODS: Dict[str, DistanceFunction] = {
    "lab": lab_distance,
    "ciede2000": ciede2000_distance,
    "rgb": rgb_distance,
}


def get_distance_function(method: Union[str, DistanceFunction]) -> DistanceFunction:
    """
    Resolve a similarity method name to its distance function.

    Callables are passed through unchanged so alternative metrics can be
    plugged in without registering them.

    Raises:
        ConfigurationError: If the name is not registered
    """
    if callable(method):
        return method
    try:
        return SIMILARITY_METHODS[str(method).lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown color similarity method: {method!r}. "
            f"Supported: {', '.join(sorted(SIMILARITY_METHODS))}"
        )
