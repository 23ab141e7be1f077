"""Conversions between HSV, sRGB and the CIE 1931 xyY color space.

Hue, saturation, value and RGB components are floats in the range 0 - 1. CIE `x`
and `y` are in the range 0 - 1 (multiply by 65279 for the ZCL `color_x` and
`color_y` parameters), `Y` is the luminance in the range 0 - 100 and is not used
by the color control cluster.
"""

from __future__ import annotations

import colorsys
from typing import NamedTuple

# sRGB primaries with a D65 white point
RGB_TO_XYZ = (
    (0.4124564, 0.3575761, 0.1804375),
    (0.2126729, 0.7151522, 0.0721750),
    (0.0193339, 0.1191920, 0.9503041),
)
XYZ_TO_RGB = (
    (3.2404542, -1.5371385, -0.4985314),
    (-0.9692660, 1.8760108, 0.0415560),
    (0.0556434, -0.2040259, 1.0572252),
)


class CIExyY(NamedTuple):
    x: float
    y: float
    Y: float


class HSV(NamedTuple):
    hue: float
    saturation: float
    value: float


def _linearize(channel: float) -> float:
    if channel > 0.04045:
        return ((channel + 0.055) / 1.055) ** 2.4
    return channel / 12.92


def _compand(channel: float) -> float:
    if channel > 0.0031308:
        channel = 1.055 * channel ** (1 / 2.4) - 0.055
    else:
        channel = channel * 12.92
    return min(max(channel, 0.0), 1.0)


def _multiply(matrix, vector) -> tuple[float, float, float]:
    return tuple(sum(m * v for m, v in zip(row, vector)) for row in matrix)


def convert_rgb_to_cie(red: float, green: float, blue: float) -> CIExyY:
    linear = [_linearize(c) for c in (red, green, blue)]
    X, Y, Z = (c * 100 for c in _multiply(RGB_TO_XYZ, linear))
    total = X + Y + Z

    if total == 0:
        return CIExyY(0.0, 0.0, Y)

    return CIExyY(X / total, Y / total, Y)


def convert_cie_to_rgb(x: float, y: float, Y: float) -> tuple[float, float, float]:
    if y == 0:
        return 0.0, 0.0, 0.0

    X = x * Y / y
    Z = (1 - x - y) * Y / y
    linear = _multiply(XYZ_TO_RGB, (X / 100, Y / 100, Z / 100))

    return tuple(_compand(c) for c in linear)


def convert_hsv_to_cie(
    hue: float | None = None,
    saturation: float | None = None,
    value: float | None = None,
) -> CIExyY:
    """Convert HSV to CIE xyY, components that are unknown default to 1."""
    hue = 1 if hue is None else hue
    saturation = 1 if saturation is None else saturation
    value = 1 if value is None else value

    return convert_rgb_to_cie(*colorsys.hsv_to_rgb(hue, saturation, value))


def convert_cie_to_hsv(x: float, y: float, Y: float) -> HSV:
    return HSV(*colorsys.rgb_to_hsv(*convert_cie_to_rgb(x, y, Y)))
