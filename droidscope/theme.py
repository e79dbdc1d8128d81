"""Colour themes and stable per-string colours."""

from __future__ import annotations

import math
from dataclasses import dataclass

RGB = tuple[int, int, int]

_FNV_OFFSET = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF


@dataclass(frozen=True)
class Theme:
    """A palette of RGB colours used by every panel."""

    bg: RGB
    fg: RGB
    accent: RGB
    surface: RGB
    muted: RGB
    success: RGB
    warn: RGB
    error: RGB
    is_dark: bool


DARK = Theme(
    bg=(20, 22, 26),
    fg=(220, 223, 228),
    accent=(137, 180, 250),
    surface=(68, 71, 77),
    muted=(120, 124, 132),
    success=(166, 227, 161),
    warn=(249, 226, 175),
    error=(243, 139, 168),
    is_dark=True,
)

LIGHT = Theme(
    bg=(250, 250, 250),
    fg=(30, 30, 30),
    accent=(30, 102, 245),
    surface=(200, 200, 210),
    muted=(130, 130, 140),
    success=(64, 160, 43),
    warn=(223, 142, 29),
    error=(210, 15, 57),
    is_dark=False,
)


def by_name(name: str) -> Theme:
    """Return the theme called ``name``; anything but "light" is dark."""
    return LIGHT if name == "light" else DARK


def hashed_color(s: str, theme: Theme) -> RGB:
    """Stable colour for a string: FNV-1a hash to a hue, then HSL to RGB."""
    value = _FNV_OFFSET
    for byte in s.encode("utf-8"):
        value ^= byte
        value = (value * _FNV_PRIME) & _MASK64
    hue = float(value % 360)
    sat, lum = (0.55, 0.72) if theme.is_dark else (0.70, 0.38)
    return hsl_to_rgb(hue, sat, lum)


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


def _to_channel(value: float) -> int:
    return int(min(max(_round_half_away(value * 255.0), 0.0), 255.0))


def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    """Convert hue (degrees), saturation and lightness (0..1) to RGB bytes."""
    c = (1.0 - abs(2.0 * l - 1.0)) * s
    h_ = h / 60.0
    x = c * (1.0 - abs(math.fmod(h_, 2.0) - 1.0))
    sector = int(h_)
    if sector == 0:
        r1, g1, b1 = c, x, 0.0
    elif sector == 1:
        r1, g1, b1 = x, c, 0.0
    elif sector == 2:
        r1, g1, b1 = 0.0, c, x
    elif sector == 3:
        r1, g1, b1 = 0.0, x, c
    elif sector == 4:
        r1, g1, b1 = x, 0.0, c
    else:
        r1, g1, b1 = c, 0.0, x
    m = l - c / 2.0
    return (_to_channel(r1 + m), _to_channel(g1 + m), _to_channel(b1 + m))