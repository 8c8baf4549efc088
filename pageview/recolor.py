"""Recolouring of rendered page surfaces between a dark and a light colour.

Colours are treated as a lightness scalar (a weighted average of the red,
green and blue channels), a hue vector pointing away from the grey axis
inside the plane of equal lightness, and a saturation between 0 (grey) and
1 (the border of the RGB cube).
"""

from __future__ import annotations

import math
import sys
from typing import Iterable, Iterator, Optional, Sequence

from pageview.page import Rectangle
from pageview.surface import RGBA, Surface

__all__ = [
    "colorumax",
    "pixel_inside_rectangles",
    "recolor",
    "recolor_fast",
    "recolor_slow",
    "use_fast_formula",
]

_EPSILON = sys.float_info.epsilon
_MAX = sys.float_info.max

# RGB weights for computing lightness; they sum to one.
_WEIGHTS = (0.30, 0.59, 0.11)


def _lightness(red: float, green: float, blue: float) -> float:
    return _WEIGHTS[0] * red + _WEIGHTS[1] * green + _WEIGHTS[2] * blue


def _to_byte(value: float) -> int:
    """Scale a 0..1 value to a byte, rounding halves away from zero."""
    scaled = 255.0 * value
    if not math.isfinite(scaled):
        return 0
    rounded = math.floor(scaled + 0.5) if scaled >= 0 else math.ceil(scaled - 0.5)
    return min(255, max(0, int(rounded)))


def colorumax(h: Sequence[float], lightness: float, l1: float, l2: float) -> float:
    """Return the largest saturation possible for hue ``h`` at ``lightness``.

    ``lightness`` is assumed to lie in [l1, l2]; the result is forced to
    zero at both ends of that interval.
    """
    if all(abs(component) <= _EPSILON for component in h):
        return 0.0

    same_ends = l2 == l1
    lv = 0.0 if same_ends else (lightness - l1) / (l2 - l1)
    u = _MAX
    v = _MAX
    for component in h:
        if component > _EPSILON:
            u = min(abs((1 - lightness) / component), u)
            v = min(abs((1 - lv) / component), v)
        elif component < -_EPSILON:
            u = min(abs(lightness / component), u)
            v = min(abs(lv / component), v)

    # An empty interval leaves no room for saturation at all.
    v = 0.0 if same_ends else abs(l2 - l1) * v
    return min(u, v)


def pixel_inside_rectangles(rectangles: Iterable[Rectangle], x: float, y: float) -> bool:
    """Return True if the point lies inside (or on the edge of) any rectangle."""
    return any(
        rect.x1 <= x <= rect.x2 and rect.y1 <= y <= rect.y2 for rect in rectangles
    )


def use_fast_formula(dark: RGBA, light: RGBA, hue: bool) -> bool:
    """Return True if the simpler formulas give the same result as the full ones."""
    grey = (
        abs(dark.red - dark.blue) < _EPSILON
        and abs(dark.red - dark.green) < _EPSILON
        and abs(light.red - light.blue) < _EPSILON
        and abs(light.red - light.green) < _EPSILON
    )
    opaque = dark.alpha >= 1.0 - _EPSILON and light.alpha >= 1.0 - _EPSILON
    return (not hue or grey) and opaque


def _pixels(
    surface: Surface, skip_rectangles: Optional[Sequence[Rectangle]]
) -> Iterator[tuple[int, tuple[float, float, float]]]:
    """Yield byte offsets and (r, g, b) values of the pixels to recolour.

    Pixels inside ``skip_rectangles`` are made opaque and not yielded.
    """
    data = surface.data
    for y in range(surface.height):
        row = y * surface.stride
        for x in range(surface.width):
            offset = row + x * 4
            if skip_rectangles is not None and pixel_inside_rectangles(skip_rectangles, x, y):
                data[offset + 3] = 255
                continue
            blue, green, red = data[offset], data[offset + 1], data[offset + 2]
            yield offset, (red / 255.0, green / 255.0, blue / 255.0)


def _store(data: bytearray, offset: int, red: float, green: float, blue: float, alpha: float) -> None:
    data[offset] = _to_byte(blue)
    data[offset + 1] = _to_byte(green)
    data[offset + 2] = _to_byte(red)
    data[offset + 3] = _to_byte(alpha)


def recolor_fast(
    surface: Surface,
    dark: RGBA,
    light: RGBA,
    hue: bool,
    skip_rectangles: Optional[Sequence[Rectangle]] = None,
) -> None:
    """Recolour ``surface`` in place assuming opaque, grey target colours."""
    l1 = _lightness(dark.red, dark.green, dark.blue)
    l2 = _lightness(light.red, light.green, light.blue)
    diff = (light.red - dark.red, light.green - dark.green, light.blue - dark.blue)
    data = surface.data

    for offset, rgb in _pixels(surface, skip_rectangles):
        lightness = _lightness(*rgb)
        if hue:
            h = tuple(channel - lightness for channel in rgb)
            u = colorumax(h, lightness, 0.0, 1.0)
            saturation = 1.0 / u if abs(u) > _EPSILON else 0.0
            lightness = lightness * (l2 - l1) + l1
            su = saturation * colorumax(h, lightness, l1, l2)
            red, green, blue = (lightness + su * component for component in h)
        else:
            red = lightness * diff[0] + dark.red
            green = lightness * diff[1] + dark.green
            blue = lightness * diff[2] + dark.blue
        _store(data, offset, red, green, blue, 1.0)


def recolor_slow(
    surface: Surface,
    dark: RGBA,
    light: RGBA,
    hue: bool,
    skip_rectangles: Optional[Sequence[Rectangle]] = None,
) -> None:
    """Recolour ``surface`` in place for arbitrary, possibly translucent colours."""
    l1 = _lightness(dark.red, dark.green, dark.blue)
    l2 = _lightness(light.red, light.green, light.blue)
    negalpha1 = 1.0 - dark.alpha
    negalpha2 = 1.0 - light.alpha
    diff = (light.red - dark.red, light.green - dark.green, light.blue - dark.blue)
    h1 = tuple(
        channel * dark.alpha - l1 for channel in (dark.red, dark.green, dark.blue)
    )
    h2 = tuple(
        channel * light.alpha - l2 for channel in (light.red, light.green, light.blue)
    )
    data = surface.data

    for offset, rgb in _pixels(surface, skip_rectangles):
        lightness = _lightness(*rgb)
        if hue:
            h = tuple(channel - lightness for channel in rgb)
            u = colorumax(h, lightness, 0.0, 1.0)
            saturation = 1.0 / u if abs(u) > _EPSILON else 0.0
            lightness = lightness * (l2 - l1) + l1
            su = saturation * colorumax(h, lightness, l1, l2)

            # Mix the dark colour, the light colour and the original one
            # according to the original's largest and smallest channel.
            tr1 = 1.0 - max(rgb)
            tr2 = min(rgb)
            red, green, blue = (
                min(1.0, max(0.0, tr1 * h1[k] + tr2 * h2[k] + (lightness + su * h[k])))
                for k in range(3)
            )
            alpha = 1.0 - tr1 * negalpha1 - tr2 * negalpha2
        else:
            f1 = 1.0 - (1.0 - max(rgb)) * negalpha1
            f2 = min(rgb) * negalpha2
            alpha = f1 - f2
            red = lightness * diff[0] - f2 * light.red + f1 * dark.red
            green = lightness * diff[1] - f2 * light.green + f1 * dark.green
            blue = lightness * diff[2] - f2 * light.blue + f1 * dark.blue
        _store(data, offset, red, green, blue, alpha)


def recolor(
    surface: Surface,
    dark: RGBA,
    light: RGBA,
    hue: bool = True,
    reverse_video: bool = False,
    image_rectangles: Optional[Sequence[Rectangle]] = None,
) -> None:
    """Recolour ``surface`` in place, choosing the fast formulas when possible.

    In reverse-video mode the pixels inside ``image_rectangles`` are left
    untouched apart from being made opaque.
    """
    skip = image_rectangles if reverse_video and image_rectangles is not None else None
    if use_fast_formula(dark, light, hue):
        recolor_fast(surface, dark, light, hue, skip)
    else:
        recolor_slow(surface, dark, light, hue, skip)