"""Image surfaces holding 32-bit BGRA pixels, and colour parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = ["RGBA", "Surface", "parse_color"]

_HEX_COLOR = re.compile(r"#([0-9a-fA-F]+)")
_FUNCTIONAL_COLOR = re.compile(r"(rgba?)\(([^)]*)\)", re.IGNORECASE)


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


@dataclass(frozen=True)
class RGBA:
    """A colour with channels in the range 0..1."""

    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0
    alpha: float = 1.0


def _channel(text: str) -> float:
    if text.endswith("%"):
        return _clamp(float(text[:-1]) / 100.0)
    return _clamp(float(text) / 255.0)


def parse_color(spec: str) -> RGBA:
    """Parse ``#rgb``-style hex colours or ``rgb()``/``rgba()`` notation.

    Raises ValueError if the specification cannot be parsed.
    """
    text = spec.strip()

    match = _HEX_COLOR.fullmatch(text)
    if match:
        digits = match.group(1)
        if len(digits) not in (3, 6, 9, 12):
            raise ValueError(f"invalid colour: {spec!r}")
        width = len(digits) // 3
        maximum = 16**width - 1
        red, green, blue = (
            int(digits[i * width:(i + 1) * width], 16) / maximum for i in range(3)
        )
        return RGBA(red, green, blue, 1.0)

    match = _FUNCTIONAL_COLOR.fullmatch(text)
    if match:
        kind = match.group(1).lower()
        parts = [part.strip() for part in match.group(2).split(",")]
        expected = 4 if kind == "rgba" else 3
        if len(parts) != expected:
            raise ValueError(f"invalid colour: {spec!r}")
        try:
            red, green, blue = (_channel(part) for part in parts[:3])
            alpha = _clamp(float(parts[3])) if expected == 4 else 1.0
        except ValueError as exc:
            raise ValueError(f"invalid colour: {spec!r}") from exc
        return RGBA(red, green, blue, alpha)

    raise ValueError(f"invalid colour: {spec!r}")


class Surface:
    """An image surface of ``width`` x ``height`` pixels stored as B, G, R, A bytes.

    Colour channels are stored premultiplied by alpha. Surfaces without an
    alpha channel keep the alpha byte at 255.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        has_alpha: bool = True,
        device_scale: tuple[float, float] = (1.0, 1.0),
    ) -> None:
        if width < 0 or height < 0:
            raise ValueError("surface dimensions must not be negative")
        self.width = width
        self.height = height
        self.has_alpha = has_alpha
        self.device_scale = device_scale
        self.data = bytearray(width * height * 4)

    @property
    def stride(self) -> int:
        """Number of bytes per row."""
        return self.width * 4

    def _offset(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} surface")
        return y * self.stride + x * 4

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Return the (blue, green, red, alpha) bytes of a pixel."""
        offset = self._offset(x, y)
        blue, green, red, alpha = self.data[offset:offset + 4]
        return blue, green, red, alpha

    def set_pixel(self, x: int, y: int, bgra) -> None:
        """Store (blue, green, red, alpha) bytes for a pixel."""
        values = bytes(bgra)
        if len(values) != 4:
            raise ValueError("a pixel has exactly four components")
        offset = self._offset(x, y)
        self.data[offset:offset + 4] = values

    def fill(self, color: RGBA) -> None:
        """Paint every pixel with ``color``."""
        alpha = _clamp(color.alpha) if self.has_alpha else 1.0
        pixel = bytes(
            round(255 * _clamp(channel) * alpha)
            for channel in (color.blue, color.green, color.red)
        ) + bytes([round(255 * alpha)])
        self.data[:] = pixel * (self.width * self.height)

    def create_similar(self, width: int, height: int) -> "Surface":
        """Return a blank surface of the given size with the same format and scale."""
        return Surface(
            width, height, has_alpha=self.has_alpha, device_scale=self.device_scale
        )