"""
Raster Canvas
=============

A fixed-size grid of RGBA pixels that the machine draws into, plus export
to Pillow images and PNG bytes once a run has finished.

Coordinates
-----------
Pixel (0, 0) is the top-left corner; x grows to the right and y grows
downward, the same as image rows. Real-valued pen positions map to the
nearest pixel, rounding halves away from zero (2.5 -> 3, -2.5 -> -3).
Writes outside the canvas, including infinite or NaN positions, are
silently dropped.

Example
-------
>>> from penplot.color import Color
>>> canvas = Canvas(10, 10)
>>> canvas.blot(5, 5, Color(255, 0, 0))
>>> canvas.get_pixel(5, 5)
Color(r=255, g=0, b=0, a=255)

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from pathlib import Path
import io
import math

from PIL import Image

from penplot.color import Color
from penplot.machine.config import BlendMode


def round_half_away(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Raises:
        ValueError: If value is infinite or NaN
    """
    if not math.isfinite(value):
        raise ValueError(f"cannot round {value} to a pixel")
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _line_offset(delta: int, step: int, steps: int) -> int:
    """Offset along one axis after ``step`` of ``steps``, rounded half away from the start."""
    magnitude = (2 * step * abs(delta) + steps) // (2 * steps)
    return magnitude if delta >= 0 else -magnitude


def _visible_steps(start: int, delta: int, size: int, steps: int) -> tuple[int, int]:
    """
    Range of steps whose long-axis coordinate ``start + step * sign(delta)``
    falls in ``[0, size)``, clamped to ``[0, steps]``. Empty when first > last.
    """
    if delta > 0:
        first, last = -start, size - 1 - start
    else:
        first, last = start - (size - 1), start
    return max(0, first), min(steps, last)


class Canvas:
    """
    RGBA pixel buffer.

    Attributes:
        width: Width in pixels
        height: Height in pixels
        background: Colour the canvas was cleared to
        blend: How drawn colours combine with existing pixels
    """

    def __init__(self, width: int, height: int,
                 background: Color | None = None,
                 blend: BlendMode = BlendMode.REPLACE):
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.background = background or Color.transparent()
        self.blend = blend
        self._buffer: list[Color] = [self.background] * (width * height)

    def __repr__(self) -> str:
        return f"Canvas({self.width}x{self.height})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Canvas):
            return NotImplemented
        return (self.width, self.height) == (other.width, other.height) and \
            self._buffer == other._buffer

    def clear(self) -> None:
        """Reset every pixel to the background colour."""
        self._buffer = [self.background] * (self.width * self.height)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    # =========================================================================
    # Drawing
    # =========================================================================

    def draw_pixel(self, x: int, y: int, color: Color) -> None:
        """Paint one integer pixel; out-of-bounds writes are ignored."""
        if not self.in_bounds(x, y):
            return
        index = x + y * self.width
        if self.blend is BlendMode.OVER:
            self._buffer[index] = Color.overlay(color, self._buffer[index])
        else:
            self._buffer[index] = color

    def blot(self, x: float, y: float, color: Color) -> None:
        """
        Paint the pixel nearest to a real-valued position.

        Infinite and NaN positions are off the canvas and paint nothing.
        """
        if not (math.isfinite(x) and math.isfinite(y)):
            return
        self.draw_pixel(round_half_away(x), round_half_away(y), color)

    def plot_line(self, x0: int, y0: int, x1: int, y1: int, color: Color) -> None:
        """
        Draw a straight line between two integer pixels, inclusive.

        Paints the same pixels as Bresenham's algorithm: one pixel per step
        along the longer axis, with the other coordinate rounded to the
        nearest pixel (halves away from the start). Each pixel is painted
        exactly once, which matters for OVER blending.

        Only the steps whose long-axis coordinate lies on the canvas are
        visited, so the cost is bounded by the canvas size however far
        off-canvas the endpoints are.
        """
        dx = x1 - x0
        dy = y1 - y0
        steps = max(abs(dx), abs(dy))
        if steps == 0:
            self.draw_pixel(x0, y0, color)
            return

        if abs(dx) >= abs(dy):
            first, last = _visible_steps(x0, dx, self.width, steps)
        else:
            first, last = _visible_steps(y0, dy, self.height, steps)

        for i in range(first, last + 1):
            self.draw_pixel(x0 + _line_offset(dx, i, steps),
                            y0 + _line_offset(dy, i, steps), color)

    # =========================================================================
    # Framebuffer Access
    # =========================================================================

    def get_pixel(self, x: int, y: int) -> Color:
        """
        Read one pixel.

        Raises:
            IndexError: If (x, y) is outside the canvas
        """
        if not self.in_bounds(x, y):
            raise IndexError(f"pixel ({x}, {y}) is outside {self.width}x{self.height}")
        return self._buffer[x + y * self.width]

    def pixels(self) -> tuple[tuple[Color, ...], ...]:
        """Return the framebuffer as a tuple of rows (read-only snapshot)."""
        w = self.width
        return tuple(
            tuple(self._buffer[row * w:(row + 1) * w]) for row in range(self.height)
        )

    def painted(self) -> dict[tuple[int, int], Color]:
        """Return every pixel that differs from the background, keyed by (x, y)."""
        return {
            (index % self.width, index // self.width): color
            for index, color in enumerate(self._buffer)
            if color != self.background
        }

    def to_bytes(self) -> bytes:
        """Return the framebuffer as RGBA bytes, row-major."""
        data = bytearray(self.width * self.height * 4)
        for index, color in enumerate(self._buffer):
            data[index * 4:index * 4 + 4] = bytes(color.as_tuple())
        return bytes(data)

    # =========================================================================
    # Image Export
    # =========================================================================

    def to_image(self, scale: int = 1) -> Image.Image:
        """
        Convert to a Pillow RGBA image.

        Args:
            scale: Integer upscaling factor (nearest neighbour)
        """
        if scale < 1:
            raise ValueError(f"scale must be at least 1, got {scale}")
        img = Image.frombytes("RGBA", (self.width, self.height), self.to_bytes())
        if scale > 1:
            img = img.resize((self.width * scale, self.height * scale), Image.Resampling.NEAREST)
        return img

    def render_png(self, scale: int = 1) -> bytes:
        """Encode the canvas as PNG bytes."""
        buffer = io.BytesIO()
        self.to_image(scale).save(buffer, format="PNG")
        return buffer.getvalue()

    def save(self, filepath: str | Path, scale: int = 1) -> None:
        """
        Write the canvas to an image file.

        The format follows the file extension (PNG for ".png").
        """
        self.to_image(scale).save(Path(filepath))
