"""
Pen State
=========

The virtual drawing cursor: a real-valued position, a heading in degrees,
and the current colour.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, field
import math

from penplot.color import Color
from penplot.machine.canvas import round_half_away


@dataclass
class Pen:
    """
    Pen position, heading and colour.

    Heading 0 points along +x; positive angles turn towards +y.

    Attributes:
        x: Horizontal position
        y: Vertical position
        heading: Direction in degrees
        color: Colour used by BLOT and traced moves
    """
    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0
    color: Color = field(default_factory=lambda: Color(0, 0, 0, 255))

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def is_finite(self) -> bool:
        """False once the position has overflowed to infinity or become NaN."""
        return math.isfinite(self.x) and math.isfinite(self.y)

    def pixel(self) -> tuple[int, int]:
        """
        Integer pixel nearest to the pen.

        Raises:
            ValueError: If the position is not finite
        """
        return (round_half_away(self.x), round_half_away(self.y))

    def move_to(self, x: float, y: float) -> None:
        self.x = x
        self.y = y

    def move_by(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def walk(self, distance: float) -> None:
        """Move ``distance`` pixels along the current heading."""
        radians = math.radians(self.heading)
        if not math.isfinite(radians):
            # An infinite heading has no direction, as in IEEE arithmetic
            self.x = self.y = math.nan
            return
        self.x += distance * math.cos(radians)
        self.y += distance * math.sin(radians)

    def face(self, angle: float) -> None:
        self.heading = angle

    def turn(self, angle: float) -> None:
        self.heading += angle

    def set_color(self, color: Color) -> None:
        self.color = color
