"""
Machine Configuration
=====================

Settings fixed for the duration of a run: canvas size, where the pen
starts, its initial colour, and how drawing blends into the canvas.

Configuration can come from:
- Default values (defined here)
- Environment variables (``MachineConfig.from_env()``)
- Command-line options (the CLI builds a config with ``dataclasses.replace``)

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, field, replace
from enum import Enum
import logging
import os

from penplot.color import Color

logger = logging.getLogger(__name__)


class BlendMode(Enum):
    """
    How a drawn colour combines with the pixel already on the canvas.

    REPLACE writes the pen colour as-is. OVER composites it on top of the
    existing pixel (source-over alpha blending).
    """
    REPLACE = "replace"
    OVER = "over"


_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class MachineConfig:
    """
    Configuration for a penplot machine.

    Attributes:
        width: Canvas width in pixels
        height: Canvas height in pixels
        origin: Initial pen position (x, y)
        heading: Initial heading in degrees
        pen_color: Initial pen colour (default opaque black)
        background: Colour every pixel starts as (default transparent black)
        trace_moves: If True, MOVE/SHFT/WALK draw a line with the pen colour
                     unless the pen is fully transparent
        blend: How drawn pixels combine with the canvas

    Raises:
        ValueError: If width or height is not positive

    Example:
        >>> config = MachineConfig(width=10, height=10)
        >>> config = MachineConfig(trace_moves=True, blend=BlendMode.OVER)
    """
    width: int = 512
    height: int = 512
    origin: tuple[float, float] = (0.0, 0.0)
    heading: float = 0.0
    pen_color: Color = field(default_factory=lambda: Color(0, 0, 0, 255))
    background: Color = field(default_factory=Color.transparent)
    trace_moves: bool = False
    blend: BlendMode = BlendMode.REPLACE

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"canvas size must be positive, got {self.width}x{self.height}"
            )

    @classmethod
    def from_env(cls, base: "MachineConfig | None" = None) -> "MachineConfig":
        """
        Create a MachineConfig from environment variables.

        Environment variables (all optional):
            PENPLOT_WIDTH: Canvas width (integer)
            PENPLOT_HEIGHT: Canvas height (integer)
            PENPLOT_TRACE: Draw lines on pen moves (1/0, true/false, on/off)
            PENPLOT_BLEND: "replace" or "over"

        Invalid values are logged and ignored.

        Args:
            base: Config to start from (default: MachineConfig())
        """
        config = base or cls()
        changes: dict = {}

        for name, var in (("width", "PENPLOT_WIDTH"), ("height", "PENPLOT_HEIGHT")):
            if value := os.environ.get(var):
                try:
                    size = int(value)
                except ValueError:
                    logger.warning(f"Ignoring {var}={value!r}: not an integer")
                    continue
                if size <= 0:
                    logger.warning(f"Ignoring {var}={value!r}: must be positive")
                    continue
                changes[name] = size

        if value := os.environ.get("PENPLOT_TRACE"):
            if value.lower() in _TRUE_VALUES:
                changes["trace_moves"] = True
            elif value.lower() in _FALSE_VALUES:
                changes["trace_moves"] = False
            else:
                logger.warning(f"Ignoring PENPLOT_TRACE={value!r}: not a boolean")

        if value := os.environ.get("PENPLOT_BLEND"):
            try:
                changes["blend"] = BlendMode(value.lower())
            except ValueError:
                logger.warning(f"Ignoring PENPLOT_BLEND={value!r}: use 'replace' or 'over'")

        return replace(config, **changes) if changes else config
