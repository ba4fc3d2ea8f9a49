"""
RGBA Colour Values
==================

Colours are four 8-bit channels (red, green, blue, alpha). They appear as
instruction operands (RGBA, RGB, BLNK), as the pen colour, and as canvas
pixels.

Hex Forms
---------
A colour operand may be a single packed hex token:

| Token        | Meaning                    |
|--------------|----------------------------|
| #RRGGBB      | opaque colour (alpha = FF) |
| #RRGGBBAA    | colour with alpha          |
| 0xRRGGBBAA   | same, C-style prefix       |
| RRGGBBAA     | same, no prefix            |

Colours format back as ``#RRGGBBAA`` (uppercase).

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
import string


_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class Color:
    """
    An RGBA colour with channels in [0, 255].

    Raises:
        ValueError: If a channel is outside 0-255
    """
    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self) -> None:
        for name in ("r", "g", "b", "a"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(
                    f"colour channel {name}={value} is outside 0-255"
                )

    def __str__(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}{self.a:02X}"

    @classmethod
    def transparent(cls) -> "Color":
        """Fully transparent black, the BLNK colour and default background."""
        return cls(0, 0, 0, 0)

    @classmethod
    def from_hex(cls, token: str) -> "Color":
        """
        Decode a packed hex colour token.

        Args:
            token: "#RRGGBB", "#RRGGBBAA", "0x..." or bare hex digits

        Returns:
            The decoded Color; alpha is 255 when only six digits are given

        Raises:
            ValueError: If the token is not six or eight hex digits
        """
        digits = token
        if digits.startswith("#"):
            digits = digits[1:]
        elif digits[:2].lower() == "0x":
            digits = digits[2:]

        if len(digits) not in (6, 8) or not set(digits) <= _HEX_DIGITS:
            raise ValueError(f"invalid hex colour '{token}'")

        channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
        return cls(*channels)

    @staticmethod
    def is_hex_token(token: str) -> bool:
        """Return True if the token looks like a packed hex colour."""
        try:
            Color.from_hex(token)
        except ValueError:
            return False
        return True

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    @property
    def is_transparent(self) -> bool:
        return self.a == 0

    @staticmethod
    def overlay(top: "Color", bottom: "Color") -> "Color":
        """
        Composite ``top`` over ``bottom`` (source-over).

        Args:
            top: Colour being drawn
            bottom: Colour already on the canvas

        Returns:
            The blended colour. An opaque top returns top unchanged.
        """
        if top.a == 0 and bottom.a == 0:
            return Color.transparent()

        top_alpha = top.a / 255
        bottom_alpha = bottom.a / 255 * (1 - top_alpha)
        out_alpha = top_alpha + bottom_alpha

        def blend(top_channel: int, bottom_channel: int) -> int:
            value = (top_channel * top_alpha + bottom_channel * bottom_alpha) / out_alpha
            return min(255, int(value + 0.5))

        return Color(
            blend(top.r, bottom.r),
            blend(top.g, bottom.g),
            blend(top.b, bottom.b),
            min(255, int(out_alpha * 255 + 0.5)),
        )
