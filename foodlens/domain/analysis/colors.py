"""
Hex colour tokens.

The model tags every macro and vitamin with a hex-like colour token
("FF6347", "#FFF", "80FF0000"). Renderers need the RGBA components.
"""

from __future__ import annotations

import re
from typing import NamedTuple

_NON_ALNUM_RE = re.compile(r"[^0-9A-Za-z]")


class Rgba(NamedTuple):
    """Colour components, each 0-255."""

    red: int
    green: int
    blue: int
    alpha: int = 255

    def to_hex(self) -> str:
        """Uppercase RRGGBB form (alpha dropped when opaque)."""
        rgb = f"{self.red:02X}{self.green:02X}{self.blue:02X}"
        return rgb if self.alpha == 255 else f"{self.alpha:02X}{rgb}"


BLACK = Rgba(0, 0, 0, 255)


def parse_hex_color(token: str) -> Rgba:
    """
    Parse a hex colour token.

    Non-alphanumeric characters ("#", spaces) are stripped first. Accepted
    lengths: 3 (RGB, each nibble × 17), 6 (RRGGBB) and 8 (AARRGGBB).
    Anything else falls back to opaque black.

    Example:
        >>> parse_hex_color("#FFF")
        Rgba(red=255, green=255, blue=255, alpha=255)
        >>> parse_hex_color("80FF0000").alpha
        128
    """
    digits = _NON_ALNUM_RE.sub("", token)
    try:
        value = int(digits, 16)
    except ValueError:
        return BLACK

    if len(digits) == 3:
        return Rgba(
            (value >> 8) * 17,
            (value >> 4 & 0xF) * 17,
            (value & 0xF) * 17,
        )
    if len(digits) == 6:
        return Rgba(value >> 16, value >> 8 & 0xFF, value & 0xFF)
    if len(digits) == 8:
        return Rgba(value >> 16 & 0xFF, value >> 8 & 0xFF, value & 0xFF, value >> 24)
    return BLACK
