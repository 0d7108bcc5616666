"""Color parsing shared by the composition and chroma-key engines."""

from __future__ import annotations

import re

from ..errors import ErrorCode, ImageOperationError

RGB = tuple[int, int, int]
RGBA = tuple[int, int, int, int]

TRANSPARENT: RGBA = (0, 0, 0, 0)

_NAMED_COLORS: dict[str, RGB] = {
    "white": (255, 255, 255),
    "black": (0, 0, 0),
}
_HEX_RE = re.compile(r"^[0-9a-fA-F]{6}$")


def parse_color(value: str) -> RGB:
    """Resolve ``white``, ``black`` or ``#RRGGBB`` (the ``#`` is optional)."""
    raw = str(value or "").strip()
    named = _NAMED_COLORS.get(raw.lower())
    if named is not None:
        return named
    digits = raw[1:] if raw.startswith("#") else raw
    if not _HEX_RE.match(digits):
        raise ImageOperationError(
            ErrorCode.INVALID_COLOR,
            f"Invalid color: {value!r} (expected white, black or #RRGGBB)",
        )
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def parse_background(value: str | None) -> RGBA:
    """Canvas fill for ``value``; anything unparseable is transparent."""
    raw = str(value or "").strip()
    if not raw or raw.lower() == "transparent":
        return TRANSPARENT
    try:
        r, g, b = parse_color(raw)
    except ImageOperationError:
        return TRANSPARENT
    return r, g, b, 255


def color_label(rgb: RGB) -> str:
    for name, named in _NAMED_COLORS.items():
        if tuple(rgb) == named:
            return name
    return "#{:02X}{:02X}{:02X}".format(*rgb)
