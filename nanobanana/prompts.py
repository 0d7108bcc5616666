"""Prompt builders for the icon and pattern workflows."""

from __future__ import annotations

ICON_STYLES = {
    "modern": "modern, clean, contemporary design",
    "flat": "flat design, no gradients, solid colors, simple shapes",
    "minimal": "minimalist, simple, clean lines, limited colors",
    "detailed": "detailed, polished, professional, refined",
}
DEFAULT_ICON_STYLE = "modern"
DEFAULT_ICON_SIZES = (64, 128, 256, 512)
ICON_SIZE_RANGE = (16, 2048)

PATTERN_TYPES = {
    "seamless": "a seamless, tileable pattern that can repeat infinitely without visible seams or edges",
    "texture": "a realistic surface texture, detailed material appearance",
    "wallpaper": "a decorative wallpaper pattern, suitable for backgrounds",
}
PATTERN_STYLES = {
    "geometric": " using geometric shapes, clean lines, and mathematical precision",
    "organic": " with organic, natural, flowing forms",
    "abstract": " in an abstract, artistic, non-representational style",
    "floral": " featuring flowers, leaves, and botanical elements",
    "tech": " with a digital, technological, circuit-like aesthetic",
}
DEFAULT_PATTERN_TYPE = "seamless"
PATTERN_SIZE_RANGE = (64, 2048)


def _background_phrase(background: str | None) -> str:
    value = str(background or "").strip()
    if value.lower() in {"", "transparent"}:
        return "on a transparent background"
    if value.lower() == "white":
        return "on a clean white background"
    if value.lower() == "black":
        return "on a black background"
    return f"on a {value} colored background"


def build_icon_prompt(subject: str, style: str = DEFAULT_ICON_STYLE, background: str | None = "transparent") -> str:
    style_desc = ICON_STYLES.get(style, "modern, clean design")
    return (
        f"Create an icon of {subject}. Style: {style_desc}. "
        f"The icon should be {_background_phrase(background)}. "
        "Square format, centered, suitable for app icon or UI element."
    )


def build_pattern_prompt(subject: str, pattern_type: str = DEFAULT_PATTERN_TYPE, style: str | None = None) -> str:
    type_desc = PATTERN_TYPES.get(pattern_type, "a seamless, tileable pattern")
    style_desc = PATTERN_STYLES.get(style or "", "")
    return (
        f"Create {type_desc} of {subject}{style_desc}. "
        "The pattern should tile seamlessly. High quality, detailed."
    )
