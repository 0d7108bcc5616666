"""Shared helpers for the Gemini image models."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Tuple

MODEL_FLASH = "gemini-2.5-flash-image-preview"
MODEL_PRO = "gemini-3-pro-image-preview"
MODEL_DRYRUN = "dryrun"

MODEL_ALIASES = {
    "": MODEL_FLASH,
    "flash": MODEL_FLASH,
    "pro": MODEL_PRO,
}

ASPECT_RATIOS = ("1:1", "3:2", "2:3", "3:4", "4:3", "4:5", "5:4", "9:16", "16:9", "21:9")
RESOLUTIONS = ("1K", "2K", "4K")
PRO_ONLY_RESOLUTIONS = frozenset({"4K"})

_DIM_RE = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")

_ESTIMATED_DIMENSIONS = {
    "1:1": (1024, 1024),
    "16:9": (1024, 576),
    "9:16": (576, 1024),
    "4:3": (1024, 768),
    "3:4": (768, 1024),
    "3:2": (1024, 683),
    "2:3": (683, 1024),
    "4:5": (819, 1024),
    "5:4": (1024, 819),
    "21:9": (1024, 439),
}

_MIME_BY_SUFFIX = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def resolve_model_name(name: str | None) -> str:
    key = str(name or "").strip()
    return MODEL_ALIASES.get(key.lower(), key)


def is_pro_model(model: str | None) -> bool:
    return "pro" in str(model or "").lower()


def is_valid_aspect_ratio(ratio: str | None) -> bool:
    return ratio in ASPECT_RATIOS


def normalize_resolution(value: str | None) -> Optional[str]:
    if not value:
        return None
    normalized = value.strip().upper()
    if normalized in RESOLUTIONS:
        return normalized
    return None


def parse_dims(value: str | None) -> Optional[Tuple[int, int]]:
    if not value:
        return None
    match = _DIM_RE.match(value)
    if not match:
        return None
    w = int(match.group(1))
    h = int(match.group(2))
    if w <= 0 or h <= 0:
        return None
    return w, h


def ratio_for_dims(width: int, height: int) -> str:
    """Coarse aspect ratio bucket for a requested tile size."""
    if width == height:
        return "1:1"
    ratio = width / height
    if ratio > 1.5:
        return "16:9"
    if ratio < 0.67:
        return "9:16"
    if ratio > 1.2:
        return "4:3"
    if ratio < 0.83:
        return "3:4"
    return "1:1"


def estimate_dimensions(ratio: str | None) -> Tuple[int, int]:
    return _ESTIMATED_DIMENSIONS.get(ratio or "1:1", (1024, 1024))


def mime_type_for_path(path: str | Path) -> str:
    return _MIME_BY_SUFFIX.get(Path(path).suffix.lower(), "image/png")


def format_from_mime(mime_type: str | None) -> str:
    lowered = str(mime_type or "").strip().lower()
    if lowered.startswith("image/"):
        lowered = lowered.split("/", 1)[1]
    return lowered or "png"
