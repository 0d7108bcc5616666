"""Chroma-key background removal and transparency inspection."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import asdict, dataclass
from pathlib import Path

import numpy as np
from PIL import Image

from ..errors import ErrorCode, ImageOperationError
from .colors import RGB, color_label, parse_color
from .io import load_image, save_image

DEFAULT_COLOR = "white"
DEFAULT_TOLERANCE = 10

RECOMMEND_REMOVE = (
    "Image has no alpha channel. Use 'nanobanana transparent make' with --color {color} "
    "to remove the background and add transparency."
)
RECOMMEND_CHECK = (
    "Image has alpha channel but very few transparent pixels (<1%). "
    "Background removal may not have worked."
)
RECOMMEND_DONE = "Image already has transparency."


@dataclass
class TransparencyOptions:
    color: str = DEFAULT_COLOR
    tolerance: float = DEFAULT_TOLERANCE


@dataclass
class TransparencyResult:
    width: int
    height: int
    format: str = "png"


@dataclass
class InspectionResult:
    has_alpha_channel: bool
    transparent_pixel_percent: float
    format: str
    width: int
    height: int
    dominant_background_color: str
    recommendation: str

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


def tolerance_threshold(tolerance: float) -> float:
    if not math.isfinite(tolerance) or tolerance < 0 or tolerance > 100:
        raise ImageOperationError(ErrorCode.INVALID_TOLERANCE, "Tolerance must be between 0 and 100")
    return tolerance / 100.0 * 255.0


def color_distance(pixels: np.ndarray, target: RGB) -> np.ndarray:
    """Mean of squared channel differences over R, G, B (no square root)."""
    diff = pixels[..., :3].astype(np.float64) - np.asarray(target, dtype=np.float64)
    return (diff * diff).sum(axis=-1) / 3.0


def make_transparent(
    image: Image.Image,
    color: str = DEFAULT_COLOR,
    tolerance: float = DEFAULT_TOLERANCE,
) -> Image.Image:
    target = parse_color(color)
    threshold = tolerance_threshold(tolerance)
    pixels = np.array(image.convert("RGBA"), dtype=np.uint8)
    matched = color_distance(pixels, target) <= threshold
    pixels[..., 3][matched] = 0
    return Image.fromarray(pixels)


def make_transparent_file(
    input_path: str | Path,
    output_path: str | Path,
    options: TransparencyOptions | None = None,
) -> TransparencyResult:
    opts = options or TransparencyOptions()
    parse_color(opts.color)
    tolerance_threshold(opts.tolerance)
    source = load_image(input_path)
    result = make_transparent(source, opts.color, opts.tolerance)
    save_image(result, output_path, fmt="PNG")
    return TransparencyResult(width=result.width, height=result.height)


def inspect_transparency(image: Image.Image) -> InspectionResult:
    pixels = np.asarray(image.convert("RGBA"), dtype=np.uint8)
    height, width = pixels.shape[:2]
    alpha = pixels[..., 3]

    has_alpha = bool((alpha < 255).any())
    transparent_percent = float((alpha < 128).sum()) / float(width * height) * 100.0

    border = np.zeros((height, width), dtype=bool)
    border[0, :] = True
    border[-1, :] = True
    border[:, 0] = True
    border[:, -1] = True
    counts = Counter(tuple(int(c) for c in rgb) for rgb in pixels[border][:, :3])
    dominant = color_label(counts.most_common(1)[0][0])

    if not has_alpha:
        recommendation = RECOMMEND_REMOVE.format(color=dominant)
    elif transparent_percent < 1:
        recommendation = RECOMMEND_CHECK
    else:
        recommendation = RECOMMEND_DONE

    return InspectionResult(
        has_alpha_channel=has_alpha,
        transparent_pixel_percent=transparent_percent,
        format=(image.format or "").lower(),
        width=width,
        height=height,
        dominant_background_color=dominant,
        recommendation=recommendation,
    )


def inspect_file(input_path: str | Path) -> InspectionResult:
    return inspect_transparency(load_image(input_path))


def default_output_path(input_path: str | Path, overwrite: bool = False) -> Path:
    source = Path(input_path)
    if overwrite:
        return source
    if source.suffix.lower() == ".png":
        return source.with_name(f"{source.stem}_transparent.png")
    return source.with_name(f"{source.name}_transparent.png")
