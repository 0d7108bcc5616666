"""Multi-image composition: horizontal strips, vertical stacks and grids."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from PIL import Image

from ..errors import ErrorCode, ImageOperationError
from .colors import parse_background
from .io import load_image, save_image

DIRECTIONS = ("horizontal", "vertical", "grid")
ALIGNMENTS = ("start", "center", "end")
_DIRECTION_ALIASES = {"row": "horizontal", "column": "vertical"}


@dataclass
class CombineOptions:
    direction: str = "horizontal"
    gap: int = 0
    columns: int = 0
    align: str = "center"
    background: str = "transparent"

    def as_dict(self) -> dict[str, object]:
        return {
            "direction": self.direction,
            "gap": self.gap,
            "columns": self.columns,
            "align": self.align,
            "background": self.background,
        }


@dataclass
class CombineResult:
    width: int
    height: int
    format: str = "png"


def normalize_direction(value: str | None) -> str:
    direction = str(value or "horizontal").strip().lower()
    direction = _DIRECTION_ALIASES.get(direction, direction)
    if direction not in DIRECTIONS:
        raise ImageOperationError(
            ErrorCode.INVALID_DIRECTION,
            f"Invalid direction: {value}",
            hint="Use: horizontal, vertical, or grid",
        )
    return direction


def align_offset(container: int, item: int, align: str | None) -> int:
    mode = str(align or "").strip().lower()
    if mode == "start":
        return 0
    if mode == "end":
        return container - item
    return (container - item) // 2


def grid_columns(count: int, columns: int = 0) -> int:
    if columns > 0:
        return columns
    return max(1, int(count * 0.5 + 0.5))


def combine_images(images: Sequence[Image.Image], options: CombineOptions | None = None) -> Image.Image:
    opts = options or CombineOptions()
    if len(images) < 2:
        raise ImageOperationError(
            ErrorCode.NOT_ENOUGH_IMAGES,
            "At least 2 images are required",
            hint="Provide multiple image paths or use glob patterns like *.png",
        )
    direction = normalize_direction(opts.direction)
    if opts.gap < 0:
        raise ImageOperationError(ErrorCode.INVALID_GAP, "Gap cannot be negative")

    layers = [image if image.mode == "RGBA" else image.convert("RGBA") for image in images]
    if direction == "horizontal":
        return _combine_horizontal(layers, opts)
    if direction == "vertical":
        return _combine_vertical(layers, opts)
    return _combine_grid(layers, opts)


def combine_files(
    input_paths: Sequence[str | Path],
    output_path: str | Path,
    options: CombineOptions | None = None,
) -> CombineResult:
    opts = options or CombineOptions()
    if len(input_paths) < 2:
        raise ImageOperationError(ErrorCode.NOT_ENOUGH_IMAGES, "At least 2 images are required")
    normalize_direction(opts.direction)
    images = [load_image(path) for path in input_paths]
    canvas = combine_images(images, opts)
    save_image(canvas, output_path, fmt="PNG")
    return CombineResult(width=canvas.width, height=canvas.height)


def _new_canvas(width: int, height: int, background: str) -> Image.Image:
    return Image.new("RGBA", (width, height), parse_background(background))


def _combine_horizontal(images: Sequence[Image.Image], opts: CombineOptions) -> Image.Image:
    total_width = sum(image.width for image in images) + opts.gap * (len(images) - 1)
    max_height = max(image.height for image in images)
    canvas = _new_canvas(total_width, max_height, opts.background)
    x = 0
    for image in images:
        y = align_offset(max_height, image.height, opts.align)
        canvas.alpha_composite(image, dest=(x, y))
        x += image.width + opts.gap
    return canvas


def _combine_vertical(images: Sequence[Image.Image], opts: CombineOptions) -> Image.Image:
    max_width = max(image.width for image in images)
    total_height = sum(image.height for image in images) + opts.gap * (len(images) - 1)
    canvas = _new_canvas(max_width, total_height, opts.background)
    y = 0
    for image in images:
        x = align_offset(max_width, image.width, opts.align)
        canvas.alpha_composite(image, dest=(x, y))
        y += image.height + opts.gap
    return canvas


def _combine_grid(images: Sequence[Image.Image], opts: CombineOptions) -> Image.Image:
    cols = grid_columns(len(images), opts.columns)
    rows = (len(images) + cols - 1) // cols
    cell_width = max(image.width for image in images)
    cell_height = max(image.height for image in images)
    canvas = _new_canvas(
        cols * cell_width + (cols - 1) * opts.gap,
        rows * cell_height + (rows - 1) * opts.gap,
        opts.background,
    )
    for idx, image in enumerate(images):
        row, col = divmod(idx, cols)
        x = col * (cell_width + opts.gap) + (cell_width - image.width) // 2
        y = row * (cell_height + opts.gap) + (cell_height - image.height) // 2
        canvas.alpha_composite(image, dest=(x, y))
    return canvas
