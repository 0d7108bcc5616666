"""Single-image transform pipeline: crop, resize, rotate, flip, flop."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps

from ..errors import ErrorCode, ImageOperationError
from .io import has_alpha_band, load_image, save_image

FIT_MODES = ("cover", "contain", "fill", "inside", "outside")
DEFAULT_FIT = "inside"
ROTATION_LIMIT = 360.0

_RESAMPLE = Image.Resampling.LANCZOS


@dataclass
class TransformOptions:
    resize: str | None = None
    fit: str = DEFAULT_FIT
    crop: str | None = None
    rotate: float = 0
    flip: bool = False
    flop: bool = False

    def has_operation(self) -> bool:
        return bool(self.resize or self.crop or self.rotate or self.flip or self.flop)

    def as_dict(self) -> dict[str, object]:
        return {
            "resize": self.resize or "",
            "fit": self.fit,
            "crop": self.crop or "",
            "rotate": self.rotate,
            "flip": self.flip,
            "flop": self.flop,
        }


@dataclass
class TransformResult:
    width: int
    height: int
    format: str


def parse_crop(spec: str) -> tuple[int, int, int, int]:
    parts = [part.strip() for part in str(spec).split(",")]
    if len(parts) != 4:
        raise ImageOperationError(
            ErrorCode.INVALID_CROP,
            f"Invalid crop: {spec!r} (expected left,top,width,height)",
        )
    values: list[int] = []
    for name, raw in zip(("left", "top", "width", "height"), parts):
        try:
            values.append(int(raw))
        except ValueError as exc:
            raise ImageOperationError(ErrorCode.INVALID_CROP, f"Invalid crop {name} value: {raw!r}") from exc
    left, top, width, height = values
    if left < 0 or top < 0:
        raise ImageOperationError(ErrorCode.INVALID_CROP, "Crop left and top must be non-negative")
    if width <= 0 or height <= 0:
        raise ImageOperationError(ErrorCode.INVALID_CROP, "Crop width and height must be positive")
    return left, top, width, height


def parse_resize(spec: str, source_size: tuple[int, int]) -> tuple[int, int]:
    """Target box for ``WIDTHxHEIGHT`` or ``P%`` relative to ``source_size``."""
    raw = str(spec).strip()
    if raw.endswith("%"):
        try:
            pct = float(raw[:-1].strip())
        except ValueError as exc:
            raise ImageOperationError(ErrorCode.INVALID_RESIZE, f"Invalid percentage: {raw!r}") from exc
        if not math.isfinite(pct):
            raise ImageOperationError(ErrorCode.INVALID_RESIZE, f"Invalid percentage: {raw!r}")
        width = int(source_size[0] * pct / 100)
        height = int(source_size[1] * pct / 100)
    else:
        parts = raw.lower().split("x")
        if len(parts) != 2:
            raise ImageOperationError(
                ErrorCode.INVALID_RESIZE,
                f"Invalid size: {raw!r} (expected WxH or percentage)",
            )
        try:
            width = int(parts[0].strip())
            height = int(parts[1].strip())
        except ValueError as exc:
            raise ImageOperationError(ErrorCode.INVALID_RESIZE, f"Invalid size: {raw!r}") from exc
    if width <= 0 or height <= 0:
        raise ImageOperationError(
            ErrorCode.INVALID_RESIZE,
            f"Resize target must be positive, got {width}x{height}",
        )
    return width, height


def apply_crop(image: Image.Image, spec: str) -> Image.Image:
    left, top, width, height = parse_crop(spec)
    if left + width > image.width or top + height > image.height:
        raise ImageOperationError(
            ErrorCode.INVALID_CROP,
            f"Crop region {left},{top},{width},{height} exceeds image bounds {image.width}x{image.height}",
        )
    return image.crop((left, top, left + width, top + height))


def apply_resize(image: Image.Image, spec: str, fit: str | None) -> Image.Image:
    mode = (fit or DEFAULT_FIT).strip().lower()
    if mode not in FIT_MODES:
        raise ImageOperationError(
            ErrorCode.INVALID_FIT,
            f"Invalid fit mode: {fit} (use: {', '.join(FIT_MODES)})",
        )
    width, height = parse_resize(spec, image.size)
    src_w, src_h = image.size

    if mode == "fill":
        return image.resize((width, height), _RESAMPLE)
    if mode == "cover":
        return ImageOps.fit(image, (width, height), method=_RESAMPLE, centering=(0.5, 0.5))
    if mode == "outside":
        if src_w / src_h > width / height:
            return image.resize((_scaled(src_w, height, src_h), height), _RESAMPLE)
        return image.resize((width, _scaled(src_h, width, src_w)), _RESAMPLE)

    if mode == "inside" and src_w <= width and src_h <= height:
        return image.copy()
    if src_w / src_h > width / height:
        return image.resize((width, _scaled(src_h, width, src_w)), _RESAMPLE)
    return image.resize((_scaled(src_w, height, src_h), height), _RESAMPLE)


def apply_rotate(image: Image.Image, degrees: float) -> Image.Image:
    _check_rotation(degrees)
    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    return rgba.rotate(degrees, resample=Image.Resampling.BICUBIC, expand=True, fillcolor=(0, 0, 0, 0))


def validate_options(options: TransformOptions) -> None:
    if not options.has_operation():
        raise ImageOperationError(
            ErrorCode.NO_OPERATION,
            "No transformation specified",
            hint="Use --resize, --crop, --rotate, --flip, or --flop",
        )
    _check_rotation(options.rotate)


def transform_image(image: Image.Image, options: TransformOptions) -> Image.Image:
    validate_options(options)

    result = image
    if options.crop:
        result = apply_crop(result, options.crop)
    if options.resize:
        result = apply_resize(result, options.resize, options.fit)
    if options.rotate:
        result = apply_rotate(result, options.rotate)
    if options.flip:
        result = ImageOps.flip(result)
    if options.flop:
        result = ImageOps.mirror(result)
    if result is image:
        result = image.copy()
    return result


def transform_file(
    input_path: str | Path,
    output_path: str | Path,
    options: TransformOptions,
) -> TransformResult:
    validate_options(options)
    source = load_image(input_path)
    if source.mode not in {"RGB", "RGBA"}:
        source = source.convert("RGBA" if has_alpha_band(source) or source.mode == "P" else "RGB")
    result = transform_image(source, options)
    save_image(result, output_path)
    return TransformResult(
        width=result.width,
        height=result.height,
        format=Path(output_path).suffix.lstrip(".").lower(),
    )


def _check_rotation(degrees: float) -> None:
    if not math.isfinite(degrees) or degrees < -ROTATION_LIMIT or degrees > ROTATION_LIMIT:
        raise ImageOperationError(
            ErrorCode.INVALID_ROTATION,
            "Rotation must be between -360 and 360 degrees",
        )


def _scaled(length: int, target: int, reference: int) -> int:
    return max(1, int(length * target / reference + 0.5))
