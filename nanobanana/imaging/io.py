"""Raster loading and saving."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..errors import ErrorCode, ImageOperationError

_ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}
_NO_ALPHA_FORMATS = {"JPEG", "BMP"}


def load_image(path: str | Path) -> Image.Image:
    source = Path(path)
    if not source.is_file():
        raise ImageOperationError(ErrorCode.FILE_NOT_FOUND, f"Input file not found: {source}")
    try:
        with Image.open(source) as image:
            image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageOperationError(
            ErrorCode.IMAGE_DECODE_FAILED,
            f"Failed to open image {source}: {exc}",
        ) from exc
    return image


def has_alpha_band(image: Image.Image) -> bool:
    if image.mode in _ALPHA_MODES:
        return True
    return image.mode == "P" and "transparency" in image.info


def resolve_save_format(path: str | Path) -> str:
    suffix = Path(path).suffix.lower()
    fmt = Image.registered_extensions().get(suffix)
    if not fmt:
        raise ImageOperationError(
            ErrorCode.SAVE_FAILED,
            f"Unsupported output format: {suffix or '(no extension)'}",
            hint="Use an extension such as .png, .jpg or .webp",
        )
    return fmt


def save_image(image: Image.Image, path: str | Path, fmt: str | None = None) -> str:
    """Write ``image`` to ``path`` and return the encoder name used.

    The data goes to a temporary sibling first and is renamed into place, so a
    failed save leaves nothing behind at ``path``.
    """
    target = Path(path)
    encoder = fmt or resolve_save_format(target)
    if encoder in _NO_ALPHA_FORMATS and image.mode not in {"RGB", "L"}:
        image = image.convert("RGB")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    except OSError as exc:
        raise ImageOperationError(
            ErrorCode.SAVE_FAILED,
            f"Failed to prepare output {target}: {exc}",
        ) from exc

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            image.save(handle, format=encoder)
        os.replace(tmp_path, target)
    except (OSError, ValueError, KeyError) as exc:
        tmp_path.unlink(missing_ok=True)
        raise ImageOperationError(ErrorCode.SAVE_FAILED, f"Failed to save image {target}: {exc}") from exc
    return encoder
