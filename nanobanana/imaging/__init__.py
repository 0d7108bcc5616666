"""Local raster operations: transform, combine, chroma-key, inspection."""

from __future__ import annotations

from .combine import CombineOptions, CombineResult, combine_files, combine_images
from .transform import TransformOptions, TransformResult, transform_file, transform_image
from .transparency import (
    InspectionResult,
    TransparencyOptions,
    TransparencyResult,
    inspect_file,
    inspect_transparency,
    make_transparent,
    make_transparent_file,
)

__all__ = [
    "CombineOptions",
    "CombineResult",
    "InspectionResult",
    "TransformOptions",
    "TransformResult",
    "TransparencyOptions",
    "TransparencyResult",
    "combine_files",
    "combine_images",
    "inspect_file",
    "inspect_transparency",
    "make_transparent",
    "make_transparent_file",
    "transform_file",
    "transform_image",
]
