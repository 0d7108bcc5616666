"""Dry-run image provider (offline)."""

from __future__ import annotations

import hashlib
import io
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from ..errors import ErrorCode, ImageOperationError
from .base import GeneratedImage, ImageConfig
from .google_utils import MODEL_DRYRUN, estimate_dimensions


class DryRunProvider:
    """Renders a flat placeholder per request instead of calling the API."""

    model = MODEL_DRYRUN

    def __init__(self) -> None:
        self.last_api_call_ms: int | None = 0

    def generate_image(self, prompt: str, config: ImageConfig | None = None) -> list[GeneratedImage]:
        cfg = config or ImageConfig()
        width, height = estimate_dimensions(cfg.aspect_ratio)
        return [self._render(prompt, idx, width, height) for idx in range(max(1, cfg.count))]

    def edit_image(
        self,
        image_path: str | Path,
        prompt: str,
        config: ImageConfig | None = None,
    ) -> list[GeneratedImage]:
        source = Path(image_path)
        if not source.is_file():
            raise ImageOperationError(ErrorCode.FILE_NOT_FOUND, f"Input file not found: {source}")
        cfg = config or ImageConfig()
        with Image.open(source) as image:
            width, height = image.size
        return [self._render(prompt, idx, width, height) for idx in range(max(1, cfg.count))]

    def _render(self, prompt: str, idx: int, width: int, height: int) -> GeneratedImage:
        image = Image.new("RGB", (width, height), _color_from_prompt(prompt, idx))
        draw = ImageDraw.Draw(image)
        draw.text((20, 20), f"dryrun\n{prompt[:60]}", fill=(255, 255, 255), font=ImageFont.load_default())
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return GeneratedImage(
            data=buffer.getvalue(),
            mime_type="image/png",
            width=width,
            height=height,
            metadata={"dryrun": True},
        )


def _color_from_prompt(prompt: str, idx: int) -> tuple[int, int, int]:
    digest = hashlib.sha256(f"{prompt}:{idx}".encode("utf-8")).digest()
    return digest[0], digest[1], digest[2]
