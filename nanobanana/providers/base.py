"""Provider base classes."""

from __future__ import annotations

import io
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from PIL import Image, UnidentifiedImageError

from ..errors import ErrorCode, ImageOperationError


@dataclass
class ImageConfig:
    aspect_ratio: str = "1:1"
    resolution: str | None = None
    count: int = 1


@dataclass
class GeneratedImage:
    data: bytes
    mime_type: str = "image/png"
    width: int | None = None
    height: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def dimensions(self) -> tuple[int, int] | None:
        if self.width and self.height:
            return self.width, self.height
        try:
            with Image.open(io.BytesIO(self.data)) as image:
                self.width, self.height = image.size
        except (UnidentifiedImageError, OSError):
            return None
        return self.width, self.height


class ImageProvider(Protocol):
    model: str

    def generate_image(self, prompt: str, config: ImageConfig | None = None) -> list[GeneratedImage]:
        ...

    def edit_image(
        self,
        image_path: str | Path,
        prompt: str,
        config: ImageConfig | None = None,
    ) -> list[GeneratedImage]:
        ...


def save_generated(image: GeneratedImage, output_path: str | Path) -> Path:
    """Write the raw payload next to ``output_path`` and rename it into place."""
    target = Path(output_path)
    tmp_path: Path | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "wb") as handle:
            handle.write(image.data)
        os.replace(tmp_path, target)
    except OSError as exc:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise ImageOperationError(ErrorCode.SAVE_FAILED, f"Failed to write image {target}: {exc}") from exc
    return target
