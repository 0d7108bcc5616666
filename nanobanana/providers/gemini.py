"""Gemini image generation client."""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Any

from google import genai
from google.genai import types

from ..errors import ErrorCode, GeminiError, ImageOperationError, gemini_error_from_exception
from ..utils import monotonic_ms
from .base import GeneratedImage, ImageConfig
from .google_utils import MODEL_FLASH, is_pro_model, mime_type_for_path, resolve_model_name

DEFAULT_TIMEOUT_S = 120.0
RESPONSE_MODALITIES = ["IMAGE", "TEXT"]


class GeminiClient:
    def __init__(
        self,
        api_key: str | None,
        model: str | None = MODEL_FLASH,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client: Any | None = None,
    ) -> None:
        if not api_key and client is None:
            raise GeminiError(
                ErrorCode.MISSING_API_KEY,
                "No API key provided",
                hint="Set GEMINI_API_KEY environment variable or use --api-key flag",
            )
        self.model = resolve_model_name(model)
        self.timeout_s = timeout_s
        self.last_api_call_ms: int | None = None
        if client is None:
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
            )
        self._client = client

    def generate_image(self, prompt: str, config: ImageConfig | None = None) -> list[GeneratedImage]:
        cfg = config or ImageConfig()
        return self._send([types.Part(text=prompt)], cfg)

    def edit_image(
        self,
        image_path: str | Path,
        prompt: str,
        config: ImageConfig | None = None,
    ) -> list[GeneratedImage]:
        cfg = config or ImageConfig()
        source = Path(image_path)
        try:
            data = source.read_bytes()
        except FileNotFoundError as exc:
            raise ImageOperationError(ErrorCode.FILE_NOT_FOUND, f"Input file not found: {source}") from exc
        except OSError as exc:
            raise ImageOperationError(
                ErrorCode.IMAGE_DECODE_FAILED,
                f"Failed to read input image {source}: {exc}",
            ) from exc
        parts = [
            types.Part(inline_data=types.Blob(data=data, mime_type=mime_type_for_path(source))),
            types.Part(text=prompt),
        ]
        return self._send(parts, cfg)

    def _send(self, parts: list[Any], config: ImageConfig) -> list[GeneratedImage]:
        content_config = build_content_config(config, self.model)
        started = monotonic_ms()
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=parts,
                config=content_config,
            )
        except Exception as exc:
            raise gemini_error_from_exception(exc) from exc
        finally:
            self.last_api_call_ms = monotonic_ms() - started
        return extract_images(response, limit=max(1, int(config.count)))


def build_content_config(config: ImageConfig, model: str) -> types.GenerateContentConfig:
    config_kwargs: dict[str, Any] = {"response_modalities": list(RESPONSE_MODALITIES)}
    if config.count > 1:
        config_kwargs["candidate_count"] = int(config.count)
    image_config: dict[str, Any] = {}
    if config.aspect_ratio:
        image_config["aspect_ratio"] = config.aspect_ratio
    if config.resolution and is_pro_model(model):
        image_config["image_size"] = config.resolution
    if image_config:
        config_kwargs["image_config"] = types.ImageConfig(**image_config)
    return types.GenerateContentConfig(**config_kwargs)


def extract_images(response: Any, limit: int | None = None) -> list[GeneratedImage]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None)
        if block_reason:
            raise GeminiError(
                ErrorCode.SAFETY_BLOCKED,
                f"Content blocked by safety filters ({_enum_name(block_reason)})",
                hint="Try rephrasing your prompt",
            )
        raise GeminiError(ErrorCode.API_ERROR, "Empty response from API")

    images: list[GeneratedImage] = []
    texts: list[str] = []
    finish_reasons: list[str] = []
    for candidate in candidates:
        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason is not None:
            finish_reasons.append(_enum_name(finish_reason))
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            if text:
                texts.append(str(text))
            inline_data = getattr(part, "inline_data", None)
            if inline_data is None:
                continue
            mime_type = str(getattr(inline_data, "mime_type", None) or "")
            data = getattr(inline_data, "data", None)
            if not mime_type.startswith("image/") or data is None:
                continue
            images.append(GeneratedImage(data=_coerce_bytes(data), mime_type=mime_type))

    if not images:
        if any("SAFETY" in reason or "PROHIBITED" in reason for reason in finish_reasons):
            raise GeminiError(
                ErrorCode.SAFETY_BLOCKED,
                "Content blocked by safety filters",
                hint="Try rephrasing your prompt",
            )
        message = "No images generated"
        if texts:
            message = f"{message}: {' '.join(texts)[:200]}"
        raise GeminiError(ErrorCode.NO_IMAGE_GENERATED, message, hint="Try rephrasing your prompt")
    if limit is not None:
        images = images[:limit]
    return images


def _coerce_bytes(data: bytes | bytearray | str) -> bytes:
    if isinstance(data, str):
        try:
            return base64.b64decode(data, validate=True)
        except binascii.Error:
            return data.encode("latin1")
    return bytes(data)


def _enum_name(value: Any) -> str:
    name = getattr(value, "name", None)
    return str(name or value)

