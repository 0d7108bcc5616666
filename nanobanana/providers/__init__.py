"""Image generation providers."""

from __future__ import annotations

from ..config import Config
from .base import GeneratedImage, ImageConfig, ImageProvider, save_generated
from .dryrun import DryRunProvider
from .gemini import GeminiClient
from .google_utils import MODEL_DRYRUN, resolve_model_name


def create_provider(config: Config) -> ImageProvider:
    model = resolve_model_name(config.model)
    if model == MODEL_DRYRUN:
        return DryRunProvider()
    return GeminiClient(config.api_key, model=model, timeout_s=config.timeout_s)


__all__ = [
    "DryRunProvider",
    "GeminiClient",
    "GeneratedImage",
    "ImageConfig",
    "ImageProvider",
    "create_provider",
    "save_generated",
]
