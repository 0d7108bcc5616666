"""Gemini image generation and local image manipulation CLI."""

__version__ = "0.3.0"
