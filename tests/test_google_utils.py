from __future__ import annotations

from nanobanana.providers.google_utils import (
    MODEL_FLASH,
    MODEL_PRO,
    estimate_dimensions,
    format_from_mime,
    is_pro_model,
    is_valid_aspect_ratio,
    mime_type_for_path,
    normalize_resolution,
    parse_dims,
    ratio_for_dims,
    resolve_model_name,
)


def test_resolve_model_aliases() -> None:
    assert resolve_model_name("flash") == MODEL_FLASH
    assert resolve_model_name("PRO") == MODEL_PRO
    assert resolve_model_name("dryrun") == "dryrun"
    assert resolve_model_name("gemini-custom-image") == "gemini-custom-image"
    assert is_pro_model(MODEL_PRO)
    assert not is_pro_model(MODEL_FLASH)


def test_aspect_ratio_and_resolution() -> None:
    assert is_valid_aspect_ratio("21:9")
    assert not is_valid_aspect_ratio("2:1")
    assert normalize_resolution("2k") == "2K"
    assert normalize_resolution("8K") is None
    assert normalize_resolution(None) is None


def test_parse_dims() -> None:
    assert parse_dims("512x256") == (512, 256)
    assert parse_dims(" 64 X 64 ") == (64, 64)
    assert parse_dims("0x10") is None
    assert parse_dims("big") is None


def test_ratio_for_dims_buckets() -> None:
    assert ratio_for_dims(512, 512) == "1:1"
    assert ratio_for_dims(1024, 512) == "16:9"
    assert ratio_for_dims(512, 1024) == "9:16"
    assert ratio_for_dims(650, 500) == "4:3"
    assert ratio_for_dims(500, 650) == "3:4"
    assert ratio_for_dims(550, 500) == "1:1"


def test_estimates_and_mime_helpers() -> None:
    assert estimate_dimensions("16:9") == (1024, 576)
    assert estimate_dimensions("7:3") == (1024, 1024)
    assert mime_type_for_path("photo.JPG") == "image/jpeg"
    assert mime_type_for_path("photo.unknown") == "image/png"
    assert format_from_mime("image/webp") == "webp"
    assert format_from_mime(None) == "png"
