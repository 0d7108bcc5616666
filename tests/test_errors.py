from __future__ import annotations

import pytest

from nanobanana.errors import (
    API_ERROR_CODES,
    ErrorCode,
    GeminiError,
    ImageOperationError,
    NanobananaError,
    classify_api_error,
    gemini_error_from_exception,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("400 API key not valid. Please pass a valid API key.", ErrorCode.INVALID_API_KEY),
        ("API_KEY_INVALID", ErrorCode.INVALID_API_KEY),
        ("403 PERMISSION DENIED", ErrorCode.INVALID_API_KEY),
        ("HTTP 401", ErrorCode.INVALID_API_KEY),
        ("429 RESOURCE_EXHAUSTED", ErrorCode.QUOTA_EXCEEDED),
        ("You exceeded your current Quota", ErrorCode.QUOTA_EXCEEDED),
        ("Rate limit reached for requests", ErrorCode.RATE_LIMITED),
        ("response blocked", ErrorCode.SAFETY_BLOCKED),
        ("SAFETY", ErrorCode.SAFETY_BLOCKED),
        ("500 internal error", ErrorCode.API_ERROR),
        ("", ErrorCode.API_ERROR),
    ],
)
def test_classify_api_error(text: str, expected: ErrorCode) -> None:
    assert classify_api_error(text) == expected


def test_quota_wins_over_rate_limit() -> None:
    assert classify_api_error("429 rate limit exceeded") == ErrorCode.QUOTA_EXCEEDED


def test_gemini_error_from_exception_uses_table_message() -> None:
    err = gemini_error_from_exception(RuntimeError("401 Unauthorized"))
    assert isinstance(err, GeminiError)
    assert err.code == ErrorCode.INVALID_API_KEY
    assert err.message == "Invalid or unauthorized API key"
    assert err.hint


def test_gemini_error_from_exception_keeps_raw_text() -> None:
    err = gemini_error_from_exception(RuntimeError("socket closed"))
    assert err.code == ErrorCode.API_ERROR
    assert err.message == "socket closed"
    assert err.hint is None


def test_error_string_and_hierarchy() -> None:
    err = ImageOperationError(ErrorCode.INVALID_GAP, "Gap cannot be negative", hint="use 0")
    assert isinstance(err, NanobananaError)
    assert isinstance(err, RuntimeError)
    assert str(err) == "[INVALID_GAP] Gap cannot be negative"
    assert ErrorCode.INVALID_GAP == "INVALID_GAP"
    assert ErrorCode.SAFETY_BLOCKED in API_ERROR_CODES
    assert ErrorCode.INVALID_GAP not in API_ERROR_CODES
