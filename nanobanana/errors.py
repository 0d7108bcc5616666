"""Error codes and exception types."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    # Local parameters and files
    NO_OPERATION = "NO_OPERATION"
    INVALID_CROP = "INVALID_CROP"
    INVALID_RESIZE = "INVALID_RESIZE"
    INVALID_FIT = "INVALID_FIT"
    INVALID_ROTATION = "INVALID_ROTATION"
    INVALID_DIRECTION = "INVALID_DIRECTION"
    INVALID_GAP = "INVALID_GAP"
    NOT_ENOUGH_IMAGES = "NOT_ENOUGH_IMAGES"
    INVALID_COLOR = "INVALID_COLOR"
    INVALID_TOLERANCE = "INVALID_TOLERANCE"
    INVALID_COUNT = "INVALID_COUNT"
    INVALID_ASPECT_RATIO = "INVALID_ASPECT_RATIO"
    INVALID_RESOLUTION = "INVALID_RESOLUTION"
    INVALID_SIZE = "INVALID_SIZE"
    INVALID_STYLE = "INVALID_STYLE"
    INVALID_TYPE = "INVALID_TYPE"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_EXISTS = "FILE_EXISTS"
    IMAGE_DECODE_FAILED = "IMAGE_DECODE_FAILED"
    SAVE_FAILED = "SAVE_FAILED"
    MISSING_API_KEY = "MISSING_API_KEY"
    # Remote API
    INVALID_API_KEY = "INVALID_API_KEY"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    RATE_LIMITED = "RATE_LIMITED"
    SAFETY_BLOCKED = "SAFETY_BLOCKED"
    API_ERROR = "API_ERROR"
    NO_IMAGE_GENERATED = "NO_IMAGE_GENERATED"


API_ERROR_CODES = frozenset(
    {
        ErrorCode.INVALID_API_KEY,
        ErrorCode.QUOTA_EXCEEDED,
        ErrorCode.RATE_LIMITED,
        ErrorCode.SAFETY_BLOCKED,
        ErrorCode.API_ERROR,
        ErrorCode.NO_IMAGE_GENERATED,
    }
)

# Ordered; the first rule with a matching needle wins.
_API_ERROR_RULES: tuple[tuple[ErrorCode, tuple[str, ...]], ...] = (
    (ErrorCode.INVALID_API_KEY, ("api key", "api_key_invalid", "unauthorized", "permission denied", "401")),
    (ErrorCode.QUOTA_EXCEEDED, ("quota", "resource_exhausted", "429")),
    (ErrorCode.RATE_LIMITED, ("rate limit",)),
    (ErrorCode.SAFETY_BLOCKED, ("safety", "blocked")),
)

_API_ERROR_MESSAGES = {
    ErrorCode.INVALID_API_KEY: "Invalid or unauthorized API key",
    ErrorCode.QUOTA_EXCEEDED: "API quota exceeded",
    ErrorCode.RATE_LIMITED: "Rate limit exceeded, please wait",
    ErrorCode.SAFETY_BLOCKED: "Content blocked by safety filters",
}

_API_ERROR_HINTS = {
    ErrorCode.INVALID_API_KEY: "Check your API key at https://aistudio.google.com/apikey",
    ErrorCode.QUOTA_EXCEEDED: "Wait before retrying or check your quota",
    ErrorCode.RATE_LIMITED: "Wait a moment before sending another request",
    ErrorCode.SAFETY_BLOCKED: "Try rephrasing your prompt",
}


class NanobananaError(RuntimeError):
    """Base error carrying a stable code for terminal and JSON output."""

    def __init__(self, code: ErrorCode, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class ImageOperationError(NanobananaError):
    pass


class GeminiError(NanobananaError):
    pass


def classify_api_error(text: str) -> ErrorCode:
    lowered = str(text or "").lower()
    for code, needles in _API_ERROR_RULES:
        if any(needle in lowered for needle in needles):
            return code
    return ErrorCode.API_ERROR


def gemini_error_from_exception(exc: BaseException) -> GeminiError:
    raw = str(exc)
    code = classify_api_error(raw)
    message = _API_ERROR_MESSAGES.get(code, raw)
    return GeminiError(code, message, hint=_API_ERROR_HINTS.get(code))
