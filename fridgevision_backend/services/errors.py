"""Error taxonomy for the recipe pipeline."""

from __future__ import annotations


class FridgeVisionError(RuntimeError):
    """Base class for failures surfaced to the end user."""


class ConfigError(FridgeVisionError):
    """Raised when no API key is available for a Gemini call."""


class ApiError(FridgeVisionError):
    """Raised when the Gemini endpoint answers with a non-2xx status or is unreachable."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


TransportError = ApiError


class ParseError(FridgeVisionError):
    """Raised when a model response does not contain the expected JSON."""


class InsufficientResultsError(ParseError):
    """Raised when the recipe model returns fewer recipes than required."""

    def __init__(self, *, expected: int, received: int) -> None:
        super().__init__(
            f"Received {received} recipes but at least {expected} are required. "
            "Please try again."
        )
        self.expected = expected
        self.received = received


INVALID_KEY_MESSAGE = (
    "Your API key is invalid. Please check your API key in Settings and make "
    "sure it's from Google AI Studio."
)
UNVERIFIED_KEY_MESSAGE = (
    "Please verify your Google AI API key in Settings is correct and has "
    "access to Gemini models."
)


def describe_error(exc: BaseException, fallback: str) -> str:
    """Map an error to the guidance shown to the user.

    Upstream key failures come back with several phrasings; anything that is
    not recognisably a key problem falls back to ``fallback``.
    """

    message = str(exc)
    if isinstance(exc, ConfigError):
        return message
    if "API key" in message or "API_KEY_INVALID" in message:
        return INVALID_KEY_MESSAGE
    if "not valid" in message:
        return UNVERIFIED_KEY_MESSAGE
    if isinstance(exc, InsufficientResultsError):
        return message
    return fallback
