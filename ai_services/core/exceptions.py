# exception taxonomy for the AI services layer
# lower layers raise the narrow types; provider models translate them into
# GenerativeAIError before handing control back to callers

from typing import Optional


class GenerativeAIError(Exception):
    """Error surfaced to callers of a generative AI model."""


class RequestError(Exception):
    """Transport-level failure: connection, timeout or non-success status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodingError(ValueError):
    """Malformed or truncated JSON encountered while reading a stream."""

    def __init__(self, message: str, *, fragment: str = "") -> None:
        super().__init__(message)
        self.fragment = fragment


class DataValidationError(ValueError):
    pass
