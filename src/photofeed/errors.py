"""Error taxonomy for photo service access."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    INVALID_TOKEN = "INVALID_TOKEN"
    NO_MATCHING_PHOTOS = "NO_MATCHING_PHOTOS"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_STATUS_CODES = {
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.INVALID_TOKEN,
    404: ErrorCode.NOT_FOUND,
    429: ErrorCode.RATE_LIMIT,
}


def error_code_for_status(status: int) -> ErrorCode:
    return _STATUS_CODES.get(status, ErrorCode.UNKNOWN_ERROR)


class PhotoServiceError(Exception):
    """Structured failure raised by the gateway and the aggregation pipeline."""

    def __init__(self, status: int, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.code = code or error_code_for_status(status)

    @classmethod
    def from_status(cls, status: int, message: str) -> "PhotoServiceError":
        return cls(status=status, message=message, code=error_code_for_status(status))

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "message": self.message,
            "code": self.code.value,
        }

    def __repr__(self) -> str:
        return f"PhotoServiceError(status={self.status}, code={self.code.value}, message={self.message!r})"


class PhotoServiceConfigError(ValueError):
    """Raised when the gateway cannot be constructed from the given configuration."""


REASON_TIMEOUT = "timeout"
REASON_CANCELLED = "cancelled"


class RequestInterrupted(PhotoServiceError):
    """An upstream request that was cut short by the aggregation deadline or a cancel.

    ``reason`` is ``REASON_TIMEOUT`` or ``REASON_CANCELLED``.
    """

    def __init__(self, reason: str, message: str):
        super().__init__(504, message, ErrorCode.UNKNOWN_ERROR)
        self.reason = reason
