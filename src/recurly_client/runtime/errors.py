"""
Recurly Error Model

This module provides the error handling framework for the Recurly Python client.
Every error raised by the client derives from RecurlyError, so callers can catch
the whole family at once or pattern-match on the specific category.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, TYPE_CHECKING
from enum import IntEnum
from urllib.parse import urlsplit

if TYPE_CHECKING:
    import requests
    from ..client.response import Rate
    from ..models import Transaction, TransactionError


class ErrorCode(IntEnum):
    """Error codes for every category of client failure."""

    # Success
    OK = 0

    # General errors (1-99)
    UNKNOWN = 1
    INVALID_REQUEST = 2
    NO_MORE_RESULTS = 3
    UNKNOWN_NOTIFICATION = 4

    # Encoding errors (100-199)
    ENCODING_ERROR = 100
    ENCODE_FAILED = 101
    DECODE_FAILED = 102

    # Network errors (200-299)
    NETWORK_ERROR = 200
    CONNECTION_FAILED = 201
    TIMEOUT = 202
    CANCELLED = 203
    DEADLINE_EXCEEDED = 204

    # API errors (400-599)
    CLIENT_ERROR = 400
    TRANSACTION_FAILED = 402
    RATE_LIMITED = 429
    SERVER_ERROR = 500


class RecurlyError(Exception):
    """
    Base class for all Recurly client errors.

    Provides structured error information: a category code, a message,
    optional details and the underlying cause.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a Recurly error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


# =============================================================================
# Local errors (raised before or after the round-trip)
# =============================================================================

class InvalidRequestError(RecurlyError):
    """The request could not be built (unsupported method, bad path)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_REQUEST, details)


class EncodingError(RecurlyError):
    """Data encoding/decoding errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.ENCODING_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class EncodeError(EncodingError):
    """A request body could not be serialized to XML."""

    def __init__(self, message: str = "Encode error",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.ENCODE_FAILED, details, cause)


class DecodeError(EncodingError):
    """
    A response body or a wire literal could not be understood.

    Kept apart from the API errors below: a DecodeError means the client
    failed to read what the server said, not that the server rejected input.
    """

    def __init__(self, message: str = "Decode error",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.DECODE_FAILED, details, cause)


class NoMoreResultsError(RecurlyError):
    """Fetch was called on a pager that has no further pages."""

    def __init__(self, message: str = "no more results"):
        super().__init__(message, ErrorCode.NO_MORE_RESULTS)


class UnknownNotificationError(RecurlyError):
    """A webhook body whose root element is not a known notification."""

    def __init__(self, name: str):
        super().__init__(f"unknown notification: {name}", ErrorCode.UNKNOWN_NOTIFICATION, {"name": name})
        self.name = name


# =============================================================================
# Transport errors
# =============================================================================

class NetworkError(RecurlyError):
    """Network-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.NETWORK_ERROR, details, cause)


class ConnectionError(NetworkError):
    """Connection failures."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, details, cause)
        self.code = ErrorCode.CONNECTION_FAILED


class TimeoutError(NetworkError):
    """Request timeouts."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, details, cause)
        self.code = ErrorCode.TIMEOUT


class CancelledError(RecurlyError):
    """The call's context was cancelled."""

    def __init__(self, message: str = "context canceled", cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.CANCELLED, cause=cause)


class DeadlineExceededError(CancelledError):
    """The call's context deadline passed."""

    def __init__(self, message: str = "context deadline exceeded", cause: Optional[Exception] = None):
        super().__init__(message, cause)
        self.code = ErrorCode.DEADLINE_EXCEEDED


# =============================================================================
# API errors (classified from the HTTP response)
# =============================================================================

@dataclass(frozen=True)
class ValidationError:
    """A single field/symbol/description violation reported by the API."""

    description: str = ""
    field: str = ""
    symbol: str = ""

    def __str__(self) -> str:
        if self.field:
            if not self.symbol:
                return f"{self.field} {self.description}"
            return f"{self.field} {self.description} ({self.symbol})"
        elif self.symbol:
            return f"{self.description} ({self.symbol})"
        return self.description


def _request_line(response: Optional["requests.Response"]) -> str:
    if response is None:
        return "<no response>"
    request = getattr(response, "request", None)
    if request is None:
        return str(response.status_code)
    path = urlsplit(request.url or "").path
    return f"{request.method} {path}: {response.status_code}"


class APIError(RecurlyError):
    """Base class for errors classified from an HTTP response."""

    def __init__(self, message: str, code: ErrorCode, response: Optional["requests.Response"] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code, details)
        self.response = response

    @property
    def status(self) -> Optional[int]:
        """HTTP status code of the response, if any."""
        if self.response is None:
            return None
        return self.response.status_code

    def __str__(self) -> str:
        return self.message


class ClientError(APIError):
    """
    Recurly returned a 400-499 status code.

    The two known exceptions are 429 (see RateLimitError) and 4xx responses
    that embed a failed transaction (see TransactionFailedError).
    """

    def __init__(self, response: Optional["requests.Response"] = None,
                 validation_errors: Optional[List[ValidationError]] = None,
                 code: ErrorCode = ErrorCode.CLIENT_ERROR):
        self.validation_errors: List[ValidationError] = list(validation_errors or [])
        joined = ";".join(str(e) for e in self.validation_errors)
        super().__init__(
            f"client error: {_request_line(response)} {joined}".rstrip(),
            code,
            response,
        )

    def is_(self, symbol: str) -> bool:
        """Return True if one of the validation errors has a matching symbol."""
        return any(e.symbol == symbol for e in self.validation_errors)


class TransactionFailedError(ClientError):
    """A payment attempt failed; carries the gateway's standardized detail."""

    def __init__(self, response: Optional["requests.Response"] = None,
                 transaction: Optional["Transaction"] = None,
                 transaction_error: Optional["TransactionError"] = None):
        super().__init__(response, code=ErrorCode.TRANSACTION_FAILED)
        if transaction_error is None:
            from ..models import TransactionError
            transaction_error = TransactionError()
        self.transaction = transaction
        self.transaction_error = transaction_error
        self.message = (
            f"transaction failed: {_request_line(response)} "
            f"[{transaction_error.error_code}/{transaction_error.error_category}/"
            f"{transaction_error.customer_message}]"
        )


class RateLimitError(APIError):
    """Recurly returned 429 Too Many Requests."""

    def __init__(self, response: Optional["requests.Response"] = None, rate: Optional["Rate"] = None):
        if rate is None:
            from ..client.response import Rate
            rate = Rate()
        self.rate = rate
        wait = ""
        if rate.reset is not None:
            wait = f" {rate.reset - datetime.now(timezone.utc)}"
        super().__init__(
            f"API rate limit exceeded: {_request_line(response)}{wait}",
            ErrorCode.RATE_LIMITED,
            response,
        )


class ServerError(APIError):
    """Recurly returned a 500-599 status code."""

    def __init__(self, response: Optional["requests.Response"] = None):
        super().__init__(f"server error: {_request_line(response)}", ErrorCode.SERVER_ERROR, response)


class ErrorHandler:
    """
    Utility class for categorizing errors.

    The client never retries by itself; this only tells the caller which
    failures are worth retrying with their own backoff.
    """

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        """
        Check if an error is retryable.

        Args:
            error: Exception to check

        Returns:
            True if the error could succeed when retried later
        """
        if isinstance(error, (ServerError, RateLimitError)):
            return True
        if isinstance(error, CancelledError):
            return False
        if isinstance(error, NetworkError):
            return True
        return False

    @staticmethod
    def retry_at(error: Exception) -> Optional[datetime]:
        """
        Return when a rate-limited caller may resume, if known.

        Args:
            error: Exception to examine

        Returns:
            The rate limit reset time, or None
        """
        if isinstance(error, RateLimitError):
            return error.rate.reset
        return None


__all__ = [
    "ErrorCode",
    "RecurlyError",
    "InvalidRequestError",
    "EncodingError",
    "EncodeError",
    "DecodeError",
    "NoMoreResultsError",
    "UnknownNotificationError",
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "CancelledError",
    "DeadlineExceededError",
    "ValidationError",
    "APIError",
    "ClientError",
    "TransactionFailedError",
    "RateLimitError",
    "ServerError",
    "ErrorHandler",
]
