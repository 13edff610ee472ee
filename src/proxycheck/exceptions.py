"""
Custom exceptions for the proxycheck package.

Every failure the client can report is one of the classes below. The HTTP
engine turns raw ``requests`` failures into these types through
:func:`create_error_from_exception`, so callers never see a transport
exception directly.
"""

import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pydantic
import requests

from . import constants


class ProxyCheckError(Exception):
    """Base exception class for all proxycheck errors."""

    def __init__(
        self,
        message: str,
        code: str = constants.API_ERROR,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            code: Stable machine-readable error kind
            status_code: HTTP status code associated with the error, if any
            details: Optional additional details about the error
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error to a plain record suitable for structured logs."""
        stack = None
        if self.__traceback__ is not None:
            stack = "".join(
                traceback.format_exception(type(self), self, self.__traceback__)
            )
        return {
            "name": self.name,
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "timestamp": self.timestamp.isoformat(),
            "stack": stack,
        }


class APIError(ProxyCheckError):
    """Raised when the API answers with an error status (4xx, 5xx)."""

    def __init__(
        self,
        message: str,
        status_code: int,
        response: Optional[Any] = None,
        request_id: Optional[str] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code returned by the API
            response: Parsed error body, if one was returned
            request_id: Value of the ``x-request-id`` header, if present
        """
        self.response = response
        self.request_id = request_id

        super().__init__(
            message,
            constants.API_ERROR,
            status_code,
            {"response": response, "request_id": request_id},
        )

    @classmethod
    def from_response(
        cls, status_code: int, response: Optional[Any], request_id: Optional[str] = None
    ) -> "APIError":
        message = None
        if isinstance(response, dict):
            message = response.get("message") or response.get("error")
        return cls(message or f"API error: {status_code}", status_code, response, request_id)


class ValidationError(ProxyCheckError):
    """Raised when caller-supplied input fails validation."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        validation_errors: Optional[List[Dict[str, str]]] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            field: Name of the offending field, if a single field is at fault
            value: The offending value
            validation_errors: Per-field errors as ``{"path", "message"}`` dicts
        """
        self.field = field
        self.value = value
        self.validation_errors = validation_errors

        super().__init__(
            message,
            constants.VALIDATION_ERROR,
            None,
            {"field": field, "value": value, "validation_errors": validation_errors},
        )

    @classmethod
    def from_pydantic(
        cls, message: str, error: pydantic.ValidationError, value: Optional[Any] = None
    ) -> "ValidationError":
        """Wrap a pydantic failure, flattening each error location to a dotted path."""
        errors = [
            {"path": ".".join(str(part) for part in item["loc"]), "message": item["msg"]}
            for item in error.errors()
        ]
        return cls(message, None, value, errors)


class RateLimitError(ProxyCheckError):
    """Raised when the API answers 429 Too Many Requests."""

    def __init__(
        self,
        message: str,
        limit: int,
        remaining: int,
        reset: datetime,
        retry_after: int,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            limit: Request quota reported by the API
            remaining: Requests left in the current window
            reset: When the current window resets
            retry_after: Seconds the API asks the client to wait
        """
        self.limit = limit
        self.remaining = remaining
        self.reset = reset
        self.retry_after = retry_after

        super().__init__(
            message,
            constants.RATE_LIMIT,
            constants.HTTP_TOO_MANY_REQUESTS,
            {
                "limit": limit,
                "remaining": remaining,
                "reset": reset,
                "retry_after": retry_after,
            },
        )


class NetworkError(ProxyCheckError):
    """Raised when a request was sent but no response came back."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.original_error = original_error
        super().__init__(
            message, constants.NETWORK_ERROR, None, {"original_error": original_error}
        )


class AuthenticationError(ProxyCheckError):
    """Raised when the API rejects the API key (401)."""

    def __init__(self, message: str = "Invalid or missing API key") -> None:
        super().__init__(
            message, constants.AUTHENTICATION_ERROR, constants.HTTP_UNAUTHORIZED
        )


class RequestTimeoutError(ProxyCheckError):
    """Raised when a single attempt exceeds the configured timeout."""

    def __init__(self, message: str, timeout: float) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            timeout: The configured timeout in milliseconds (0 if unknown)
        """
        self.timeout = timeout
        super().__init__(message, constants.TIMEOUT_ERROR, None, {"timeout": timeout})


def is_proxycheck_error(error: Any) -> bool:
    return isinstance(error, ProxyCheckError)


def is_rate_limit_error(error: Any) -> bool:
    return isinstance(error, RateLimitError)


def is_validation_error(error: Any) -> bool:
    return isinstance(error, ValidationError)


def parse_int_header(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def parse_reset_header(value: Optional[str]) -> datetime:
    """Epoch-seconds reset header as a UTC datetime; unrepresentable values map to the epoch."""
    seconds = parse_int_header(value, 0)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return datetime.fromtimestamp(0, tz=timezone.utc)


def _response_body(response: requests.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _error_from_response(response: requests.Response) -> ProxyCheckError:
    status = response.status_code
    headers = response.headers

    if status == constants.HTTP_TOO_MANY_REQUESTS:
        return RateLimitError(
            "Rate limit exceeded",
            limit=parse_int_header(headers.get(constants.HEADER_RATELIMIT_LIMIT), 0),
            remaining=parse_int_header(headers.get(constants.HEADER_RATELIMIT_REMAINING), 0),
            reset=parse_reset_header(headers.get(constants.HEADER_RATELIMIT_RESET)),
            retry_after=parse_int_header(
                headers.get(constants.HEADER_RETRY_AFTER), constants.DEFAULT_RETRY_AFTER
            ),
        )

    body = _response_body(response)

    if status == constants.HTTP_UNAUTHORIZED:
        message = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            message = body["message"]
        return AuthenticationError(message or "Authentication failed")

    return APIError.from_response(status, body, headers.get(constants.HEADER_REQUEST_ID))


def create_error_from_exception(
    error: BaseException, timeout: Optional[float] = None
) -> ProxyCheckError:
    """
    Classify an arbitrary failure into one of the proxycheck error types.

    Checks, in order: an attached HTTP response (429, 401, any other status),
    a timeout, a request that was sent without a response, and finally falls
    back to the base error. Never raises.

    Args:
        error: The exception raised by the transport (or anything else)
        timeout: The configured per-attempt timeout in milliseconds

    Returns:
        The classified error. A ProxyCheckError is returned unchanged.
    """
    if isinstance(error, ProxyCheckError):
        return error

    response = getattr(error, "response", None)
    if response is not None and getattr(response, "status_code", None) is not None:
        return _error_from_response(response)

    if isinstance(error, requests.Timeout) or "timeout" in str(error).lower():
        return RequestTimeoutError("Request timed out", timeout or 0)

    if getattr(error, "request", None) is not None or isinstance(
        error, requests.ConnectionError
    ):
        return NetworkError("Network error occurred", error if isinstance(error, Exception) else None)

    return ProxyCheckError(str(error) or "An unknown error occurred", constants.API_ERROR)
