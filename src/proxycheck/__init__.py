"""
proxycheck - A client for the proxycheck.io proxy, VPN and email reputation API.

This package provides:
- Address checks for single IPs/emails (GET) and batches (POST)
- Whitelist/blacklist management, custom rules and usage statistics
- Retries with exponential backoff, jitter and server-dictated rate-limit delays
- Typed exceptions for every failure the client can report

Main Classes:
    ProxyCheckClient: The client exposing the check, listing, rules and stats services
    HttpClient: The retrying HTTP engine underneath the services

Exception Classes:
    ProxyCheckError: Base exception
    APIError: The API answered with an error status
    ValidationError: Caller input failed validation
    RateLimitError: The API answered 429
    NetworkError: No response was received
    AuthenticationError: The API key was rejected
    RequestTimeoutError: An attempt exceeded the configured timeout

Example:
    Checking addresses:

    >>> from proxycheck import ProxyCheckClient
    >>> client = ProxyCheckClient(api_key="your-key", retries=2)
    >>> client.check.check_address("8.8.8.8", {"vpn_detection": 1, "risk_data": 1})
    >>> client.check.check_addresses(["1.2.3.4", "5.6.7.8"])
    >>> client.get_rate_limit_info()

    Handling failures:

    >>> from proxycheck import RateLimitError, ValidationError
    >>> try:
    ...     client.check.check_address("8.8.8.8", {"vpn_detection": 7})
    ... except ValidationError as e:
    ...     print(e.validation_errors)
"""

from .client import ProxyCheckClient, __version__
from .config import ClientConfig, ConfigManager
from .exceptions import (
    APIError,
    AuthenticationError,
    NetworkError,
    ProxyCheckError,
    RateLimitError,
    RequestTimeoutError,
    ValidationError,
    create_error_from_exception,
    is_proxycheck_error,
    is_rate_limit_error,
    is_validation_error,
)
from .http_client import HttpClient
from .logger import StructuredLogger, configure_logging, create_logger
from .types import RateLimitInfo, RequestConfig

__all__ = [
    "ProxyCheckClient",
    "HttpClient",
    "ClientConfig",
    "ConfigManager",
    "RateLimitInfo",
    "RequestConfig",
    "StructuredLogger",
    "configure_logging",
    "create_logger",
    "ProxyCheckError",
    "APIError",
    "ValidationError",
    "RateLimitError",
    "NetworkError",
    "AuthenticationError",
    "RequestTimeoutError",
    "create_error_from_exception",
    "is_proxycheck_error",
    "is_rate_limit_error",
    "is_validation_error",
    "__version__",
]
