"""
HTTP client with retry logic and rate-limit tracking.

Every request the package makes goes through :meth:`HttpClient.request`,
which resolves the relative URL against the configured host, retries
transient failures with exponential backoff and jitter, records the latest
rate-limit headers, and raises only proxycheck exception types.
"""

import json
import random
import threading
import time
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import quote, urlencode, urljoin, urlsplit
from uuid import uuid4

import requests

from . import constants
from .config import ClientConfig, validate_config
from .exceptions import (
    NetworkError,
    ProxyCheckError,
    RequestTimeoutError,
    create_error_from_exception,
    is_rate_limit_error,
    parse_int_header,
    parse_reset_header,
)
from .logger import StructuredLogger
from .types import RateLimitInfo, RequestConfig

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Characters encodeURIComponent leaves alone besides the unreserved set
_ADDRESS_SAFE = "!'()*"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _encode_pairs(values: Optional[Mapping[str, Any]]) -> str:
    if not values:
        return ""
    return urlencode(
        [(str(key), _stringify(value)) for key, value in values.items() if value is not None]
    )


class HttpClient:
    """
    HTTP client for the proxycheck API.

    The configuration is fixed for the lifetime of the instance; build a new
    client to change it.

    Args:
        config: Resolved client configuration
        logger: Structured logger used for request events; nothing is logged without one
        session: Optional pre-built requests session

    Raises:
        ValidationError: If ``config`` fails validation
    """

    def __init__(
        self,
        config: ClientConfig,
        logger: Optional[StructuredLogger] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = validate_config(config)
        self._logger = logger
        self._rate_limit_info: Optional[RateLimitInfo] = None
        self._rate_limit_lock = threading.Lock()

        # Session for connection pooling
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": self._config.user_agent,
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    def _log(self, level: str, message: str, context: Dict[str, Any]) -> None:
        if self._logger is not None:
            getattr(self._logger, level)(message, context)

    def _resolve_url(self, url: str) -> str:
        """Prefix a relative request target with the configured scheme and host."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._config.origin}/{url.lstrip('/')}"

    def _update_rate_limit_info(self, response: requests.Response) -> None:
        """Replace the rate-limit snapshot when the response carries the headers."""
        headers = response.headers
        limit = headers.get(constants.HEADER_RATELIMIT_LIMIT)
        if not limit:
            return

        info = RateLimitInfo(
            limit=parse_int_header(limit, 0),
            remaining=parse_int_header(headers.get(constants.HEADER_RATELIMIT_REMAINING), 0),
            reset=parse_reset_header(headers.get(constants.HEADER_RATELIMIT_RESET)),
            retry_after=parse_int_header(headers.get(constants.HEADER_RETRY_AFTER), 0),
        )
        with self._rate_limit_lock:
            self._rate_limit_info = info

    def get_rate_limit_info(self) -> Optional[RateLimitInfo]:
        """Get the most recent rate-limit snapshot, or None before any was seen."""
        with self._rate_limit_lock:
            return self._rate_limit_info

    def _calculate_delay(self, attempt: int, error: ProxyCheckError) -> float:
        """Backoff delay in milliseconds before the attempt after ``attempt``."""
        if is_rate_limit_error(error) and error.retry_after:
            return error.retry_after * 1000
        return self._config.retry_delay * 2**attempt + random.random() * constants.RETRY_JITTER_MS

    def _is_retryable_error(self, error: ProxyCheckError) -> bool:
        if isinstance(error, (NetworkError, RequestTimeoutError)):
            return True

        status_code = error.status_code
        if status_code is None:
            return False
        # Client errors only resolve themselves when they are rate limits
        if constants.HTTP_BAD_REQUEST <= status_code < constants.HTTP_INTERNAL_SERVER_ERROR:
            return is_rate_limit_error(error)
        return status_code >= constants.HTTP_INTERNAL_SERVER_ERROR

    def _sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def _generate_request_id(self) -> str:
        return f"req_{int(time.time() * 1000)}_{uuid4().hex[:9]}"

    def _send(self, request_config: RequestConfig) -> requests.Response:
        """Perform one attempt; any failure comes out as a ProxyCheckError."""
        data = request_config.data
        if isinstance(data, str):
            data = data.encode("utf-8")

        try:
            response = self.session.request(
                request_config.method,
                self._resolve_url(request_config.url),
                data=data,
                headers=request_config.headers or None,
                timeout=self._config.timeout / 1000,
            )
            self._update_rate_limit_info(response)
            response.raise_for_status()
        except Exception as exc:
            error = create_error_from_exception(exc, self._config.timeout)
            if error is exc:
                raise
            raise error from exc

        return response

    @staticmethod
    def _parse_body(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def request(self, request_config: RequestConfig) -> Any:
        """
        Make an HTTP request with retry logic.

        Server errors (5xx), rate limits, network failures and timeouts are
        retried up to ``config.retries`` times; anything else fails on the
        first attempt.

        Args:
            request_config: Method, relative URL, optional body and headers

        Returns:
            The parsed JSON body (or the raw text when it is not JSON)

        Raises:
            ProxyCheckError: The last classified error once retries are exhausted
        """
        method = request_config.method.upper()
        url = request_config.url
        request_id = self._generate_request_id()
        start_time = time.monotonic()
        max_retries = self._config.retries

        self._log(
            "debug",
            "HTTP request starting",
            {
                "request_id": request_id,
                "method": method,
                "url": url,
                "has_data": bool(request_config.data),
            },
        )

        last_error: Optional[ProxyCheckError] = None
        attempts = 0

        for attempt in range(max_retries + 1):
            attempts = attempt + 1
            try:
                response = self._send(request_config)
            except ProxyCheckError as error:
                last_error = error

                # Don't retry on last attempt
                if attempt == max_retries:
                    break

                if not self._is_retryable_error(error):
                    break

                delay = self._calculate_delay(attempt, error)
                self._log(
                    "warn",
                    "HTTP request failed, retrying",
                    {
                        "request_id": request_id,
                        "method": method,
                        "url": url,
                        "retry_attempt": attempt + 1,
                        "max_retries": max_retries,
                        "delay_ms": delay,
                        "error": error.message,
                    },
                )
                self._sleep(delay / 1000)
                continue

            context = {
                "request_id": request_id,
                "method": method,
                "url": url,
                "status_code": response.status_code,
                "duration": int((time.monotonic() - start_time) * 1000),
            }
            if attempt > 0:
                context["retry_attempt"] = attempt
            self._log("info", "HTTP request completed", context)
            return self._parse_body(response)

        if self._logger is not None:
            self._logger.error(
                "HTTP request failed after all retries",
                last_error,
                {
                    "request_id": request_id,
                    "method": method,
                    "url": url,
                    "duration": int((time.monotonic() - start_time) * 1000),
                    "attempts": attempts,
                },
            )

        raise last_error

    def _with_params(self, url: str, params: Optional[Mapping[str, Any]]) -> str:
        query = _encode_pairs(params)
        if not query:
            return url
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{query}"

    def get(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make a GET request; ``params`` are appended to the query string."""
        return self.request(
            RequestConfig(method="GET", url=self._with_params(url, params), headers=headers or {})
        )

    def post(
        self,
        url: str,
        data: Optional[Union[str, Mapping[str, Any]]] = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make a POST request; mapping bodies are sent as JSON, strings as-is."""
        body = data
        if isinstance(data, Mapping):
            body = json.dumps(data)
        return self.request(
            RequestConfig(
                method="POST",
                url=self._with_params(url, params),
                data=body,
                headers=headers or {},
            )
        )

    def post_form(
        self,
        url: str,
        data: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make a POST request with a URL-encoded body; None values are skipped."""
        form_headers = {"Content-Type": FORM_CONTENT_TYPE}
        form_headers.update(headers or {})
        return self.request(
            RequestConfig(
                method="POST",
                url=self._with_params(url, params),
                data=_encode_pairs(data),
                headers=form_headers,
            )
        )

    def _relative_target(self, path: str, params: Optional[Mapping[str, Any]]) -> str:
        parts = urlsplit(urljoin(f"{self._config.origin}/", path))
        query = "&".join(part for part in (parts.query, _encode_pairs(params)) if part)
        result = parts.path + (f"?{query}" if query else "")
        return result[1:] if result.startswith("/") else result

    def build_url(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """
        Build a relative request target for ``endpoint`` with ``params`` as its query.

        Example:
            >>> client.build_url("v2/", {"key": "K", "vpn": None})
            'v2/?key=K'
        """
        return self._relative_target(endpoint, params)

    def build_url_with_address(
        self, endpoint: str, address: str, params: Optional[Mapping[str, Any]] = None
    ) -> str:
        """Like :meth:`build_url` with the percent-encoded address as the last path segment."""
        clean_endpoint = endpoint[:-1] if endpoint.endswith("/") else endpoint
        path = f"{clean_endpoint}/{quote(address, safe=_ADDRESS_SAFE)}"
        return self._relative_target(path, params)

    def get_config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
