"""
Tests for the HttpClient retry engine.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from proxycheck import (
    APIError,
    AuthenticationError,
    ClientConfig,
    HttpClient,
    NetworkError,
    RateLimitError,
    RequestConfig,
    RequestTimeoutError,
    ValidationError,
)


class TestRequest:
    """Test cases for HttpClient.request and its retry loop."""

    def test_single_clean_ip(self, http_client, make_response):
        """A clean lookup succeeds in one attempt and records rate-limit headers."""
        body = {"status": "ok", "8.8.8.8": {"proxy": "no"}}
        response = make_response(
            200,
            body,
            {"x-ratelimit-limit": "1000", "x-ratelimit-remaining": "998", "x-ratelimit-reset": "1700000000"},
        )

        with patch.object(http_client.session, "request", return_value=response) as mock_request:
            result = http_client.get("v2/8.8.8.8?key=K&node=1&port=1&seen=1")

        assert result == body
        mock_request.assert_called_once()
        method, url = mock_request.call_args[0]
        assert method == "GET"
        assert url == "https://proxycheck.io/v2/8.8.8.8?key=K&node=1&port=1&seen=1"
        assert mock_request.call_args[1]["timeout"] == 5

        info = http_client.get_rate_limit_info()
        assert info.limit == 1000
        assert info.remaining == 998
        assert info.reset.timestamp() == 1700000000

    def test_transient_503_then_success(self, http_client, make_response):
        """A 503 is retried once after an exponential backoff delay."""
        responses = [make_response(503, {"status": "error"}), make_response(200, {"status": "ok"})]

        with patch.object(http_client.session, "request", side_effect=responses) as mock_request, \
                patch.object(http_client, "_sleep") as mock_sleep:
            result = http_client.get("v2/1.2.3.4")

        assert result == {"status": "ok"}
        assert mock_request.call_count == 2
        mock_sleep.assert_called_once()
        delay = mock_sleep.call_args[0][0]
        assert 1.0 <= delay < 2.0

    def test_hard_400_is_not_retried(self, http_client, make_response):
        """A 400 raises immediately without any backoff."""
        response = make_response(400, {"status": "error", "message": "Bad request"})

        with patch.object(http_client.session, "request", return_value=response) as mock_request, \
                patch.object(http_client, "_sleep") as mock_sleep:
            with pytest.raises(APIError) as exc_info:
                http_client.get("v2/1.2.3.4")

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Bad request"
        assert mock_request.call_count == 1
        mock_sleep.assert_not_called()

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404])
    def test_client_errors_make_one_attempt(self, http_client, make_response, status_code):
        response = make_response(status_code, {"status": "denied"})

        with patch.object(http_client.session, "request", return_value=response) as mock_request, \
                patch.object(http_client, "_sleep"):
            with pytest.raises((APIError, AuthenticationError)):
                http_client.get("v2/1.2.3.4")

        assert mock_request.call_count == 1

    def test_401_raises_authentication_error(self, http_client, make_response):
        response = make_response(401, {"status": "denied", "message": "Invalid key"})

        with patch.object(http_client.session, "request", return_value=response):
            with pytest.raises(AuthenticationError) as exc_info:
                http_client.get("v2/1.2.3.4")

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid key"

    @pytest.mark.parametrize("status_code", [500, 502, 503])
    def test_server_errors_retry_up_to_maximum(self, http_client, make_response, status_code):
        with patch.object(
            http_client.session, "request", side_effect=lambda *a, **kw: make_response(status_code)
        ) as mock_request, patch.object(http_client, "_sleep") as mock_sleep:
            with pytest.raises(APIError) as exc_info:
                http_client.get("v2/1.2.3.4")

        assert exc_info.value.status_code == status_code
        assert mock_request.call_count == 4
        assert mock_sleep.call_count == 3

    def test_rate_limit_uses_retry_after(self, http_client, make_response):
        """The server-dictated delay replaces the exponential backoff."""
        responses = [
            make_response(429, {"status": "denied"}, {"retry-after": "5", "x-ratelimit-limit": "100"}),
            make_response(200, {"status": "ok"}),
        ]

        with patch.object(http_client.session, "request", side_effect=responses), \
                patch.object(http_client, "_sleep") as mock_sleep:
            result = http_client.get("v2/1.2.3.4")

        assert result == {"status": "ok"}
        mock_sleep.assert_called_once_with(5.0)

    def test_network_error_exhausts_retries(self, http_client):
        """A persistent connection failure makes retries + 1 attempts, then raises."""
        with patch.object(
            http_client.session, "request", side_effect=requests.ConnectionError("refused")
        ) as mock_request, patch.object(http_client, "_sleep") as mock_sleep:
            with pytest.raises(NetworkError) as exc_info:
                http_client.get("v2/1.2.3.4")

        assert mock_request.call_count == 4
        assert mock_sleep.call_count == 3
        assert isinstance(exc_info.value.original_error, requests.ConnectionError)
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_timeout_is_retried(self, http_client, make_response):
        responses = [requests.Timeout("read timed out"), make_response(200, {"status": "ok"})]

        with patch.object(http_client.session, "request", side_effect=responses) as mock_request, \
                patch.object(http_client, "_sleep"):
            result = http_client.get("v2/1.2.3.4")

        assert result == {"status": "ok"}
        assert mock_request.call_count == 2

    def test_timeout_error_carries_configured_timeout(self, make_response):
        client = HttpClient(ClientConfig(api_key="k", timeout=2500, retries=0))

        with patch.object(client.session, "request", side_effect=requests.Timeout("timed out")):
            with pytest.raises(RequestTimeoutError) as exc_info:
                client.get("v2/1.2.3.4")

        assert exc_info.value.timeout == 2500

    def test_zero_retries_makes_one_attempt(self, make_response):
        client = HttpClient(ClientConfig(api_key="k", retries=0))

        with patch.object(client.session, "request", return_value=make_response(503)) as mock_request, \
                patch.object(client, "_sleep") as mock_sleep:
            with pytest.raises(APIError):
                client.get("v2/1.2.3.4")

        assert mock_request.call_count == 1
        mock_sleep.assert_not_called()

    def test_non_json_body_is_returned_as_text(self, http_client, make_response):
        with patch.object(http_client.session, "request", return_value=make_response(200, "plain text")):
            assert http_client.get("dashboard/export/usage/") == "plain text"

    def test_logs_retries_and_terminal_failure(self, config, make_response):
        logger = Mock()
        client = HttpClient(config, logger)

        with patch.object(client.session, "request", side_effect=lambda *a, **kw: make_response(500)), \
                patch.object(client, "_sleep"):
            with pytest.raises(APIError):
                client.request(RequestConfig(method="GET", url="v2/1.2.3.4"))

        assert logger.warn.call_count == 3
        retry_context = logger.warn.call_args_list[0][0][1]
        assert retry_context["retry_attempt"] == 1
        assert retry_context["max_retries"] == 3
        assert 1000 <= retry_context["delay_ms"] < 2000

        logger.error.assert_called_once()
        message, error, context = logger.error.call_args[0]
        assert message == "HTTP request failed after all retries"
        assert isinstance(error, APIError)
        assert context["attempts"] == 4
        assert context["method"] == "GET"
        assert "duration" in context


class TestBackoff:
    """Test cases for the backoff calculation."""

    @pytest.mark.parametrize("attempt", [0, 1, 2])
    @pytest.mark.parametrize("jitter", [0.0, 0.5, 0.999])
    def test_delay_bounds(self, http_client, attempt, jitter):
        error = APIError("server error", 500)

        with patch("proxycheck.http_client.random.random", return_value=jitter):
            delay = http_client._calculate_delay(attempt, error)

        base = 1000 * 2**attempt
        assert base <= delay < base + 1000

    def test_rate_limit_overrides_backoff(self, http_client):
        error = RateLimitError("Rate limit exceeded", 100, 0, None, 7)

        assert http_client._calculate_delay(3, error) == 7000

    def test_retryable_classification(self, http_client):
        assert http_client._is_retryable_error(RateLimitError("limited", 1, 0, None, 1))
        assert http_client._is_retryable_error(APIError("down", 503))
        assert http_client._is_retryable_error(NetworkError("offline"))
        assert http_client._is_retryable_error(RequestTimeoutError("slow", 100))
        assert not http_client._is_retryable_error(APIError("bad", 400))
        assert not http_client._is_retryable_error(AuthenticationError())


class TestRateLimitInfo:
    """Test cases for the rate-limit snapshot."""

    def test_absent_before_first_response(self, http_client):
        assert http_client.get_rate_limit_info() is None

    def test_snapshot_is_replaced_not_merged(self, http_client, make_response):
        first = make_response(
            200,
            {"status": "ok"},
            {"x-ratelimit-limit": "1000", "x-ratelimit-remaining": "10", "retry-after": "3"},
        )
        second = make_response(200, {"status": "ok"}, {"x-ratelimit-limit": "500"})

        with patch.object(http_client.session, "request", side_effect=[first, second]):
            http_client.get("v2/1.2.3.4")
            assert http_client.get_rate_limit_info().retry_after == 3
            http_client.get("v2/1.2.3.4")

        info = http_client.get_rate_limit_info()
        assert info.limit == 500
        assert info.remaining == 0
        assert info.retry_after == 0
        assert info.reset.timestamp() == 0

    def test_responses_without_headers_keep_snapshot(self, http_client, make_response):
        first = make_response(200, {"status": "ok"}, {"x-ratelimit-limit": "1000", "x-ratelimit-remaining": "5"})
        second = make_response(200, {"status": "ok"})

        with patch.object(http_client.session, "request", side_effect=[first, second]):
            http_client.get("v2/1.2.3.4")
            http_client.get("v2/1.2.3.4")

        assert http_client.get_rate_limit_info().remaining == 5

    def test_millisecond_reset_does_not_fail_success(self, http_client, make_response):
        """A reset header too large for a timestamp is recorded as the epoch."""
        response = make_response(
            200,
            {"status": "ok"},
            {"x-ratelimit-limit": "1000", "x-ratelimit-remaining": "998", "x-ratelimit-reset": "1700000000000"},
        )

        with patch.object(http_client.session, "request", return_value=response):
            assert http_client.get("v2/1.2.3.4") == {"status": "ok"}

        info = http_client.get_rate_limit_info()
        assert info.remaining == 998
        assert info.reset.timestamp() == 0

    def test_millisecond_reset_keeps_rate_limit_retries(self, http_client, make_response):
        response = make_response(
            429, {"status": "denied"}, {"x-ratelimit-limit": "1000", "x-ratelimit-reset": "1700000000000"}
        )

        with patch.object(http_client.session, "request", return_value=response) as mock_request, \
                patch.object(http_client, "_sleep"):
            with pytest.raises(RateLimitError):
                http_client.get("v2/1.2.3.4")

        assert mock_request.call_count == 4

    def test_error_responses_update_snapshot(self, http_client, make_response):
        response = make_response(403, {"status": "denied"}, {"x-ratelimit-limit": "100", "x-ratelimit-remaining": "0"})

        with patch.object(http_client.session, "request", return_value=response):
            with pytest.raises(APIError):
                http_client.get("v2/1.2.3.4")

        assert http_client.get_rate_limit_info().limit == 100


class TestRequestMethods:
    """Test cases for get, post and post_form."""

    def test_post_form_encodes_body(self, http_client, make_response):
        with patch.object(http_client.session, "request", return_value=make_response(200, {"status": "ok"})) as mock_request:
            http_client.post_form("v2/?key=K", {"ips": "1.2.3.4,5.6.7.8", "tag": "my tag", "skip": None})

        kwargs = mock_request.call_args[1]
        assert mock_request.call_args[0][0] == "POST"
        assert kwargs["data"] == b"ips=1.2.3.4%2C5.6.7.8&tag=my+tag"
        assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"

    def test_post_sends_json_for_mappings(self, http_client, make_response):
        with patch.object(http_client.session, "request", return_value=make_response(200, {"status": "ok"})) as mock_request:
            http_client.post("v2/", {"name": "value"})

        assert mock_request.call_args[1]["data"] == b'{"name": "value"}'

    def test_get_appends_params(self, http_client, make_response):
        with patch.object(http_client.session, "request", return_value=make_response(200, {"status": "ok"})) as mock_request:
            http_client.get("v2/?key=K", {"vpn": 1, "asn": None})

        assert mock_request.call_args[0][1] == "https://proxycheck.io/v2/?key=K&vpn=1"

    def test_default_headers(self, http_client):
        assert http_client.session.headers["User-Agent"] == "proxycheck-python/0.9.0"
        assert http_client.session.headers["Accept"] == "application/json"


class TestBuildUrl:
    """Test cases for URL construction."""

    def test_build_url_skips_none_and_strips_slash(self, http_client):
        url = http_client.build_url("v2/", {"key": "K", "vpn": None, "asn": 1, "node": 1})

        assert url == "v2/?key=K&asn=1&node=1"

    def test_build_url_leading_slash_endpoint(self, http_client):
        assert http_client.build_url("/dashboard/export/usage/", {"key": "K"}) == "dashboard/export/usage/?key=K"

    def test_build_url_without_params(self, http_client):
        assert http_client.build_url("dashboard/lists/print/", {}) == "dashboard/lists/print/"

    def test_build_url_renders_booleans(self, http_client):
        assert http_client.build_url("v2/", {"flag": True}) == "v2/?flag=true"

    def test_build_url_with_address(self, http_client):
        url = http_client.build_url_with_address("v2/", "8.8.8.8", {"key": "K", "risk": None, "seen": 1})

        assert url == "v2/8.8.8.8?key=K&seen=1"

    def test_build_url_with_address_encodes_email(self, http_client):
        url = http_client.build_url_with_address("v2", "user@example.com", {"key": "K"})

        assert url == "v2/user%40example.com?key=K"

    def test_build_url_with_ipv6_address(self, http_client):
        url = http_client.build_url_with_address("v2/", "2001:db8::1", {})

        assert url == "v2/2001%3Adb8%3A%3A1"

    def test_plain_http_when_tls_disabled(self, make_response):
        client = HttpClient(ClientConfig(api_key="k", tls_security=False))

        with patch.object(client.session, "request", return_value=make_response(200, {"status": "ok"})) as mock_request:
            client.get(client.build_url("v2/", {"key": "k"}))

        assert mock_request.call_args[0][1] == "http://proxycheck.io/v2/?key=k"


class TestConstruction:
    """Test cases for HttpClient construction."""

    def test_negative_retries_are_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            HttpClient(ClientConfig(api_key="k", retries=-1))

        assert [item["path"] for item in exc_info.value.validation_errors] == ["retries"]

    def test_config_values_are_coerced(self):
        client = HttpClient(ClientConfig(api_key="k", timeout=2500))

        assert client.get_config().timeout == 2500.0
        assert isinstance(client.get_config().timeout, float)
