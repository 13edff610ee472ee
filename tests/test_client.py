"""
Tests for ProxyCheckClient.
"""

from unittest.mock import patch

import pytest

from proxycheck import (
    ClientConfig,
    ProxyCheckClient,
    RateLimitInfo,
    ValidationError,
    __version__,
)
from proxycheck.services import CheckService, ListingService, RulesService, StatsService


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv("PROXYCHECK_API_KEY", raising=False)


class TestProxyCheckClient:
    """Test cases for the client facade."""

    def test_initialization(self):
        client = ProxyCheckClient(api_key="K")

        assert isinstance(client.check, CheckService)
        assert isinstance(client.listing, ListingService)
        assert isinstance(client.rules, RulesService)
        assert isinstance(client.stats, StatsService)
        assert client.get_api_key() == "K"
        assert client.is_configured() is True
        assert client.get_rate_limit_info() is None

    def test_from_config_object(self):
        client = ProxyCheckClient(ClientConfig(api_key="K", retries=1))

        assert client.get_config().retries == 1
        assert client.get_http_client().get_config().retries == 1

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("PROXYCHECK_API_KEY", "env-key")

        assert ProxyCheckClient().get_api_key() == "env-key"

    def test_missing_api_key(self):
        with pytest.raises(ValidationError):
            ProxyCheckClient()

    def test_client_info(self):
        client = ProxyCheckClient(api_key="K", tls_security=False)

        assert client.get_client_info() == {
            "version": __version__,
            "base_url": "http://proxycheck.io",
            "tls_enabled": False,
            "configured": True,
        }

    def test_client_info_includes_rate_limit(self, make_response):
        client = ProxyCheckClient(api_key="K")
        response = make_response(200, {"status": "ok"}, {"x-ratelimit-limit": "1000", "x-ratelimit-remaining": "999"})

        with patch.object(client.get_http_client().session, "request", return_value=response):
            client.stats.get_usage()

        info = client.get_client_info()["rate_limit_info"]
        assert isinstance(info, RateLimitInfo)
        assert info.remaining == 999

    def test_update_config_rebuilds_http_client(self):
        client = ProxyCheckClient(api_key="K")
        before = client.get_http_client()

        client.update_config(timeout=1000, retries=0)

        after = client.get_http_client()
        assert after is not before
        assert after.get_config().timeout == 1000
        assert client.check.http is after

    def test_set_api_key(self, make_response):
        client = ProxyCheckClient(api_key="old")
        client.set_api_key("new")

        with patch.object(
            client.get_http_client().session, "request", return_value=make_response(200, {"status": "ok"})
        ) as mock_request:
            client.stats.get_usage()

        assert mock_request.call_args[0][1].endswith("?key=new")

    def test_context_manager_closes_session(self):
        client = ProxyCheckClient(api_key="K")

        with patch.object(client.get_http_client().session, "close") as mock_close:
            with client as entered:
                assert entered is client
            mock_close.assert_called_once()

    def test_close(self):
        client = ProxyCheckClient(api_key="K")

        with patch.object(client.get_http_client().session, "close") as mock_close:
            client.close()

        mock_close.assert_called_once()
