"""
Shared fixtures for the proxycheck tests.
"""

import json

import pytest
import requests

from proxycheck import ClientConfig, HttpClient


def _make_response(status_code=200, body=None, headers=None, url="https://proxycheck.io/v2/"):
    """Build a real requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    if body is None:
        response._content = b""
    elif isinstance(body, (dict, list)):
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = str(body).encode("utf-8")
    response.headers.update(headers or {})
    return response


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def config():
    return ClientConfig(api_key="test-api-key", timeout=5000, retries=3, retry_delay=1000)


@pytest.fixture
def http_client(config):
    client = HttpClient(config)
    yield client
    client.close()
