"""Unit tests for the HTTP client wrapper."""

import httpx
import pytest

from vendor_feeds.fetcher.http_client import FeedHTTPClient


def test_timeouts_are_configurable():
    client = FeedHTTPClient(connect_timeout=2.0, read_timeout=30.0)
    assert client.connect_timeout == 2.0
    assert client.read_timeout == 30.0
    assert client.verify_ssl is True


def test_context_manager_opens_and_closes():
    with FeedHTTPClient(connect_timeout=1.0, read_timeout=5.0) as client:
        assert isinstance(client._client, httpx.Client)
        assert client._client.timeout.connect == 1.0
        assert client._client.timeout.read == 5.0
    assert client._client is None


def test_request_outside_context_fails():
    with pytest.raises(RuntimeError, match="Client not initialized"):
        FeedHTTPClient().request("GET", "http://feed.test")


def test_request_passes_params_and_headers():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["header"] = request.headers["X-Key"]
        return httpx.Response(200, json={"ok": True})

    client = FeedHTTPClient()
    client._client = httpx.Client(transport=httpx.MockTransport(handler))
    response = client.request("GET", "http://feed.test/p", params={"page": 2}, headers={"X-Key": "v"})

    assert response.json() == {"ok": True}
    assert seen == {"url": "http://feed.test/p?page=2", "header": "v"}


def test_download_raises_on_error_status():
    client = FeedHTTPClient()
    client._client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(404)))

    with pytest.raises(httpx.HTTPStatusError):
        client.download("http://cdn.test/x.jpg")


def test_download_returns_bytes():
    client = FeedHTTPClient()
    client._client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"img")))

    assert client.download("http://cdn.test/x.jpg") == b"img"
