"""Unit tests for HTTP client wrapper."""

import httpx
import pytest

from partner_import.fetcher.http_client import AsyncHTTPClient


class TestAsyncHTTPClient:

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with AsyncHTTPClient() as client:
            assert client._client is not None
        assert client._client is None

    @pytest.mark.asyncio
    async def test_timeout_configuration(self):
        async with AsyncHTTPClient(connect_timeout=2.0, read_timeout=10.0) as client:
            timeout = client._client.timeout
            assert timeout.connect == 2.0
            assert timeout.read == 10.0

    @pytest.mark.asyncio
    async def test_get_feed_without_context_raises(self):
        client = AsyncHTTPClient()
        with pytest.raises(RuntimeError, match="not initialized"):
            await client.get_feed("http://feeds.test/acme.xml")

    @pytest.mark.asyncio
    async def test_get_feed_uses_transport(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"<?xml version='1.0'?><products/>")

        async with AsyncHTTPClient(transport=httpx.MockTransport(handler)) as client:
            response = await client.get_feed("http://feeds.test/acme.xml")

        assert response.status_code == 200
        assert seen[0].headers["User-Agent"] == AsyncHTTPClient.USER_AGENT
        assert seen[0].headers["Accept"].startswith("application/xml")

    @pytest.mark.asyncio
    async def test_follows_redirects(self):
        def handler(request):
            if request.url.path == "/old.xml":
                return httpx.Response(301, headers={"Location": "http://feeds.test/new.xml"})
            return httpx.Response(200, content=b"moved")

        async with AsyncHTTPClient(transport=httpx.MockTransport(handler)) as client:
            response = await client.get_feed("http://feeds.test/old.xml")

        assert response.status_code == 200
        assert response.content == b"moved"
