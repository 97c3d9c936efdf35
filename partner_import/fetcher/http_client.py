"""httpx client used to download partner feeds."""

from typing import Optional

import httpx


FEED_MEDIA_TYPES = "application/xml, text/xml;q=0.9, */*;q=0.1"


class AsyncHTTPClient:
    """
    Feed download session over httpx.AsyncClient.

    Partner feed URLs are plain GET endpoints that sometimes move, so
    redirects are followed. A slow partner server is bounded by the read
    timeout, an unreachable one by the connect timeout. Each request
    identifies the importer and asks for XML.
    """

    USER_AGENT = "partner-import/1.0"

    def __init__(
        self,
        connect_timeout: float = 3.0,
        read_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            connect_timeout: Seconds to reach the partner server
            read_timeout: Seconds to wait between chunks of the feed body
            transport: Replaces the network, e.g. httpx.MockTransport or
                httpx.ASGITransport in tests
        """
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.connect_timeout, read=self.read_timeout),
            transport=self.transport,
            follow_redirects=True,
            headers={"User-Agent": self.USER_AGENT, "Accept": FEED_MEDIA_TYPES},
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_feed(self, url: str) -> httpx.Response:
        """Download the feed at ``url``; the caller judges the status code."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        return await self._client.get(url)
