"""Partner feed download with retries and soft failure."""

import asyncio
from typing import Optional

import httpx

from partner_import.fetcher.http_client import AsyncHTTPClient
from partner_import.fetcher.retry_handler import RetryHandler
from partner_import.models.data_models import FetchResult, FetchStatus
from partner_import.monitoring.logger import StructuredLogger


XML_DECLARATION = b"<?xml"


class FeedFetcher:
    """
    Downloads a partner XML feed.

    Never raises for transport problems: every outcome is reported as a
    FetchResult. Only a 200 response whose body carries an XML declaration
    counts as data; anything else yields empty content.
    """

    def __init__(
        self,
        http_client: AsyncHTTPClient,
        retry_handler: Optional[RetryHandler] = None,
        logger: Optional[StructuredLogger] = None
    ):
        self.http_client = http_client
        self.retry_handler = retry_handler or RetryHandler()
        self.logger = logger

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch the feed at ``url``.

        Returns:
            FetchResult with status OK and the body, EMPTY when the server
            answered without XML, or ERROR with the failure description
        """
        loop = asyncio.get_running_loop()
        start = loop.time()

        try:
            response = await self.retry_handler.execute(
                self._get, url, on_error=lambda e, attempt: self._log_error(url, e, attempt)
            )
        except httpx.HTTPStatusError as e:
            return FetchResult(
                url=url,
                status=FetchStatus.ERROR,
                status_code=e.response.status_code,
                error=f"HTTP {e.response.status_code}",
                duration=loop.time() - start,
            )
        except httpx.HTTPError as e:
            return FetchResult(
                url=url,
                status=FetchStatus.ERROR,
                error=str(e) or type(e).__name__,
                duration=loop.time() - start,
            )

        content = response.content
        if XML_DECLARATION not in content:
            return FetchResult(
                url=url,
                status=FetchStatus.EMPTY,
                status_code=response.status_code,
                duration=loop.time() - start,
            )

        return FetchResult(
            url=url,
            status=FetchStatus.OK,
            content=content,
            status_code=response.status_code,
            duration=loop.time() - start,
        )

    async def _get(self, url: str) -> httpx.Response:
        response = await self.http_client.get_feed(url)
        if response.status_code != 200:
            raise httpx.HTTPStatusError(
                f"Unexpected status {response.status_code} for {url}",
                request=response.request,
                response=response,
            )
        return response

    def _log_error(self, url: str, error: Exception, attempt: int) -> None:
        if not self.logger:
            return
        status = None
        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
        message = "timeout" if isinstance(error, httpx.TimeoutException) else str(error)
        self.logger.fetch_error(url=url, status=status, error=message, attempt=attempt)
