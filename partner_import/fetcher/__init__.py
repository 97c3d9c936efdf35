"""Feed download module with timeouts and retries."""

from .feed_fetcher import FeedFetcher
from .http_client import AsyncHTTPClient
from .retry_handler import RetryHandler

__all__ = ["AsyncHTTPClient", "FeedFetcher", "RetryHandler"]
