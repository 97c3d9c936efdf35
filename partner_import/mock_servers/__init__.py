"""Mock partner feed server for testing."""

from .app import build_sample_feed, create_app, create_feed_app, load_feeds

__all__ = ["build_sample_feed", "create_app", "create_feed_app", "load_feeds"]
