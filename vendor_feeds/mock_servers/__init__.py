"""Mock vendor feed for testing."""

from .app import build_catalog, create_app, create_mock_feed

__all__ = ["build_catalog", "create_app", "create_mock_feed"]
