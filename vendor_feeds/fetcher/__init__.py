"""HTTP fetching of paginated vendor feeds."""

from .http_client import FeedHTTPClient
from .paginator import PaginationFetcher

__all__ = ["FeedHTTPClient", "PaginationFetcher"]
