"""Error taxonomy for the feed import pipeline.

ConfigError is fatal and raised before any I/O. The other kinds are
per-page or per-record: they are recorded in results and never abort a batch.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class FeedImportError(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        code: Error code (e.g., "UNKNOWN_VENDOR")
        message: Human-readable message
        details: Additional context
    """

    default_code = "FEED_IMPORT_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable record."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class ConfigError(FeedImportError):
    """Unknown vendor key, missing required config field, unreadable data file."""

    default_code = "CONFIG_ERROR"


class FetchError(FeedImportError):
    """Network failure, non-200 status or undecodable page body."""

    default_code = "FETCH_ERROR"


class DataQualityError(FeedImportError):
    """A record is missing its identity or another required field."""

    default_code = "DATA_QUALITY_ERROR"


class SinkError(FeedImportError):
    """The content store rejected a create or update."""

    default_code = "SINK_ERROR"


class AssetError(FeedImportError):
    """An image could not be downloaded or found."""

    default_code = "ASSET_ERROR"
