"""Storage collaborators: record sink and asset store."""

from .base import AssetStore, RecordSink
from .memory import InMemorySink, StoredRecord

__all__ = ["AssetStore", "InMemorySink", "RecordSink", "StoredRecord"]
