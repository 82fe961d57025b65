"""Interfaces of the storage collaborators.

The pipeline expresses intent only through these operations; it never embeds
a store-specific query language. Implementations signal write failures by
raising SinkError and download failures by raising AssetError.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class RecordSink(ABC):
    """Content store holding one record per (vendor, identity)."""

    @abstractmethod
    def find_by_identity(self, vendor: str, identity: str) -> Optional[int]:  # pragma: no cover - interface
        """Return the id of the record stored for this identity, if any."""

    @abstractmethod
    def create_record(self, fields: Dict[str, Any]) -> int:  # pragma: no cover - interface
        """Create a record and return its id."""

    @abstractmethod
    def update_record(self, record_id: int, fields: Dict[str, Any]) -> None:  # pragma: no cover - interface
        """Overwrite the title/body slots of an existing record."""

    @abstractmethod
    def set_attributes(self, record_id: int, attributes: Dict[str, Any]) -> None:  # pragma: no cover - interface
        """Write generic key/value attributes."""

    @abstractmethod
    def attach_taxonomy(self, record_id: int, taxonomy: str, value: str) -> None:  # pragma: no cover - interface
        """Attach a category/tag term."""

    @abstractmethod
    def set_primary_image(self, record_id: int, asset_id: int) -> None:  # pragma: no cover - interface
        """Set the featured image."""

    @abstractmethod
    def set_gallery(self, record_id: int, asset_ids: List[int]) -> None:  # pragma: no cover - interface
        """Replace the gallery with the given asset ids."""


class AssetStore(ABC):
    """Binary asset storage with lookup by filename or relative path."""

    @abstractmethod
    def find_by_filename(self, name: str) -> Optional[int]:  # pragma: no cover - interface
        """First stored asset whose path contains name."""

    @abstractmethod
    def find_by_path(self, path: str) -> Optional[int]:  # pragma: no cover - interface
        """Stored asset with exactly this path relative to the asset root."""

    @abstractmethod
    def import_from_url(self, url: str) -> int:  # pragma: no cover - interface
        """Download url into the store and return the new asset id."""
