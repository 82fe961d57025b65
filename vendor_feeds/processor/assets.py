"""Resolves textual image references to stored asset ids."""

import posixpath
from typing import Any, List, Optional, Tuple
from urllib.parse import urlparse

from vendor_feeds.models.errors import AssetError
from vendor_feeds.monitoring.logger import StructuredLogger
from vendor_feeds.processor.handlers import split_list
from vendor_feeds.sink.base import AssetStore


def split_references(value: Any) -> List[str]:
    """
    Split an image field into individual references.

    Strings are split on ',', ';' and '|'; lists are flattened the same way.
    Empty tokens are dropped.
    """
    if isinstance(value, list):
        references: List[str] = []
        for item in value:
            if isinstance(item, str):
                references.extend(split_list(item))
            elif item is not None and not isinstance(item, (dict, list)):
                references.append(str(item))
        return references
    if isinstance(value, str):
        return split_list(value)
    return []


class AssetResolver:
    """
    Resolves references in fixed priority order:

    1. filename match against stored assets
    2. download, when the reference is an absolute URL
    3. exact path relative to the asset root, otherwise
    """

    def __init__(self, store: AssetStore, logger: Optional[StructuredLogger] = None):
        self.store = store
        self.logger = logger
        self.missing: List[Tuple[Optional[int], str]] = []

    def resolve(self, reference: str, owner_id: Optional[int] = None) -> Optional[int]:
        """
        Resolve a single reference.

        Args:
            reference: Filename, URL or relative path
            owner_id: Id of the record the image belongs to, for logging

        Returns:
            Asset id, or None if the reference could not be resolved
        """
        reference = reference.strip()
        if not reference:
            return None

        try:
            parsed = urlparse(reference)
        except ValueError as e:
            if self.logger:
                self.logger.warning("asset_reference_invalid", record_id=owner_id, reference=reference, error=str(e))
            self._mark_missing(reference, owner_id)
            return None

        absolute = parsed.scheme in ("http", "https") and bool(parsed.netloc)
        basename = posixpath.basename(parsed.path if absolute else reference)
        asset_id = self.store.find_by_filename(basename)

        if asset_id is None:
            if absolute:
                try:
                    asset_id = self.store.import_from_url(reference)
                except AssetError as e:
                    if self.logger:
                        self.logger.warning("asset_download_failed", record_id=owner_id, reference=reference, error=e.message)
            else:
                asset_id = self.store.find_by_path(reference)

        if asset_id is None:
            self._mark_missing(reference, owner_id)
        return asset_id

    def _mark_missing(self, reference: str, owner_id: Optional[int]) -> None:
        self.missing.append((owner_id, reference))
        if self.logger:
            self.logger.asset_missing(owner_id, reference)

    def resolve_many(self, value: Any, owner_id: Optional[int] = None) -> List[int]:
        """Resolve every reference in a delimited string or list, in order."""
        asset_ids = []
        for reference in split_references(value):
            asset_id = self.resolve(reference, owner_id)
            if asset_id is not None:
                asset_ids.append(asset_id)
        return asset_ids
