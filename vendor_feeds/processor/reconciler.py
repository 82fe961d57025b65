"""Upsert engine: reconciles normalized records against the record sink."""

from typing import Any, Dict, List, Optional

from vendor_feeds.models.config import VendorConfig
from vendor_feeds.models.data_models import (
    VENDOR_NAME_FIELD,
    NormalizedRecord,
    UpsertAction,
    UpsertResult,
)
from vendor_feeds.models.errors import SinkError
from vendor_feeds.monitoring.logger import StructuredLogger
from vendor_feeds.processor.assets import AssetResolver
from vendor_feeds.processor.mapper import identity_value
from vendor_feeds.sink.base import RecordSink


def _taxonomy_terms(value: Any) -> List[str]:
    values = value if isinstance(value, list) else [value]
    terms = []
    for item in values:
        if item is None or isinstance(item, (dict, list)):
            continue
        term = str(item).strip()
        if term:
            terms.append(term)
    return terms


def _gallery(asset_ids: List[int]) -> List[int]:
    """Assets after the primary one, in order, without duplicates or the primary."""
    primary = asset_ids[0]
    gallery: List[int] = []
    for asset_id in asset_ids[1:]:
        if asset_id != primary and asset_id not in gallery:
            gallery.append(asset_id)
    return gallery


class Reconciler:
    """
    Creates or updates one sink record per identity (vendor name, identity value).

    The find-then-write sequence is not atomic: two concurrent invocations
    upserting the same new identity can both miss in find_by_identity. Sinks
    that must hold the invariant under concurrency reject the second create
    (InMemorySink does), which surfaces here as an errored result.
    """

    def __init__(
        self,
        sink: RecordSink,
        asset_resolver: Optional[AssetResolver] = None,
        logger: Optional[StructuredLogger] = None
    ):
        self.sink = sink
        self.asset_resolver = asset_resolver
        self.logger = logger

    def upsert(
        self,
        normalized: NormalizedRecord,
        vendor: VendorConfig,
        raw: Optional[Dict[str, Any]] = None,
        flat: bool = False
    ) -> UpsertResult:
        """
        Upsert a normalized record.

        Args:
            normalized: Output of the field mapper
            vendor: Vendor configuration
            raw: Raw record, used when the identity path is not mapped
            flat: Raw record is keyed by column name (CSV)

        Returns:
            UpsertResult with action created, updated or errored
        """
        identity = identity_value(normalized, vendor, raw, flat)
        if not identity:
            return self._finish(vendor, UpsertResult(
                action=UpsertAction.ERRORED,
                record_id=None,
                message=f"Missing identity field '{vendor.identity_field}'",
            ))

        try:
            result = self._write(normalized, vendor, identity)
        except SinkError as e:
            result = UpsertResult(action=UpsertAction.ERRORED, record_id=None, message=e.message, identity=identity)
        return self._finish(vendor, result)

    def _write(self, normalized: NormalizedRecord, vendor: VendorConfig, identity: str) -> UpsertResult:
        vendor_name = normalized.get(VENDOR_NAME_FIELD, vendor.name)
        title = normalized.get(vendor.title_field, "")
        fields = {
            "title": title,
            "body": normalized.get(vendor.body_field, ""),
            "vendor": vendor_name,
            "identity": identity,
        }

        existing_id = self.sink.find_by_identity(vendor_name, identity)
        if existing_id is not None:
            self.sink.update_record(existing_id, fields)
            record_id, action = existing_id, UpsertAction.UPDATED
        else:
            record_id, action = self.sink.create_record(fields), UpsertAction.CREATED

        attributes = {
            key: value
            for key, value in normalized.items()
            if key not in (vendor.title_field, vendor.body_field)
        }
        attributes[vendor.identity_attribute] = identity
        self.sink.set_attributes(record_id, attributes)

        for target_field, taxonomy in vendor.taxonomy_mapping.items():
            for term in _taxonomy_terms(normalized.get(target_field)):
                self.sink.attach_taxonomy(record_id, taxonomy, term)

        if self.asset_resolver is not None:
            self._attach_images(record_id, normalized, vendor)

        verb = "Created" if action == UpsertAction.CREATED else "Updated"
        return UpsertResult(
            action=action,
            record_id=record_id,
            message=f"{verb}: {title or identity} ({vendor.identity_attribute}: {identity})",
            identity=identity,
        )

    def _attach_images(self, record_id: int, normalized: NormalizedRecord, vendor: VendorConfig) -> None:
        asset_ids: List[int] = []
        for image_field in vendor.image_fields:
            if image_field in normalized:
                asset_ids.extend(self.asset_resolver.resolve_many(normalized[image_field], record_id))
        if not asset_ids:
            return
        self.sink.set_primary_image(record_id, asset_ids[0])
        gallery = _gallery(asset_ids)
        if gallery:
            self.sink.set_gallery(record_id, gallery)

    def _finish(self, vendor: VendorConfig, result: UpsertResult) -> UpsertResult:
        if self.logger:
            self.logger.record_outcome(
                vendor=vendor.name,
                identity=result.identity,
                action=result.action.value,
                record_id=result.record_id,
                message=result.message,
            )
        return result
