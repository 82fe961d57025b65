"""Import orchestrator coordinating fetch, mapping and upsert."""

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from vendor_feeds.fetcher.http_client import FeedHTTPClient
from vendor_feeds.fetcher.paginator import PaginationFetcher
from vendor_feeds.models.config import ImporterConfig, VendorConfig, VendorRegistry
from vendor_feeds.models.data_models import (
    BatchResult,
    DiagnosticResult,
    ErrorRecord,
    FetchResult,
    ImportResult,
    UpsertAction,
    UpsertResult,
)
from vendor_feeds.models.errors import ConfigError
from vendor_feeds.monitoring.logger import StructuredLogger
from vendor_feeds.processor.aggregator import ImportAggregator
from vendor_feeds.processor.assets import AssetResolver
from vendor_feeds.processor.csv_batch import CSVBatchProcessor, iter_records
from vendor_feeds.processor.mapper import identity_value, map_record
from vendor_feeds.processor.path_resolver import extract_records
from vendor_feeds.processor.reconciler import Reconciler
from vendor_feeds.sink.base import AssetStore, RecordSink


def load_data_file(path: str, data_path: str = "") -> List[Any]:
    """
    Load a vendor JSON data file.

    The file holds either a bare array of records or an envelope with the
    array under data_path, or else under products, data or items.

    Raises:
        ConfigError: If the file is missing, not JSON, or holds no record array
    """
    data_file = Path(path)
    if not data_file.is_file():
        raise ConfigError(f"JSON file not found: {path}", details={"file": path})
    try:
        with open(data_file, 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Invalid JSON format in {path}: {e}", details={"file": path}) from e

    records = extract_records(payload, data_path)
    if records is None:
        raise ConfigError(f"No record array found in {path}", details={"file": path})
    return records


class ImportOrchestrator:
    """Orchestrates imports for the configured vendors."""

    def __init__(
        self,
        config: ImporterConfig,
        sink: RecordSink,
        asset_store: Optional[AssetStore] = None,
        http_client: Optional[FeedHTTPClient] = None,
        logger: Optional[StructuredLogger] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Importer configuration
            sink: Record store receiving the normalized records
            asset_store: Asset store for image fields; images are skipped without one
            http_client: Open HTTP client to reuse; one is opened per fetch otherwise
            logger: Structured logger; built from the configuration if omitted
        """
        self.config = config
        self.vendors = VendorRegistry(config)
        self.sink = sink
        self.http_client = http_client
        self.logger = logger or StructuredLogger(
            level=config.log_level,
            structured=config.structured_logging,
        )
        self.asset_resolver = AssetResolver(asset_store, self.logger) if asset_store is not None else None
        self.reconciler = Reconciler(sink, self.asset_resolver, self.logger)
        self.csv_processor = CSVBatchProcessor(self.reconciler, self.logger)

        for key, vendor in self.vendors.items():
            for name in vendor.unknown_names():
                self.logger.warning("unknown_transform", vendor=key, detail=f"{name} passes values through")

    @contextmanager
    def _client(self, vendor: VendorConfig) -> Iterator[FeedHTTPClient]:
        if self.http_client is not None:
            yield self.http_client
            return
        with FeedHTTPClient(
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
            verify_ssl=vendor.verify_ssl,
        ) as client:
            yield client

    def fetch_feed(self, vendor_key: str) -> FetchResult:
        """
        Fetch every record of a remote vendor feed.

        Raises:
            ConfigError: If the vendor is unknown or its source is not a URL
        """
        vendor = self.vendors.get_vendor(vendor_key)
        if not vendor.is_remote:
            raise ConfigError(f"Vendor {vendor_key} has no HTTP source: {vendor.source}")
        with self._client(vendor) as client:
            return PaginationFetcher(client, self.logger).fetch(vendor)

    def save_feed(self, vendor_key: str, path: Optional[str] = None) -> Tuple[FetchResult, Optional[Path]]:
        """
        Fetch a remote feed and write its records to a JSON data file.

        Nothing is written when the fetch produced no records.

        Returns:
            The fetch result and the written path (None if nothing was written)
        """
        result = self.fetch_feed(vendor_key)
        if not result.records:
            self.logger.warning("feed_empty", vendor=vendor_key)
            return result, None

        output_path = Path(path) if path else Path(self.config.data_directory) / f"{vendor_key}-products.json"
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(result.records, f, indent=2, ensure_ascii=False)
        self.logger.log("feed_saved", vendor=vendor_key, records=len(result.records), path=str(output_path))
        return result, output_path

    def _load_records(self, vendor: VendorConfig) -> Tuple[List[Any], List[ErrorRecord]]:
        if vendor.is_remote:
            with self._client(vendor) as client:
                fetched = PaginationFetcher(client, self.logger).fetch(vendor)
            return fetched.records, fetched.errors
        return load_data_file(vendor.source, vendor.pagination.data_path), []

    def run_import(self, vendor_key: str, offset: int = 0, limit: int = 100) -> ImportResult:
        """
        Import a window of a vendor's records.

        Args:
            vendor_key: Configured vendor key
            offset: Records to skip
            limit: Maximum records to import

        Returns:
            ImportResult with created/updated/error counts and the message log

        Raises:
            ConfigError: Unknown vendor, invalid window or unreadable data file
        """
        vendor = self.vendors.get_vendor(vendor_key)
        if offset < 0 or limit <= 0:
            raise ConfigError(f"Invalid import window: offset={offset}, limit={limit}")

        self.logger.log("import_start", vendor=vendor_key, offset=offset, limit=limit)
        missing_before = self._missing_images()
        if vendor.is_csv:
            result = self._batch_to_import_result(
                vendor,
                self.csv_processor.process_batch(vendor.source, vendor, offset, limit),
                offset,
            )
        else:
            result = self._import_records(vendor, offset, limit)
        result.missing_images = self._missing_images() - missing_before

        self.logger.import_summary(
            vendor=vendor.name,
            created=result.created,
            updated=result.updated,
            errors=result.errors,
            missing_images=result.missing_images,
        )
        return result

    def _import_records(self, vendor: VendorConfig, offset: int, limit: int) -> ImportResult:
        aggregator = ImportAggregator(vendor.name)
        records, fetch_errors = self._load_records(vendor)
        aggregator.add_fetch_errors(fetch_errors)
        aggregator.add_message(f"{len(records)} records available, importing from offset {offset}")

        for position, raw in enumerate(records[offset:offset + limit], start=offset + 1):
            aggregator.add_outcome(self._import_record(raw, vendor), position)
        return aggregator.result()

    def _missing_images(self) -> int:
        return len(self.asset_resolver.missing) if self.asset_resolver is not None else 0

    def _import_record(self, raw: Any, vendor: VendorConfig, flat: bool = False) -> UpsertResult:
        if not isinstance(raw, dict):
            return UpsertResult(
                action=UpsertAction.ERRORED,
                record_id=None,
                message=f"Record is not an object: {type(raw).__name__}",
            )
        normalized = map_record(raw, vendor, flat=flat)
        return self.reconciler.upsert(normalized, vendor, raw=raw, flat=flat)

    @staticmethod
    def _batch_to_import_result(vendor: VendorConfig, batch: BatchResult, offset: int) -> ImportResult:
        aggregator = ImportAggregator(vendor.name)
        for position, outcome in enumerate(batch.outcomes, start=offset + 1):
            aggregator.add_outcome(outcome, position)
        return aggregator.result()

    def process_csv_batch(
        self,
        vendor_key: str,
        file_path: Optional[str] = None,
        offset: int = 0,
        batch_size: int = 10
    ) -> BatchResult:
        """
        Process one batch of a CSV file with a vendor's column mapping.

        Args:
            vendor_key: Configured vendor key
            file_path: CSV file; defaults to the vendor's configured source
            offset: Data rows to skip
            batch_size: Maximum rows to process
        """
        vendor = self.vendors.get_vendor(vendor_key)
        missing_before = self._missing_images()
        batch = self.csv_processor.process_batch(file_path or vendor.source, vendor, offset, batch_size)
        batch.missing_images = self._missing_images() - missing_before
        return batch

    def _find_raw(self, vendor: VendorConfig, identity: str) -> Tuple[Optional[Dict[str, Any]], bool]:
        if vendor.is_csv:
            for raw in iter_records(vendor.source):
                if identity_value(map_record(raw, vendor, flat=True), vendor, raw, flat=True) == identity:
                    return raw, True
            return None, True

        records, _ = self._load_records(vendor)
        for raw in records:
            if isinstance(raw, dict) and identity_value(map_record(raw, vendor), vendor, raw) == identity:
                return raw, False
        return None, False

    def test_single_product(self, vendor_key: str, identity: str, dry_run: bool = False) -> DiagnosticResult:
        """
        Trace one product through mapping and upsert for diagnostics.

        Args:
            vendor_key: Configured vendor key
            identity: Identity value to look for
            dry_run: Map the record without writing it to the sink

        Returns:
            DiagnosticResult with the raw record, normalized record and upsert result
        """
        vendor = self.vendors.get_vendor(vendor_key)
        raw, flat = self._find_raw(vendor, identity)
        if raw is None:
            return DiagnosticResult(
                vendor=vendor_key,
                identity=identity,
                raw=None,
                normalized=None,
                upsert=None,
                message=f"Product not found with identity: {identity}",
            )

        normalized = map_record(raw, vendor, flat=flat)
        upsert = None if dry_run else self.reconciler.upsert(normalized, vendor, raw=raw, flat=flat)
        self.logger.log("single_product_test", vendor=vendor_key, identity=identity, raw=raw, normalized=normalized)
        return DiagnosticResult(
            vendor=vendor_key,
            identity=identity,
            raw=raw,
            normalized=normalized,
            upsert=upsert,
            message="Test complete",
        )
