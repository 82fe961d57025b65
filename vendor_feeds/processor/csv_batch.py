"""Streaming, offset-resumable CSV import.

A long CSV import is driven in batches: each call skips `offset` data rows by
reading past them, processes at most `batch_size` rows and reports whether the
caller should ask for the next batch. Nothing is tracked between calls.
"""

import csv
from itertools import islice
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from vendor_feeds.models.config import VendorConfig
from vendor_feeds.models.data_models import BatchResult, CSVPreview, UpsertAction, UpsertResult
from vendor_feeds.models.errors import ConfigError, DataQualityError
from vendor_feeds.monitoring.logger import StructuredLogger
from vendor_feeds.processor.mapper import identity_value, map_record
from vendor_feeds.processor.reconciler import Reconciler


def _open_rows(file_path: str) -> Iterator[List[str]]:
    path = Path(file_path)
    if not path.is_file():
        raise ConfigError(f"CSV file not found: {file_path}", details={"file": file_path})
    # utf-8-sig drops the BOM Excel writes in front of the header row
    with open(path, 'r', encoding='utf-8-sig', newline='') as f:
        try:
            yield from csv.reader(f)
        except UnicodeDecodeError as e:
            raise ConfigError(
                f"{file_path} is not UTF-8 encoded: {e}",
                code="CSV_ENCODING",
                details={"file": file_path},
            ) from e


def row_to_record(headers: List[str], row: List[str]) -> Dict[str, str]:
    """
    Map cells to header names by position.

    Raises:
        DataQualityError: If the row's cell count differs from the header's
    """
    if len(row) != len(headers):
        raise DataQualityError(
            f"Expected {len(headers)} columns, found {len(row)}",
            details={"cells": len(row)},
        )
    return dict(zip(headers, row))


def iter_records(file_path: str) -> Iterator[Dict[str, str]]:
    """Yield every well-formed data row as a header -> cell mapping."""
    rows = _open_rows(file_path)
    try:
        headers = [header.strip() for header in next(rows, [])]
        for row in rows:
            if len(row) == len(headers):
                yield dict(zip(headers, row))
    finally:
        rows.close()


class CSVBatchProcessor:
    """Imports CSV rows through the field mapper and the reconciler."""

    def __init__(self, reconciler: Reconciler, logger: Optional[StructuredLogger] = None):
        self.reconciler = reconciler
        self.logger = logger

    def process_batch(
        self,
        file_path: str,
        vendor: VendorConfig,
        offset: int = 0,
        batch_size: int = 10
    ) -> BatchResult:
        """
        Process one batch of data rows.

        Args:
            file_path: CSV file with a header row
            vendor: Vendor configuration (source paths are column names)
            offset: Data rows to skip before the batch
            batch_size: Maximum rows to process

        Returns:
            BatchResult; continue_ is True when a full batch was processed

        Raises:
            ConfigError: If the file does not exist or is not UTF-8 encoded
        """
        if offset < 0 or batch_size <= 0:
            raise ConfigError(f"Invalid batch window: offset={offset}, batch_size={batch_size}")

        result = BatchResult()
        rows = _open_rows(file_path)
        try:
            headers = [header.strip() for header in next(rows, [])]
            if not headers:
                return result

            for row in islice(rows, offset, offset + batch_size):
                row_number = offset + result.processed + 1
                outcome = self._import_row(headers, row, vendor)
                result.outcomes.append(outcome)
                if outcome.action == UpsertAction.CREATED:
                    result.created += 1
                elif outcome.action == UpsertAction.UPDATED:
                    result.updated += 1
                else:
                    result.errors.append(f"Row {row_number}: {outcome.message}")
                result.processed += 1
        finally:
            rows.close()

        result.continue_ = result.processed == batch_size
        if self.logger:
            self.logger.batch_processed(
                vendor=vendor.name,
                offset=offset,
                processed=result.processed,
                errors=len(result.errors),
            )
        return result

    def _import_row(self, headers: List[str], row: List[str], vendor: VendorConfig) -> UpsertResult:
        try:
            raw = row_to_record(headers, row)
            normalized = map_record(raw, vendor, flat=True)
            self._check_required(normalized, vendor, raw)
        except DataQualityError as e:
            return UpsertResult(action=UpsertAction.ERRORED, record_id=None, message=e.message)
        return self.reconciler.upsert(normalized, vendor, raw=raw, flat=True)

    @staticmethod
    def _check_required(normalized: Dict, vendor: VendorConfig, raw: Dict[str, str]) -> None:
        title = normalized.get(vendor.title_field)
        if title is None or not str(title).strip():
            raise DataQualityError(f"Missing required field: {vendor.title_field}")
        if not identity_value(normalized, vendor, raw, flat=True):
            raise DataQualityError(f"Missing required field: {vendor.identity_target or vendor.identity_field}")

    def preview(self, file_path: str, vendor: VendorConfig, sample_size: int = 5) -> CSVPreview:
        """Headers, the first rows and the total data-row count of a CSV file."""
        rows = _open_rows(file_path)
        try:
            headers = [header.strip() for header in next(rows, [])]
            sample_rows = list(islice(rows, sample_size))
            total_rows = len(sample_rows) + sum(1 for _ in rows)
        finally:
            rows.close()
        return CSVPreview(
            headers=headers,
            sample_rows=sample_rows,
            total_rows=total_rows,
            field_mapping=dict(vendor.field_mapping),
        )
