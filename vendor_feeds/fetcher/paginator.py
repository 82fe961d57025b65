"""Pagination-driven fetcher for vendor JSON feeds."""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

from vendor_feeds.fetcher.auth import build_body, build_headers
from vendor_feeds.fetcher.http_client import FeedHTTPClient
from vendor_feeds.models.config import VendorConfig
from vendor_feeds.models.data_models import ErrorRecord, FetchResult, PaginationStrategy
from vendor_feeds.models.errors import FetchError
from vendor_feeds.monitoring.logger import StructuredLogger
from vendor_feeds.processor.path_resolver import ABSENT, extract_records, resolve


DEFAULT_OFFSET_LIMIT = 100


def _read_last_page(payload: Any, total_path: str, previous: Optional[int]) -> Optional[int]:
    """Last page number reported by a response; keeps the previous value when unreadable."""
    value = resolve(payload, total_path)
    if value is ABSENT or isinstance(value, bool):
        return previous
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if isinstance(value, int) and value >= 1:
        return value
    return previous


class PaginationFetcher:
    """
    Fetches every record of a vendor feed, page by page.

    Responsibilities:
    - Drive page, offset and unpaginated feeds to completion
    - Extract the record array from each response envelope
    - Stop at the first failed page and return what was accumulated

    A failed page (transport error, status other than 200, undecodable body,
    no record array) is logged and recorded on the result but never raised,
    so a mid-fetch failure truncates the result. Callers that need
    completeness check FetchResult.complete.
    """

    def __init__(self, http_client: FeedHTTPClient, logger: Optional[StructuredLogger] = None):
        """
        Initialize fetcher.

        Args:
            http_client: Makes HTTP requests with timeouts
            logger: Optional structured logger for telemetry
        """
        self.http_client = http_client
        self.logger = logger

    def fetch(self, vendor: VendorConfig) -> FetchResult:
        """
        Fetch all records of a vendor feed.

        Args:
            vendor: Vendor configuration with an HTTP source

        Returns:
            FetchResult with the accumulated records, page count and errors
        """
        result = FetchResult(vendor=vendor.name, records=[])
        start = time.monotonic()
        strategy = vendor.pagination.strategy

        if strategy == PaginationStrategy.PAGE:
            reason = self._fetch_by_page(vendor, result)
        elif strategy == PaginationStrategy.OFFSET:
            reason = self._fetch_by_offset(vendor, result)
        elif strategy == PaginationStrategy.NONE:
            reason = "single" if self._fetch_once(vendor, result) else "error"
        else:
            reason = "unsupported"
            message = "Cursor pagination is not supported by the generic fetcher"
            result.errors.append(self._error_record(vendor.source, 0, None, message))
            if self.logger:
                self.logger.warning("cursor_unsupported", source=vendor.source, vendor=vendor.name)

        result.duration = time.monotonic() - start
        if self.logger:
            self.logger.pagination_end(
                source=vendor.source,
                strategy=strategy.value,
                pages=result.pages_fetched,
                records=len(result.records),
                reason=reason,
            )
        return result

    def _fetch_by_page(self, vendor: VendorConfig, result: FetchResult) -> str:
        paging = vendor.pagination
        current_page = 1
        last_page: Optional[int] = None  # unknown until read from total_path

        while last_page is None or current_page <= last_page:
            params: Dict[str, Any] = {paging.page_param: current_page}
            if paging.page_size:
                params[paging.size_param] = paging.page_size

            page = self._fetch_page(vendor, params, current_page, result)
            if page is None:
                return "error"
            payload, records = page
            if not records:
                return "empty"

            result.records.extend(records)
            if paging.total_path:
                last_page = _read_last_page(payload, paging.total_path, last_page)
            current_page += 1

        return "last_page"

    def _fetch_by_offset(self, vendor: VendorConfig, result: FetchResult) -> str:
        limit = vendor.pagination.page_size or DEFAULT_OFFSET_LIMIT
        offset = 0
        request_number = 1

        while True:
            page = self._fetch_page(vendor, {"offset": offset, "limit": limit}, request_number, result)
            if page is None:
                return "error"
            _, records = page
            if not records:
                return "empty"

            result.records.extend(records)
            if len(records) < limit:
                return "short_page"
            offset += limit
            request_number += 1

    def _fetch_once(self, vendor: VendorConfig, result: FetchResult) -> bool:
        page = self._fetch_page(vendor, None, 1, result)
        if page is None:
            return False
        result.records.extend(page[1])
        return True

    def _fetch_page(
        self,
        vendor: VendorConfig,
        params: Optional[Dict[str, Any]],
        page: int,
        result: FetchResult
    ) -> Optional[Tuple[Any, List[Any]]]:
        """
        Fetch and decode a single page, recording a failure on the result.

        Returns:
            (payload, records) on success, None if the page failed
        """
        source = vendor.source
        if self.logger:
            self.logger.fetch_start(source=source, page=page)
        start = time.monotonic()

        try:
            payload, records = self._request_page(vendor, params)
        except FetchError as e:
            status = e.details.get("status")
            result.errors.append(self._error_record(source, page, status, e.message))
            if self.logger:
                self.logger.fetch_error(source=source, page=page, status=status, error=e.message)
            return None

        result.pages_fetched += 1
        if self.logger:
            self.logger.fetch_success(
                source=source,
                page=page,
                records=len(records),
                elapsed_ms=(time.monotonic() - start) * 1000,
            )
        return payload, records

    def _request_page(self, vendor: VendorConfig, params: Optional[Dict[str, Any]]) -> Tuple[Any, List[Any]]:
        """
        Request one page and extract its record array.

        Raises:
            FetchError: Transport failure, status other than 200, undecodable
                body or no record array
        """
        try:
            response = self.http_client.request(
                vendor.http_method.value,
                vendor.source,
                params=params,
                headers=build_headers(vendor),
                json=build_body(vendor),
            )
        except httpx.HTTPError as e:
            raise FetchError(f"Transport error: {e}") from e

        status = response.status_code
        if status != 200:
            raise FetchError(f"HTTP error code {status}: {response.text[:500]}", details={"status": status})

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(f"JSON decode error: {e}", details={"status": status}) from e

        records = extract_records(payload, vendor.pagination.data_path)
        if records is None:
            path = vendor.pagination.data_path or "products/data/items"
            raise FetchError(f"No record array at '{path}'", details={"status": status})
        return payload, records

    @staticmethod
    def _error_record(source: str, page: int, status: Optional[int], error: str) -> ErrorRecord:
        return ErrorRecord(
            source=source,
            page=page,
            code=status,
            error=error,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
