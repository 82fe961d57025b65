"""Structured logging for import monitoring."""

import json
import logging
from typing import Any, Optional


class StructuredLogger:
    """Structured logger with uniform schema."""

    def __init__(self, name: str = "vendor_feeds", level: str = "INFO", structured: bool = True):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.structured = structured

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)

    def log(self, event: str, level: int = logging.INFO, **kwargs: Any) -> None:
        """
        Log structured event.

        Standard keys: event, vendor, source, page, offset, status, records,
                      elapsed_ms, identity, record_id, action, reference
        """
        if self.structured:
            message = json.dumps({"event": event, **kwargs}, default=str)
        else:
            fields = " ".join(f"{key}={value}" for key, value in kwargs.items())
            message = f"{event} {fields}".rstrip()
        self.logger.log(level, message)

    def warning(self, event: str, **kwargs: Any) -> None:
        self.log(event, level=logging.WARNING, **kwargs)

    def fetch_start(self, source: str, page: int) -> None:
        self.log("fetch_start", level=logging.DEBUG, source=source, page=page)

    def fetch_success(self, source: str, page: int, records: int, elapsed_ms: float) -> None:
        self.log("fetch_success", source=source, page=page, records=records, elapsed_ms=round(elapsed_ms, 1))

    def fetch_error(self, source: str, page: int, status: Optional[int], error: str) -> None:
        self.warning("fetch_error", source=source, page=page, status=status, error=error)

    def pagination_end(self, source: str, strategy: str, pages: int, records: int, reason: str) -> None:
        self.log("pagination_end", source=source, strategy=strategy, pages=pages, records=records, reason=reason)

    def record_outcome(self, vendor: str, identity: str, action: str, record_id: Optional[int], message: str) -> None:
        level = logging.WARNING if action == "errored" else logging.INFO
        self.log(
            f"record_{action}",
            level=level,
            vendor=vendor,
            identity=identity,
            record_id=record_id,
            message=message,
        )

    def asset_missing(self, owner_id: Optional[int], reference: str) -> None:
        self.warning("asset_missing", record_id=owner_id, reference=reference)

    def batch_processed(self, vendor: str, offset: int, processed: int, errors: int) -> None:
        self.log("batch_processed", vendor=vendor, offset=offset, processed=processed, errors=errors)

    def import_summary(self, vendor: str, created: int, updated: int, errors: int, missing_images: int = 0) -> None:
        self.log(
            "import_summary",
            vendor=vendor,
            created=created,
            updated=updated,
            errors=errors,
            missing_images=missing_images,
        )
