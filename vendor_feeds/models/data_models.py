"""Core data models for the vendor feed pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# Flat mapping from target field to scalar or list value, plus "vendorName".
NormalizedRecord = Dict[str, Any]

VENDOR_NAME_FIELD = "vendorName"


class AuthMode(str, Enum):
    """How requests to a vendor feed are authenticated."""
    BEARER = "bearer"
    BASIC = "basic"
    CUSTOM_HEADER = "custom_header"
    NONE = "none"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"


class PaginationStrategy(str, Enum):
    """Pagination strategies understood by the fetcher."""
    PAGE = "page"
    OFFSET = "offset"
    CURSOR = "cursor"
    NONE = "none"


class TransformName(str, Enum):
    """Value transforms that can be bound to a source path."""
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    NUMERIC = "numeric"
    DECIMAL = "decimal"
    INTEGER = "integer"
    BOOLEAN = "boolean"


class HandlerName(str, Enum):
    """Structural reshaping applied to a source value before its transform."""
    SPLIT_LIST = "split_list"
    JOIN_LIST = "join_list"
    FIRST_ITEM = "first_item"
    STOCK_STATUS = "stock_status"
    TRIM = "trim"


class UpsertAction(str, Enum):
    """Outcome of reconciling one normalized record against the sink."""
    CREATED = "created"
    UPDATED = "updated"
    ERRORED = "errored"


@dataclass
class ErrorRecord:
    """Error information for a failed page fetch."""
    source: str
    page: int
    code: Optional[int]
    error: str
    timestamp: str  # ISO-8601 UTC


@dataclass
class FetchResult:
    """Result of fetching every page of one vendor feed."""
    vendor: str
    records: List[Dict[str, Any]]
    pages_fetched: int = 0
    errors: List[ErrorRecord] = field(default_factory=list)
    duration: float = 0.0

    @property
    def complete(self) -> bool:
        """True when no page failed; a failed page truncates the result."""
        return not self.errors


@dataclass
class UpsertResult:
    """Result of upserting one record."""
    action: UpsertAction
    record_id: Optional[int]
    message: str
    identity: str = ""


@dataclass
class ImportResult:
    """Counts and per-record log for one import invocation."""
    vendor: str
    created: int = 0
    updated: int = 0
    errors: int = 0
    messages: List[str] = field(default_factory=list)
    fetch_errors: List[ErrorRecord] = field(default_factory=list)
    missing_images: int = 0

    @property
    def processed(self) -> int:
        return self.created + self.updated + self.errors


@dataclass
class BatchResult:
    """Result of one CSV batch."""
    processed: int = 0
    created: int = 0
    updated: int = 0
    errors: List[str] = field(default_factory=list)
    continue_: bool = False
    missing_images: int = 0
    outcomes: List[UpsertResult] = field(default_factory=list)


@dataclass
class CSVPreview:
    """Headers, first rows and row count of a CSV file."""
    headers: List[str]
    sample_rows: List[List[str]]
    total_rows: int
    field_mapping: Dict[str, str]


@dataclass
class DiagnosticResult:
    """Raw record, its normalized form and the upsert outcome for one identity."""
    vendor: str
    identity: str
    raw: Optional[Dict[str, Any]]
    normalized: Optional[NormalizedRecord]
    upsert: Optional[UpsertResult]
    message: str = ""
