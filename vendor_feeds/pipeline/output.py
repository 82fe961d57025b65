"""JSON output formatter for import results.

Serializes import, CSV batch and diagnostic results into plain dictionaries
and writes them to disk. The pipeline itself never persists its logs; the
CLI uses this formatter to save a result file next to the record store.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from vendor_feeds.models.data_models import (
    BatchResult,
    DiagnosticResult,
    ErrorRecord,
    FetchResult,
    ImportResult,
    UpsertResult,
)


Result = Union[ImportResult, BatchResult, DiagnosticResult, FetchResult]


class JSONOutputFormatter:
    """
    Formats pipeline results as JSON-serializable dictionaries.

    Example import output:
    {
        "vendor": "Acme",
        "summary": {"created": 10, "updated": 2, "errors": 1, "processed": 13},
        "messages": ["#1 created: Created: Ring (vendor_sku: R-1)", ...],
        "fetch_errors": [...]
    }
    """

    def format(self, result: Result) -> Dict[str, Any]:
        """Format any pipeline result."""
        if isinstance(result, ImportResult):
            return self._format_import(result)
        if isinstance(result, BatchResult):
            return self._format_batch(result)
        if isinstance(result, DiagnosticResult):
            return self._format_diagnostic(result)
        if isinstance(result, FetchResult):
            return self._format_fetch(result)
        raise TypeError(f"Cannot format {type(result).__name__}")

    def _format_import(self, result: ImportResult) -> Dict[str, Any]:
        return {
            "vendor": result.vendor,
            "summary": {
                "created": result.created,
                "updated": result.updated,
                "errors": result.errors,
                "processed": result.processed,
                "missing_images": result.missing_images,
            },
            "messages": list(result.messages),
            "fetch_errors": self._format_errors(result.fetch_errors),
        }

    def _format_batch(self, result: BatchResult) -> Dict[str, Any]:
        return {
            "processed": result.processed,
            "created": result.created,
            "updated": result.updated,
            "errors": list(result.errors),
            "continue": result.continue_,
            "missing_images": result.missing_images,
        }

    def _format_diagnostic(self, result: DiagnosticResult) -> Dict[str, Any]:
        return {
            "vendor": result.vendor,
            "identity": result.identity,
            "raw": result.raw,
            "normalized": result.normalized,
            "upsert": self._format_upsert(result.upsert),
            "message": result.message,
        }

    def _format_fetch(self, result: FetchResult) -> Dict[str, Any]:
        return {
            "vendor": result.vendor,
            "records": len(result.records),
            "pages_fetched": result.pages_fetched,
            "complete": result.complete,
            "duration_seconds": round(result.duration, 2),
            "errors": self._format_errors(result.errors),
        }

    @staticmethod
    def _format_upsert(upsert: Optional[UpsertResult]) -> Optional[Dict[str, Any]]:
        if upsert is None:
            return None
        return {
            "action": upsert.action.value,
            "record_id": upsert.record_id,
            "identity": upsert.identity,
            "message": upsert.message,
        }

    @staticmethod
    def _format_errors(errors: List[ErrorRecord]) -> List[Dict[str, Any]]:
        return [asdict(error) for error in errors]

    def save(self, result: Result, path: str = "out/import_result.json") -> None:
        """
        Save formatted result to JSON file.

        Creates parent directories if they don't exist. Uses 2-space
        indentation for readability.

        Args:
            result: Import, batch, diagnostic or fetch result to save
            path: Output file path
        """
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(self.format(result), f, indent=2, ensure_ascii=False, default=str)
