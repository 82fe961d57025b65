"""Aggregator collecting per-record outcomes into an ImportResult."""

from typing import List

from vendor_feeds.models.data_models import ErrorRecord, ImportResult, UpsertAction, UpsertResult


class ImportAggregator:
    """
    Tallies upsert outcomes and keeps the per-record message log.

    Not thread-safe; one aggregator belongs to one import invocation.
    """

    def __init__(self, vendor: str):
        self._result = ImportResult(vendor=vendor)

    def add_outcome(self, outcome: UpsertResult, position: int) -> None:
        """
        Record one upsert outcome.

        Args:
            outcome: Result returned by the reconciler
            position: 1-based position of the record in the source
        """
        if outcome.action == UpsertAction.CREATED:
            self._result.created += 1
        elif outcome.action == UpsertAction.UPDATED:
            self._result.updated += 1
        else:
            self._result.errors += 1
        self._result.messages.append(f"#{position} {outcome.action.value}: {outcome.message}")

    def add_fetch_errors(self, errors: List[ErrorRecord]) -> None:
        self._result.fetch_errors.extend(errors)
        for error in errors:
            self._result.messages.append(f"fetch page {error.page} failed: {error.error}")

    def add_message(self, message: str) -> None:
        self._result.messages.append(message)

    def result(self) -> ImportResult:
        return self._result
