"""Persistence interface for the bindings registry."""

from collections.abc import Mapping, Sequence
from typing import Protocol

from suicity_sync.domain.records import BulkWriteResult, RecordOp, UserRecord


class RecordRepository(Protocol):
    """Record store used by the reconciliation run."""

    def find_all(
        self,
        filters: Mapping[str, object] | None = None,
        columns: Sequence[str] | None = None,
    ) -> list[UserRecord]:
        """Return every record matching the equality filters."""

    def bulk_write(self, ops: Sequence[RecordOp]) -> BulkWriteResult:
        """Apply set-field and delete operations in one transaction."""

    def snapshot_collection(self) -> int:
        """Copy the full table to its backup and return the row count."""
