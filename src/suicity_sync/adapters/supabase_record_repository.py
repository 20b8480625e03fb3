"""Supabase-backed bindings repository."""

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

import httpx
from supabase import Client, PostgrestAPIError

from suicity_sync.domain.records import (
    RECORD_COLUMNS,
    BulkWriteResult,
    DeleteRecord,
    RecordOp,
    SetFields,
    UserRecord,
    parse_record_row,
)
from suicity_sync.errors import StoreUnavailable
from suicity_sync.services.records import RecordRepository

PAGE_SIZE = 1000


@dataclass
class SupabaseRecordRepository(RecordRepository):
    """Supabase implementation for registry records.

    Bulk writes and backups go through Postgres functions (see
    `supabase/migrations`) so each is a single transaction.
    """

    client: Client
    table: str = "bindings"
    bulk_write_function: str = "apply_binding_ops"
    snapshot_function: str = "snapshot_bindings"

    def find_all(
        self,
        filters: Mapping[str, object] | None = None,
        columns: Sequence[str] | None = None,
    ) -> list[UserRecord]:
        """Return all matching records, reading in pages ordered by id."""
        selected = ", ".join(columns or RECORD_COLUMNS)
        if "id" not in (columns or RECORD_COLUMNS):
            selected = f"id, {selected}"
        records: list[UserRecord] = []
        start = 0
        with _store_errors("find_all"):
            while True:
                query = self.client.table(self.table).select(selected)
                for column, value in (filters or {}).items():
                    query = query.eq(column, value)
                response = (
                    query.order("id", desc=False)
                    .range(start, start + PAGE_SIZE - 1)
                    .execute()
                )
                rows = response.data or []
                records.extend(parse_record_row(row) for row in rows)
                if len(rows) < PAGE_SIZE:
                    return records
                start += PAGE_SIZE

    def bulk_write(self, ops: Sequence[RecordOp]) -> BulkWriteResult:
        """Apply all operations in one transactional function call."""
        if not ops:
            return BulkWriteResult(updated=0, deleted=0)
        payload = [_serialize_op(op) for op in ops]
        with _store_errors("bulk_write"):
            response = self.client.rpc(
                self.bulk_write_function, {"ops": payload}
            ).execute()
        data = response.data
        if isinstance(data, list):
            data = data[0] if data else {}
        if not isinstance(data, dict):
            raise StoreUnavailable(f"Unexpected bulk write response: {data!r}")
        return BulkWriteResult(
            updated=int(data.get("updated", 0)),
            deleted=int(data.get("deleted", 0)),
        )

    def snapshot_collection(self) -> int:
        """Replace the backup table with a copy of the current rows."""
        with _store_errors("snapshot_collection"):
            response = self.client.rpc(self.snapshot_function, {}).execute()
        data = response.data
        return data if isinstance(data, int) else 0


def _serialize_op(op: RecordOp) -> dict[str, object]:
    if isinstance(op, SetFields):
        return {"op": "set", "id": str(op.record_id), "fields": op.fields}
    if isinstance(op, DeleteRecord):
        return {"op": "delete", "id": str(op.record_id)}
    raise TypeError(f"Unsupported record operation: {op!r}")


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Translate client failures into `StoreUnavailable`."""
    try:
        yield
    except (PostgrestAPIError, httpx.HTTPError) as exc:
        raise StoreUnavailable(f"Store {action} failed: {exc}") from exc
