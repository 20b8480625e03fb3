"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from uuid import uuid4

import httpx
import pytest

from suicity_sync.adapters.supabase_record_repository import (
    PAGE_SIZE,
    SupabaseRecordRepository,
)
from suicity_sync.domain.records import DeleteRecord, NftShape, SetFields
from suicity_sync.errors import StoreUnavailable


@dataclass
class FakeResponse:
    data: object


@dataclass
class FakeTable:
    name: str
    pages: list[list[dict[str, object]]] = field(default_factory=list)
    selected: list[str] = field(default_factory=list)
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    ranges: list[tuple[int, int]] = field(default_factory=list)
    orders: list[str] = field(default_factory=list)

    def select(self, columns: str) -> "FakeTable":
        self.selected.append(columns)
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.orders.append(column)
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.ranges.append((start, end))
        return self

    def execute(self) -> FakeResponse:
        return FakeResponse(data=self.pages.pop(0) if self.pages else [])


@dataclass
class FakeRpc:
    data: object
    error: Exception | None = None

    def execute(self) -> FakeResponse:
        if self.error is not None:
            raise self.error
        return FakeResponse(data=self.data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)
    rpc_results: dict[str, FakeRpc] = field(default_factory=dict)
    rpc_calls: list[tuple[str, dict[str, object]]] = field(default_factory=list)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]

    def rpc(self, fn: str, params: dict[str, object]) -> FakeRpc:
        self.rpc_calls.append((fn, params))
        return self.rpc_results.get(fn, FakeRpc(data=None))


def _row(**values: object) -> dict[str, object]:
    row: dict[str, object] = {"id": str(uuid4())}
    row.update(values)
    return row


def test_find_all_reads_every_page() -> None:
    client = FakeSupabaseClient()
    table = client.table("bindings")
    table.pages = [
        [_row(wallet_address=f"0x{index}") for index in range(PAGE_SIZE)],
        [_row(wallet_address="0xlast", nft="0xnft", wallet_id="0xw", ref_number="20001")],
    ]

    records = SupabaseRecordRepository(client).find_all()

    assert len(records) == PAGE_SIZE + 1
    assert table.ranges == [(0, PAGE_SIZE - 1), (PAGE_SIZE, 2 * PAGE_SIZE - 1)]
    assert table.orders == ["id", "id"]
    last = records[-1]
    assert last.nft_id == "0xnft"
    assert last.nft_shape is NftShape.SCALAR
    assert last.wallet_object_id == "0xw"
    assert last.ref_number == 20001


def test_find_all_applies_filters_and_projection() -> None:
    client = FakeSupabaseClient()
    table = client.table("registry")
    table.pages = [[_row(wallet_address="0xabc", nft={"legacy": 1})]]

    records = SupabaseRecordRepository(client, table="registry").find_all(
        filters={"wallet_address": "0xabc"}, columns=["wallet_address", "nft"]
    )

    assert table.selected == ["id, wallet_address, nft"]
    assert table.last_filters == [("wallet_address", "0xabc")]
    assert records[0].nft_shape is NftShape.LEGACY


def test_bulk_write_sends_one_rpc_with_all_ops() -> None:
    client = FakeSupabaseClient()
    client.rpc_results["apply_binding_ops"] = FakeRpc(data={"updated": 1, "deleted": 1})
    kept, removed = uuid4(), uuid4()

    result = SupabaseRecordRepository(client).bulk_write(
        [
            SetFields(record_id=kept, fields={"ref_number": 20050}),
            DeleteRecord(record_id=removed),
        ]
    )

    assert result.updated == 1
    assert result.deleted == 1
    assert client.rpc_calls == [
        (
            "apply_binding_ops",
            {
                "ops": [
                    {"op": "set", "id": str(kept), "fields": {"ref_number": 20050}},
                    {"op": "delete", "id": str(removed)},
                ]
            },
        )
    ]


def test_bulk_write_without_ops_skips_the_store() -> None:
    client = FakeSupabaseClient()

    result = SupabaseRecordRepository(client).bulk_write([])

    assert (result.updated, result.deleted) == (0, 0)
    assert client.rpc_calls == []


def test_snapshot_collection_returns_row_count() -> None:
    client = FakeSupabaseClient()
    client.rpc_results["snapshot_bindings"] = FakeRpc(data=12)

    assert SupabaseRecordRepository(client).snapshot_collection() == 12
    assert client.rpc_calls == [("snapshot_bindings", {})]


def test_transport_failures_become_store_unavailable() -> None:
    client = FakeSupabaseClient()
    client.rpc_results["snapshot_bindings"] = FakeRpc(
        data=None, error=httpx.ConnectError("connection refused")
    )

    with pytest.raises(StoreUnavailable):
        SupabaseRecordRepository(client).snapshot_collection()
