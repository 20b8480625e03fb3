"""Shared test fixtures."""

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from uuid import UUID, uuid4

import pytest

from suicity_sync.adapters.sui_client import ChainClient
from suicity_sync.config import Settings
from suicity_sync.containers import AppContainer
from suicity_sync.domain.chain import OwnedObjectsPage, SuiObjectResponse
from suicity_sync.domain.records import (
    BulkWriteResult,
    DeleteRecord,
    RecordOp,
    SetFields,
    UserRecord,
    parse_record_row,
)
from suicity_sync.errors import RateLimited, StoreUnavailable
from suicity_sync.services.records import RecordRepository
from suicity_sync.services.reconciliation import ReconciliationService
from suicity_sync.services.reports import ReportEmitter, ReportSink
from suicity_sync.services.retry import RetryPolicy

NFT_TYPE = "0xcity::nft::City"
OTHER_TYPE = "0x2::coin::Coin<0x2::sui::SUI>"


async def no_sleep(_seconds: float) -> None:
    return None


def fast_retry(max_attempts: int = 3) -> RetryPolicy:
    return RetryPolicy(max_attempts=max_attempts, backoff_seconds=0, sleep=no_sleep)


def nft_object(
    nft_id: str,
    wallet_id: str | None,
    name: str | None = "SuiCity #1",
    extra_nested_data: object = None,
) -> dict[str, object]:
    fields: dict[str, object] = {"id": {"id": nft_id}}
    if wallet_id is not None:
        fields["wallet"] = wallet_id
    if name is not None:
        fields["name"] = name
    if extra_nested_data is not None:
        fields["extra_nested_data"] = extra_nested_data
    return {
        "objectId": nft_id,
        "version": "1",
        "digest": "digest",
        "type": NFT_TYPE,
        "content": {"dataType": "moveObject", "type": NFT_TYPE, "fields": fields},
    }


def wallet_object(wallet_id: str, balance: object) -> dict[str, object]:
    return {
        "objectId": wallet_id,
        "type": "0xcity::wallet::Wallet",
        "content": {"dataType": "moveObject", "fields": {"balance": balance}},
    }


def record_row(**values: object) -> dict[str, object]:
    row: dict[str, object] = {"id": str(uuid4()), "population": 0}
    row.update(values)
    return row


@dataclass
class InMemoryRecordRepository(RecordRepository):
    """In-memory bindings store for tests."""

    rows: dict[str, dict[str, object]] = field(default_factory=dict)
    writes: list[list[RecordOp]] = field(default_factory=list)
    backups: list[list[dict[str, object]]] = field(default_factory=list)
    unavailable: bool = False

    def add(self, **values: object) -> UUID:
        row = record_row(**values)
        self.rows[str(row["id"])] = row
        return UUID(str(row["id"]))

    def get(self, record_id: UUID) -> dict[str, object] | None:
        return self.rows.get(str(record_id))

    def find_all(
        self,
        filters: Mapping[str, object] | None = None,
        columns: Sequence[str] | None = None,
    ) -> list[UserRecord]:
        if self.unavailable:
            raise StoreUnavailable("store offline")
        return [
            parse_record_row(row)
            for row in self.rows.values()
            if all(row.get(key) == value for key, value in (filters or {}).items())
        ]

    def bulk_write(self, ops: Sequence[RecordOp]) -> BulkWriteResult:
        if self.unavailable:
            raise StoreUnavailable("store offline")
        self.writes.append(list(ops))
        updated = deleted = 0
        for op in ops:
            key = str(op.record_id)
            if isinstance(op, SetFields) and key in self.rows:
                self.rows[key].update(op.fields)
                updated += 1
            elif isinstance(op, DeleteRecord) and key in self.rows:
                del self.rows[key]
                deleted += 1
        return BulkWriteResult(updated=updated, deleted=deleted)

    def snapshot_collection(self) -> int:
        if self.unavailable:
            raise StoreUnavailable("store offline")
        self.backups.append([dict(row) for row in self.rows.values()])
        return len(self.rows)


@dataclass
class FakeChainClient(ChainClient):
    """Chain client serving owned objects and objects from memory."""

    owned: dict[str, list[dict[str, object]]] = field(default_factory=dict)
    objects: dict[str, dict[str, object]] = field(default_factory=dict)
    page_size: int = 50
    rate_limited_addresses: set[str] = field(default_factory=set)
    rate_limited_objects: set[str] = field(default_factory=set)
    list_calls: list[tuple[str, str | None]] = field(default_factory=list)
    get_calls: list[str] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0

    def own(self, address: str, *objects: dict[str, object]) -> None:
        refs = self.owned.setdefault(address, [])
        for obj in objects:
            refs.append({"objectId": obj["objectId"], "type": obj.get("type")})
            self.objects[str(obj["objectId"])] = obj

    async def list_owned_objects(
        self, address: str, cursor: str | None = None
    ) -> OwnedObjectsPage:
        self.list_calls.append((address, cursor))
        async with self._track():
            if address in self.rate_limited_addresses:
                raise RateLimited("suix_getOwnedObjects")
            refs = self.owned.get(address, [])
            start = int(cursor) if cursor else 0
            chunk = refs[start : start + self.page_size]
            end = start + len(chunk)
            has_next = end < len(refs)
            return OwnedObjectsPage.model_validate(
                {
                    "data": [{"data": ref} for ref in chunk],
                    "nextCursor": str(end) if chunk else None,
                    "hasNextPage": has_next,
                }
            )

    async def get_object(
        self, object_id: str, *, show_content: bool = True
    ) -> SuiObjectResponse:
        self.get_calls.append(object_id)
        async with self._track():
            if object_id in self.rate_limited_objects:
                raise RateLimited("sui_getObject")
            obj = self.objects.get(object_id)
            if obj is None:
                return SuiObjectResponse.model_validate(
                    {"error": {"code": "notExists", "object_id": object_id}}
                )
            return SuiObjectResponse.model_validate({"data": obj})

    def _track(self) -> "_InFlight":
        return _InFlight(self)


class _InFlight:
    def __init__(self, client: FakeChainClient) -> None:
        self.client = client

    async def __aenter__(self) -> None:
        self.client.in_flight += 1
        self.client.max_in_flight = max(self.client.max_in_flight, self.client.in_flight)
        await asyncio.sleep(0)

    async def __aexit__(self, *_exc: object) -> None:
        self.client.in_flight -= 1


@dataclass
class FakeReportSink(ReportSink):
    """Sink that records deliveries."""

    deliveries: list[tuple[str, dict[str, bytes]]] = field(default_factory=list)
    fail: bool = False

    async def deliver(self, summary_text: str, attachments: dict[str, bytes]) -> None:
        if self.fail:
            raise RuntimeError("sink offline")
        self.deliveries.append((summary_text, attachments))


def build_service(
    repository: InMemoryRecordRepository,
    chain_client: ChainClient,
    reports_dir: Path,
    sink: ReportSink | None = None,
    max_attempts: int = 3,
) -> ReconciliationService:
    return ReconciliationService(
        repository=repository,
        chain_client=chain_client,
        emitter=ReportEmitter(reports_dir=reports_dir, sink=sink or FakeReportSink()),
        nft_type=NFT_TYPE,
        retry_policy=fast_retry(max_attempts),
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service.key.signature",
        admin_token="admin-token",
        reports_dir=str(tmp_path / "reports"),
    )


@pytest.fixture
def repository() -> InMemoryRecordRepository:
    return InMemoryRecordRepository()


@pytest.fixture
def chain_client() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def report_sink() -> FakeReportSink:
    return FakeReportSink()


@pytest.fixture
def container(
    settings: Settings,
    repository: InMemoryRecordRepository,
    chain_client: FakeChainClient,
    report_sink: FakeReportSink,
) -> AppContainer:
    service = build_service(
        repository, chain_client, Path(settings.reports_dir), sink=report_sink
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        reconciliation_service=service,
        report_emitter=service.emitter,
        close_resources=close_resources,
    )
