"""End-to-end reconciliation run."""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from suicity_sync.adapters.sui_client import ChainClient
from suicity_sync.domain.records import RecordOp, UserRecord
from suicity_sync.domain.reports import SummaryReport
from suicity_sync.services.allocator import RefNumberAllocator
from suicity_sync.services.balances import BalanceAggregator, format_magnitude
from suicity_sync.services.chain import ChainGateway
from suicity_sync.services.duplicates import (
    duplicate_telegram_ids,
    duplicate_wallet_addresses,
)
from suicity_sync.services.records import RecordRepository
from suicity_sync.services.reports import ReportEmitter
from suicity_sync.services.resolver import NftResolver
from suicity_sync.services.retry import RetryPolicy
from suicity_sync.services.stakes import aggregate_stakes
from suicity_sync.services.updater import ReconciliationUpdater

_logger = logging.getLogger(__name__)


@dataclass
class ReconciliationService:
    """Runs backup, allocation, resolution, updates, aggregation and reporting.

    A run assumes it is the only writer. Per-record failures are isolated by
    each stage; `StoreUnavailable` from the repository aborts the run.
    """

    repository: RecordRepository
    chain_client: ChainClient
    emitter: ReportEmitter
    nft_type: str
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    allocator: RefNumberAllocator = field(default_factory=RefNumberAllocator)
    updater: ReconciliationUpdater = field(default_factory=ReconciliationUpdater)
    concurrency_limit: int = 2

    async def run_reconciliation(self) -> SummaryReport:
        """Execute one full run and return its summary."""
        started = time.monotonic()
        _logger.info("Backing up the current records")
        backed_up = await asyncio.to_thread(self.repository.snapshot_collection)
        _logger.info("Backup completed (%s rows)", backed_up)

        records = await asyncio.to_thread(self.repository.find_all)
        _logger.info("Loaded %s records", len(records))

        gateway = ChainGateway(
            client=self.chain_client,
            retry=self.retry_policy,
            limiter=asyncio.Semaphore(self.concurrency_limit),
        )

        allocation = self.allocator.allocate(
            used=[r.ref_number for r in records if r.ref_number is not None],
            pending=[r for r in records if r.ref_number is None],
        )
        await self._apply("reference numbers", allocation.ops())

        resolver = NftResolver(gateway=gateway, nft_type=self.nft_type)
        resolutions = await resolver.resolve_many(
            r.wallet_address for r in records if r.wallet_address
        )
        plan = self.updater.plan(records, resolutions)
        await self._apply("record updates", plan.ops)

        records = await asyncio.to_thread(self.repository.find_all)
        wallet_dups = duplicate_wallet_addresses(records)
        telegram_dups = duplicate_telegram_ids(records)

        balances = await BalanceAggregator(gateway).aggregate(records)
        stakes = aggregate_stakes(records)
        artifacts = self.emitter.persist(balances, stakes)

        counters = plan.counters
        report = SummaryReport(
            ref_numbers_generated=len(allocation.assignments),
            wallet_ids_updated=counters.wallet_ids_updated,
            nft_fields_updated=counters.nft_fields_updated,
            nft_data_refreshed=counters.nft_data_refreshed,
            records_removed=counters.records_removed,
            records_skipped=counters.records_skipped,
            duplicate_wallet_addresses=[d.value for d in wallet_dups],
            duplicate_telegram_ids=[d.value for d in telegram_dups],
            total_population=format_magnitude(_total_population(records)),
            total_balance=format_magnitude(balances.total_balance),
            stake_totals=dict(stakes.totals),
            total_staked=stakes.total,
            stakers=len(stakes.stakers),
            failed_balance_lookups=balances.failed_lookups,
            duration_seconds=time.monotonic() - started,
            artifacts=artifacts,
        )
        _logger.info(
            "Reconciliation finished in %.1fs (%s NFT lookups)",
            report.duration_seconds,
            resolver.lookups_performed,
        )
        await self.emitter.deliver(report)
        return report

    async def _apply(self, label: str, ops: list[RecordOp]) -> None:
        if not ops:
            _logger.info("No %s to write", label)
            return
        result = await asyncio.to_thread(self.repository.bulk_write, ops)
        _logger.info(
            "Bulk write of %s: %s updated, %s deleted",
            label,
            result.updated,
            result.deleted,
        )


def _total_population(records: list[UserRecord]) -> int:
    return sum(record.population for record in records)
