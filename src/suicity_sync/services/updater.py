"""Decide the minimal set of writes that brings records in line with chain state."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from suicity_sync.domain.chain import Resolution, ResolutionStatus, ResolvedNft
from suicity_sync.domain.records import (
    COLUMN_NFT,
    COLUMN_NFT_DATA,
    COLUMN_NFT_NAME,
    COLUMN_WALLET_ID,
    DeleteRecord,
    NftShape,
    RecordOp,
    SetFields,
    UserRecord,
)
from suicity_sync.domain.reports import UpdateCounters

_logger = logging.getLogger(__name__)


@dataclass
class UpdatePlan:
    """Operations decided for a run, with their tallies."""

    ops: list[RecordOp] = field(default_factory=list)
    counters: UpdateCounters = field(default_factory=UpdateCounters)


@dataclass
class ReconciliationUpdater:
    """Builds one batch of record changes from resolver results."""

    def plan(
        self,
        records: Sequence[UserRecord],
        resolutions: Mapping[str, Resolution],
    ) -> UpdatePlan:
        """Compute every record's delta before anything is written."""
        plan = UpdatePlan()
        for record in records:
            if not record.wallet_address:
                continue
            resolution = resolutions.get(record.wallet_address)
            if resolution is None:
                continue
            try:
                op = self.decide(record, resolution, plan.counters)
            except Exception:
                _logger.exception(
                    "Failed to plan update for record %s (wallet %s)",
                    record.id,
                    record.wallet_address,
                )
                plan.counters.records_skipped += 1
                continue
            if op is not None:
                plan.ops.append(op)
        return plan

    def decide(
        self,
        record: UserRecord,
        resolution: Resolution,
        counters: UpdateCounters,
    ) -> RecordOp | None:
        """Return the write for one record, or None when it is consistent."""
        if resolution.status is ResolutionStatus.NOT_FOUND:
            _logger.info(
                "Removing record %s: wallet %s holds no qualifying NFT",
                record.id,
                record.wallet_address,
            )
            counters.records_removed += 1
            return DeleteRecord(record_id=record.id)
        if resolution.status is not ResolutionStatus.FOUND or resolution.nft is None:
            _logger.info(
                "Skipping record %s: resolution %s (%s)",
                record.id,
                resolution.status.value,
                resolution.detail,
            )
            counters.records_skipped += 1
            return None
        fields = _delta(record, resolution.nft, counters)
        if not fields:
            return None
        return SetFields(record_id=record.id, fields=fields)


def _delta(
    record: UserRecord, nft: ResolvedNft, counters: UpdateCounters
) -> dict[str, object]:
    fields: dict[str, object] = {}
    if record.wallet_object_id != nft.wallet_object_id:
        fields[COLUMN_WALLET_ID] = nft.wallet_object_id
        fields[COLUMN_NFT_NAME] = nft.nft_name
        counters.wallet_ids_updated += 1
    if record.nft_shape is not NftShape.SCALAR or record.nft_id != nft.nft_id:
        fields[COLUMN_NFT] = nft.nft_id
        fields[COLUMN_NFT_NAME] = nft.nft_name
        counters.nft_fields_updated += 1
    if record.nft_data is None or fields:
        fields[COLUMN_NFT_DATA] = nft.snapshot
        counters.nft_data_refreshed += 1
    return fields
