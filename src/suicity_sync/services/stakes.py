"""Staked-asset histogram from cached NFT snapshots."""

import logging
from collections.abc import Sequence

from suicity_sync.domain.records import UserRecord
from suicity_sync.domain.reports import STAKE_CATEGORIES, StakerEntry, StakeSummary
from suicity_sync.errors import MalformedUpstreamData

_logger = logging.getLogger(__name__)

STAKE_STRUCTURE_ARITY = 2


def aggregate_stakes(records: Sequence[UserRecord]) -> StakeSummary:
    """Accumulate per-category staked counts across records."""
    summary = StakeSummary()
    for record in records:
        nested = _extra_nested_data(record)
        if nested is None:
            continue
        try:
            counts = parse_stake_counts(nested)
        except MalformedUpstreamData as exc:
            _logger.warning(
                "Skipping stake data for record %s (wallet %s): %s",
                record.id,
                record.wallet_address,
                exc,
            )
            summary.skipped_record_ids.append(str(record.id))
            continue
        summary.records_counted += 1
        for category, amount in zip(STAKE_CATEGORIES, counts, strict=False):
            summary.totals[category] += amount
            summary.total += amount
        if not any(counts):
            continue
        entry = StakerEntry(wallet_address=record.wallet_address, counts=counts)
        summary.stakers.append(entry)
        if any(counts[1:]):
            summary.non_sivilian_stakers.append(entry)
    return summary


def parse_stake_counts(nested: object) -> tuple[int, ...]:
    """Validate `[_, [counts...]]` and return the counts by category index."""
    if not isinstance(nested, list) or len(nested) != STAKE_STRUCTURE_ARITY:
        raise MalformedUpstreamData(f"Expected a two-element list, got {nested!r}")
    staked = nested[1]
    if not isinstance(staked, list):
        raise MalformedUpstreamData(f"Expected a list of counts, got {staked!r}")
    # Entries past the known categories are ignored.
    return tuple(_parse_count(value) for value in staked[: len(STAKE_CATEGORIES)])


def non_sivilian_document(summary: StakeSummary) -> dict[str, object]:
    """Detail document of wallets staking any non-sivilian category."""
    return {
        "summary": {
            "total_users_with_non_sivilian_nfts": len(summary.non_sivilian_stakers),
            **{
                f"{category}_count": summary.totals[category]
                for category in STAKE_CATEGORIES[1:]
            },
        },
        "users": [
            {"wallet_address": entry.wallet_address, "staked": list(entry.counts)}
            for entry in summary.non_sivilian_stakers
        ],
    }


def _extra_nested_data(record: UserRecord) -> object | None:
    if not record.nft_data:
        return None
    content = record.nft_data.get("content")
    if not isinstance(content, dict):
        return None
    fields = content.get("fields")
    if not isinstance(fields, dict):
        return None
    return fields.get("extra_nested_data")


def _parse_count(value: object) -> int:
    if isinstance(value, bool):
        raise MalformedUpstreamData(f"Invalid stake count {value!r}")
    if isinstance(value, int):
        count = value
    elif isinstance(value, str) and value.strip().isdigit():
        count = int(value.strip())
    else:
        raise MalformedUpstreamData(f"Invalid stake count {value!r}")
    if count < 0:
        raise MalformedUpstreamData(f"Negative stake count {value!r}")
    return count
