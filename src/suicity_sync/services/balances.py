"""Token balance aggregation and magnitude formatting."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from suicity_sync.domain.records import UserRecord
from suicity_sync.domain.reports import BalanceEntry, BalanceReport
from suicity_sync.errors import ChainQueryError, MalformedUpstreamData, RetryExhausted
from suicity_sync.services.chain import ChainGateway

_logger = logging.getLogger(__name__)

BALANCE_DIVISOR = 1000

_SUFFIXES = (
    (1e12, "t"),
    (1e9, "b"),
    (1e6, "m"),
    (1e3, "k"),
)


def format_magnitude(value: float) -> str:
    """Format a number with a t/b/m/k suffix and two decimals."""
    for threshold, suffix in _SUFFIXES:
        if value >= threshold:
            return f"{value / threshold:.2f}{suffix}"
    return f"{value:.2f}"


def parse_magnitude(text: str) -> float:
    """Inverse of `format_magnitude`."""
    cleaned = text.strip().lower()
    for threshold, suffix in _SUFFIXES:
        if cleaned.endswith(suffix):
            return float(cleaned[: -len(suffix)]) * threshold
    return float(cleaned)


def format_percentage(value: float) -> str:
    """Format a share as a percentage string."""
    return f"{value:.2f}%"


def build_balance_report(
    rows: Sequence[tuple[UserRecord, float]], failed_lookups: int = 0
) -> BalanceReport:
    """Compute totals and per-record shares from normalized balances."""
    total = sum(balance for _, balance in rows)
    entries = [
        BalanceEntry(
            twitter_id=record.twitter_id,
            wallet_address=record.wallet_address,
            balance=balance,
            population=record.population,
            share_pct=(balance / total) * 100 if total > 0 else 0.0,
        )
        for record, balance in rows
    ]
    return BalanceReport(
        entries=entries,
        total_balance=total,
        total_population=sum(record.population for record, _ in rows),
        failed_lookups=failed_lookups,
    )


def balances_document(report: BalanceReport) -> dict[str, object]:
    """Balance document in record order."""
    return {
        "total_population": report.total_population,
        "total_balance": format_magnitude(report.total_balance),
        "user_balances": [
            {
                "twitter_id": entry.twitter_id,
                "wallet_address": entry.wallet_address,
                "balance": format_magnitude(entry.balance),
                "population": entry.population,
                "percentage_holding": format_percentage(entry.share_pct),
            }
            for entry in report.entries
        ],
    }


def sorted_balances_document(report: BalanceReport) -> dict[str, object]:
    """Balance document ordered by numeric balance, largest first."""
    return {
        "total_population": format_magnitude(report.total_population),
        "total_balance": format_magnitude(report.total_balance),
        "user_balances": [
            {
                "twitter_id": entry.twitter_id,
                "wallet_address": entry.wallet_address,
                "balance": format_magnitude(entry.balance),
                "population": format_magnitude(entry.population),
                "percentage_holding": format_percentage(entry.share_pct),
            }
            for entry in report.sorted_entries()
        ],
    }


@dataclass
class BalanceAggregator:
    """Fetch wallet-container balances for records."""

    gateway: ChainGateway

    async def aggregate(self, records: Sequence[UserRecord]) -> BalanceReport:
        """Fetch every balance concurrently and build the report."""
        holders = [record for record in records if record.wallet_object_id]
        results = await asyncio.gather(
            *(self._fetch_balance(record) for record in holders)
        )
        failed = sum(1 for _, ok in results if not ok)
        rows = [
            (record, balance)
            for record, (balance, _) in zip(holders, results, strict=True)
        ]
        return build_balance_report(rows, failed_lookups=failed)

    async def _fetch_balance(self, record: UserRecord) -> tuple[float, bool]:
        wallet_id = record.wallet_object_id
        try:
            response = await self.gateway.get_object(str(wallet_id))
            if response.data is None or response.data.content is None:
                raise MalformedUpstreamData(f"Wallet {wallet_id} has no content")
            raw = response.data.content.fields.get("balance") or 0
            return _parse_raw_balance(raw) / BALANCE_DIVISOR, True
        except (
            MalformedUpstreamData,
            RetryExhausted,
            ChainQueryError,
            httpx.HTTPError,
        ) as exc:
            _logger.warning(
                "Balance lookup failed for record %s (wallet object %s): %s",
                record.id,
                wallet_id,
                exc,
            )
            return 0.0, False


def _parse_raw_balance(raw: object) -> float:
    if isinstance(raw, bool):
        raise MalformedUpstreamData(f"Unexpected balance value {raw!r}")
    try:
        return float(str(raw))
    except ValueError as exc:
        raise MalformedUpstreamData(f"Unexpected balance value {raw!r}") from exc
