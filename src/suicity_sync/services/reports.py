"""Persist run artifacts and deliver the summary."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from suicity_sync.domain.reports import (
    STAKE_CATEGORIES,
    BalanceReport,
    StakeSummary,
    SummaryReport,
)
from suicity_sync.services.balances import balances_document, sorted_balances_document
from suicity_sync.services.stakes import non_sivilian_document

_logger = logging.getLogger(__name__)

ARTIFACT_NAMES = ("balances", "sorted_balances", "non_sivilian_stakers")
# Summary text must fit in one Telegram message (4096 characters).
SUMMARY_LIST_LIMIT = 10


class ReportSink(Protocol):
    """Destination for run summaries."""

    async def deliver(self, summary_text: str, attachments: dict[str, bytes]) -> None:
        """Deliver the summary text and named attachments."""


@dataclass
class LoggingReportSink(ReportSink):
    """Sink that writes the summary to the log."""

    async def deliver(self, summary_text: str, attachments: dict[str, bytes]) -> None:
        """Log the summary and the attachment names."""
        _logger.info("%s\nAttachments: %s", summary_text, ", ".join(attachments))


@dataclass
class ReportEmitter:
    """Writes report documents and hands the summary to a sink."""

    reports_dir: Path
    sink: ReportSink

    def persist(
        self, balances: BalanceReport, stakes: StakeSummary
    ) -> dict[str, Path]:
        """Write the balance and staker documents, returning their paths."""
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        documents = {
            "balances": balances_document(balances),
            "sorted_balances": sorted_balances_document(balances),
            "non_sivilian_stakers": non_sivilian_document(stakes),
        }
        paths: dict[str, Path] = {}
        for name, document in documents.items():
            path = self.reports_dir / f"{name}.json"
            path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            paths[name] = path
        _logger.info("Saved reports to %s", self.reports_dir)
        return paths

    def read_artifact(self, name: str) -> dict[str, object] | None:
        """Load a persisted document by name, if it exists."""
        if name not in ARTIFACT_NAMES:
            return None
        path = self.reports_dir / f"{name}.json"
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    async def deliver(self, report: SummaryReport) -> None:
        """Send the summary with artifacts attached; failures are only logged."""
        attachments = {
            path.name: path.read_bytes()
            for path in report.artifacts.values()
            if path.exists()
        }
        try:
            await self.sink.deliver(format_summary(report), attachments)
        except Exception:
            _logger.exception("Failed to deliver reconciliation report")


def format_summary(report: SummaryReport) -> str:
    """Human-readable run summary."""
    stakes = ", ".join(
        f"{category} {report.stake_totals.get(category, 0)}"
        for category in STAKE_CATEGORIES
    )
    lines = [
        "Reconciliation report",
        f"- Reference numbers generated: {report.ref_numbers_generated}",
        f"- Wallet IDs updated: {report.wallet_ids_updated}",
        f"- NFT fields updated: {report.nft_fields_updated}",
        f"- NFT data refreshed: {report.nft_data_refreshed}",
        f"- Records removed: {report.records_removed}",
        f"- Records skipped: {report.records_skipped}",
        "- Duplicate wallet addresses: "
        + _preview(report.duplicate_wallet_addresses),
        "- Duplicate Telegram IDs: " + _preview(report.duplicate_telegram_ids),
        f"- Total population: {report.total_population}",
        f"- Total balance: {report.total_balance}",
        f"- Staked: {report.total_staked} ({stakes})",
        f"- Stakers: {report.stakers}",
        f"- Failed balance lookups: {report.failed_balance_lookups}",
        f"- Duration: {report.duration_seconds:.1f}s",
    ]
    return "\n".join(lines)


def _preview(values: list[str]) -> str:
    """Join at most `SUMMARY_LIST_LIMIT` values, noting how many were left out."""
    if not values:
        return "none"
    shown = ", ".join(values[:SUMMARY_LIST_LIMIT])
    hidden = len(values) - SUMMARY_LIST_LIMIT
    if hidden > 0:
        return f"{shown} (+{hidden} more)"
    return shown
