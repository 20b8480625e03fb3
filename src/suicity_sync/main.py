"""Command-line entry point for a single reconciliation run."""

import asyncio
import logging

from suicity_sync.app_logging import configure_logging
from suicity_sync.containers import AppContainer, build_container
from suicity_sync.domain.reports import SummaryReport
from suicity_sync.errors import StoreUnavailable
from suicity_sync.services.reports import format_summary

_logger = logging.getLogger(__name__)


async def run_once(container: AppContainer) -> SummaryReport:
    """Run one reconciliation and always release HTTP resources."""
    try:
        return await container.reconciliation_service.run_reconciliation()
    finally:
        await container.close_resources()


def main(container: AppContainer | None = None) -> None:
    """Run a reconciliation and print its summary."""
    configure_logging()
    resolved = container or build_container()
    try:
        report = asyncio.run(run_once(resolved))
    except StoreUnavailable:
        _logger.exception("Record store unavailable, run aborted")
        raise SystemExit(1) from None
    print(format_summary(report))  # noqa: T201
