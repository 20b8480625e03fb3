"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from suicity_sync.adapters.sui_client import HttpxSuiClient
from suicity_sync.adapters.supabase_record_repository import SupabaseRecordRepository
from suicity_sync.adapters.telegram_client import (
    HttpxTelegramClient,
    TelegramReportSink,
)
from suicity_sync.config import Settings
from suicity_sync.services.allocator import RefNumberAllocator
from suicity_sync.services.reconciliation import ReconciliationService
from suicity_sync.services.reports import LoggingReportSink, ReportEmitter, ReportSink
from suicity_sync.services.retry import RetryPolicy


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    reconciliation_service: ReconciliationService
    report_emitter: ReportEmitter
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    repository = SupabaseRecordRepository(
        supabase_client, table=resolved_settings.records_table
    )
    sui_client = HttpxSuiClient.create(resolved_settings.sui_rpc_url)

    telegram_client: HttpxTelegramClient | None = None
    sink: ReportSink = LoggingReportSink()
    if resolved_settings.telegram_bot_token and resolved_settings.report_chat_id:
        telegram_client = HttpxTelegramClient.create(
            resolved_settings.telegram_bot_token
        )
        sink = TelegramReportSink(telegram_client, resolved_settings.report_chat_id)

    emitter = ReportEmitter(reports_dir=Path(resolved_settings.reports_dir), sink=sink)
    reconciliation_service = ReconciliationService(
        repository=repository,
        chain_client=sui_client,
        emitter=emitter,
        nft_type=resolved_settings.nft_type,
        retry_policy=RetryPolicy(
            max_attempts=resolved_settings.max_retries,
            backoff_seconds=resolved_settings.backoff_seconds,
        ),
        allocator=RefNumberAllocator(
            lower_bound=resolved_settings.ref_lower_bound,
            upper_bound=resolved_settings.ref_upper_bound,
            max_attempts=resolved_settings.ref_max_attempts,
            widen_step=resolved_settings.ref_widen_step,
        ),
        concurrency_limit=resolved_settings.concurrency_limit,
    )

    async def close_resources() -> None:
        await sui_client.close()
        if telegram_client is not None:
            await telegram_client.close()

    return AppContainer(
        settings=resolved_settings,
        reconciliation_service=reconciliation_service,
        report_emitter=emitter,
        close_resources=close_resources,
    )
