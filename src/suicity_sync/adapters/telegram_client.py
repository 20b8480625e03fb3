"""Telegram Bot API client and report sink."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from suicity_sync.services.reports import ReportSink

_logger = logging.getLogger(__name__)

FALLBACK_TEXT = "Some report files could not be delivered. Check the reports folder."


class TelegramClient(Protocol):
    """Interface for Telegram API interactions."""

    async def send_message(self, chat_id: int, text: str) -> None:
        """Send a text message to a Telegram chat."""

    async def send_document(
        self, chat_id: int, filename: str, content: bytes, caption: str | None = None
    ) -> None:
        """Send a file to a Telegram chat."""


@dataclass
class HttpxTelegramClient:
    """Telegram client implemented with httpx."""

    bot_token: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, bot_token: str) -> "HttpxTelegramClient":
        """Create a Telegram client with a managed httpx session."""
        return cls(bot_token=bot_token, http_client=httpx.AsyncClient())

    async def send_message(self, chat_id: int, text: str) -> None:
        """Send a message using Telegram's sendMessage API."""
        url = f"https://api.telegram.org/bot{self.bot_token}/sendMessage"
        payload: dict[str, object] = {"chat_id": chat_id, "text": text}
        response = await self.http_client.post(url, json=payload, timeout=10)
        response.raise_for_status()

    async def send_document(
        self, chat_id: int, filename: str, content: bytes, caption: str | None = None
    ) -> None:
        """Upload a document using Telegram's sendDocument API."""
        url = f"https://api.telegram.org/bot{self.bot_token}/sendDocument"
        data: dict[str, str] = {"chat_id": str(chat_id)}
        if caption is not None:
            data["caption"] = caption
        response = await self.http_client.post(
            url,
            data=data,
            files={"document": (filename, content, "application/json")},
            timeout=30,
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()


@dataclass
class TelegramReportSink(ReportSink):
    """Deliver run summaries to a Telegram chat."""

    telegram_client: TelegramClient
    chat_id: int

    async def deliver(self, summary_text: str, attachments: dict[str, bytes]) -> None:
        """Send the summary, then each attachment as a document."""
        await self.telegram_client.send_message(self.chat_id, summary_text)
        failed = []
        for filename, content in attachments.items():
            try:
                await self.telegram_client.send_document(
                    self.chat_id, filename, content
                )
            except httpx.HTTPError:
                _logger.exception("Failed to send report file %s", filename)
                failed.append(filename)
        if failed:
            await self._send_fallback(failed)

    async def _send_fallback(self, failed: list[str]) -> None:
        try:
            await self.telegram_client.send_message(
                self.chat_id, f"{FALLBACK_TEXT} ({', '.join(failed)})"
            )
        except httpx.HTTPError:
            _logger.exception("Failed to send fallback report notice")
