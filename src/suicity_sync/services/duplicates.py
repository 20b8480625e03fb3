"""Detect identities shared by more than one record."""

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence

from suicity_sync.domain.records import UserRecord
from suicity_sync.domain.reports import DuplicateIdentity

_logger = logging.getLogger(__name__)


def find_duplicates(
    records: Sequence[UserRecord], column: str, key: Callable[[UserRecord], str | None]
) -> list[DuplicateIdentity]:
    """Return values of `key` held by two or more records, in first-seen order."""
    holders: dict[str, list[str]] = defaultdict(list)
    for record in records:
        value = key(record)
        if value:
            holders[value].append(str(record.id))
    duplicates = [
        DuplicateIdentity(column=column, value=value, record_ids=tuple(ids))
        for value, ids in holders.items()
        if len(ids) > 1
    ]
    for duplicate in duplicates:
        _logger.warning(
            "Duplicate %s %s shared by records %s",
            column,
            duplicate.value,
            ", ".join(duplicate.record_ids),
        )
    return duplicates


def duplicate_wallet_addresses(records: Sequence[UserRecord]) -> list[DuplicateIdentity]:
    """Wallet addresses bound to more than one record."""
    return find_duplicates(records, "wallet_address", lambda r: r.wallet_address)


def duplicate_telegram_ids(records: Sequence[UserRecord]) -> list[DuplicateIdentity]:
    """Telegram ids bound to more than one record."""
    return find_duplicates(records, "telegram_id", lambda r: r.telegram_id)
