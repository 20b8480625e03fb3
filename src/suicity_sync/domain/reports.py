"""Domain models for run statistics and reports."""

from dataclasses import dataclass, field
from pathlib import Path

STAKE_CATEGORIES = (
    "sivilian",
    "general",
    "officer",
    "clown",
    "engineer",
    "legendary",
)


@dataclass
class UpdateCounters:
    """Tally of decisions made by the updater."""

    wallet_ids_updated: int = 0
    nft_fields_updated: int = 0
    nft_data_refreshed: int = 0
    records_removed: int = 0
    records_skipped: int = 0


@dataclass(frozen=True)
class DuplicateIdentity:
    """A value shared by more than one record."""

    column: str
    value: str
    record_ids: tuple[str, ...]


@dataclass(frozen=True)
class BalanceEntry:
    """Normalized balance for a record."""

    twitter_id: str | None
    wallet_address: str | None
    balance: float
    population: int
    share_pct: float


@dataclass(frozen=True)
class BalanceReport:
    """Balances across all records with a wallet container."""

    entries: list[BalanceEntry]
    total_balance: float
    total_population: int
    failed_lookups: int = 0

    def sorted_entries(self) -> list[BalanceEntry]:
        """Entries ordered by numeric balance, largest first."""
        return sorted(self.entries, key=lambda entry: entry.balance, reverse=True)


@dataclass(frozen=True)
class StakerEntry:
    """Per-category staked counts for a wallet."""

    wallet_address: str | None
    counts: tuple[int, ...]


@dataclass
class StakeSummary:
    """Staked-asset histogram across records."""

    totals: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(STAKE_CATEGORIES, 0)
    )
    total: int = 0
    records_counted: int = 0
    stakers: list[StakerEntry] = field(default_factory=list)
    non_sivilian_stakers: list[StakerEntry] = field(default_factory=list)
    skipped_record_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SummaryReport:
    """Result of a full reconciliation run."""

    ref_numbers_generated: int
    wallet_ids_updated: int
    nft_fields_updated: int
    nft_data_refreshed: int
    records_removed: int
    records_skipped: int
    duplicate_wallet_addresses: list[str]
    duplicate_telegram_ids: list[str]
    total_population: str
    total_balance: str
    stake_totals: dict[str, int]
    total_staked: int
    stakers: int
    failed_balance_lookups: int
    duration_seconds: float
    artifacts: dict[str, Path] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        """Serialize the report for JSON responses."""
        return {
            "ref_numbers_generated": self.ref_numbers_generated,
            "wallet_ids_updated": self.wallet_ids_updated,
            "nft_fields_updated": self.nft_fields_updated,
            "nft_data_refreshed": self.nft_data_refreshed,
            "records_removed": self.records_removed,
            "records_skipped": self.records_skipped,
            "duplicate_wallet_addresses": self.duplicate_wallet_addresses,
            "duplicate_telegram_ids": self.duplicate_telegram_ids,
            "total_population": self.total_population,
            "total_balance": self.total_balance,
            "stake_totals": self.stake_totals,
            "total_staked": self.total_staked,
            "stakers": self.stakers,
            "failed_balance_lookups": self.failed_balance_lookups,
            "duration_seconds": round(self.duration_seconds, 2),
            "artifacts": {name: str(path) for name, path in self.artifacts.items()},
        }
