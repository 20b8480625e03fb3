"""Domain models for registry records and store operations."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

COLUMN_WALLET_ADDRESS = "wallet_address"
COLUMN_REF_NUMBER = "ref_number"
COLUMN_WALLET_ID = "wallet_id"
COLUMN_NFT = "nft"
COLUMN_NFT_NAME = "nft_name"
COLUMN_NFT_DATA = "nft_data"

RECORD_COLUMNS = (
    "id",
    COLUMN_WALLET_ADDRESS,
    COLUMN_REF_NUMBER,
    COLUMN_WALLET_ID,
    COLUMN_NFT,
    COLUMN_NFT_NAME,
    COLUMN_NFT_DATA,
    "population",
    "twitter_id",
    "telegram_id",
)


class NftShape(Enum):
    """How the `nft` column is stored for a record."""

    MISSING = "missing"
    SCALAR = "scalar"
    LEGACY = "legacy"


@dataclass(frozen=True)
class UserRecord:
    """A registered participant in the bindings table."""

    id: UUID
    wallet_address: str | None = None
    ref_number: int | None = None
    wallet_object_id: str | None = None
    nft_id: str | None = None
    nft_shape: NftShape = NftShape.MISSING
    nft_name: str | None = None
    nft_data: dict[str, object] | None = None
    population: int = 0
    twitter_id: str | None = None
    telegram_id: str | None = None


@dataclass(frozen=True)
class SetFields:
    """Set columns on a single record."""

    record_id: UUID
    fields: dict[str, object]


@dataclass(frozen=True)
class DeleteRecord:
    """Remove a single record."""

    record_id: UUID


RecordOp = SetFields | DeleteRecord


@dataclass(frozen=True)
class BulkWriteResult:
    """Counts reported by the store for a bulk write."""

    updated: int
    deleted: int


def parse_stored_nft(raw: object) -> tuple[str | None, NftShape]:
    """Normalize the stored `nft` value into an id and its shape."""
    if raw is None or raw == "":
        return None, NftShape.MISSING
    if isinstance(raw, str):
        return raw, NftShape.SCALAR
    return None, NftShape.LEGACY


def parse_record_row(row: dict[str, object]) -> UserRecord:
    """Build a record from a stored row, tolerating partial projections."""
    nft_id, nft_shape = parse_stored_nft(row.get(COLUMN_NFT))
    nft_data = row.get(COLUMN_NFT_DATA)
    return UserRecord(
        id=UUID(str(row["id"])),
        wallet_address=_optional_str(row.get(COLUMN_WALLET_ADDRESS)),
        ref_number=_optional_int(row.get(COLUMN_REF_NUMBER)),
        wallet_object_id=_optional_str(row.get(COLUMN_WALLET_ID)),
        nft_id=nft_id,
        nft_shape=nft_shape,
        nft_name=_optional_str(row.get(COLUMN_NFT_NAME)),
        nft_data=nft_data if isinstance(nft_data, dict) else None,
        population=_optional_int(row.get("population")) or 0,
        twitter_id=_optional_str(row.get("twitter_id")),
        telegram_id=_optional_str(row.get("telegram_id")),
    )


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(str(value)))
    except ValueError:
        return None
