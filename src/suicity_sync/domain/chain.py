"""Pydantic models for Sui RPC payloads and resolver results."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OwnedObjectRef(BaseModel):
    """Object reference returned by `suix_getOwnedObjects`."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    object_id: str = Field(alias="objectId")
    type: str | None = None


class OwnedObjectEntry(BaseModel):
    """Single entry of an owned-objects page."""

    data: OwnedObjectRef | None = None


class OwnedObjectsPage(BaseModel):
    """Page of objects owned by an address."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[OwnedObjectEntry] = Field(default_factory=list)
    next_cursor: str | None = Field(default=None, alias="nextCursor")
    has_next_page: bool = Field(default=False, alias="hasNextPage")


class MoveContent(BaseModel):
    """Parsed Move object content."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    data_type: str | None = Field(default=None, alias="dataType")
    type: str | None = None
    fields: dict[str, object] = Field(default_factory=dict)


class SuiObjectData(BaseModel):
    """Object data returned by `sui_getObject`."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    object_id: str = Field(alias="objectId")
    version: str | None = None
    digest: str | None = None
    type: str | None = None
    content: MoveContent | None = None

    def snapshot(self) -> dict[str, object]:
        """Return the object as a JSON-ready dict with RPC field names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class SuiObjectResponse(BaseModel):
    """Envelope for `sui_getObject` results."""

    data: SuiObjectData | None = None
    error: dict[str, object] | None = None


@dataclass(frozen=True)
class ResolvedNft:
    """Qualifying NFT found for a wallet address."""

    nft_id: str
    nft_name: str
    wallet_object_id: str
    snapshot: dict[str, object]


class ResolutionStatus(Enum):
    """Outcome of resolving an address."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class Resolution:
    """Resolver result for a wallet address."""

    address: str
    status: ResolutionStatus
    nft: ResolvedNft | None = None
    detail: str | None = None
