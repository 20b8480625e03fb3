"""Locate the qualifying NFT held by a wallet address."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import httpx

from suicity_sync.domain.chain import (
    OwnedObjectRef,
    Resolution,
    ResolutionStatus,
    ResolvedNft,
    SuiObjectData,
)
from suicity_sync.errors import ChainQueryError, MalformedUpstreamData, RetryExhausted
from suicity_sync.services.chain import ChainGateway

_logger = logging.getLogger(__name__)

DEFAULT_NFT_NAME = "Unnamed NFT"


@dataclass
class NftResolver:
    """Resolver with a per-run cache keyed by wallet address.

    Concurrent requests for the same address share one lookup, and every
    outcome (including "none found") is kept for the life of the resolver.
    """

    gateway: ChainGateway
    nft_type: str
    _lookups: dict[str, "asyncio.Task[Resolution]"] = field(default_factory=dict)

    @property
    def lookups_performed(self) -> int:
        """Number of distinct addresses looked up on chain."""
        return len(self._lookups)

    async def resolve(self, address: str) -> Resolution:
        """Return the resolution for an address, looking it up at most once."""
        task = self._lookups.get(address)
        if task is None:
            task = asyncio.ensure_future(self._lookup(address))
            self._lookups[address] = task
        return await task

    async def resolve_many(self, addresses: Iterable[str]) -> dict[str, Resolution]:
        """Resolve many addresses concurrently under the gateway limit."""
        unique = list(dict.fromkeys(addresses))
        results = await asyncio.gather(*(self.resolve(address) for address in unique))
        return dict(zip(unique, results, strict=True))

    async def _lookup(self, address: str) -> Resolution:
        try:
            match = await self._find_first_match(address)
            if match is None:
                _logger.info("No qualifying NFT for wallet %s", address)
                return Resolution(address=address, status=ResolutionStatus.NOT_FOUND)
            response = await self.gateway.get_object(match.object_id)
            if response.data is None:
                raise MalformedUpstreamData(
                    f"NFT {match.object_id} returned no data: {response.error}"
                )
            nft = _to_resolved_nft(response.data)
        except MalformedUpstreamData as exc:
            _logger.warning("Malformed NFT data for wallet %s: %s", address, exc)
            return Resolution(
                address=address, status=ResolutionStatus.MALFORMED, detail=str(exc)
            )
        except (RetryExhausted, ChainQueryError, httpx.HTTPError) as exc:
            _logger.warning("NFT lookup failed for wallet %s: %s", address, exc)
            return Resolution(
                address=address, status=ResolutionStatus.UNAVAILABLE, detail=str(exc)
            )
        except Exception as exc:
            _logger.exception("Unexpected error resolving wallet %s", address)
            return Resolution(
                address=address, status=ResolutionStatus.UNAVAILABLE, detail=str(exc)
            )
        return Resolution(address=address, status=ResolutionStatus.FOUND, nft=nft)

    async def _find_first_match(self, address: str) -> OwnedObjectRef | None:
        """Page through owned objects and return the first of the NFT type."""
        cursor: str | None = None
        while True:
            page = await self.gateway.list_owned_objects(address, cursor)
            for entry in page.data:
                if entry.data is not None and entry.data.type == self.nft_type:
                    return entry.data
            if not page.data or not page.next_cursor or not page.has_next_page:
                return None
            cursor = page.next_cursor


def _to_resolved_nft(data: SuiObjectData) -> ResolvedNft:
    """Read the wallet container and display name from NFT content."""
    if data.content is None:
        raise MalformedUpstreamData(f"NFT {data.object_id} has no content")
    fields = data.content.fields
    wallet = fields.get("wallet")
    if not isinstance(wallet, str) or not wallet:
        raise MalformedUpstreamData(f"NFT {data.object_id} has no wallet field")
    name = fields.get("name")
    return ResolvedNft(
        nft_id=data.object_id,
        nft_name=name if isinstance(name, str) and name else DEFAULT_NFT_NAME,
        wallet_object_id=wallet,
        snapshot=data.snapshot(),
    )
