"""Rate-limited, retrying access to the chain client."""

import asyncio
from dataclasses import dataclass, field

from suicity_sync.adapters.sui_client import ChainClient
from suicity_sync.domain.chain import OwnedObjectsPage, SuiObjectResponse
from suicity_sync.services.retry import RetryPolicy


@dataclass
class ChainGateway:
    """Single path for chain reads during a run.

    Every query holds a slot of `limiter` for its whole retry sequence, so
    at most `limiter` queries are in flight across all stages.
    """

    client: ChainClient
    retry: RetryPolicy
    limiter: asyncio.Semaphore = field(default_factory=lambda: asyncio.Semaphore(2))

    async def list_owned_objects(
        self, address: str, cursor: str | None = None
    ) -> OwnedObjectsPage:
        """Fetch a page of owned objects."""
        async with self.limiter:
            return await self.retry.call(
                self.client.list_owned_objects, address, cursor
            )

    async def get_object(
        self, object_id: str, *, show_content: bool = True
    ) -> SuiObjectResponse:
        """Fetch an object."""
        async with self.limiter:
            return await self.retry.call(
                self.client.get_object, object_id, show_content=show_content
            )
