"""Sui JSON-RPC client adapter."""

from dataclasses import dataclass, field
from itertools import count
from typing import Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from suicity_sync.domain.chain import OwnedObjectsPage, SuiObjectResponse
from suicity_sync.errors import ChainQueryError, MalformedUpstreamData, RateLimited

HTTP_TOO_MANY_REQUESTS = 429
MAX_PAGE_SIZE = 50

ModelT = TypeVar("ModelT", bound=BaseModel)


class ChainClient(Protocol):
    """Interface for read-only chain queries."""

    async def list_owned_objects(
        self, address: str, cursor: str | None = None
    ) -> OwnedObjectsPage:
        """Return one page of objects owned by an address."""

    async def get_object(
        self, object_id: str, *, show_content: bool = True
    ) -> SuiObjectResponse:
        """Return an object with its parsed content."""


@dataclass
class HttpxSuiClient(ChainClient):
    """Sui fullnode client implemented with httpx."""

    rpc_url: str
    http_client: httpx.AsyncClient
    page_size: int = MAX_PAGE_SIZE
    _ids: count = field(default_factory=lambda: count(1), repr=False)

    @classmethod
    def create(cls, rpc_url: str) -> "HttpxSuiClient":
        """Create a Sui client with a managed httpx session."""
        return cls(rpc_url=rpc_url, http_client=httpx.AsyncClient())

    async def list_owned_objects(
        self, address: str, cursor: str | None = None
    ) -> OwnedObjectsPage:
        """Call `suix_getOwnedObjects` with object types included."""
        result = await self._request(
            "suix_getOwnedObjects",
            [address, {"options": {"showType": True}}, cursor, self.page_size],
        )
        return _validate(OwnedObjectsPage, result, "suix_getOwnedObjects")

    async def get_object(
        self, object_id: str, *, show_content: bool = True
    ) -> SuiObjectResponse:
        """Call `sui_getObject`."""
        result = await self._request(
            "sui_getObject",
            [object_id, {"showContent": show_content, "showType": True}],
        )
        return _validate(SuiObjectResponse, result, "sui_getObject")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _request(self, method: str, params: list[object]) -> object:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = await self.http_client.post(self.rpc_url, json=payload, timeout=30)
        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            raise RateLimited(method)
        response.raise_for_status()
        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedUpstreamData(f"{method} returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise MalformedUpstreamData(f"{method} returned {type(body).__name__}")
        error = body.get("error")
        if isinstance(error, dict):
            raise ChainQueryError(
                method, error.get("code"), str(error.get("message", ""))
            )
        if error:
            raise ChainQueryError(method, None, str(error))
        return body.get("result")


def _validate(model: type[ModelT], payload: object, method: str) -> ModelT:
    """Validate an RPC result against its schema."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise MalformedUpstreamData(f"Unexpected {method} payload: {exc}") from exc
