"""Error taxonomy for the reconciliation engine."""


class SyncError(Exception):
    """Base class for reconciliation errors."""


class RateLimited(SyncError):
    """Upstream signalled throttling (HTTP 429)."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Rate limited during {action}")
        self.action = action


class RetryExhausted(SyncError):
    """All retry attempts of a remote query were rate limited."""

    def __init__(self, action: str, attempts: int) -> None:
        super().__init__(f"Retries exhausted for {action} after {attempts} attempts")
        self.action = action
        self.attempts = attempts


class MalformedUpstreamData(SyncError):
    """Fetched chain content does not have the expected shape."""


class ChainQueryError(SyncError):
    """The chain RPC answered with an error object."""

    def __init__(self, method: str, code: object, message: str) -> None:
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code


class StoreUnavailable(SyncError):
    """The record store could not be reached or rejected a write."""
