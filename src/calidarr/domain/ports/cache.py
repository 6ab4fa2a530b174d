"""Cache Port - request-level cache over the persisted store."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol


class CachePort(Protocol):
    """Port for the request-level cache (TTL in minutes).

    Implementations degrade gracefully: backend failures read as misses
    and lost writes, never as exceptions.
    """

    async def get(self, key: str) -> Any:
        """Retrieve value. None = not found / expired / backend failure."""
        ...

    async def set(self, key: str, value: Any, *, ttl_minutes: int = 30) -> bool:
        """Store a JSON-serializable value. False = write was lost."""
        ...

    async def delete(self, key: str) -> bool: ...

    async def get_or_set(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        *,
        ttl_minutes: int = 30,
    ) -> Any:
        """Return the cached value or compute, store and return it."""
        ...
