"""Protocol definitions for data access."""

from __future__ import annotations

from typing import Protocol


class KeyValueStoreProtocol(Protocol):
    """Async key to blob store.

    Small (a few hundred kilobytes at most), non-transactional, single writer.
    """

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...
