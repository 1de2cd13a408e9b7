"""KeyValueStore protocol - repositories depend on this, not the concrete implementation."""

from typing import Any, Optional, Protocol


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def put(
        self, key: str, value: str, ttl_seconds: Optional[int] = None
    ) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def get_json(self, key: str) -> Optional[Any]: ...

    async def put_json(
        self, key: str, value: Any, ttl_seconds: Optional[int] = None
    ) -> None: ...
