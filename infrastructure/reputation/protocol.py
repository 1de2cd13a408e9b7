"""ReputationProvider protocol - the safety service depends on this, not the concrete implementation."""

from typing import Protocol

from schemas.models.safety import ReputationResult


class ReputationProvider(Protocol):
    async def lookup(self, url: str) -> ReputationResult: ...
