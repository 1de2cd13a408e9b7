"""
Community reputation ledger and per-reporter rate-limit counters.

Key layout:
  blocklist:{domain}                     → ReputationEntry JSON (never expires)
  ratelimit:report:{reporter}:{YYYYMMDD} → integer as text, expires after 24 h
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from infrastructure.kv.protocol import KeyValueStore
from schemas.models.safety import ReputationEntry
from shared.logging import get_logger

log = get_logger(__name__)

RATE_LIMIT_TTL_SECONDS = 86400


def reputation_key(domain: str) -> str:
    return f"blocklist:{domain}"


def report_limit_key(reporter: str, day: str) -> str:
    return f"ratelimit:report:{reporter}:{day}"


class ReputationRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get_entry(self, domain: str) -> Optional[ReputationEntry]:
        data = await self._store.get_json(reputation_key(domain))
        if not isinstance(data, dict):
            return None
        try:
            return ReputationEntry.model_validate(data)
        except PydanticValidationError as e:
            log.warning("reputation_entry_corrupt", domain=domain, error=str(e))
            return None

    async def save_entry(self, domain: str, entry: ReputationEntry) -> None:
        await self._store.put(reputation_key(domain), entry.to_store())

    async def get_report_count(self, reporter: str, day: str) -> int:
        raw = await self._store.get(report_limit_key(reporter, day))
        try:
            return int(raw) if raw is not None else 0
        except ValueError:
            return 0

    async def set_report_count(self, reporter: str, day: str, count: int) -> None:
        await self._store.put(
            report_limit_key(reporter, day),
            str(count),
            ttl_seconds=RATE_LIMIT_TTL_SECONDS,
        )
