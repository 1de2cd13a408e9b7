"""
Daily usage buckets and visitor dedup markers.

Key layout:
  stats:{code}:{YYYYMMDD}                  → DailyBucket JSON
  visitor:{code}:{fingerprint}:{YYYYMMDD}  → "1", expires after 24 h
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError

from infrastructure.kv.protocol import KeyValueStore
from schemas.models.analytics import DailyBucket
from shared.logging import get_logger

log = get_logger(__name__)

VISITOR_MARKER_TTL_SECONDS = 86400


def bucket_key(code: str, day: str) -> str:
    return f"stats:{code}:{day}"


def visitor_key(code: str, fingerprint: str, day: str) -> str:
    return f"visitor:{code}:{fingerprint}:{day}"


class StatsRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get_bucket(self, code: str, day: str) -> DailyBucket:
        """Return the bucket for (*code*, *day*); a missing one is all zeros."""
        data = await self._store.get_json(bucket_key(code, day))
        if not isinstance(data, dict):
            return DailyBucket()
        try:
            return DailyBucket.model_validate(data)
        except PydanticValidationError as e:
            log.warning("stats_bucket_corrupt", code=code, day=day, error=str(e))
            return DailyBucket()

    async def save_bucket(self, code: str, day: str, bucket: DailyBucket) -> None:
        await self._store.put(bucket_key(code, day), bucket.to_store())

    async def has_visitor(self, code: str, fingerprint: str, day: str) -> bool:
        return await self._store.get(visitor_key(code, fingerprint, day)) is not None

    async def mark_visitor(self, code: str, fingerprint: str, day: str) -> None:
        await self._store.put(
            visitor_key(code, fingerprint, day),
            "1",
            ttl_seconds=VISITOR_MARKER_TTL_SECONDS,
        )
