"""
Link entity and owner-index persistence.

Key layout:
  link:{code}   → LinkEntity JSON
  {code}        → legacy bare destination URL (read-only, never deleted);
                  only code-shaped keys are read, so other record types
                  are never mistaken for one
  user:{owner}  → {"links": [code, ...]}
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from infrastructure.kv.protocol import KeyValueStore
from schemas.models.link import LinkEntity, OwnerIndex
from shared.datetime_utils import utc_now
from shared.logging import get_logger
from shared.validators import validate_alias

log = get_logger(__name__)


def link_key(code: str) -> str:
    return f"link:{code}"


def owner_key(owner: str) -> str:
    return f"user:{owner}"


class LinkRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, code: str) -> Optional[LinkEntity]:
        """Load the entity for *code*, upgrading a legacy bare key on first read."""
        data = await self._store.get_json(link_key(code))
        if data is not None:
            try:
                return LinkEntity.from_store(data)
            except PydanticValidationError as e:
                log.warning("link_entity_corrupt", code=code, error=str(e))
                return None

        if not validate_alias(code):
            return None
        legacy_url = await self._store.get(code)
        if not legacy_url:
            return None

        entity = LinkEntity.from_legacy(legacy_url, utc_now())
        # The legacy key stays in place; only the new-format copy is written
        await self._store.put(link_key(code), entity.to_store())
        log.info("legacy_link_upgraded", code=code)
        return entity

    async def exists(self, code: str) -> bool:
        if await self._store.get(link_key(code)) is not None:
            return True
        return validate_alias(code) and await self._store.get(code) is not None

    async def save(self, code: str, entity: LinkEntity) -> None:
        await self._store.put(link_key(code), entity.to_store())

    async def delete(self, code: str) -> None:
        await self._store.delete(link_key(code))

    async def list_owner_codes(self, owner: str) -> list[str]:
        data = await self._store.get_json(owner_key(owner))
        if not isinstance(data, dict):
            return []
        return OwnerIndex.model_validate(data).links

    async def add_owner_code(self, owner: str, code: str) -> None:
        codes = await self.list_owner_codes(owner)
        if code not in codes:
            codes.append(code)
        await self._store.put(owner_key(owner), OwnerIndex(links=codes).model_dump_json())

    async def remove_owner_code(self, owner: str, code: str) -> None:
        codes = await self.list_owner_codes(owner)
        if code not in codes:
            return
        codes = [c for c in codes if c != code]
        await self._store.put(owner_key(owner), OwnerIndex(links=codes).model_dump_json())
