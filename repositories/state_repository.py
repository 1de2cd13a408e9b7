"""
Externalized per-conversation state and per-owner QR preferences.

Each step of a multi-step dialogue reads and writes an explicit record
that expires on its own. No HTTP route reads it: the chat front end that
runs those dialogues calls get_state, set_state and clear_state directly.
Preferences are also served over HTTP.

Key layout:
  state:{conversation} → JSON object, expires after 1 h
  pref:{owner}         → QrPreferences JSON
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError
from infrastructure.kv.protocol import KeyValueStore
from schemas.models.preferences import COLOR_SCHEMES, QR_STYLES, QrPreferences

STATE_TTL_SECONDS = 3600


def state_key(conversation: str) -> str:
    return f"state:{conversation}"


def preferences_key(owner: str) -> str:
    return f"pref:{owner}"


class StateRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get_state(self, conversation: str) -> Optional[dict[str, Any]]:
        data = await self._store.get_json(state_key(conversation))
        return data if isinstance(data, dict) else None

    async def set_state(self, conversation: str, state: dict[str, Any]) -> None:
        await self._store.put_json(
            state_key(conversation), state, ttl_seconds=STATE_TTL_SECONDS
        )

    async def clear_state(self, conversation: str) -> None:
        await self._store.delete(state_key(conversation))

    async def get_preferences(self, owner: str) -> QrPreferences:
        data = await self._store.get_json(preferences_key(owner))
        if not isinstance(data, dict):
            return QrPreferences()
        try:
            return QrPreferences.model_validate(data)
        except PydanticValidationError:
            return QrPreferences()

    async def set_preferences(
        self, owner: str, style: str, color_scheme: str
    ) -> QrPreferences:
        if style not in QR_STYLES:
            raise ValidationError(f"unknown QR style: {style}", field="style")
        if color_scheme not in COLOR_SCHEMES:
            raise ValidationError(
                f"unknown colour scheme: {color_scheme}", field="color_scheme"
            )
        prefs = QrPreferences(style=style, color_scheme=color_scheme)
        await self._store.put(preferences_key(owner), prefs.to_store())
        return prefs
