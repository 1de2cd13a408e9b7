"""
Workspace persistence.

Key layout:
  workspace:{id} → Workspace JSON (name, admins, members, links)

Updates are read-modify-write like every other record in the store, so two
concurrent joins can drop one of them.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from infrastructure.kv.protocol import KeyValueStore
from schemas.models.workspace import DEFAULT_WORKSPACE_NAME, Workspace
from shared.logging import get_logger

log = get_logger(__name__)


def workspace_key(workspace_id: str) -> str:
    return f"workspace:{workspace_id}"


class WorkspaceRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, workspace_id: str) -> Optional[Workspace]:
        data = await self._store.get_json(workspace_key(workspace_id))
        if not isinstance(data, dict):
            return None
        try:
            return Workspace.model_validate(data)
        except PydanticValidationError as e:
            log.warning("workspace_corrupt", workspace_id=workspace_id, error=str(e))
            return None

    async def save(self, workspace_id: str, workspace: Workspace) -> None:
        await self._store.put(workspace_key(workspace_id), workspace.to_store())

    async def add_member(
        self, workspace_id: str, member: str, name: Optional[str] = None
    ) -> Workspace:
        """Join *member* to the workspace, creating it on first use."""
        workspace = await self.get(workspace_id)
        if workspace is not None and member in workspace.members:
            return workspace

        if workspace is None:
            workspace = Workspace(name=name or DEFAULT_WORKSPACE_NAME)
            log.info("workspace_created", workspace_id=workspace_id)
        workspace.members.append(member)
        await self.save(workspace_id, workspace)
        return workspace

    async def add_link(self, workspace_id: str, code: str) -> bool:
        """Append *code*; a workspace that does not exist is left alone."""
        workspace = await self.get(workspace_id)
        if workspace is None:
            return False
        if code not in workspace.links:
            workspace.links.append(code)
            await self.save(workspace_id, workspace)
        return True
