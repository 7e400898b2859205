"""
Vault API Backend: Vault Service (Request Orchestration)
=========================================================

What:  Validation and sequencing behind every /api/vault route.
How:   Validates input, calls VaultStore, then BackupWriter for mutations.
Who:   Called by routes/vault.py through the AppContext.

Backup ordering:
    create / update:  persist  → snapshot  (snapshot shows the new state)
    delete:           snapshot → delete    (snapshot shows the entry still there)

    Both are two independent fallible steps. A failed snapshot fails the
    request (500); for delete it also means the delete never runs.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from vault_api.exceptions import ClientInputError, NotFoundError
from vault_api.schemas.vault import (
    BackupOperation,
    BackupTrigger,
    SortField,
    SortOrder,
    VaultEntryCreate,
    VaultEntryResponse,
    VaultEntryUpdate,
)
from vault_api.services.backup_service import BackupWriter
from vault_api.services.store import VaultStore

logger = logging.getLogger(__name__)


def _trigger(entry: VaultEntryResponse) -> BackupTrigger:
    return BackupTrigger(name=entry.name, id=entry.id)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class VaultService:
    """Business rules for vault entries; stateless apart from its collaborators."""

    def __init__(self, store: VaultStore, backups: BackupWriter):
        self.store = store
        self.backups = backups

    # ── Create ────────────────────────────────────────────────────────────

    async def create_entry(self, payload: VaultEntryCreate) -> VaultEntryResponse:
        if _is_blank(payload.name) or not payload.content:
            raise ClientInputError(
                message="Name and content are required",
                field="name" if _is_blank(payload.name) else "content",
            )

        fields: Dict[str, Any] = {"name": payload.name, "content": payload.content}
        if payload.category is not None:
            fields["category"] = payload.category
        if payload.tags is not None:
            fields["tags"] = payload.tags

        entry = await self.store.insert_one(fields)
        await self.backups.create_backup(BackupOperation.CREATE, _trigger(entry))
        return entry

    # ── Read ──────────────────────────────────────────────────────────────

    async def list_entries(self) -> List[VaultEntryResponse]:
        """All entries, newest first."""
        return await self.store.find_all(sort=(SortField.DATE, SortOrder.DESC))

    async def get_entry(self, entry_id: str) -> VaultEntryResponse:
        entry = await self.store.find_by_id(entry_id)
        if entry is None:
            raise NotFoundError(resource_id=entry_id)
        return entry

    async def search_entries(self, q: Optional[str]) -> List[VaultEntryResponse]:
        if not q:
            raise ClientInputError(
                message='Search query parameter "q" is required',
                field="q",
            )
        return await self.store.search(q)

    async def sort_entries(
        self, by: Optional[str] = None, order: Optional[str] = None
    ) -> Tuple[SortField, SortOrder, List[VaultEntryResponse]]:
        """
        Sort by name or creation date.

        Defaults to createdAt descending. Values outside the enumerations are
        rejected rather than falling back to the default.
        """
        field = SortField.DATE
        direction = SortOrder.DESC

        if by:
            try:
                field = SortField(by)
            except ValueError:
                raise ClientInputError(
                    message='Invalid sort field. Use "name" or "date"',
                    field="by",
                    context={"value": by},
                )
        if order:
            try:
                direction = SortOrder(order)
            except ValueError:
                raise ClientInputError(
                    message='Invalid sort order. Use "asc" or "desc"',
                    field="order",
                    context={"value": order},
                )

        entries = await self.store.find_all(sort=(field, direction))
        return field, direction, entries

    # ── Update ────────────────────────────────────────────────────────────

    async def update_entry(self, entry_id: str, payload: VaultEntryUpdate) -> VaultEntryResponse:
        """
        Change the supplied fields of one entry.

        Supplied name/content must stay non-empty; id and createdAt in the
        body are ignored.
        """
        changes = payload.model_dump(exclude_none=True)
        if "name" in changes and _is_blank(changes["name"]):
            raise ClientInputError(message="Name cannot be empty", field="name")
        if "content" in changes and not changes["content"]:
            raise ClientInputError(message="Content cannot be empty", field="content")

        entry = await self.store.update_by_id(entry_id, changes)
        if entry is None:
            raise NotFoundError(resource_id=entry_id)

        await self.backups.create_backup(BackupOperation.UPDATE, _trigger(entry))
        return entry

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_entry(self, entry_id: str) -> VaultEntryResponse:
        """
        Snapshot, then delete. Returns the entry's last state.

        If the snapshot fails the exception propagates and the entry stays.
        """
        entry = await self.store.find_by_id(entry_id)
        if entry is None:
            raise NotFoundError(resource_id=entry_id)

        await self.backups.create_backup(BackupOperation.DELETE, _trigger(entry))

        deleted = await self.store.delete_by_id(entry_id)
        if deleted is None:
            # Removed by a concurrent request between lookup and delete
            logger.warning("Vault entry %s vanished before delete", entry_id)
            raise NotFoundError(resource_id=entry_id)
        return deleted
