"""
Vault API Backend: Vault Store (Persistence Gateway)
=====================================================

What:  Typed wrapper around every database operation on vault entries.
How:   Each public method is one unit of work (`Database.session()`), so a
       call either commits completely or raises StoreError. Rows are turned
       into VaultEntryResponse objects before the session closes; ORM objects
       never leave this module.
Who:   Called by VaultService, BackupWriter and ReportService.

Operations:
    find_all(where, sort, limit)   → list of entries
    find_by_id(id)                 → entry or None
    insert_one(fields)             → created entry
    update_by_id(id, changes)      → updated entry or None
    delete_by_id(id)               → deleted entry (last state) or None
    count(*criteria)               → int
    aggregate_by_group(column)     → [(key, count)] sorted by count desc
    search(q)                      → entries matching q in any text field
    tag_frequencies(limit)         → [(tag, count)] sorted by count desc
    storage_footprint()            → characters stored across entries and tags
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from vault_api.database import Database
from vault_api.exceptions import StoreOperationFailed
from vault_api.models.vault_entry import VaultEntry, VaultTag, as_utc, prepare_for_write
from vault_api.schemas.vault import SortField, SortOrder, VaultEntryResponse

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    SortField.NAME: VaultEntry.name,
    SortField.DATE: VaultEntry.created_at,
}

_LIKE_ESCAPE = "\\"


def parse_entry_id(raw: str) -> uuid.UUID:
    """
    Convert a path parameter into an entry id.

    A malformed id is a failed store operation (HTTP 500), not a 404: it can
    never have been issued by this service.
    """
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise StoreOperationFailed(
            message="Invalid vault entry identifier",
            context={"id": raw},
        )


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the query is matched as a literal substring."""
    return (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def to_response(entry: VaultEntry) -> VaultEntryResponse:
    return VaultEntryResponse(
        id=entry.id,
        name=entry.name,
        content=entry.content,
        category=entry.category,
        tags=entry.tags,
        created_at=as_utc(entry.created_at),
        updated_at=as_utc(entry.updated_at),
    )


class VaultStore:
    """
    Persistence gateway for the vault entry collection.

    Stateless apart from the Database handle; safe to share across
    concurrent requests.
    """

    def __init__(self, database: Database):
        self.database = database

    # ── Reads ─────────────────────────────────────────────────────────────

    async def find_all(
        self,
        where: Optional[ColumnElement] = None,
        sort: Optional[Tuple[SortField, SortOrder]] = None,
        limit: Optional[int] = None,
    ) -> List[VaultEntryResponse]:
        """
        Return entries matching `where`, ordered by `sort`.

        Without `sort` entries come back oldest first (insertion order).
        """
        query = select(VaultEntry)
        if where is not None:
            query = query.where(where)

        field, order = sort or (SortField.DATE, SortOrder.ASC)
        direction = desc if order is SortOrder.DESC else asc
        # Secondary key keeps equal names/timestamps in a stable order
        tiebreak = VaultEntry.created_at if field is SortField.NAME else VaultEntry.id
        query = query.order_by(direction(SORT_COLUMNS[field]), direction(tiebreak))

        if limit is not None:
            query = query.limit(limit)

        async with self.database.session() as session:
            result = await session.execute(query)
            return [to_response(entry) for entry in result.scalars().all()]

    async def find_by_id(self, entry_id: str) -> Optional[VaultEntryResponse]:
        uid = parse_entry_id(entry_id)
        async with self.database.session() as session:
            entry = await session.get(VaultEntry, uid)
            return to_response(entry) if entry is not None else None

    async def search(self, q: str) -> List[VaultEntryResponse]:
        """
        Case-insensitive substring match on name, content, category and tags.

        Results are newest first.
        """
        pattern = f"%{escape_like(q)}%"
        criteria = or_(
            VaultEntry.name.ilike(pattern, escape=_LIKE_ESCAPE),
            VaultEntry.content.ilike(pattern, escape=_LIKE_ESCAPE),
            VaultEntry.category.ilike(pattern, escape=_LIKE_ESCAPE),
            VaultEntry.tag_rows.any(VaultTag.value.ilike(pattern, escape=_LIKE_ESCAPE)),
        )
        return await self.find_all(where=criteria, sort=(SortField.DATE, SortOrder.DESC))

    async def count(self, *criteria: ColumnElement) -> int:
        query = select(func.count(VaultEntry.id))
        if criteria:
            query = query.where(*criteria)
        async with self.database.session() as session:
            result = await session.execute(query)
            return result.scalar() or 0

    async def aggregate_by_group(self, column: Any) -> List[Tuple[Any, int]]:
        """
        Count entries per distinct value of `column`.

        Sorted by count descending, then by key ascending.
        """
        tally = func.count(VaultEntry.id).label("count")
        query = (
            select(column, tally)
            .group_by(column)
            .order_by(desc(tally), asc(column))
        )
        async with self.database.session() as session:
            result = await session.execute(query)
            return [(key, count) for key, count in result.all()]

    async def tag_frequencies(self, limit: int = 10) -> List[Tuple[str, int]]:
        """Most used tags, count descending, ties broken alphabetically."""
        tally = func.count(VaultTag.id).label("count")
        query = (
            select(VaultTag.value, tally)
            .group_by(VaultTag.value)
            .order_by(desc(tally), asc(VaultTag.value))
            .limit(limit)
        )
        async with self.database.session() as session:
            result = await session.execute(query)
            return [(tag, count) for tag, count in result.all()]

    async def storage_footprint(self) -> int:
        """Characters held in entry text fields plus tag values."""
        entry_chars = select(
            func.coalesce(
                func.sum(
                    func.length(VaultEntry.name)
                    + func.length(VaultEntry.content)
                    + func.length(VaultEntry.category)
                ),
                0,
            )
        )
        tag_chars = select(func.coalesce(func.sum(func.length(VaultTag.value)), 0))
        async with self.database.session() as session:
            entries_total = (await session.execute(entry_chars)).scalar() or 0
            tags_total = (await session.execute(tag_chars)).scalar() or 0
        return int(entries_total) + int(tags_total)

    # ── Writes ────────────────────────────────────────────────────────────

    async def insert_one(self, fields: Dict[str, Any]) -> VaultEntryResponse:
        prepared = prepare_for_write(fields)
        tags = prepared.pop("tags")

        async with self.database.session() as session:
            entry = VaultEntry(**prepared)
            entry.replace_tags(tags)
            session.add(entry)
            await session.flush()
            created = to_response(entry)

        logger.info("Vault entry created: %s", created.id)
        return created

    async def update_by_id(
        self, entry_id: str, changes: Dict[str, Any]
    ) -> Optional[VaultEntryResponse]:
        """Apply `changes` to one entry; None when the id does not exist."""
        uid = parse_entry_id(entry_id)

        async with self.database.session() as session:
            entry = await session.get(VaultEntry, uid)
            if entry is None:
                return None

            prepared = prepare_for_write(changes, previous_updated_at=entry.updated_at)
            tags = prepared.pop("tags", None)
            for key, value in prepared.items():
                setattr(entry, key, value)
            if tags is not None:
                entry.replace_tags(tags)

            await session.flush()
            updated = to_response(entry)

        logger.info("Vault entry updated: %s", updated.id)
        return updated

    async def delete_by_id(self, entry_id: str) -> Optional[VaultEntryResponse]:
        """Delete one entry (tags cascade); returns its last state or None."""
        uid = parse_entry_id(entry_id)

        async with self.database.session() as session:
            entry = await session.get(VaultEntry, uid)
            if entry is None:
                return None
            deleted = to_response(entry)
            await session.delete(entry)

        logger.info("Vault entry deleted: %s", deleted.id)
        return deleted

    async def ping(self) -> bool:
        return await self.database.ping()


def sort_column_name(field: SortField) -> str:
    """Wire name of the column a SortField sorts on (date → createdAt)."""
    return "name" if field is SortField.NAME else "createdAt"

