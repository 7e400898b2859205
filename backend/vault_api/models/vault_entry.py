"""
Vault API Backend: Vault Entry SQLAlchemy Models
=================================================

What:  ORM models for the `vault_entries` and `vault_entry_tags` tables,
       plus `prepare_for_write`, the timestamp/default transformation every
       insert and update goes through before it reaches the database.
Who:   Used by VaultStore for all reads and writes; by Alembic for migrations.

Table Design:
    vault_entries        one row per entry (UUID primary key)
    vault_entry_tags     ordered tag list, one row per (entry, position)

    Tags live in a child table so search can match each tag individually
    (`EXISTS ... WHERE value ILIKE :q`) and stats can GROUP BY tag value.

    Index on created_at DESC serves the default newest-first listing.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vault_api.database import Base

DEFAULT_CATEGORY = "general"

# Smallest step that survives a round trip through every supported backend
_TIMESTAMP_RESOLUTION = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class VaultEntry(Base):
    """
    A stored vault entry.

    Lifecycle:
        1. Created by POST /api/vault (createdAt == updatedAt)
        2. Updated by PUT /api/vault/{id} (updatedAt strictly increases)
        3. Deleted by DELETE /api/vault/{id} (permanent; tags cascade)
    """

    __tablename__ = "vault_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier, assigned at creation and never reused",
    )

    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Entry name, stored trimmed",
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Entry body",
    )

    category: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=DEFAULT_CATEGORY,
        comment="Free-form category, 'general' when omitted",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Set once at creation (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Set at creation, bumped on every update (UTC)",
    )

    # selectin: async sessions cannot lazy-load, so tags always come with the row
    tag_rows: Mapped[List["VaultTag"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="VaultTag.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_vault_entries_created_at", created_at.desc()),
        Index("idx_vault_entries_category", "category"),
    )

    @property
    def tags(self) -> List[str]:
        return [row.value for row in self.tag_rows]

    def replace_tags(self, values: List[str]) -> None:
        """Swap the whole tag list; orphaned rows are deleted on flush."""
        self.tag_rows = [
            VaultTag(position=position, value=value)
            for position, value in enumerate(values)
        ]

    def __repr__(self) -> str:
        return f"<VaultEntry(id={self.id}, name='{self.name}', category='{self.category}')>"


class VaultTag(Base):
    """One tag of one entry; `position` keeps the client's ordering."""

    __tablename__ = "vault_entry_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    entry_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("vault_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False)

    value: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    entry: Mapped[VaultEntry] = relationship(back_populates="tag_rows")


def prepare_for_write(
    fields: Dict[str, Any],
    previous_updated_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Normalize a field set before it is persisted.

    Create (previous_updated_at is None):
        - name trimmed, category/tags defaulted
        - created_at and updated_at set to the same instant

    Update (previous_updated_at given):
        - only the supplied fields are kept; id and created_at are dropped
        - updated_at = max(now, previous_updated_at + 1µs), so it strictly
          increases even when the clock has not moved

    Returns a new dict; the input is not modified.
    """
    now = as_utc(now or utcnow())
    prepared = {
        key: value
        for key, value in fields.items()
        if key not in ("id", "created_at", "updated_at")
    }

    if "name" in prepared and prepared["name"] is not None:
        prepared["name"] = prepared["name"].strip()

    if "category" in prepared and not (prepared["category"] or "").strip():
        prepared["category"] = DEFAULT_CATEGORY

    if previous_updated_at is None:
        prepared.setdefault("category", DEFAULT_CATEGORY)
        prepared["tags"] = list(prepared.get("tags") or [])
        prepared["created_at"] = now
        prepared["updated_at"] = now
        return prepared

    if "tags" in prepared:
        prepared["tags"] = list(prepared["tags"] or [])
    prepared["updated_at"] = max(now, as_utc(previous_updated_at) + _TIMESTAMP_RESOLUTION)
    return prepared
