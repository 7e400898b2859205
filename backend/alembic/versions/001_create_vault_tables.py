"""Create vault entry tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates `vault_entries` and the ordered tag table `vault_entry_tags`.

Rollback: downgrade() drops both tables (destructive, all entries lost;
backup snapshots on disk are unaffected).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create both tables with their indexes. See vault_api/models/vault_entry.py."""
    op.create_table(
        "vault_entries",
        sa.Column("id", sa.Uuid(), nullable=False,
                  comment="Unique identifier, assigned at creation and never reused"),
        sa.Column("name", sa.Text(), nullable=False, comment="Entry name, stored trimmed"),
        sa.Column("content", sa.Text(), nullable=False, comment="Entry body"),
        sa.Column("category", sa.Text(), nullable=False,
                  comment="Free-form category, 'general' when omitted"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False,
                  comment="Set once at creation (UTC)"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False,
                  comment="Set at creation, bumped on every update (UTC)"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_vault_entries_created_at",
        "vault_entries",
        [sa.text("created_at DESC")],
    )
    op.create_index("idx_vault_entries_category", "vault_entries", ["category"])

    op.create_table(
        "vault_entry_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entry_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["entry_id"], ["vault_entries.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vault_entry_tags_entry_id", "vault_entry_tags", ["entry_id"])
    op.create_index("ix_vault_entry_tags_value", "vault_entry_tags", ["value"])


def downgrade() -> None:
    op.drop_index("ix_vault_entry_tags_value", table_name="vault_entry_tags")
    op.drop_index("ix_vault_entry_tags_entry_id", table_name="vault_entry_tags")
    op.drop_table("vault_entry_tags")
    op.drop_index("idx_vault_entries_category", table_name="vault_entries")
    op.drop_index("idx_vault_entries_created_at", table_name="vault_entries")
    op.drop_table("vault_entries")
