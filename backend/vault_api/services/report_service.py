"""
Vault API Backend: Export & Statistics Reporters
=================================================

What:  Read-only views over the whole collection: a plain-text export file
       and an aggregate statistics document.
Who:   Called by routes/reports.py.

Storage estimate:
    Reported as the number of characters held in entry names, contents,
    categories and tags, shown in KB. It approximates payload size, not the
    database's on-disk footprint (indexes, page overhead are not counted).
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import aiofiles

from vault_api.exceptions import FilesystemError
from vault_api.models.vault_entry import VaultEntry
from vault_api.schemas.vault import (
    CategoryCount,
    EntryMarker,
    ExportResponse,
    RecentActivity,
    SortField,
    SortOrder,
    StatsResponse,
    StatsSummary,
    StorageEstimate,
    TagCount,
    VaultEntryResponse,
)
from vault_api.services.store import VaultStore

logger = logging.getLogger(__name__)

RULE_WIDTH = 80
RECENT_WINDOW = timedelta(days=7)
TOP_TAG_LIMIT = 10


def iso_timestamp(moment: datetime) -> str:
    """UTC, millisecond precision, trailing Z (2024-01-15T12:00:00.123Z)."""
    return (
        moment.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def render_export(entries: List[VaultEntryResponse], exported_at: datetime) -> str:
    """Fixed plain-text layout: banner, totals, then one block per entry."""
    banner = "=" * RULE_WIDTH
    lines = [
        banner,
        " VAULT DATA EXPORT",
        banner,
        "",
        f"Export Date: {iso_timestamp(exported_at)}",
        f"Total Entries: {len(entries)}",
        "",
        banner,
        "",
    ]
    for index, entry in enumerate(entries, start=1):
        lines.extend([
            f"Entry #{index}",
            "-" * RULE_WIDTH,
            f"ID: {entry.id}",
            f"Name: {entry.name}",
            f"Category: {entry.category}",
            f"Tags: {','.join(entry.tags) or 'None'}",
            f"Created: {iso_timestamp(entry.created_at)}",
            f"Updated: {iso_timestamp(entry.updated_at)}",
            "",
            "Content:",
            entry.content,
            "",
        ])
    return "\n".join(lines) + "\n"


class ReportService:
    def __init__(self, store: VaultStore, export_path: str):
        self.store = store
        self.export_path = Path(export_path).resolve()

    async def export_entries(self, now: Optional[datetime] = None) -> ExportResponse:
        """
        Write every entry (newest first) to the export file, overwriting it.

        Raises:
            FilesystemError: the export file could not be written
        """
        entries = await self.store.find_all(sort=(SortField.DATE, SortOrder.DESC))
        document = render_export(entries, now or datetime.now(timezone.utc))

        try:
            async with aiofiles.open(self.export_path, "w", encoding="utf-8") as f:
                await f.write(document)
        except OSError as e:
            logger.error("Export write failed for %s: %s", self.export_path, e)
            raise FilesystemError(
                message="Export failed",
                context={"path": str(self.export_path), "os_error": str(e)},
            )

        logger.info("Exported %d entries to %s", len(entries), self.export_path)
        return ExportResponse(
            file=self.export_path.name,
            path=str(self.export_path),
            entries=len(entries),
        )

    async def compute_stats(self, now: Optional[datetime] = None) -> StatsResponse:
        now = now or datetime.now(timezone.utc)

        total = await self.store.count()
        recent = await self.store.count(VaultEntry.created_at >= now - RECENT_WINDOW)

        oldest = await self.store.find_all(sort=(SortField.DATE, SortOrder.ASC), limit=1)
        newest = await self.store.find_all(sort=(SortField.DATE, SortOrder.DESC), limit=1)

        categories = await self.store.aggregate_by_group(VaultEntry.category)
        tags = await self.store.tag_frequencies(limit=TOP_TAG_LIMIT)
        footprint = await self.store.storage_footprint()

        return StatsResponse(
            summary=StatsSummary(
                total_entries=total,
                recent_activity=RecentActivity(count=recent),
                oldest_entry=_marker(oldest),
                newest_entry=_marker(newest),
            ),
            categories=[CategoryCount(id=key, count=count) for key, count in categories],
            top_tags=[TagCount(tag=tag, count=count) for tag, count in tags],
            storage=StorageEstimate(
                note="Estimated from stored field lengths",
                estimated_size=f"{footprint / 1024:.2f}KB (approx)",
                bytes=footprint,
            ),
        )


def _marker(entries: List[VaultEntryResponse]) -> Optional[EntryMarker]:
    if not entries:
        return None
    return EntryMarker(name=entries[0].name, date=entries[0].created_at)
