"""
Vault API Backend: Backup Writer
=================================

What:  Snapshots the whole vault collection to a JSON file on every
       mutating request, and lists the snapshots on disk.
How:   Reads every entry through VaultStore, builds a BackupSnapshot and
       writes it with aiofiles to its own uniquely named file.
Who:   Called by VaultService (create/update after persist, delete before
       the delete) and by GET /api/backups.

File naming:
    backup-<OPERATION>-<YYYY-MM-DDTHH-MM-SS-ffffffZ>.json
    e.g. backup-DELETE-2024-01-15T12-00-00-123456Z.json

    Names sort chronologically. Files are opened in exclusive-create mode;
    two snapshots stamped in the same microsecond get a "-<n>" suffix
    instead of overwriting each other.

Directory contract:
    ensure_directory() runs once at startup. If the directory is gone when a
    snapshot is due, BackupDirectoryMissing is raised and the triggering
    request fails; the directory is not silently recreated.
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import aiofiles
import aiofiles.os

from vault_api.exceptions import BackupDirectoryMissing, FilesystemError
from vault_api.schemas.vault import (
    BackupFileInfo,
    BackupOperation,
    BackupSnapshot,
    BackupTrigger,
)
from vault_api.services.store import VaultStore

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".json"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def backup_filename(operation: BackupOperation, moment: datetime, attempt: int = 0) -> str:
    """Filesystem-safe, sortable name for a snapshot taken at `moment`."""
    stamp = moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    suffix = f"-{attempt}" if attempt else ""
    return f"backup-{operation.value}-{stamp}{suffix}{BACKUP_SUFFIX}"


def format_size(size_bytes: int) -> str:
    return f"{size_bytes / 1024:.2f} KB"


class BackupWriter:
    """
    Writes and lists collection snapshots.

    Concurrent create_backup() calls never share a file, so no locking is
    needed around the writes.
    """

    def __init__(self, backups_dir: str, store: VaultStore):
        self.backups_dir = Path(backups_dir).resolve()
        self.store = store

    def ensure_directory(self) -> Path:
        """
        Create the backups directory if absent. Startup only.

        Raises FilesystemError when the directory cannot be created; the
        caller (application startup) treats that as fatal.
        """
        try:
            self.backups_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.critical("Cannot create backups directory %s: %s", self.backups_dir, e)
            raise FilesystemError(
                message="Cannot create backups directory",
                context={"path": str(self.backups_dir), "os_error": str(e)},
            )
        logger.info("Backups directory: %s", self.backups_dir)
        return self.backups_dir

    async def _require_directory(self) -> None:
        if not await aiofiles.os.path.isdir(self.backups_dir):
            logger.critical("Backups directory missing: %s", self.backups_dir)
            raise BackupDirectoryMissing(str(self.backups_dir))

    async def create_backup(
        self,
        operation: BackupOperation,
        trigger: Optional[BackupTrigger] = None,
    ) -> str:
        """
        Snapshot every entry and write it to a new file.

        Returns:
            The filename (not the full path) of the written snapshot.

        Raises:
            BackupDirectoryMissing: directory removed after startup
            FilesystemError: the file could not be written
            StoreError: the collection could not be read
        """
        await self._require_directory()

        entries = await self.store.find_all()
        moment = _utcnow()
        snapshot = BackupSnapshot(
            timestamp=moment,
            operation=operation,
            trigger=trigger,
            data=entries,
            count=len(entries),
        )
        payload = snapshot.model_dump_json(by_alias=True, indent=2)

        attempt = 0
        while True:
            filename = backup_filename(operation, moment, attempt)
            path = self.backups_dir / filename
            try:
                async with aiofiles.open(path, "x", encoding="utf-8") as f:
                    await f.write(payload)
                break
            except FileExistsError:
                attempt += 1
            except OSError as e:
                logger.error("Backup write failed for %s: %s", path, e)
                raise FilesystemError(
                    message="Failed to write backup snapshot",
                    context={"path": str(path), "os_error": str(e)},
                )

        logger.info("Backup created: %s (%d entries)", filename, len(entries))
        return filename

    async def _describe(self, filename: str) -> BackupFileInfo:
        stats = await aiofiles.os.stat(self.backups_dir / filename)
        # st_birthtime where the platform records it, otherwise mtime
        # (snapshots are write-once, so mtime is their creation time)
        created = getattr(stats, "st_birthtime", None) or stats.st_mtime
        return BackupFileInfo(
            filename=filename,
            size=format_size(stats.st_size),
            created=datetime.fromtimestamp(created, tz=timezone.utc),
        )

    async def list_backups(self) -> List[BackupFileInfo]:
        """Every snapshot file with size and creation time, newest first."""
        try:
            names = await aiofiles.os.listdir(self.backups_dir)
            snapshots = [name for name in names if name.endswith(BACKUP_SUFFIX)]
            details = await asyncio.gather(*(self._describe(name) for name in snapshots))
        except OSError as e:
            logger.error("Failed to list backups in %s: %s", self.backups_dir, e)
            raise FilesystemError(
                message="Failed to list backups",
                context={"path": str(self.backups_dir), "os_error": str(e)},
            )

        return sorted(details, key=lambda info: (info.created, info.filename), reverse=True)
