"""
Vault API Backend: Application Context
=======================================

What:  The one object holding every process-wide resource: settings, the
       database handle, the store gateway, the backup writer and services.
How:   Built once (AppContext.from_settings) in the lifespan handler, stored
       on `app.state.context`, and handed to route handlers through the
       `get_context` dependency. Tests build their own against SQLite.
"""

import logging
import time
from dataclasses import dataclass, field

from fastapi import Request

from vault_api.config import Settings
from vault_api.database import Database
from vault_api.services.backup_service import BackupWriter
from vault_api.services.report_service import ReportService
from vault_api.services.store import VaultStore
from vault_api.services.vault_service import VaultService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    database: Database
    store: VaultStore
    backups: BackupWriter
    vault: VaultService
    reports: ReportService
    started_at: float = field(default_factory=time.time)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        database = Database(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )
        store = VaultStore(database)
        backups = BackupWriter(settings.backups_dir, store)
        return cls(
            settings=settings,
            database=database,
            store=store,
            backups=backups,
            vault=VaultService(store, backups),
            reports=ReportService(store, settings.export_path),
        )

    @property
    def uptime(self) -> float:
        return round(time.time() - self.started_at, 3)

    async def startup(self) -> None:
        """
        Prepare external resources.

        A backups directory that cannot be created aborts startup (the
        FilesystemError propagates). An unreachable database does not: the
        failure is logged and /health reports it.
        """
        self.backups.ensure_directory()

        if self.settings.db_create_schema:
            try:
                await self.database.create_schema()
            except Exception as e:
                logger.error("Could not prepare database schema: %s", e)

    async def shutdown(self) -> None:
        await self.database.dispose()
        logger.info("Database connections closed")


def get_context(request: Request) -> AppContext:
    """FastAPI dependency: the context attached to the running app."""
    return request.app.state.context
