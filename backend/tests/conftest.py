"""
Vault API Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the whole suite.
How:   Every test gets its own SQLite database (aiosqlite) and backups
       directory under tmp_path, wrapped in a real AppContext, so the store,
       backup writer and routes run exactly as in production.

Fixtures:
    test_settings: Settings pointing at tmp_path
    context:       started AppContext (tables + backups dir created)
    store:         the context's VaultStore
    test_client:   HTTPX AsyncClient talking to create_app(context=...)
    backups_dir:   Path of the backups directory
    snapshot_files: callable listing backup-*.json files
"""

import os
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Before any vault_api import: the module-level settings/app must not touch
# a real database or write into the working directory.
_SCRATCH = tempfile.mkdtemp(prefix="vault_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_SCRATCH}/unused.db"
os.environ["BACKUPS_DIR"] = os.path.join(_SCRATCH, "backups")
os.environ["EXPORT_PATH"] = os.path.join(_SCRATCH, "export.txt")
os.environ["LOG_LEVEL"] = "WARNING"

from vault_api.config import Settings  # noqa: E402
from vault_api.context import AppContext  # noqa: E402
from vault_api.main import create_app  # noqa: E402


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'vault.db'}",
        backups_dir=str(tmp_path / "backups"),
        export_path=str(tmp_path / "export.txt"),
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def context(test_settings):
    ctx = AppContext.from_settings(test_settings)
    await ctx.startup()
    yield ctx
    await ctx.shutdown()


@pytest.fixture
def store(context):
    return context.store


@pytest.fixture
def backups_dir(context) -> Path:
    return context.backups.backups_dir


@pytest_asyncio.fixture
async def test_client(context):
    """
    HTTPX AsyncClient routed straight into the app (no server).

    ASGITransport does not run the lifespan, so the already-started context
    is injected through create_app().
    """
    app = create_app(context=context)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_entry_data():
    return {
        "name": "  Router passwords  ",
        "content": "admin / hunter2",
        "category": "network",
        "tags": ["Home", "wifi"],
    }


@pytest.fixture
def snapshot_files(backups_dir):
    """Callable listing snapshot files, optionally for one operation only."""

    def _list(operation: str = ""):
        prefix = f"backup-{operation}-" if operation else "backup-"
        return sorted(p for p in backups_dir.glob("*.json") if p.name.startswith(prefix))

    return _list
