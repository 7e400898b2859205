"""
Vault API Backend: Startup & Store Failure Tests
=================================================

What:  AppContext startup when the environment is broken, and how driver
       errors surface over HTTP.

What we test:
    ✅ An uncreatable backups directory aborts startup
    ✅ An unreachable database does not abort startup
    ✅ Connection failures become 500 store_error and /health says Disconnected
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from vault_api.config import Settings
from vault_api.context import AppContext
from vault_api.exceptions import FilesystemError, StoreUnavailable
from vault_api.main import create_app


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'vault.db'}",
        "backups_dir": str(tmp_path / "backups"),
        "export_path": str(tmp_path / "export.txt"),
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture
async def unreachable_context(tmp_path):
    """Started context whose SQLite file sits in a directory that does not exist."""
    missing = tmp_path / "no-such-dir" / "vault.db"
    ctx = AppContext.from_settings(
        make_settings(tmp_path, database_url=f"sqlite+aiosqlite:///{missing}")
    )
    await ctx.startup()
    yield ctx
    await ctx.shutdown()


@pytest_asyncio.fixture
async def unreachable_client(unreachable_context):
    app = create_app(context=unreachable_context)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestStartup:

    @pytest.mark.asyncio
    async def test_creates_backups_directory(self, tmp_path):
        ctx = AppContext.from_settings(make_settings(tmp_path))
        try:
            await ctx.startup()
            assert (tmp_path / "backups").is_dir()
        finally:
            await ctx.shutdown()

    @pytest.mark.asyncio
    async def test_uncreatable_backups_directory_aborts(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a regular file, not a directory")
        ctx = AppContext.from_settings(
            make_settings(tmp_path, backups_dir=str(blocker / "backups"))
        )
        try:
            with pytest.raises(FilesystemError):
                await ctx.startup()
        finally:
            await ctx.shutdown()

    @pytest.mark.asyncio
    async def test_unreachable_database_does_not_abort(self, unreachable_context):
        assert unreachable_context.backups.backups_dir.is_dir()
        assert await unreachable_context.store.ping() is False


class TestStoreUnavailable:

    @pytest.mark.asyncio
    async def test_store_raises_store_unavailable(self, unreachable_context):
        with pytest.raises(StoreUnavailable):
            await unreachable_context.store.find_all()

    @pytest.mark.asyncio
    async def test_list_is_500_store_error(self, unreachable_client):
        response = await unreachable_client.get("/api/vault")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "store_error"
        assert body["message"] == "The vault store is unavailable"

    @pytest.mark.asyncio
    async def test_create_writes_no_snapshot(self, unreachable_client, unreachable_context):
        response = await unreachable_client.post("/api/vault", json={"name": "A", "content": "x"})

        assert response.status_code == 500
        assert list(unreachable_context.backups.backups_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_health_reports_disconnected(self, unreachable_client):
        response = await unreachable_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "OK"
        assert response.json()["database"] == "Disconnected"
