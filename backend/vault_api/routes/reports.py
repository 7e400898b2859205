"""
Vault API Backend: Export, Statistics & Backup Listing Routes
==============================================================

What:  Read-only feature endpoints under /api.
    - GET /api/export   write export.txt, report where it went
    - GET /api/stats    aggregate statistics
    - GET /api/backups  snapshot files, newest first
"""

from fastapi import APIRouter, Depends

from vault_api.context import AppContext, get_context
from vault_api.schemas.vault import (
    BackupListResponse,
    ErrorResponse,
    ExportResponse,
    StatsResponse,
)

router = APIRouter(prefix="/api", tags=["Reports"])


@router.get(
    "/export",
    response_model=ExportResponse,
    responses={500: {"description": "Export file could not be written", "model": ErrorResponse}},
    summary="Export every entry to a plain-text file",
)
async def export_entries(ctx: AppContext = Depends(get_context)) -> ExportResponse:
    return await ctx.reports.export_entries()


@router.get(
    "/stats",
    response_model=StatsResponse,
    responses={500: {"description": "Store failure", "model": ErrorResponse}},
    summary="Collection statistics",
)
async def get_stats(ctx: AppContext = Depends(get_context)) -> StatsResponse:
    """Totals, 7-day activity, oldest/newest, categories, top tags, size estimate."""
    return await ctx.reports.compute_stats()


@router.get(
    "/backups",
    response_model=BackupListResponse,
    responses={500: {"description": "Backups directory unreadable", "model": ErrorResponse}},
    summary="List backup snapshots, newest first",
)
async def list_backups(ctx: AppContext = Depends(get_context)) -> BackupListResponse:
    backups = await ctx.backups.list_backups()
    return BackupListResponse(count=len(backups), backups=backups)
