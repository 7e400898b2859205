"""
Vault API Backend: Service Info & Health Check Routes
======================================================

What:  GET / (service metadata and route catalogue) and GET /health
       (liveness, database connectivity, uptime).
Who:   Clients discovering the API; Docker health checks and load balancers.

The process is reported "OK" whenever it can answer; the database flag is
separate so a monitor can tell "process up, store down" apart.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from vault_api import __version__
from vault_api.context import AppContext, get_context
from vault_api.schemas.vault import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

FEATURES = [
    "SQL Document Store",
    "Case-insensitive Search",
    "Multi-field Sorting",
    "Data Export",
    "Automatic Backups",
    "Statistics Dashboard",
]

ENDPOINTS = {
    "vault": {
        "getAll": "GET /api/vault",
        "getOne": "GET /api/vault/:id",
        "create": "POST /api/vault",
        "update": "PUT /api/vault/:id",
        "delete": "DELETE /api/vault/:id",
        "search": "GET /api/vault/search?q=keyword",
        "sort": "GET /api/vault/sort?by=name&order=asc",
    },
    "features": {
        "export": "GET /api/export",
        "stats": "GET /api/stats",
        "backups": "GET /api/backups",
    },
    "health": "GET /health",
}


@router.get("/", summary="Service metadata and route catalogue")
async def service_info() -> Dict[str, Any]:
    return {
        "message": "Vault API Server",
        "version": __version__,
        "features": FEATURES,
        "endpoints": ENDPOINTS,
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(ctx: AppContext = Depends(get_context)) -> HealthResponse:
    """
    Liveness plus a SELECT 1 against the store.

    Never fails: an unreachable database is reported, not raised.
    """
    connected = await ctx.store.ping()
    if not connected:
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc),
        uptime=ctx.uptime,
        database="Connected" if connected else "Disconnected",
        version=__version__,
    )
