"""
Vault API Backend: Vault Entry Route Handlers
==============================================

What:  CRUD, search and sort endpoints under /api/vault.
How:   Handlers are thin: pull parameters, call VaultService, wrap the result.

Route ordering:
    Starlette matches routes in registration order, first match wins.
    `/search` and `/sort` MUST be registered before `/{entry_id}`, otherwise
    GET /api/vault/search would be treated as an id lookup for "search".
    VAULT_ROUTES below is that order, written down; register_routes() adds
    them exactly as listed.
"""

from typing import Any, Callable, Dict, List, NamedTuple, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from vault_api.context import AppContext, get_context
from vault_api.schemas.vault import (
    EntryEnvelope,
    EntryListResponse,
    ErrorResponse,
    SearchResponse,
    SortOrder,
    SortResponse,
    VaultEntryCreate,
    VaultEntryUpdate,
)
from vault_api.services.store import sort_column_name

ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    500: {"description": "Store or backup failure", "model": ErrorResponse},
}
NOT_FOUND: Dict[int | str, Dict[str, Any]] = {
    404: {"description": "Vault entry not found", "model": ErrorResponse},
}


async def list_entries(ctx: AppContext = Depends(get_context)) -> EntryListResponse:
    """All entries, newest first."""
    entries = await ctx.vault.list_entries()
    return EntryListResponse(count=len(entries), data=entries)


async def create_entry(
    payload: VaultEntryCreate = Body(...),
    ctx: AppContext = Depends(get_context),
) -> EntryEnvelope:
    """Create an entry, then write a CREATE snapshot."""
    entry = await ctx.vault.create_entry(payload)
    return EntryEnvelope(message="Vault entry created successfully", data=entry)


async def search_entries(
    q: Optional[str] = Query(default=None, description="Case-insensitive substring"),
    ctx: AppContext = Depends(get_context),
) -> SearchResponse:
    entries = await ctx.vault.search_entries(q)
    return SearchResponse(query=q, count=len(entries), data=entries)


async def sort_entries(
    by: Optional[str] = Query(default=None, description="name or date"),
    order: Optional[str] = Query(default=None, description="asc or desc"),
    ctx: AppContext = Depends(get_context),
) -> SortResponse:
    field, direction, entries = await ctx.vault.sort_entries(by=by, order=order)
    return SortResponse(
        sort_by=sort_column_name(field),
        order="ascending" if direction is SortOrder.ASC else "descending",
        count=len(entries),
        data=entries,
    )


async def get_entry(entry_id: str, ctx: AppContext = Depends(get_context)) -> EntryEnvelope:
    """Bare `{data}` envelope; there is no message for a plain read."""
    entry = await ctx.vault.get_entry(entry_id)
    return EntryEnvelope(data=entry)


async def update_entry(
    entry_id: str,
    payload: VaultEntryUpdate = Body(...),
    ctx: AppContext = Depends(get_context),
) -> EntryEnvelope:
    """Update the supplied fields, then write an UPDATE snapshot."""
    entry = await ctx.vault.update_entry(entry_id, payload)
    return EntryEnvelope(message="Vault entry updated successfully", data=entry)


async def delete_entry(entry_id: str, ctx: AppContext = Depends(get_context)) -> EntryEnvelope:
    """Write a DELETE snapshot, then delete; responds with the entry's last state."""
    entry = await ctx.vault.delete_entry(entry_id)
    return EntryEnvelope(message="Vault entry deleted successfully", data=entry)


class RouteBinding(NamedTuple):
    method: str
    path: str
    endpoint: Callable[..., Any]
    response_model: Any
    status_code: int = status.HTTP_200_OK
    summary: str = ""
    responses: Optional[Dict[int | str, Dict[str, Any]]] = None
    exclude_none: bool = False


# Order matters: literal sub-paths before the parameterized /{entry_id}.
VAULT_ROUTES: List[RouteBinding] = [
    RouteBinding("GET", "", list_entries, EntryListResponse,
                 summary="List all entries, newest first"),
    RouteBinding("POST", "", create_entry, EntryEnvelope,
                 status_code=status.HTTP_201_CREATED, summary="Create an entry",
                 responses=ERROR_RESPONSES),
    RouteBinding("GET", "/search", search_entries, SearchResponse,
                 summary="Search entries", responses=ERROR_RESPONSES),
    RouteBinding("GET", "/sort", sort_entries, SortResponse,
                 summary="Sort entries by name or date", responses=ERROR_RESPONSES),
    RouteBinding("GET", "/{entry_id}", get_entry, EntryEnvelope,
                 summary="Get one entry", responses={**NOT_FOUND, **ERROR_RESPONSES},
                 exclude_none=True),
    RouteBinding("PUT", "/{entry_id}", update_entry, EntryEnvelope,
                 summary="Update an entry", responses={**NOT_FOUND, **ERROR_RESPONSES}),
    RouteBinding("DELETE", "/{entry_id}", delete_entry, EntryEnvelope,
                 summary="Delete an entry", responses={**NOT_FOUND, **ERROR_RESPONSES}),
]


def register_routes(router: APIRouter, bindings: List[RouteBinding]) -> APIRouter:
    for binding in bindings:
        router.add_api_route(
            binding.path,
            binding.endpoint,
            methods=[binding.method],
            response_model=binding.response_model,
            status_code=binding.status_code,
            summary=binding.summary,
            responses=binding.responses,
            response_model_exclude_none=binding.exclude_none,
        )
    return router


router = register_routes(APIRouter(prefix="/api/vault", tags=["Vault"]), VAULT_ROUTES)
