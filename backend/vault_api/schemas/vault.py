"""
Vault API Backend: Pydantic Request/Response Schemas
=====================================================

What:  The API contract: request bodies, response envelopes, backup snapshot
       layout and the sort/backup enumerations.
How:   Field names are snake_case in Python and camelCase on the wire
       (`alias_generator=to_camel`); FastAPI serializes responses by alias.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every wire model: camelCase aliases, population by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Enumerations
# ══════════════════════════════════════════════════════════════════════════


class SortField(str, Enum):
    """Accepted values of ?by= on GET /api/vault/sort."""
    NAME = "name"
    DATE = "date"


class SortOrder(str, Enum):
    """Accepted values of ?order= on GET /api/vault/sort."""
    ASC = "asc"
    DESC = "desc"


class BackupOperation(str, Enum):
    """Label written into every snapshot and its filename."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class VaultEntryCreate(CamelModel):
    """
    Body of POST /api/vault.

    name/content are Optional here so that a missing field reaches
    VaultService and is reported as a 400 with a readable message.
    """
    name: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None


class VaultEntryUpdate(CamelModel):
    """
    Body of PUT /api/vault/{id}. Every field is optional; only the fields
    present in the body are changed. Unknown keys (id, createdAt) are ignored.
    """
    name: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None


# ══════════════════════════════════════════════════════════════════════════
# Entry Response Models
# ══════════════════════════════════════════════════════════════════════════


class VaultEntryResponse(CamelModel):
    """Full representation of one stored entry."""
    id: uuid.UUID = Field(description="Unique entry identifier (UUID)")
    name: str
    content: str
    category: str
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(description="Creation time (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last modification time (UTC ISO 8601)")


class EntryEnvelope(CamelModel):
    """Single-entry response: GET, POST, PUT and DELETE on one entry."""
    message: Optional[str] = None
    data: VaultEntryResponse


class EntryListResponse(CamelModel):
    count: int
    data: List[VaultEntryResponse]


class SearchResponse(CamelModel):
    query: str
    count: int
    data: List[VaultEntryResponse]


class SortResponse(CamelModel):
    sort_by: str = Field(description="Column actually sorted on: name or createdAt")
    order: str = Field(description="ascending or descending")
    count: int
    data: List[VaultEntryResponse]


# ══════════════════════════════════════════════════════════════════════════
# Backups
# ══════════════════════════════════════════════════════════════════════════


class BackupTrigger(CamelModel):
    """The entry whose mutation caused the snapshot."""
    name: str
    id: uuid.UUID


class BackupSnapshot(CamelModel):
    """
    Content of one backup-<OP>-<timestamp>.json file.

    Example:
        {
            "timestamp": "2024-01-15T12:00:00.123456Z",
            "operation": "DELETE",
            "trigger": {"name": "A", "id": "..."},
            "data": [ ...every entry at that moment... ],
            "count": 1
        }
    """
    timestamp: datetime
    operation: BackupOperation
    trigger: Optional[BackupTrigger] = None
    data: List[VaultEntryResponse]
    count: int


class BackupFileInfo(CamelModel):
    filename: str
    size: str = Field(description="Human-readable size, e.g. '1.25 KB'")
    created: datetime


class BackupListResponse(CamelModel):
    count: int
    backups: List[BackupFileInfo]


# ══════════════════════════════════════════════════════════════════════════
# Reports
# ══════════════════════════════════════════════════════════════════════════


class ExportResponse(CamelModel):
    message: str = "Data exported successfully"
    file: str
    path: str
    entries: int


class RecentActivity(CamelModel):
    count: int
    period: str = "last 7 days"


class EntryMarker(CamelModel):
    """Oldest/newest entry reference in the stats summary."""
    name: str
    date: datetime


class StatsSummary(CamelModel):
    total_entries: int
    recent_activity: RecentActivity
    oldest_entry: Optional[EntryMarker] = None
    newest_entry: Optional[EntryMarker] = None


class CategoryCount(CamelModel):
    # Serialized as "_id" to match the aggregation result shape clients expect
    id: str = Field(alias="_id")
    count: int


class TagCount(CamelModel):
    tag: str
    count: int


class StorageEstimate(CamelModel):
    note: str
    estimated_size: str
    bytes: int


class StatsResponse(CamelModel):
    summary: StatsSummary
    categories: List[CategoryCount]
    top_tags: List[TagCount]
    storage: StorageEstimate


# ══════════════════════════════════════════════════════════════════════════
# Service / Error Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error body for every VaultError.

    Example:
        {
            "error": "not_found",
            "message": "Vault entry not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    status: str = Field(description="Always 'OK' while the process is serving")
    timestamp: datetime
    uptime: float = Field(description="Seconds since the process started")
    database: str = Field(description="Connected or Disconnected")
    version: str
