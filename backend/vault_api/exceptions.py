"""
Vault API Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions, one per failure class.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py translate them into JSON
       responses with the matching HTTP status code.
Who:   Raised by the store gateway and the services; caught by main.py.

Exception Hierarchy:
    VaultError (base)
    ├── ClientInputError          → 400 Bad Request
    ├── NotFoundError             → 404 Not Found
    ├── StoreError                → 500 Internal Server Error
    │   ├── StoreUnavailable         (cannot reach the database)
    │   └── StoreOperationFailed     (query/commit failed, malformed id)
    └── FilesystemError           → 500 Internal Server Error
        └── BackupDirectoryMissing   (backups dir vanished after startup)

None of these terminate the process. Nothing is retried.
"""

from typing import Any, Dict, Optional


class VaultError(Exception):
    """
    Base exception for all Vault API application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for client errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ClientInputError(VaultError):
    """
    Raised when a required parameter or body field is missing or invalid.

    HTTP: 400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Name and content are required",
            "details": {"field": "name"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(VaultError):
    """
    Raised when an id does not resolve to an existing entry.

    HTTP: 404 Not Found

    The store returns None for missing rows; the service layer converts that
    None into this exception.
    """

    def __init__(
        self,
        resource: str = "Vault entry",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreError(VaultError):
    """Any failure of the underlying persistence layer. HTTP 500."""

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreUnavailable(StoreError):
    """The database could not be reached (connection refused, dropped, timed out)."""

    def __init__(
        self,
        message: str = "The vault store is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreOperationFailed(StoreError):
    """
    A store call reached the database but did not complete.

    Also raised for identifiers that cannot be parsed, so a malformed id is
    reported the same way a failed lookup is.
    """

    def __init__(
        self,
        message: str = "The vault store operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FilesystemError(VaultError):
    """
    Raised when a backup or export write fails.

    HTTP: 500 Internal Server Error

    For mutating requests this means the mutation is not considered durably
    recorded: the request fails even if the database write succeeded.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BackupDirectoryMissing(FilesystemError):
    """
    The backups directory does not exist at call time.

    It is created once at startup; disappearing afterwards is a configuration
    fault and is not repaired per call.
    """

    def __init__(self, path: str):
        super().__init__(
            message="Backups directory is missing",
            context={"path": path},
        )
        self.path = path
