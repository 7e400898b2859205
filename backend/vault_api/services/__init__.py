# Services package init
"""
Vault API Backend: Services Layer
==================================

What:  Business logic between routes (HTTP) and the database.
How:   Services are built once per process in AppContext and reached from
       routes through the get_context dependency.

Service Inventory:
    - VaultStore:     persistence gateway, one session per call
    - BackupWriter:   JSON snapshots of the whole collection
    - VaultService:   validation and store/snapshot sequencing for /api/vault
    - ReportService:  export file and statistics
"""
