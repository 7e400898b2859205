"""
Vault API Backend: Application Package
=======================================

What:  Record-management service for "vault entries" with automatic
       snapshot backups, plain-text export and statistics.
Who:   Imported by uvicorn (`vault_api.main:app`), Alembic and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │        Routes (API Layer)           │  ← ordered route table, HTTP only
    ├─────────────────────────────────────┤
    │   Services (Vault, Backup, Report)  │  ← validation, backup ordering
    ├─────────────────────────────────────┤
    │     Store Gateway (VaultStore)      │  ← one unit of work per call
    ├─────────────────────────────────────┤
    │  Models & Schemas / Database        │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    Every layer receives its collaborators from the AppContext built at
    startup (see context.py); nothing below the routes reads globals.
"""

__version__ = "2.0.0"
