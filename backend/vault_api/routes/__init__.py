# Routes package init
"""
Vault API Backend: API Routes Package
======================================

Route Inventory:
    - health.py:   GET  /                         (service metadata)
                   GET  /health                   (liveness + database flag)
    - vault.py:    GET  /api/vault                (list, newest first)
                   POST /api/vault                (create)
                   GET  /api/vault/search         (search, ?q= required)
                   GET  /api/vault/sort           (sort, ?by= ?order=)
                   GET/PUT/DELETE /api/vault/{id}
    - reports.py:  GET  /api/export, /api/stats, /api/backups

Routes stay thin: extract parameters, call a service from the AppContext,
wrap the result in a response model.
"""
