"""
Registry services.

- scope_patch: whole-scope replacement documents
- client_store: persistence contract for client records
- client_guard: ownership check for client-by-id access
- logo_storage: logo files and the logo replacement sequence
- client_service: CRUD orchestration
"""
