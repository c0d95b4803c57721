"""
Core module - Store client, schema and shared primitives

This module provides:
- database: CRUD operations for all tables (the resource store client)
- schema: Database initialization and migrations
- exceptions: Store, validation and scope error types
- session: Explicit user/organization context
- audit: Append-only audit trail
"""

from comax.core.database import (
    DB_FILE,
    get_connection,
    # Resource operations
    get_resources_page,
    get_resource,
    find_resource,
    insert_resource,
    update_resource_value,
    delete_resource,
    get_resources_for_culture,
    get_resource_types,
    # Audit operations
    insert_audit_log,
    get_audit_logs,
    # App config operations
    get_app_config,
    set_app_config,
    get_all_app_config,
)

from comax.core.exceptions import (
    ComaxError,
    StoreError,
    ValidationError,
    ScopeError,
    TranslationError,
)

from comax.core.schema import (
    DB_VERSION,
    get_db_version,
    set_db_version,
    initialize_database,
    ensure_all_schemas,
    migrate_database,
)
