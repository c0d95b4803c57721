"""
Database Schema Management Module

This module handles database initialization, schema validation, and migrations.
For CRUD operations, see core/database.py
"""

# Import database module to use DB_FILE and get_connection dynamically
# This ensures monkeypatching in tests works correctly
import comax.core.database as db
from comax.core.exceptions import StoreError

DB_VERSION = 3  # Increment when schema changes (languages registry added in v3)


TABLES = {
    "localization_resources": """
        CREATE TABLE IF NOT EXISTS localization_resources (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            resource_type TEXT NOT NULL,
            culture_code TEXT NOT NULL,
            resource_key TEXT NOT NULL,
            resource_value TEXT NOT NULL DEFAULT '',
            organization_id INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (resource_type, culture_code, resource_key),
            FOREIGN KEY (organization_id) REFERENCES organizations (id)
        )
    """,
    "audit_logs": """
        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER,
            username TEXT NOT NULL,
            action_type TEXT NOT NULL
                CHECK (action_type IN ('CREATE', 'UPDATE', 'DELETE', 'IMPORT')),
            table_name TEXT NOT NULL,
            record_id TEXT,
            old_value TEXT,
            new_value TEXT,
            description TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "applications": """
        CREATE TABLE IF NOT EXISTS applications (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            application_code TEXT NOT NULL UNIQUE,
            application_name TEXT NOT NULL,
            description TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "application_fields": """
        CREATE TABLE IF NOT EXISTS application_fields (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            application_id INTEGER NOT NULL,
            field_key TEXT NOT NULL,
            field_name TEXT NOT NULL,
            description TEXT,
            is_required INTEGER DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (application_id, field_key),
            FOREIGN KEY (application_id) REFERENCES applications (id) ON DELETE CASCADE
        )
    """,
    "organizations": """
        CREATE TABLE IF NOT EXISTS organizations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            organization_number TEXT NOT NULL UNIQUE,
            organization_name TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            display_name TEXT,
            role TEXT NOT NULL DEFAULT 'translator'
                CHECK (role IN ('admin', 'translator', 'viewer')),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "user_organizations": """
        CREATE TABLE IF NOT EXISTS user_organizations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            organization_id INTEGER NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (user_id, organization_id),
            FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,
            FOREIGN KEY (organization_id) REFERENCES organizations (id) ON DELETE CASCADE
        )
    """,
    "languages": """
        CREATE TABLE IF NOT EXISTS languages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            code TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            native_name TEXT NOT NULL,
            direction TEXT NOT NULL DEFAULT 'ltr' CHECK (direction IN ('ltr', 'rtl')),
            is_active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "app_config": """
        CREATE TABLE IF NOT EXISTS app_config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
}

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_resources_key_culture ON localization_resources(resource_key, culture_code)",
    "CREATE INDEX IF NOT EXISTS idx_resources_type_culture ON localization_resources(resource_type, culture_code)",
    "CREATE INDEX IF NOT EXISTS idx_audit_logs_record_id ON audit_logs(record_id)",
    "CREATE INDEX IF NOT EXISTS idx_audit_logs_created_at ON audit_logs(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_application_fields_app ON application_fields(application_id)",
]


def get_connection():
    """Get a database connection using the database module's DB_FILE."""
    return db.get_connection()


def get_db_version() -> int:
    """Get current database version."""
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT version FROM db_version LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else 0
    except StoreError:
        return 0


def set_db_version(version: int):
    """Set database version."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("CREATE TABLE IF NOT EXISTS db_version (version INTEGER)")
        cursor.execute("DELETE FROM db_version")
        cursor.execute("INSERT INTO db_version (version) VALUES (?)", (version,))


def ensure_tables():
    """Create every table that does not exist yet."""
    with get_connection() as conn:
        cursor = conn.cursor()
        for ddl in TABLES.values():
            cursor.execute(ddl)


def ensure_database_indexes():
    """Create indexes used by the grid fetch and audit lookups."""
    from comax.logger import get_logger
    logger = get_logger(__name__)

    with get_connection() as conn:
        cursor = conn.cursor()
        for ddl in INDEXES:
            cursor.execute(ddl)
    logger.debug("Database indexes created/verified successfully")


def ensure_default_languages():
    """Seed the languages registry with the default cultures when it is empty."""
    from comax import cultures

    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM languages")
        if cursor.fetchone()[0]:
            return
        for culture in cultures.DEFAULT_CULTURES:
            info = cultures.SUPPORTED_CULTURES[culture]
            cursor.execute("""
                INSERT INTO languages (code, name, native_name, direction, is_active)
                VALUES (?, ?, ?, ?, 1)
            """, (culture, info["name"], info["native_name"], info["direction"]))


def ensure_all_schemas():
    """
    Ensure all tables and indexes exist.
    This is a convenience function that calls all individual schema validation functions.
    """
    ensure_tables()
    ensure_database_indexes()
    ensure_default_languages()


def initialize_database():
    """Initializes the database and creates the tables."""
    from comax.logger import get_logger
    logger = get_logger(__name__)

    if db.DB_FILE.exists():
        current_version = get_db_version()
        if current_version < DB_VERSION:
            migrate_database(current_version, DB_VERSION)
        else:
            ensure_all_schemas()
        return

    db.DB_FILE.parent.mkdir(parents=True, exist_ok=True)
    ensure_all_schemas()
    set_db_version(DB_VERSION)
    logger.info(f"Created database at {db.DB_FILE}")


# ============================================================
# Database Migration
# ============================================================

def migrate_database(from_version: int, to_version: int):
    """
    Migrate database from one version to another.

    Every schema change so far is additive, so a migration is a schema
    integrity pass followed by a version bump.
    """
    from comax.logger import get_logger
    logger = get_logger(__name__)

    logger.info(f"Migrating database from version {from_version} to {to_version}")
    try:
        ensure_all_schemas()
    except StoreError as e:
        logger.error(f"Database migration failed: {e}")
        raise
    set_db_version(to_version)
    logger.info(f"Database migration completed: now at version {to_version}")


__all__ = [
    "DB_VERSION",
    "get_db_version",
    "set_db_version",
    "initialize_database",
    "ensure_all_schemas",
    "migrate_database",
]
