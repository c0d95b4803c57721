"""
Database CRUD Operations Module

This module is the resource store client. It handles all database CRUD
operations for:
- Localization resources
- Audit logs
- Applications and application fields
- Organizations, users and memberships
- Languages
- App Config

Every sqlite3 failure is surfaced as StoreError so callers only need to
handle one store failure type. For schema management and migrations, see
core/schema.py
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, List, Dict, Any, Iterable

from comax.core.exceptions import StoreError

DB_FILE = Path(os.environ.get("COMAX_DB_FILE", Path(__file__).parent.parent.parent / "comax.db"))


@contextmanager
def get_connection():
    """Yield a database connection, committing on success and closing afterwards."""
    try:
        conn = sqlite3.connect(DB_FILE)
    except sqlite3.Error as e:
        raise StoreError(f"Unable to open database: {e}") from e
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except sqlite3.IntegrityError as e:
        conn.rollback()
        raise StoreError(f"Constraint violation: {e}", code="duplicate") from e
    except sqlite3.Error as e:
        conn.rollback()
        raise StoreError(f"Database error: {e}") from e
    finally:
        conn.close()


def _row_to_dict(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    return dict(row) if row else None


def _build_update(table: str, row_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Update the non-None fields of a row and return the written row."""
    updates = []
    params = []
    for column, value in fields.items():
        if value is not None:
            updates.append(f"{column} = ?")
            params.append(value)

    with get_connection() as conn:
        cursor = conn.cursor()
        if updates:
            updates.append("updated_at = CURRENT_TIMESTAMP")
            params.append(row_id)
            cursor.execute(f"UPDATE {table} SET {', '.join(updates)} WHERE id = ?", params)
        cursor.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,))
        return _row_to_dict(cursor.fetchone())


def _delete_by_id(table: str, row_id: int) -> bool:
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
        return cursor.rowcount > 0


# ============================================================
# Localization Resource Operations
# ============================================================

def get_resources_page(offset: int, limit: int,
                       resource_types: Optional[Iterable[str]] = None,
                       culture_code: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Get one range of localization resources ordered by (resource_key, culture_code).

    The store caps how many rows one select returns, so callers needing the
    full set must loop over pages until a short page comes back.
    """
    clauses = []
    params: List[Any] = []
    if resource_types is not None:
        types = list(resource_types)
        if not types:
            return []
        clauses.append(f"resource_type IN ({', '.join('?' for _ in types)})")
        params.extend(types)
    if culture_code is not None:
        clauses.append("culture_code = ?")
        params.append(culture_code)

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    params.extend([limit, offset])

    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(f"""
            SELECT id, resource_type, culture_code, resource_key, resource_value
            FROM localization_resources
            {where}
            ORDER BY resource_key, culture_code, id
            LIMIT ? OFFSET ?
        """, params)
        return [dict(row) for row in cursor.fetchall()]


def get_resource(resource_id: int) -> Optional[Dict[str, Any]]:
    """Get a localization resource by ID."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM localization_resources WHERE id = ?", (resource_id,))
        return _row_to_dict(cursor.fetchone())


def find_resource(resource_type: str, culture_code: str, resource_key: str) -> Optional[Dict[str, Any]]:
    """Look up a resource by its natural key (resource_type, culture_code, resource_key)."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT * FROM localization_resources
            WHERE resource_type = ? AND culture_code = ? AND resource_key = ?
        """, (resource_type, culture_code, resource_key))
        return _row_to_dict(cursor.fetchone())


def insert_resource(resource_type: str, culture_code: str, resource_key: str,
                    resource_value: str, organization_id: Optional[int] = None) -> Dict[str, Any]:
    """Insert a new localization resource and return the written row."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO localization_resources
            (resource_type, culture_code, resource_key, resource_value, organization_id)
            VALUES (?, ?, ?, ?, ?)
        """, (resource_type, culture_code, resource_key, resource_value, organization_id))
        cursor.execute("SELECT * FROM localization_resources WHERE id = ?", (cursor.lastrowid,))
        return dict(cursor.fetchone())


def update_resource_value(resource_id: int, resource_value: str) -> Dict[str, Any]:
    """Update a resource's value by ID and return the written row."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            UPDATE localization_resources
            SET resource_value = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        """, (resource_value, resource_id))
        if cursor.rowcount == 0:
            raise StoreError(f"Resource {resource_id} not found", code="not_found")
        cursor.execute("SELECT * FROM localization_resources WHERE id = ?", (resource_id,))
        return dict(cursor.fetchone())


def delete_resource(resource_id: int) -> bool:
    """Delete a localization resource (administrative action)."""
    return _delete_by_id("localization_resources", resource_id)


def get_resources_for_culture(resource_type: str, culture_code: str) -> List[Dict[str, Any]]:
    """Get (resource_key, resource_value) pairs for one resource type and culture."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT resource_key, resource_value
            FROM localization_resources
            WHERE resource_type = ? AND culture_code = ?
            ORDER BY resource_key
        """, (resource_type, culture_code))
        return [dict(row) for row in cursor.fetchall()]


def get_resource_types() -> List[str]:
    """Get every distinct resource type present in the store."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT DISTINCT resource_type FROM localization_resources ORDER BY resource_type")
        return [row[0] for row in cursor.fetchall()]


# ============================================================
# Audit Log Operations
# ============================================================

def insert_audit_log(username: str, action_type: str, table_name: str,
                     record_id: Optional[str] = None, old_value: Any = None,
                     new_value: Any = None, description: str = "",
                     user_id: Optional[int] = None) -> Dict[str, Any]:
    """Append an audit log entry. Entries are never updated afterwards."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO audit_logs
            (user_id, username, action_type, table_name, record_id, old_value, new_value, description)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            user_id,
            username,
            action_type,
            table_name,
            str(record_id) if record_id is not None else None,
            json.dumps(old_value, ensure_ascii=False) if old_value is not None else None,
            json.dumps(new_value, ensure_ascii=False) if new_value is not None else None,
            description,
        ))
        cursor.execute("SELECT * FROM audit_logs WHERE id = ?", (cursor.lastrowid,))
        return _decode_audit_row(cursor.fetchone())


def get_audit_logs(limit: int = 50, record_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Get audit entries newest first, optionally restricted to one record."""
    with get_connection() as conn:
        cursor = conn.cursor()
        if record_id is not None:
            cursor.execute("""
                SELECT * FROM audit_logs WHERE record_id = ?
                ORDER BY created_at DESC, id DESC LIMIT ?
            """, (str(record_id), limit))
        else:
            cursor.execute("""
                SELECT * FROM audit_logs
                ORDER BY created_at DESC, id DESC LIMIT ?
            """, (limit,))
        return [_decode_audit_row(row) for row in cursor.fetchall()]


def _decode_audit_row(row: sqlite3.Row) -> Dict[str, Any]:
    entry = dict(row)
    for column in ("old_value", "new_value"):
        if entry.get(column) is not None:
            try:
                entry[column] = json.loads(entry[column])
            except json.JSONDecodeError:
                # Plain text written by another client; keep as is
                pass
    return entry


# ============================================================
# Application Operations
# ============================================================

def create_application(application_code: str, application_name: str,
                       description: Optional[str] = None) -> Dict[str, Any]:
    """Create a new application."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO applications (application_code, application_name, description)
            VALUES (?, ?, ?)
        """, (application_code, application_name, description))
        cursor.execute("SELECT * FROM applications WHERE id = ?", (cursor.lastrowid,))
        return dict(cursor.fetchone())


def get_all_applications() -> List[Dict[str, Any]]:
    """Get all applications ordered by name."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM applications ORDER BY application_name")
        return [dict(row) for row in cursor.fetchall()]


def get_application_by_id(application_id: int) -> Optional[Dict[str, Any]]:
    """Get an application by ID."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM applications WHERE id = ?", (application_id,))
        return _row_to_dict(cursor.fetchone())


def update_application(application_id: int, application_code: str = None,
                       application_name: str = None, description: str = None) -> Optional[Dict[str, Any]]:
    """Update an application."""
    return _build_update("applications", application_id, {
        "application_code": application_code,
        "application_name": application_name,
        "description": description,
    })


def delete_application(application_id: int) -> bool:
    """Delete an application and its fields."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM application_fields WHERE application_id = ?", (application_id,))
        cursor.execute("DELETE FROM applications WHERE id = ?", (application_id,))
        return cursor.rowcount > 0


def create_application_field(application_id: int, field_key: str, field_name: str,
                             description: Optional[str] = None, is_required: bool = False) -> Dict[str, Any]:
    """Create a field for an application."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO application_fields (application_id, field_key, field_name, description, is_required)
            VALUES (?, ?, ?, ?, ?)
        """, (application_id, field_key, field_name, description, 1 if is_required else 0))
        cursor.execute("SELECT * FROM application_fields WHERE id = ?", (cursor.lastrowid,))
        return dict(cursor.fetchone())


def get_application_fields(application_id: int) -> List[Dict[str, Any]]:
    """Get all fields of an application ordered by key."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT * FROM application_fields
            WHERE application_id = ?
            ORDER BY field_key
        """, (application_id,))
        return [dict(row) for row in cursor.fetchall()]


def get_application_field(field_id: int) -> Optional[Dict[str, Any]]:
    """Get one application field by ID."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM application_fields WHERE id = ?", (field_id,))
        return _row_to_dict(cursor.fetchone())


def update_application_field(field_id: int, field_key: str = None, field_name: str = None,
                             description: str = None, is_required: bool = None) -> Optional[Dict[str, Any]]:
    """Update an application field."""
    return _build_update("application_fields", field_id, {
        "field_key": field_key,
        "field_name": field_name,
        "description": description,
        "is_required": None if is_required is None else (1 if is_required else 0),
    })


def delete_application_field(field_id: int) -> bool:
    """Delete an application field."""
    return _delete_by_id("application_fields", field_id)


# ============================================================
# Organization Operations
# ============================================================

def create_organization(organization_number: str, organization_name: str) -> Dict[str, Any]:
    """Create a new organization."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO organizations (organization_number, organization_name)
            VALUES (?, ?)
        """, (organization_number, organization_name))
        cursor.execute("SELECT * FROM organizations WHERE id = ?", (cursor.lastrowid,))
        return dict(cursor.fetchone())


def get_all_organizations() -> List[Dict[str, Any]]:
    """Get all organizations ordered by name."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM organizations ORDER BY organization_name")
        return [dict(row) for row in cursor.fetchall()]


def get_organization_by_id(organization_id: int) -> Optional[Dict[str, Any]]:
    """Get an organization by ID."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM organizations WHERE id = ?", (organization_id,))
        return _row_to_dict(cursor.fetchone())


def update_organization(organization_id: int, organization_number: str = None,
                        organization_name: str = None) -> Optional[Dict[str, Any]]:
    """Update an organization."""
    return _build_update("organizations", organization_id, {
        "organization_number": organization_number,
        "organization_name": organization_name,
    })


def delete_organization(organization_id: int) -> bool:
    """Delete an organization and its memberships."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM user_organizations WHERE organization_id = ?", (organization_id,))
        cursor.execute("DELETE FROM organizations WHERE id = ?", (organization_id,))
        return cursor.rowcount > 0


# ============================================================
# User Operations
# ============================================================

def create_user(username: str, display_name: Optional[str] = None, role: str = "translator") -> Dict[str, Any]:
    """Create a new user."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO users (username, display_name, role)
            VALUES (?, ?, ?)
        """, (username, display_name or username, role))
        cursor.execute("SELECT * FROM users WHERE id = ?", (cursor.lastrowid,))
        return dict(cursor.fetchone())


def get_user_by_username(username: str) -> Optional[Dict[str, Any]]:
    """Get a user by username."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM users WHERE username = ?", (username,))
        return _row_to_dict(cursor.fetchone())


def get_all_users() -> List[Dict[str, Any]]:
    """Get all users with their organization ids."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM users ORDER BY username")
        users = [dict(row) for row in cursor.fetchall()]
        cursor.execute("SELECT user_id, organization_id FROM user_organizations")
        memberships: Dict[int, List[int]] = {}
        for row in cursor.fetchall():
            memberships.setdefault(row["user_id"], []).append(row["organization_id"])
    for user in users:
        user["organization_ids"] = sorted(memberships.get(user["id"], []))
    return users


def update_user(user_id: int, display_name: str = None, role: str = None) -> Optional[Dict[str, Any]]:
    """Update a user."""
    return _build_update("users", user_id, {
        "display_name": display_name,
        "role": role,
    })


def delete_user(user_id: int) -> bool:
    """Delete a user and their memberships."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM user_organizations WHERE user_id = ?", (user_id,))
        cursor.execute("DELETE FROM users WHERE id = ?", (user_id,))
        return cursor.rowcount > 0


def set_user_organizations(user_id: int, organization_ids: Iterable[int]) -> None:
    """Replace a user's organization memberships."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM user_organizations WHERE user_id = ?", (user_id,))
        for organization_id in dict.fromkeys(organization_ids):
            cursor.execute("""
                INSERT INTO user_organizations (user_id, organization_id)
                VALUES (?, ?)
            """, (user_id, organization_id))


def get_user_organizations(user_id: int) -> List[Dict[str, Any]]:
    """Get the organizations a user belongs to."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT o.* FROM organizations o
            JOIN user_organizations uo ON uo.organization_id = o.id
            WHERE uo.user_id = ?
            ORDER BY o.organization_name
        """, (user_id,))
        return [dict(row) for row in cursor.fetchall()]


# ============================================================
# Language Operations
# ============================================================

def get_all_languages() -> List[Dict[str, Any]]:
    """Get all registered languages ordered by name."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM languages ORDER BY name")
        return [dict(row) for row in cursor.fetchall()]


def get_language_by_code(code: str) -> Optional[Dict[str, Any]]:
    """Get a registered language by culture code."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM languages WHERE code = ?", (code,))
        return _row_to_dict(cursor.fetchone())


def create_language(code: str, name: str, native_name: str,
                    direction: str = "ltr", is_active: bool = True) -> Dict[str, Any]:
    """Register a language."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO languages (code, name, native_name, direction, is_active)
            VALUES (?, ?, ?, ?, ?)
        """, (code, name, native_name, direction, 1 if is_active else 0))
        cursor.execute("SELECT * FROM languages WHERE id = ?", (cursor.lastrowid,))
        return dict(cursor.fetchone())


def set_language_active(language_id: int, is_active: bool) -> Optional[Dict[str, Any]]:
    """Activate or deactivate a language."""
    return _build_update("languages", language_id, {"is_active": 1 if is_active else 0})


def delete_language(language_id: int) -> bool:
    """Remove a language from the registry."""
    return _delete_by_id("languages", language_id)


# ============================================================
# App Config Operations
# ============================================================

def get_app_config(key: str) -> Optional[str]:
    """Get an app config value by key."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT value FROM app_config WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row[0] if row else None


def set_app_config(key: str, value: str) -> None:
    """Set an app config value."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO app_config (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
        """, (key, value))


def get_all_app_config() -> Dict[str, str]:
    """Get all app config values."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT key, value FROM app_config")
        return {row[0]: row[1] for row in cursor.fetchall()}
