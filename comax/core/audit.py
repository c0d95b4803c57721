"""
Audit trail.

Append-only log of CREATE/UPDATE/DELETE/IMPORT actions. Entries are written
after the store confirms a change and are never mutated.
"""

from typing import Any, Dict, List, Optional

from comax.core import database as db
from comax.core.exceptions import StoreError, ValidationError
from comax.core.session import Session
from comax.logger import get_logger

logger = get_logger(__name__)

ACTION_TYPES = ("CREATE", "UPDATE", "DELETE", "IMPORT")

RESOURCES_TABLE = "localization_resources"


def record(session: Session, action_type: str, table_name: str,
           record_id: Optional[Any] = None, old_value: Any = None,
           new_value: Any = None, description: str = "") -> Optional[Dict[str, Any]]:
    """
    Append an audit entry for an action performed by the session's user.

    A failed audit write is logged and does not undo the action it
    describes; None is returned in that case.

    Raises:
        ValidationError: If action_type is not one of ACTION_TYPES
    """
    if action_type not in ACTION_TYPES:
        raise ValidationError(f"Unknown audit action type: {action_type}", field="action_type")

    try:
        return db.insert_audit_log(
            username=session.username,
            user_id=session.user_id,
            action_type=action_type,
            table_name=table_name,
            record_id=record_id,
            old_value=old_value,
            new_value=new_value,
            description=description,
        )
    except StoreError as e:
        logger.error(f"Failed to create audit log ({action_type} {table_name} {record_id}): {e}")
        return None


def list_entries(limit: int = 50, record_id: Optional[Any] = None) -> List[Dict[str, Any]]:
    """Return audit entries newest first, optionally for one record, capped at limit."""
    return db.get_audit_logs(limit=limit, record_id=record_id)
