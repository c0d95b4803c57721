"""Audit trail API routes."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from comax import config
from comax.core import audit
from comax.logger import get_logger
from comax.web.routes.auth import login_required

audit_bp = Blueprint("audit", __name__)
logger = get_logger(__name__)


@audit_bp.get("")
@login_required
def list_audit_entries():
    """
    Newest entries first; `record_id` narrows to one resource (row audit dialog).

    `limit` may shrink the page but never exceeds the configured audit_log_limit.
    """
    default_limit = config.load_config().get("audit_log_limit", 50)
    try:
        limit = int(request.args.get("limit", default_limit))
    except ValueError:
        limit = default_limit
    record_id = request.args.get("record_id") or None

    entries = audit.list_entries(limit=max(1, min(limit, default_limit)), record_id=record_id)
    logger.debug("Audit entries listed: %s (record_id=%s)", len(entries), record_id)
    return jsonify({"entries": entries})
