"""User management API routes, including organization membership."""

from __future__ import annotations

from flask import Blueprint, jsonify, request, g

from comax.core import audit
from comax.core import database as db
from comax.logger import get_logger
from comax.web.routes.auth import login_required
from comax import i18n

users_bp = Blueprint("users", __name__)
logger = get_logger(__name__)

ROLES = ("admin", "translator", "viewer")


def _find_user(user_id: int):
    return next((user for user in db.get_all_users() if user["id"] == user_id), None)


def _not_found():
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    return jsonify({"error": i18n.get_translation("api.errors.user_not_found", lang=lang)}), 404


def _invalid_role(role):
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    message = i18n.get_translation("api.errors.validation_failed", lang=lang,
                                   message=f"role must be one of {', '.join(ROLES)}")
    return jsonify({"error": message}), 400


@users_bp.get("")
@login_required
def list_users():
    users = db.get_all_users()
    logger.debug("Users listed: %s", len(users))
    return jsonify({"users": users})


@users_bp.post("")
@login_required
def create_user():
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True) or {}
    username = str(data.get("username") or "").strip()
    if not username:
        return jsonify({"error": i18n.get_translation("api.errors.fields_required", lang=lang, fields="username")}), 400
    role = data.get("role") or "translator"
    if role not in ROLES:
        return _invalid_role(role)

    user = db.create_user(username, display_name=data.get("display_name"), role=role)
    if data.get("organization_ids"):
        db.set_user_organizations(user["id"], [int(i) for i in data["organization_ids"]])
    audit.record(g.console_session, "CREATE", "users", record_id=user["id"], new_value=user)
    logger.info("User %s created with role %s", username, role)
    return jsonify({"user": _find_user(user["id"])}), 201


@users_bp.put("/<int:user_id>")
@login_required
def update_user(user_id: int):
    user = _find_user(user_id)
    if not user:
        return _not_found()

    data = request.get_json(silent=True) or {}
    role = data.get("role")
    if role is not None and role not in ROLES:
        return _invalid_role(role)

    db.update_user(user_id, display_name=data.get("display_name"), role=role)
    if "organization_ids" in data:
        db.set_user_organizations(user_id, [int(i) for i in data.get("organization_ids") or []])

    updated = _find_user(user_id)
    audit.record(g.console_session, "UPDATE", "users", record_id=user_id, old_value=user, new_value=updated)
    return jsonify({"user": updated})


@users_bp.put("/<int:user_id>/organizations")
@login_required
def set_organizations(user_id: int):
    """Replace the user's organization memberships."""
    if not _find_user(user_id):
        return _not_found()
    data = request.get_json(silent=True) or {}
    db.set_user_organizations(user_id, [int(i) for i in data.get("organization_ids") or []])
    return jsonify({"organizations": db.get_user_organizations(user_id)})


@users_bp.delete("/<int:user_id>")
@login_required
def delete_user(user_id: int):
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    user = _find_user(user_id)
    if not user:
        return _not_found()

    db.delete_user(user_id)
    audit.record(g.console_session, "DELETE", "users", record_id=user_id, old_value=user)
    logger.info("User %s deleted", user["username"])
    return jsonify({"message": i18n.get_translation("api.messages.deleted", lang=lang)})
