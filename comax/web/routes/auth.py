"""Authentication routes and the session helpers shared by other blueprints."""

from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import Blueprint, jsonify, request, g, session

from comax.core import database as db
from comax.core.session import Session
from comax.logger import get_logger
from comax.web.view_registry import forget_view
from comax import i18n

auth_bp = Blueprint("auth", __name__)
logger = get_logger(__name__)

SESSION_KEY = "comax_session"


def current_session() -> Optional[Session]:
    """Rebuild the acting Session from the signed cookie, or None if signed out."""
    data = session.get(SESSION_KEY)
    if not data:
        return None
    return Session.from_dict(data)


def store_session(console_session: Session) -> None:
    session[SESSION_KEY] = console_session.to_dict()


def login_required(view):
    """Reject the request with 401 unless a console session exists."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        console_session = current_session()
        if console_session is None:
            lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
            return jsonify({
                "error": i18n.get_translation("api.errors.unauthenticated", lang=lang),
                "code": "unauthenticated",
            }), 401
        g.console_session = console_session
        return view(*args, **kwargs)

    return wrapped


@auth_bp.post("/login")
def login():
    """Sign in; any non-empty username/password pair is accepted and the user is upserted."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True) or {}
    username = str(data.get("username") or "").strip()
    password = str(data.get("password") or "")
    if not username or not password:
        return jsonify({"error": i18n.get_translation("api.errors.credentials_required", lang=lang)}), 400

    user = db.get_user_by_username(username)
    if user is None:
        user = db.create_user(username, display_name=data.get("display_name") or username)
        logger.info("Created user record for %s on first login", username)

    console_session = Session(
        username=user["username"],
        display_name=user.get("display_name") or user["username"],
        user_id=user["id"],
        role=user.get("role") or "translator",
    )

    memberships = db.get_user_organizations(user["id"])
    if len(memberships) == 1:
        console_session = console_session.with_organization(
            memberships[0]["id"], memberships[0]["organization_name"]
        )

    forget_view()
    store_session(console_session)
    logger.info("User %s signed in", username)
    return jsonify({"session": console_session.to_dict(), "organizations": memberships})


@auth_bp.post("/logout")
def logout():
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    console_session = current_session()
    forget_view()
    session.clear()
    if console_session:
        logger.info("User %s signed out", console_session.username)
    return jsonify({"message": i18n.get_translation("api.messages.logged_out", lang=lang)})


@auth_bp.get("/me")
@login_required
def me():
    console_session = g.console_session
    organizations = db.get_user_organizations(console_session.user_id) if console_session.user_id else []
    return jsonify({"session": console_session.to_dict(), "organizations": organizations})


@auth_bp.post("/organization")
@login_required
def select_organization():
    """Scope the session to an organization (null clears the scope)."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True) or {}
    organization_id = data.get("organization_id")

    if organization_id is None:
        console_session = g.console_session.with_organization(None)
    else:
        try:
            organization = db.get_organization_by_id(int(organization_id))
        except (TypeError, ValueError):
            return jsonify({"error": i18n.get_translation("api.errors.invalid_request", lang=lang)}), 400
        if not organization:
            return jsonify({"error": i18n.get_translation("api.errors.organization_not_found", lang=lang)}), 404
        console_session = g.console_session.with_organization(
            organization["id"], organization["organization_name"]
        )

    store_session(console_session)
    logger.info("User %s selected organization %s", console_session.username, console_session.organization_id)
    return jsonify({"session": console_session.to_dict()})
