"""Organization management API routes."""

from __future__ import annotations

from flask import Blueprint, jsonify, request, g

from comax.core import audit
from comax.core import database as db
from comax.logger import get_logger
from comax.web.routes.auth import login_required
from comax import i18n

organizations_bp = Blueprint("organizations", __name__)
logger = get_logger(__name__)


def _not_found():
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    return jsonify({"error": i18n.get_translation("api.errors.organization_not_found", lang=lang)}), 404


@organizations_bp.get("")
@login_required
def list_organizations():
    organizations = db.get_all_organizations()
    logger.debug("Organizations listed: %s", len(organizations))
    return jsonify({"organizations": organizations})


@organizations_bp.post("")
@login_required
def create_organization():
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True) or {}
    number = str(data.get("organization_number") or "").strip()
    name = str(data.get("organization_name") or "").strip()
    if not number or not name:
        return jsonify({
            "error": i18n.get_translation("api.errors.fields_required", lang=lang,
                                          fields="organization_number, organization_name")
        }), 400

    organization = db.create_organization(number, name)
    audit.record(g.console_session, "CREATE", "organizations", record_id=organization["id"],
                 new_value=organization, description=f"Organization {name} created")
    logger.info("Organization %s (%s) created", name, number)
    return jsonify({"organization": organization}), 201


@organizations_bp.get("/<int:organization_id>")
@login_required
def get_organization(organization_id: int):
    organization = db.get_organization_by_id(organization_id)
    if not organization:
        return _not_found()
    return jsonify({"organization": organization})


@organizations_bp.put("/<int:organization_id>")
@login_required
def update_organization(organization_id: int):
    organization = db.get_organization_by_id(organization_id)
    if not organization:
        return _not_found()

    data = request.get_json(silent=True) or {}
    updated = db.update_organization(
        organization_id,
        organization_number=data.get("organization_number"),
        organization_name=data.get("organization_name"),
    )
    audit.record(g.console_session, "UPDATE", "organizations", record_id=organization_id,
                 old_value=organization, new_value=updated)
    return jsonify({"organization": updated})


@organizations_bp.delete("/<int:organization_id>")
@login_required
def delete_organization(organization_id: int):
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    organization = db.get_organization_by_id(organization_id)
    if not organization:
        return _not_found()

    db.delete_organization(organization_id)
    audit.record(g.console_session, "DELETE", "organizations", record_id=organization_id,
                 old_value=organization)
    logger.info("Organization %s deleted", organization_id)
    return jsonify({"message": i18n.get_translation("api.messages.deleted", lang=lang)})
