"""Application and application-field management API routes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Blueprint, jsonify, request, g

from comax import cultures
from comax.core import audit
from comax.core import database as db
from comax.core.exceptions import StoreError
from comax.core.session import Session
from comax.logger import get_logger
from comax.web.routes.auth import login_required
from comax import i18n

applications_bp = Blueprint("applications", __name__)
logger = get_logger(__name__)


def seed_field_resource(application: Dict[str, Any], field: Dict[str, Any],
                        session: Session) -> Optional[Dict[str, Any]]:
    """
    Create the source-culture resource for a field so its key shows up in the grid.

    The field name is the initial value. A failed insert (e.g. the key
    already exists) is logged and does not fail the field operation.
    """
    try:
        resource = db.insert_resource(
            application["application_code"],
            cultures.SOURCE_CULTURE,
            field["field_key"],
            field["field_name"],
            organization_id=session.organization_id,
        )
    except StoreError as e:
        logger.warning(
            "Could not create localization entry for field %s of %s: %s",
            field["field_key"], application["application_code"], e,
        )
        return None

    audit.record(
        session, "CREATE", audit.RESOURCES_TABLE,
        record_id=resource["id"],
        new_value={"resource_value": resource["resource_value"]},
        description=f"Field {field['field_key']} added to {application['application_code']}",
    )
    return resource


def sync_field_resources(application: Dict[str, Any], session: Session) -> int:
    """Seed a source-culture resource for every field that lacks one. Returns the count created."""
    created = 0
    for field in db.get_application_fields(application["id"]):
        existing = db.find_resource(application["application_code"], cultures.SOURCE_CULTURE, field["field_key"])
        if existing is None and seed_field_resource(application, field, session):
            created += 1
    logger.info("Synced fields of %s: %s resources created", application["application_code"], created)
    return created


def _application_or_404(application_id: int):
    application = db.get_application_by_id(application_id)
    if not application:
        lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
        logger.warning("Application %s not found", application_id)
        return None, (jsonify({"error": i18n.get_translation("api.errors.application_not_found", lang=lang)}), 404)
    return application, None


def _field_or_404(application_id: int, field_id: int):
    field = db.get_application_field(field_id)
    if not field or field["application_id"] != application_id:
        lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
        logger.warning("Field %s not found in application %s", field_id, application_id)
        return None, (jsonify({"error": i18n.get_translation("api.errors.field_not_found", lang=lang)}), 404)
    return field, None


def _missing_fields(data: Dict[str, Any], *names: str):
    missing = [name for name in names if not str(data.get(name) or "").strip()]
    if not missing:
        return None
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    return jsonify({
        "error": i18n.get_translation("api.errors.fields_required", lang=lang, fields=", ".join(missing))
    }), 400


@applications_bp.get("")
@login_required
def list_applications():
    applications = db.get_all_applications()
    logger.debug("Applications listed: %s", len(applications))
    return jsonify({"applications": applications})


@applications_bp.post("")
@login_required
def create_application():
    data = request.get_json(silent=True) or {}
    error = _missing_fields(data, "application_code", "application_name")
    if error:
        return error

    application = db.create_application(
        str(data["application_code"]).strip(),
        str(data["application_name"]).strip(),
        data.get("description"),
    )
    audit.record(g.console_session, "CREATE", "applications", record_id=application["id"],
                 new_value=application, description=f"Application {application['application_code']} created")
    logger.info("Application %s created", application["application_code"])
    return jsonify({"application": application}), 201


@applications_bp.put("/<int:application_id>")
@login_required
def update_application(application_id: int):
    application, error = _application_or_404(application_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    updated = db.update_application(
        application_id,
        application_code=data.get("application_code"),
        application_name=data.get("application_name"),
        description=data.get("description"),
    )
    audit.record(g.console_session, "UPDATE", "applications", record_id=application_id,
                 old_value=application, new_value=updated)
    return jsonify({"application": updated})


@applications_bp.delete("/<int:application_id>")
@login_required
def delete_application(application_id: int):
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    application, error = _application_or_404(application_id)
    if error:
        return error

    db.delete_application(application_id)
    audit.record(g.console_session, "DELETE", "applications", record_id=application_id,
                 old_value=application, description=f"Application {application['application_code']} deleted")
    logger.info("Application %s deleted", application["application_code"])
    return jsonify({"message": i18n.get_translation("api.messages.deleted", lang=lang)})


@applications_bp.get("/<int:application_id>/fields")
@login_required
def list_fields(application_id: int):
    application, error = _application_or_404(application_id)
    if error:
        return error
    return jsonify({"application": application, "fields": db.get_application_fields(application_id)})


@applications_bp.post("/<int:application_id>/fields")
@login_required
def create_field(application_id: int):
    """Add a field; also seeds its source-culture localization resource."""
    application, error = _application_or_404(application_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    error = _missing_fields(data, "field_key", "field_name")
    if error:
        return error

    field = db.create_application_field(
        application_id,
        str(data["field_key"]).strip(),
        str(data["field_name"]).strip(),
        description=data.get("description"),
        is_required=bool(data.get("is_required", False)),
    )
    audit.record(g.console_session, "CREATE", "application_fields", record_id=field["id"], new_value=field)
    resource = seed_field_resource(application, field, g.console_session)
    return jsonify({"field": field, "resource": resource}), 201


@applications_bp.put("/<int:application_id>/fields/<int:field_id>")
@login_required
def update_field(application_id: int, field_id: int):
    field, error = _field_or_404(application_id, field_id)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    updated = db.update_application_field(
        field_id,
        field_key=data.get("field_key"),
        field_name=data.get("field_name"),
        description=data.get("description"),
        is_required=data.get("is_required"),
    )
    audit.record(g.console_session, "UPDATE", "application_fields", record_id=field_id,
                 old_value=field, new_value=updated)
    return jsonify({"field": updated})


@applications_bp.delete("/<int:application_id>/fields/<int:field_id>")
@login_required
def delete_field(application_id: int, field_id: int):
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    field, error = _field_or_404(application_id, field_id)
    if error:
        return error
    db.delete_application_field(field_id)
    audit.record(g.console_session, "DELETE", "application_fields", record_id=field_id, old_value=field)
    return jsonify({"message": i18n.get_translation("api.messages.deleted", lang=lang)})


@applications_bp.post("/<int:application_id>/sync-fields")
@login_required
def sync_fields(application_id: int):
    """Create missing source-culture resources for every field of the application."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    application, error = _application_or_404(application_id)
    if error:
        return error

    created = sync_field_resources(application, g.console_session)
    return jsonify({
        "created": created,
        "message": i18n.get_translation("api.messages.fields_synced", lang=lang, created=created),
    })
