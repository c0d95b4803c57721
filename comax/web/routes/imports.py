"""Import API route - upload a JSON/CSV/Excel file (or a JSON body) of records."""

from __future__ import annotations

from flask import Blueprint, jsonify, request, g

from comax import config
from comax.io.importer import parse_import_file, validate_items
from comax.logger import get_logger
from comax.web.routes.auth import login_required
from comax.web.view_registry import current_view
from comax import i18n

imports_bp = Blueprint("imports", __name__)
logger = get_logger(__name__)


@imports_bp.post("/import")
@login_required
def import_resources():
    """
    Validate the whole upload, then merge it into the store.

    Accepts multipart form data with a `file` field, or a JSON body that is
    either a list of records or {"records": [...]}. Validation errors reject
    the upload before anything is written.
    """
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)

    upload = request.files.get("file")
    if upload is not None:
        records = parse_import_file(upload.filename or "", upload.read())
        source = upload.filename
    else:
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            data = data.get("records")
        if not data:
            return jsonify({"error": i18n.get_translation("api.errors.file_required", lang=lang)}), 400
        if not isinstance(data, list):
            return jsonify({"error": i18n.get_translation("api.errors.invalid_request", lang=lang)}), 400
        records = validate_items(data)
        source = "json body"

    logger.info("Import of %s records from %s by %s", len(records), source, g.console_session.username)

    app_config = config.load_config()
    view = current_view()
    result = view.import_records(
        records,
        g.console_session,
        require_organization=bool(app_config.get("require_organization")),
    )

    message = i18n.get_translation(
        "api.messages.import_completed",
        lang=lang,
        imported=result.imported_count,
        added=result.added_count,
        updated=result.updated_count,
        errors=result.error_count,
    )
    return jsonify({"message": message, "result": result.to_dict(), "view": view.window()})
