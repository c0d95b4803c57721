"""Export API route - download the grid as CSV, Excel or key/value JSON."""

from __future__ import annotations

import json

from flask import Blueprint, Response, jsonify, request, g

from comax import cultures
from comax.io import exporter
from comax.logger import get_logger
from comax.web.routes.auth import login_required
from comax.web.view_registry import current_view
from comax import i18n

exports_bp = Blueprint("exports", __name__)
logger = get_logger(__name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(body, mimetype: str, extension: str) -> Response:
    response = Response(body, mimetype=mimetype)
    response.headers["Content-Disposition"] = f'attachment; filename="{exporter.export_filename(extension)}"'
    return response


@exports_bp.get("/export")
@login_required
def export_resources():
    """
    Export rows.

    Query params:
        format: csv (default), xlsx or json
        culture: target culture for json
        scope: "all" exports every loaded row, otherwise the filtered rows
    """
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    fmt = (request.args.get("format") or "csv").lower()
    view = current_view()
    rows = view.rows if request.args.get("scope") == "all" else view.result

    if fmt == "csv":
        body = exporter.export_csv(rows)
        logger.info("CSV export of %s rows by %s", len(rows), g.console_session.username)
        return _attachment(body, "text/csv; charset=utf-8", "csv")

    if fmt == "xlsx":
        body = exporter.export_xlsx(rows)
        logger.info("Excel export of %s rows by %s", len(rows), g.console_session.username)
        return _attachment(body, XLSX_MIMETYPE, "xlsx")

    if fmt == "json":
        culture = request.args.get("culture")
        if not culture:
            return jsonify({"error": i18n.get_translation("api.errors.culture_required", lang=lang)}), 400
        culture = cultures.validate_culture_code(culture)
        pairs = exporter.export_key_value_json(rows, culture)
        logger.info("JSON export (%s) of %s pairs by %s", culture, len(pairs), g.console_session.username)
        body = json.dumps(pairs, ensure_ascii=False, indent=2)
        return _attachment(body, "application/json; charset=utf-8", "json")

    return jsonify({"error": i18n.get_translation("api.errors.unsupported_format", lang=lang, format=fmt)}), 400
