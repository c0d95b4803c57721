"""Translation grid API routes - window, filters, sort, scroll and cell edits."""

from __future__ import annotations

from flask import Blueprint, jsonify, request, g

from comax import config
from comax.core import audit
from comax.core import database as db
from comax.grid.filters import SearchFilters
from comax.logger import get_logger
from comax.web.routes.auth import login_required
from comax.web.view_registry import current_view
from comax import i18n

resources_bp = Blueprint("resources", __name__)
logger = get_logger(__name__)

FILTER_PARAMS = ("resource_types", "resource_type", "resource_key", "resource_value",
                 "only_empty_values", "cultures")


def _int_arg(name: str, default=None):
    value = request.args.get(name)
    if value is None or value == "":
        return default
    try:
        return max(0, int(value))
    except ValueError:
        return default


@resources_bp.get("")
@login_required
def get_window():
    """
    Return the revealed rows of this session's grid.

    Filter query parameters, when present, replace the active filters first.
    """
    view = current_view()
    if any(name in request.args for name in FILTER_PARAMS):
        view.apply_filters(SearchFilters.from_dict(request.args.to_dict()))
        logger.debug("Filters applied: %s", view.filters.to_dict())

    return jsonify(view.window(offset=_int_arg("offset", 0), limit=_int_arg("limit")))


@resources_bp.post("/filters")
@login_required
def set_filters():
    """Replace the active filters (JSON body)."""
    data = request.get_json(silent=True) or {}
    view = current_view()
    view.apply_filters(SearchFilters.from_dict(data))
    return jsonify(view.window())


@resources_bp.post("/reload")
@login_required
def reload_rows():
    """Re-fetch all records from the store, optionally narrowing the type scope."""
    data = request.get_json(silent=True) or {}
    view = current_view()
    if "resource_types" in data:
        # null, [] or "ALL" widen back to every type
        view.reload(resource_types=data["resource_types"])
    else:
        view.reload()
    return jsonify(view.window())


@resources_bp.post("/sort")
@login_required
def toggle_sort():
    """Advance the tri-state sort for a column header click."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True) or {}
    column = str(data.get("column") or "").strip()
    if not column:
        return jsonify({"error": i18n.get_translation("api.errors.fields_required", lang=lang, fields="column")}), 400

    view = current_view()
    state = view.toggle_sort(column)
    logger.debug("Sort toggled to %s", state.to_dict())
    return jsonify(view.window())


@resources_bp.post("/more")
@login_required
def load_more():
    """The bottom sentinel became visible; reveal the next page."""
    view = current_view()
    scheduled = view.load_more()
    payload = view.window()
    payload["scheduled"] = scheduled
    return jsonify(payload)


@resources_bp.put("/cell")
@login_required
def save_cell():
    """Save one translation cell (update when it exists, insert otherwise)."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True) or {}
    missing = [name for name in ("resource_key", "culture_code") if not data.get(name)]
    if missing or "value" not in data:
        if "value" not in data:
            missing.append("value")
        return jsonify({
            "error": i18n.get_translation("api.errors.fields_required", lang=lang, fields=", ".join(missing))
        }), 400

    app_config = config.load_config()
    view = current_view()
    result = view.save_cell(
        data["resource_key"],
        data["culture_code"],
        str(data["value"] if data["value"] is not None else ""),
        g.console_session,
        require_organization=bool(app_config.get("require_organization")),
    )
    logger.info(
        "Cell %s (%s) %s by %s",
        data["resource_key"], result.culture_code, result.action, g.console_session.username,
    )
    return jsonify({
        "message": i18n.get_translation("api.messages.saved", lang=lang),
        "result": result.to_dict(),
    })


@resources_bp.get("/types")
@login_required
def list_resource_types():
    """Distinct resource types present in the store (for the type filter)."""
    return jsonify({"resource_types": db.get_resource_types()})


@resources_bp.delete("/<int:resource_id>")
@login_required
def delete_resource(resource_id: int):
    """Administrative delete of one translation record; the view is re-fetched."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    resource = db.get_resource(resource_id)
    if not resource:
        return jsonify({"error": i18n.get_translation("api.errors.not_found", lang=lang)}), 404

    db.delete_resource(resource_id)
    audit.record(
        g.console_session, "DELETE", audit.RESOURCES_TABLE,
        record_id=resource_id,
        old_value={"resource_value": resource["resource_value"]},
        description=f"Deleted {resource['resource_key']} ({resource['culture_code']})",
    )
    view = current_view()
    view.reload()
    logger.info("Resource %s deleted by %s", resource_id, g.console_session.username)
    return jsonify({"message": i18n.get_translation("api.messages.deleted", lang=lang), "view": view.window()})
