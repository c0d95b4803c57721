"""Language registry API routes."""

from __future__ import annotations

from flask import Blueprint, jsonify, request, g

from comax import cultures
from comax.core import database as db
from comax.logger import get_logger
from comax.web.routes.auth import login_required
from comax import i18n

languages_bp = Blueprint("languages", __name__)
logger = get_logger(__name__)


def _not_found():
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    return jsonify({"error": i18n.get_translation("api.errors.language_not_found", lang=lang)}), 404


@languages_bp.get("")
@login_required
def list_languages():
    """Registered languages, plus the culture catalog a new one can be picked from."""
    languages = db.get_all_languages()
    registered = {language["code"] for language in languages}
    available = [
        {"code": code, **info}
        for code, info in cultures.AVAILABLE_CULTURES.items()
        if code not in registered
    ]
    return jsonify({"languages": languages, "available": available})


@languages_bp.post("")
@login_required
def create_language():
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True) or {}
    code = cultures.validate_culture_code(str(data.get("code") or ""))
    if db.get_language_by_code(code):
        return jsonify({"error": i18n.get_translation("api.errors.duplicate", lang=lang)}), 409
    info = cultures.get_culture_info(code) or {}

    language = db.create_language(
        code,
        data.get("name") or cultures.get_culture_name(code),
        data.get("native_name") or info.get("native_name") or code,
        direction=data.get("direction") or info.get("direction") or "ltr",
        is_active=bool(data.get("is_active", True)),
    )
    logger.info("Language %s registered", code)
    return jsonify({"language": language}), 201


@languages_bp.put("/<int:language_id>")
@login_required
def toggle_language(language_id: int):
    data = request.get_json(silent=True) or {}
    language = db.set_language_active(language_id, bool(data.get("is_active", True)))
    if not language:
        return _not_found()
    logger.info("Language %s active=%s", language["code"], language["is_active"])
    return jsonify({"language": language})


@languages_bp.delete("/<int:language_id>")
@login_required
def delete_language(language_id: int):
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    if not db.delete_language(language_id):
        return _not_found()
    logger.info("Language %s deleted", language_id)
    return jsonify({"message": i18n.get_translation("api.messages.deleted", lang=lang)})
