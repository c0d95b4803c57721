"""Machine translation API routes - single text and translate-missing jobs."""

from __future__ import annotations

from flask import Blueprint, jsonify, request, g

from comax import config, cultures
from comax.logger import get_logger
from comax.translation.providers import get_provider
from comax.web.routes.auth import login_required
from comax.web.tasks import cancel_job, create_translation_job, get_job, serialize_job
from comax import i18n

translate_bp = Blueprint("translate", __name__)
logger = get_logger(__name__)


@translate_bp.post("")
@login_required
def translate_text():
    """Translate one text from the source culture into a target culture."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True) or {}
    text = data.get("text") or ""
    target = data.get("target_culture")
    if not text.strip() or not target:
        return jsonify({
            "error": i18n.get_translation("api.errors.fields_required", lang=lang, fields="text, target_culture")
        }), 400

    app_config = config.load_config()
    target = cultures.validate_culture_code(target)
    source = cultures.validate_culture_code(data.get("source_culture") or app_config["source_culture"])
    provider = get_provider(app_config.get("translation"))
    translated = provider.translate(text, target, source_culture=source)
    logger.debug("Translated %s chars %s -> %s", len(text), source, target)
    return jsonify({"translated_text": translated, "source_culture": source, "target_culture": target})


@translate_bp.post("/jobs")
@login_required
def start_job():
    """Start a background translate-missing job."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True) or {}
    targets = data.get("target_cultures")
    if isinstance(targets, str):
        targets = [t.strip() for t in targets.split(",") if t.strip()]
    if not targets:
        return jsonify({
            "error": i18n.get_translation("api.errors.fields_required", lang=lang, fields="target_cultures")
        }), 400

    targets = [cultures.validate_culture_code(code) for code in targets]
    job = create_translation_job(g.console_session, targets)
    return jsonify({"job": serialize_job(job)}), 202


@translate_bp.get("/jobs/<job_id>")
@login_required
def job_status(job_id: str):
    """Progress polling for a job."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    job = get_job(job_id)
    if not job:
        return jsonify({"error": i18n.get_translation("api.errors.job_not_found", lang=lang)}), 404
    return jsonify({"job": serialize_job(job)})


@translate_bp.post("/jobs/<job_id>/cancel")
@login_required
def cancel(job_id: str):
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    if not get_job(job_id):
        return jsonify({"error": i18n.get_translation("api.errors.job_not_found", lang=lang)}), 404
    return jsonify({"cancelled": cancel_job(job_id)})
