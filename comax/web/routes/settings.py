"""Settings management API routes."""

from __future__ import annotations

from flask import Blueprint, jsonify, request, g

import comax.config as config
from comax import cultures
from comax.logger import get_logger, _clear_log_mode_cache
from comax.web.routes.auth import login_required
from comax import i18n

settings_bp = Blueprint("settings", __name__)
logger = get_logger(__name__)

# Keys a client may change; anything else in the payload is ignored
EDITABLE_KEYS = tuple(config.DEFAULT_CONFIG.keys())


@settings_bp.get("")
@login_required
def get_settings():
    """Return current configuration with default values merged."""
    current_config = config.load_config()
    logger.debug("Settings retrieved")
    return jsonify({
        "config": current_config,
        "meta": {
            "grid_cultures": cultures.GRID_CULTURES,
            "import_cultures": cultures.ALLOWED_IMPORT_CULTURES,
            "supported_cultures": cultures.SUPPORTED_CULTURES,
            "api_languages": i18n.get_available_languages(),
        },
    })


@settings_bp.put("")
@login_required
def update_settings():
    """Merge and save configuration; log levels are re-applied immediately."""
    lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
    data = request.get_json(silent=True)
    if not data or "config" not in data or not isinstance(data["config"], dict):
        return jsonify({"error": i18n.get_translation("api.errors.config_missing", lang=lang)}), 400

    new_config = data["config"]
    current_config = config.load_config()
    for key in EDITABLE_KEYS:
        if key not in new_config:
            continue
        if isinstance(current_config.get(key), dict) and isinstance(new_config[key], dict):
            current_config[key].update(new_config[key])
        else:
            current_config[key] = new_config[key]

    try:
        config.validate_config(current_config)
    except ValueError as e:
        logger.warning("Rejected settings update: %s", e)
        return jsonify({"error": i18n.get_translation("api.errors.invalid_config", lang=lang, message=str(e))}), 400

    config.save_config(current_config)
    _clear_log_mode_cache()
    logger.info("Settings updated by %s", g.console_session.username)
    return jsonify({
        "message": i18n.get_translation("api.messages.settings_saved", lang=lang),
        "config": current_config,
    })
