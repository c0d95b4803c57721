"""Flask application configuration, error mapping and blueprint registration."""

from __future__ import annotations

import os

from flask import Flask, jsonify, request, g

from comax.logger import get_logger
from comax.core.exceptions import ComaxError, ScopeError, StoreError, TranslationError, ValidationError
from comax import i18n

from .routes.api import api_bp
from .routes.applications import applications_bp
from .routes.audit import audit_bp
from .routes.auth import auth_bp
from .routes.exports import exports_bp
from .routes.imports import imports_bp
from .routes.languages import languages_bp
from .routes.organizations import organizations_bp
from .routes.resources import resources_bp
from .routes.settings import settings_bp
from .routes.translate import translate_bp
from .routes.users import users_bp

logger = get_logger(__name__)


def get_current_language() -> str:
    """
    Determine the language for API notices.
    Priority: query param > cookie > Accept-Language header > default (en)
    """
    lang = request.args.get('lang') or request.cookies.get('lang')
    if lang:
        return i18n.normalize_language_code(lang)

    accept_lang = request.accept_languages.best_match(
        list(i18n.SUPPORTED_LANGUAGES.keys()),
        default=i18n.DEFAULT_LANGUAGE
    )
    return i18n.normalize_language_code(accept_lang)


def error_payload(message: str, error: ComaxError = None):
    payload = {"error": message}
    if error is not None:
        payload["code"] = error.code
        if error.details:
            payload["details"] = error.details
    return jsonify(payload)


def build_app() -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    app.secret_key = os.environ.get("COMAX_SECRET_KEY", "comax-dev-secret")
    # Ensure JSON responses keep Unicode data.
    app.config["JSON_AS_ASCII"] = False
    app.json.ensure_ascii = False

    @app.before_request
    def before_request():
        """Set current language in g before each request."""
        g.lang = get_current_language()

    register_blueprints(app)
    register_error_handlers(app)
    register_default_routes(app)

    return app


def register_blueprints(app: Flask) -> None:
    """Register Flask blueprints."""
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(resources_bp, url_prefix="/api/resources")
    app.register_blueprint(imports_bp, url_prefix="/api/resources")
    app.register_blueprint(exports_bp, url_prefix="/api/resources")
    app.register_blueprint(audit_bp, url_prefix="/api/audit")
    app.register_blueprint(applications_bp, url_prefix="/api/applications")
    app.register_blueprint(organizations_bp, url_prefix="/api/organizations")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(languages_bp, url_prefix="/api/languages")
    app.register_blueprint(settings_bp, url_prefix="/api/settings")
    app.register_blueprint(translate_bp, url_prefix="/api/translate")
    app.register_blueprint(api_bp, url_prefix="/api/localization")


def register_error_handlers(app: Flask) -> None:
    """Map the console error taxonomy onto JSON responses."""

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
        logger.warning("Validation failed on %s: %s", request.path, e)
        if e.code == "save_in_progress":
            return error_payload(i18n.get_translation("api.errors.save_in_progress", lang=lang), e), 409
        if e.code == "not_found":
            message = i18n.get_translation(
                "api.errors.row_not_found", lang=lang, resource_key=e.details.get("resource_key", ""),
            )
            return error_payload(message, e), 404
        message = i18n.get_translation("api.errors.validation_failed", lang=lang, message=str(e))
        return error_payload(message, e), 400

    @app.errorhandler(ScopeError)
    def handle_scope_error(e: ScopeError):
        lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
        logger.warning("Scope missing on %s: %s", request.path, e)
        return error_payload(i18n.get_translation("api.errors.scope_missing", lang=lang), e), 400

    @app.errorhandler(StoreError)
    def handle_store_error(e: StoreError):
        lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
        if e.code == "duplicate":
            logger.warning("Duplicate record on %s: %s", request.path, e)
            return error_payload(i18n.get_translation("api.errors.duplicate", lang=lang), e), 409
        logger.error("Store failure on %s: %s", request.path, e)
        return error_payload(i18n.get_translation("api.errors.store_failed", lang=lang), e), 500

    @app.errorhandler(TranslationError)
    def handle_translation_error(e: TranslationError):
        lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
        logger.error("Machine translation failed on %s: %s", request.path, e)
        message = i18n.get_translation("api.errors.translation_failed", lang=lang, message=str(e))
        return error_payload(message, e), 502

    @app.errorhandler(404)
    def not_found(e):
        lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
        return jsonify({"error": i18n.get_translation("api.errors.not_found", lang=lang)}), 404

    @app.errorhandler(500)
    def internal_error(e):
        logger.exception("Internal server error: %s", e)
        lang = getattr(g, 'lang', i18n.DEFAULT_LANGUAGE)
        return jsonify({"error": i18n.get_translation("api.errors.internal_error", lang=lang)}), 500


def register_default_routes(app: Flask) -> None:
    """Register the health route."""

    @app.get("/health")
    def health_check():
        logger.debug("Health check requested")
        return jsonify({"status": "ok"})
