"""Route blueprints for the web application."""

from .api import api_bp
from .applications import applications_bp
from .audit import audit_bp
from .auth import auth_bp
from .exports import exports_bp
from .imports import imports_bp
from .languages import languages_bp
from .organizations import organizations_bp
from .resources import resources_bp
from .settings import settings_bp
from .translate import translate_bp
from .users import users_bp

__all__ = [
    "api_bp",
    "applications_bp",
    "audit_bp",
    "auth_bp",
    "exports_bp",
    "imports_bp",
    "languages_bp",
    "organizations_bp",
    "resources_bp",
    "settings_bp",
    "translate_bp",
    "users_bp",
]
