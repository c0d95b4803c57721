"""Localization JSON API - key/value packs for consuming applications."""

from __future__ import annotations

from flask import Blueprint, jsonify

from comax import cultures
from comax.core import database as db
from comax.logger import get_logger

api_bp = Blueprint("api", __name__)
logger = get_logger(__name__)


def get_localization_json(resource_type: str, culture_code: str):
    """
    Build the key/value pack for one application and culture.

    Each pair is keyed by the English text of the resource (falling back to
    the resource key when no English text exists) and valued by the
    requested culture's translation.
    """
    culture_code = cultures.validate_culture_code(culture_code)
    targets = db.get_resources_for_culture(resource_type, culture_code)
    english = {
        item["resource_key"]: item["resource_value"]
        for item in db.get_resources_for_culture(resource_type, cultures.ENGLISH_CULTURE)
    }
    return [
        {
            "key": english.get(item["resource_key"]) or item["resource_key"],
            "value": item["resource_value"] or "",
        }
        for item in targets
    ]


@api_bp.get("/<resource_type>/<culture_code>")
def localization_json(resource_type: str, culture_code: str):
    """Public endpoint: no session required."""
    pairs = get_localization_json(resource_type, culture_code)
    logger.debug("Localization JSON for %s/%s: %s pairs", resource_type, culture_code, len(pairs))
    return jsonify(pairs)
