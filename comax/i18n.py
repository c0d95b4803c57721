"""
Internationalization (i18n) module for the console API.

User-visible notices returned by the API (errors, confirmations) are looked
up in JSON language packs under web/locales. The request language comes
from the `lang` query parameter or the Accept-Language header.

Note: Log messages are NOT translated - they remain in English for debugging purposes.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from comax.logger import get_logger

logger = get_logger(__name__)

# Language pack directory
LOCALES_DIR = Path(__file__).parent / "web" / "locales"

# Default language
DEFAULT_LANGUAGE = "en"

# Supported languages with their display names
SUPPORTED_LANGUAGES = {
    "en": {"name": "English", "native_name": "English"},
    "he": {"name": "Hebrew", "native_name": "עברית"},
}

# Cache for loaded language packs
_language_cache: Dict[str, Dict[str, Any]] = {}


def normalize_language_code(lang_code: Optional[str]) -> str:
    """
    Normalize a language code to one of the supported packs.

    Example:
        >>> normalize_language_code('he-IL')
        'he'
    """
    if not lang_code:
        return DEFAULT_LANGUAGE

    lang_prefix = lang_code.lower().replace('_', '-').split('-')[0]
    # Legacy ISO code for Hebrew
    if lang_prefix == "iw":
        lang_prefix = "he"
    return lang_prefix if lang_prefix in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def load_language(lang_code: str) -> Dict[str, Any]:
    """
    Load a language pack from JSON file.

    Args:
        lang_code: The language code (e.g., 'en', 'he')

    Returns:
        Dictionary containing all messages for the language
    """
    lang_code = normalize_language_code(lang_code)
    if lang_code in _language_cache:
        return _language_cache[lang_code]

    lang_file = LOCALES_DIR / f"{lang_code}.json"
    if not lang_file.exists():
        logger.debug(f"Language file not found: {lang_file}, falling back to {DEFAULT_LANGUAGE}")
        if lang_code != DEFAULT_LANGUAGE:
            return load_language(DEFAULT_LANGUAGE)
        return {}

    try:
        with open(lang_file, 'r', encoding='utf-8') as f:
            messages = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load language file {lang_file}: {e}")
        if lang_code != DEFAULT_LANGUAGE:
            return load_language(DEFAULT_LANGUAGE)
        return {}

    _language_cache[lang_code] = messages
    logger.debug(f"Loaded language pack: {lang_code}")
    return messages


def get_nested_value(data: Dict[str, Any], key_path: str) -> Optional[str]:
    """Get a string from a nested dictionary using dot notation ('errors.not_found')."""
    current: Any = data
    for key in key_path.split('.'):
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return None
    return current if isinstance(current, str) else None


def get_translation(key: str, lang: str = DEFAULT_LANGUAGE, **kwargs) -> str:
    """
    Get a message for the given key and language.

    Falls back to English, then to the key itself.
    """
    lang = normalize_language_code(lang)
    value = get_nested_value(load_language(lang), key)

    if value is None and lang != DEFAULT_LANGUAGE:
        value = get_nested_value(load_language(DEFAULT_LANGUAGE), key)

    if value is None:
        logger.debug(f"Message not found for key: {key} (lang: {lang})")
        return key

    if kwargs:
        try:
            value = value.format(**kwargs)
        except KeyError as e:
            logger.warning(f"Missing interpolation key {e} for message: {key}")

    return value


def get_available_languages() -> List[Dict[str, Any]]:
    """List the API message languages and whether their pack is present."""
    return [
        {
            "code": code,
            "name": info["name"],
            "native_name": info["native_name"],
            "available": (LOCALES_DIR / f"{code}.json").exists(),
        }
        for code, info in SUPPORTED_LANGUAGES.items()
    ]

