"""
Culture code registry and utilities.

Culture codes are BCP 47 language + region tags (he-IL, en-US). The grid
keeps one translation column per supported culture, so every culture key
entering the system is validated here at the boundary.

Machine translation services use bare ISO 639-1 codes; get_mt_code()
handles that mapping.
"""

from typing import Dict, List, Optional

from comax.core.exceptions import ValidationError

# Culture codes the console knows about, with display metadata
SUPPORTED_CULTURES: Dict[str, Dict[str, str]] = {
    'he-IL': {'name': 'Hebrew', 'native_name': 'עברית', 'direction': 'rtl'},
    'en-US': {'name': 'English', 'native_name': 'English', 'direction': 'ltr'},
    'ro-RO': {'name': 'Romanian', 'native_name': 'Română', 'direction': 'ltr'},
    'th-TH': {'name': 'Thai', 'native_name': 'ไทย', 'direction': 'ltr'},
    'ar-SA': {'name': 'Arabic', 'native_name': 'العربية', 'direction': 'rtl'},
}

# Cultures that can be added to the languages registry
AVAILABLE_CULTURES: Dict[str, Dict[str, str]] = {
    'fr-FR': {'name': 'French', 'native_name': 'Français', 'direction': 'ltr'},
    'de-DE': {'name': 'German', 'native_name': 'Deutsch', 'direction': 'ltr'},
    'es-ES': {'name': 'Spanish', 'native_name': 'Español', 'direction': 'ltr'},
    'it-IT': {'name': 'Italian', 'native_name': 'Italiano', 'direction': 'ltr'},
    'pt-BR': {'name': 'Portuguese (Brazil)', 'native_name': 'Português', 'direction': 'ltr'},
    'ru-RU': {'name': 'Russian', 'native_name': 'Русский', 'direction': 'ltr'},
    'zh-CN': {'name': 'Chinese (Simplified)', 'native_name': '简体中文', 'direction': 'ltr'},
    'zh-TW': {'name': 'Chinese (Traditional)', 'native_name': '繁體中文', 'direction': 'ltr'},
    'ja-JP': {'name': 'Japanese', 'native_name': '日本語', 'direction': 'ltr'},
    'ko-KR': {'name': 'Korean', 'native_name': '한국어', 'direction': 'ltr'},
    'hi-IN': {'name': 'Hindi', 'native_name': 'हिन्दी', 'direction': 'ltr'},
    'tr-TR': {'name': 'Turkish', 'native_name': 'Türkçe', 'direction': 'ltr'},
    'pl-PL': {'name': 'Polish', 'native_name': 'Polski', 'direction': 'ltr'},
    'nl-NL': {'name': 'Dutch', 'native_name': 'Nederlands', 'direction': 'ltr'},
    'vi-VN': {'name': 'Vietnamese', 'native_name': 'Tiếng Việt', 'direction': 'ltr'},
    'uk-UA': {'name': 'Ukrainian', 'native_name': 'Українська', 'direction': 'ltr'},
    'fa-IR': {'name': 'Persian', 'native_name': 'فارسی', 'direction': 'rtl'},
    'ur-PK': {'name': 'Urdu', 'native_name': 'اردو', 'direction': 'rtl'},
}

# Seeded into the languages registry on first run
DEFAULT_CULTURES: List[str] = list(SUPPORTED_CULTURES)

# Grid columns, in display order
GRID_CULTURES: List[str] = ['he-IL', 'en-US', 'ro-RO', 'th-TH']

# Cultures accepted by file import
ALLOWED_IMPORT_CULTURES: List[str] = ['he-IL', 'en-US', 'ro-RO', 'th-TH']

SOURCE_CULTURE = 'he-IL'
ENGLISH_CULTURE = 'en-US'

# Pseudo-culture meaning "every culture" in culture selectors
ALL = 'ALL'


def is_supported(culture_code: str) -> bool:
    """Check whether a culture code is known to the console."""
    return culture_code in SUPPORTED_CULTURES or culture_code in AVAILABLE_CULTURES


def normalize_culture_code(culture_code: str) -> str:
    """
    Normalize casing and separators of a culture code.

    Args:
        culture_code: Raw code (e.g., 'he_il', 'EN-us')

    Returns:
        Canonical code (e.g., 'he-IL', 'en-US'); unknown shapes are returned stripped
    """
    if not culture_code:
        return ''
    raw = str(culture_code).strip().replace('_', '-')
    parts = raw.split('-')
    if len(parts) == 2:
        return f"{parts[0].lower()}-{parts[1].upper()}"
    return raw


def validate_culture_code(culture_code: str, allowed: Optional[List[str]] = None) -> str:
    """
    Validate a culture code and return its canonical form.

    Args:
        culture_code: The code to validate
        allowed: Optional explicit allow-list; defaults to every known culture

    Raises:
        ValidationError: If the code is empty or not allowed
    """
    code = normalize_culture_code(culture_code)
    if not code:
        raise ValidationError("Culture code is required", field="culture_code")
    if allowed is not None:
        if code not in allowed:
            raise ValidationError(
                f"Invalid culture code \"{culture_code}\". Valid values: {', '.join(allowed)}",
                field="culture_code",
                details={"allowed": list(allowed)},
            )
    elif not is_supported(code):
        raise ValidationError(f"Unknown culture code \"{culture_code}\"", field="culture_code")
    return code


def get_culture_info(culture_code: str) -> Optional[Dict[str, str]]:
    """Get display metadata for a culture code."""
    return SUPPORTED_CULTURES.get(culture_code) or AVAILABLE_CULTURES.get(culture_code)


def get_culture_name(culture_code: str) -> str:
    """Get the English display name for a culture code, or the code itself."""
    info = get_culture_info(culture_code)
    return info['name'] if info else culture_code


def get_direction(culture_code: str) -> str:
    """Get text direction ('ltr' or 'rtl') for a culture code."""
    info = get_culture_info(culture_code)
    return info['direction'] if info else 'ltr'


def get_mt_code(culture_code: str) -> str:
    """
    Map a culture code to the bare language code used by translation APIs.

    Example:
        >>> get_mt_code('ro-RO')
        'ro'
    """
    return normalize_culture_code(culture_code).split('-')[0]
