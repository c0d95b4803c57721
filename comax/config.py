import copy
import json
from typing import Dict, Any

from comax.core import database as db
from comax.core.exceptions import StoreError
from comax.core.schema import initialize_database
from comax.logger import get_logger

logger = get_logger(__name__)

# Fixed page size for the paged full fetch; the hosted store caps selects at 1000 rows
DEFAULT_STORE_PAGE_SIZE = 1000

# Rows revealed per infinite-scroll step
DEFAULT_GRID_PAGE_SIZE = 50

MYMEMORY_API_URL = "https://api.mymemory.translated.net/get"

# Default configuration template
DEFAULT_CONFIG = {
    "log_mode": "off",
    "store_page_size": DEFAULT_STORE_PAGE_SIZE,
    "grid_page_size": DEFAULT_GRID_PAGE_SIZE,
    "grid_load_delay": 0.3,
    "audit_log_limit": 50,
    "require_organization": False,
    "default_culture": "he-IL",
    "source_culture": "he-IL",
    "translation": {
        "provider": "mymemory",
        "api_url": MYMEMORY_API_URL,
        "timeout": 30,
        "delay_seconds": 0.1,
        "email": "",
    },
}


def initialize_app():
    """
    Initialize the application.
    Creates the database on first run and stores the default configuration.
    """
    logger.info("Initializing application...")

    initialize_database()
    logger.info("Database initialized")

    try:
        existing_config = db.get_app_config('config')
        if not existing_config:
            logger.info("No config in database, initializing default config")
            save_config(DEFAULT_CONFIG)
        else:
            logger.debug("Config already exists in database")
    except StoreError as e:
        logger.error(f"Failed to check/initialize config in database: {e}")
        logger.warning("Application will use in-memory default configuration")

    logger.info("Application initialization complete")


def _merge_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Fill keys missing from a stored config with their defaults."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config() -> Dict[str, Any]:
    """Load the configuration from database, falling back to defaults."""
    try:
        config_json = db.get_app_config('config')
    except StoreError as e:
        logger.error(f"Failed to load config from database: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not config_json:
        logger.info("No config in database, using defaults and saving to database")
        config = copy.deepcopy(DEFAULT_CONFIG)
        try:
            save_config(config)
        except StoreError as save_error:
            logger.error(f"Failed to save default config to database: {save_error}")
        return config

    try:
        config = json.loads(config_json)
        logger.debug("Configuration loaded from database")
        return _merge_defaults(config)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse config from database: {e}")
        logger.warning("Using default configuration")
        config = copy.deepcopy(DEFAULT_CONFIG)
        try:
            save_config(config)
            logger.info("Saved default configuration to replace corrupted data")
        except StoreError as save_error:
            logger.error(f"Failed to save default config: {save_error}")
        return config


def save_config(config: Dict[str, Any]):
    """Save the configuration to database."""
    try:
        config_json = json.dumps(config, ensure_ascii=False)
        db.set_app_config('config', config_json)
        logger.info("Configuration saved to database")
    except StoreError as e:
        logger.error(f"Failed to save config to database: {e}")
        raise


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate a configuration payload before saving.

    Raises:
        ValueError: If a value is out of range or of the wrong type
    """
    if config.get("log_mode", "off") not in ("off", "info", "debug"):
        raise ValueError("log_mode must be one of: off, info, debug")

    for key in ("store_page_size", "grid_page_size", "audit_log_limit"):
        value = config.get(key, DEFAULT_CONFIG[key])
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ValueError(f"{key} must be a positive integer")

    delay = config.get("grid_load_delay", DEFAULT_CONFIG["grid_load_delay"])
    if not isinstance(delay, (int, float)) or delay < 0:
        raise ValueError("grid_load_delay must be a non-negative number")

    translation = config.get("translation", {})
    if not isinstance(translation, dict):
        raise ValueError("translation must be an object")
