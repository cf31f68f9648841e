"""
Configuration module.

Handles environment variables, file locations, credentials, and fetch settings.
"""

from pinfeed.config.config import (
    APP_ENV,
    DEBUG,
    PINS_DIR,
    METADATA_CACHE_PATH,
    THUMBNAIL_CATALOG_PATH,
    PINS_OUTPUT_PATH,
    PLACEHOLDER_THUMBNAIL,
    REQUEST_TIMEOUT,
    FETCH_DELAY,
    MAX_FETCHES_PER_RUN,
    CREDENTIAL_KEYS,
    get_credential,
    validate_config,
    print_config_summary,
)

__all__ = [
    "APP_ENV",
    "DEBUG",
    "PINS_DIR",
    "METADATA_CACHE_PATH",
    "THUMBNAIL_CATALOG_PATH",
    "PINS_OUTPUT_PATH",
    "PLACEHOLDER_THUMBNAIL",
    "REQUEST_TIMEOUT",
    "FETCH_DELAY",
    "MAX_FETCHES_PER_RUN",
    "CREDENTIAL_KEYS",
    "get_credential",
    "validate_config",
    "print_config_summary",
]
