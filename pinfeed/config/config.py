"""
Configuration module for pinfeed.

Loads environment variables from .env file and exposes them as typed configuration values.
Uses python-dotenv for loading and provides safe defaults where appropriate.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
# The .env file should be in the root directory (parent of pinfeed/)
_project_root = Path(__file__).parent.parent.parent
_env_path = _project_root / ".env"
load_dotenv(_env_path)


# =============================================================================
# Application Environment
# =============================================================================

# Application environment: "development", "staging", or "production"
APP_ENV: str = os.getenv("APP_ENV", "development")

# Turns on verbose pipeline logging without --verbose
DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"


# =============================================================================
# File Locations
# =============================================================================

# Directory holding the pin markdown files (spotify.md, vimeo.md, ...)
PINS_DIR: str = os.getenv("PINS_DIR", "docs/pins")

# URL-keyed OpenGraph metadata cache
METADATA_CACHE_PATH: str = os.getenv(
    "METADATA_CACHE_PATH", "docs/.vitepress/cache/opengraph-cache.json"
)

# Precomputed video thumbnail catalog ({platform}-{videoId} -> entry)
THUMBNAIL_CATALOG_PATH: str = os.getenv("THUMBNAIL_CATALOG_PATH", "catalog.json")

# Final pin collection consumed by the site
PINS_OUTPUT_PATH: str = os.getenv(
    "PINS_OUTPUT_PATH", "docs/.vitepress/cache/pins-data.json"
)

# Thumbnail used when every other tier misses
PLACEHOLDER_THUMBNAIL: str = os.getenv(
    "PLACEHOLDER_THUMBNAIL", "/media/placeholders/pin-placeholder.svg"
)


# =============================================================================
# Fetching Configuration
# =============================================================================

# HTTP request timeout in seconds (hard ceiling for a single OpenGraph fetch)
REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "10"))

# Delay between successive OpenGraph fetches in seconds
FETCH_DELAY: float = float(os.getenv("FETCH_DELAY", "0.5"))

# Upper bound on live fetches in a single run
MAX_FETCHES_PER_RUN: int = int(os.getenv("MAX_FETCHES_PER_RUN", "50"))


# =============================================================================
# Source Credentials (Optional - absence disables that source's refresh)
# =============================================================================

SPOTIFY_CLIENT_ID: str = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET: str = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REFRESH_TOKEN: str = os.getenv("SPOTIFY_REFRESH_TOKEN", "")

VIMEO_ACCESS_TOKEN: str = os.getenv("VIMEO_ACCESS_TOKEN", "")

YOUTUBE_CLIENT_ID: str = os.getenv("YOUTUBE_CLIENT_ID", "")
YOUTUBE_CLIENT_SECRET: str = os.getenv("YOUTUBE_CLIENT_SECRET", "")
YOUTUBE_REFRESH_TOKEN: str = os.getenv("YOUTUBE_REFRESH_TOKEN", "")

PINTEREST_ACCESS_TOKEN: str = os.getenv("PINTEREST_ACCESS_TOKEN", "")

CREDENTIAL_KEYS = (
    "SPOTIFY_CLIENT_ID",
    "SPOTIFY_CLIENT_SECRET",
    "SPOTIFY_REFRESH_TOKEN",
    "VIMEO_ACCESS_TOKEN",
    "YOUTUBE_CLIENT_ID",
    "YOUTUBE_CLIENT_SECRET",
    "YOUTUBE_REFRESH_TOKEN",
    "PINTEREST_ACCESS_TOKEN",
)


# =============================================================================
# Helper Functions
# =============================================================================

def get_credential(key: str) -> str:
    """
    Look up a source credential.

    The process environment wins over the values captured at import time,
    so credentials exported after startup are still honored.
    """
    return os.getenv(key) or globals().get(key, "") or ""


def validate_config() -> list[str]:
    """
    Validate configuration values.

    Returns:
        List of invalid configuration keys (empty if all valid).
    """
    errors = []

    if REQUEST_TIMEOUT < 1:
        errors.append("REQUEST_TIMEOUT must be at least 1 second")

    if FETCH_DELAY < 0:
        errors.append("FETCH_DELAY cannot be negative")

    if MAX_FETCHES_PER_RUN < 0:
        errors.append("MAX_FETCHES_PER_RUN cannot be negative")

    if not PINS_DIR:
        errors.append("PINS_DIR cannot be empty")

    if not PLACEHOLDER_THUMBNAIL:
        errors.append("PLACEHOLDER_THUMBNAIL cannot be empty")

    return errors


def print_config_summary() -> None:
    """Print a summary of current configuration (safe for logs, no secrets)."""
    print(f"  APP_ENV: {APP_ENV}")
    print(f"  DEBUG: {DEBUG}")
    print(f"  PINS_DIR: {PINS_DIR}")
    print(f"  METADATA_CACHE_PATH: {METADATA_CACHE_PATH}")
    print(f"  THUMBNAIL_CATALOG_PATH: {THUMBNAIL_CATALOG_PATH}")
    print(f"  PINS_OUTPUT_PATH: {PINS_OUTPUT_PATH}")
    print(f"  PLACEHOLDER_THUMBNAIL: {PLACEHOLDER_THUMBNAIL}")
    print(f"  REQUEST_TIMEOUT: {REQUEST_TIMEOUT}s")
    print(f"  FETCH_DELAY: {FETCH_DELAY}s")
    print(f"  MAX_FETCHES_PER_RUN: {MAX_FETCHES_PER_RUN}")
    for key in CREDENTIAL_KEYS:
        print(f"  {key}: {'***' if get_credential(key) else '(not set)'}")
