"""Centralized configuration for the backend.

Loads environment variables, sets defaults, and exposes constants
used across services and routes.
"""

import os

from dotenv import load_dotenv

load_dotenv("env/.env")

LASTFM_USERNAME = os.getenv("LASTFM_USERNAME")
LASTFM_API_KEY = os.getenv("LASTFM_API_KEY")
LASTFM_API_URL = os.getenv("LASTFM_API_URL", "https://ws.audioscrobbler.com/2.0/")

# Absolute origin used to resolve relative art URLs (e.g. the placeholder)
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:5000")
DEFAULT_ART_PATH = "/static/default-album-art.png"

# Art at or above this size stays a URL reference instead of being inlined
INLINE_IMAGE_MAX_BYTES = int(os.getenv("INLINE_IMAGE_MAX_BYTES", str(2 * 1024 * 1024)))

# Range cache
TRACK_CACHE_TTL_SECONDS = float(os.getenv("TRACK_CACHE_TTL_SECONDS", "1.0"))
RANGE_MAX_SPAN = int(os.getenv("RANGE_MAX_SPAN", "50"))
CACHE_CONTROL = os.getenv(
    "CACHE_CONTROL", "public, s-maxage=1, stale-while-revalidate=59"
)

# Outbound HTTP
ENRICH_WORKERS = int(os.getenv("ENRICH_WORKERS", "5"))
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "0")) or None
HTTP_RETRIES = int(os.getenv("HTTP_RETRIES", "2"))
