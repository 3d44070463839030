"""Carousel tuning, overridable through the environment."""

import os

API_BASE_URL: str = os.getenv("CAROUSEL_API_BASE_URL", "http://localhost:5000")

CHUNK_SIZE: int = int(os.getenv("CAROUSEL_CHUNK_SIZE", "5"))
PREFETCH_THRESHOLD: int = int(os.getenv("CAROUSEL_PREFETCH_THRESHOLD", "2"))
PRELOAD_AHEAD: int = int(os.getenv("CAROUSEL_PRELOAD_AHEAD", "3"))

SWIPE_THRESHOLD_PX: float = 50.0
COLOR_TRANSITION_SECONDS: float = 0.5
REFRESH_INTERVAL_SECONDS: float = float(os.getenv("CAROUSEL_REFRESH_SECONDS", "60"))

MARKER_KEY: str = "music-widget:last-full-fetch"
MARKER_PATH: str = os.getenv(
    "CAROUSEL_MARKER_PATH",
    os.path.join(os.path.expanduser("~"), ".cache", "track-carousel", "marker.json"),
)
MARKER_VALIDITY_SECONDS: float = 300.0
