import logging
import os
from types import SimpleNamespace

from flask import Flask
from flask_cors import CORS

from backend.core.config import TRACK_CACHE_TTL_SECONDS
from backend.routes.tracks import bp as tracks_bp
from backend.services.enricher import TrackEnricher
from backend.services.track_cache import TrackSourceCache


def _configure_logging() -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    gunicorn_error = logging.getLogger("gunicorn.error")
    root = logging.getLogger()
    if gunicorn_error.handlers:
        root.handlers = gunicorn_error.handlers
        root.setLevel(level)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def create_app(
    enricher: TrackEnricher | None = None, cache: TrackSourceCache | None = None
) -> Flask:
    """Build the Flask app with one enricher and one range cache."""
    app = Flask(__name__)
    CORS(app)
    app.extensions["tracks"] = SimpleNamespace(
        enricher=enricher if enricher is not None else TrackEnricher(),
        cache=cache
        if cache is not None
        else TrackSourceCache(TRACK_CACHE_TTL_SECONDS),
    )

    # register routes
    app.register_blueprint(tracks_bp)
    return app


_configure_logging()

app = create_app()
