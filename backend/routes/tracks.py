from flask import Blueprint, current_app, jsonify, request

from backend.core.config import CACHE_CONTROL, RANGE_MAX_SPAN
from backend.services.lastfm import UpstreamUnavailable
from backend.services.system import log_mem

bp = Blueprint("tracks", __name__, url_prefix="/api")


def _services():
    return current_app.extensions["tracks"]


def _int_arg(name: str, default: int | None = None) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        if default is None:
            raise ValueError(f"Missing '{name}' parameter")
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Parameter '{name}' must be an integer") from None


def _cached_range(start: int, end: int):
    services = _services()
    return services.cache.get(
        (start, end), lambda: services.enricher.get_track_range(start, end)
    )


@bp.route("/tracks", methods=["GET"])
def get_tracks():
    """Return enriched tracks for the index range ``[start, end)``.

    Args:
        None. Reads query parameters ``start`` (default 0) and ``end``.

    Returns:
        flask.Response: JSON array of tracks, possibly empty, with short public
        caching. 400 on invalid parameters, 502 when Last.fm is unavailable,
        500 on any other failure.
    """
    try:
        start = _int_arg("start", 0)
        end = _int_arg("end")
        if start < 0 or end < start or end - start > RANGE_MAX_SPAN:
            raise ValueError(
                f"Range must satisfy 0 <= start <= end and span <= {RANGE_MAX_SPAN}"
            )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        log_mem(f"Start /api/tracks {start}-{end}")
        tracks = _cached_range(start, end)
        response = jsonify([t.to_dict() for t in tracks])
        response.headers["Cache-Control"] = CACHE_CONTROL
        return response, 200
    except UpstreamUnavailable as e:
        current_app.logger.error("Error fetching tracks %s-%s: %s", start, end, e)
        return jsonify({"error": f"Upstream unavailable: {str(e)}"}), 502
    except Exception as e:
        current_app.logger.exception("Error fetching tracks %s-%s", start, end)
        return jsonify({"error": f"Fetching tracks failed: {str(e)}"}), 500


@bp.route("/track", methods=["GET"])
def get_track():
    """Return the enriched track at ``index`` or 404 when there is none."""
    try:
        index = _int_arg("index", 0)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if index < 0:
        return jsonify({"error": "No more tracks"}), 404

    services = _services()
    try:
        track = services.cache.get(
            ("track", index), lambda: services.enricher.get_track_details(index)
        )
    except Exception as e:
        current_app.logger.exception("Error fetching track %s", index)
        return jsonify({"error": f"Error fetching track: {str(e)}"}), 500
    if track is None:
        return jsonify({"error": "No more tracks"}), 404
    response = jsonify(track.to_dict())
    response.headers["Cache-Control"] = CACHE_CONTROL
    return response, 200


@bp.route("/recent", methods=["GET"])
def get_recent():
    """Proxy the raw recent-tracks page from Last.fm."""
    client = _services().enricher.client
    if not client.configured:
        current_app.logger.error("Missing Last.fm credentials")
        return jsonify({"error": "Configuration error"}), 500
    try:
        payload = client.recent_tracks_payload()
    except UpstreamUnavailable as e:
        if e.status:
            return jsonify({"error": "Last.fm API error"}), e.status
        current_app.logger.error("Error fetching from Last.fm: %s", e)
        return jsonify({"error": "Failed to fetch track data"}), 500
    response = jsonify(payload)
    response.headers["Cache-Control"] = "public, s-maxage=30"
    return response, 200
