import pytest

from backend.app import create_app
from backend.services.enricher import TrackEnricher
from backend.services.lastfm import UpstreamUnavailable
from backend.services.track_cache import TrackSourceCache
from conftest import FakeHistory

PALETTE = ((100, 50, 25),) * 5


@pytest.fixture
def history():
    return FakeHistory(8)


@pytest.fixture
def app(history, clock):
    enricher = TrackEnricher(
        client=history,
        color_fn=lambda url: PALETTE,
        inline_fn=lambda url, max_bytes: None,
        base_url="https://site.example",
    )
    app = create_app(enricher=enricher, cache=TrackSourceCache(1.0, clock=clock))
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def test_repeated_range_requests_hit_upstream_once(client, history, clock):
    responses = []
    for _ in range(3):
        responses.append(client.get("/api/tracks?start=0&end=5"))
        clock.advance(0.05)

    assert history.calls == 1
    assert all(r.status_code == 200 for r in responses)
    bodies = [r.get_json() for r in responses]
    assert bodies[0] == bodies[1] == bodies[2]
    assert [t["name"] for t in bodies[0]] == [f"Track {i}" for i in range(5)]
    assert bodies[0][0]["isNowPlaying"] is True
    assert bodies[0][0]["colors"] == [[100, 50, 25]] * 5


def test_range_after_ttl_fetches_again(client, history, clock):
    client.get("/api/tracks?start=0&end=5")
    clock.advance(1.0)
    client.get("/api/tracks?start=0&end=5")
    assert history.calls == 2


def test_injected_empty_cache_is_used(history, clock):
    cache = TrackSourceCache(1.0, clock=clock)
    assert len(cache) == 0
    app = create_app(enricher=TrackEnricher(client=history), cache=cache)
    assert app.extensions["tracks"].cache is cache


def test_range_sets_cache_headers(client):
    r = client.get("/api/tracks?start=0&end=2")
    assert "stale-while-revalidate" in r.headers["Cache-Control"]
    assert "public" in r.headers["Cache-Control"]


def test_range_past_history_is_empty(client):
    r = client.get("/api/tracks?start=8&end=13")
    assert r.status_code == 200
    assert r.get_json() == []


@pytest.mark.parametrize(
    "query",
    ["start=0", "start=a&end=5", "start=5&end=2", "start=-1&end=2", "start=0&end=500"],
)
def test_invalid_ranges_are_rejected(client, query):
    r = client.get(f"/api/tracks?{query}")
    assert r.status_code == 400
    assert "error" in r.get_json()


def test_range_upstream_failure_is_502(client, history):
    history.error = UpstreamUnavailable("down")
    r = client.get("/api/tracks?start=0&end=5")
    assert r.status_code == 502
    assert "error" in r.get_json()


def test_single_track(client):
    r = client.get("/api/track?index=3")
    assert r.status_code == 200
    body = r.get_json()
    assert body["name"] == "Track 3"
    assert body["albumArtUrl"] == "https://img.example/3.jpg"


def test_single_track_not_found(client):
    r = client.get("/api/track?index=8")
    assert r.status_code == 404
    assert r.get_json() == {"error": "No more tracks"}


def test_single_track_upstream_down_is_not_found(client, history):
    history.error = UpstreamUnavailable("down")
    assert client.get("/api/track?index=0").status_code == 404


def test_recent_proxies_raw_page(client):
    r = client.get("/api/recent")
    assert r.status_code == 200
    assert len(r.get_json()["recenttracks"]["track"]) == 8


def test_recent_without_credentials(client, history):
    history.configured = False
    r = client.get("/api/recent")
    assert r.status_code == 500
    assert r.get_json() == {"error": "Configuration error"}


def test_recent_passes_through_upstream_status(client, history):
    history.error = UpstreamUnavailable("Last.fm API error", status=429)
    assert client.get("/api/recent").status_code == 429


def test_placeholder_art_is_served(client):
    r = client.get("/static/default-album-art.png")
    assert r.status_code == 200
    assert r.data.startswith(b"\x89PNG")
