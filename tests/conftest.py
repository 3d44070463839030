"""Shared fakes for HTTP, Last.fm payloads and images."""

from __future__ import annotations

import json as jsonlib
from io import BytesIO

import numpy as np
import pytest
import requests
from PIL import Image

from src.data.scrobbles import EnrichedTrack, RawScrobble


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, content=b"", headers=None):
        self.status_code = status_code
        self._json = json_data
        self.content = content if json_data is None else jsonlib.dumps(json_data).encode()
        self.headers = dict(headers or {})

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    @property
    def text(self):
        return self.content.decode("utf-8", "replace")

    def json(self):
        if self._json is None:
            raise ValueError("no json body")
        return self._json

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    """Maps URL (without query) to a response, an exception or a callable."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, params=None, **kwargs):
        self.calls.append((url, params))
        handler = self.routes.get(url)
        if handler is None:
            return FakeResponse(404)
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(url, params)
        return handler


def png_bytes(arr: np.ndarray) -> bytes:
    buf = BytesIO()
    Image.fromarray(arr, "RGBA").save(buf, format="PNG")
    return buf.getvalue()


def solid_rgba(width, height, color) -> np.ndarray:
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[:, :, :3] = color
    arr[:, :, 3] = 255
    return arr


def lastfm_item(i: int, now_playing: bool = False, art: str | None = None) -> dict:
    art = f"https://img.example/{i}.jpg" if art is None else art
    item = {
        "name": f"Track {i}",
        "artist": {"#text": f"Artist {i}", "mbid": ""},
        "url": f"https://www.last.fm/music/artist-{i}/_/track-{i}",
        "image": [
            {"size": "small", "#text": art.replace(".jpg", "-s.jpg") if art else ""},
            {"size": "medium", "#text": ""},
            {"size": "large", "#text": ""},
            {"size": "extralarge", "#text": art},
        ],
    }
    if now_playing:
        item["@attr"] = {"nowplaying": "true"}
    else:
        item["date"] = {"uts": str(1700000000 - i * 60), "#text": "14 Nov 2023"}
    return item


def lastfm_payload(n: int) -> dict:
    return {
        "recenttracks": {
            "track": [lastfm_item(i, now_playing=(i == 0)) for i in range(n)],
            "@attr": {"user": "someone", "page": "1", "perPage": "50"},
        }
    }


def make_track(i: int, colors=None, inline=None) -> EnrichedTrack:
    colors = colors or tuple((10 * i % 256, 20, 30) for _ in range(5))
    return EnrichedTrack(
        name=f"Track {i}",
        artist=f"Artist {i}",
        url=f"https://www.last.fm/track-{i}",
        album_art_url=f"https://img.example/{i}.jpg",
        colors=colors,
        inline_image=inline,
        timestamp=1700000000 - i * 60,
    )


class FakeHistory:
    """Stands in for ``LastFmClient`` and counts page fetches."""

    def __init__(self, n: int = 10, error: Exception | None = None):
        self.n = n
        self.error = error
        self.calls = 0
        self.configured = True

    def recent_tracks(self, limit=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [
            RawScrobble(
                name=f"Track {i}",
                artist=f"Artist {i}",
                url=f"https://www.last.fm/track-{i}",
                images=(("extralarge", f"https://img.example/{i}.jpg"),),
                timestamp=None if i == 0 else 1700000000 - i * 60,
                is_now_playing=(i == 0),
            )
            for i in range(self.n)
        ]

    def recent_tracks_payload(self, limit=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return lastfm_payload(self.n)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
