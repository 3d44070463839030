from __future__ import annotations

import logging
import threading
from typing import Optional

import requests

from src.data.scrobbles import EnrichedTrack
from src.visuals.io.images import http_session

from .constants import API_BASE_URL

logger = logging.getLogger(__name__)


class TrackFetchError(RuntimeError):
    """The track endpoints failed for a reason other than not-found."""


class FetchAborted(Exception):
    pass


class FetchController:
    """Abort signal shared between a fetch loop and whoever owns it."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def abort(self) -> None:
        self._event.set()

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def raise_if_aborted(self) -> None:
        if self.aborted:
            raise FetchAborted()


class TrackClient:
    """HTTP client for the ``/api/tracks`` and ``/api/track`` endpoints."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or http_session(retries=0)
        self.timeout = timeout

    def _get(self, path: str, params: dict) -> requests.Response:
        try:
            return self.session.get(
                f"{self.base_url}{path}", params=params, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise TrackFetchError(f"GET {path} failed: {e}") from e

    def fetch_range(
        self, start: int, end: int, controller: FetchController | None = None
    ) -> list[EnrichedTrack]:
        """Fetch tracks ``[start, end)``. The result may be short or empty."""
        if controller is not None:
            controller.raise_if_aborted()
        resp = self._get("/api/tracks", {"start": start, "end": end})
        if controller is not None:
            controller.raise_if_aborted()
        if not resp.ok:
            raise TrackFetchError(f"GET /api/tracks returned {resp.status_code}")
        return [EnrichedTrack.from_dict(item) for item in resp.json()]

    def fetch_track(self, index: int) -> Optional[EnrichedTrack]:
        """Fetch one track; None when the server reports there is none."""
        resp = self._get("/api/track", {"index": index})
        if resp.status_code == 404:
            return None
        if not resp.ok:
            raise TrackFetchError(f"GET /api/track returned {resp.status_code}")
        return EnrichedTrack.from_dict(resp.json())
