import logging

import requests

from backend.core.config import (
    HTTP_RETRIES,
    HTTP_TIMEOUT,
    LASTFM_API_KEY,
    LASTFM_API_URL,
    LASTFM_USERNAME,
)
from src.data.scrobbles import RawScrobble, parse_scrobble
from src.visuals.io.images import http_session

logger = logging.getLogger(__name__)


class UpstreamUnavailable(RuntimeError):
    """The listening-history service could not serve a usable page."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class LastFmClient:
    """Reads the recent-tracks page for one user."""

    def __init__(
        self,
        username: str | None = LASTFM_USERNAME,
        api_key: str | None = LASTFM_API_KEY,
        base_url: str = LASTFM_API_URL,
        session: requests.Session | None = None,
        timeout: float | None = HTTP_TIMEOUT,
    ) -> None:
        self.username = username
        self.api_key = api_key
        self.base_url = base_url
        self.session = session or http_session(HTTP_RETRIES)
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.username and self.api_key)

    def recent_tracks_payload(self, limit: int | None = None) -> dict:
        """Return the raw ``user.getrecenttracks`` JSON body.

        Raises:
            UpstreamUnavailable: on missing credentials, transport failure,
                non-2xx status, or a body without ``recenttracks.track``.
        """
        if not self.configured:
            raise UpstreamUnavailable("Missing Last.fm credentials")
        params = {
            "method": "user.getrecenttracks",
            "user": self.username,
            "api_key": self.api_key,
            "format": "json",
        }
        if limit:
            params["limit"] = int(limit)
        try:
            resp = self.session.get(
                self.base_url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Last.fm request failed: {e}") from e
        if not resp.ok:
            logger.error("Last.fm API error: %s %s", resp.status_code, resp.text[:200])
            raise UpstreamUnavailable("Last.fm API error", status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamUnavailable("Invalid response format") from e
        if not isinstance((data.get("recenttracks") or {}).get("track"), list):
            raise UpstreamUnavailable("Invalid response format")
        return data

    def recent_tracks(self, limit: int | None = None) -> list[RawScrobble]:
        payload = self.recent_tracks_payload(limit)
        return [parse_scrobble(item) for item in payload["recenttracks"]["track"]]
