"""Track enrichment: one history page in, ``EnrichedTrack`` records out."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional
from urllib.parse import urljoin

from backend.core.config import (
    DEFAULT_ART_PATH,
    ENRICH_WORKERS,
    HTTP_TIMEOUT,
    INLINE_IMAGE_MAX_BYTES,
    PUBLIC_BASE_URL,
)
from backend.services.lastfm import LastFmClient, UpstreamUnavailable
from src.data.scrobbles import EnrichedTrack, RawScrobble
from src.visuals.core.colors import get_track_colors
from src.visuals.io.images import fetch_inline_image

logger = logging.getLogger(__name__)


class TrackEnricher:
    """Joins listening history with album-art colors and inline thumbnails.

    Args:
        client: Source of the recent-tracks page.
        color_fn: ``url -> palette``; must not raise.
        inline_fn: ``(url, max_bytes) -> data URI | None``; must not raise.
        base_url: Origin for resolving relative art URLs.
        inline_max_bytes: Inline ceiling for album art.
        workers: Pool size for per-index and color tasks.
    """

    def __init__(
        self,
        client: LastFmClient | None = None,
        color_fn: Callable | None = None,
        inline_fn: Callable | None = None,
        base_url: str = PUBLIC_BASE_URL,
        inline_max_bytes: int = INLINE_IMAGE_MAX_BYTES,
        workers: int = ENRICH_WORKERS,
    ) -> None:
        self.client = client or LastFmClient()
        session = getattr(self.client, "session", None)
        self.color_fn = color_fn or (lambda url: get_track_colors(url, session=session))
        self.inline_fn = inline_fn or (
            lambda url, max_bytes: fetch_inline_image(
                url, max_bytes, session=session, timeout=HTTP_TIMEOUT
            )
        )
        self.base_url = base_url
        self.inline_max_bytes = inline_max_bytes
        self.default_art_url = urljoin(base_url, DEFAULT_ART_PATH)
        # Separate pools so index tasks never wait on their own pool
        self._track_pool = ThreadPoolExecutor(workers, thread_name_prefix="enrich")
        self._color_pool = ThreadPoolExecutor(workers, thread_name_prefix="colors")

    def resolve_art_url(self, scrobble: RawScrobble) -> str:
        url = scrobble.art_url()
        if not url:
            return self.default_art_url
        return urljoin(self.base_url, url)

    def enrich(self, scrobble: RawScrobble) -> EnrichedTrack:
        art_url = self.resolve_art_url(scrobble)
        colors_future = self._color_pool.submit(self.color_fn, art_url)
        inline_image = self.inline_fn(art_url, self.inline_max_bytes)
        return EnrichedTrack(
            name=scrobble.name,
            artist=scrobble.artist,
            url=scrobble.url,
            album_art_url=art_url,
            colors=tuple(colors_future.result()),
            inline_image=inline_image,
            timestamp=scrobble.timestamp,
            is_now_playing=scrobble.is_now_playing,
        )

    def get_track_range(self, start: int, end: int) -> list[EnrichedTrack]:
        """Enrich indices ``[start, end)`` from a single history page.

        Indices beyond the page are dropped, so the result may be shorter than
        requested or empty.

        Raises:
            UpstreamUnavailable: if the history page cannot be fetched.
        """
        page = self.client.recent_tracks()
        selected = page[max(start, 0) : max(end, 0)]
        logger.info(
            "enriching tracks %s-%s (%s of %s on page)",
            start,
            end,
            len(selected),
            len(page),
        )
        return list(self._track_pool.map(self.enrich, selected))

    def get_track_details(self, index: int) -> Optional[EnrichedTrack]:
        """Return the enriched track at ``index``, or None when absent.

        An unreachable upstream is treated as absence.
        """
        if index < 0:
            return None
        try:
            page = self.client.recent_tracks()
        except UpstreamUnavailable as e:
            logger.warning("history unavailable for index %s: %s", index, e)
            return None
        if index >= len(page):
            return None
        return self.enrich(page[index])

    def shutdown(self) -> None:
        self._track_pool.shutdown(wait=False)
        self._color_pool.shutdown(wait=False)
