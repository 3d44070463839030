"""Listening-history records.

Maps the Last.fm ``user.getrecenttracks`` JSON shape onto ``RawScrobble`` and
defines the ``EnrichedTrack`` payload exchanged between backend and carousel.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.visuals.core.constants import DEFAULT_PALETTE

# Preferred art variant, then positional fallback
ART_SIZE = "extralarge"
ART_INDEX = 3


@dataclass(frozen=True)
class RawScrobble:
    name: str
    artist: str
    url: str
    images: tuple[tuple[str, str], ...] = ()  # (size, url)
    timestamp: Optional[int] = None
    is_now_playing: bool = False

    def art_url(self) -> Optional[str]:
        """Return the extralarge variant, else index 3, else the largest set."""
        by_size = {size: url for size, url in self.images if url}
        if by_size.get(ART_SIZE):
            return by_size[ART_SIZE]
        if len(self.images) > ART_INDEX and self.images[ART_INDEX][1]:
            return self.images[ART_INDEX][1]
        for _, url in reversed(self.images):
            if url:
                return url
        return None


def parse_scrobble(item: dict) -> RawScrobble:
    """Build a ``RawScrobble`` from one entry of ``recenttracks.track``."""
    artist = item.get("artist") or {}
    if isinstance(artist, dict):
        artist = artist.get("#text") or artist.get("name") or ""
    images = tuple(
        (img.get("size", ""), img.get("#text", "")) for img in item.get("image") or []
    )
    date = item.get("date") or {}
    uts = date.get("uts") if isinstance(date, dict) else None
    attr = item.get("@attr") or {}
    return RawScrobble(
        name=item.get("name", ""),
        artist=artist,
        url=item.get("url", ""),
        images=images,
        timestamp=int(uts) if uts else None,
        is_now_playing=str(attr.get("nowplaying", "")).lower() == "true",
    )


@dataclass(frozen=True)
class EnrichedTrack:
    """A scrobble joined with its resolved art and extracted palette."""

    name: str
    artist: str
    url: str
    album_art_url: str
    colors: tuple[tuple[int, int, int], ...]
    inline_image: Optional[str] = None
    timestamp: Optional[int] = None
    is_now_playing: bool = False

    @property
    def image_src(self) -> str:
        """What a renderer should load: the inline data URI or the URL."""
        return self.inline_image or self.album_art_url

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "artist": self.artist,
            "url": self.url,
            "albumArtUrl": self.album_art_url,
            "inlineImage": self.inline_image,
            "colors": [list(c) for c in self.colors],
            "timestamp": self.timestamp,
            "isNowPlaying": self.is_now_playing,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EnrichedTrack":
        return cls(
            name=data.get("name", ""),
            artist=data.get("artist", ""),
            url=data.get("url", ""),
            album_art_url=data.get("albumArtUrl", ""),
            colors=tuple(tuple(int(v) for v in c) for c in data.get("colors") or ())
            or DEFAULT_PALETTE,
            inline_image=data.get("inlineImage"),
            timestamp=data.get("timestamp"),
            is_now_playing=bool(data.get("isNowPlaying", False)),
        )


def played_label(track: EnrichedTrack, now: Optional[float] = None) -> str:
    """Short caption for a track: "Now Playing" or when it was played.

    Args:
        track: Track to describe.
        now: Current unix time; defaults to the wall clock.

    Returns:
        "Now Playing", "just now", "N minutes ago", "N hours ago",
        "yesterday", or a date like "14 Nov 2023". Empty when unknown.
    """
    if track.is_now_playing:
        return "Now Playing"
    if track.timestamp is None:
        return ""
    now = time.time() if now is None else now
    elapsed = max(0, int(now - track.timestamp))
    if elapsed < 60:
        return "just now"
    if elapsed < 3600:
        minutes = elapsed // 60
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    played = datetime.fromtimestamp(track.timestamp)
    today = datetime.fromtimestamp(now).date()
    if played.date() == today:
        hours = elapsed // 3600
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    if (today - played.date()).days == 1:
        return "yesterday"
    return played.strftime("%d %b %Y")
