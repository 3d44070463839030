"""Client-side track carousel.

``TrackCarouselStore`` owns the fetched tracks and the cursor, keeps a small
look-ahead buffer filled in the background, warms the images the user is about
to see and blends the background palette whenever the cursor moves.
Rendering code only reads ``view()`` snapshots.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from src.data.scrobbles import EnrichedTrack, played_label
from src.visuals.anims.state import FrameDriver, ThreadFrameDriver, TransitionRunner
from src.visuals.core.constants import DEFAULT_PALETTE

from .client import FetchAborted, FetchController, TrackClient, TrackFetchError
from .constants import (
    CHUNK_SIZE,
    COLOR_TRANSITION_SECONDS,
    PREFETCH_THRESHOLD,
    PRELOAD_AHEAD,
    REFRESH_INTERVAL_SECONDS,
    SWIPE_THRESHOLD_PX,
)
from .marker import FetchMarker
from .preload import ImagePreloader
from .tasks import RepeatingTask, spawn

logger = logging.getLogger(__name__)

NEXT = 1
PREVIOUS = -1

Palette = tuple[tuple[int, int, int], ...]


def parse_direction(direction: Union[int, str]) -> int:
    if direction in (NEXT, "next"):
        return NEXT
    if direction in (PREVIOUS, "previous", "prev"):
        return PREVIOUS
    raise ValueError(f"Unknown direction: {direction!r}")


def _identity(track: EnrichedTrack) -> tuple:
    return (track.name, track.artist, track.timestamp, track.is_now_playing)


def _play_key(track: EnrichedTrack) -> tuple:
    return (track.name, track.artist, track.timestamp)


def merge_head(head: list[EnrichedTrack], tracks: list[EnrichedTrack]) -> list:
    """Put a fresh head chunk in front of already-fetched tracks.

    Old entries the head supersedes are dropped: any previous now-playing
    entry and any play already present in the head.
    """
    seen = {_play_key(t) for t in head}
    tail = [t for t in tracks if not t.is_now_playing and _play_key(t) not in seen]
    return list(head) + tail


@dataclass
class CarouselState:
    tracks: list[EnrichedTrack] = field(default_factory=list)
    cursor: int = 0
    reached_end: bool = False
    is_fetching: bool = False
    status: str = "idle"  # idle / loading / ready / failed / disposed


@dataclass(frozen=True)
class CarouselView:
    """What the renderer needs for one frame."""

    track: Optional[EnrichedTrack]
    previous_track: Optional[EnrichedTrack]
    fade: float
    colors: Palette
    cursor: int
    count: int
    reached_end: bool
    is_fetching: bool
    status: str

    def label(self, now: Optional[float] = None) -> str:
        return played_label(self.track, now) if self.track else ""


class GestureTracker:
    """Turns a drag/swipe into a direction once it passes ``threshold`` px."""

    def __init__(self, threshold: float = SWIPE_THRESHOLD_PX) -> None:
        self.threshold = threshold
        self._origin: Optional[tuple[float, float]] = None

    def start(self, x: float, y: float = 0.0) -> None:
        self._origin = (x, y)

    def end(self, x: float, y: float = 0.0) -> Optional[int]:
        if self._origin is None:
            return None
        dx = x - self._origin[0]
        self._origin = None
        if abs(dx) <= self.threshold:
            return None
        # dragging left pulls the next card in
        return NEXT if dx < 0 else PREVIOUS


class TrackCarouselStore:
    """Stateful carousel over enriched tracks.

    Args:
        client: Track endpoint client.
        chunk_size: Indices requested per background fetch.
        prefetch_threshold: Fetch ahead when at most this many tracks remain
            after the cursor.
        preload_ahead: Number of upcoming images kept decoded.
        marker: Persisted last-full-fetch marker, or None to always fill.
        preloader: Image preloader; built from ``preload_ahead`` if omitted.
        frame_driver: Drives color transition frames.
        clock: Monotonic time source for transitions.
        scheduler: Runs background work; defaults to a daemon thread.
        refresh_interval: Seconds between head refreshes, 0 to disable.
        transition_seconds: Length of the color blend.
    """

    def __init__(
        self,
        client: TrackClient | None = None,
        *,
        chunk_size: int = CHUNK_SIZE,
        prefetch_threshold: int = PREFETCH_THRESHOLD,
        preload_ahead: int = PRELOAD_AHEAD,
        marker: FetchMarker | None = None,
        preloader: ImagePreloader | None = None,
        frame_driver: FrameDriver | None = None,
        clock: Callable[[], float] = time.monotonic,
        scheduler: Callable[[Callable[[], None]], object] = spawn,
        refresh_interval: float = REFRESH_INTERVAL_SECONDS,
        transition_seconds: float = COLOR_TRANSITION_SECONDS,
    ) -> None:
        self.client = client or TrackClient()
        self.chunk_size = chunk_size
        self.prefetch_threshold = prefetch_threshold
        self.preload_ahead = preload_ahead
        self.marker = marker
        self.preloader = preloader or ImagePreloader(max_size=preload_ahead)
        self.scheduler = scheduler
        self.refresh_interval = refresh_interval
        self.transition_seconds = transition_seconds
        self.gestures = GestureTracker()

        self._state = CarouselState()
        self._lock = threading.RLock()
        self._controller: Optional[FetchController] = None
        self._refresh_task: Optional[RepeatingTask] = None
        self._previous_track: Optional[EnrichedTrack] = None
        self._fade = 1.0
        self._colors: Palette = DEFAULT_PALETTE
        self._transitions = TransitionRunner(
            frame_driver or ThreadFrameDriver(), self._on_frame, clock=clock
        )

    # -- read side ---------------------------------------------------------

    @property
    def state(self) -> CarouselState:
        with self._lock:
            s = self._state
            return CarouselState(
                list(s.tracks), s.cursor, s.reached_end, s.is_fetching, s.status
            )

    @property
    def lookahead(self) -> int:
        with self._lock:
            return max(0, len(self._state.tracks) - self._state.cursor - 1)

    def view(self) -> CarouselView:
        with self._lock:
            s = self._state
            return CarouselView(
                track=s.tracks[s.cursor] if s.tracks else None,
                previous_track=self._previous_track,
                fade=self._fade,
                colors=self._colors,
                cursor=s.cursor,
                count=len(s.tracks),
                reached_end=s.reached_end,
                is_fetching=s.is_fetching,
                status=s.status,
            )

    # -- lifecycle ---------------------------------------------------------

    def mount(self) -> bool:
        """Load the first chunk and start background work.

        Returns:
            True once the store is ready, False when the initial load failed.
        """
        with self._lock:
            if self._state.status != "idle":
                raise RuntimeError(f"cannot mount from state {self._state.status}")
            self._state.status = "loading"
        try:
            tracks = self.client.fetch_range(0, self.chunk_size)
        except (TrackFetchError, ValueError) as e:
            logger.warning("initial track load failed: %s", e)
            with self._lock:
                if self._state.status == "loading":
                    self._state.status = "failed"
            self._start_refresh()
            return False

        with self._lock:
            if self._state.status != "loading":
                return False
            self._state.tracks = list(tracks)
            self._state.status = "ready"
            if len(tracks) < self.chunk_size:
                self._mark_end()
            if tracks:
                self._colors = tracks[0].colors
        self._sync_preload()
        self._start_refresh()
        if self.marker is not None and self.marker.is_fresh():
            logger.info("recent full fetch on record, skipping fill")
        else:
            self.fetch_ahead(fill=True)
        return True

    def dispose(self) -> None:
        """Abort background work; later results are ignored."""
        with self._lock:
            self._state.status = "disposed"
            self._state.is_fetching = False
            controller, self._controller = self._controller, None
            task, self._refresh_task = self._refresh_task, None
            if controller is not None:
                controller.abort()
        if task is not None:
            task.cancel()
        self._transitions.cancel()
        self.preloader.clear()

    def _start_refresh(self) -> None:
        if self.refresh_interval <= 0:
            return
        with self._lock:
            if self._refresh_task is not None or self._state.status == "disposed":
                return
            self._refresh_task = RepeatingTask(self.refresh_interval, self.refresh)
        self._refresh_task.start()

    # -- navigation --------------------------------------------------------

    def advance(self, direction: Union[int, str]) -> int:
        """Move the cursor one step, wrapping at both ends.

        Returns:
            The new cursor.
        """
        step = parse_direction(direction)
        with self._lock:
            s = self._state
            if not s.tracks:
                return s.cursor
            previous = s.cursor
            s.cursor = (s.cursor + step) % len(s.tracks)
            self._previous_track = s.tracks[previous]
            self._fade = 0.0
            start, target = self._colors, s.tracks[s.cursor].colors
            cursor = s.cursor
        self._transitions.start(start, target, self.transition_seconds)
        self._sync_preload()
        self.fetch_ahead()
        return cursor

    def drag_start(self, x: float, y: float = 0.0) -> None:
        self.gestures.start(x, y)

    def drag_end(self, x: float, y: float = 0.0) -> Optional[int]:
        """Finish a drag; advances and returns the new cursor if it was a swipe."""
        direction = self.gestures.end(x, y)
        if direction is None:
            return None
        return self.advance(direction)

    def _on_frame(self, colors: Palette, progress: float) -> None:
        with self._lock:
            if self._state.status == "disposed":
                return
            self._colors = colors
            self._fade = progress
            if progress >= 1.0:
                self._previous_track = None

    # -- background fetching -----------------------------------------------

    def fetch_ahead(self, fill: bool = False) -> bool:
        """Start the fetch-ahead loop if the buffer is low.

        Args:
            fill: Keep fetching until the end regardless of the buffer.

        Returns:
            True if a loop was started.
        """
        with self._lock:
            s = self._state
            if s.status != "ready" or s.reached_end or s.is_fetching:
                return False
            if not fill and self.lookahead > self.prefetch_threshold:
                return False
            s.is_fetching = True
            controller = FetchController()
            self._controller = controller
        self.scheduler(lambda: self._fetch_loop(controller, fill))
        return True

    def _fetch_loop(self, controller: FetchController, fill: bool) -> None:
        completed = False
        try:
            while True:
                with self._lock:
                    if controller.aborted:
                        return
                    if self._state.reached_end:
                        completed = True
                        break
                    if not fill and self.lookahead > self.prefetch_threshold:
                        break
                    start = len(self._state.tracks)
                end = start + self.chunk_size
                try:
                    batch = self.client.fetch_range(start, end, controller)
                except FetchAborted:
                    return
                except (TrackFetchError, ValueError) as e:
                    logger.warning("fetch ahead %s-%s failed: %s", start, end, e)
                    break
                with self._lock:
                    if controller.aborted:
                        return
                    known = {_play_key(t) for t in self._state.tracks}
                    fresh = [t for t in batch if _play_key(t) not in known]
                    self._state.tracks.extend(fresh)
                    if len(batch) < end - start:
                        self._mark_end()
                    elif not fresh:
                        logger.info("batch at %s held only known tracks", start)
                        break
                logger.debug("fetched %s tracks at %s", len(batch), start)
                self._sync_preload()
        finally:
            with self._lock:
                if self._controller is controller:
                    self._controller = None
                    self._state.is_fetching = False
        if completed and fill and self.marker is not None:
            self.marker.touch()

    def _mark_end(self) -> None:
        if not self._state.reached_end:
            self._state.reached_end = True
            logger.info("reached end of history at %s tracks", len(self._state.tracks))

    def refresh(self) -> bool:
        """Re-read the head chunk and swap in new tracks if history moved.

        The head goes in front of the tracks already fetched, minus the ones it
        supersedes, so the buffered tail survives. Any in-flight fetch is
        aborted and the cursor returns to 0.

        Returns:
            True if the track list changed.
        """
        with self._lock:
            if self._state.status not in ("ready", "failed"):
                return False
        try:
            head = self.client.fetch_range(0, self.chunk_size)
        except (TrackFetchError, ValueError) as e:
            logger.warning("refresh failed: %s", e)
            return False
        if not head:
            return False

        with self._lock:
            s = self._state
            if s.status not in ("ready", "failed"):
                return False
            if s.tracks and _identity(head[0]) == _identity(s.tracks[0]):
                return False
            tracks = merge_head(head, s.tracks)
            controller, self._controller = self._controller, None
            if controller is not None:
                controller.abort()
            s.is_fetching = False
            s.tracks = list(tracks)
            s.cursor = 0
            if s.status == "failed" and len(head) < self.chunk_size:
                self._mark_end()
            s.status = "ready"
            self._previous_track = None
            start, target = self._colors, s.tracks[0].colors
        logger.info("history changed, now %s tracks", len(tracks))
        self._transitions.start(start, target, self.transition_seconds)
        self._sync_preload()
        self.fetch_ahead()
        return True

    def _sync_preload(self) -> None:
        with self._lock:
            tracks, cursor = self._state.tracks, self._state.cursor
            upcoming = [
                tracks[(cursor + i) % len(tracks)]
                for i in range(1, min(self.preload_ahead, len(tracks) - 1) + 1)
            ]
        self.preloader.sync(t.album_art_url for t in upcoming if not t.inline_image)
