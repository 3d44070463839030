"""Animation state used by the carousel color transitions.

A ``ColorTransition`` blends one palette into another over a fixed duration.
It holds no timers of its own; a ``FrameDriver`` calls back once per frame and
the transition is sampled against an injectable clock.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

Palette = tuple[tuple[int, int, int], ...]


def lerp_palette(start: Palette, end: Palette, t: float) -> Palette:
    """Per-channel linear interpolation between two equally sized palettes."""
    t = min(1.0, max(0.0, t))
    return tuple(
        tuple(int(round(a + (b - a) * t)) for a, b in zip(c0, c1))
        for c0, c1 in zip(start, end)
    )


class ColorTransition:
    """Interpolates ``start`` into ``end`` between ``started_at`` and
    ``started_at + duration``.

    Args:
        start: Palette currently on screen.
        end: Target palette.
        duration: Transition length in seconds.
        started_at: Clock reading at which the transition began.
    """

    def __init__(
        self, start: Palette, end: Palette, duration: float, started_at: float
    ) -> None:
        self.start = tuple(tuple(c) for c in start)
        self.end = tuple(tuple(c) for c in end)
        self.duration = duration
        self.started_at = started_at
        self.cancelled = False

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(1.0, max(0.0, (now - self.started_at) / self.duration))

    def value_at(self, now: float) -> Palette:
        return lerp_palette(self.start, self.end, self.progress(now))

    def finished(self, now: float) -> bool:
        return self.progress(now) >= 1.0

    def cancel(self) -> None:
        self.cancelled = True


class FrameDriver:
    """Schedules per-frame callbacks. Subclasses decide what a frame is."""

    def request_frame(self, callback: Callable[[], None]) -> object:
        raise NotImplementedError

    def cancel_frame(self, handle: object) -> None:
        raise NotImplementedError


class ManualFrameDriver(FrameDriver):
    """Frame driver advanced explicitly with ``tick()``."""

    def __init__(self) -> None:
        self._pending: dict[int, Callable[[], None]] = {}
        self._next_handle = 0

    def request_frame(self, callback: Callable[[], None]) -> int:
        self._next_handle += 1
        self._pending[self._next_handle] = callback
        return self._next_handle

    def cancel_frame(self, handle: object) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def tick(self) -> int:
        """Run every callback requested before this tick. Returns the count."""
        callbacks, self._pending = list(self._pending.values()), {}
        for cb in callbacks:
            cb()
        return len(callbacks)


class ThreadFrameDriver(FrameDriver):
    """Runs each frame callback on a timer thread at roughly ``fps``."""

    def __init__(self, fps: float = 60.0) -> None:
        self.interval = 1.0 / fps

    def request_frame(self, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(self.interval, callback)
        timer.daemon = True
        timer.start()
        return timer

    def cancel_frame(self, handle: object) -> None:
        handle.cancel()


class TransitionRunner:
    """Owns at most one running ``ColorTransition``.

    Starting a new transition cancels the previous one and its pending frame.
    ``on_frame`` receives the interpolated palette and the progress in [0, 1].
    """

    def __init__(
        self,
        driver: FrameDriver,
        on_frame: Callable[[Palette, float], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.driver = driver
        self.on_frame = on_frame
        self.clock = clock
        self.current: Optional[ColorTransition] = None
        self._handle: object = None
        self._lock = threading.Lock()

    def start(self, start: Palette, end: Palette, duration: float) -> ColorTransition:
        transition = ColorTransition(start, end, duration, self.clock())
        with self._lock:
            self._cancel_locked()
            self.current = transition
            self._handle = self.driver.request_frame(lambda: self._step(transition))
        return transition

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self.current is not None:
            self.current.cancel()
        if self._handle is not None:
            self.driver.cancel_frame(self._handle)
        self._handle = None

    def _step(self, transition: ColorTransition) -> None:
        if transition.cancelled:
            return
        now = self.clock()
        self.on_frame(transition.value_at(now), transition.progress(now))
        with self._lock:
            if transition.cancelled or self.current is not transition:
                return
            if transition.finished(now):
                self._handle = None
                return
            self._handle = self.driver.request_frame(lambda: self._step(transition))

    @property
    def running(self) -> bool:
        return self.current is not None and not (
            self.current.cancelled or self.current.finished(self.clock())
        )
