"""Background scheduling helpers for the carousel."""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


def spawn(fn: Callable[[], None], name: str = "carousel") -> threading.Thread:
    """Run ``fn`` on a daemon thread."""
    th = threading.Thread(target=fn, name=name, daemon=True)
    th.start()
    return th


class RepeatingTask:
    """Calls ``fn`` every ``interval`` seconds until cancelled.

    The first call happens one interval after ``start()``. Exceptions raised by
    ``fn`` are logged and do not stop the schedule.
    """

    def __init__(self, interval: float, fn: Callable[[], None], name: str = "refresh"):
        self.interval = interval
        self.fn = fn
        self.name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> "RepeatingTask":
        if self._thread is None:
            self._thread = spawn(self._run, name=self.name)
        return self

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.fn()
            except Exception:
                logger.exception("%s task failed", self.name)

    def cancel(self) -> None:
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()
