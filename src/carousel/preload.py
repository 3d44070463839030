from __future__ import annotations

import logging
import threading
from io import BytesIO
from typing import Callable, Iterable, Optional

from PIL import Image

from src.visuals.io.images import fetch_image_bytes

from .tasks import spawn

logger = logging.getLogger(__name__)


def load_image(url: str) -> Image.Image:
    """Download and fully decode an image."""
    img = Image.open(BytesIO(fetch_image_bytes(url)))
    img.load()
    return img


class ImagePreloader:
    """Keeps decoded images for the current look-ahead window only.

    ``sync`` is called with the URLs that should be warm; anything outside that
    window is evicted, anything new is loaded in the background. Failures just
    leave the URL cold.

    Args:
        loader: ``url -> decoded image``.
        max_size: Upper bound on held images.
        scheduler: Runs a zero-argument callable, by default on a thread.
    """

    def __init__(
        self,
        loader: Callable[[str], object] = load_image,
        max_size: int = 3,
        scheduler: Callable[[Callable[[], None]], object] = spawn,
    ) -> None:
        self.loader = loader
        self.max_size = max_size
        self.scheduler = scheduler
        self._window: list[str] = []
        self._images: dict[str, object] = {}
        self._lock = threading.Lock()

    def sync(self, urls: Iterable[str]) -> None:
        window = list(dict.fromkeys(u for u in urls if u))[: self.max_size]
        with self._lock:
            self._window = window
            for url in [u for u in self._images if u not in window]:
                del self._images[url]
            missing = [u for u in window if u not in self._images]
        for url in missing:
            self.scheduler(lambda url=url: self._load(url))

    def _load(self, url: str) -> None:
        try:
            image = self.loader(url)
        except Exception as e:
            logger.warning("preload failed for %s: %s", url, e)
            return
        with self._lock:
            # The window may have moved on while loading
            if url in self._window:
                self._images[url] = image

    def get(self, url: str) -> Optional[object]:
        with self._lock:
            return self._images.get(url)

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._images

    @property
    def window(self) -> list[str]:
        with self._lock:
            return list(self._window)

    def clear(self) -> None:
        with self._lock:
            self._window = []
            self._images.clear()
