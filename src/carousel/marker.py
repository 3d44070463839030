"""Persisted "last full fetch" marker shared by carousel instances."""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Callable, Optional

from .constants import MARKER_KEY, MARKER_PATH, MARKER_VALIDITY_SECONDS

logger = logging.getLogger(__name__)


class FetchMarker:
    """One key/timestamp pair stored as JSON on disk.

    Args:
        path: File holding the marker.
        validity_seconds: How long a marker counts as fresh.
        key: Marker name, stored alongside the timestamp.
        clock: Wall-clock source in seconds.
    """

    def __init__(
        self,
        path: str = MARKER_PATH,
        validity_seconds: float = MARKER_VALIDITY_SECONDS,
        key: str = MARKER_KEY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = path
        self.validity_seconds = validity_seconds
        self.key = key
        self.clock = clock

    def read(self) -> Optional[float]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("ignoring unreadable marker %s: %s", self.path, e)
            return None
        if data.get("key") != self.key:
            return None
        ts = data.get("timestamp")
        return float(ts) if isinstance(ts, (int, float)) else None

    def is_fresh(self) -> bool:
        ts = self.read()
        return ts is not None and (self.clock() - ts) < self.validity_seconds

    def touch(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump({"key": self.key, "timestamp": self.clock()}, f)
        except OSError as e:
            logger.warning("could not persist marker %s: %s", self.path, e)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
