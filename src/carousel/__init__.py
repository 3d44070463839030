"""Progressive track carousel consuming the ``/api/tracks`` endpoints."""

from .client import FetchController, TrackClient, TrackFetchError
from .marker import FetchMarker
from .preload import ImagePreloader
from .store import (
    NEXT,
    PREVIOUS,
    CarouselState,
    CarouselView,
    GestureTracker,
    TrackCarouselStore,
)
from .tasks import RepeatingTask

__all__ = [
    "NEXT",
    "PREVIOUS",
    "CarouselState",
    "CarouselView",
    "FetchController",
    "FetchMarker",
    "GestureTracker",
    "ImagePreloader",
    "RepeatingTask",
    "TrackCarouselStore",
    "TrackClient",
    "TrackFetchError",
]
