"""Color utilities for visuals.

Dominant colors are found with a small, deterministic k-means over sampled
pixels so the same album art always yields the same gradient.
"""

import logging
from io import BytesIO

import numpy as np
from PIL import Image

from ..io.images import fetch_image_bytes
from .constants import (
    BRIGHTNESS_BOOST,
    DEFAULT_PALETTE,
    KMEANS_MAX_ITERATIONS,
    MAX_LIGHTNESS,
    MIN_LIGHTNESS,
    PALETTE_SIZE,
    SAMPLE_STRIDE,
)

logger = logging.getLogger(__name__)

Palette = tuple[tuple[int, int, int], ...]


def sample_candidates(
    pixels, width: int, height: int, stride: int = SAMPLE_STRIDE
) -> np.ndarray:
    """Return strided RGB samples whose lightness is in the usable range.

    Args:
        pixels: RGBA buffer, either an ``(h, w, 4)`` array or flat bytes.
        width: Image width in pixels.
        height: Image height in pixels.
        stride: Take one pixel out of every ``stride``.

    Returns:
        Float array of shape ``(n, 3)``.
    """
    rgba = np.asarray(
        np.frombuffer(pixels, dtype=np.uint8)
        if isinstance(pixels, (bytes, bytearray, memoryview))
        else pixels,
        dtype=np.uint8,
    ).reshape(-1, 4)
    if rgba.shape[0] != width * height:
        raise ValueError(
            f"buffer holds {rgba.shape[0]} pixels, expected {width}x{height}"
        )
    rgb = rgba[::stride, :3].astype(np.float64)
    lightness = (rgb.max(axis=1) + rgb.min(axis=1)) / 510
    keep = (lightness > MIN_LIGHTNESS) & (lightness < MAX_LIGHTNESS)
    return rgb[keep]


def kmeans(
    samples: np.ndarray, k: int = PALETTE_SIZE, max_iter: int = KMEANS_MAX_ITERATIONS
) -> tuple[np.ndarray, np.ndarray]:
    """Cluster samples into ``k`` groups, seeded with the first ``k`` samples.

    Returns:
        (centroids, labels). Empty clusters keep their previous centroid.
    """
    centroids = samples[:k].copy()
    labels = None
    for _ in range(max_iter):
        dists = np.linalg.norm(samples[:, None, :] - centroids[None, :, :], axis=2)
        new_labels = dists.argmin(axis=1)
        if labels is not None and np.array_equal(labels, new_labels):
            break
        labels = new_labels
        for j in range(k):
            members = samples[labels == j]
            if len(members):
                centroids[j] = members.mean(axis=0)
    return centroids, labels


def rank_centroids(centroids: np.ndarray, labels: np.ndarray) -> list[tuple]:
    """Order centroids by cluster population times centroid magnitude."""
    rounded = np.rint(centroids).astype(int)
    sizes = np.bincount(labels, minlength=len(centroids))
    scores = sizes * np.linalg.norm(centroids, axis=1)
    order = sorted(range(len(centroids)), key=lambda i: -scores[i])
    return [tuple(int(c) for c in rounded[i]) for i in order]


def boost(color: tuple, factor: float = BRIGHTNESS_BOOST) -> tuple[int, int, int]:
    return tuple(min(255, int(round(c * factor))) for c in color)


def extract_palette(pixels, width: int, height: int) -> Palette:
    """Extract 5 ranked representative colors from an RGBA buffer.

    Falls back to ``DEFAULT_PALETTE`` when fewer than 5 samples survive the
    lightness filter.

    Args:
        pixels: RGBA buffer, either an ``(h, w, 4)`` array or flat bytes.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        Tuple of exactly 5 RGB tuples (0-255 each), most prominent first.
    """
    samples = sample_candidates(pixels, width, height)
    if len(samples) < PALETTE_SIZE:
        return DEFAULT_PALETTE
    centroids, labels = kmeans(samples)
    return tuple(boost(color) for color in rank_centroids(centroids, labels))


def palette_from_image(img: Image.Image) -> Palette:
    rgba = np.asarray(img.convert("RGBA"), dtype=np.uint8)
    return extract_palette(rgba, img.width, img.height)


def palette_from_bytes(data: bytes) -> Palette:
    with Image.open(BytesIO(data)) as img:
        return palette_from_image(img)


def get_track_colors(image_url: str, session=None) -> Palette:
    """Fetch album art and extract its palette, never raising.

    Any fetch or decode failure is logged and yields ``DEFAULT_PALETTE``.

    Args:
        image_url: Absolute URL of the album art.
        session: Optional ``requests.Session`` to reuse connections.

    Returns:
        Tuple of exactly 5 RGB tuples.
    """
    if not image_url:
        return DEFAULT_PALETTE
    try:
        data = fetch_image_bytes(image_url, session=session)
        return palette_from_bytes(data)
    except Exception as e:
        logger.warning("color extraction failed for %s: %s", image_url, e)
        return DEFAULT_PALETTE
