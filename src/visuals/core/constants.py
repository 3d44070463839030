"""Common color and animation constants used across modules."""

# Grayscale ramp used whenever a palette cannot be extracted
DEFAULT_PALETTE: tuple[tuple[int, int, int], ...] = (
    (58, 58, 58),
    (78, 78, 78),
    (98, 98, 98),
    (118, 118, 118),
    (138, 138, 138),
)

# Extraction tuning
PALETTE_SIZE: int = 5
SAMPLE_STRIDE: int = 80  # pixels, i.e. 320 bytes of RGBA
MIN_LIGHTNESS: float = 0.1
MAX_LIGHTNESS: float = 0.9
KMEANS_MAX_ITERATIONS: int = 20
BRIGHTNESS_BOOST: float = 1.1
