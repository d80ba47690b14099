"""
Pixel Sampler - reduces a raw RGBA buffer to a bounded working set of
(color, position) samples for clustering.

The unique-color population keeps the first pixel seen for each exact RGB
triple, so rare and common colors get the same chance of being drawn.
"""

import numpy as np
from sklearn.utils import check_random_state

from .types import PixelSet, SampleSet


def _as_pixels(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Reshape a flat or (H, W, 4) buffer to (N, 4) uint8 rows."""
    arr = np.asarray(buffer, dtype=np.uint8)
    if arr.size != width * height * 4:
        raise ValueError(
            f"Buffer of {arr.size} values does not match {width}x{height} RGBA"
        )
    return arr.reshape(-1, 4)


def _normalized_xy(indices: np.ndarray, width: int, height: int) -> np.ndarray:
    x = (indices % width) / width
    y = (indices // width) / height
    return np.stack([x, y], axis=1).astype(np.float64)


def pixels_from_buffer(buffer: np.ndarray, width: int, height: int) -> PixelSet:
    """Build the full-resolution pixel population, transparent pixels included."""
    pixels = _as_pixels(buffer, width, height)
    indices = np.arange(len(pixels))
    return PixelSet(
        rgb=pixels[:, :3].astype(np.float64) / 255,
        xy=_normalized_xy(indices, width, height),
        index=indices,
        width=width,
        height=height,
    )


def opaque_pixels(
    buffer: np.ndarray,
    width: int,
    height: int,
    skip_transparent: bool = True,
) -> SampleSet:
    """Every pixel as a sample point, optionally skipping alpha == 0."""
    pixels = _as_pixels(buffer, width, height)
    indices = np.arange(len(pixels))
    if skip_transparent:
        indices = indices[pixels[:, 3] > 0]
    return SampleSet(
        rgb=pixels[indices, :3].astype(np.float64) / 255,
        xy=_normalized_xy(indices, width, height),
    )


def unique_pixels(
    buffer: np.ndarray,
    width: int,
    height: int,
    skip_transparent: bool = True,
) -> SampleSet:
    """
    One sample per distinct RGB triple, taken from the first pixel (in
    row-major order) carrying that color.

    Args:
        buffer: RGBA uint8 pixels, flat or shaped (H, W, 4).
        width: Image width in pixels.
        height: Image height in pixels.
        skip_transparent: Ignore pixels whose alpha is 0.

    Returns:
        SampleSet in first-seen order.
    """
    pixels = _as_pixels(buffer, width, height)
    indices = np.arange(len(pixels))
    if skip_transparent:
        indices = indices[pixels[:, 3] > 0]

    rgb_u8 = pixels[indices, :3].astype(np.int64)
    keys = (rgb_u8[:, 0] << 16) | (rgb_u8[:, 1] << 8) | rgb_u8[:, 2]

    # np.unique reports the first occurrence of each key; re-sort to scan order
    _, first = np.unique(keys, return_index=True)
    first = np.sort(first)
    kept = indices[first]

    return SampleSet(
        rgb=pixels[kept, :3].astype(np.float64) / 255,
        xy=_normalized_xy(kept, width, height),
    )


def sample_points(population: SampleSet, max_samples: int, random_state=None) -> SampleSet:
    """
    Draw min(max_samples, len(population)) points with replacement.

    Each draw is an independent uniform index into the population, so
    duplicates are possible. ``random_state`` may be None, an int seed or a
    numpy RandomState.
    """
    if max_samples <= 0:
        raise ValueError(f"max_samples must be positive, got {max_samples}")
    n = len(population)
    num_samples = min(max_samples, n)
    if num_samples == 0:
        return SampleSet(rgb=np.empty((0, 3)), xy=np.empty((0, 2)))

    rng = check_random_state(random_state)
    idx = rng.randint(0, n, size=num_samples)
    return SampleSet(rgb=population.rgb[idx].copy(), xy=population.xy[idx].copy())
