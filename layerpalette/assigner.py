"""
Cluster Assigner - nearest-centroid lookup in the weighted color+position
feature space.

    d = sqrt(color_weight * |rgb - c.rgb|^2 + spatial_weight * |xy - c.xy|^2)

Ties go to the lowest centroid index.
"""

import math
from typing import Sequence

import numpy as np

from .types import Centroid, centroids_to_arrays


def weighted_distance(
    rgb: Sequence[float],
    xy: Sequence[float],
    centroid: Centroid,
    color_weight: float,
    spatial_weight: float,
) -> float:
    color_sq = sum((a - b) ** 2 for a, b in zip(rgb, centroid.rgb))
    spatial_sq = sum((a - b) ** 2 for a, b in zip(xy, centroid.xy))
    return math.sqrt(color_weight * color_sq + spatial_weight * spatial_sq)


def assign(
    rgb: Sequence[float],
    xy: Sequence[float],
    centroids: Sequence[Centroid],
    color_weight: float,
    spatial_weight: float,
) -> int:
    """Index of the nearest centroid for a single point."""
    best = 0
    best_dist = math.inf
    for i, centroid in enumerate(centroids):
        dist = weighted_distance(rgb, xy, centroid, color_weight, spatial_weight)
        if dist < best_dist:
            best_dist = dist
            best = i
    return best


def _assign_label_arrays(
    rgb: np.ndarray,
    xy: np.ndarray,
    c_rgb: np.ndarray,
    c_xy: np.ndarray,
    color_weight: float,
    spatial_weight: float,
    chunk_size: int = 10000,
) -> np.ndarray:
    """Labels against centroids already stacked into (k, 3) and (k, 2) arrays."""
    if len(c_rgb) == 0:
        raise ValueError("Cannot assign points without centroids")
    n = len(rgb)
    labels = np.zeros(n, dtype=np.intp)

    # Chunk processing to save memory
    for i in range(0, n, chunk_size):
        chunk_rgb = rgb[i:i + chunk_size]
        chunk_xy = xy[i:i + chunk_size]
        color_sq = np.sum((chunk_rgb[:, None, :] - c_rgb[None, :, :]) ** 2, axis=2)
        spatial_sq = np.sum((chunk_xy[:, None, :] - c_xy[None, :, :]) ** 2, axis=2)
        dists = np.sqrt(color_weight * color_sq + spatial_weight * spatial_sq)
        # argmin returns the first minimum
        labels[i:i + chunk_size] = np.argmin(dists, axis=1)

    return labels


def assign_labels(
    rgb: np.ndarray,
    xy: np.ndarray,
    centroids: Sequence[Centroid],
    color_weight: float,
    spatial_weight: float,
    chunk_size: int = 10000,
) -> np.ndarray:
    """
    Vectorized nearest-centroid labels for a whole population.

    Args:
        rgb: (N, 3) colors in [0, 1].
        xy: (N, 2) normalized positions.
        centroids: Current centroid list.
        color_weight: Scale of the squared color distance.
        spatial_weight: Scale of the squared spatial distance.
        chunk_size: Rows processed at once to bound memory.

    Returns:
        (N,) int array of cluster indices.
    """
    c_rgb, c_xy = centroids_to_arrays(centroids)
    return _assign_label_arrays(rgb, xy, c_rgb, c_xy, color_weight, spatial_weight, chunk_size)
