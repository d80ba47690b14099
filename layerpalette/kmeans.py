"""
Weighted K-Means over the 5-D color+position feature space.

Differences from textbook Lloyd iterations:
- Seeds are the first k samples, copied by value (cyclically if k > n).
- A cluster with no members keeps its previous centroid unchanged.
- Convergence is measured as the summed rgb and xy centroid movement.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .assigner import _assign_label_arrays, assign_labels
from .types import Centroid, SampleSet, arrays_to_centroids


def seed_centroids(samples: SampleSet, k: int):
    """First-k seeding; wraps around the samples when k exceeds their count."""
    idx = np.arange(k) % len(samples)
    return samples.rgb[idx].copy(), samples.xy[idx].copy()


def centroid_drift(old_rgb, old_xy, new_rgb, new_xy) -> float:
    """Sum over centroids of the Euclidean rgb move plus the Euclidean xy move."""
    rgb_move = np.sqrt(np.sum((old_rgb - new_rgb) ** 2, axis=1))
    xy_move = np.sqrt(np.sum((old_xy - new_xy) ** 2, axis=1))
    return float(np.sum(rgb_move + xy_move))


def update_centroids(samples: SampleSet, labels: np.ndarray, rgb: np.ndarray, xy: np.ndarray):
    """Mean of each cluster's members; empty clusters are carried over as-is."""
    k = len(rgb)
    counts = np.bincount(labels, minlength=k)
    new_rgb = rgb.copy()
    new_xy = xy.copy()
    filled = counts > 0

    rgb_sums = np.zeros_like(rgb)
    xy_sums = np.zeros_like(xy)
    np.add.at(rgb_sums, labels, samples.rgb)
    np.add.at(xy_sums, labels, samples.xy)

    new_rgb[filled] = rgb_sums[filled] / counts[filled, None]
    new_xy[filled] = xy_sums[filled] / counts[filled, None]
    return new_rgb, new_xy, counts


@dataclass
class WeightedKMeans:
    """
    K-Means with explicit color and spatial weights.

    After ``fit`` the estimator exposes ``cluster_centers_`` (list of
    Centroid), ``labels_`` (sample labels under the final centroids),
    ``n_iter_``, ``drift_history_`` and ``converged_``.
    """
    n_clusters: int = 6
    color_weight: float = 1.0
    spatial_weight: float = 0.1
    max_iter: int = 50
    tol: float = 0.001

    cluster_centers_: List[Centroid] = field(default_factory=list, init=False, repr=False)
    labels_: Optional[np.ndarray] = field(default=None, init=False, repr=False)
    n_iter_: int = field(default=0, init=False, repr=False)
    drift_history_: List[float] = field(default_factory=list, init=False, repr=False)
    converged_: bool = field(default=False, init=False, repr=False)

    def _check_params(self, samples: SampleSet) -> None:
        if len(samples) == 0:
            raise ValueError("No samples to cluster")
        if self.n_clusters < 1:
            raise ValueError(f"n_clusters must be at least 1, got {self.n_clusters}")
        if not (self.color_weight >= 0 and self.spatial_weight >= 0):
            raise ValueError("Weights must be non-negative numbers")
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be at least 1, got {self.max_iter}")

    def fit(self, samples: SampleSet) -> "WeightedKMeans":
        self._check_params(samples)
        rgb, xy = seed_centroids(samples, self.n_clusters)
        self.drift_history_ = []
        self.converged_ = False

        for iteration in range(self.max_iter):
            labels = _assign_label_arrays(samples.rgb, samples.xy, rgb, xy,
                                          self.color_weight, self.spatial_weight)
            new_rgb, new_xy, _ = update_centroids(samples, labels, rgb, xy)
            drift = centroid_drift(rgb, xy, new_rgb, new_xy)
            self.drift_history_.append(drift)
            rgb, xy = new_rgb, new_xy
            if drift < self.tol:
                self.converged_ = True
                break

        self.n_iter_ = iteration + 1
        self.cluster_centers_ = arrays_to_centroids(rgb, xy)
        self.labels_ = _assign_label_arrays(samples.rgb, samples.xy, rgb, xy,
                                            self.color_weight, self.spatial_weight)
        return self

    def predict(self, points: SampleSet) -> np.ndarray:
        """Label arbitrary points against the fitted centroids."""
        if not self.cluster_centers_:
            raise ValueError("WeightedKMeans instance is not fitted yet")
        return assign_labels(points.rgb, points.xy, self.cluster_centers_,
                             self.color_weight, self.spatial_weight)


def fit_centroids(
    samples: SampleSet,
    k: int,
    color_weight: float = 1.0,
    spatial_weight: float = 0.1,
    max_iterations: int = 50,
    tolerance: float = 0.001,
) -> List[Centroid]:
    """Fit k centroids over the samples and return them in seed order."""
    model = WeightedKMeans(
        n_clusters=k,
        color_weight=color_weight,
        spatial_weight=spatial_weight,
        max_iter=max_iterations,
        tol=tolerance,
    )
    return model.fit(samples).cluster_centers_
