"""
Data model shared by the sampler, k-means, assigner and quantizer.

Populations are stored column-wise as numpy arrays: ``rgb`` is (N, 3)
floats in [0, 1] and ``xy`` is (N, 2) normalized column/row in [0, 1).
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .utils import rgb_to_hex


@dataclass(frozen=True)
class SampleSet:
    """A captured set of (rgb, xy) sample points."""
    rgb: np.ndarray
    xy: np.ndarray

    def __len__(self) -> int:
        return len(self.rgb)

    def __getitem__(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        return self.rgb[i], self.xy[i]

    @classmethod
    def from_points(cls, points: Sequence[Tuple[Sequence[float], Sequence[float]]]) -> "SampleSet":
        """Build a sample set from a list of (rgb, xy) pairs."""
        rgb = np.array([p[0] for p in points], dtype=np.float64).reshape(-1, 3)
        xy = np.array([p[1] for p in points], dtype=np.float64).reshape(-1, 2)
        return cls(rgb=rgb, xy=xy)


@dataclass(frozen=True)
class PixelSet(SampleSet):
    """
    The full-resolution pixel population of one image.

    ``index`` holds each pixel's row-major flat offset into the source buffer.
    """
    index: np.ndarray = None
    width: int = 0
    height: int = 0


@dataclass
class Centroid:
    rgb: Tuple[float, float, float]
    xy: Tuple[float, float]

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.rgb)


def centroids_to_arrays(centroids: Sequence[Centroid]) -> Tuple[np.ndarray, np.ndarray]:
    """Stack a centroid list into (k, 3) rgb and (k, 2) xy arrays."""
    rgb = np.array([c.rgb for c in centroids], dtype=np.float64).reshape(-1, 3)
    xy = np.array([c.xy for c in centroids], dtype=np.float64).reshape(-1, 2)
    return rgb, xy


def arrays_to_centroids(rgb: np.ndarray, xy: np.ndarray) -> List[Centroid]:
    return [
        Centroid(rgb=tuple(float(v) for v in c_rgb), xy=tuple(float(v) for v in c_xy))
        for c_rgb, c_xy in zip(rgb, xy)
    ]
