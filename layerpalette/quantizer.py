"""
Quantizer - turns final cluster labels into a recolored RGBA buffer and
one transparent-background layer per cluster.
"""

import time
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
from PIL import Image

from .types import Centroid, PixelSet, centroids_to_arrays
from .utils import buffer_to_image


@dataclass
class RenderResult:
    recolored: np.ndarray
    layers: List[np.ndarray]
    elapsed: float = 0.0
    coverage: List[float] = field(default_factory=list)

    def recolored_image(self) -> Image.Image:
        return buffer_to_image(self.recolored)

    def layer_images(self) -> List[Image.Image]:
        return [buffer_to_image(layer) for layer in self.layers]


def palette_bytes(centroids: Sequence[Centroid]) -> np.ndarray:
    """(k, 3) uint8 colors, each channel floor(c * 255)."""
    rgb, _ = centroids_to_arrays(centroids)
    return np.floor(rgb * 255).astype(np.uint8)


def cluster_coverage(labels: np.ndarray, k: int) -> List[float]:
    """Fraction of pixels assigned to each of the k clusters."""
    if len(labels) == 0:
        return [0.0] * k
    counts = np.bincount(labels, minlength=k)
    return [float(c) / len(labels) for c in counts[:k]]


def render(pixels: PixelSet, labels: np.ndarray, centroids: Sequence[Centroid]) -> RenderResult:
    """
    Recolor every pixel with its cluster color and split the result into layers.

    Args:
        pixels: Full-resolution pixel population.
        labels: Cluster index per pixel, aligned with ``pixels``.
        centroids: Current centroid list; its length is k.

    Returns:
        RenderResult holding the (H, W, 4) recolored buffer and k layer buffers.
    """
    start = time.perf_counter()
    h, w = pixels.height, pixels.width
    k = len(centroids)
    colors = palette_bytes(centroids)

    flat = np.zeros((h * w, 4), dtype=np.uint8)
    flat[pixels.index, :3] = colors[labels]
    flat[pixels.index, 3] = 255
    recolored = flat.reshape(h, w, 4)

    layers = []
    for i in range(k):
        layer = np.zeros((h * w, 4), dtype=np.uint8)
        members = pixels.index[labels == i]
        layer[members, :3] = colors[i]
        layer[members, 3] = 255
        layers.append(layer.reshape(h, w, 4))

    elapsed = time.perf_counter() - start
    return RenderResult(
        recolored=recolored,
        layers=layers,
        elapsed=elapsed,
        coverage=cluster_coverage(labels, k),
    )


def composite_layers(layers: Sequence[np.ndarray]) -> np.ndarray:
    """Stack layers bottom to top; opaque pixels replace what lies beneath."""
    if not layers:
        raise ValueError("No layers provided")
    out = np.zeros_like(layers[0])
    for layer in layers:
        opaque = layer[..., 3] > 0
        out[opaque] = layer[opaque]
    return out
