"""
Palette Session - the incremental updater.

Owns the pixel population, the cached sample set, the centroids and the
labels of one loaded image, and re-enters the pipeline at the cheapest
stage for each edit:

- new image:        resample, refit, reassign, render
- weights or k:     refit from cached samples, reassign, render
- centroid color:   overwrite rgb, render after the debounce window
"""

import time
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

import numpy as np
from PIL import Image

from .assigner import assign_labels
from .config import ClusterConfig
from .debounce import Debouncer
from .kmeans import WeightedKMeans
from .quantizer import RenderResult, render
from .sampler import opaque_pixels, pixels_from_buffer, sample_points, unique_pixels
from .types import Centroid, PixelSet, SampleSet
from .utils import hex_to_rgb, image_to_buffer


class SessionState(Enum):
    IDLE = "idle"
    REFITTING = "refitting"
    REASSIGNING = "reassigning"
    RECOLORING = "recoloring"


class PaletteSession:
    """
    Interactive palette extraction state for a single image.

    Everything runs synchronously on the caller's thread. Color edits are
    debounced; call ``run_pending()`` from the host loop (or ``flush()``)
    to materialize them.
    """

    def __init__(
        self,
        config: Optional[ClusterConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        on_render: Optional[Callable[[RenderResult], None]] = None,
    ):
        self.config = (config if config else ClusterConfig()).validate()
        self.state = SessionState.IDLE
        self.on_render = on_render
        self.debouncer = Debouncer(self.config.debounce_seconds, clock=clock)

        self.pixels: Optional[PixelSet] = None
        self.samples: Optional[SampleSet] = None
        self.centroids: List[Centroid] = []
        self.labels: Optional[np.ndarray] = None
        self.result: Optional[RenderResult] = None
        self.render_count = 0

        self._random_state = np.random.RandomState(self.config.seed)

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------
    @property
    def loaded(self) -> bool:
        return self.pixels is not None and self.samples is not None and len(self.samples) > 0

    @property
    def palette(self) -> List[tuple]:
        return [c.rgb for c in self.centroids]

    @property
    def hex_palette(self) -> List[str]:
        return [c.hex for c in self.centroids]

    @property
    def recolored(self) -> Optional[np.ndarray]:
        return self.result.recolored if self.result else None

    @property
    def layers(self) -> List[np.ndarray]:
        return self.result.layers if self.result else []

    @property
    def coverage(self) -> List[float]:
        return self.result.coverage if self.result else []

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def load_image(self, image: Image.Image) -> None:
        """Load an already-downscaled PIL image."""
        buffer, width, height = image_to_buffer(image)
        self.load_buffer(buffer, width, height)

    def load_buffer(self, buffer: np.ndarray, width: int, height: int) -> None:
        """Replace the current image with a raw RGBA buffer and cluster it."""
        self.debouncer.cancel()
        self.pixels = None
        self.samples = None
        self.centroids = []
        self.labels = None
        self.result = None

        if width * height == 0:
            self._log("Empty image, nothing to cluster.")
            return

        cfg = self.config
        self.pixels = pixels_from_buffer(buffer, width, height)
        if cfg.deduplicate:
            population = unique_pixels(buffer, width, height, cfg.skip_transparent)
            self._log(f"Unique colors found: {len(population)}")
        else:
            population = opaque_pixels(buffer, width, height, cfg.skip_transparent)

        self.samples = sample_points(population, cfg.max_samples, self._random_state)
        self._log(
            f"Image size: {width}x{height}, total pixels: {width * height}, "
            f"samples: {len(self.samples)}"
        )
        if not self.loaded:
            self._log("No opaque pixels, nothing to cluster.")
            return

        self._refit_and_render()

    def set_weights(self, color_weight: Optional[float] = None, spatial_weight: Optional[float] = None) -> None:
        changes = {}
        if color_weight is not None:
            changes["color_weight"] = float(color_weight)
        if spatial_weight is not None:
            changes["spatial_weight"] = float(spatial_weight)
        if not changes:
            return
        self.config = self.config.with_changes(**changes)
        if self.loaded:
            self._refit_and_render()

    def set_cluster_count(self, k: int) -> None:
        self.config = self.config.with_changes(k=max(1, int(k)))
        if self.loaded:
            self._refit_and_render()

    def edit_color(self, index: int, color: Union[str, Sequence[float]]) -> None:
        """
        Overwrite one centroid's rgb. Position and labels are untouched; the
        recolor pass runs once the debounce window passes without new edits.
        """
        if not self.loaded:
            return
        if not 0 <= index < len(self.centroids):
            raise IndexError(f"Centroid index {index} out of range (k={len(self.centroids)})")

        rgb = hex_to_rgb(color) if isinstance(color, str) else tuple(float(c) for c in color)
        if len(rgb) != 3 or any(not 0.0 <= c <= 1.0 for c in rgb):
            raise ValueError(f"Color channels must be three values in [0, 1], got {rgb}")

        centroids = list(self.centroids)
        centroids[index] = Centroid(rgb=rgb, xy=centroids[index].xy)
        self.centroids = centroids
        self.debouncer.schedule(self._recolor)

    def run_pending(self) -> bool:
        """Run a debounced recolor if its window has elapsed."""
        return self.debouncer.run_pending()

    def flush(self) -> bool:
        """Run a pending debounced recolor immediately."""
        return self.debouncer.flush()

    @property
    def updating(self) -> bool:
        """True while a color edit is waiting for its recolor pass."""
        return self.debouncer.pending

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------
    def _refit_and_render(self) -> None:
        cfg = self.config
        # a full render supersedes any pending color-edit recolor
        self.debouncer.cancel()

        self.state = SessionState.REFITTING
        model = WeightedKMeans(
            n_clusters=cfg.k,
            color_weight=cfg.color_weight,
            spatial_weight=cfg.spatial_weight,
            max_iter=cfg.max_iterations,
            tol=cfg.tolerance,
        ).fit(self.samples)
        self.centroids = model.cluster_centers_
        self._log(
            f"K-Means finished in {model.n_iter_} iterations "
            f"(converged: {model.converged_}). Palette: {self.hex_palette}"
        )

        self.state = SessionState.REASSIGNING
        self.labels = assign_labels(
            self.pixels.rgb, self.pixels.xy, self.centroids,
            cfg.color_weight, cfg.spatial_weight,
        )
        self._recolor()

    def _recolor(self) -> None:
        self.state = SessionState.RECOLORING
        try:
            self.result = render(self.pixels, self.labels, self.centroids)
            self.render_count += 1
            self._log(f"Recolor time: {self.result.elapsed * 1000:.2f}ms")
        finally:
            self.state = SessionState.IDLE
        if self.on_render:
            self.on_render(self.result)

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(message)
