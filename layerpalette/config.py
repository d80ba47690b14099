"""
Clustering configuration for Layer Palette.
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class ClusterConfig:
    color_weight: float = 1.0
    spatial_weight: float = 0.1
    k: int = 6
    max_samples: int = 800_000
    max_iterations: int = 50
    tolerance: float = 0.001
    skip_transparent: bool = True
    deduplicate: bool = True  # sample from unique colors instead of all pixels
    debounce_seconds: float = 0.3
    max_dimension: int = 2000
    seed: Optional[int] = None
    verbose: bool = True

    def validate(self) -> "ClusterConfig":
        """Raise ValueError on out-of-range settings, otherwise return self."""
        if not (self.color_weight >= 0 and self.spatial_weight >= 0):
            raise ValueError("Weights must be non-negative numbers")
        if self.k < 1:
            raise ValueError(f"Cluster count must be at least 1, got {self.k}")
        if self.max_samples <= 0:
            raise ValueError(f"max_samples must be positive, got {self.max_samples}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if not self.debounce_seconds >= 0:
            raise ValueError("debounce_seconds must be non-negative")
        if self.max_dimension < 1:
            raise ValueError("max_dimension must be positive")
        return self

    def with_changes(self, **changes) -> "ClusterConfig":
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes).validate()
