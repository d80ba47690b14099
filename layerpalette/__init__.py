# Layer Palette - Source Package

from .config import ClusterConfig
from .types import Centroid, PixelSet, SampleSet
from .sampler import pixels_from_buffer, unique_pixels, opaque_pixels, sample_points
from .assigner import assign, assign_labels, weighted_distance
from .kmeans import WeightedKMeans, fit_centroids
from .quantizer import RenderResult, render, composite_layers, cluster_coverage
from .debounce import Debouncer
from .session import PaletteSession, SessionState
from .utils import load_image, save_image, rgb_to_hex, hex_to_rgb
