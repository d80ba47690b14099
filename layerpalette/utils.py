"""
Utility functions for Layer Palette.
"""

import math
import string
from pathlib import Path
from typing import Sequence, Tuple

import numpy as np
from PIL import Image


def load_image(path: str) -> Image.Image:
    """Load an image from disk."""
    return Image.open(path)


def save_image(image: Image.Image, path: str) -> None:
    """Save an image to disk, creating directories if needed."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path)
    print(f"Image saved to: {path}")


def ensure_rgba(image: Image.Image) -> Image.Image:
    """Ensure image is in RGBA mode."""
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image


def fit_within(image: Image.Image, max_dimension: int = 2000) -> Image.Image:
    """
    Downscale an image so neither side exceeds max_dimension.
    The aspect ratio is preserved; smaller images are returned untouched.
    """
    width, height = image.size
    if width <= max_dimension and height <= max_dimension:
        return image

    aspect = width / height
    if width > height:
        width = max_dimension
        height = max(1, round(max_dimension / aspect))
    else:
        height = max_dimension
        width = max(1, round(max_dimension * aspect))
    return image.resize((width, height), Image.Resampling.BILINEAR)


def image_to_buffer(image: Image.Image) -> Tuple[np.ndarray, int, int]:
    """Convert a PIL Image to an (H, W, 4) uint8 RGBA buffer."""
    img = ensure_rgba(image)
    width, height = img.size
    return np.array(img, dtype=np.uint8), width, height


def buffer_to_image(buffer: np.ndarray) -> Image.Image:
    """Convert an (H, W, 4) uint8 RGBA buffer to a PIL Image."""
    return Image.fromarray(np.asarray(buffer, dtype=np.uint8))


def channel_to_byte(value: float) -> int:
    """Map a [0, 1] channel to 0..255 by flooring."""
    return int(math.floor(value * 255))


def rgb_to_hex(rgb: Sequence[float]) -> str:
    """Convert a float RGB triple in [0, 1] to a #rrggbb string."""
    r, g, b = (channel_to_byte(c) for c in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgb(hex_color: str) -> Tuple[float, float, float]:
    """
    Convert a #rrggbb string to a float RGB triple in [0, 1].
    Raises ValueError for anything that is not six hex digits.
    """
    digits = hex_color[1:] if hex_color.startswith("#") else hex_color
    if len(digits) != 6 or any(c not in string.hexdigits for c in digits):
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    return tuple(int(digits[i:i + 2], 16) / 255 for i in (0, 2, 4))
