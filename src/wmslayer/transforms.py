"""
Colour transforms applied to a decoded map image before it is handed back.

A transform is any callable taking and returning a ``PIL.Image.Image``.
"""

from typing import Callable, Sequence

import numpy as np
from numpy.typing import NDArray
from PIL import Image

ColorTransform = Callable[[Image.Image], Image.Image]


def color_matrix(matrix: Sequence[Sequence[float]]) -> ColorTransform:
    """
    Build a transform from a 5x5 colour matrix.

    Pixels are treated as row vectors ``[r, g, b, a, 1]`` with channels scaled
    to 0..1 and multiplied by ``matrix``; the fifth row holds the offsets.
    Results are clipped back into range and the image is returned as RGBA.

    Example, a semi-transparent layer::

        color_matrix([
            [1, 0, 0, 0, 0],
            [0, 1, 0, 0, 0],
            [0, 0, 1, 0, 0],
            [0, 0, 0, 0.5, 0],
            [0, 0, 0, 0, 1],
        ])
    """
    m: NDArray[np.float64] = np.asarray(matrix, dtype=np.float64)
    if m.shape != (5, 5):
        raise ValueError(f"colour matrix must be 5x5, got {m.shape}")

    def transform(image: Image.Image) -> Image.Image:
        rgba = np.asarray(image.convert("RGBA"), dtype=np.float64) / 255.0
        height, width, _ = rgba.shape
        pixels = np.concatenate([rgba.reshape(-1, 4), np.ones((height * width, 1))], axis=1)
        out = np.clip((pixels @ m)[:, :4], 0.0, 1.0) * 255.0
        return Image.fromarray(np.rint(out).astype(np.uint8).reshape(height, width, 4))

    return transform


def opacity(alpha: float) -> ColorTransform:
    """Scale the alpha channel by ``alpha`` (0 transparent, 1 unchanged)."""
    if not 0.0 <= alpha <= 1.0:
        raise ValueError("alpha must be between 0 and 1")
    m = np.identity(5)
    m[3, 3] = alpha
    return color_matrix(m.tolist())
