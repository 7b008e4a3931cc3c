"""
Background matte: make near-white pixels transparent.

Works on decoded RGBA pixel data only. Decoding and re-encoding belong
to the image codec.
"""

from __future__ import annotations

from typing import Union

import numpy as np

from ..errors import InvalidArgumentError

DEFAULT_THRESHOLD = 240

PixelBuffer = Union[bytes, bytearray, memoryview, np.ndarray]


def remove_near_white(
    pixels: PixelBuffer,
    width: int,
    height: int,
    threshold: int = DEFAULT_THRESHOLD,
) -> PixelBuffer:
    """
    Zero the alpha of every pixel whose R, G and B are all >= threshold.

    Args:
        pixels: Row-major RGBA data, either flat bytes (4 per pixel) or a
            uint8 array of shape (height, width, 4)
        width: Image width in pixels
        height: Image height in pixels
        threshold: Luminance cut-off in [0, 255]

    Returns:
        A new buffer of the same kind as ``pixels``; the input is not modified.

    Raises:
        InvalidArgumentError: If the threshold or buffer size is invalid
    """
    if not 0 <= threshold <= 255:
        raise InvalidArgumentError(f"threshold must be in [0, 255], got {threshold}")
    if width < 0 or height < 0:
        raise InvalidArgumentError(f"invalid pixel dimensions {width}x{height}")

    as_array = isinstance(pixels, np.ndarray)
    flat = np.frombuffer(pixels.tobytes() if as_array else bytes(pixels), dtype=np.uint8)
    if flat.size != width * height * 4:
        raise InvalidArgumentError(
            f"RGBA buffer holds {flat.size} bytes, expected {width * height * 4} for {width}x{height}"
        )

    rgba = flat.reshape(height, width, 4).copy()
    near_white = np.all(rgba[:, :, :3] >= threshold, axis=2)
    rgba[near_white, 3] = 0

    if as_array:
        return rgba
    return rgba.tobytes()
