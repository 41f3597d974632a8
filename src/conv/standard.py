"""Module for convolution operations."""

import logging
import time

import numpy as np

from conv.abstract import Conv2D
from conv.border import neighbour_indices
from conv.kernel import Kernel

logger = logging.getLogger(__name__)


def as_buffer(image) -> np.ndarray:
    """Turn an image into a buffer the engine accepts.

    Args:
        image (np.ndarray | Image): Array of shape (H, W) or (H, W, C), or a
            PIL image.

    Returns:
        np.ndarray: The image as a numpy array.

    Raises:
        ValueError: If the shape or dtype cannot be convolved.
    """
    buffer = np.asarray(image)
    if buffer.ndim not in (2, 3):
        raise ValueError(f"Expected a 2D or 3D image buffer, got shape {buffer.shape}.")
    if buffer.ndim == 3 and not 1 <= buffer.shape[2] <= 4:
        raise ValueError(f"Expected 1 to 4 channels, got {buffer.shape[2]}.")
    if buffer.shape[0] == 0 or buffer.shape[1] == 0:
        raise ValueError(f"Image buffer is empty: {buffer.shape}.")
    if not (np.issubdtype(buffer.dtype, np.integer) or np.issubdtype(buffer.dtype, np.floating)):
        raise ValueError(f"Unsupported sample type {buffer.dtype}.")
    return buffer


def has_alpha(buffer: np.ndarray) -> bool:
    """Tell whether the last channel of the buffer is alpha (LA or RGBA)."""
    return buffer.ndim == 3 and buffer.shape[2] in (2, 4)


def saturate(values: np.ndarray, dtype) -> np.ndarray:
    """Clamp accumulated values into the valid range of dtype.

    Integer samples are rounded to the nearest value, halves away from zero,
    and clipped to the range of the type. Float samples are clipped to [0, 1].
    """
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        rounded = np.sign(values) * np.floor(np.abs(values) + 0.5)
        return np.clip(rounded, info.min, info.max).astype(dtype)
    return np.clip(values, 0.0, 1.0).astype(dtype)


def convolve_rows(
    source: np.ndarray,
    kernel: Kernel,
    start_row: int,
    end_row: int,
    preserve_alpha: bool = False,
) -> np.ndarray:
    """Convolve the output rows [start_row, end_row) of source.

    Only source is read; the result is a fresh array holding just the
    requested rows. Every output sample goes through the same sequence of
    operations no matter which row range it falls in, so splitting an image
    into ranges never changes the result.

    Args:
        source (np.ndarray): Image buffer of shape (H, W) or (H, W, C).
        kernel (Kernel): Kernel to apply.
        start_row (int): First output row.
        end_row (int): One past the last output row.
        preserve_alpha (bool): Copy the alpha channel through unchanged.

    Returns:
        np.ndarray: Array of shape (end_row - start_row, W[, C]) with the
            dtype of source.
    """
    height, width = source.shape[:2]
    radius = kernel.radius
    offsets = range(-radius, radius + 1)
    columns = [neighbour_indices(0, width, dx, width) for dx in offsets]

    accumulator = np.zeros((end_row - start_row,) + source.shape[1:], dtype=np.float64)
    for i, dy in enumerate(offsets):
        rows = source[neighbour_indices(start_row, end_row, dy, height)].astype(np.float64)
        for j, cols in enumerate(columns):
            weight = kernel.weights[i, j]
            if weight != 0.0:
                accumulator += weight * rows[:, cols]
    accumulator /= kernel.divisor

    output = saturate(accumulator, source.dtype)
    if preserve_alpha and has_alpha(source):
        output[..., -1] = source[start_row:end_row, :, -1]
    return output


class Standard(Conv2D):
    """Class for 2D convolution operations on the calling thread."""

    kernel: Kernel

    def run(self, image) -> np.ndarray:
        """Run convolution operation on the given image.

        Args:
            image (np.ndarray | Image): Image to apply convolution on.

        Returns:
            np.ndarray: Convolved image.
        """
        source = as_buffer(image)

        start_time = time.time()
        output = convolve_rows(source, self.kernel, 0, source.shape[0], self.preserve_alpha)
        end_time = time.time()

        logger.debug("Standard convolution took %.6f seconds.", end_time - start_time)
        return output


def apply(source, kernel: Kernel, preserve_alpha: bool = False) -> np.ndarray:
    """Convolve a whole image with kernel on the calling thread."""
    return Standard(kernel, preserve_alpha).run(source)
