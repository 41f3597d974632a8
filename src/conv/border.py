"""Clamp-to-edge border handling."""

import numpy as np


def clamp_index(index, size: int):
    """Pull an index (or array of indices) back into [0, size - 1]."""
    return np.clip(index, 0, size - 1)


def neighbour_indices(start: int, stop: int, offset: int, size: int) -> np.ndarray:
    """Return the clamped source indices for positions start..stop-1 shifted by offset.

    Args:
        start (int): First output position.
        stop (int): One past the last output position.
        offset (int): Kernel offset relative to the centre.
        size (int): Length of the axis in the source buffer.

    Returns:
        np.ndarray: Indices that are always valid for the axis.
    """
    return clamp_index(np.arange(start + offset, stop + offset), size)


def sample(source: np.ndarray, x: int, y: int):
    """Read the pixel at (x, y), clamping each axis to the buffer edge.

    Args:
        source (np.ndarray): Image buffer of shape (H, W) or (H, W, C).
        x (int): Column, may be out of range.
        y (int): Row, may be out of range.

    Returns:
        The sample for 2D buffers, the channel vector for 3D ones.
    """
    height, width = source.shape[:2]
    return source[int(clamp_index(y, height)), int(clamp_index(x, width))]
