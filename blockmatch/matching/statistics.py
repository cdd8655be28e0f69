# -*- coding: utf-8 -*-
"""
Block Statistics - Mean and sample variance of rectangular image blocks.

``block_mean`` and ``block_variance`` evaluate a single block.
``sliding_block_stats`` evaluates every block position inside a search
window at once using ``sliding_window_view``, which is what the
correlation matcher uses on its hot path.

The single-block helpers do not bounds-check; the caller guarantees that
the block lies inside the image.

Dependencies
------------
numpy

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-03

Modified
--------
2026-03-05
"""

# Standard library
from typing import Tuple

# Third-party
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view


def _block(
    image: np.ndarray,
    origin: Tuple[int, int],
    block_shape: Tuple[int, int],
) -> np.ndarray:
    r0, c0 = origin
    return image[r0:r0 + block_shape[0], c0:c0 + block_shape[1]]


def block_mean(
    image: np.ndarray,
    origin: Tuple[int, int],
    block_shape: Tuple[int, int],
) -> float:
    """Arithmetic mean of a block.

    Parameters
    ----------
    image : np.ndarray
        2D image.
    origin : Tuple[int, int]
        Top-left ``(row, col)`` of the block.
    block_shape : Tuple[int, int]
        Block ``(rows, cols)``.

    Returns
    -------
    float
    """
    return float(np.mean(_block(image, origin, block_shape), dtype=np.float64))


def block_variance(
    image: np.ndarray,
    origin: Tuple[int, int],
    block_shape: Tuple[int, int],
    mean: float,
) -> float:
    """Sample variance of a block around a precomputed mean.

    Uses Bessel's correction (divisor ``rows * cols - 1``).

    Parameters
    ----------
    image : np.ndarray
        2D image.
    origin : Tuple[int, int]
        Top-left ``(row, col)`` of the block.
    block_shape : Tuple[int, int]
        Block ``(rows, cols)``. Must contain at least two samples.
    mean : float
        Block mean, usually from ``block_mean``.

    Returns
    -------
    float
    """
    block = _block(image, origin, block_shape).astype(np.float64)
    n = block.size
    diff = block - mean
    return float(np.sum(diff * diff) / (n - 1))


def sliding_block_stats(
    window: np.ndarray,
    block_shape: Tuple[int, int],
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Means and sample standard deviations of every block in a window.

    Parameters
    ----------
    window : np.ndarray
        2D window of shape ``(block_rows + m - 1, block_cols + n - 1)``.
    block_shape : Tuple[int, int]
        Block ``(rows, cols)``.

    Returns
    -------
    blocks : np.ndarray
        Float64 view-derived array of shape ``(m, n, block_rows,
        block_cols)``, one block per position.
    means : np.ndarray
        Shape ``(m, n)``.
    stds : np.ndarray
        Shape ``(m, n)``, ddof=1.
    """
    blocks = sliding_window_view(window.astype(np.float64), block_shape)
    means = blocks.mean(axis=(2, 3))
    stds = blocks.std(axis=(2, 3), ddof=1)
    return blocks, means, stds
