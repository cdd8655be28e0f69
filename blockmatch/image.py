# -*- coding: utf-8 -*-
"""
Image Accessor - Read-only float32 raster handling for block matching.

Matchers operate on plain 2D ``numpy.ndarray`` grids indexed
``[row, col]``. The helpers here validate caller input once, produce a
private read-only float32 copy, and express validity with explicit boolean
masks (NaN marks "no sample") instead of comparing against NaN.

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
2026-03-02

Modified
--------
2026-03-04
"""

# Standard library
from typing import Tuple

# Third-party
import numpy as np

# blockmatch internal
from blockmatch.exceptions import ValidationError


def as_image(data: np.ndarray, name: str = 'image') -> np.ndarray:
    """Validate a raster and return a read-only float32 copy.

    Parameters
    ----------
    data : np.ndarray
        2D real-valued array, shape ``(rows, cols)``. NaN samples are
        allowed and mean "no sample".
    name : str
        Argument name used in error messages.

    Returns
    -------
    np.ndarray
        C-contiguous float32 copy with ``writeable=False``.

    Raises
    ------
    ValidationError
        If ``data`` is not a non-empty 2D real numeric array.
    """
    if not isinstance(data, np.ndarray):
        raise ValidationError(
            f"{name} must be a numpy ndarray, got {type(data).__name__}"
        )
    if data.ndim != 2:
        raise ValidationError(
            f"{name} must be 2D (rows, cols), got {data.ndim}D "
            f"with shape {data.shape}"
        )
    if data.size == 0:
        raise ValidationError(f"{name} must not be empty, got shape {data.shape}")
    if np.iscomplexobj(data):
        raise ValidationError(f"{name} must be real-valued, got {data.dtype}")
    if not (np.issubdtype(data.dtype, np.number) or data.dtype == np.bool_):
        raise ValidationError(f"{name} must be numeric, got {data.dtype}")

    image = np.array(data, dtype=np.float32, order='C', copy=True)
    image.setflags(write=False)
    return image


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """Return ``(rows, cols)`` of a 2D image."""
    return int(image.shape[0]), int(image.shape[1])


def valid_mask(image: np.ndarray) -> np.ndarray:
    """Boolean mask of valid (finite) samples.

    Parameters
    ----------
    image : np.ndarray
        2D image that may contain NaN "no sample" markers.

    Returns
    -------
    np.ndarray
        Boolean array, same shape, True where the sample is usable.
    """
    return np.isfinite(image)


def block_fits(
    shape: Tuple[int, int],
    origin: Tuple[int, int],
    block_shape: Tuple[int, int],
) -> bool:
    """Whether a block lies fully inside an image.

    Parameters
    ----------
    shape : Tuple[int, int]
        Image ``(rows, cols)``.
    origin : Tuple[int, int]
        Top-left ``(row, col)`` of the block.
    block_shape : Tuple[int, int]
        Block ``(rows, cols)``.

    Returns
    -------
    bool
    """
    return (
        origin[0] >= 0
        and origin[1] >= 0
        and origin[0] + block_shape[0] <= shape[0]
        and origin[1] + block_shape[1] <= shape[1]
    )


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round coordinates to the nearest integer pixel, halves upward.

    Matches ``floor(x + 0.5)`` rounding rather than numpy's round-half-even
    so that ``2.5`` maps to pixel ``3``.
    """
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5).astype(np.int64)
