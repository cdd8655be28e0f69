# -*- coding: utf-8 -*-
"""
Filters - Scale-aware smoothing, downsampling, and contrast normalization.

Provides the image preparation steps used before correlating two images at
a reduced scale:

- ``gaussian_smooth``: Separable Gaussian blur via ``scipy.ndimage``
- ``smooth_for_scale``: Blur an image as if it were resampled to ``scale``
- ``downsample``: Anti-aliased resampling to ``scale``
- ``normalize_contrast``: NaN-aware min-max stretch to [0, 1]
- ``fill_with_noise``: Uniform noise used to pad unmapped regions

Sigma bookkeeping follows the usual image pyramid model: an image is
assumed to carry an inherent blur of ``source_sigma`` and, after scaling by
``scale``, should carry ``target_sigma`` in its own pixel units. The blur
that must be added in input pixels is
``sqrt((target_sigma / scale)**2 - source_sigma**2)``.

Dependencies
------------
scipy

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
2026-03-06
"""

# Standard library
import math
from typing import Tuple

# Third-party
import numpy as np
from scipy.ndimage import gaussian_filter, map_coordinates

# blockmatch internal
from blockmatch.exceptions import ValidationError


BOUNDARY_MODES = ('reflect', 'constant', 'nearest', 'wrap')


def _validate_scale(scale: float) -> None:
    if not 0.0 < scale <= 1.0:
        raise ValidationError(f"scale must be in (0, 1], got {scale}")


def scale_sigma(
    scale: float,
    source_sigma: float = 0.5,
    target_sigma: float = 0.5,
) -> float:
    """Gaussian sigma (input pixels) needed to reach ``target_sigma`` at ``scale``.

    Parameters
    ----------
    scale : float
        Scale factor in (0, 1].
    source_sigma : float
        Blur already present in the input, in input pixels.
    target_sigma : float
        Desired blur after scaling, in output pixels.

    Returns
    -------
    float
        Additional sigma; 0.0 when no blur is needed.
    """
    _validate_scale(scale)
    s = target_sigma / scale
    return math.sqrt(max(s * s - source_sigma * source_sigma, 0.0))


def gaussian_smooth(
    image: np.ndarray,
    sigma: float,
    truncate: float = 3.0,
    mode: str = 'nearest',
) -> np.ndarray:
    """Separable Gaussian smoothing.

    Parameters
    ----------
    image : np.ndarray
        2D image.
    sigma : float
        Standard deviation in pixels. ``0`` returns a float32 copy.
    truncate : float
        Kernel half-width in standard deviations. Default 3.0.
    mode : str
        Boundary handling mode. Default ``'nearest'`` (edge clamping).

    Returns
    -------
    np.ndarray
        Smoothed float32 image, same shape.
    """
    if mode not in BOUNDARY_MODES:
        raise ValidationError(
            f"mode must be one of {BOUNDARY_MODES}, got {mode!r}"
        )
    if sigma < 0:
        raise ValidationError(f"sigma must be >= 0, got {sigma}")
    working = np.asarray(image, dtype=np.float32)
    if sigma == 0:
        return working.copy()
    return gaussian_filter(working, sigma=sigma, truncate=truncate, mode=mode)


def smooth_for_scale(
    image: np.ndarray,
    scale: float,
    source_sigma: float = 0.5,
    target_sigma: float = 0.5,
) -> np.ndarray:
    """Blur an image to the frequency content it would have at ``scale``.

    The image keeps its size. At ``scale == 1`` (with equal sigmas) this
    is a copy.

    Returns
    -------
    np.ndarray
        Smoothed float32 image, same shape.
    """
    sigma = scale_sigma(scale, source_sigma, target_sigma)
    return gaussian_smooth(image, sigma)


def scaled_shape(shape: Tuple[int, int], scale: float) -> Tuple[int, int]:
    """Output ``(rows, cols)`` of ``downsample``, rounded half up, at least 1."""
    return (
        max(1, int(math.floor(shape[0] * scale + 0.5))),
        max(1, int(math.floor(shape[1] * scale + 0.5))),
    )


def downsample(
    image: np.ndarray,
    scale: float,
    source_sigma: float = 0.5,
    target_sigma: float = 0.5,
) -> np.ndarray:
    """Anti-aliased resampling of an image by ``scale``.

    The image is first blurred with ``smooth_for_scale`` and then sampled
    bilinearly so that output pixel ``i`` corresponds to input coordinate
    ``i / scale``. A point at input location ``p`` therefore sits at
    ``p * scale`` in the output.

    Parameters
    ----------
    image : np.ndarray
        2D image.
    scale : float
        Scale factor in (0, 1].
    source_sigma, target_sigma : float
        See ``scale_sigma``.

    Returns
    -------
    np.ndarray
        Float32 image of shape ``scaled_shape(image.shape, scale)``.
    """
    smoothed = smooth_for_scale(image, scale, source_sigma, target_sigma)
    if scale == 1.0:
        return smoothed

    out_rows, out_cols = scaled_shape(image.shape, scale)
    row_coords, col_coords = np.mgrid[0:out_rows, 0:out_cols].astype(np.float64)
    return map_coordinates(
        smoothed,
        [row_coords / scale, col_coords / scale],
        order=1,
        mode='nearest',
    ).astype(np.float32)


def normalize_contrast(image: np.ndarray) -> np.ndarray:
    """Stretch intensities linearly to [0, 1].

    NaN samples are ignored when finding the range and stay NaN. The
    finite samples of a constant image map to zeros.

    Parameters
    ----------
    image : np.ndarray
        2D image.

    Returns
    -------
    np.ndarray
        Float32 image, same shape.
    """
    result = np.array(image, dtype=np.float32, copy=True)
    finite = np.isfinite(result)
    if not finite.any():
        return result
    dmin = float(result[finite].min())
    dmax = float(result[finite].max())
    drange = dmax - dmin
    if drange <= 0.0:
        return np.where(finite, 0.0, result).astype(np.float32)
    return ((result - dmin) / drange).astype(np.float32)


def fill_with_noise(
    shape: Tuple[int, int],
    rng: np.random.Generator,
) -> np.ndarray:
    """Uniform [0, 1) float32 noise of the given shape."""
    return rng.random(shape, dtype=np.float32)
