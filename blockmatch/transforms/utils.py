# -*- coding: utf-8 -*-
"""
Transform Utilities - Point mapping and inverse-mapping image resampling.

Provides the matrix-on-points helper shared by matrix transforms and
``map_inverse_interpolated``, which pre-warps a whole image through an
arbitrary ``CoordinateTransform`` by sampling the input at the transformed
location of every output pixel.

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
2026-03-02

Modified
--------
2026-03-06
"""

# Standard library
import logging
from typing import Tuple, TYPE_CHECKING

# Third-party
import numpy as np
from scipy.ndimage import map_coordinates

# blockmatch internal
from blockmatch.exceptions import MatchingError, ValidationError

if TYPE_CHECKING:
    from blockmatch.transforms.base import CoordinateTransform

logger = logging.getLogger(__name__)


def apply_transform_to_points(
    points: np.ndarray,
    transform_matrix: np.ndarray,
) -> np.ndarray:
    """Apply a spatial transform matrix to a set of 2D points.

    Parameters
    ----------
    points : np.ndarray
        Points to transform. Shape (N, 2), columns are (row, col).
    transform_matrix : np.ndarray
        Affine (2, 3) or projective (3, 3) transform matrix.

    Returns
    -------
    np.ndarray
        Transformed points. Shape (N, 2), columns are (row, col).
    """
    n = points.shape[0]
    ones = np.ones((n, 1))
    pts_h = np.hstack([points, ones])  # (N, 3)

    if transform_matrix.shape == (2, 3):
        return pts_h @ transform_matrix.T

    elif transform_matrix.shape == (3, 3):
        result_h = pts_h @ transform_matrix.T
        w = result_h[:, 2:3]
        w = np.where(np.abs(w) < 1e-12, 1e-12, w)
        return result_h[:, :2] / w

    else:
        raise ValidationError(
            f"Transform matrix must be (2, 3) or (3, 3), got {transform_matrix.shape}"
        )


def map_inverse_interpolated(
    image: np.ndarray,
    transform: 'CoordinateTransform',
    output_shape: Tuple[int, int],
    order: int = 1,
) -> Tuple[np.ndarray, np.ndarray]:
    """Resample ``image`` into a new grid through a coordinate transform.

    For every output pixel ``u`` the input is sampled at
    ``transform.apply(u)`` using ``scipy.ndimage.map_coordinates``. The
    transform therefore maps output coordinates to input coordinates.

    Parameters
    ----------
    image : np.ndarray
        Input image, shape (rows, cols). NaN samples are treated as
        missing.
    transform : CoordinateTransform
        Mapping from output (row, col) to input (row, col).
    output_shape : Tuple[int, int]
        Output (rows, cols).
    order : int
        Interpolation order: 0=nearest, 1=bilinear, 3=bicubic.

    Returns
    -------
    mapped : np.ndarray
        Resampled float32 image, shape ``output_shape``. Pixels with no
        valid source are 0.
    valid : np.ndarray
        Boolean mask, True where the output pixel was sampled from inside
        the input and no NaN input sample contributed.

    Raises
    ------
    MatchingError
        If the transform produces no finite coordinates at all.
    """
    out_rows, out_cols = int(output_shape[0]), int(output_shape[1])
    rows, cols = image.shape

    row_coords, col_coords = np.mgrid[0:out_rows, 0:out_cols]
    grid = np.stack([row_coords.ravel(), col_coords.ravel()], axis=1)
    src = np.asarray(transform.apply(grid.astype(np.float64)))

    finite = np.all(np.isfinite(src), axis=1)
    if src.size and not finite.any():
        raise MatchingError(
            "Transform produced no finite coordinates for the output grid"
        )

    src_rows = np.where(finite, src[:, 0], -1.0).reshape(out_rows, out_cols)
    src_cols = np.where(finite, src[:, 1], -1.0).reshape(out_rows, out_cols)

    # Samples exactly on the last row/col are inside the image.
    inside = (
        (src_rows >= 0) & (src_rows <= rows - 1)
        & (src_cols >= 0) & (src_cols <= cols - 1)
    )

    missing = ~np.isfinite(image)
    working = np.where(missing, 0.0, image).astype(np.float64)
    mapped = map_coordinates(
        working, [src_rows, src_cols], order=order, mode='nearest',
    )

    valid = inside
    if missing.any():
        touched = map_coordinates(
            missing.astype(np.float64), [src_rows, src_cols],
            order=order, mode='nearest',
        )
        valid = valid & (touched <= 0.0)

    mapped = np.where(valid, mapped, 0.0).astype(np.float32)
    logger.debug(
        "Mapped %dx%d -> %dx%d (%.1f%% valid)",
        rows, cols, out_rows, out_cols,
        100.0 * valid.mean() if valid.size else 0.0,
    )
    return mapped, valid
