# -*- coding: utf-8 -*-
"""
Matrix Transforms - Affine and projective coordinate transforms.

Provides ``MatrixTransform``, a ``CoordinateTransform`` backed by a (2, 3)
affine or (3, 3) projective matrix on ``(row, col)`` coordinates, and
factory functions for the translation and similarity models used to pad
and rescale search buffers.

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
2026-03-05
"""

# Third-party
import numpy as np

# blockmatch internal
from blockmatch.exceptions import ValidationError
from blockmatch.transforms.base import CoordinateTransform, as_point_array
from blockmatch.transforms.utils import apply_transform_to_points


class MatrixTransform(CoordinateTransform):
    """Coordinate transform defined by a homogeneous matrix.

    Parameters
    ----------
    matrix : np.ndarray
        Affine (2, 3) or projective (3, 3) matrix mapping (row, col) to
        (row, col). Affine matrices are stored expanded to (3, 3).

    Raises
    ------
    ValidationError
        If the matrix has the wrong shape, is not finite, or is singular.

    Examples
    --------
    >>> t = MatrixTransform(np.array([[1, 0, 5], [0, 1, 3]]))
    >>> t.apply(np.array([0.0, 0.0]))
    array([5., 3.])
    """

    def __init__(self, matrix: np.ndarray) -> None:
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape == (2, 3):
            full = np.eye(3, dtype=np.float64)
            full[:2, :] = matrix
            matrix = full
        elif matrix.shape != (3, 3):
            raise ValidationError(
                f"Transform matrix must be (2, 3) or (3, 3), got {matrix.shape}"
            )
        if not np.all(np.isfinite(matrix)):
            raise ValidationError("Transform matrix must be finite")
        if abs(np.linalg.det(matrix)) < 1e-12:
            raise ValidationError("Transform matrix is singular")

        self._matrix = matrix
        self._matrix.setflags(write=False)
        self._inverse = np.linalg.inv(matrix)
        self._inverse.setflags(write=False)

    @property
    def matrix(self) -> np.ndarray:
        """Forward matrix, shape (3, 3)."""
        return self._matrix

    @property
    def inverse_matrix(self) -> np.ndarray:
        """Inverse matrix, shape (3, 3)."""
        return self._inverse

    @property
    def is_affine(self) -> bool:
        """Whether the bottom row is ``[0, 0, 1]``."""
        return bool(np.allclose(self._matrix[2], [0.0, 0.0, 1.0]))

    def apply(self, points: np.ndarray) -> np.ndarray:
        return self._map(points, self._matrix)

    def apply_inverse(self, points: np.ndarray) -> np.ndarray:
        return self._map(points, self._inverse)

    def inverse(self) -> 'MatrixTransform':
        return MatrixTransform(self._inverse)

    def compose(self, other: CoordinateTransform) -> CoordinateTransform:
        """Apply ``self`` first, then ``other``.

        Two matrix transforms collapse into a single ``MatrixTransform``;
        anything else becomes a ``TransformChain``.
        """
        if isinstance(other, MatrixTransform):
            return MatrixTransform(other.matrix @ self._matrix)
        return super().compose(other)

    def _map(self, points: np.ndarray, matrix: np.ndarray) -> np.ndarray:
        pts = as_point_array(points)
        single = pts.ndim == 1
        m = matrix[:2, :] if self.is_affine else matrix
        result = apply_transform_to_points(pts.reshape(-1, 2), m)
        return result[0] if single else result

    def __repr__(self) -> str:
        kind = 'affine' if self.is_affine else 'projective'
        rows = ', '.join(
            '[' + ', '.join(f"{v:.4g}" for v in row) + ']'
            for row in self._matrix[:2 if self.is_affine else 3]
        )
        return f"MatrixTransform({kind}, [{rows}])"


def identity() -> MatrixTransform:
    """Identity transform."""
    return MatrixTransform(np.eye(3))


def translation(d_row: float, d_col: float) -> MatrixTransform:
    """Translation by ``(d_row, d_col)`` pixels."""
    return MatrixTransform(np.array([
        [1.0, 0.0, d_row],
        [0.0, 1.0, d_col],
    ]))


def similarity(
    scale: float,
    rotation: float = 0.0,
    d_row: float = 0.0,
    d_col: float = 0.0,
) -> MatrixTransform:
    """Isotropic scaling and rotation about the origin, then translation.

    Parameters
    ----------
    scale : float
        Isotropic scale factor. Must be non-zero.
    rotation : float
        Rotation angle in radians. Default 0.
    d_row, d_col : float
        Translation applied after scaling and rotation.

    Returns
    -------
    MatrixTransform
    """
    if scale == 0:
        raise ValidationError("Similarity scale must be non-zero")
    c = scale * np.cos(rotation)
    s = scale * np.sin(rotation)
    return MatrixTransform(np.array([
        [c, -s, d_row],
        [s, c, d_col],
    ]))
