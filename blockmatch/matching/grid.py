# -*- coding: utf-8 -*-
"""
Candidate Points - Regular and triangle-mesh sampling of an image.

Block matchers need candidate source points. Besides detector output, the
common choices are a regular lattice and the vertices of a triangle mesh
(as used for elastic mesh alignment, where each matched vertex later pulls
the mesh through a spring).

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
2026-03-06

Modified
--------
2026-03-10
"""

# Standard library
import math
from typing import Tuple, Union

# Third-party
import numpy as np

# blockmatch internal
from blockmatch.exceptions import ValidationError


def grid_points(
    shape: Tuple[int, int],
    spacing: Union[int, Tuple[int, int]],
    margin: Union[int, Tuple[int, int]] = 0,
) -> np.ndarray:
    """Regular lattice of ``(row, col)`` points, row-major.

    Parameters
    ----------
    shape : Tuple[int, int]
        Image ``(rows, cols)``.
    spacing : int or Tuple[int, int]
        Distance between neighbouring points, ``(rows, cols)``. >= 1.
    margin : int or Tuple[int, int]
        Pixels excluded along every border, ``(rows, cols)``. >= 0. Points
        lie in ``[margin, size - margin)`` on each axis, so the last
        point is at least ``margin`` pixels from the last row or column.

    Returns
    -------
    np.ndarray
        Float64 array of shape (N, 2). Empty if the margins leave no room.

    Examples
    --------
    >>> grid_points((100, 100), spacing=20, margin=10)[:3]
    array([[10., 10.],
           [10., 30.],
           [10., 50.]])
    """
    step = (spacing, spacing) if isinstance(spacing, int) else tuple(spacing)
    pad = (margin, margin) if isinstance(margin, int) else tuple(margin)
    if min(step) < 1:
        raise ValidationError(f"spacing must be >= 1, got {spacing}")
    if min(pad) < 0:
        raise ValidationError(f"margin must be >= 0, got {margin}")

    rows = np.arange(pad[0], shape[0] - pad[0], step[0])
    cols = np.arange(pad[1], shape[1] - pad[1], step[1])
    if rows.size == 0 or cols.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    rr, cc = np.meshgrid(rows, cols, indexing='ij')
    return np.stack([rr.ravel(), cc.ravel()], axis=1).astype(np.float64)


def mesh_points(shape: Tuple[int, int], points_per_row: int) -> np.ndarray:
    """Vertices of an equilateral triangle mesh covering an image.

    Even rows hold ``points_per_row`` vertices spanning the full width;
    odd rows hold one fewer, shifted by half a spacing. Rows are
    ``spacing * sqrt(3) / 2`` apart.

    Parameters
    ----------
    shape : Tuple[int, int]
        Image ``(rows, cols)``.
    points_per_row : int
        Vertices in an even row. >= 2.

    Returns
    -------
    np.ndarray
        Float64 array of shape (N, 2), ``(row, col)``, row by row.
    """
    if points_per_row < 2:
        raise ValidationError(
            f"points_per_row must be >= 2, got {points_per_row}"
        )
    rows, cols = shape
    dx = (cols - 1) / (points_per_row - 1)
    dy = dx * math.sqrt(3.0) / 2.0
    if dy <= 0:
        raise ValidationError(f"Image too narrow for a mesh: {shape}")
    num_rows = int(math.floor((rows - 1) / dy)) + 1

    points = []
    for i in range(num_rows):
        y = i * dy
        if i % 2 == 0:
            xs = np.arange(points_per_row) * dx
        else:
            xs = np.arange(points_per_row - 1) * dx + dx / 2.0
        points.extend((y, x) for x in xs)
    return np.array(points, dtype=np.float64)
