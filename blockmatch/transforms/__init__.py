# -*- coding: utf-8 -*-
"""
Transforms Module - Coordinate transforms consumed by the block matchers.

Block matchers treat the approximate registration between two images as a
capability: apply a point forward, apply it inversely, compose with other
transforms, and pre-warp an image through the composition. This module
provides that interface plus the matrix family needed to pad and rescale
search buffers.

Key Classes
-----------
- CoordinateTransform: Abstract invertible (row, col) mapping
- TransformChain: Ordered composition of arbitrary transforms
- MatrixTransform: Affine or projective matrix transform

Key Functions
-------------
- identity, translation, similarity: MatrixTransform factories
- map_inverse_interpolated: Resample an image through a transform

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
2026-03-05
"""

from blockmatch.transforms.base import CoordinateTransform, TransformChain
from blockmatch.transforms.matrix import (
    MatrixTransform,
    identity,
    similarity,
    translation,
)
from blockmatch.transforms.utils import (
    apply_transform_to_points,
    map_inverse_interpolated,
)

__all__ = [
    'CoordinateTransform',
    'TransformChain',
    'MatrixTransform',
    'identity',
    'translation',
    'similarity',
    'apply_transform_to_points',
    'map_inverse_interpolated',
]
