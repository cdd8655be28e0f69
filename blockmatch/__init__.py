# -*- coding: utf-8 -*-
"""
blockmatch - Block correspondence search for non-rigid image registration.

Locates corresponding landmarks between two raster images that are related
by an approximately known geometric transform. For each candidate source
point a bounded neighbourhood of the target is searched for the offset that
best explains the point's local appearance, by minimal squared difference
or by maximal normalized cross-correlation with multi-scale pre-filtering
and sub-pixel peak localization.

Dependencies
------------
numpy
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
2026-03-09
"""

__version__ = "0.1.0"
__author__ = "Duane Smalley"

from blockmatch.exceptions import (
    BlockMatchError,
    ValidationError,
    MatchingError,
)
from blockmatch.matching import (
    BlockMatcher,
    BlockMatchingParams,
    CorrespondenceSet,
    MultiScalePMCCMatcher,
    PMCCMatcher,
    Point,
    PointMatch,
    SquareDifferenceMatcher,
    grid_points,
    mesh_points,
)
from blockmatch.transforms import (
    CoordinateTransform,
    MatrixTransform,
    TransformChain,
    identity,
    similarity,
    translation,
)

__all__ = [
    'BlockMatchError',
    'ValidationError',
    'MatchingError',
    'BlockMatcher',
    'BlockMatchingParams',
    'SquareDifferenceMatcher',
    'PMCCMatcher',
    'MultiScalePMCCMatcher',
    'Point',
    'PointMatch',
    'CorrespondenceSet',
    'grid_points',
    'mesh_points',
    'CoordinateTransform',
    'MatrixTransform',
    'TransformChain',
    'identity',
    'translation',
    'similarity',
]
