# -*- coding: utf-8 -*-
"""
Block Matching Module - Local correspondence search between two images.

Proposes point-to-point correspondences between a source and a target
image that are approximately related by a known transform. Each candidate
source point is matched independently by exhaustive search over a bounded
window of integer offsets.

Key Classes
-----------
- BlockMatcher: Abstract base class for block matchers
- BlockMatchingParams: Immutable radii and thresholds
- SquareDifferenceMatcher: Minimal mean squared difference
- PMCCMatcher: Maximal correlation with sub-pixel refinement (single scale)
- MultiScalePMCCMatcher: PMCC matching at a reduced scale
- Point, PointMatch, CorrespondenceSet: Correspondence data

Usage
-----
Match a mesh of candidate points at half resolution:

    >>> from blockmatch.matching import (
    ...     BlockMatchingParams, MultiScalePMCCMatcher, mesh_points)
    >>> params = BlockMatchingParams(block_radius=16, search_radius=10,
    ...                              scale=0.5, min_r=0.8)
    >>> points = mesh_points(source.shape, points_per_row=12)
    >>> matches = MultiScalePMCCMatcher(params).match(
    ...     source, target, points, transform)

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
2026-03-09
"""

from blockmatch.matching.base import BlockMatcher
from blockmatch.matching.config import (
    MAX_CURVATURE,
    MIN_SIGMA,
    ROD,
    BlockMatchingParams,
)
from blockmatch.matching.grid import grid_points, mesh_points
from blockmatch.matching.models import (
    CorrespondenceSet,
    Point,
    PointMatch,
    as_points,
)
from blockmatch.matching.multiscale import MultiScalePMCCMatcher
from blockmatch.matching.pmcc import (
    PeakEstimate,
    PMCCMatcher,
    evaluate_response,
    find_maxima,
    refine_subpixel,
    response_map,
)
from blockmatch.matching.square_difference import (
    SquareDifferenceMatcher,
    square_difference_map,
)
from blockmatch.matching.statistics import (
    block_mean,
    block_variance,
    sliding_block_stats,
)

__all__ = [
    'BlockMatcher',
    'BlockMatchingParams',
    'MAX_CURVATURE',
    'MIN_SIGMA',
    'ROD',
    'SquareDifferenceMatcher',
    'square_difference_map',
    'PMCCMatcher',
    'PeakEstimate',
    'response_map',
    'find_maxima',
    'refine_subpixel',
    'evaluate_response',
    'MultiScalePMCCMatcher',
    'Point',
    'PointMatch',
    'CorrespondenceSet',
    'as_points',
    'grid_points',
    'mesh_points',
    'block_mean',
    'block_variance',
    'sliding_block_stats',
]
