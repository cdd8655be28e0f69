# -*- coding: utf-8 -*-
"""
blockmatch Exception Hierarchy - Domain-specific exceptions for block matching.

Provides a small exception hierarchy that lets callers catch blockmatch
errors distinctly from Python built-in exceptions. All blockmatch
exceptions subclass both ``BlockMatchError`` and the appropriate built-in
exception so that ``except ValueError`` style handlers keep working.

Data conditions encountered while matching (blocks that leave the image,
flat blocks, rejected correlation peaks) are never exceptions; they only
exclude the affected point from the output.

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
2026-03-02
"""


class BlockMatchError(Exception):
    """Base exception for all blockmatch errors."""


class ValidationError(BlockMatchError, ValueError):
    """Invalid input data, parameters, or configuration.

    Raised for non-2D images, non-positive radii, a scale outside
    ``(0, 1]``, thresholds outside their ranges, and malformed point
    arrays. Always raised before any per-point work begins.
    """


class MatchingError(BlockMatchError, RuntimeError):
    """Unrecoverable failure while establishing correspondences.

    Raised when a collaborator (e.g. a coordinate transform) produces
    unusable output for a whole image, not for individual points.
    """
