# -*- coding: utf-8 -*-
"""
Block Matching Configuration - Immutable parameters for a matcher run.

``BlockMatchingParams`` carries every threshold and radius a matcher needs.
It is a frozen dataclass validated at construction, so a matcher never
starts per-point work with an invalid configuration and several matchers
with different thresholds can run side by side.

Radii are ``(rows, cols)`` pairs; a scalar applies to both axes.

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
2026-03-10
"""

# Standard library
import dataclasses
import math
from dataclasses import dataclass
from typing import Annotated, Any, Tuple, Union

# Third-party
import numpy as np

# blockmatch internal
from blockmatch.exceptions import ValidationError
from blockmatch.params import Desc, Range, validate_fields

#: Sigma of the Gaussian that brings an image sampled at sigma 0.5 to the
#: sigma 1.6 of a scale-space octave (Lowe 2004).
MIN_SIGMA = math.sqrt(2.31)

#: Ratio of second-best to best correlation peak above which a match is
#: considered ambiguous.
ROD = 0.9

#: Principal curvature ratio threshold for edge rejection.
MAX_CURVATURE = 10.0


def curvature_ratio(max_curvature: float) -> float:
    """Bound on the Hessian ``trace**2 / det``, ``(k + 1)**2 / k``."""
    return (max_curvature + 1.0) * (max_curvature + 1.0) / max_curvature


def _as_pair(value: Any, name: str) -> Tuple[int, int]:
    if isinstance(value, (bool, np.bool_)):
        raise ValidationError(f"{name} must be an integer or (rows, cols) pair, got bool")
    if isinstance(value, (int, np.integer)):
        return int(value), int(value)
    if isinstance(value, (tuple, list, np.ndarray)) and len(value) == 2:
        pair = []
        for v in value:
            if isinstance(v, (bool, np.bool_)) or not isinstance(v, (int, np.integer)):
                raise ValidationError(
                    f"{name} entries must be integers, got {type(v).__name__}"
                )
            pair.append(int(v))
        return pair[0], pair[1]
    raise ValidationError(
        f"{name} must be an integer or (rows, cols) pair, got {value!r}"
    )


@dataclass(frozen=True)
class BlockMatchingParams:
    """Radii and thresholds for block matching.

    Parameters
    ----------
    block_radius : int or Tuple[int, int]
        Half-size of the matched block, ``(rows, cols)``. The block is
        ``(2 * r + 1)`` pixels along each axis. Must be >= 1.
    search_radius : int or Tuple[int, int]
        Largest tested offset, ``(rows, cols)``. Must be >= 0; the
        correlation matchers need >= 1.
    min_r : float
        Minimal accepted correlation coefficient. Default 0.7.
    rod : float
        Ambiguity threshold on ``second_best / best``. Default 0.9.
    max_curvature : float
        Principal curvature ratio for edge rejection. Default 10.
    min_sigma : float
        Gaussian sigma applied to both images before correlating at a
        reduced scale. Default ``sqrt(2.31)``.
    scale : float
        Matching scale in (0, 1]. Default 1.0.
    max_workers : int
        Number of worker threads. Default 1 (run inline).
    noise_seed : int
        Seed for the noise that fills unmapped target regions.

    Raises
    ------
    ValidationError
        If any field is out of range.

    Examples
    --------
    >>> params = BlockMatchingParams(block_radius=8, search_radius=(4, 6))
    >>> params.block_shape
    (17, 17)
    >>> params.scaled(0.5).search_radius
    (2, 3)
    """

    block_radius: Annotated[Union[int, Tuple[int, int]], Range(min=1),
                            Desc('Block half-size (rows, cols)')]
    search_radius: Annotated[Union[int, Tuple[int, int]], Range(min=0),
                             Desc('Search half-size (rows, cols)')]
    min_r: Annotated[float, Range(min=-1.0, max=1.0),
                     Desc('Minimal accepted correlation coefficient')] = 0.7
    rod: Annotated[float, Range(min=0.0, max=1.0, min_exclusive=True),
                   Desc('Second-best / best peak ratio threshold')] = ROD
    max_curvature: Annotated[float, Range(min=0.0, min_exclusive=True),
                             Desc('Principal curvature ratio threshold')] = MAX_CURVATURE
    min_sigma: Annotated[float, Range(min=0.0),
                         Desc('Anti-aliasing sigma for correlation')] = MIN_SIGMA
    scale: Annotated[float, Range(min=0.0, max=1.0, min_exclusive=True),
                     Desc('Matching scale')] = 1.0
    max_workers: Annotated[int, Range(min=1), Desc('Worker threads')] = 1
    noise_seed: Annotated[int, Range(min=0),
                          Desc('Seed for unmapped-region noise')] = 0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, 'block_radius', _as_pair(self.block_radius, 'block_radius'))
        object.__setattr__(
            self, 'search_radius', _as_pair(self.search_radius, 'search_radius'))
        validate_fields(self)

    @property
    def block_shape(self) -> Tuple[int, int]:
        """Block ``(rows, cols)``."""
        return (2 * self.block_radius[0] + 1, 2 * self.block_radius[1] + 1)

    @property
    def window_shape(self) -> Tuple[int, int]:
        """Target search window ``(rows, cols)``: the block grown by the
        search radius on every side."""
        rows, cols = self.block_shape
        return (rows + 2 * self.search_radius[0], cols + 2 * self.search_radius[1])

    def require_search_interior(self) -> None:
        """Fail unless the response map has interior cells on both axes.

        Raises
        ------
        ValidationError
            If either search radius is 0.
        """
        if min(self.search_radius) < 1:
            raise ValidationError(
                f"Correlation matching requires search_radius >= 1 on both "
                f"axes, got {self.search_radius}"
            )

    def scaled(self, scale: float) -> 'BlockMatchingParams':
        """Parameters with every radius multiplied by ``scale`` and rounded up.

        The returned parameters have ``scale=1.0`` since they already
        describe the reduced image.
        """
        if not 0.0 < scale <= 1.0:
            raise ValidationError(f"scale must be in (0, 1], got {scale}")
        return dataclasses.replace(
            self,
            block_radius=tuple(int(math.ceil(scale * r)) for r in self.block_radius),
            search_radius=tuple(int(math.ceil(scale * r)) for r in self.search_radius),
            scale=1.0,
        )
