# -*- coding: utf-8 -*-
"""
PMCC Block Matching - Correlation search with sub-pixel peak localization.

For each candidate source point, the Pearson product-moment correlation
coefficient (PMCC) between the source block and every target block in the
search window is collected into a response map. The map is then searched
for strict 8-connected local maxima and the best peak goes through three
rejection tests:

1. **Goodness**: the best coefficient must reach ``min_r``.
2. **Ambiguity**: a second peak with ``second / best > rod`` (and
   ``second >= 0``) rejects the point.
3. **Edge response**: the discrete Hessian of the response surface at the
   peak must be positive definite with a principal curvature ratio
   ``trace**2 / det <= (k + 1)**2 / k``, as in scale-space keypoint edge
   rejection.

Surviving peaks are localized to sub-pixel precision by a second-order
Taylor expansion, ``offset = -H^-1 * gradient``. Corrections outside the
one-pixel trust region reject the point.

The target is used as given: it must already be aligned with the source at
this scale and padded by the search radius on every side.

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
2026-03-04

Modified
--------
2026-03-10
"""

# Standard library
import logging
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

# Third-party
import numpy as np

# blockmatch internal
from blockmatch.image import as_image, block_fits, round_half_up
from blockmatch.matching.base import BlockMatcher, PointOutcome
from blockmatch.matching.config import MAX_CURVATURE, ROD, curvature_ratio
from blockmatch.matching.models import (
    CorrespondenceSet,
    Point,
    PointMatch,
    PointsLike,
    as_points,
)
from blockmatch.matching.statistics import (
    block_mean,
    block_variance,
    sliding_block_stats,
)

logger = logging.getLogger(__name__)

#: Placeholder for "no peak yet"; below every valid coefficient.
_NO_PEAK = -2.0

#: Standard deviation, relative to the block level, at or below which a
#: block counts as flat.
_FLAT_STD = 1e-9


def _flat_threshold(mean):
    return _FLAT_STD * np.maximum(np.abs(mean), 1.0)


@dataclass(frozen=True)
class PeakEstimate:
    """Accepted response peak.

    Attributes
    ----------
    offset : Tuple[int, int]
        Integer ``(row, col)`` offset of the peak.
    subpixel : Tuple[float, float]
        ``(row, col)`` Taylor correction, each strictly inside (-1, 1).
    best : float
        Coefficient at the peak.
    second : float
        Second-highest local maximum, or -2 if there was none.
    """

    offset: Tuple[int, int]
    subpixel: Tuple[float, float]
    best: float
    second: float

    @property
    def location(self) -> np.ndarray:
        """``offset + subpixel`` as a float64 ``(row, col)`` array."""
        return np.array(self.offset, dtype=np.float64) + np.array(self.subpixel)


def response_map(
    source_block: np.ndarray,
    target_window: np.ndarray,
    source_mean: Optional[float] = None,
    source_std: Optional[float] = None,
) -> np.ndarray:
    """Pearson correlation of a block against every position in a window.

    Parameters
    ----------
    source_block : np.ndarray
        Source block, shape ``(bh, bw)`` with ``bh * bw >= 2``.
    target_window : np.ndarray
        Target window, shape ``(bh + 2 * sr_rows, bw + 2 * sr_cols)``.
    source_mean : float, optional
        Precomputed mean of ``source_block``.
    source_std : float, optional
        Precomputed sample standard deviation (``ddof=1``) of
        ``source_block``. Both are computed here when omitted.

    Returns
    -------
    np.ndarray
        Float64 map of shape ``(2 * sr_rows + 1, 2 * sr_cols + 1)`` with
        values in [-1, 1]. Cell ``(i, j)`` holds the coefficient for offset
        ``(i - sr_rows, j - sr_cols)``. Cells where either block is flat
        (or holds non-finite samples) are undefined and hold ``-inf``.
    """
    block_shape = source_block.shape
    n = source_block.size
    s = source_block.astype(np.float64)
    s_mean = s.mean() if source_mean is None else source_mean
    s_centered = s - s_mean
    s_std = s.std(ddof=1) if source_std is None else source_std

    blocks, t_means, t_stds = sliding_block_stats(target_window, block_shape)
    # sum((s - ms) * (t - mt)) = sum((s - ms) * t) - mt * sum(s - ms)
    cross = np.einsum('ijkl,kl->ij', blocks, s_centered)
    cross -= t_means * s_centered.sum()

    denom = s_std * t_stds * (n - 1)
    rmap = np.full(denom.shape, -np.inf, dtype=np.float64)
    defined = (
        np.isfinite(cross) & np.isfinite(denom)
        & (t_stds > _flat_threshold(t_means))
        & (s_std > _flat_threshold(s_mean))
    )
    np.divide(cross, denom, out=rmap, where=defined)
    rmap[defined] = np.clip(rmap[defined], -1.0, 1.0)
    return rmap


def find_maxima(rmap: np.ndarray) -> List[Tuple[float, int, int]]:
    """Strict 8-connected local maxima of the map interior.

    The outermost ring of cells is never a candidate. Cells equal to any
    neighbour are not maxima.

    Parameters
    ----------
    rmap : np.ndarray
        2D response map.

    Returns
    -------
    List[Tuple[float, int, int]]
        ``(value, row, col)`` in scan order: rows descending, then columns
        descending.
    """
    rows, cols = rmap.shape
    if rows < 3 or cols < 3:
        return []

    center = rmap[1:-1, 1:-1]
    is_max = np.ones(center.shape, dtype=bool)
    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            if dr == 0 and dc == 0:
                continue
            neighbour = rmap[1 + dr:rows - 1 + dr, 1 + dc:cols - 1 + dc]
            is_max &= center > neighbour

    found = [
        (float(rmap[r + 1, c + 1]), int(r + 1), int(c + 1))
        for r, c in zip(*np.nonzero(is_max))
    ]
    found.reverse()
    return found


def refine_subpixel(
    neighbourhood: np.ndarray,
    max_curvature_ratio: float,
) -> Tuple[Optional[Tuple[float, float]], Optional[str]]:
    """Edge test and Taylor localization on a 3x3 peak neighbourhood.

    Parameters
    ----------
    neighbourhood : np.ndarray
        3x3 response values centred on the peak, indexed ``[row, col]``.
    max_curvature_ratio : float
        Upper bound on ``trace**2 / det`` of the Hessian.

    Returns
    -------
    offset : Tuple[float, float] or None
        ``(row, col)`` sub-pixel correction, or None if rejected.
    reason : str or None
        ``'edge'`` or ``'subpixel_out_of_range'`` when rejected.
    """
    (c00, c01, c02), (c10, c11, c12), (c20, c21, c22) = (
        neighbourhood.astype(np.float64).tolist()
    )

    # finite derivatives, x along columns and y along rows
    dx = (c12 - c10) / 2.0
    dy = (c21 - c01) / 2.0
    dxx = c10 - c11 - c11 + c12
    dyy = c01 - c11 - c11 + c21
    dxy = (c22 - c20 - c02 + c00) / 4.0

    det = dxx * dyy - dxy * dxy
    trace = dxx + dyy
    if det <= 0.0 or trace * trace / det > max_curvature_ratio:
        return None, 'edge'

    ixx = dyy / det
    ixy = -dxy / det
    iyy = dxx / det
    ox = -ixx * dx - ixy * dy
    oy = -ixy * dx - iyy * dy

    if abs(ox) >= 1.0 or abs(oy) >= 1.0:
        return None, 'subpixel_out_of_range'
    return (oy, ox), None


def evaluate_response(
    rmap: np.ndarray,
    min_r: float = 0.7,
    rod: float = ROD,
    max_curvature: float = MAX_CURVATURE,
) -> Tuple[Optional[PeakEstimate], Optional[str]]:
    """Select, test, and sub-pixel localize the best peak of a response map.

    Parameters
    ----------
    rmap : np.ndarray
        Response map of shape ``(2 * sr_rows + 1, 2 * sr_cols + 1)``.
    min_r : float
        Minimal accepted coefficient.
    rod : float
        Ambiguity threshold on ``second / best``.
    max_curvature : float
        Principal curvature threshold ``k``; the Hessian ratio bound is
        ``(k + 1)**2 / k``.

    Returns
    -------
    peak : PeakEstimate or None
        The accepted peak, or None.
    reason : str or None
        Rejection reason: ``'no_maximum'``, ``'low_correlation'``,
        ``'ambiguous'``, ``'non_finite'``, ``'edge'`` or
        ``'subpixel_out_of_range'``.
    """
    best = second = _NO_PEAK
    position = None
    for value, r, c in find_maxima(rmap):
        if value <= best:
            if value > second:
                second = value
            continue
        second = best
        best = value
        position = (r, c)

    if position is None:
        return None, 'no_maximum'
    if best < min_r:
        return None, 'low_correlation'
    if second >= 0.0 and (best <= 0.0 or second / best > rod):
        return None, 'ambiguous'

    r, c = position
    neighbourhood = rmap[r - 1:r + 2, c - 1:c + 2]
    if not np.all(np.isfinite(neighbourhood)):
        return None, 'non_finite'

    subpixel, reason = refine_subpixel(neighbourhood, curvature_ratio(max_curvature))
    if subpixel is None:
        return None, reason

    sr_rows = (rmap.shape[0] - 1) // 2
    sr_cols = (rmap.shape[1] - 1) // 2
    return PeakEstimate(
        offset=(r - sr_rows, c - sr_cols),
        subpixel=subpixel,
        best=best,
        second=second,
    ), None


class PMCCMatcher(BlockMatcher):
    """Single-scale block matcher maximizing the correlation coefficient.

    The target must already be in the source frame at this scale and
    padded by ``search_radius`` on each side: target sample
    ``(r + sr_rows + dr, c + sr_cols + dc)`` is the candidate for source
    sample ``(r, c)`` displaced by ``(dr, dc)``. The resulting target
    location is ``local + offset + subpixel`` in that same frame; no
    transform is applied.

    Parameters
    ----------
    params : BlockMatchingParams
        Radii (``search_radius >= 1`` on both axes), ``min_r``, ``rod``
        and ``max_curvature``.

    Examples
    --------
    >>> params = BlockMatchingParams(block_radius=7, search_radius=4, min_r=0.8)
    >>> padded = np.pad(target, 4, mode='edge')
    >>> matches = PMCCMatcher(params).match(source, padded, points)
    """

    method = 'pmcc'

    def match(
        self,
        source: np.ndarray,
        target: np.ndarray,
        points: PointsLike,
        **kwargs: Any,
    ) -> CorrespondenceSet:
        """Match candidate points by maximal PMCC.

        Parameters
        ----------
        source : np.ndarray
            Source image, shape (rows, cols).
        target : np.ndarray
            Aligned target padded by the search radius, typically shape
            ``(rows + 2 * sr_rows, cols + 2 * sr_cols)``.
        points : np.ndarray or sequence
            Candidate points, source ``(row, col)``.

        Other Parameters
        ----------------
        cancel_event : threading.Event, optional
        progress_callback : Callable[[float], None], optional

        Returns
        -------
        CorrespondenceSet
            ``score`` is the coefficient of the accepted peak.

        Raises
        ------
        ValidationError
            If an image is invalid or the search radius is 0 on an axis.
        """
        self._params.require_search_interior()
        src = as_image(source, 'source')
        tgt = as_image(target, 'target')
        candidates = as_points(points)

        def match_point(point: Point) -> PointOutcome:
            return self._match_point(point, src, tgt)

        return self._run(candidates, match_point, kwargs)

    def _match_point(
        self,
        point: Point,
        src: np.ndarray,
        tgt: np.ndarray,
    ) -> PointOutcome:
        params = self._params
        block_shape = params.block_shape
        window_shape = params.window_shape

        pr, pc = (int(v) for v in round_half_up(point.local))
        origin = (pr - params.block_radius[0], pc - params.block_radius[1])
        if not (
            block_fits(src.shape, origin, block_shape)
            and block_fits(tgt.shape, origin, window_shape)
        ):
            logger.debug("Skipping %r: block or search window outside image", point)
            return None, 'out_of_bounds'

        r0, c0 = origin
        source_block = src[r0:r0 + block_shape[0], c0:c0 + block_shape[1]]
        if not np.all(np.isfinite(source_block)):
            logger.debug("Skipping %r: source block has missing samples", point)
            return None, 'invalid_block'

        mean = block_mean(src, origin, block_shape)
        variance = block_variance(src, origin, block_shape, mean)
        if variance <= _flat_threshold(mean) ** 2:
            logger.debug("Skipping %r: source block is flat", point)
            return None, 'flat_block'

        rmap = response_map(
            source_block,
            tgt[r0:r0 + window_shape[0], c0:c0 + window_shape[1]],
            source_mean=mean,
            source_std=math.sqrt(variance),
        )
        peak, reason = evaluate_response(
            rmap, params.min_r, params.rod, params.max_curvature,
        )
        if peak is None:
            logger.debug("Rejected %r: %s", point, reason)
            return None, reason

        target = point.local + peak.location
        return PointMatch(point, Point(target), peak.best), None
