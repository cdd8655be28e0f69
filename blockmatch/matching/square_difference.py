# -*- coding: utf-8 -*-
"""
Square-Difference Block Matching - Minimal mean squared intensity error.

For each candidate source point, the target is searched exhaustively over
integer offsets for the block with the smallest mean squared difference to
the source block. The target is first pre-warped into the source frame
through the approximate transform (with a search-radius margin), so every
offset is a plain array shift. Samples without a valid counterpart (NaN in
the source, or outside the mapped target) are excluded from the error
through explicit validity masks.

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
2026-03-04

Modified
--------
2026-03-10
"""

# Standard library
import logging
from typing import Any, Optional, Tuple

# Third-party
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

# blockmatch internal
from blockmatch.filters import normalize_contrast
from blockmatch.image import as_image, image_size, round_half_up, valid_mask
from blockmatch.matching.base import BlockMatcher, PointOutcome
from blockmatch.matching.models import (
    CorrespondenceSet,
    Point,
    PointMatch,
    PointsLike,
    as_points,
)
from blockmatch.transforms import (
    CoordinateTransform,
    TransformChain,
    identity,
    map_inverse_interpolated,
    translation,
)

logger = logging.getLogger(__name__)


def square_difference_map(
    source_block: np.ndarray,
    source_valid: np.ndarray,
    target_window: np.ndarray,
    target_valid: np.ndarray,
) -> np.ndarray:
    """Mean squared difference for every offset in a search window.

    Parameters
    ----------
    source_block : np.ndarray
        Source block, shape ``(bh, bw)``.
    source_valid : np.ndarray
        Boolean validity of ``source_block``.
    target_window : np.ndarray
        Target window, shape ``(bh + 2 * sr_rows, bw + 2 * sr_cols)``.
        Offset ``(dr, dc)`` compares against the block starting at
        ``(dr + sr_rows, dc + sr_cols)``.
    target_valid : np.ndarray
        Boolean validity of ``target_window``.

    Returns
    -------
    np.ndarray
        Shape ``(2 * sr_rows + 1, 2 * sr_cols + 1)``. Offsets without any
        valid sample pair hold ``inf``.
    """
    block_shape = source_block.shape
    t_blocks = sliding_window_view(target_window.astype(np.float64), block_shape)
    t_valid = sliding_window_view(target_valid, block_shape)

    pairs = t_valid & source_valid[None, None, :, :]
    diff = t_blocks - source_block.astype(np.float64)[None, None, :, :]
    sums = np.sum(np.where(pairs, diff * diff, 0.0), axis=(2, 3))
    counts = np.sum(pairs, axis=(2, 3))

    errors = np.full(counts.shape, np.inf, dtype=np.float64)
    np.divide(sums, counts, out=errors, where=counts > 0)
    return errors


class SquareDifferenceMatcher(BlockMatcher):
    """Block matcher minimizing the mean squared intensity difference.

    Every candidate point whose block lies inside the source yields exactly
    one match; points closer to the border than the block radius are
    skipped. The target location is ``transform(local + best_offset)``.

    Parameters
    ----------
    params : BlockMatchingParams
        ``block_radius`` and ``search_radius`` are used; the correlation
        thresholds are ignored.

    Examples
    --------
    >>> params = BlockMatchingParams(block_radius=7, search_radius=5)
    >>> matcher = SquareDifferenceMatcher(params)
    >>> matches = matcher.match(source, target, points, transform)
    >>> matches.target_points()
    """

    method = 'square_difference'

    def match(
        self,
        source: np.ndarray,
        target: np.ndarray,
        points: PointsLike,
        transform: Optional[CoordinateTransform] = None,
        **kwargs: Any,
    ) -> CorrespondenceSet:
        """Match candidate points by minimal square difference.

        Parameters
        ----------
        source : np.ndarray
            Source image, shape (rows, cols). NaN marks missing samples.
        target : np.ndarray
            Target image, shape (rows, cols). NaN marks missing samples.
        points : np.ndarray or sequence
            Candidate points, source ``(row, col)``.
        transform : CoordinateTransform, optional
            Approximate mapping from source to target coordinates.
            Identity if omitted.

        Other Parameters
        ----------------
        cancel_event : threading.Event, optional
        progress_callback : Callable[[float], None], optional

        Returns
        -------
        CorrespondenceSet
            Targets in the target's world coordinates; ``score`` is the
            minimal mean squared difference (NaN if no offset had a valid
            sample pair).
        """
        src = normalize_contrast(as_image(source, 'source'))
        tgt = normalize_contrast(as_image(target, 'target'))
        candidates = as_points(points)
        transform = transform if transform is not None else identity()

        sr = self._params.search_radius
        rows, cols = image_size(src)
        mapping = TransformChain([translation(-sr[0], -sr[1]), transform])
        mapped, mapped_valid = map_inverse_interpolated(
            tgt, mapping, (rows + 2 * sr[0], cols + 2 * sr[1]),
        )
        src_valid = valid_mask(src)
        src = np.where(src_valid, src, 0.0).astype(np.float32)

        def match_point(point: Point) -> PointOutcome:
            return self._match_point(
                point, src, src_valid, mapped, mapped_valid, transform,
            )

        return self._run(candidates, match_point, kwargs)

    def _match_point(
        self,
        point: Point,
        src: np.ndarray,
        src_valid: np.ndarray,
        mapped: np.ndarray,
        mapped_valid: np.ndarray,
        transform: CoordinateTransform,
    ) -> PointOutcome:
        br = self._params.block_radius
        bh, bw = self._params.block_shape
        wh, ww = self._params.window_shape
        rows, cols = image_size(src)

        pr, pc = (int(v) for v in round_half_up(point.local))
        if not (
            pr - br[0] >= 0 and pr + br[0] < rows
            and pc - br[1] >= 0 and pc + br[1] < cols
        ):
            logger.debug("Skipping %r: block outside source", point)
            return None, 'out_of_bounds'

        r0, c0 = pr - br[0], pc - br[1]
        window_rows = slice(r0, r0 + wh)
        window_cols = slice(c0, c0 + ww)
        errors = square_difference_map(
            src[r0:r0 + bh, c0:c0 + bw],
            src_valid[r0:r0 + bh, c0:c0 + bw],
            mapped[window_rows, window_cols],
            mapped_valid[window_rows, window_cols],
        )

        offset, score = _best_offset(errors, self._params.search_radius)
        target = transform.apply(point.local + offset)
        return PointMatch(point, Point(target), score), None


def _best_offset(
    errors: np.ndarray,
    search_radius: Tuple[int, int],
) -> Tuple[np.ndarray, float]:
    """First minimum in row-major offset order; ``(0, 0)`` if none is finite."""
    if not np.isfinite(errors).any():
        return np.zeros(2), float('nan')
    index = int(np.argmin(errors))
    i, j = divmod(index, errors.shape[1])
    offset = np.array([i - search_radius[0], j - search_radius[1]], dtype=np.float64)
    return offset, float(errors[i, j])
