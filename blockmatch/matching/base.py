# -*- coding: utf-8 -*-
"""
Block Matcher Base Class - Abstract interface and per-point execution.

Defines the ``BlockMatcher`` ABC that every matcher implements and the
shared per-point driver. Candidate points are independent, so the driver
either processes them inline or fans them out over a thread pool (numpy
releases the GIL inside its kernels), merges results in input order,
reports progress after each point, and honours a cooperative cancellation
flag between points.

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
import logging
import threading
from abc import ABC, abstractmethod
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

# Third-party
import numpy as np

# blockmatch internal
from blockmatch.exceptions import ValidationError
from blockmatch.matching.config import BlockMatchingParams
from blockmatch.matching.models import (
    CorrespondenceSet,
    Point,
    PointMatch,
    PointsLike,
)

logger = logging.getLogger(__name__)

#: Per-point result: an accepted match, or ``None`` and a rejection reason.
PointOutcome = Tuple[Optional[PointMatch], Optional[str]]

_CANCELLED = 'cancelled'


class BlockMatcher(ABC):
    """Abstract base class for block correspondence matchers.

    A matcher proposes, for each candidate source point, the location in
    the target that best explains the point's neighbourhood. It never fits
    a global model; filtering is limited to per-point rejection tests.

    Parameters
    ----------
    params : BlockMatchingParams
        Radii and thresholds. Validated at construction.

    Raises
    ------
    ValidationError
        If ``params`` is not a ``BlockMatchingParams``.
    """

    #: Name recorded in ``CorrespondenceSet.metadata['method']``.
    method: str = ''

    def __init__(self, params: BlockMatchingParams) -> None:
        if not isinstance(params, BlockMatchingParams):
            raise ValidationError(
                f"params must be BlockMatchingParams, got {type(params).__name__}"
            )
        self._params = params

    @property
    def params(self) -> BlockMatchingParams:
        """The immutable configuration of this matcher."""
        return self._params

    @abstractmethod
    def match(
        self,
        source: np.ndarray,
        target: np.ndarray,
        points: PointsLike,
        **kwargs: Any,
    ) -> CorrespondenceSet:
        """Establish correspondences for candidate source points.

        Parameters
        ----------
        source : np.ndarray
            Source image, shape (rows, cols).
        target : np.ndarray
            Target image, shape (rows, cols).
        points : np.ndarray or sequence
            Candidate points in source ``(row, col)`` coordinates.

        Other Parameters
        ----------------
        cancel_event : threading.Event, optional
            Set to stop after the points currently in progress.
        progress_callback : Callable[[float], None], optional
            Called with the processed fraction after each point.

        Returns
        -------
        CorrespondenceSet
            One match per accepted point, in input order.
        """
        ...

    # -----------------------------------------------------------------
    # Per-point driver
    # -----------------------------------------------------------------
    def _run(
        self,
        points: Sequence[Point],
        match_point: Callable[[Point], PointOutcome],
        kwargs: Dict[str, Any],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> CorrespondenceSet:
        """Apply ``match_point`` to every point and collect the results.

        Parameters
        ----------
        points : Sequence[Point]
            Candidate points.
        match_point : Callable[[Point], PointOutcome]
            Pure per-point function.
        kwargs : Dict[str, Any]
            Caller keyword arguments (``cancel_event``,
            ``progress_callback``).
        metadata : Dict[str, Any], optional
            Extra metadata for the result set.

        Returns
        -------
        CorrespondenceSet
        """
        cancel_event: Optional[threading.Event] = kwargs.get('cancel_event')
        total = len(points)
        outcomes: List[PointOutcome] = []

        def guarded(point: Point) -> PointOutcome:
            if cancel_event is not None and cancel_event.is_set():
                return None, _CANCELLED
            return match_point(point)

        workers = min(self._params.max_workers, max(total, 1))
        if workers > 1:
            processed = 0
            with ThreadPoolExecutor(max_workers=workers) as executor:
                for outcome in executor.map(guarded, points):
                    outcomes.append(outcome)
                    # skipped points do not advance progress
                    if outcome[1] != _CANCELLED:
                        processed += 1
                        self._report_progress(kwargs, processed / total)
        else:
            for point in points:
                outcome = guarded(point)
                if outcome[1] == _CANCELLED:
                    break
                outcomes.append(outcome)
                self._report_progress(kwargs, len(outcomes) / total)

        reasons = Counter(reason for _, reason in outcomes if reason)
        cancelled = reasons.pop(_CANCELLED, 0) > 0 or (
            len(outcomes) < total
        )
        result = CorrespondenceSet(metadata={
            'method': self.method,
            'block_radius': self._params.block_radius,
            'search_radius': self._params.search_radius,
            'num_candidates': total,
            'rejections': dict(reasons),
            'cancelled': cancelled,
            **(metadata or {}),
        })
        result.extend(m for m, _ in outcomes if m is not None)

        self._log_summary(result, reasons, total)
        return result

    def _log_summary(
        self,
        result: CorrespondenceSet,
        reasons: Counter,
        total: int,
    ) -> None:
        logger.info(
            "%s: %d of %d candidate points matched%s",
            self.method, len(result), total,
            ' (cancelled)' if result.metadata['cancelled'] else '',
        )
        processed = len(result) + sum(reasons.values())
        eligible = processed - reasons.get('out_of_bounds', 0)
        rejected = eligible - len(result)
        if eligible > 0 and rejected > eligible * 0.5:
            logger.warning(
                "%s: %.0f%% of eligible points rejected (%s). Consider "
                "adjusting min_r or the search radius.",
                self.method, 100.0 * rejected / eligible,
                ', '.join(f"{k}={v}" for k, v in sorted(reasons.items())),
            )

    def _report_progress(self, kwargs: Dict[str, Any], fraction: float) -> None:
        """Report progress to an optional ``progress_callback``."""
        cb = kwargs.get('progress_callback')
        if cb is not None:
            cb(float(fraction))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._params!r})"
