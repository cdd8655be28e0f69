# -*- coding: utf-8 -*-
"""
Multi-Scale PMCC Matching - Correlation matching at a reduced resolution.

Wraps the single-scale PMCC matcher so it can be used when the expected
displacement or feature size is large compared to the pixel grid. Both
images are brought to ``scale`` (source by anti-aliased downsampling,
target by scale-matched blurring followed by a pre-warp through the
approximate transform), matched with scaled radii, and the accepted
targets are mapped back to full-resolution world coordinates.

Correlating at reduced resolution is cheaper and gives smoother response
surfaces, which condition the sub-pixel fit better.

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
2026-03-05

Modified
--------
2026-03-10
"""

# Standard library
import logging
from typing import Any, Optional, Tuple

# Third-party
import numpy as np

# blockmatch internal
from blockmatch.filters import (
    downsample,
    fill_with_noise,
    gaussian_smooth,
    normalize_contrast,
    smooth_for_scale,
)
from blockmatch.image import as_image, image_size
from blockmatch.matching.base import BlockMatcher, PointOutcome
from blockmatch.matching.models import (
    CorrespondenceSet,
    Point,
    PointMatch,
    PointsLike,
    as_points,
)
from blockmatch.matching.pmcc import PMCCMatcher
from blockmatch.transforms import (
    CoordinateTransform,
    TransformChain,
    identity,
    map_inverse_interpolated,
    similarity,
    translation,
)

logger = logging.getLogger(__name__)


class MultiScalePMCCMatcher(BlockMatcher):
    """PMCC block matcher operating at ``params.scale``.

    Radii in ``params`` are full-resolution values; they are scaled by
    ``ceil(scale * radius)``. Candidate points are given in full-resolution
    source coordinates and every match pairs the original point with
    ``transform(scaled_target / scale)``.

    Parameters
    ----------
    params : BlockMatchingParams
        Full-resolution radii, thresholds, ``scale``, ``min_sigma`` and
        ``noise_seed``.

    Examples
    --------
    >>> params = BlockMatchingParams(
    ...     block_radius=16, search_radius=12, scale=0.5, min_r=0.8)
    >>> matcher = MultiScalePMCCMatcher(params)
    >>> matches = matcher.match(source, target, points, transform)
    >>> matches.target_points()
    """

    method = 'pmcc_multiscale'

    def match(
        self,
        source: np.ndarray,
        target: np.ndarray,
        points: PointsLike,
        transform: Optional[CoordinateTransform] = None,
        **kwargs: Any,
    ) -> CorrespondenceSet:
        """Match candidate points by maximal PMCC at a reduced scale.

        Parameters
        ----------
        source : np.ndarray
            Source image, shape (rows, cols).
        target : np.ndarray
            Target image, any shape.
        points : np.ndarray or sequence
            Candidate points, full-resolution source ``(row, col)``.
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
            Targets in full-resolution target world coordinates.

        Raises
        ------
        ValidationError
            If an image is invalid or a scaled search radius is 0.
        """
        scale = self._params.scale
        inner = PMCCMatcher(self._params.scaled(scale))
        inner.params.require_search_interior()

        src = as_image(source, 'source')
        tgt = as_image(target, 'target')
        candidates = as_points(points)
        transform = transform if transform is not None else identity()

        scaled_source, mapped_target = self.prepare(src, tgt, transform)

        def match_point(point: Point) -> PointOutcome:
            scaled_point = Point(point.local * scale)
            match, reason = inner._match_point(
                scaled_point, scaled_source, mapped_target,
            )
            if match is None:
                return None, reason
            world = transform.apply(match.target.local / scale)
            return PointMatch(point, Point(world), match.score), None

        return self._run(candidates, match_point, kwargs, metadata={
            'scale': scale,
            'scaled_block_radius': inner.params.block_radius,
            'scaled_search_radius': inner.params.search_radius,
        })

    def prepare(
        self,
        source: np.ndarray,
        target: np.ndarray,
        transform: CoordinateTransform,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Build the scaled source and the padded, pre-warped scaled target.

        Parameters
        ----------
        source : np.ndarray
            Full-resolution source image.
        target : np.ndarray
            Full-resolution target image.
        transform : CoordinateTransform
            Approximate source-to-target mapping.

        Returns
        -------
        scaled_source : np.ndarray
            Float32 source at ``scale``, contrast-normalized and smoothed
            with ``min_sigma``.
        mapped_target : np.ndarray
            Float32 target resampled into the scaled source frame, padded
            by the scaled search radius, with unmapped pixels filled with
            noise, then smoothed with ``min_sigma``.
        """
        params = self._params
        scale = params.scale
        sr = params.scaled(scale).search_radius

        scaled_source = normalize_contrast(downsample(source, scale))
        smoothed_target = normalize_contrast(smooth_for_scale(target, scale))

        # buffer pixel u samples the target at transform((u - sr) / scale)
        mapping = TransformChain([
            similarity(1.0 / scale),
            translation(-sr[0] / scale, -sr[1] / scale),
            transform,
        ])
        rows, cols = image_size(scaled_source)
        out_shape = (rows + 2 * sr[0], cols + 2 * sr[1])
        mapped, valid = map_inverse_interpolated(smoothed_target, mapping, out_shape)

        rng = np.random.default_rng(params.noise_seed)
        mapped = np.where(valid, mapped, fill_with_noise(out_shape, rng))
        logger.debug(
            "Prepared scale %.3f: source %s, mapped target %s (%.1f%% mapped)",
            scale, scaled_source.shape, out_shape, 100.0 * valid.mean(),
        )

        scaled_source = gaussian_smooth(scaled_source, params.min_sigma)
        mapped = gaussian_smooth(mapped, params.min_sigma)
        return scaled_source, mapped
