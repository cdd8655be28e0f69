# -*- coding: utf-8 -*-
"""
Block Matcher Driver Tests - Threading, cancellation, progress, and logging.

Exercises the per-point driver shared by every ``BlockMatcher``: worker
pools must not change results, a cancel event stops the run with partial
results, and progress is reported once per processed point.

Dependencies
------------
pytest
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

import dataclasses
import logging
import threading

import numpy as np
import pytest
from scipy.ndimage import gaussian_filter

from blockmatch.exceptions import ValidationError
from blockmatch.matching import (
    BlockMatcher,
    BlockMatchingParams,
    PMCCMatcher,
    SquareDifferenceMatcher,
    grid_points,
)


@pytest.fixture
def source():
    rng = np.random.default_rng(42)
    return gaussian_filter(rng.random((60, 60)), 2.0)


@pytest.fixture
def points():
    return grid_points((60, 60), spacing=6, margin=12)


@pytest.fixture
def params():
    return BlockMatchingParams(block_radius=5, search_radius=3, min_r=0.5)


def _pmcc_inputs(source, sr=3):
    target = np.roll(source, (1, 2), axis=(0, 1))
    return source, np.pad(target, sr, mode='edge')


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:

    def test_requires_params(self):
        with pytest.raises(ValidationError, match="BlockMatchingParams"):
            SquareDifferenceMatcher({'block_radius': 5})

    def test_abstract(self, params):
        with pytest.raises(TypeError):
            BlockMatcher(params)

    def test_params_and_repr(self, params):
        matcher = PMCCMatcher(params)
        assert matcher.params is params
        assert repr(matcher).startswith('PMCCMatcher(BlockMatchingParams(')


# ---------------------------------------------------------------------------
# Worker pool
# ---------------------------------------------------------------------------

class TestWorkers:

    def test_square_difference_parallel_equals_sequential(self, source, points, params):
        target = np.roll(source, (1, 2), axis=(0, 1))
        seq = SquareDifferenceMatcher(params).match(source, target, points)
        par = SquareDifferenceMatcher(
            dataclasses.replace(params, max_workers=4)).match(source, target, points)
        np.testing.assert_array_equal(seq.source_points(), par.source_points())
        np.testing.assert_array_equal(seq.target_points(), par.target_points())
        np.testing.assert_array_equal(seq.scores, par.scores)

    def test_pmcc_parallel_equals_sequential(self, source, points, params):
        src, tgt = _pmcc_inputs(source)
        seq = PMCCMatcher(params).match(src, tgt, points)
        par = PMCCMatcher(
            dataclasses.replace(params, max_workers=3)).match(src, tgt, points)
        assert len(seq) > 0
        np.testing.assert_array_equal(seq.source_points(), par.source_points())
        np.testing.assert_array_equal(seq.target_points(), par.target_points())
        assert seq.metadata['rejections'] == par.metadata['rejections']

    def test_empty_points(self, source, params):
        result = SquareDifferenceMatcher(
            dataclasses.replace(params, max_workers=4)).match(
                source, source, np.empty((0, 2)))
        assert len(result) == 0
        assert result.metadata['num_candidates'] == 0
        assert result.metadata['cancelled'] is False


# ---------------------------------------------------------------------------
# Progress and cancellation
# ---------------------------------------------------------------------------

class TestProgressAndCancel:

    @pytest.mark.parametrize('workers', [1, 4])
    def test_progress(self, source, points, params, workers):
        fractions = []
        SquareDifferenceMatcher(
            dataclasses.replace(params, max_workers=workers)).match(
                source, source, points, progress_callback=fractions.append)
        assert len(fractions) == len(points)
        assert fractions == sorted(fractions)
        assert fractions[-1] == pytest.approx(1.0)

    @pytest.mark.parametrize('workers', [1, 4])
    def test_cancel_before_start(self, source, points, params, workers):
        event = threading.Event()
        event.set()
        src, tgt = _pmcc_inputs(source)
        fractions = []
        result = PMCCMatcher(
            dataclasses.replace(params, max_workers=workers)).match(
                src, tgt, points, cancel_event=event,
                progress_callback=fractions.append)
        assert len(result) == 0
        assert fractions == []
        assert result.metadata['cancelled'] is True
        assert 'cancelled' not in result.metadata['rejections']
        assert 'cancelled' in repr(result)

    def test_cancel_mid_run_keeps_partial_results(self, source, points, params):
        event = threading.Event()
        seen = []

        def progress(fraction):
            seen.append(fraction)
            if len(seen) == 3:
                event.set()

        result = SquareDifferenceMatcher(params).match(
            source, source, points, cancel_event=event, progress_callback=progress)
        assert len(result) == 3
        assert result.metadata['cancelled'] is True
        np.testing.assert_array_equal(result.source_points(), points[:3])

    def test_threaded_cancel_reports_only_processed_points(self, source, points, params):
        event = threading.Event()
        fractions = []

        def progress(fraction):
            fractions.append(fraction)
            if len(fractions) == 3:
                event.set()

        result = SquareDifferenceMatcher(
            dataclasses.replace(params, max_workers=4)).match(
                source, source, points, cancel_event=event,
                progress_callback=progress)
        # identical images: every processed point is matched
        assert len(fractions) == len(result)
        assert fractions[-1] == pytest.approx(len(result) / len(points))
        if result.metadata['cancelled']:
            assert fractions[-1] < 1.0

    def test_unset_event_runs_to_completion(self, source, points, params):
        result = SquareDifferenceMatcher(params).match(
            source, source, points, cancel_event=threading.Event())
        assert len(result) == len(points)
        assert result.metadata['cancelled'] is False


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

class TestLogging:

    def test_summary_logged(self, source, points, params, caplog):
        with caplog.at_level(logging.INFO, logger='blockmatch'):
            SquareDifferenceMatcher(params).match(source, source, points)
        assert 'candidate points matched' in caplog.text

    def test_warns_when_most_points_rejected(self, source, points, params, caplog):
        flat = np.full((66, 66), 0.25)
        with caplog.at_level(logging.WARNING, logger='blockmatch'):
            result = PMCCMatcher(params).match(source, flat, points)
        assert len(result) == 0
        assert 'no_maximum' in caplog.text
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_out_of_bounds_does_not_warn(self, source, params, caplog):
        pts = np.array([[1.0, 1.0], [2.0, 58.0], [30.0, 30.0]])
        with caplog.at_level(logging.WARNING, logger='blockmatch'):
            result = SquareDifferenceMatcher(params).match(source, source, pts)
        assert len(result) == 1
        assert not any(r.levelno == logging.WARNING for r in caplog.records)
