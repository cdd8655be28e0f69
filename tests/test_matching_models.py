# -*- coding: utf-8 -*-
"""
Correspondence Model Tests - Point, PointMatch, CorrespondenceSet, as_points.

Dependencies
------------
pytest

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
2026-03-06
"""

import threading

import numpy as np
import pytest

from blockmatch.exceptions import ValidationError
from blockmatch.matching.models import (
    CorrespondenceSet,
    Point,
    PointMatch,
    as_points,
)
from blockmatch.transforms import translation


# ---------------------------------------------------------------------------
# Point
# ---------------------------------------------------------------------------

class TestPoint:

    def test_world_defaults_to_local(self):
        p = Point((3.0, 4.0))
        np.testing.assert_array_equal(p.local, [3.0, 4.0])
        np.testing.assert_array_equal(p.world, [3.0, 4.0])

    def test_read_only(self):
        p = Point([1.0, 2.0])
        with pytest.raises(ValueError):
            p.local[0] = 5.0

    def test_copies_input(self):
        coords = np.array([1.0, 2.0])
        p = Point(coords)
        coords[0] = 9.0
        assert p.local[0] == 1.0

    def test_apply(self):
        p = Point((1.0, 1.0)).apply(translation(2.0, -1.0))
        np.testing.assert_array_equal(p.local, [1.0, 1.0])
        np.testing.assert_allclose(p.world, [3.0, 0.0])

    def test_bad_shape(self):
        with pytest.raises(ValidationError, match="pair"):
            Point((1.0, 2.0, 3.0))

    def test_equality_and_hash(self):
        a = Point((1.0, 2.0))
        b = Point(np.array([1, 2]))
        assert a == b
        assert hash(a) == hash(b)
        assert a != Point((1.0, 2.0), world=(0.0, 0.0))
        assert len({a, b}) == 1

    def test_repr(self):
        assert 'world' not in repr(Point((1, 2)))
        assert 'world' in repr(Point((1, 2), (3, 4)))


# ---------------------------------------------------------------------------
# PointMatch
# ---------------------------------------------------------------------------

class TestPointMatch:

    def test_displacement(self):
        m = PointMatch(Point((10.0, 10.0)), Point((12.5, 9.0)), score=0.93)
        np.testing.assert_allclose(m.displacement, [2.5, -1.0])
        assert m.score == pytest.approx(0.93)

    def test_default_score_nan(self):
        m = PointMatch(Point((0, 0)), Point((0, 0)))
        assert np.isnan(m.score)

    def test_displacement_uses_world(self):
        src = Point((0.0, 0.0), world=(5.0, 5.0))
        m = PointMatch(src, Point((6.0, 7.0)))
        np.testing.assert_allclose(m.displacement, [1.0, 2.0])


# ---------------------------------------------------------------------------
# as_points
# ---------------------------------------------------------------------------

class TestAsPoints:

    def test_array(self):
        points = as_points(np.array([[1.0, 2.0], [3.0, 4.0]]))
        assert len(points) == 2
        np.testing.assert_array_equal(points[1].local, [3.0, 4.0])

    def test_empty_array(self):
        assert as_points(np.empty((0, 2))) == []

    def test_sequence_of_pairs(self):
        points = as_points([(1, 2), [3, 4]])
        assert [tuple(p.local) for p in points] == [(1.0, 2.0), (3.0, 4.0)]

    def test_points_pass_through(self):
        p = Point((5.0, 6.0), world=(7.0, 8.0))
        assert as_points([p])[0] is p

    def test_bad_array(self):
        with pytest.raises(ValidationError, match=r"\(N, 2\)"):
            as_points(np.zeros((4, 3)))


# ---------------------------------------------------------------------------
# CorrespondenceSet
# ---------------------------------------------------------------------------

class TestCorrespondenceSet:

    @pytest.fixture
    def matches(self):
        return [
            PointMatch(Point((float(i), 0.0)), Point((float(i) + 1.0, 2.0)), score=i / 10)
            for i in range(5)
        ]

    def test_arrays(self, matches):
        cs = CorrespondenceSet(matches, metadata={'method': 'pmcc'})
        assert len(cs) == 5
        assert cs.source_points().shape == (5, 2)
        np.testing.assert_allclose(cs.displacements, np.tile([1.0, 2.0], (5, 1)))
        np.testing.assert_allclose(cs.scores, [0.0, 0.1, 0.2, 0.3, 0.4])
        assert cs[2] is matches[2]
        assert list(cs) == matches

    def test_local_vs_world(self):
        src = Point((1.0, 1.0), world=(2.0, 2.0))
        cs = CorrespondenceSet([PointMatch(src, Point((3.0, 3.0)))])
        np.testing.assert_array_equal(cs.source_points(world=False), [[1.0, 1.0]])
        np.testing.assert_array_equal(cs.source_points(), [[2.0, 2.0]])

    def test_empty(self):
        cs = CorrespondenceSet()
        assert len(cs) == 0
        assert cs.target_points().shape == (0, 2)
        assert cs.scores.shape == (0,)
        assert cs.metadata == {}

    def test_append_rejects_other_types(self):
        with pytest.raises(ValidationError, match="PointMatch"):
            CorrespondenceSet().append((1, 2))

    def test_snapshot_is_copy(self, matches):
        cs = CorrespondenceSet(matches)
        snap = cs.matches
        snap.clear()
        assert len(cs) == 5

    def test_concurrent_append(self):
        cs = CorrespondenceSet()

        def worker(offset):
            for i in range(200):
                cs.append(PointMatch(Point((offset, i)), Point((offset, i))))

        threads = [threading.Thread(target=worker, args=(k,)) for k in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cs) == 800

    def test_repr(self, matches):
        cs = CorrespondenceSet(
            matches, metadata={'method': 'pmcc', 'num_candidates': 9,
                               'cancelled': True})
        assert repr(cs) == "CorrespondenceSet(pmcc, matches=5/9, cancelled)"
