# -*- coding: utf-8 -*-
"""
Transform Tests - Matrix transforms, chains, and inverse-mapping resampling.

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
2026-03-03

Modified
--------
2026-03-06
"""

import numpy as np
import pytest

from blockmatch.exceptions import MatchingError, ValidationError
from blockmatch.transforms import (
    CoordinateTransform,
    MatrixTransform,
    TransformChain,
    apply_transform_to_points,
    identity,
    map_inverse_interpolated,
    similarity,
    translation,
)


class _Swap(CoordinateTransform):
    """Non-matrix transform that swaps row and col."""

    def apply(self, points):
        return np.asarray(points, dtype=np.float64)[..., ::-1]

    def apply_inverse(self, points):
        return self.apply(points)


class _Nowhere(CoordinateTransform):

    def apply(self, points):
        return np.full_like(np.asarray(points, dtype=np.float64), np.nan)

    def apply_inverse(self, points):
        return self.apply(points)


# ---------------------------------------------------------------------------
# apply_transform_to_points
# ---------------------------------------------------------------------------

class TestApplyTransformToPoints:

    def test_affine(self):
        pts = np.array([[0.0, 0.0], [10.0, 20.0]])
        M = np.array([[1.0, 0.0, 5.0], [0.0, 1.0, -3.0]])
        np.testing.assert_allclose(
            apply_transform_to_points(pts, M), [[5.0, -3.0], [15.0, 17.0]])

    def test_projective_identity(self):
        pts = np.array([[3.0, 4.0]])
        np.testing.assert_allclose(apply_transform_to_points(pts, np.eye(3)), pts)

    def test_bad_shape(self):
        with pytest.raises(ValidationError, match="Transform matrix"):
            apply_transform_to_points(np.zeros((1, 2)), np.eye(2))


# ---------------------------------------------------------------------------
# MatrixTransform
# ---------------------------------------------------------------------------

class TestMatrixTransform:

    def test_translation(self):
        t = translation(5.0, -2.0)
        np.testing.assert_allclose(t.apply(np.array([1.0, 1.0])), [6.0, -1.0])
        np.testing.assert_allclose(t.apply_inverse(np.array([6.0, -1.0])), [1.0, 1.0])

    def test_single_point_keeps_shape(self):
        assert translation(1, 1).apply(np.array([0.0, 0.0])).shape == (2,)
        assert translation(1, 1).apply(np.zeros((4, 2))).shape == (4, 2)

    def test_call(self):
        t = translation(1.0, 2.0)
        np.testing.assert_allclose(t(np.array([0.0, 0.0])), [1.0, 2.0])

    def test_similarity(self):
        t = similarity(0.5)
        np.testing.assert_allclose(t.apply(np.array([10.0, 4.0])), [5.0, 2.0])

    def test_similarity_rotation(self):
        t = similarity(2.0, rotation=np.pi / 2)
        np.testing.assert_allclose(
            t.apply(np.array([1.0, 0.0])), [0.0, 2.0], atol=1e-12)

    def test_similarity_zero_scale(self):
        with pytest.raises(ValidationError, match="non-zero"):
            similarity(0.0)

    def test_identity(self):
        pts = np.random.default_rng(42).random((5, 2)) * 100
        np.testing.assert_allclose(identity().apply(pts), pts)
        assert identity().is_affine

    def test_round_trip(self):
        rng = np.random.default_rng(42)
        t = similarity(1.3, rotation=0.2, d_row=4.0, d_col=-7.0)
        pts = rng.random((20, 2)) * 50
        np.testing.assert_allclose(t.apply_inverse(t.apply(pts)), pts, atol=1e-10)

    def test_inverse(self):
        t = translation(3.0, 4.0)
        np.testing.assert_allclose(
            t.inverse().apply(np.array([3.0, 4.0])), [0.0, 0.0])

    def test_compose_order(self):
        # scale first, then shift
        t = similarity(2.0).compose(translation(1.0, 0.0))
        assert isinstance(t, MatrixTransform)
        np.testing.assert_allclose(t.apply(np.array([3.0, 3.0])), [7.0, 6.0])

    def test_compose_non_matrix_gives_chain(self):
        t = translation(1.0, 0.0).compose(_Swap())
        assert isinstance(t, TransformChain)
        np.testing.assert_allclose(t.apply(np.array([0.0, 5.0])), [5.0, 1.0])

    def test_projective(self):
        M = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 2.0]])
        t = MatrixTransform(M)
        assert not t.is_affine
        np.testing.assert_allclose(t.apply(np.array([4.0, 6.0])), [2.0, 3.0])

    def test_matrix_read_only(self):
        t = translation(1.0, 2.0)
        with pytest.raises(ValueError):
            t.matrix[0, 0] = 5.0

    def test_singular(self):
        with pytest.raises(ValidationError, match="singular"):
            MatrixTransform(np.zeros((2, 3)))

    def test_non_finite(self):
        with pytest.raises(ValidationError, match="finite"):
            MatrixTransform(np.array([[1.0, 0.0, np.nan], [0.0, 1.0, 0.0]]))

    def test_wrong_shape(self):
        with pytest.raises(ValidationError, match="must be"):
            MatrixTransform(np.eye(4))

    def test_bad_points(self):
        with pytest.raises(ValidationError, match="shape"):
            translation(1, 1).apply(np.zeros((3, 3)))

    def test_repr(self):
        assert 'affine' in repr(translation(1.0, 2.0))


# ---------------------------------------------------------------------------
# TransformChain
# ---------------------------------------------------------------------------

class TestTransformChain:

    def test_order(self):
        chain = TransformChain([translation(1.0, 0.0), similarity(2.0)])
        np.testing.assert_allclose(chain.apply(np.array([0.0, 1.0])), [2.0, 2.0])

    def test_inverse_order(self):
        chain = TransformChain([translation(1.0, 0.0), similarity(2.0), _Swap()])
        pts = np.array([[3.0, 5.0], [-1.0, 2.5]])
        np.testing.assert_allclose(chain.apply_inverse(chain.apply(pts)), pts)
        np.testing.assert_allclose(chain.inverse().apply(chain.apply(pts)), pts)

    def test_empty_is_identity(self):
        pts = np.array([[1.0, 2.0]])
        np.testing.assert_allclose(TransformChain([]).apply(pts), pts)

    def test_flattens(self):
        inner = TransformChain([translation(1, 1), translation(2, 2)])
        outer = TransformChain([inner, translation(3, 3)])
        assert len(outer) == 3
        assert len(outer.compose(translation(0, 1))) == 4

    def test_rejects_non_transform(self):
        with pytest.raises(ValidationError, match="CoordinateTransform"):
            TransformChain([np.eye(3)])


# ---------------------------------------------------------------------------
# map_inverse_interpolated
# ---------------------------------------------------------------------------

class TestMapInverseInterpolated:

    @pytest.fixture
    def image(self):
        rng = np.random.default_rng(42)
        return rng.random((20, 30)).astype(np.float32)

    def test_identity(self, image):
        mapped, valid = map_inverse_interpolated(image, identity(), image.shape)
        np.testing.assert_allclose(mapped, image, atol=1e-6)
        assert valid.all()
        assert mapped.dtype == np.float32

    def test_integer_translation(self, image):
        mapped, valid = map_inverse_interpolated(
            image, translation(-3.0, -2.0), (26, 34))
        np.testing.assert_allclose(mapped[3:23, 2:32], image, atol=1e-6)
        assert valid[3:23, 2:32].all()
        assert not valid[:3].any()
        assert not valid[:, :2].any()
        assert not valid[23:].any()
        assert (mapped[~valid] == 0.0).all()

    def test_half_pixel(self):
        image = np.tile(np.arange(10, dtype=np.float32), (4, 1))
        mapped, valid = map_inverse_interpolated(
            image, translation(0.0, 0.5), (4, 9))
        np.testing.assert_allclose(mapped[0], np.arange(9) + 0.5, atol=1e-6)
        assert valid.all()

    def test_nan_invalidates_neighbourhood(self, image):
        image = image.copy()
        image[10, 10] = np.nan
        mapped, valid = map_inverse_interpolated(
            image, translation(0.5, 0.0), (19, 30))
        assert not valid[9, 10]
        assert not valid[10, 10]
        assert valid[5, 5]
        assert np.all(np.isfinite(mapped))

    def test_no_finite_coordinates(self, image):
        with pytest.raises(MatchingError, match="finite"):
            map_inverse_interpolated(image, _Nowhere(), (5, 5))
