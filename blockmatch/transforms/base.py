# -*- coding: utf-8 -*-
"""
Coordinate Transform Base Classes - Abstract interface for point mappings.

Defines the ``CoordinateTransform`` ABC consumed by the block matchers and
``TransformChain``, which composes arbitrary transforms. A transform maps
``(row, col)`` coordinates of one frame into another; block matchers only
need forward application, inverse application, and composition.

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
2026-03-05
"""

# Standard library
from abc import ABC, abstractmethod
from typing import Iterable, List

# Third-party
import numpy as np

# blockmatch internal
from blockmatch.exceptions import ValidationError


def as_point_array(points: np.ndarray) -> np.ndarray:
    """Coerce a single ``(2,)`` point or ``(N, 2)`` points to float64.

    Parameters
    ----------
    points : np.ndarray
        Coordinates, columns ``(row, col)``.

    Returns
    -------
    np.ndarray
        Float64 array, same shape as the input.

    Raises
    ------
    ValidationError
        If the trailing dimension is not 2.
    """
    arr = np.asarray(points, dtype=np.float64)
    if arr.ndim not in (1, 2) or arr.shape[-1] != 2:
        raise ValidationError(
            f"Points must have shape (2,) or (N, 2), got {arr.shape}"
        )
    return arr


class CoordinateTransform(ABC):
    """Abstract invertible mapping of ``(row, col)`` coordinates.

    Subclasses implement ``apply`` and ``apply_inverse`` on ``(N, 2)``
    arrays. ``apply`` must also accept a single ``(2,)`` point and return
    the same shape it was given.
    """

    @abstractmethod
    def apply(self, points: np.ndarray) -> np.ndarray:
        """Map points forward.

        Parameters
        ----------
        points : np.ndarray
            Shape ``(2,)`` or ``(N, 2)``, columns ``(row, col)``.

        Returns
        -------
        np.ndarray
            Mapped points, same shape as the input.
        """
        ...

    @abstractmethod
    def apply_inverse(self, points: np.ndarray) -> np.ndarray:
        """Map points backward (inverse of ``apply``)."""
        ...

    def inverse(self) -> 'CoordinateTransform':
        """Return a transform whose ``apply`` is this ``apply_inverse``."""
        return _InverseTransform(self)

    def compose(self, other: 'CoordinateTransform') -> 'CoordinateTransform':
        """Return the transform that applies ``self`` first, then ``other``.

        Parameters
        ----------
        other : CoordinateTransform
            Transform applied after this one.

        Returns
        -------
        CoordinateTransform
        """
        return TransformChain([self, other])

    def __call__(self, points: np.ndarray) -> np.ndarray:
        return self.apply(points)


class _InverseTransform(CoordinateTransform):

    def __init__(self, transform: CoordinateTransform) -> None:
        self._transform = transform

    def apply(self, points: np.ndarray) -> np.ndarray:
        return self._transform.apply_inverse(points)

    def apply_inverse(self, points: np.ndarray) -> np.ndarray:
        return self._transform.apply(points)

    def inverse(self) -> CoordinateTransform:
        return self._transform

    def __repr__(self) -> str:
        return f"Inverse({self._transform!r})"


class TransformChain(CoordinateTransform):
    """Ordered sequence of transforms applied one after another.

    ``TransformChain([a, b, c]).apply(p)`` equals ``c(b(a(p)))``; the
    inverse applies the inverses in reverse order. Nested chains are
    flattened.

    Parameters
    ----------
    transforms : Iterable[CoordinateTransform]
        Transforms in application order. May be empty (identity).

    Examples
    --------
    >>> from blockmatch.transforms import TransformChain, translation
    >>> chain = TransformChain([translation(-5, -5), approximate])
    >>> chain.apply(np.array([10.0, 10.0]))
    """

    def __init__(self, transforms: Iterable[CoordinateTransform]) -> None:
        flat: List[CoordinateTransform] = []
        for t in transforms:
            if not isinstance(t, CoordinateTransform):
                raise ValidationError(
                    f"TransformChain members must be CoordinateTransform, "
                    f"got {type(t).__name__}"
                )
            if isinstance(t, TransformChain):
                flat.extend(t.transforms)
            else:
                flat.append(t)
        self._transforms = tuple(flat)

    @property
    def transforms(self) -> tuple:
        """Member transforms in application order."""
        return self._transforms

    def apply(self, points: np.ndarray) -> np.ndarray:
        result = as_point_array(points)
        for t in self._transforms:
            result = t.apply(result)
        return result

    def apply_inverse(self, points: np.ndarray) -> np.ndarray:
        result = as_point_array(points)
        for t in reversed(self._transforms):
            result = t.apply_inverse(result)
        return result

    def compose(self, other: CoordinateTransform) -> CoordinateTransform:
        return TransformChain([*self._transforms, other])

    def __len__(self) -> int:
        return len(self._transforms)

    def __repr__(self) -> str:
        inner = ', '.join(repr(t) for t in self._transforms)
        return f"TransformChain([{inner}])"
