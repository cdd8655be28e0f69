# -*- coding: utf-8 -*-
"""
Correspondence Models - Points, point matches, and correspondence sets.

Defines the data exchanged between block matchers and downstream consumers
(model fitting, mesh relaxation):

- ``Point``: a location with a fixed *local* frame and a *world* frame
- ``PointMatch``: an immutable (source, target) pair with a goodness score
- ``CorrespondenceSet``: the ordered output of one matcher invocation

All coordinates are ``(row, col)``.

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
2026-03-06
"""

# Standard library
import threading
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Union,
    TYPE_CHECKING,
)

# Third-party
import numpy as np

# blockmatch internal
from blockmatch.exceptions import ValidationError

if TYPE_CHECKING:
    from blockmatch.transforms.base import CoordinateTransform


def _frozen_coords(values: Any, name: str) -> np.ndarray:
    arr = np.array(values, dtype=np.float64).reshape(-1)
    if arr.shape != (2,):
        raise ValidationError(
            f"{name} must be a (row, col) pair, got shape {np.shape(values)}"
        )
    arr.setflags(write=False)
    return arr


class Point:
    """A 2D location in a local and a world coordinate frame.

    ``world`` is ``transform(local)`` for whatever transform last placed
    the point; a freshly created point has ``world == local``.

    Parameters
    ----------
    local : array-like
        ``(row, col)`` in the point's own image.
    world : array-like, optional
        ``(row, col)`` after transformation. Defaults to ``local``.
    """

    __slots__ = ('_local', '_world')

    def __init__(self, local: Any, world: Optional[Any] = None) -> None:
        self._local = _frozen_coords(local, 'local')
        self._world = (
            self._local if world is None else _frozen_coords(world, 'world')
        )

    @property
    def local(self) -> np.ndarray:
        """Local ``(row, col)`` (read-only)."""
        return self._local

    @property
    def world(self) -> np.ndarray:
        """World ``(row, col)`` (read-only)."""
        return self._world

    def apply(self, transform: 'CoordinateTransform') -> 'Point':
        """Return a new point with ``world = transform(local)``."""
        return Point(self._local, transform.apply(self._local))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return (
            np.array_equal(self._local, other._local)
            and np.array_equal(self._world, other._world)
        )

    def __hash__(self) -> int:
        return hash((tuple(self._local), tuple(self._world)))

    def __repr__(self) -> str:
        if self._world is self._local:
            return f"Point(local=({self._local[0]:.3f}, {self._local[1]:.3f}))"
        return (
            f"Point(local=({self._local[0]:.3f}, {self._local[1]:.3f}), "
            f"world=({self._world[0]:.3f}, {self._world[1]:.3f}))"
        )


class PointMatch:
    """Immutable correspondence between a source and a target point.

    Parameters
    ----------
    source : Point
        Candidate point in the source image.
    target : Point
        Resolved location in the target frame.
    score : float
        Goodness of the match. For correlation matchers this is the
        Pearson coefficient of the accepted peak (higher is better); for
        the square-difference matcher the mean squared difference of the
        best offset (lower is better). NaN when undefined.
    """

    __slots__ = ('_source', '_target', '_score')

    def __init__(self, source: Point, target: Point, score: float = float('nan')) -> None:
        self._source = source
        self._target = target
        self._score = float(score)

    @property
    def source(self) -> Point:
        return self._source

    @property
    def target(self) -> Point:
        return self._target

    @property
    def score(self) -> float:
        return self._score

    @property
    def displacement(self) -> np.ndarray:
        """``target.world - source.world``, shape (2,)."""
        return self._target.world - self._source.world

    def __repr__(self) -> str:
        return (
            f"PointMatch({self._source!r} -> {self._target!r}, "
            f"score={self._score:.4f})"
        )


PointsLike = Union[np.ndarray, Sequence[Point], Sequence[Sequence[float]]]


def as_points(points: PointsLike) -> List[Point]:
    """Coerce candidate points to a list of ``Point``.

    Parameters
    ----------
    points : np.ndarray or sequence
        ``(N, 2)`` array of ``(row, col)``, a sequence of pairs, or a
        sequence of ``Point`` objects (returned as-is).

    Returns
    -------
    List[Point]

    Raises
    ------
    ValidationError
        If the input cannot be read as ``(N, 2)`` coordinates.
    """
    if isinstance(points, np.ndarray):
        if points.size == 0:
            return []
        if points.ndim != 2 or points.shape[1] != 2:
            raise ValidationError(
                f"Points array must have shape (N, 2), got {points.shape}"
            )
        return [Point(p) for p in points]

    result = []
    for p in points:
        result.append(p if isinstance(p, Point) else Point(p))
    return result


class CorrespondenceSet:
    """Ordered collection of point matches produced by one invocation.

    Appends are serialized with a lock so worker threads may add matches
    directly; iteration order is insertion order.

    Parameters
    ----------
    matches : Iterable[PointMatch], optional
        Initial matches.
    metadata : Dict[str, Any], optional
        Invocation metadata (method, radii, counts, cancellation).

    Attributes
    ----------
    metadata : Dict[str, Any]
    """

    def __init__(
        self,
        matches: Optional[Iterable[PointMatch]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._matches: List[PointMatch] = list(matches) if matches else []
        self._lock = threading.Lock()
        self.metadata = metadata or {}

    def append(self, match: PointMatch) -> None:
        """Add one match (thread-safe)."""
        if not isinstance(match, PointMatch):
            raise ValidationError(
                f"Expected PointMatch, got {type(match).__name__}"
            )
        with self._lock:
            self._matches.append(match)

    def extend(self, matches: Iterable[PointMatch]) -> None:
        """Add several matches in order (thread-safe)."""
        for m in matches:
            self.append(m)

    @property
    def matches(self) -> List[PointMatch]:
        """Snapshot of the matches in insertion order."""
        with self._lock:
            return list(self._matches)

    def source_points(self, world: bool = True) -> np.ndarray:
        """Source coordinates, shape (N, 2), columns (row, col)."""
        return self._coords(lambda m: m.source, world)

    def target_points(self, world: bool = True) -> np.ndarray:
        """Target coordinates, shape (N, 2), columns (row, col)."""
        return self._coords(lambda m: m.target, world)

    @property
    def scores(self) -> np.ndarray:
        """Per-match goodness scores, shape (N,)."""
        return np.array([m.score for m in self.matches], dtype=np.float64)

    @property
    def displacements(self) -> np.ndarray:
        """Per-match ``target.world - source.world``, shape (N, 2)."""
        return self.target_points() - self.source_points()

    def _coords(self, pick, world: bool) -> np.ndarray:
        matches = self.matches
        if not matches:
            return np.empty((0, 2), dtype=np.float64)
        return np.array([
            pick(m).world if world else pick(m).local for m in matches
        ])

    def __len__(self) -> int:
        return len(self._matches)

    def __iter__(self) -> Iterator[PointMatch]:
        return iter(self.matches)

    def __getitem__(self, index: int) -> PointMatch:
        return self._matches[index]

    def __repr__(self) -> str:
        method = self.metadata.get('method', 'unknown')
        total = self.metadata.get('num_candidates')
        suffix = f"/{total}" if total is not None else ''
        cancelled = ', cancelled' if self.metadata.get('cancelled') else ''
        return f"CorrespondenceSet({method}, matches={len(self)}{suffix}{cancelled})"
