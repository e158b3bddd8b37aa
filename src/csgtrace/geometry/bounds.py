"""Axis-aligned bounding boxes.

A :class:`BoundingBox` is expressed in the local space of the shape that
owns it. Containers use boxes to cheaply reject rays before recursing
into their children, and to partition children when building a BVH.

The slab test treats each axis as a pair of parallel planes and
intersects the parametric ranges in which the ray lies between them:

    t0 = (minimum[axis] - origin[axis]) / direction[axis]
    t1 = (maximum[axis] - origin[axis]) / direction[axis]

The ray crosses the box iff the largest entry parameter does not exceed
the smallest exit parameter.

Example:
    >>> from csgtrace.core.ray import Ray, point, vector
    >>> box = BoundingBox((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0))
    >>> box.intersects(Ray(point(0, 0, -5), vector(0, 0, 1)))
    True
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from csgtrace.core.ray import Ray

Vec3 = tuple[float, float, float]

_INF = math.inf


def _as_vec3(value: Iterable[float]) -> Vec3:
    x, y, z = (float(c) for c in list(value)[:3])
    return (x, y, z)


@dataclass(frozen=True)
class BoundingBox:
    """An axis-aligned box given by its two extreme corners.

    Attributes:
        minimum: The corner with the smallest coordinate on every axis.
        maximum: The corner with the largest coordinate on every axis.

    Boxes with zero extent on an axis (flat boxes) are valid. The single
    box whose minimum exceeds its maximum is :meth:`empty`, the envelope
    of nothing.

    Raises:
        ValueError: If any minimum coordinate exceeds the matching maximum.
    """

    minimum: Vec3
    maximum: Vec3

    def __post_init__(self) -> None:
        lo = _as_vec3(self.minimum)
        hi = _as_vec3(self.maximum)
        object.__setattr__(self, "minimum", lo)
        object.__setattr__(self, "maximum", hi)
        if lo == (_INF, _INF, _INF) and hi == (-_INF, -_INF, -_INF):
            return
        for axis in range(3):
            if not lo[axis] <= hi[axis]:
                raise ValueError(
                    f"bounding box minimum {lo} exceeds maximum {hi} on axis {axis}"
                )

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def empty(cls) -> BoundingBox:
        """The envelope of nothing; growing it by a point yields a point box."""
        return cls((_INF, _INF, _INF), (-_INF, -_INF, -_INF))

    @classmethod
    def infinite(cls) -> BoundingBox:
        """A box spanning all of space, used by unbounded primitives."""
        return cls((-_INF, -_INF, -_INF), (_INF, _INF, _INF))

    @classmethod
    def of_points(cls, points: Iterable[Iterable[float]]) -> BoundingBox:
        """Build the tightest box containing every point."""
        box = cls.empty()
        for p in points:
            box = box.grow(p)
        return box

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def is_empty(self) -> bool:
        return self.minimum[0] > self.maximum[0]

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(c) for c in self.minimum + self.maximum)

    @property
    def center(self) -> Vec3:
        """Midpoint of the box. NaN components for empty or unbounded axes."""
        return tuple((lo + hi) / 2.0 for lo, hi in zip(self.minimum, self.maximum))  # type: ignore[return-value]

    @property
    def extent(self) -> Vec3:
        """Side lengths of the box along x, y and z."""
        if self.is_empty:
            return (0.0, 0.0, 0.0)
        return tuple(hi - lo for lo, hi in zip(self.minimum, self.maximum))  # type: ignore[return-value]

    def longest_axis(self) -> int:
        """Index of the longest side; ties resolve to the lowest axis."""
        ext = self.extent
        return max(range(3), key=lambda axis: (ext[axis], -axis))

    def contains_point(self, p: Iterable[float]) -> bool:
        """Check if a point lies inside the box or on its surface."""
        x, y, z = _as_vec3(p)
        lo, hi = self.minimum, self.maximum
        return lo[0] <= x <= hi[0] and lo[1] <= y <= hi[1] and lo[2] <= z <= hi[2]

    def contains_box(self, other: BoundingBox) -> bool:
        """Check if another box fits entirely inside this one."""
        if other.is_empty:
            return True
        return self.contains_point(other.minimum) and self.contains_point(other.maximum)

    def corners(self) -> list[Vec3]:
        """The eight vertices of the box, ordered by the bits (x, y, z)."""
        lo, hi = self.minimum, self.maximum
        return [
            (hi[0] if ix else lo[0], hi[1] if iy else lo[1], hi[2] if iz else lo[2])
            for ix in (0, 1)
            for iy in (0, 1)
            for iz in (0, 1)
        ]

    # =========================================================================
    # Derived boxes
    # =========================================================================

    def grow(self, p: Iterable[float]) -> BoundingBox:
        """Return the smallest box containing this box and the point ``p``."""
        x, y, z = _as_vec3(p)
        lo, hi = self.minimum, self.maximum
        return BoundingBox(
            (min(lo[0], x), min(lo[1], y), min(lo[2], z)),
            (max(hi[0], x), max(hi[1], y), max(hi[2], z)),
        )

    def union(self, other: BoundingBox) -> BoundingBox:
        """Return the smallest box containing both boxes."""
        if other.is_empty:
            return self
        if self.is_empty:
            return other
        return self.grow(other.minimum).grow(other.maximum)

    def transform(self, matrix: npt.ArrayLike) -> BoundingBox:
        """Re-express the box in another frame.

        All eight corners are passed through ``matrix`` and a new box is
        grown around them, so rotations and shears stay enclosed.
        Unbounded boxes become :meth:`infinite` since their corners cannot
        be transformed.
        """
        if self.is_empty:
            return self
        if not self.is_finite:
            return BoundingBox.infinite()
        m = np.asarray(matrix, dtype=np.float64)
        corners = np.ones((8, 4), dtype=np.float64)
        corners[:, :3] = self.corners()
        moved = corners @ m.T
        return BoundingBox(moved[:, :3].min(axis=0), moved[:, :3].max(axis=0))

    # =========================================================================
    # Ray test
    # =========================================================================

    def intersects(self, ray: Ray) -> bool:
        """Slab test: can ``ray`` (in this box's frame) cross the box?

        The whole line is tested, not just ``t >= 0``, so the result is a
        conservative gate for intersection lists that include crossings
        behind the origin.
        """
        if self.is_empty:
            return False
        t_near = -_INF
        t_far = _INF
        for axis in range(3):
            origin = float(ray.origin[axis])
            direction = float(ray.direction[axis])
            lo = self.minimum[axis]
            hi = self.maximum[axis]
            if direction == 0.0:
                # parallel to both planes of this slab
                if origin < lo or origin > hi:
                    return False
                continue
            t0 = (lo - origin) / direction
            t1 = (hi - origin) / direction
            if t0 > t1:
                t0, t1 = t1, t0
            t_near = max(t_near, t0)
            t_far = min(t_far, t1)
            if t_near > t_far:
                return False
        return True
