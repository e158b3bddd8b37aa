"""Axis-aligned cube primitive spanning [-1, 1] on every local axis."""

from __future__ import annotations

import math

import numpy.typing as npt

from csgtrace.core.intersection import Intersection
from csgtrace.core.ray import Ray, Tuple4, vector
from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import IDENTITY, Primitive, ShapePredicate

_UNIT_BOX = BoundingBox((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0))


def check_axis(origin: float, direction: float, lo: float = -1.0, hi: float = 1.0) -> tuple[float, float]:
    """Parametric range over which a ray lies between two parallel planes.

    Args:
        origin: The ray origin component on this axis.
        direction: The ray direction component on this axis.
        lo: Position of the near plane.
        hi: Position of the far plane.

    Returns:
        (t_enter, t_exit) with t_enter <= t_exit. A ray parallel to the
        planes yields (-inf, inf) when it lies between them and
        (inf, inf) when it does not.
    """
    if direction == 0.0:
        if lo <= origin <= hi:
            return -math.inf, math.inf
        return math.inf, math.inf
    t0 = (lo - origin) / direction
    t1 = (hi - origin) / direction
    if t0 > t1:
        return t1, t0
    return t0, t1


class Cube(Primitive):
    """A solid axis-aligned cube with corners at (-1, -1, -1) and (1, 1, 1)."""

    solid = True

    def __init__(self, transform: npt.ArrayLike = IDENTITY) -> None:
        super().__init__(transform)

    def local_intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        xmin, xmax = check_axis(float(ray.origin[0]), float(ray.direction[0]))
        ymin, ymax = check_axis(float(ray.origin[1]), float(ray.direction[1]))
        zmin, zmax = check_axis(float(ray.origin[2]), float(ray.direction[2]))
        t_enter = max(xmin, ymin, zmin)
        t_exit = min(xmax, ymax, zmax)
        if t_enter > t_exit or math.isinf(t_enter) or math.isinf(t_exit):
            return []
        return [Intersection(t_enter, self), Intersection(t_exit, self)]

    def local_normal(self, local_point: Tuple4) -> Tuple4:
        x, y, z = (float(c) for c in local_point[:3])
        largest = max(abs(x), abs(y), abs(z))
        if largest == abs(x):
            return vector(x, 0.0, 0.0)
        if largest == abs(y):
            return vector(0.0, y, 0.0)
        return vector(0.0, 0.0, z)

    def bounds(self) -> BoundingBox:
        return _UNIT_BOX
