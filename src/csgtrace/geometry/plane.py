"""Infinite plane primitive: the local xz plane."""

from __future__ import annotations

import math

import numpy.typing as npt

from csgtrace.core.intersection import Intersection
from csgtrace.core.ray import EPSILON, Ray, Tuple4, vector
from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import IDENTITY, Primitive, ShapePredicate

_PLANE_BOX = BoundingBox((-math.inf, 0.0, -math.inf), (math.inf, 0.0, math.inf))


class Plane(Primitive):
    """The xz plane through the local origin, facing +y.

    A plane bounds no volume, so it is not solid and cannot take part in
    CSG filtering reliably.
    """

    solid = False

    def __init__(self, transform: npt.ArrayLike = IDENTITY) -> None:
        super().__init__(transform)

    def local_intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        dy = float(ray.direction[1])
        if abs(dy) < EPSILON:
            return []
        return [Intersection(-float(ray.origin[1]) / dy, self)]

    def local_normal(self, local_point: Tuple4) -> Tuple4:
        return vector(0.0, 1.0, 0.0)

    def bounds(self) -> BoundingBox:
        return _PLANE_BOX
