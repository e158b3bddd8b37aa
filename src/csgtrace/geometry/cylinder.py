"""Unit-radius cylinder around the local y axis, optionally truncated and capped."""

from __future__ import annotations

import math

import numpy.typing as npt

from csgtrace.core.intersection import Intersection, sort_intersections
from csgtrace.core.ray import EPSILON, Ray, Tuple4, vector
from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import IDENTITY, Primitive, ShapePredicate
from csgtrace.geometry.sphere import solve_quadratic_robust


class Cylinder(Primitive):
    """A cylinder of radius 1 whose axis is the local y axis.

    Attributes:
        minimum: Lower y truncation (exclusive for the side wall).
        maximum: Upper y truncation (exclusive for the side wall).
        closed: Whether the truncated ends are capped. Only a closed
            cylinder encloses a volume, so only a closed cylinder is solid.

    Raises:
        ValueError: If ``minimum`` exceeds ``maximum``.
    """

    def __init__(
        self,
        transform: npt.ArrayLike = IDENTITY,
        minimum: float = -math.inf,
        maximum: float = math.inf,
        closed: bool = False,
    ) -> None:
        super().__init__(transform)
        if minimum > maximum:
            raise ValueError(f"cylinder minimum {minimum} exceeds maximum {maximum}")
        self.minimum = float(minimum)
        self.maximum = float(maximum)
        self.closed = closed
        self.solid = closed

    def local_intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        ox, oy, oz = (float(c) for c in ray.origin[:3])
        dx, dy, dz = (float(c) for c in ray.direction[:3])
        xs: list[Intersection] = []

        a = dx * dx + dz * dz
        if abs(a) >= EPSILON:
            roots = solve_quadratic_robust(a, ox * dx + oz * dz, ox * ox + oz * oz - 1.0)
            if roots is None:
                return []
            for t in roots:
                y = oy + t * dy
                if self.minimum < y < self.maximum:
                    xs.append(Intersection(t, self))

        if self.closed and abs(dy) >= EPSILON:
            for cap in (self.minimum, self.maximum):
                if math.isinf(cap):
                    continue
                t = (cap - oy) / dy
                x = ox + t * dx
                z = oz + t * dz
                if x * x + z * z <= 1.0:
                    xs.append(Intersection(t, self))

        return sort_intersections(xs)

    def local_normal(self, local_point: Tuple4) -> Tuple4:
        x, y, z = (float(c) for c in local_point[:3])
        dist = x * x + z * z
        if dist < 1.0 and y >= self.maximum - EPSILON:
            return vector(0.0, 1.0, 0.0)
        if dist < 1.0 and y <= self.minimum + EPSILON:
            return vector(0.0, -1.0, 0.0)
        return vector(x, 0.0, z)

    def bounds(self) -> BoundingBox:
        return BoundingBox((-1.0, self.minimum, -1.0), (1.0, self.maximum, 1.0))

    def __repr__(self) -> str:
        return f"Cylinder(minimum={self.minimum:g}, maximum={self.maximum:g}, closed={self.closed})"
