"""Double-napped cone around the local y axis, optionally truncated and capped.

The surface is x^2 + z^2 = y^2: two cones meeting tip to tip at the
origin, with radius |y| at height y.
"""

from __future__ import annotations

import math

import numpy.typing as npt

from csgtrace.core.intersection import Intersection, sort_intersections
from csgtrace.core.ray import EPSILON, Ray, Tuple4, vector
from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import IDENTITY, Primitive, ShapePredicate
from csgtrace.geometry.sphere import solve_quadratic_robust


class Cone(Primitive):
    """A double cone whose axis is the local y axis.

    Attributes:
        minimum: Lower y truncation (exclusive for the side wall).
        maximum: Upper y truncation (exclusive for the side wall).
        closed: Whether the truncated ends are capped with discs of
            radius |minimum| and |maximum|. Only a closed cone is solid.

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
            raise ValueError(f"cone minimum {minimum} exceeds maximum {maximum}")
        self.minimum = float(minimum)
        self.maximum = float(maximum)
        self.closed = closed
        self.solid = closed

    def local_intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        ox, oy, oz = (float(c) for c in ray.origin[:3])
        dx, dy, dz = (float(c) for c in ray.direction[:3])
        xs: list[Intersection] = []

        a = dx * dx - dy * dy + dz * dz
        h = ox * dx - oy * dy + oz * dz
        c = ox * ox - oy * oy + oz * oz
        if abs(a) < EPSILON:
            # Parallel to one nappe, the line crosses the other once
            roots = () if abs(h) < EPSILON else (-c / (2.0 * h),)
        else:
            roots = solve_quadratic_robust(a, h, c)
            if roots is None and h * h - a * c > -EPSILON * EPSILON:
                # Grazing ray whose discriminant rounded below zero
                roots = (-h / a, -h / a)
            roots = roots or ()
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
                if x * x + z * z <= cap * cap:
                    xs.append(Intersection(t, self))

        return sort_intersections(xs)

    def local_normal(self, local_point: Tuple4) -> Tuple4:
        x, y, z = (float(c) for c in local_point[:3])
        dist = x * x + z * z
        if dist < self.maximum * self.maximum and y >= self.maximum - EPSILON:
            return vector(0.0, 1.0, 0.0)
        if dist < self.minimum * self.minimum and y <= self.minimum + EPSILON:
            return vector(0.0, -1.0, 0.0)
        ny = math.sqrt(dist)
        if y > 0.0:
            ny = -ny
        return vector(x, ny, z)

    def bounds(self) -> BoundingBox:
        limit = max(abs(self.minimum), abs(self.maximum))
        return BoundingBox((-limit, self.minimum, -limit), (limit, self.maximum, limit))

    def __repr__(self) -> str:
        return f"Cone(minimum={self.minimum:g}, maximum={self.maximum:g}, closed={self.closed})"
