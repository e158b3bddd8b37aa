"""Flat triangle primitive using the Moller-Trumbore intersection test."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from csgtrace.core.intersection import Intersection
from csgtrace.core.ray import EPSILON, Ray, Tuple4, cross, dot, normalize
from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import IDENTITY, Primitive, ShapePredicate


class Triangle(Primitive):
    """A triangle given by three local-space points.

    Attributes:
        p1, p2, p3: The vertices (homogeneous points).
        e1, e2: Edge vectors p2 - p1 and p3 - p1.
        normal: The precomputed unit face normal.

    Raises:
        ValueError: If the vertices are colinear.
    """

    solid = False

    def __init__(
        self,
        p1: npt.ArrayLike,
        p2: npt.ArrayLike,
        p3: npt.ArrayLike,
        transform: npt.ArrayLike = IDENTITY,
    ) -> None:
        super().__init__(transform)
        self.p1 = np.asarray(p1, dtype=np.float64)
        self.p2 = np.asarray(p2, dtype=np.float64)
        self.p3 = np.asarray(p3, dtype=np.float64)
        self.e1 = self.p2 - self.p1
        self.e2 = self.p3 - self.p1
        n = cross(self.e2, self.e1)
        if float(np.linalg.norm(n)) < EPSILON:
            raise ValueError("triangle vertices are colinear")
        self.normal = normalize(n)
        self._bounds = BoundingBox.of_points((self.p1[:3], self.p2[:3], self.p3[:3]))

    def local_intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        dir_cross_e2 = cross(ray.direction, self.e2)
        det = dot(self.e1, dir_cross_e2)
        if abs(det) < EPSILON:
            return []
        f = 1.0 / det
        p1_to_origin = ray.origin - self.p1
        u = f * dot(p1_to_origin, dir_cross_e2)
        if u < 0.0 or u > 1.0:
            return []
        origin_cross_e1 = cross(p1_to_origin, self.e1)
        v = f * dot(ray.direction, origin_cross_e1)
        if v < 0.0 or u + v > 1.0:
            return []
        t = f * dot(self.e2, origin_cross_e1)
        return [Intersection(t, self)]

    def local_normal(self, local_point: Tuple4) -> Tuple4:
        return self.normal

    def bounds(self) -> BoundingBox:
        return self._bounds
