"""Unit sphere primitive with robust ray-sphere intersection.

The sphere is centered on the local origin with radius 1; position and
size come from the shape transform. Intersection uses the robust
quadratic formula from Ray Tracing Gems to avoid catastrophic
cancellation when b^2 is nearly equal to 4ac.

Example:
    >>> from csgtrace.core.ray import Ray, point, vector
    >>> from csgtrace.core.transforms import translation
    >>> sphere = Sphere(translation(0.0, 0.0, -1.0))
    >>> [x.t for x in sphere.intersect(Ray(point(0, 0, 5), vector(0, 0, -1)))]
    [5.0, 7.0]
"""

from __future__ import annotations

import math

import numpy.typing as npt

from csgtrace.core.intersection import Intersection
from csgtrace.core.ray import Ray, Tuple4, vector
from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import IDENTITY, Primitive, ShapePredicate

_UNIT_BOX = BoundingBox((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0))


def solve_quadratic_robust(a: float, h: float, c: float) -> tuple[float, float] | None:
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        a: Quadratic coefficient.
        h: Half of the linear coefficient.
        c: Constant term.

    Returns:
        Tuple of (t0, t1) where t0 <= t1, or None when there is no real root.
    """
    discriminant = h * h - a * c
    if discriminant < 0.0 or a == 0.0:
        return None
    sqrt_d = math.sqrt(discriminant)

    # q = -(h + sign(h) * sqrt(discriminant))
    q = -(h + math.copysign(sqrt_d, h))
    if abs(q) < 1e-12:
        # Tangent ray through the origin of the equation, fall back
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q
    if t0 > t1:
        t0, t1 = t1, t0
    return t0, t1


class Sphere(Primitive):
    """A solid unit sphere centered on the local origin."""

    solid = True

    def __init__(self, transform: npt.ArrayLike = IDENTITY) -> None:
        super().__init__(transform)

    def local_intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        """Intersect the unit sphere.

        With ``oc`` the ray origin relative to the center, the crossings
        solve ``|oc + t * d|^2 = 1``:

            a = dot(d, d)
            h = dot(d, oc)   (half of the traditional b)
            c = dot(oc, oc) - 1
        """
        ox, oy, oz = ray.origin[:3]
        dx, dy, dz = ray.direction[:3]
        a = dx * dx + dy * dy + dz * dz
        h = dx * ox + dy * oy + dz * oz
        c = ox * ox + oy * oy + oz * oz - 1.0
        roots = solve_quadratic_robust(a, h, c)
        if roots is None:
            return []
        t0, t1 = roots
        return [Intersection(float(t0), self), Intersection(float(t1), self)]

    def local_normal(self, local_point: Tuple4) -> Tuple4:
        return vector(local_point[0], local_point[1], local_point[2])

    def bounds(self) -> BoundingBox:
        return _UNIT_BOX
