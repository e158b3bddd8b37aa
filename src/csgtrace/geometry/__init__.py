"""Geometry module: bounding boxes, the Shape capability and primitives.

Components:
    bounds: Axis-aligned bounding boxes with the ray slab test
    shape: The Shape base class, ShapeKind and Primitive
    sphere: Unit sphere with robust quadratic intersection
    cube: Axis-aligned unit cube
    cylinder: Truncatable, cappable unit cylinder
    cone: Truncatable, cappable double cone
    plane: Infinite xz plane (not solid)
    triangle: Flat triangle (not solid)

Every primitive intersects rays in its own local frame, following the
pattern:
    intersections = shape.local_intersect(local_ray)
and reports its extent in the same frame through ``bounds()``.
"""

from .bounds import BoundingBox
from .cone import Cone
from .cube import Cube
from .cylinder import Cylinder
from .plane import Plane
from .shape import IDENTITY, Primitive, Shape, ShapeKind, ShapePredicate
from .sphere import Sphere
from .triangle import Triangle

__all__ = [
    "BoundingBox",
    "Shape",
    "ShapeKind",
    "ShapePredicate",
    "Primitive",
    "IDENTITY",
    "Sphere",
    "Cube",
    "Cylinder",
    "Cone",
    "Plane",
    "Triangle",
]
