"""Core building blocks shared by every shape.

Components:
    ray: Ray data structure plus homogeneous point/vector utilities
    transforms: 4x4 affine transform builders
    intersection: Intersection records and nearest-hit selection
"""

from .intersection import Intersection, hit, is_sorted, sort_intersections
from .ray import (
    EPSILON,
    Ray,
    cross,
    dot,
    is_point,
    is_vector,
    normalize,
    point,
    vector,
)
from .transforms import (
    chain,
    identity,
    rotation_x,
    rotation_y,
    rotation_z,
    scaling,
    shearing,
    translation,
)

__all__ = [
    "EPSILON",
    "Ray",
    "point",
    "vector",
    "is_point",
    "is_vector",
    "normalize",
    "dot",
    "cross",
    "identity",
    "translation",
    "scaling",
    "rotation_x",
    "rotation_y",
    "rotation_z",
    "shearing",
    "chain",
    "Intersection",
    "hit",
    "is_sorted",
    "sort_intersections",
]
