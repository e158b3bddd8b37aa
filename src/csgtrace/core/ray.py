"""Ray data structure and homogeneous point/vector utilities.

Points and vectors are 4-component numpy arrays in homogeneous
coordinates: points carry ``w == 1`` and vectors carry ``w == 0``, so a
single 4x4 affine matrix moves points and leaves vectors untranslated.

Example:
    >>> from csgtrace.core.ray import Ray, point, vector
    >>> ray = Ray(point(0.0, 0.0, -5.0), vector(0.0, 0.0, 1.0))
    >>> ray.position(5.0)  # the origin
    array([0., 0., 0., 1.])
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

# Tolerance used for float comparisons across the package
EPSILON = 1e-5

Tuple4 = npt.NDArray[np.float64]


def point(x: float, y: float, z: float) -> Tuple4:
    """Create a homogeneous point (w = 1)."""
    return np.array([x, y, z, 1.0], dtype=np.float64)


def vector(x: float, y: float, z: float) -> Tuple4:
    """Create a homogeneous vector (w = 0)."""
    return np.array([x, y, z, 0.0], dtype=np.float64)


def is_point(value: npt.ArrayLike) -> bool:
    """Check whether ``value`` is a 4-component homogeneous point."""
    arr = np.asarray(value, dtype=np.float64)
    return arr.shape == (4,) and math.isclose(arr[3], 1.0, abs_tol=EPSILON)


def is_vector(value: npt.ArrayLike) -> bool:
    """Check whether ``value`` is a 4-component homogeneous vector."""
    arr = np.asarray(value, dtype=np.float64)
    return arr.shape == (4,) and math.isclose(arr[3], 0.0, abs_tol=EPSILON)


def normalize(v: Tuple4) -> Tuple4:
    """Normalize the xyz part of a vector, returning a w = 0 vector.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as ``v``. A zero-length
        input is returned unchanged.
    """
    result = np.array([v[0], v[1], v[2], 0.0], dtype=np.float64)
    length = float(np.linalg.norm(result))
    if length == 0.0:
        return result
    return result / length


def dot(a: Tuple4, b: Tuple4) -> float:
    """Dot product of the xyz parts of two tuples."""
    return float(a[0] * b[0] + a[1] * b[1] + a[2] * b[2])


def cross(a: Tuple4, b: Tuple4) -> Tuple4:
    """Cross product of two vectors."""
    return vector(
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


@dataclass(frozen=True, eq=False)
class Ray:
    """A ray with an origin point, a direction vector and an exposure time.

    Attributes:
        origin: The starting point of the ray (homogeneous point).
        direction: The direction of the ray (homogeneous vector). It is not
            normalized so that ``t`` values survive transformation into a
            shape's local space unchanged.
        time: The moment within the camera exposure that the ray samples.
            The intersection engine never inspects it; it is carried along
            for collaborators that do.

    Raises:
        ValueError: If the origin is not a point or the direction is not a
            vector.
    """

    origin: Tuple4
    direction: Tuple4
    time: float = 0.0

    def __post_init__(self) -> None:
        if self.origin is None or not is_point(self.origin):
            raise ValueError(f"ray origin must be a point, got {self.origin!r}")
        if self.direction is None or not is_vector(self.direction):
            raise ValueError(f"ray direction must be a vector, got {self.direction!r}")
        origin = np.array(self.origin, dtype=np.float64)
        direction = np.array(self.direction, dtype=np.float64)
        origin.flags.writeable = False
        direction.flags.writeable = False
        object.__setattr__(self, "origin", origin)
        object.__setattr__(self, "direction", direction)

    def position(self, t: float) -> Tuple4:
        """Compute the point along the ray at parameter t.

        Args:
            t: The parameter value. Positive values are in front of the origin.

        Returns:
            The point ``origin + t * direction``.
        """
        return self.origin + t * self.direction

    def transform(self, matrix: npt.ArrayLike) -> Ray:
        """Return a new ray with origin and direction multiplied by ``matrix``.

        The exposure time is copied unchanged.
        """
        m = np.asarray(matrix, dtype=np.float64)
        return Ray(m @ self.origin, m @ self.direction, self.time)

    def __repr__(self) -> str:
        o = self.origin
        d = self.direction
        return (
            f"Ray(origin=({o[0]:g}, {o[1]:g}, {o[2]:g}), "
            f"direction=({d[0]:g}, {d[1]:g}, {d[2]:g}), time={self.time:g})"
        )
