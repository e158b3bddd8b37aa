"""Affine transform builders.

Every builder returns a fresh 4x4 float64 numpy matrix that maps
homogeneous points and vectors from a shape's local space into its
parent's space. Compose them with ``@`` or :func:`chain`.

Example:
    >>> from csgtrace.core.transforms import chain, rotation_y, scaling, translation
    >>> m = chain(scaling(2, 2, 2), rotation_y(0.5), translation(0, 1, 0))
    >>> # m applies the scale first and the translation last
"""

from __future__ import annotations

import math

import numpy as np
import numpy.typing as npt

Matrix4 = npt.NDArray[np.float64]


def identity() -> Matrix4:
    """Return the 4x4 identity matrix."""
    return np.eye(4, dtype=np.float64)


def translation(x: float, y: float, z: float) -> Matrix4:
    """Build a translation by (x, y, z)."""
    m = identity()
    m[0, 3] = x
    m[1, 3] = y
    m[2, 3] = z
    return m


def scaling(x: float, y: float, z: float) -> Matrix4:
    """Build a scale by (x, y, z) about the origin."""
    return np.diag([x, y, z, 1.0]).astype(np.float64)


def rotation_x(radians: float) -> Matrix4:
    """Build a right-handed rotation about the x axis."""
    c, s = math.cos(radians), math.sin(radians)
    m = identity()
    m[1, 1], m[1, 2] = c, -s
    m[2, 1], m[2, 2] = s, c
    return m


def rotation_y(radians: float) -> Matrix4:
    """Build a right-handed rotation about the y axis."""
    c, s = math.cos(radians), math.sin(radians)
    m = identity()
    m[0, 0], m[0, 2] = c, s
    m[2, 0], m[2, 2] = -s, c
    return m


def rotation_z(radians: float) -> Matrix4:
    """Build a right-handed rotation about the z axis."""
    c, s = math.cos(radians), math.sin(radians)
    m = identity()
    m[0, 0], m[0, 1] = c, -s
    m[1, 0], m[1, 1] = s, c
    return m


def shearing(xy: float, xz: float, yx: float, yz: float, zx: float, zy: float) -> Matrix4:
    """Build a shear where each component moves in proportion to the others.

    Args:
        xy: Amount x moves in proportion to y.
        xz: Amount x moves in proportion to z.
        yx: Amount y moves in proportion to x.
        yz: Amount y moves in proportion to z.
        zx: Amount z moves in proportion to x.
        zy: Amount z moves in proportion to y.
    """
    m = identity()
    m[0, 1], m[0, 2] = xy, xz
    m[1, 0], m[1, 2] = yx, yz
    m[2, 0], m[2, 1] = zx, zy
    return m


def chain(*matrices: npt.ArrayLike) -> Matrix4:
    """Compose transforms in application order.

    ``chain(a, b, c)`` returns ``c @ b @ a``: ``a`` is applied first.
    """
    result = identity()
    for m in matrices:
        result = np.asarray(m, dtype=np.float64) @ result
    return result
