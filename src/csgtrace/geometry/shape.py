"""The Shape capability shared by every node of a scene graph.

A shape owns an immutable local-to-parent transform and an optional,
non-owning reference to the container it was added to. Queries arrive in
the parent's frame; :meth:`Shape.intersect` moves the ray into local
space and hands it to the variant's ``local_intersect``.

Shape variants form a closed set, reported by :attr:`Shape.kind`:

    PRIMITIVE: a solid or surface with its own intersection formula
    GROUP: an ordered container of child shapes with a cached AABB
    COMPOUND: a CSG node combining exactly two operands
"""

from __future__ import annotations

import weakref
from collections.abc import Callable
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from csgtrace.core.intersection import Intersection
from csgtrace.core.ray import Ray, Tuple4, normalize, vector
from csgtrace.core.transforms import Matrix4, identity

if TYPE_CHECKING:
    from csgtrace.geometry.bounds import BoundingBox

# Decides which children of a container take part in an intersection test
ShapePredicate = Callable[["Shape"], bool]

IDENTITY = identity()
IDENTITY.flags.writeable = False


class ShapeKind(IntEnum):
    """Enumeration of shape variants.

    Used wherever scene-graph traversal needs to treat containers and
    primitives differently.
    """

    PRIMITIVE = 0
    GROUP = 1
    COMPOUND = 2


def _freeze_transform(transform: npt.ArrayLike | None) -> tuple[Matrix4, Matrix4]:
    if transform is None:
        raise ValueError("shape transform cannot be None")
    matrix = np.array(transform, dtype=np.float64)
    if matrix.shape != (4, 4):
        raise ValueError(f"shape transform must be 4x4, got shape {matrix.shape}")
    try:
        inverse = np.linalg.inv(matrix)
    except np.linalg.LinAlgError as exc:
        raise ValueError("shape transform is not invertible") from exc
    matrix.flags.writeable = False
    inverse.flags.writeable = False
    return matrix, inverse


class Shape:
    """Base class for every node in the scene graph.

    Attributes:
        kind: The variant this shape belongs to.
        transform: Read-only 4x4 matrix from local space to parent space.
        inverse: Read-only inverse of ``transform``.

    Raises:
        ValueError: If ``transform`` is None, not 4x4 or not invertible.
    """

    kind: ShapeKind = ShapeKind.PRIMITIVE

    def __init__(self, transform: npt.ArrayLike = IDENTITY) -> None:
        self.transform, self.inverse = _freeze_transform(transform)
        self._parent: weakref.ReferenceType[Shape] | None = None

    # =========================================================================
    # Scene graph links
    # =========================================================================

    @property
    def parent(self) -> Shape | None:
        """The container holding this shape, or None for a root."""
        if self._parent is None:
            return None
        return self._parent()

    def _set_parent(self, parent: Shape | None) -> None:
        self._parent = None if parent is None else weakref.ref(parent)

    def contains(self, shape: Shape) -> bool:
        """Check whether ``shape`` is this shape.

        Containers override this to search their descendants instead.
        """
        return shape is self

    def is_solid(self) -> bool:
        """Does this shape enclose a volume with no holes?"""
        raise NotImplementedError(f"{type(self).__name__} does not define is_solid")

    def divide(self, threshold: int) -> Shape:
        """Build a BVH below this shape. Primitives have nothing to divide."""
        return self

    def precompute_bounds(self) -> BoundingBox:
        """Force every lazily cached bounding box in this subtree.

        Call once after assembly and before sharing the graph between
        reader threads.
        """
        return self.bounds()

    # =========================================================================
    # Intersection
    # =========================================================================

    def intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        """Intersect a ray given in the parent's frame with this shape.

        Args:
            ray: The ray, expressed in the space this shape's transform maps into.
            predicate: Optional filter deciding which children of containers
                take part. Primitives ignore it; their container has already
                applied it to them.

        Returns:
            Crossings sorted ascending by ``t``. Empty if the ray misses.

        Raises:
            ValueError: If ``ray`` is None.
        """
        if ray is None:
            raise ValueError("ray cannot be None")
        return self.local_intersect(ray.transform(self.inverse), predicate)

    def local_intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        """Intersect a ray already expressed in this shape's local space."""
        raise NotImplementedError

    def bounds(self) -> BoundingBox:
        """This shape's AABB in its own local space."""
        raise NotImplementedError

    def parent_bounds(self) -> BoundingBox:
        """This shape's AABB re-expressed in its parent's space."""
        return self.bounds().transform(self.transform)

    # =========================================================================
    # Space conversion
    # =========================================================================

    def to_object_space(self, world_point: npt.ArrayLike) -> Tuple4:
        """Convert a world-space point into this shape's local space."""
        p = np.asarray(world_point, dtype=np.float64)
        parent = self.parent
        if parent is not None:
            p = parent.to_object_space(p)
        return self.inverse @ p

    def point_to_world_space(self, local_point: npt.ArrayLike) -> Tuple4:
        """Convert a point in this shape's local space into world space."""
        p = self.transform @ np.asarray(local_point, dtype=np.float64)
        parent = self.parent
        if parent is not None:
            return parent.point_to_world_space(p)
        return p

    def normal_to_world_space(self, local_normal: npt.ArrayLike) -> Tuple4:
        """Convert a local surface normal into a unit world-space normal."""
        n = self.inverse.T @ np.asarray(local_normal, dtype=np.float64)
        n = normalize(vector(n[0], n[1], n[2]))
        parent = self.parent
        if parent is not None:
            return parent.normal_to_world_space(n)
        return n

    def normal_at(self, world_point: npt.ArrayLike) -> Tuple4:
        """Unit surface normal at a world-space point on this shape."""
        local_point = self.to_object_space(world_point)
        return self.normal_to_world_space(self.local_normal(local_point))

    def local_normal(self, local_point: Tuple4) -> Tuple4:
        """Surface normal at a point in local space."""
        raise NotImplementedError(
            f"{type(self).__name__} does not support local_normal: it has no single surface"
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.name})"


class Primitive(Shape):
    """A shape with its own surface and intersection formula.

    Subclasses implement ``local_intersect``, ``local_normal`` and
    ``bounds`` in their local frame and set ``solid``.
    """

    kind = ShapeKind.PRIMITIVE
    solid: bool = True

    def is_solid(self) -> bool:
        return self.solid
