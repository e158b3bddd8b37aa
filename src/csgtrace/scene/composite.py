"""Shared behaviour for shapes built out of other shapes.

A :class:`CompositeShape` computes its bounding box from its children,
caches it until the next structural change, and refuses to recurse into
children when a ray cannot cross that box. Groups and CSG nodes derive
from it and only supply their child list and the way child hits are
combined.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy.typing as npt

from csgtrace.core.intersection import Intersection
from csgtrace.core.ray import Ray
from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import IDENTITY, Shape, ShapePredicate


class CompositeShape(Shape):
    """Base class for containers with a lazily cached AABB.

    The cache is ``None`` until first read after a structural change. A
    change anywhere below a container clears the caches of every
    ancestor, so no stale box survives a nested edit.
    """

    def __init__(self, transform: npt.ArrayLike = IDENTITY) -> None:
        super().__init__(transform)
        self._bounds: BoundingBox | None = None

    @property
    def children(self) -> Sequence[Shape]:
        """The shapes this container is made of."""
        raise NotImplementedError

    def _combine(self, ray: Ray, predicate: ShapePredicate | None) -> list[Intersection]:
        raise NotImplementedError

    # =========================================================================
    # Structure
    # =========================================================================

    def _check_attachable(self, shape: Shape, current_parent: Shape | None = None) -> None:
        # current_parent is the one container the shape may already belong to
        if shape is None:
            raise ValueError(f"cannot add None to {type(self).__name__}")
        if shape is self or shape.contains(self):
            raise ValueError(f"adding {shape!r} would create a cycle")
        parent = shape.parent
        if parent is not None and parent is not current_parent:
            raise ValueError(f"{shape!r} already belongs to {parent!r}")

    def _attach(self, shape: Shape) -> None:
        self._check_attachable(shape)
        shape._set_parent(self)

    def _invalidate_bounds(self) -> None:
        node: Shape | None = self
        while isinstance(node, CompositeShape):
            node._bounds = None
            node = node.parent

    def contains(self, shape: Shape) -> bool:
        """Check whether ``shape`` is a descendant of this container."""
        return any(child is shape or child.contains(shape) for child in self.children)

    def is_solid(self) -> bool:
        """A container is solid only if every child is solid."""
        return all(child.is_solid() for child in self.children)

    # =========================================================================
    # Bounds
    # =========================================================================

    def bounds(self) -> BoundingBox:
        """Union of every child's box, with all 8 corners moved into this frame."""
        if self._bounds is None:
            box = BoundingBox.empty()
            for child in self.children:
                box = box.union(child.parent_bounds())
            self._bounds = box
        return self._bounds

    def precompute_bounds(self) -> BoundingBox:
        for child in self.children:
            child.precompute_bounds()
        return self.bounds()

    # =========================================================================
    # Intersection
    # =========================================================================

    def local_intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        """Reject rays that miss the cached box, otherwise combine child hits."""
        if not self.children or not self.bounds().intersects(ray):
            return []
        return self._combine(ray, predicate)
