"""Groups: ordered shape containers that build their own BVH.

A :class:`Group` holds any number of child shapes under a shared
transform. Its bounding box lets a ray skip the whole subtree, and
:meth:`Group.divide` reorganizes a flat child list into nested
sub-groups so that each level of the tree culls a spatial half.

Partitioning splits along the longest side of the box enclosing the
children with finite bounds. Each such child goes left when the
midpoint of its box is strictly below the box midpoint on that axis,
right when strictly above, and stays in the group when exactly equal.
Unbounded children (planes, infinite cylinders) always stay.

Example:
    >>> from csgtrace.core.transforms import translation
    >>> from csgtrace.geometry import Sphere
    >>> group = Group()
    >>> for x in (-2.0, 2.0, 0.0):
    ...     group.add_shape(Sphere(translation(x, 0.0, 0.0)))
    >>> group.divide(1)  # one sphere stays, the outer two get sub-groups
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy.typing as npt

from csgtrace.core.intersection import Intersection, sort_intersections
from csgtrace.core.ray import Ray
from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import IDENTITY, Shape, ShapeKind, ShapePredicate
from csgtrace.scene.composite import CompositeShape

logger = logging.getLogger(__name__)


class Group(CompositeShape):
    """A mutable collection of child shapes.

    Children are stored in insertion order in a dict keyed by the shapes
    themselves (shapes compare by identity), which keeps add and remove
    O(1). :meth:`divide` may reorder them.

    Args:
        transform: The transform from group space to parent space.
        shapes: Optional initial children, added in order.
    """

    kind = ShapeKind.GROUP

    def __init__(self, transform: npt.ArrayLike = IDENTITY, shapes: Iterable[Shape] = ()) -> None:
        super().__init__(transform)
        self._children: dict[Shape, None] = {}
        for shape in shapes:
            self.add_shape(shape)

    @property
    def children(self) -> tuple[Shape, ...]:
        return tuple(self._children)

    def __len__(self) -> int:
        return len(self._children)

    # =========================================================================
    # Structure
    # =========================================================================

    def add_shape(self, shape: Shape) -> None:
        """Add a shape to the group and make the group its parent.

        Raises:
            ValueError: If ``shape`` is None, already has a parent, or is an
                ancestor of this group.
        """
        self._attach(shape)
        self._children[shape] = None
        self._invalidate_bounds()

    def remove_shape(self, shape: Shape) -> bool:
        """Remove a child and clear its parent link.

        Returns:
            True if ``shape`` was a child of this group.
        """
        if shape not in self._children:
            return False
        del self._children[shape]
        shape._set_parent(None)
        self._invalidate_bounds()
        return True

    def add_child_group(self, shapes: Iterable[Shape]) -> Group:
        """Wrap shapes in a new identity sub-group appended as one child.

        Shapes that are currently children of this group are moved into
        the sub-group. Every shape is checked before any is moved, so a
        rejected call leaves the group unchanged.

        Returns:
            The new sub-group.

        Raises:
            ValueError: If a shape is None, listed twice, belongs to another
                container, or is an ancestor of this group.
        """
        shapes = list(shapes)
        for shape in shapes:
            self._check_attachable(shape, current_parent=self)
        if len(set(shapes)) != len(shapes):
            raise ValueError("add_child_group was given the same shape twice")
        for shape in shapes:
            if shape.parent is self:
                self.remove_shape(shape)
        subgroup = Group(IDENTITY, shapes)
        self.add_shape(subgroup)
        return subgroup

    # =========================================================================
    # Intersection
    # =========================================================================

    def _combine(self, ray: Ray, predicate: ShapePredicate | None) -> list[Intersection]:
        # every child is tested, CSG filtering upstream may need the full list
        hits: list[Intersection] = []
        for child in self._children:
            if predicate is not None and not predicate(child):
                continue
            hits.extend(child.intersect(ray, predicate))
        return sort_intersections(hits)

    # =========================================================================
    # Bounding volume hierarchy
    # =========================================================================

    def _buckets(self) -> tuple[list[Shape], list[Shape]]:
        # unbounded children have no usable midpoint and never move
        bounded = [
            (child, box)
            for child, box in ((c, c.parent_bounds()) for c in self._children)
            if box.is_finite
        ]
        if len(bounded) < 2:
            return [], []
        extent = BoundingBox.empty()
        for _, box in bounded:
            extent = extent.union(box)
        axis = extent.longest_axis()
        split = extent.center[axis]
        lefts: list[Shape] = []
        rights: list[Shape] = []
        for child, box in bounded:
            mid = box.center[axis]
            if mid < split:
                lefts.append(child)
            elif mid > split:
                rights.append(child)
        return lefts, rights

    def partition(self) -> tuple[list[Shape], list[Shape]]:
        """Remove and return the children that fall on either side of the split.

        Children whose box midpoint equals the split midpoint remain in
        this group. Removed children have their parent link cleared.

        Returns:
            (left bucket, right bucket). Both are empty when fewer than two
            children have finite bounds.
        """
        lefts, rights = self._buckets()
        for shape in lefts + rights:
            self.remove_shape(shape)
        return lefts, rights

    def divide(self, threshold: int) -> Group:
        """Recursively split crowded groups into nested sub-groups.

        Only groups holding more than ``threshold`` children are split.
        Each non-empty bucket is wrapped in a new sub-group; one bucket may
        be empty. A bucket that is exactly one existing group is left in
        place rather than wrapped again, which makes a second call with the
        same threshold a no-op. Every child is then divided with the same
        threshold.

        A bucket never holds every bounded child: the child reaching the
        far end of the split axis cannot lie strictly on the near side,
        so the recursion always shrinks.

        Args:
            threshold: The largest child count left unsplit.

        Returns:
            This group.

        Raises:
            ValueError: If ``threshold`` is negative.
        """
        if threshold < 0:
            raise ValueError(f"divide threshold must be non-negative, got {threshold}")
        count = len(self._children)
        if count > threshold:
            lefts, rights = self._buckets()
            if lefts or rights:
                for bucket in (lefts, rights):
                    if not bucket:
                        continue
                    if len(bucket) == 1 and bucket[0].kind is ShapeKind.GROUP:
                        continue
                    self.add_child_group(bucket)
                logger.debug(
                    "Split %d children into buckets of %d and %d",
                    count,
                    len(lefts),
                    len(rights),
                )
        for child in self.children:
            child.divide(threshold)
        return self

    def __repr__(self) -> str:
        return f"Group(children={len(self._children)})"
