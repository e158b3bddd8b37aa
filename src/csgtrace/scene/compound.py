"""Constructive solid geometry: combining two solids with a boolean rule.

A :class:`CompoundShape` intersects both operands, merges their hits
into one list ordered by ``t`` and sweeps along it tracking whether the
ray is currently inside the left operand and inside the right operand.
Each crossing is kept or dropped by its :class:`CompoundOperation`,
evaluated with the inside flags as they were *before* the crossing.

The sweep assumes every operand produces surface crossings in
entry/exit pairs, which only holds for solids. Operands are therefore
checked with ``is_solid()`` when the node is built.

Example:
    >>> from csgtrace.geometry import Cube, Sphere
    >>> socket = CompoundShape(CompoundOperation.DIFFERENCE, Cube(), Sphere())
"""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterator
from enum import Enum

import numpy.typing as npt

from csgtrace.core.intersection import Intersection
from csgtrace.core.ray import Ray
from csgtrace.geometry.shape import IDENTITY, Shape, ShapeKind, ShapePredicate
from csgtrace.scene.composite import CompositeShape

logger = logging.getLogger(__name__)


class CompoundOperation(Enum):
    """Boolean rules for combining the surfaces of two solids.

    UNION keeps crossings that are not inside the other operand.
    INTERSECTION keeps crossings that are inside the other operand.
    DIFFERENCE keeps left crossings outside the right operand and right
    crossings inside the left operand, carving the right solid out of
    the left one.
    """

    UNION = "union"
    INTERSECTION = "intersection"
    DIFFERENCE = "difference"

    def is_intersection_valid(self, is_left_hit: bool, in_left: bool, in_right: bool) -> bool:
        """Decide whether a crossing survives this operation.

        Args:
            is_left_hit: True if the crossing is on the left operand's surface.
            in_left: Whether the ray is inside the left operand before the crossing.
            in_right: Whether the ray is inside the right operand before the crossing.

        Returns:
            True if the crossing belongs to the combined surface.
        """
        if self is CompoundOperation.UNION:
            return (is_left_hit and not in_right) or (not is_left_hit and not in_left)
        if self is CompoundOperation.INTERSECTION:
            return (is_left_hit and in_right) or (not is_left_hit and in_left)
        return (is_left_hit and not in_right) or (not is_left_hit and in_left)


def _tagged(hits: list[Intersection], is_left: bool) -> Iterator[tuple[float, bool, Intersection]]:
    # left sorts before right on equal t
    for x in hits:
        yield x.t, not is_left, x


class CompoundShape(CompositeShape):
    """A CSG node combining exactly two operands.

    Both operands become children of this node. The node caches the union
    of the operand boxes like any composite, so a ray that misses both
    operands is rejected without recursing.

    Args:
        operation: The boolean rule combining the operands.
        left: The left operand.
        right: The right operand.
        transform: The transform from node space to parent space.
        strict: Raise instead of warning when an operand is not solid.

    Raises:
        ValueError: If an argument is None, both operands are the same
            shape, an operand already has a parent, or ``strict`` is set and
            an operand is not solid.
    """

    kind = ShapeKind.COMPOUND

    def __init__(
        self,
        operation: CompoundOperation,
        left: Shape,
        right: Shape,
        transform: npt.ArrayLike = IDENTITY,
        *,
        strict: bool = False,
    ) -> None:
        super().__init__(transform)
        if operation is None:
            raise ValueError("compound operation cannot be None")
        if left is None or right is None:
            raise ValueError("compound operands cannot be None")
        if left is right:
            raise ValueError("compound operands must be distinct shapes")
        self.operation = CompoundOperation(operation)
        self._attach(left)
        try:
            self._attach(right)
        except ValueError:
            left._set_parent(None)
            raise
        self.left = left
        self.right = right
        if not self.is_solid():
            message = (
                f"{self.operation.name} node has a non-solid operand, "
                "intersections against it may be wrong"
            )
            if strict:
                left._set_parent(None)
                right._set_parent(None)
                raise ValueError(message)
            logger.warning(message)

    @property
    def children(self) -> tuple[Shape, Shape]:
        return (self.left, self.right)

    def _combine(self, ray: Ray, predicate: ShapePredicate | None) -> list[Intersection]:
        # operands are always intersected in full, filtering needs every crossing
        left_hits = self.left.intersect(ray)
        right_hits = self.right.intersect(ray)
        if not left_hits and not right_hits:
            return []
        merged = heapq.merge(_tagged(left_hits, True), _tagged(right_hits, False))
        return self.filter(merged)

    def filter(self, merged: Iterator[tuple[float, bool, Intersection]]) -> list[Intersection]:
        """Sweep tagged crossings in ``t`` order and keep the valid ones.

        Args:
            merged: ``(t, is_right, intersection)`` triples ascending by ``t``.

        Returns:
            The surviving intersections, still ascending by ``t``.
        """
        in_left = False
        in_right = False
        kept: list[Intersection] = []
        for _, is_right, intersection in merged:
            is_left_hit = not is_right
            if self.operation.is_intersection_valid(is_left_hit, in_left, in_right):
                kept.append(intersection)
            if is_left_hit:
                in_left = not in_left
            else:
                in_right = not in_right
        return kept

    def divide(self, threshold: int) -> CompoundShape:
        """Divide both operands; the node itself always keeps two children."""
        self.left.divide(threshold)
        self.right.divide(threshold)
        return self

    def __repr__(self) -> str:
        return f"CompoundShape({self.operation.name}, left={self.left!r}, right={self.right!r})"
