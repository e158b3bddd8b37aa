"""Intersection records and hit selection.

An :class:`Intersection` pairs a ray parameter ``t`` with the primitive
that was crossed. Every sequence produced by the intersection engine is
sorted ascending by ``t``; :func:`hit` picks the nearest crossing that
is not behind the ray origin.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from operator import attrgetter
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from csgtrace.geometry.shape import Shape

_by_t = attrgetter("t")


@dataclass(frozen=True)
class Intersection:
    """A crossing of a ray with a shape's surface.

    Attributes:
        t: The ray parameter at the crossing.
        shape: The primitive whose surface was crossed.
    """

    t: float
    shape: Shape


def sort_intersections(intersections: Iterable[Intersection]) -> list[Intersection]:
    """Return the intersections as a new list ascending by ``t``.

    The sort is stable, so crossings with equal ``t`` keep their input order.
    """
    return sorted(intersections, key=_by_t)


def is_sorted(intersections: Sequence[Intersection]) -> bool:
    """Check that a sequence of intersections is non-decreasing in ``t``."""
    return all(a.t <= b.t for a, b in zip(intersections, intersections[1:]))


def hit(intersections: Iterable[Intersection]) -> Intersection | None:
    """Select the visible intersection.

    Args:
        intersections: Candidate crossings in any order.

    Returns:
        The intersection with the smallest non-negative ``t``, or None when
        every crossing lies behind the ray origin (or there are none).
    """
    best: Intersection | None = None
    for candidate in intersections:
        if candidate.t < 0.0:
            continue
        if best is None or candidate.t < best.t:
            best = candidate
    return best
