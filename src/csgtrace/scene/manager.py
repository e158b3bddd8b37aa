"""Scene manager coordinating assembly, BVH construction and ray queries.

The SceneManager owns a root :class:`Group` and enforces the scene
lifecycle:

- Assembly: shapes are added and removed on a single thread.
- Build: the root is divided into a BVH and every cached bounding box is
  computed, so the graph never lazily mutates during rendering.
- Query: the built graph is read-only and safe to intersect from many
  threads at once.

Example:
    >>> from csgtrace.core.ray import Ray, point, vector
    >>> from csgtrace.geometry import Sphere
    >>> scene = SceneManager(SceneConfig(divide_threshold=2))
    >>> scene.add_shape(Sphere())
    >>> scene.build()
    >>> scene.hit(Ray(point(0, 0, -5), vector(0, 0, 1))).t
    4.0
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any

from csgtrace.core.intersection import Intersection, hit
from csgtrace.core.ray import Ray
from csgtrace.geometry.shape import Shape, ShapePredicate
from csgtrace.scene.compound import CompoundOperation, CompoundShape
from csgtrace.scene.group import Group

logger = logging.getLogger(__name__)


@dataclass
class SceneConfig:
    """Configuration for scene acceleration.

    Attributes:
        divide_threshold: Groups with more children than this are split
            when the scene is built.
        precompute_bounds: Whether build() forces every cached bounding box.
            Leave enabled when the scene is queried from several threads.
        strict_csg: Whether CSG nodes created through the manager reject
            non-solid operands instead of warning.
    """

    divide_threshold: int = 4
    precompute_bounds: bool = True
    strict_csg: bool = False

    def __post_init__(self) -> None:
        if self.divide_threshold < 0:
            raise ValueError(f"divide_threshold must be non-negative, got {self.divide_threshold}")

    def to_dict(self) -> dict[str, Any]:
        """Convert the configuration to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SceneConfig:
        """Create a configuration from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


class SceneManager:
    """Owns the root group of a scene and controls its lifecycle.

    Attributes:
        config: The acceleration settings used by build().
        root: The root group; every added shape is a child of it.
    """

    def __init__(self, config: SceneConfig | None = None) -> None:
        """Initialize an empty, unbuilt scene."""
        self.config = config if config is not None else SceneConfig()
        self.root = Group()
        self._built = False

    @property
    def is_built(self) -> bool:
        return self._built

    def _require_unbuilt(self) -> None:
        if self._built:
            raise RuntimeError("scene is built and read-only; call clear() to start over")

    # =========================================================================
    # Assembly
    # =========================================================================

    def add_shape(self, shape: Shape) -> None:
        """Add a shape under the root group.

        Raises:
            RuntimeError: If the scene has already been built.
            ValueError: If the shape is None or already has a parent.
        """
        self._require_unbuilt()
        self.root.add_shape(shape)

    def remove_shape(self, shape: Shape) -> bool:
        """Remove a direct child of the root group.

        Raises:
            RuntimeError: If the scene has already been built.
        """
        self._require_unbuilt()
        return self.root.remove_shape(shape)

    def add_compound(
        self,
        operation: CompoundOperation,
        left: Shape,
        right: Shape,
    ) -> CompoundShape:
        """Build a CSG node with the configured strictness and add it to the scene."""
        self._require_unbuilt()
        node = CompoundShape(operation, left, right, strict=self.config.strict_csg)
        self.root.add_shape(node)
        return node

    def shape_count(self) -> int:
        """Get the number of direct children of the root group."""
        return len(self.root)

    def clear(self) -> None:
        """Discard every shape and return to the assembly stage."""
        for shape in self.root.children:
            self.root.remove_shape(shape)
        self._built = False

    # =========================================================================
    # Build
    # =========================================================================

    def build(self) -> Group:
        """Divide the root into a BVH and make the graph read-only.

        Returns:
            The root group.
        """
        if self._built:
            return self.root
        self.root.divide(self.config.divide_threshold)
        if self.config.precompute_bounds:
            self.root.precompute_bounds()
        self._built = True
        logger.info(
            "Built scene: %d top-level shapes, threshold %d",
            len(self.root),
            self.config.divide_threshold,
        )
        return self.root

    # =========================================================================
    # Queries
    # =========================================================================

    def intersect(self, ray: Ray, predicate: ShapePredicate | None = None) -> list[Intersection]:
        """Intersect a world-space ray with the whole scene."""
        return self.root.intersect(ray, predicate)

    def hit(self, ray: Ray, predicate: ShapePredicate | None = None) -> Intersection | None:
        """Get the visible intersection of a world-space ray, if any."""
        return hit(self.intersect(ray, predicate))
