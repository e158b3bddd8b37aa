"""Scene module for shape composition and scene management.

This module builds scene graphs out of primitives:

Components:
    composite: Shared AABB caching and AABB-gated dispatch for containers
    group: Ordered shape containers with BVH construction (divide)
    compound: CSG nodes (union, intersection, difference)
    manager: Scene lifecycle (assembly, build, query) and its config
    bounds_fields: World-space bounding volumes flattened into Taichi fields

The scene module manages:
    - Parent links from children to their container
    - Lazily cached bounding boxes, invalidated on structural change
    - Median-split partitioning into nested sub-groups
    - CSG filtering of merged operand hits

Note: bounds_fields is NOT imported here so that building scene graphs
does not require an initialized Taichi runtime. Import it directly from
csgtrace.scene.bounds_fields when needed.
"""

from .composite import CompositeShape
from .compound import CompoundOperation, CompoundShape
from .group import Group
from .manager import SceneConfig, SceneManager

__all__ = [
    "CompositeShape",
    "Group",
    "CompoundOperation",
    "CompoundShape",
    "SceneConfig",
    "SceneManager",
]
