"""Flattened world-space bounding volumes in Taichi fields.

The scene graph itself is a recursive Python structure. For bulk
queries over many rays, such as the bounding-volume overlay, its boxes
are flattened once into Structure-of-Arrays Taichi fields and tested in
parallel by a kernel.

Each container contributes its cached box, moved into world space by the
product of every transform above it. Primitives can be included too.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> fields = BoundsFields(scene.build())
    >>> counts = fields.count_crossings(origins, directions)  # (n,) int32
"""

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from csgtrace.core.transforms import Matrix4, identity
from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import Shape, ShapeKind

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of bounding volumes that can be flattened
MAX_BOUNDS_NODES = 65536


@dataclass(frozen=True)
class BoundsNode:
    """A world-space bounding volume taken from the scene graph.

    Attributes:
        box: The shape's box in world space.
        depth: Distance from the flattened root (the root has depth 0).
        kind: The variant of the shape that owns the box.
    """

    box: BoundingBox
    depth: int
    kind: ShapeKind


def collect_world_bounds(root: Shape, include_primitives: bool = False) -> list[BoundsNode]:
    """Walk a scene graph and collect every box in world space.

    Args:
        root: The shape to start from. Its own transform is applied; any
            parents above it are ignored.
        include_primitives: Whether primitive boxes are collected as well
            as container boxes.

    Returns:
        Nodes in depth-first order, parents before children. Empty boxes
        (from empty groups) are skipped.
    """
    nodes: list[BoundsNode] = []
    stack: list[tuple[Shape, Matrix4, int]] = [(root, identity(), 0)]
    while stack:
        shape, parent_matrix, depth = stack.pop()
        world = parent_matrix @ shape.transform
        is_container = shape.kind is not ShapeKind.PRIMITIVE
        if is_container or include_primitives:
            box = shape.bounds().transform(world)
            if not box.is_empty:
                nodes.append(BoundsNode(box, depth, shape.kind))
        if is_container:
            for child in reversed(shape.children):
                stack.append((child, world, depth + 1))
    return nodes


@ti.func
def slab_hit(origin: vec3, direction: vec3, box_min: vec3, box_max: vec3) -> ti.i32:
    """Slab test of a whole line against an axis-aligned box.

    Args:
        origin: The ray origin.
        direction: The ray direction (need not be normalized).
        box_min: The minimum corner of the box.
        box_max: The maximum corner of the box.

    Returns:
        1 if the line crosses the box, 0 otherwise.
    """
    hit = 1
    t_near = -1e30
    t_far = 1e30
    for axis in ti.static(range(3)):
        if direction[axis] == 0.0:
            # Parallel to this slab, inside or never
            if origin[axis] < box_min[axis] or origin[axis] > box_max[axis]:
                hit = 0
        else:
            t0 = (box_min[axis] - origin[axis]) / direction[axis]
            t1 = (box_max[axis] - origin[axis]) / direction[axis]
            t_near = ti.max(t_near, ti.min(t0, t1))
            t_far = ti.min(t_far, ti.max(t0, t1))
    if t_near > t_far:
        hit = 0
    return hit


@ti.kernel
def _count_crossings(
    box_min: ti.template(),
    box_max: ti.template(),
    num_boxes: ti.i32,
    origins: ti.types.ndarray(dtype=ti.f32, ndim=2),
    directions: ti.types.ndarray(dtype=ti.f32, ndim=2),
    counts: ti.types.ndarray(dtype=ti.i32, ndim=1),
):
    for i in range(origins.shape[0]):
        origin = vec3(origins[i, 0], origins[i, 1], origins[i, 2])
        direction = vec3(directions[i, 0], directions[i, 1], directions[i, 2])
        total = 0
        for j in range(num_boxes):
            total += slab_hit(origin, direction, box_min[j], box_max[j])
        counts[i] = total


class BoundsFields:
    """World-space bounding volumes of a scene graph stored in Taichi fields.

    Taichi must be initialized before construction.

    Attributes:
        nodes: The flattened nodes in the order they are stored.
        box_min: Vector field of minimum corners.
        box_max: Vector field of maximum corners.
        box_depth: Field of node depths.

    Raises:
        RuntimeError: If the graph has more than MAX_BOUNDS_NODES volumes.
    """

    def __init__(self, root: Shape, include_primitives: bool = False) -> None:
        self.nodes = collect_world_bounds(root, include_primitives)
        if len(self.nodes) > MAX_BOUNDS_NODES:
            raise RuntimeError(f"Maximum number of bounds nodes ({MAX_BOUNDS_NODES}) exceeded")

        # Fields cannot have zero length, keep one unused slot
        capacity = max(len(self.nodes), 1)
        self.box_min = ti.Vector.field(3, dtype=ti.f32, shape=capacity)
        self.box_max = ti.Vector.field(3, dtype=ti.f32, shape=capacity)
        self.box_depth = ti.field(dtype=ti.i32, shape=capacity)
        if self.nodes:
            self.box_min.from_numpy(np.array([n.box.minimum for n in self.nodes], dtype=np.float32))
            self.box_max.from_numpy(np.array([n.box.maximum for n in self.nodes], dtype=np.float32))
            self.box_depth.from_numpy(np.array([n.depth for n in self.nodes], dtype=np.int32))
        logger.debug("Flattened %d bounding volumes (max depth %d)", len(self.nodes), self.max_depth)

    @property
    def num_nodes(self) -> int:
        return len(self.nodes)

    @property
    def max_depth(self) -> int:
        """Deepest node depth, or -1 when nothing was flattened."""
        return max((n.depth for n in self.nodes), default=-1)

    def count_crossings(self, origins: npt.ArrayLike, directions: npt.ArrayLike) -> npt.NDArray[np.int32]:
        """Count, for every ray, how many stored volumes its line crosses.

        Args:
            origins: Ray origins, shape (n, 3) or homogeneous (n, 4).
            directions: Ray directions with the same shape as ``origins``.

        Returns:
            An (n,) int32 array of crossing counts.

        Raises:
            ValueError: If the arrays are not matching (n, 3+) arrays.
        """
        o = np.asarray(origins, dtype=np.float32)
        d = np.asarray(directions, dtype=np.float32)
        if o.ndim != 2 or o.shape[1] < 3 or o.shape != d.shape:
            raise ValueError(
                f"origins and directions must be matching (n, 3) arrays, got {o.shape} and {d.shape}"
            )
        o = np.ascontiguousarray(o[:, :3])
        d = np.ascontiguousarray(d[:, :3])
        counts = np.zeros(o.shape[0], dtype=np.int32)
        if o.shape[0] > 0:
            _count_crossings(self.box_min, self.box_max, self.num_nodes, o, d, counts)
        return counts
