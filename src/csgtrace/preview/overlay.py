"""Bounding-volume overlay images for inspecting a BVH.

The overlay looks straight down the -z axis at a scene with an
orthographic grid of rays and shades each pixel by how many bounding
volumes its ray crosses. Brighter pixels mark regions where the
hierarchy is deep or where sibling volumes overlap.

Supported formats:
    - PNG (8-bit grayscale via Pillow)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from csgtrace.preview.overlay import save_bounds_overlay
    >>> save_bounds_overlay(scene.build(), "bvh.png", width=512, height=512)
"""

from __future__ import annotations

import logging

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from csgtrace.geometry.bounds import BoundingBox
from csgtrace.geometry.shape import Shape
from csgtrace.scene.bounds_fields import BoundsFields

logger = logging.getLogger(__name__)


def overlay_rays(
    box: BoundingBox,
    width: int,
    height: int,
    margin: float = 0.05,
) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.float32]]:
    """Build an orthographic grid of rays looking down -z over ``box``.

    Args:
        box: The world-space region to cover. Must be finite and non-empty.
        width: Number of pixel columns.
        height: Number of pixel rows.
        margin: Fraction of the box size added as a border on each side.

    Returns:
        Tuple of (origins, directions), each of shape (height * width, 3),
        in row-major order with row 0 at the top (largest y).

    Raises:
        ValueError: If the box is empty or unbounded, or the image size is
            not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"overlay size must be positive, got {width}x{height}")
    if box.is_empty or not box.is_finite:
        raise ValueError(f"cannot frame an empty or unbounded box: {box}")

    (x0, y0, _), (x1, y1, z1) = box.minimum, box.maximum
    pad_x = max(x1 - x0, 1e-6) * margin
    pad_y = max(y1 - y0, 1e-6) * margin
    xs = np.linspace(x0 - pad_x, x1 + pad_x, width, dtype=np.float32)
    ys = np.linspace(y1 + pad_y, y0 - pad_y, height, dtype=np.float32)
    grid_x, grid_y = np.meshgrid(xs, ys)

    origins = np.empty((height * width, 3), dtype=np.float32)
    origins[:, 0] = grid_x.ravel()
    origins[:, 1] = grid_y.ravel()
    origins[:, 2] = z1 + 1.0
    directions = np.zeros_like(origins)
    directions[:, 2] = -1.0
    return origins, directions


def render_bounds_overlay(
    shape: Shape,
    width: int = 256,
    height: int = 256,
    *,
    include_primitives: bool = False,
) -> npt.NDArray[np.uint8]:
    """Render the bounding-volume crossing counts of a scene graph.

    Taichi must be initialized before calling.

    Args:
        shape: The root of the graph to inspect.
        width: Image width in pixels.
        height: Image height in pixels.
        include_primitives: Count primitive boxes as well as containers.

    Returns:
        A (height, width) uint8 array; 0 where no volume is crossed and
        255 where the most volumes are crossed.
    """
    fields = BoundsFields(shape, include_primitives=include_primitives)
    origins, directions = overlay_rays(shape.parent_bounds(), width, height)
    counts = fields.count_crossings(origins, directions).reshape(height, width)

    peak = int(counts.max()) if counts.size else 0
    if peak == 0:
        return np.zeros((height, width), dtype=np.uint8)
    return (counts.astype(np.float32) * (255.0 / peak)).round().astype(np.uint8)


def save_bounds_overlay(
    shape: Shape,
    filepath: str,
    width: int = 256,
    height: int = 256,
    *,
    include_primitives: bool = False,
) -> None:
    """Render a bounding-volume overlay and save it as a grayscale PNG.

    Args:
        shape: The root of the graph to inspect.
        filepath: Output file path (should end in .png).
        width: Image width in pixels.
        height: Image height in pixels.
        include_primitives: Count primitive boxes as well as containers.
    """
    image = render_bounds_overlay(
        shape, width, height, include_primitives=include_primitives
    )
    PILImage.fromarray(image).save(filepath)
    logger.info("Saved %dx%d bounds overlay to %s", width, height, filepath)
