"""Preview utilities for inspecting scene graphs.

Components:
    overlay: Bounding-volume crossing-count images exported as PNG

The overlay kernels run through Taichi; call ``ti.init`` before use.
"""

from .overlay import overlay_rays, render_bounds_overlay, save_bounds_overlay

__all__ = [
    "overlay_rays",
    "render_bounds_overlay",
    "save_bounds_overlay",
]
