"""Shape composition and intersection engine for an offline ray tracer.

This package lets primitive solids be combined into hierarchical scenes,
with support for:
- Groups of shapes under a shared transform
- Constructive solid geometry (union, intersection, difference)
- Cached axis-aligned bounding boxes for culling rays
- Automatic bounding volume hierarchy construction

Subpackages:
    core: Rays, transforms, intersection records and hit selection
    geometry: Bounding boxes, the Shape capability and primitives
    scene: Groups, CSG nodes, the scene manager and Taichi bounds fields
    preview: Bounding-volume overlay images
"""

__version__ = "0.1.0"
