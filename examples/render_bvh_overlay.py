#!/usr/bin/env python3
"""Build a CSG scene, divide it into a BVH and save a bounds overlay.

The scene is a grid of capped cylinders, each with a socket carved out
of its top by a sphere, plus a scattering of loose spheres. The script
builds the scene through SceneManager, fires one test ray at it, and
writes an image where brighter pixels cross more bounding volumes.

Usage:
    python -m examples.render_bvh_overlay [options]

Options:
    --width WIDTH         Image width in pixels (default: 512)
    --height HEIGHT       Image height in pixels (default: 512)
    --grid N              Sockets per side of the grid (default: 4)
    --threshold N         Divide threshold (default: 4)
    --primitives          Count primitive boxes as well as containers
    --output OUTPUT       Output file path (default: bvh_overlay.png)
    --quiet               Suppress progress output

Example:
    python -m examples.render_bvh_overlay --grid 6 --threshold 2
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Save a bounding-volume overlay of a CSG scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=512, help="Image width in pixels (default: 512)")
    parser.add_argument("--height", type=int, default=512, help="Image height in pixels (default: 512)")
    parser.add_argument("--grid", type=int, default=4, help="Sockets per side of the grid (default: 4)")
    parser.add_argument("--threshold", type=int, default=4, help="Divide threshold (default: 4)")
    parser.add_argument(
        "--primitives",
        action="store_true",
        help="Count primitive boxes as well as containers",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="bvh_overlay.png",
        help="Output file path (default: bvh_overlay.png)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def build_socket_scene(grid: int, threshold: int):
    """Create and build a scene of carved cylinders and loose spheres.

    Args:
        grid: Number of sockets along each side of the grid.
        threshold: Divide threshold passed to the scene config.

    Returns:
        The built SceneManager.
    """
    from csgtrace.core.transforms import chain, rotation_x, scaling, translation
    from csgtrace.geometry import Cylinder, Sphere
    from csgtrace.scene import CompoundOperation, SceneConfig, SceneManager

    scene = SceneManager(SceneConfig(divide_threshold=threshold))
    spacing = 3.0
    for i in range(grid):
        for j in range(grid):
            x, y = i * spacing, j * spacing
            # axis along +z so the overlay looks down into each socket
            body = Cylinder(
                chain(rotation_x(math.pi / 2), translation(x, y, 0.0)),
                minimum=-1.0,
                maximum=1.0,
                closed=True,
            )
            ball = Sphere(chain(scaling(0.6, 0.6, 0.6), translation(x, y, 1.0)))
            scene.add_compound(CompoundOperation.DIFFERENCE, body, ball)
            if (i + j) % 2 == 0:
                scene.add_shape(Sphere(chain(scaling(0.4, 0.4, 0.4), translation(x + 1.5, y + 1.5, 0.0))))
    scene.build()
    return scene


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ti.init(arch=ti.cpu)

    from csgtrace.core.ray import Ray, point, vector
    from csgtrace.preview.overlay import save_bounds_overlay

    try:
        start_time = time.time()
        scene = build_socket_scene(args.grid, args.threshold)

        center_ray = Ray(point(0.0, 0.0, 10.0), vector(0.0, 0.0, -1.0))
        nearest = scene.hit(center_ray)
        if not args.quiet:
            if nearest is None:
                print("Center ray missed the scene")
            else:
                print(f"Center ray hit {nearest.shape!r} at t={nearest.t:.4f}")

        output_file = Path(args.output)
        save_bounds_overlay(
            scene.root,
            str(output_file),
            width=args.width,
            height=args.height,
            include_primitives=args.primitives,
        )
        if not args.quiet:
            print(f"Saved to: {output_file.absolute()}")
            print(f"Total time: {time.time() - start_time:.2f}s")
        return 0
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
