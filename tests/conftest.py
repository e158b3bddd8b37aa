"""Pytest configuration for csgtrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture
def three_spheres():
    """Unit spheres centered at x = -2, +2 and 0, in that order."""
    from csgtrace.core.transforms import translation
    from csgtrace.geometry import Sphere

    return [
        Sphere(translation(-2.0, 0.0, 0.0)),
        Sphere(translation(2.0, 0.0, 0.0)),
        Sphere(translation(0.0, 0.0, 0.0)),
    ]
