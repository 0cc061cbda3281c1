"""Pytest configuration for skytrace tests.

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


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear the uploaded scene and the render target around each test.

    This ensures tests are isolated from each other.
    """
    # Import here so that Taichi is initialized before fields are declared
    from skytrace.core.integrator import clear_render_target
    from skytrace.scene.intersection import clear_scene

    clear_scene()
    clear_render_target()

    yield

    clear_scene()
    clear_render_target()


@pytest.fixture
def white_material():
    """A plain white diffuse material."""
    from skytrace.scene.builder import Material, MaterialKind

    return Material(color=(1.0, 1.0, 1.0), kind=MaterialKind.DIFFUSE)
