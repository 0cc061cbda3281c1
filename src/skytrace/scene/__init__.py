"""Scene module for scene building and ray-scene queries.

This module handles scene representation and ray-scene queries:

Components:
    builder: Validated, growable Scene with by-value materials
    intersection: Primitive storage in Taichi fields and closest-hit queries
    showcase: The reference showcase scene

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for geometric data
    - Material values stored alongside each primitive
"""

from .builder import (
    Material,
    MaterialKind,
    Scene,
    SphereInfo,
    TriangleInfo,
)
from .intersection import (
    MAX_SPHERES,
    MAX_TRIANGLES,
    SceneHitRecord,
    add_sphere,
    add_triangle,
    clear_scene,
    get_sphere_count,
    get_triangle_count,
    intersect_scene,
)
from .showcase import ShowcaseParams, create_showcase_materials, create_showcase_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "add_triangle",
    "clear_scene",
    "get_sphere_count",
    "get_triangle_count",
    "intersect_scene",
    "MAX_SPHERES",
    "MAX_TRIANGLES",
    # Builder module
    "Scene",
    "Material",
    "MaterialKind",
    "SphereInfo",
    "TriangleInfo",
    # Showcase module
    "ShowcaseParams",
    "create_showcase_materials",
    "create_showcase_scene",
]
