"""Geometry module for shape primitives.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Sphere primitive with quadratic ray-sphere intersection
    triangle: Triangle primitive with Moller-Trumbore intersection

All intersection routines are implemented as Taichi functions (@ti.func)
for parallel intersection testing. Scenes are small, so primitives are
tested linearly without an acceleration structure.

Ray-object intersection follows the pattern:
    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere
from .triangle import (
    Triangle,
    TriangleHitRecord,
    hit_triangle,
    hit_triangle_uv,
    triangle_normal,
)

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "Triangle",
    "TriangleHitRecord",
    "hit_triangle",
    "hit_triangle_uv",
    "triangle_normal",
]
