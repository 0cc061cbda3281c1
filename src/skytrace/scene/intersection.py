"""Scene-level primitive storage and intersection testing.

This module stores the uploaded scene in Taichi fields and provides the
scene-level ray query that returns the closest hit together with the hit
primitive's material.

Primitives own their material by value: every sphere and triangle slot
stores its own emissive color, albedo color and material kind. The fields
are written from Python between frames and are read-only while a frame
kernel runs.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.scene.intersection import (
    ...     add_sphere, add_triangle, clear_scene, intersect_scene
    ... )
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, emissive=(0, 0, 0), color=(0.7, 0.3, 0.3), kind=1)
    >>> # Use intersect_scene within a Taichi kernel
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from skytrace.geometry.sphere import Sphere, hit_sphere
from skytrace.geometry.triangle import Triangle, hit_triangle

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with the hit primitive's material, copied
    by value.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: The distance along the ray where the intersection occurred.
        point: The 3D point where the ray intersected the surface.
        normal: The unit surface normal at the intersection point.
        front_face: 1 if the ray hit the side the normal points toward.
        emissive: Radiance emitted by the hit material.
        color: Albedo / tint of the hit material.
        kind: The MaterialKind of the hit material, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    emissive: vec3
    color: vec3
    kind: ti.i32


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024
MAX_TRIANGLES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_emissive = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_kinds = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Triangle storage: Structure of Arrays layout
triangle_v0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_v1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_v2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_double_sided = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
triangle_emissive = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_kinds = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0
    num_triangles[None] = 0


def _as_list(v: Sequence[float]) -> list[float]:
    return [float(v[0]), float(v[1]), float(v[2])]


def add_sphere(
    center: Sequence[float],
    radius: float,
    emissive: Sequence[float],
    color: Sequence[float],
    kind: int,
) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        emissive: Radiance emitted by the sphere's material.
        color: Albedo / tint of the sphere's material.
        kind: MaterialKind value of the sphere's material.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = _as_list(center)
    sphere_radii[idx] = float(radius)
    sphere_emissive[idx] = _as_list(emissive)
    sphere_colors[idx] = _as_list(color)
    sphere_kinds[idx] = int(kind)
    num_spheres[None] = idx + 1
    return idx


def add_triangle(
    v0: Sequence[float],
    v1: Sequence[float],
    v2: Sequence[float],
    double_sided: bool,
    emissive: Sequence[float],
    color: Sequence[float],
    kind: int,
) -> int:
    """Add a triangle to the scene.

    Args:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
        double_sided: Whether back-face hits are accepted.
        emissive: Radiance emitted by the triangle's material.
        color: Albedo / tint of the triangle's material.
        kind: MaterialKind value of the triangle's material.

    Returns:
        The index of the added triangle.

    Raises:
        RuntimeError: If the maximum number of triangles is exceeded.
    """
    idx = num_triangles[None]
    if idx >= MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    triangle_v0[idx] = _as_list(v0)
    triangle_v1[idx] = _as_list(v1)
    triangle_v2[idx] = _as_list(v2)
    triangle_double_sided[idx] = 1 if double_sided else 0
    triangle_emissive[idx] = _as_list(emissive)
    triangle_colors[idx] = _as_list(color)
    triangle_kinds[idx] = int(kind)
    num_triangles[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_triangle_count() -> int:
    """Get the number of triangles in the scene."""
    return int(num_triangles[None])


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        emissive=vec3(0.0, 0.0, 0.0),
        color=vec3(0.0, 0.0, 0.0),
        kind=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Test ray against all primitives in the scene.

    Scans all spheres, then all triangles, keeping the closest hit. A
    later candidate replaces the current closest hit only if it is strictly
    nearer, so the first primitive found wins exact distance ties.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord containing the closest intersection, or a miss
        record if no intersection was found.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1 and (result.hit == 0 or rec.t < closest_t):
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                front_face=rec.front_face,
                emissive=sphere_emissive[i],
                color=sphere_colors[i],
                kind=sphere_kinds[i],
            )

    n_triangles = num_triangles[None]
    for i in range(n_triangles):
        tri = Triangle(
            v0=triangle_v0[i],
            v1=triangle_v1[i],
            v2=triangle_v2[i],
            double_sided=triangle_double_sided[i],
        )
        rec = hit_triangle(ray_origin, ray_direction, tri, t_min, closest_t)
        if rec.hit == 1 and (result.hit == 0 or rec.t < closest_t):
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                front_face=rec.front_face,
                emissive=triangle_emissive[i],
                color=triangle_colors[i],
                kind=triangle_kinds[i],
            )

    return result
