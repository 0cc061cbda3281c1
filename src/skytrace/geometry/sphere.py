"""Sphere primitive with ray-sphere intersection.

This module provides a Sphere dataclass, the HitRecord shared by all
primitives, and the quadratic ray-sphere intersection test.

The ray-sphere intersection is found by solving:
    |origin + t * direction - center|^2 = radius^2

which expands to a*t^2 + b*t + c = 0 with
    a = dot(direction, direction)
    b = 2 * dot(direction, oc)
    c = dot(oc, oc) - radius^2
    oc = origin - center

The near root is tried first and the far root only if the near one falls
outside [t_min, t_max]. Sphere normals always point away from the center;
front_face records whether the ray arrived from outside.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Quadratic coefficient below which the ray direction counts as degenerate
DEGENERATE_DIRECTION_EPSILON = 1e-12


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The distance parameter along the ray where the intersection
            occurred. Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point. For
            spheres it always points outward from the center; for triangles
            it follows the winding order. Only valid if hit == 1.
        front_face: 1 if dot(normal, ray_direction) < 0, i.e. the ray hit the
            side the normal points toward. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Minimum t value accepted as a hit (inclusive).
        t_max: Maximum t value accepted as a hit (inclusive).

    Returns:
        A HitRecord containing intersection information. Check hit field
        to determine if intersection occurred.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    b = 2.0 * tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = b * b - 4.0 * a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if a > DEGENERATE_DIRECTION_EPSILON and discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Near root first, far root only if the near one is out of range
        t = (-b - sqrt_d) / (2.0 * a)
        valid = t >= t_min and t <= t_max

        if not valid:
            t = (-b + sqrt_d) / (2.0 * a)
            valid = t >= t_min and t <= t_max

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction

            # Outward normal, unit length by construction
            hit_normal = (hit_point - sphere.center) / sphere.radius

            if tm.dot(hit_normal, ray_direction) < 0.0:
                is_front_face = 1

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )
