"""Ray data structure and vector utilities for GPU-accelerated path tracing.

This module provides the fundamental Ray dataclass and the vector helpers
shared by the intersection routines and the material models. All operations
are designed to work within Taichi kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Intersection math
            treats the ray as origin + t * direction, so the direction does
            not have to be normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def near_zero(v: vec3, threshold: ti.f32) -> ti.i32:
    """Check if a vector is shorter than a threshold.

    Used to detect degenerate scatter directions before normalizing them.

    Args:
        v: The vector to check.
        threshold: Length below which the vector counts as zero.

    Returns:
        1 if the vector length is below the threshold, 0 otherwise.
    """
    return tm.length(v) < threshold


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes incident - 2 * dot(incident, normal) * normal. For a unit
    incident direction and unit normal the result is unit length and
    satisfies dot(result, normal) == -dot(incident, normal).

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, cos_theta: ti.f32, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface.

    Splits the refracted direction into a component perpendicular to the
    normal, eta * (incident + cos_theta * normal), and a component parallel
    to it, -sqrt(|1 - |perp|^2|) * normal. The caller is responsible for
    ruling out total internal reflection first.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal facing the incident ray (normalized).
        cos_theta: Cosine of the incident angle, dot(-incident, normal).
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector.
    """
    r_out_perp = eta * (incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices. The result is the same for a
            ratio and its reciprocal.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
