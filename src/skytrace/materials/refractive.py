"""Refractive (dielectric) material implementation.

This module implements the dielectric BSDF, which models transparent
materials like glass and water with refraction and Fresnel reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when ratio * sin(theta) >= 1

The index of refraction is a per-frame uniform shared by every refractive
surface rather than a per-material property.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.materials.refractive import scatter_refractive
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_refractive(
    >>> #     color, ior, incident_dir, normal, front_face, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from skytrace.core.ray import reflect, refract, schlick_fresnel
from skytrace.core.sampler import rng_next

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def _refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio of refractive indices: 1/ior entering, ior leaving."""
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def _oriented_normal(normal: vec3, front_face: ti.i32) -> vec3:
    """Normal facing against the incident ray."""
    oriented = normal
    if front_face == 0:
        oriented = -normal
    return oriented


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    The boundary case ratio * sin(theta) == 1 counts as reflection.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (should be normalized).
        normal: The outward surface normal (should be normalized).
        front_face: 1 if the ray hits the outside of the surface,
            0 if it hits from within.

    Returns:
        1 if total internal reflection will occur, 0 otherwise.
    """
    ratio = _refraction_ratio(ior, front_face)
    n = _oriented_normal(normal, front_face)
    cos_theta = tm.min(-tm.dot(incident_direction, n), 1.0)
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    return ratio * sin_theta >= 1.0


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (should be normalized).
        normal: The outward surface normal (should be normalized).
        front_face: 1 if the ray hits the outside of the surface,
            0 if it hits from within.

    Returns:
        The reflectance probability in [0, 1].
    """
    ratio = _refraction_ratio(ior, front_face)
    n = _oriented_normal(normal, front_face)
    cos_theta = tm.min(-tm.dot(incident_direction, n), 1.0)
    return schlick_fresnel(cos_theta, ratio)


@ti.func
def scatter_refractive(
    color: vec3,
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: tm.uvec2,
):
    """Compute scattered ray direction for a refractive material.

    Reflects on total internal reflection, or when the Schlick reflectance
    exceeds a fresh uniform draw; otherwise refracts.

    Args:
        color: The transmission tint (RGB).
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (should be normalized).
        normal: The outward surface normal (should be normalized).
        front_face: 1 if the ray hits the outside of the surface,
            0 if it hits from within.
        state: The current sampler state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state)
        where did_scatter is always 1.
    """
    ratio = _refraction_ratio(ior, front_face)
    n = _oriented_normal(normal, front_face)

    cos_theta = tm.min(-tm.dot(incident_direction, n), 1.0)
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    cannot_refract = ratio * sin_theta >= 1.0

    reflectance = schlick_fresnel(cos_theta, ratio)
    r, s = rng_next(state)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or reflectance > r:
        scattered_direction = reflect(incident_direction, n)
    else:
        scattered_direction = refract(incident_direction, n, cos_theta, ratio)
    scattered_direction = tm.normalize(scattered_direction)

    attenuation = color
    did_scatter = 1
    return scattered_direction, attenuation, did_scatter, s
