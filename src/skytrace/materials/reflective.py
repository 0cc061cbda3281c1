"""Reflective (perfect mirror) material implementation.

A mirror reflects the incident direction about the surface normal and tints
the path by its color:

    r = d - 2 * dot(d, n) * n

No random numbers are consumed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.materials.reflective import scatter_reflective
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_reflective(
    >>> #     color, incident_dir, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from skytrace.core.ray import reflect

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_reflective(color: vec3, incident_direction: vec3, normal: vec3, state: tm.uvec2):
    """Compute the mirror reflection of a ray.

    Args:
        color: The mirror tint (RGB).
        incident_direction: The incoming ray direction (should be normalized).
        normal: The surface normal at the hit point (should be normalized).
        state: The current sampler state, returned unchanged.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state)
        where did_scatter is always 1.
    """
    scattered_direction = tm.normalize(reflect(incident_direction, normal))
    attenuation = color
    did_scatter = 1
    return scattered_direction, attenuation, did_scatter, state
