"""Light (emissive) material implementation.

A light surface absorbs the incoming path: the integrator adds the surface's
emissive radiance and terminates. No direction is sampled and no random
numbers are consumed, so the sampler state is returned unchanged.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.materials.light import scatter_light
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_light(
    >>> #     incident_dir, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_light(incident_direction: vec3, normal: vec3, state: tm.uvec2):
    """Terminate a path at an emissive surface.

    Args:
        incident_direction: The incoming ray direction.
        normal: The surface normal at the hit point.
        state: The current sampler state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state)
        where attenuation is white and did_scatter is always 0.
    """
    scattered_direction = incident_direction
    attenuation = vec3(1.0, 1.0, 1.0)
    did_scatter = 0
    return scattered_direction, attenuation, did_scatter, state
