"""Diffuse material implementation with Russian-roulette termination.

A diffuse surface continues the path with probability PROB_DIFF. When it
continues, the new direction is the surface normal offset by a random
vector from the unit ball, which biases the lobe toward the normal:

    direction = normalize(normal + r * random_sphere_direction())

with r uniform in [0, 1). When the offset nearly cancels the normal the
direction falls back to the normal itself.

When the path is absorbed instead, the attenuation is color / PROB_DIFF,
compensating for the paths that were terminated early.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.materials.diffuse import scatter_diffuse
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_diffuse(
    >>> #     color, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from skytrace.core.ray import near_zero
from skytrace.core.sampler import random_sphere_direction, rng_next

# Type alias for 3D vectors
vec3 = tm.vec3

# Probability that a diffuse bounce continues the path
PROB_DIFF = 0.9

# Length below which the unnormalized scatter direction is degenerate
DEGENERATE_SCATTER_LENGTH = 1e-5


@ti.func
def scatter_diffuse(color: vec3, normal: vec3, state: tm.uvec2):
    """Sample a diffuse bounce or absorb the path.

    Args:
        color: The diffuse albedo (RGB).
        normal: The outward surface normal at the hit point (normalized).
        state: The current sampler state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state)
        where:
        - scattered_direction: The new unit direction (the normal when the
          path is absorbed).
        - attenuation: color when scattering, color / PROB_DIFF otherwise.
        - did_scatter: 1 if the path continues, 0 if it was absorbed.
        - state: The advanced sampler state.
    """
    roulette, s = rng_next(state)

    scattered_direction = normal
    attenuation = color / PROB_DIFF
    did_scatter = 0

    if roulette < PROB_DIFF:
        scale, s2 = rng_next(s)
        offset, s3 = random_sphere_direction(s2)
        s = s3
        candidate = normal + scale * offset
        if not near_zero(candidate, DEGENERATE_SCATTER_LENGTH):
            scattered_direction = tm.normalize(candidate)
        attenuation = color
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter, s
