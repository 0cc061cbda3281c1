"""Materials module for BSDF models.

This module implements the four surface responses of the path tracer:

Components:
    light: Emissive surface that terminates the path
    diffuse: Biased diffuse lobe with Russian-roulette absorption
    reflective: Perfect mirror reflection
    refractive: Dielectric with Schlick Fresnel and total internal reflection

Every scatter function shares one contract:

    scattered_direction, attenuation, did_scatter, state = scatter_*(..., state)

The sampler state is threaded through explicitly; materials that draw no
random numbers return it unchanged. The scattered ray starts at the hit
point.

All BSDF computations are implemented as Taichi functions for GPU execution.
"""

from .diffuse import PROB_DIFF, scatter_diffuse
from .light import scatter_light
from .reflective import scatter_reflective
from .refractive import fresnel_reflectance, scatter_refractive, will_reflect

__all__ = [
    "PROB_DIFF",
    "scatter_diffuse",
    "scatter_light",
    "scatter_reflective",
    "scatter_refractive",
    "fresnel_reflectance",
    "will_reflect",
]
