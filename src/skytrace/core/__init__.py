"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray data structure and reflection/refraction helpers
    sampler: Hash-based random numbers with explicit state threading
    config: Per-frame render parameters
    integrator: Path tracing kernel and render target
    progressive: Frame driver with staged changes and accumulation

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .config import RenderConfig, load_render_config
from .ray import (
    Ray,
    length_squared,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .sampler import (
    make_pixel_state,
    random_cos_weighted_hemisphere_direction,
    random_sphere_direction,
    rng_next,
    tent_filter,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from skytrace.core.integrator or skytrace.core.progressive when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "rng_next",
    "make_pixel_state",
    "random_sphere_direction",
    "random_cos_weighted_hemisphere_direction",
    "tent_filter",
    "RenderConfig",
    "load_render_config",
]
