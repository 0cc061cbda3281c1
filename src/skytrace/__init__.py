"""Taichi-based Monte Carlo path tracer for small sky-lit scenes.

This package renders scenes of spheres and triangles by tracing randomly
sampled light paths on the GPU (or CPU) with Taichi, with support for:
- Diffuse, mirror, dielectric and emissive materials
- A sky gradient background and an emissive "sun" sphere
- A hash-based per-pixel sampler with explicit state threading
- Progressive rendering with accumulation across frames

Subpackages:
    core: Rays, sampler, render configuration, integrator and frame loop
    geometry: Sphere and triangle primitives with intersection routines
    materials: Per-kind scatter models (light, diffuse, reflective, refractive)
    scene: Scene building, validation, upload and scene-level intersection
    camera: Pinhole camera frames and jittered primary ray generation
    preview: Tone mapping and image export utilities
"""

__version__ = "0.1.0"
