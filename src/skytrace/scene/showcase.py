"""Showcase scene configuration.

This module provides a factory function for the reference scene: five
spheres and two triangles arranged in front of a camera at the origin
looking down -z, plus a large distant sphere that acts as an optional sun.

The showcase scene consists of:
- Ground: huge yellow diffuse sphere
- Left: mirror sphere
- Center: small glass sphere
- Right: red diffuse sphere
- Back: light blue diffuse sphere further away
- Sun: large distant diffuse sphere whose emission is the sun intensity
- A single-sided yellow diffuse triangle far behind
- A double-sided reflective triangle with a purple glow

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.scene.showcase import create_showcase_scene
    >>>
    >>> scene, camera = create_showcase_scene(sun_intensity=2.0)
    >>> scene.upload()
"""

from dataclasses import dataclass

from skytrace.camera.pinhole import PinholeCamera
from skytrace.scene.builder import Material, MaterialKind, Scene


@dataclass
class ShowcaseParams:
    """Parameters for configuring the showcase scene.

    Attributes:
        sun_intensity: Emission of the sun sphere on every channel. Zero
            turns the sun into a plain white diffuse sphere.
        fov: Camera field of view in degrees.

    Example:
        >>> params = ShowcaseParams(sun_intensity=3.0)
        >>> params.fov
        60.0
    """

    sun_intensity: float = 0.0
    fov: float = 60.0


def create_showcase_materials(sun_intensity: float = 0.0) -> dict[str, Material]:
    """Create the named materials of the showcase scene.

    Args:
        sun_intensity: Emission of the sun material on every channel.

    Returns:
        A mapping from material name to Material.
    """
    return {
        "ground": Material(color=(0.8, 0.8, 0.0), kind=MaterialKind.DIFFUSE),
        "center": Material(color=(0.95, 0.95, 0.85), kind=MaterialKind.REFRACTIVE),
        "left": Material(color=(0.9, 0.9, 0.9), kind=MaterialKind.REFLECTIVE),
        "right": Material(color=(0.7, 0.3, 0.3), kind=MaterialKind.DIFFUSE),
        "back": Material(color=(0.48, 0.83, 0.93), kind=MaterialKind.DIFFUSE),
        "sun": Material(
            emissive=(sun_intensity, sun_intensity, sun_intensity),
            color=(1.0, 1.0, 1.0),
            kind=MaterialKind.DIFFUSE,
        ),
        "far_triangle": Material(color=(1.0, 1.0, 0.0), kind=MaterialKind.DIFFUSE),
        "glow_triangle": Material(
            emissive=(0.8, 0.0, 5.0),
            color=(0.7, 0.7, 0.0),
            kind=MaterialKind.REFLECTIVE,
        ),
    }


def create_showcase_scene(
    sun_intensity: float = 0.0,
    params: ShowcaseParams | None = None,
) -> tuple[Scene, PinholeCamera]:
    """Create the showcase scene with its default camera.

    The sun sphere is marked on the scene, so a ProgressiveRenderer rebinds
    its emission whenever the render config's sun intensity changes.

    Args:
        sun_intensity: Emission of the sun sphere. Ignored when params is
            given.
        params: Optional ShowcaseParams overriding the keyword arguments.

    Returns:
        A tuple of (scene, camera) where:
        - scene: The populated Scene (not yet uploaded).
        - camera: A PinholeCamera at the origin looking down -z.
    """
    if params is None:
        params = ShowcaseParams(sun_intensity=sun_intensity)

    materials = create_showcase_materials(params.sun_intensity)
    scene = Scene()

    # Spheres
    scene.add_sphere((-1.2, 0.0, -5.0), 0.5, materials["left"])
    scene.add_sphere((0.0, -0.2, -5.0), 0.3, materials["center"])
    scene.add_sphere((1.2, 0.0, -4.5), 0.5, materials["right"])
    scene.add_sphere((0.0, -100.5, -5.0), 100.0, materials["ground"])
    scene.add_sphere((1.0, 0.0, -10.0), 1.0, materials["back"])
    sun = scene.add_sphere((0.0, 0.0, -30.0), 10.0, materials["sun"])
    scene.mark_sun(sun)

    # Triangles
    scene.add_triangle(
        (-1.0, 0.0, -15.0),
        (1.0, 0.0, -15.0),
        (0.0, 2.0, -15.0),
        materials["far_triangle"],
        double_sided=False,
    )
    scene.add_triangle(
        (-3.0, 0.0, -10.0),
        (-1.0, 0.0, -10.0),
        (0.0, 2.0, -10.0),
        materials["glow_triangle"],
        double_sided=True,
    )

    camera = PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        fov=params.fov,
    )
    return scene, camera
