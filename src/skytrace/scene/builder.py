"""Scene builder for assembling validated primitive lists.

This module provides the Python-side scene description: growable lists of
spheres and triangles, each owning its material by value. Primitives are
validated as they are added, so malformed geometry never reaches the
tracing kernels. A finished scene is copied into the Taichi primitive
fields with upload(), after which it is read-only for the frame.

The Scene maintains:
- Ordered sphere and triangle lists (append-only while building)
- Material records copied into every primitive
- An optional sun sphere whose emission follows the render config
- Scene serialization to and from plain dictionaries

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.scene.builder import Material, MaterialKind, Scene
    >>> scene = Scene()
    >>> red = Material(color=(0.7, 0.3, 0.3), kind=MaterialKind.DIFFUSE)
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material=red)
    0
    >>> scene.upload()
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any

from skytrace.scene.intersection import (
    MAX_SPHERES,
    MAX_TRIANGLES,
    add_sphere,
    add_triangle,
    clear_scene,
)

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]

# Cross-product magnitude below which a triangle counts as degenerate
DEGENERATE_TRIANGLE_EPSILON = 1e-12


class MaterialKind(IntEnum):
    """Enumeration of supported surface responses.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LIGHT = 0
    DIFFUSE = 1
    REFLECTIVE = 2
    REFRACTIVE = 3


def _as_vector3(value: Any, name: str) -> Vector3:
    """Convert a 3-sequence to a tuple of finite floats.

    Raises:
        ValueError: If the value is not three finite numbers.
    """
    try:
        x, y, z = (float(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a sequence of three numbers, got {value!r}") from exc
    if not all(math.isfinite(c) for c in (x, y, z)):
        raise ValueError(f"{name} must be finite, got {(x, y, z)}")
    return (x, y, z)


@dataclass(frozen=True)
class Material:
    """Surface material, copied by value into every primitive that uses it.

    Attributes:
        emissive: Radiance emitted by the surface (RGB). Added to the path
            whenever the surface is hit, for any kind.
        color: Albedo / tint (RGB) applied as attenuation.
        kind: The MaterialKind selecting the scattering behaviour.
    """

    emissive: Vector3 = (0.0, 0.0, 0.0)
    color: Vector3 = (1.0, 1.0, 1.0)
    kind: MaterialKind = MaterialKind.DIFFUSE

    def __post_init__(self) -> None:
        object.__setattr__(self, "emissive", _as_vector3(self.emissive, "emissive"))
        object.__setattr__(self, "color", _as_vector3(self.color, "color"))
        try:
            kind = MaterialKind(self.kind)
        except ValueError as exc:
            raise ValueError(f"Invalid material kind: {self.kind!r}") from exc
        object.__setattr__(self, "kind", kind)

    def to_dict(self) -> dict[str, Any]:
        """Export the material to a dictionary."""
        return {
            "emissive": list(self.emissive),
            "color": list(self.color),
            "kind": self.kind.name.lower(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Material":
        """Create a material from a dictionary produced by to_dict().

        The kind may be given either by name ("diffuse") or by value (1).

        Raises:
            ValueError: If the kind is unknown.
        """
        kind = data.get("kind", "diffuse")
        if isinstance(kind, str):
            try:
                kind = MaterialKind[kind.upper()]
            except KeyError as exc:
                raise ValueError(f"Unknown material kind: {kind}") from exc
        return cls(
            emissive=data.get("emissive", (0.0, 0.0, 0.0)),
            color=data.get("color", (1.0, 1.0, 1.0)),
            kind=kind,
        )


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere.
        material: The material owned by the sphere.
    """

    center: Vector3
    radius: float
    material: Material


@dataclass
class TriangleInfo:
    """Information about a triangle in the scene.

    Attributes:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
        double_sided: Whether back-face hits are accepted.
        material: The material owned by the triangle.
    """

    v0: Vector3
    v1: Vector3
    v2: Vector3
    double_sided: bool
    material: Material


def _cross(a: Vector3, b: Vector3) -> Vector3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _sub(a: Vector3, b: Vector3) -> Vector3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


@dataclass
class Scene:
    """Growable, validated collection of spheres and triangles.

    Primitives are stored in insertion order, which is also the order the
    intersection kernel scans them in (all spheres first, then all
    triangles). The scene is a plain Python object; call upload() to copy it
    into the Taichi fields read by the renderer.

    Attributes:
        spheres: List of SphereInfo for all spheres in the scene.
        triangles: List of TriangleInfo for all triangles in the scene.
        sun_index: Index of the sphere acting as the sun, or None. The
            sun's emission is rebound to the sun intensity of the render
            config each time the config changes.

    Example:
        >>> scene = Scene()
        >>> mirror = Material(color=(0.9, 0.9, 0.9), kind=MaterialKind.REFLECTIVE)
        >>> scene.add_sphere((-1.2, 0, -5), 0.5, mirror)
        0
        >>> scene.add_triangle((-1, 0, -15), (1, 0, -15), (0, 2, -15), mirror)
        0
    """

    spheres: list[SphereInfo] = field(default_factory=list)
    triangles: list[TriangleInfo] = field(default_factory=list)
    sun_index: int | None = None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(self, center: Vector3, radius: float, material: Material) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            material: The material owned by the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If the center or radius is invalid.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        center = _as_vector3(center, "center")
        try:
            radius = float(radius)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Sphere radius must be a number, got {radius!r}") from exc
        if not math.isfinite(radius) or radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive and finite, got {radius}")
        if not isinstance(material, Material):
            raise ValueError(f"material must be a Material, got {type(material).__name__}")
        if len(self.spheres) >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        self.spheres.append(SphereInfo(center=center, radius=radius, material=material))
        return len(self.spheres) - 1

    def add_triangle(
        self,
        v0: Vector3,
        v1: Vector3,
        v2: Vector3,
        material: Material,
        double_sided: bool = False,
    ) -> int:
        """Add a triangle to the scene.

        The front face is the one from which the vertices appear in
        counter-clockwise order.

        Args:
            v0: First vertex as (x, y, z).
            v1: Second vertex as (x, y, z).
            v2: Third vertex as (x, y, z).
            material: The material owned by the triangle.
            double_sided: If False, hits on the back face are culled.

        Returns:
            The index of the added triangle.

        Raises:
            ValueError: If a vertex is invalid or the vertices are collinear.
            RuntimeError: If the maximum number of triangles is exceeded.
        """
        v0 = _as_vector3(v0, "v0")
        v1 = _as_vector3(v1, "v1")
        v2 = _as_vector3(v2, "v2")
        n = _cross(_sub(v1, v0), _sub(v2, v0))
        if math.sqrt(n[0] * n[0] + n[1] * n[1] + n[2] * n[2]) < DEGENERATE_TRIANGLE_EPSILON:
            raise ValueError(f"Triangle vertices are collinear: {v0}, {v1}, {v2}")
        if not isinstance(material, Material):
            raise ValueError(f"material must be a Material, got {type(material).__name__}")
        if len(self.triangles) >= MAX_TRIANGLES:
            raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")

        self.triangles.append(
            TriangleInfo(v0=v0, v1=v1, v2=v2, double_sided=bool(double_sided), material=material)
        )
        return len(self.triangles) - 1

    def clear(self) -> None:
        """Remove all primitives from the scene."""
        self.spheres.clear()
        self.triangles.clear()
        self.sun_index = None

    # =========================================================================
    # Sun
    # =========================================================================

    def mark_sun(self, index: int) -> None:
        """Mark a sphere as the sun.

        Raises:
            ValueError: If index does not name a sphere of the scene.
        """
        if not 0 <= index < len(self.spheres):
            raise ValueError(f"Sun index {index} out of range for {len(self.spheres)} spheres")
        self.sun_index = index

    def set_sun_intensity(self, intensity: float) -> bool:
        """Set the emission of the sun sphere to intensity on every channel.

        Args:
            intensity: The new sun emission.

        Returns:
            True if the sun's material changed, False if the scene has no
            sun or it already emits this intensity.

        Raises:
            ValueError: If the intensity is not finite.
        """
        if self.sun_index is None:
            return False
        sun = self.spheres[self.sun_index]
        emissive = _as_vector3((intensity, intensity, intensity), "sun intensity")
        if sun.material.emissive == emissive:
            return False
        sun.material = replace(sun.material, emissive=emissive)
        return True

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return len(self.spheres)

    def get_triangle_count(self) -> int:
        """Get the number of triangles in the scene."""
        return len(self.triangles)

    def get_primitive_count(self) -> int:
        """Get the total number of primitives in the scene."""
        return self.get_sphere_count() + self.get_triangle_count()

    # =========================================================================
    # Upload
    # =========================================================================

    def upload(self) -> None:
        """Copy the scene into the Taichi primitive fields.

        Replaces whatever scene was uploaded before. Must not be called
        while a frame kernel is running.
        """
        clear_scene()
        for sphere in self.spheres:
            mat = sphere.material
            add_sphere(sphere.center, sphere.radius, mat.emissive, mat.color, int(mat.kind))
        for tri in self.triangles:
            mat = tri.material
            add_triangle(
                tri.v0,
                tri.v1,
                tri.v2,
                tri.double_sided,
                mat.emissive,
                mat.color,
                int(mat.kind),
            )
        logger.debug(
            "Uploaded scene: %d spheres, %d triangles",
            len(self.spheres),
            len(self.triangles),
        )

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary with 'spheres' and 'triangles' lists and the
            'sun_index'.
        """
        return {
            "sun_index": self.sun_index,
            "spheres": [
                {
                    "center": list(s.center),
                    "radius": s.radius,
                    "material": s.material.to_dict(),
                }
                for s in self.spheres
            ],
            "triangles": [
                {
                    "v0": list(t.v0),
                    "v1": list(t.v1),
                    "v2": list(t.v2),
                    "double_sided": t.double_sided,
                    "material": t.material.to_dict(),
                }
                for t in self.triangles
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scene":
        """Build a scene from a dictionary produced by to_dict().

        Args:
            data: Dictionary with 'spheres' and 'triangles' keys.

        Returns:
            A new, validated Scene.

        Raises:
            ValueError: If the dictionary contains invalid primitives.
        """
        scene = cls()
        for sphere_config in data.get("spheres", []):
            scene.add_sphere(
                sphere_config.get("center"),
                sphere_config.get("radius"),
                Material.from_dict(sphere_config.get("material", {})),
            )
        for tri_config in data.get("triangles", []):
            scene.add_triangle(
                tri_config.get("v0"),
                tri_config.get("v1"),
                tri_config.get("v2"),
                Material.from_dict(tri_config.get("material", {})),
                double_sided=tri_config.get("double_sided", False),
            )
        sun_index = data.get("sun_index")
        if sun_index is not None:
            scene.mark_sun(int(sun_index))
        return scene
