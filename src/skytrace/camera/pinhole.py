"""Pinhole camera model for perspective projection ray generation.

This module implements a pinhole camera that generates primary rays for
rendering. The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- A camera-to-world matrix as an alternative to look-at parameters
- Arbitrary aspect ratios
- Tent-filtered jitter for anti-aliasing

The camera is reduced, once per frame, to a CameraFrame: the eye position,
an orthonormal basis (right, up, forward) and the half-extents of the
canvas at unit distance along forward:

    canvas_u = tan(fov / 2)
    canvas_v = canvas_u * height / width

A pixel's normalized device coordinates ndc in [-1, 1]^2 map to the ray
direction normalize(ndc.x * canvas_u * right + ndc.y * canvas_v * up + forward).

The frame is handed to the render kernel as arguments, so it cannot change
while a frame is being traced.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.camera.pinhole import PinholeCamera, build_camera_frame
    >>>
    >>> camera = PinholeCamera(
    ...     lookfrom=(0.0, 0.0, 0.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     fov=60.0,
    ... )
    >>> frame = build_camera_frame(camera, 640, 480)
    >>> frame.forward
    (0.0, 0.0, -1.0)
"""

import math
from dataclasses import dataclass, replace

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from skytrace.core.sampler import rng_next, tent_filter

vec3 = tm.vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        fov: Field of view in degrees spanned by the image width.
    """

    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    fov: float = 60.0


@dataclass(frozen=True)
class CameraFrame:
    """Per-frame camera values consumed by the render kernel.

    Attributes:
        origin: Eye position.
        right: Unit vector toward the right edge of the image.
        up: Unit vector toward the top edge of the image.
        forward: Unit viewing direction.
        canvas_u: Half-width of the canvas at unit distance.
        canvas_v: Half-height of the canvas at unit distance.
    """

    origin: tuple[float, float, float]
    right: tuple[float, float, float]
    up: tuple[float, float, float]
    forward: tuple[float, float, float]
    canvas_u: float
    canvas_v: float

    @classmethod
    def from_matrix(
        cls,
        matrix: npt.ArrayLike,
        fov: float,
        width: int,
        height: int,
    ) -> "CameraFrame":
        """Build a frame from a 4x4 camera-to-world matrix.

        The columns of the matrix are the camera's right, up and backward
        axes followed by its position, so the viewing direction is the
        negated third column.

        Args:
            matrix: A 4x4 (or 3x4) camera-to-world transform.
            fov: Field of view in degrees spanned by the image width.
            width: Image width in pixels.
            height: Image height in pixels.

        Returns:
            The corresponding CameraFrame.

        Raises:
            ValueError: If the matrix has the wrong shape or the parameters
                are out of range.
        """
        m = np.asarray(matrix, dtype=np.float64)
        if m.shape not in ((4, 4), (3, 4)):
            raise ValueError(f"Camera matrix must be 4x4 or 3x4, got shape {m.shape}")
        canvas_u, canvas_v = _canvas_extent(fov, width, height)

        right = _normalized(m[:3, 0], "matrix right axis")
        up = _normalized(m[:3, 1], "matrix up axis")
        forward = _normalized(-m[:3, 2], "matrix forward axis")
        return cls(
            origin=_as_tuple(m[:3, 3]),
            right=_as_tuple(right),
            up=_as_tuple(up),
            forward=_as_tuple(forward),
            canvas_u=canvas_u,
            canvas_v=canvas_v,
        )

    def resized(self, width: int, height: int) -> "CameraFrame":
        """Return the frame adapted to another resolution.

        canvas_u depends only on the field of view, so it is kept and
        canvas_v is recomputed from the new aspect ratio.

        Raises:
            ValueError: If the dimensions are not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        return replace(self, canvas_v=self.canvas_u * height / width)


# =============================================================================
# Camera Setup (Python-side, called once per frame)
# =============================================================================


def _as_tuple(v: npt.NDArray[np.float64]) -> tuple[float, float, float]:
    return (float(v[0]), float(v[1]), float(v[2]))


def _normalized(v: npt.NDArray[np.float64], name: str) -> npt.NDArray[np.float64]:
    norm = float(np.linalg.norm(v))
    if not math.isfinite(norm) or norm < 1e-12:
        raise ValueError(f"Camera {name} is degenerate: {v.tolist()}")
    return v / norm


def _canvas_extent(fov: float, width: int, height: int) -> tuple[float, float]:
    """Compute (canvas_u, canvas_v) for a field of view and resolution."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if not (0.0 < fov < 180.0):
        raise ValueError(f"Field of view must be in (0, 180) degrees, got {fov}")
    canvas_u = math.tan(math.radians(fov) / 2.0)
    canvas_v = canvas_u * height / width
    return canvas_u, canvas_v


def build_camera_frame(camera: PinholeCamera, width: int, height: int) -> CameraFrame:
    """Reduce a look-at camera to the values used by the render kernel.

    Args:
        camera: Camera configuration with position, orientation, and FOV.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The CameraFrame for this camera and resolution.

    Raises:
        ValueError: If lookfrom equals lookat, vup is parallel to the view
            direction, or the fov or resolution is out of range.
    """
    canvas_u, canvas_v = _canvas_extent(camera.fov, width, height)

    # Build orthonormal basis using NumPy (Python-side computation)
    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    forward = _normalized(lookat - lookfrom, "view direction")
    right = _normalized(np.cross(forward, vup), "right axis (vup parallel to view?)")
    up = np.cross(right, forward)

    return CameraFrame(
        origin=_as_tuple(lookfrom),
        right=_as_tuple(right),
        up=_as_tuple(up),
        forward=_as_tuple(forward),
        canvas_u=canvas_u,
        canvas_v=canvas_v,
    )


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def camera_ray_direction(
    ndc_x: ti.f32,
    ndc_y: ti.f32,
    right: vec3,
    up: vec3,
    forward: vec3,
    canvas_u: ti.f32,
    canvas_v: ti.f32,
) -> vec3:
    """Direction of the ray through normalized device coordinates.

    Args:
        ndc_x: Horizontal coordinate in [-1, 1] (left to right).
        ndc_y: Vertical coordinate in [-1, 1] (bottom to top).
        right: Camera right axis.
        up: Camera up axis.
        forward: Camera viewing direction.
        canvas_u: Half-width of the canvas at unit distance.
        canvas_v: Half-height of the canvas at unit distance.

    Returns:
        The unit ray direction.
    """
    return tm.normalize(ndc_x * right * canvas_u + ndc_y * up * canvas_v + forward)


@ti.func
def jittered_ray_direction(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    right: vec3,
    up: vec3,
    forward: vec3,
    canvas_u: ti.f32,
    canvas_v: ti.f32,
    state: tm.uvec2,
):
    """Generate a tent-filtered ray direction for anti-aliasing.

    Offsets the pixel center by two tent-distributed amounts in (-1, 1), so
    neighbouring pixels' footprints overlap. When accumulated over multiple
    samples, this produces smooth edges.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        right: Camera right axis.
        up: Camera up axis.
        forward: Camera viewing direction.
        canvas_u: Half-width of the canvas at unit distance.
        canvas_v: Half-height of the canvas at unit distance.
        state: The current sampler state.

    Returns:
        A tuple (direction, next_state).
    """
    rx, s = rng_next(state)
    ry, s = rng_next(s)
    offset_x = tent_filter(rx)
    offset_y = tent_filter(ry)

    ndc_x = (ti.cast(pixel_i, ti.f32) + 0.5 + offset_x) / ti.cast(width, ti.f32) * 2.0 - 1.0
    ndc_y = (ti.cast(pixel_j, ti.f32) + 0.5 + offset_y) / ti.cast(height, ti.f32) * 2.0 - 1.0

    direction = camera_ray_direction(ndc_x, ndc_y, right, up, forward, canvas_u, canvas_v)
    return direction, s
