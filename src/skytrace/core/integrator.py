"""Path tracing integrator for Monte Carlo light transport.

This module implements the main rendering kernel: a bounded path tracer
with material-based scattering, a sky gradient for escaping rays, per-pixel
sampler seeding and optional running-average accumulation across frames.

A path is traced from the camera through the scene, bouncing off surfaces
according to their material kind. Along the way two quantities are
gathered: the sum of the emissive colors of every surface hit (plus the sky
if the path escapes) and the product of every attenuation. The path's
radiance is their componentwise product. A path that is still bouncing when
the recursion budget runs out contributes black.

Everything that is constant for a frame (the render config, the camera
frame and the seed pair) is passed to the frame kernel as arguments, so it
cannot change while the frame is traced.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.core.config import RenderConfig
    >>> from skytrace.core.integrator import render_frame, setup_render_target
    >>> from skytrace.camera.pinhole import build_camera_frame
    >>> from skytrace.scene.showcase import create_showcase_scene
    >>>
    >>> scene, camera = create_showcase_scene()
    >>> scene.upload()
    >>> setup_render_target(320, 240)
    >>> frame = build_camera_frame(camera, 320, 240)
    >>> render_frame(RenderConfig(spp=16), frame, seed_pair=(1234, 5678))
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from skytrace.camera.pinhole import CameraFrame, jittered_ray_direction
from skytrace.core.config import RenderConfig
from skytrace.core.ray import make_ray, ray_at
from skytrace.core.sampler import make_pixel_state
from skytrace.materials.diffuse import scatter_diffuse
from skytrace.materials.light import scatter_light
from skytrace.materials.reflective import scatter_reflective
from skytrace.materials.refractive import scatter_refractive
from skytrace.scene.builder import MaterialKind
from skytrace.scene.intersection import intersect_scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Far limit of every intersection query
T_MAX = 1e6

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color buffer (preallocated to max size), indexed [x, y] with y = 0 at the bottom
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Number of frames averaged into the color buffer
_frame_count = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug("Render target set up at %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the color buffer and reset the frame count."""
    _color_buffer.fill(0.0)
    _frame_count[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_frame_count() -> int:
    """Get the number of frames averaged into the color buffer."""
    return int(_frame_count[None])


# =============================================================================
# Sky Model
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance for a ray that escapes the scene.

    Blends linearly from white at the nadir to light blue at the zenith:
        t = 0.5 * (normalize(direction).y + 1)
        color = (1 - t) * (1, 1, 1) + t * (0.5, 0.7, 1.0)

    Args:
        direction: The escaping ray direction (need not be normalized).

    Returns:
        The sky color before the sky intensity is applied.
    """
    t = 0.5 * (tm.normalize(direction).y + 1.0)
    return (1.0 - t) * vec3(1.0, 1.0, 1.0) + t * vec3(0.5, 0.7, 1.0)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    kind: ti.i32,
    color: vec3,
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: tm.uvec2,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        kind: The MaterialKind of the hit surface.
        color: The albedo / tint of the hit surface.
        ior: Index of refraction for refractive surfaces.
        incident_direction: The incoming ray direction (normalized).
        normal: The outward surface normal (normalized).
        front_face: 1 if the front face was hit, 0 otherwise.
        state: The current sampler state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state).
        Unknown kinds absorb the path with black attenuation.
    """
    scattered_direction = incident_direction
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    s = state

    if kind == int(MaterialKind.LIGHT):
        scattered_direction, attenuation, did_scatter, s = scatter_light(
            incident_direction, normal, state
        )
    elif kind == int(MaterialKind.DIFFUSE):
        scattered_direction, attenuation, did_scatter, s = scatter_diffuse(color, normal, state)
    elif kind == int(MaterialKind.REFLECTIVE):
        scattered_direction, attenuation, did_scatter, s = scatter_reflective(
            color, incident_direction, normal, state
        )
    elif kind == int(MaterialKind.REFRACTIVE):
        scattered_direction, attenuation, did_scatter, s = scatter_refractive(
            color, ior, incident_direction, normal, front_face, state
        )

    return scattered_direction, attenuation, did_scatter, s


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(
    origin: vec3,
    direction: vec3,
    state: tm.uvec2,
    max_recursion: ti.i32,
    min_epsilon: ti.f32,
    sky_intensity: ti.f32,
    ior: ti.f32,
):
    """Trace a single path through the scene.

    Args:
        origin: The ray origin.
        direction: The unit ray direction.
        state: The current sampler state.
        max_recursion: Maximum number of intersections along the path.
        min_epsilon: Minimum accepted hit distance.
        sky_intensity: Multiplier of the sky gradient.
        ior: Index of refraction for refractive surfaces.

    Returns:
        A tuple of (radiance, state).
    """
    color = vec3(0.0, 0.0, 0.0)
    total_attenuation = vec3(1.0, 1.0, 1.0)

    ray_origin = origin
    ray_direction = direction
    s = state

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1
    terminated = 0

    for _ in range(max_recursion):
        if active == 1:
            ray = make_ray(ray_origin, ray_direction)
            hit_record = intersect_scene(ray.origin, ray.direction, min_epsilon, T_MAX)

            if hit_record.hit == 0:
                # Ray escaped - add sky contribution
                color += sky_color(ray.direction) * sky_intensity
                active = 0
                terminated = 1
            else:
                scattered_direction, attenuation, did_scatter, next_state = _scatter_material(
                    hit_record.kind,
                    hit_record.color,
                    ior,
                    ray.direction,
                    hit_record.normal,
                    hit_record.front_face,
                    s,
                )
                s = next_state

                total_attenuation *= attenuation
                color += hit_record.emissive

                if did_scatter == 1:
                    ray_origin = ray_at(ray, hit_record.t)
                    ray_direction = scattered_direction
                else:
                    active = 0
                    terminated = 1

    # Recursion budget exhausted
    if terminated == 0:
        color = vec3(0.0, 0.0, 0.0)

    return color * total_attenuation, s


@ti.func
def estimate_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    spp: ti.i32,
    max_recursion: ti.i32,
    ior: ti.f32,
    min_epsilon: ti.f32,
    sky_intensity: ti.f32,
    seed_x: ti.u32,
    seed_y: ti.u32,
    origin: vec3,
    right: vec3,
    up: vec3,
    forward: vec3,
    canvas_u: ti.f32,
    canvas_v: ti.f32,
) -> vec3:
    """Average spp jittered path samples for one pixel.

    The sampler is seeded once for the pixel and threaded through every
    sample, so consecutive samples draw fresh numbers.

    Returns:
        The mean radiance of the pixel.
    """
    state = make_pixel_state(pixel_i, pixel_j, seed_x, seed_y)
    total = vec3(0.0, 0.0, 0.0)

    for _ in range(spp):
        direction, s = jittered_ray_direction(
            pixel_i, pixel_j, width, height, right, up, forward, canvas_u, canvas_v, state
        )
        radiance, s_next = trace_path(
            origin, direction, s, max_recursion, min_epsilon, sky_intensity, ior
        )
        state = s_next
        total += radiance

    return total / ti.cast(spp, ti.f32)


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace NaN or infinite channels with zero."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_frame_kernel(
    width: ti.i32,
    height: ti.i32,
    spp: ti.i32,
    max_recursion: ti.i32,
    ior: ti.f32,
    min_epsilon: ti.f32,
    sky_intensity: ti.f32,
    seed_x: ti.u32,
    seed_y: ti.u32,
    origin: vec3,
    right: vec3,
    up: vec3,
    forward: vec3,
    canvas_u: ti.f32,
    canvas_v: ti.f32,
    frames_done: ti.i32,
):
    """Render one frame and blend it into the color buffer.

    With frames_done == 0 the frame overwrites the buffer; otherwise it is
    folded into the running average of the previous frames.
    """
    for i, j in ti.ndrange(width, height):
        color = estimate_pixel(
            i,
            j,
            width,
            height,
            spp,
            max_recursion,
            ior,
            min_epsilon,
            sky_intensity,
            seed_x,
            seed_y,
            origin,
            right,
            up,
            forward,
            canvas_u,
            canvas_v,
        )
        color = _sanitize(color)

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        n = ti.cast(frames_done + 1, ti.f32)
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / n


@ti.kernel
def _trace_single_path(
    origin: vec3,
    direction: vec3,
    seed_x: ti.u32,
    seed_y: ti.u32,
    max_recursion: ti.i32,
    min_epsilon: ti.f32,
    sky_intensity: ti.f32,
    ior: ti.f32,
) -> vec3:
    """Trace one path from an arbitrary ray. Used for testing."""
    state = tm.uvec2(seed_x, seed_y)
    radiance, _ = trace_path(
        origin, tm.normalize(direction), state, max_recursion, min_epsilon, sky_intensity, ior
    )
    return _sanitize(radiance)


@ti.kernel
def _estimate_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    spp: ti.i32,
    max_recursion: ti.i32,
    ior: ti.f32,
    min_epsilon: ti.f32,
    sky_intensity: ti.f32,
    seed_x: ti.u32,
    seed_y: ti.u32,
    origin: vec3,
    right: vec3,
    up: vec3,
    forward: vec3,
    canvas_u: ti.f32,
    canvas_v: ti.f32,
) -> vec3:
    """Estimate a single pixel without touching the color buffer."""
    return _sanitize(
        estimate_pixel(
            pixel_i,
            pixel_j,
            width,
            height,
            spp,
            max_recursion,
            ior,
            min_epsilon,
            sky_intensity,
            seed_x,
            seed_y,
            origin,
            right,
            up,
            forward,
            canvas_u,
            canvas_v,
        )
    )


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_seed_pair(seed_pair: tuple[int, int]) -> tuple[int, int]:
    seed_x, seed_y = (int(s) for s in seed_pair)
    for s in (seed_x, seed_y):
        if not 0 <= s < 2**32:
            raise ValueError(f"Seeds must be unsigned 32-bit integers, got {s}")
    return seed_x, seed_y


def _camera_args(frame: CameraFrame) -> tuple:
    return (
        vec3(*frame.origin),
        vec3(*frame.right),
        vec3(*frame.up),
        vec3(*frame.forward),
        float(frame.canvas_u),
        float(frame.canvas_v),
    )


def render_frame(
    config: RenderConfig,
    frame: CameraFrame,
    seed_pair: tuple[int, int],
    accumulate: bool = False,
) -> None:
    """Render one frame of config.spp samples per pixel.

    Args:
        config: The render parameters for this frame.
        frame: The camera frame for this frame.
        seed_pair: Two unsigned 32-bit seeds. Reusing a seed pair with the
            same scene, camera and config reproduces the frame exactly.
        accumulate: If True, average the frame with the frames already in
            the color buffer; otherwise replace them.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the config or the seeds are invalid.
    """
    _check_render_target_initialized()
    config.validate()
    seed_x, seed_y = _check_seed_pair(seed_pair)

    width, height = get_image_dimensions()
    frames_done = get_frame_count() if accumulate else 0

    _render_frame_kernel(
        width,
        height,
        config.spp,
        config.max_recursion,
        config.index_of_refraction,
        config.min_epsilon,
        config.sky_intensity,
        seed_x,
        seed_y,
        *_camera_args(frame),
        frames_done,
    )
    _frame_count[None] = frames_done + 1
    logger.debug(
        "Rendered frame %d at %dx%d, %d spp",
        frames_done + 1,
        width,
        height,
        config.spp,
    )


def render_pixel(
    pixel_i: int,
    pixel_j: int,
    config: RenderConfig,
    frame: CameraFrame,
    seed_pair: tuple[int, int],
) -> tuple[float, float, float]:
    """Estimate a single pixel of the current render target.

    This is a Python-callable function for testing. For production rendering,
    use render_frame() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        config: The render parameters.
        frame: The camera frame.
        seed_pair: Two unsigned 32-bit seeds.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    config.validate()
    seed_x, seed_y = _check_seed_pair(seed_pair)

    width, height = get_image_dimensions()
    color = _estimate_single_pixel(
        pixel_i,
        pixel_j,
        width,
        height,
        config.spp,
        config.max_recursion,
        config.index_of_refraction,
        config.min_epsilon,
        config.sky_intensity,
        seed_x,
        seed_y,
        *_camera_args(frame),
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    config: RenderConfig,
    state: tuple[int, int] = (1, 2),
) -> tuple[float, float, float]:
    """Trace one path from an arbitrary ray against the uploaded scene.

    Args:
        origin: The ray origin.
        direction: The ray direction (normalized before tracing).
        config: The render parameters (spp is ignored).
        state: The initial sampler state.

    Returns:
        Tuple of (R, G, B) radiance values.
    """
    config.validate()
    seed_x, seed_y = _check_seed_pair(state)
    color = _trace_single_path(
        vec3(*origin),
        vec3(*direction),
        seed_x,
        seed_y,
        config.max_recursion,
        config.min_epsilon,
        config.sky_intensity,
        config.index_of_refraction,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns the linear color buffer without clamping or tone mapping.
    The array shape is (height, width, 3) with dtype float32, top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    # Get raw image data (full buffer) and extract the active region
    image = _color_buffer.to_numpy()[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (buffer uses bottom-left origin, images use top-left)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
