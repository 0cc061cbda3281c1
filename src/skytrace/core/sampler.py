"""Hash-based pseudo-random sampler with explicit state threading.

Every stochastic decision in the path tracer draws from this sampler. The
state is a pair of unsigned 32-bit lanes (uvec2) that is seeded once per
pixel per frame and then passed into, and returned from, every sampling
function. No sampler state is held in global fields, so concurrent pixel
tasks never share or race on it.

The generator is a cheap integer hash rather than a statistically rigorous
PRNG. Each draw advances the state by (1, 1) and mixes the two lanes:

    state += (1, 1)
    q = K * ((state >> 1) ^ (state.y, state.x))
    n = K * (q.x ^ (q.y >> 3))

with wrapping u32 arithmetic and K = 1103515245. The float result keeps
the top 24 bits of n, (n >> 8) / 2^24, which is exactly representable as
float32 and therefore always lies in [0, 1).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.core.sampler import make_pixel_state, rng_next
    >>> # Inside a Taichi kernel:
    >>> # state = make_pixel_state(i, j, seed_x, seed_y)
    >>> # value, state = rng_next(state)
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3
uvec2 = tm.uvec2

# Odd multiplier of the hash (the classic LCG constant)
RNG_MULTIPLIER = 1103515245

# 1 / 2^24: scale for the top 24 bits of a 32-bit hash
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def make_pixel_state(pixel_i: ti.i32, pixel_j: ti.i32, seed_x: ti.u32, seed_y: ti.u32) -> uvec2:
    """Derive the sampler state for one pixel of one frame.

    Combines the integer pixel coordinates with the frame seed pair. The
    seeds are forced odd so that the multiplication is a bijection on u32,
    and the coordinates are offset by one so that row and column zero do
    not collapse to a zero lane.

    Args:
        pixel_i: Pixel x-coordinate.
        pixel_j: Pixel y-coordinate.
        seed_x: First lane of the frame seed pair.
        seed_y: Second lane of the frame seed pair.

    Returns:
        The initial sampler state for this pixel.
    """
    lane_x = ti.cast(pixel_i + 1, ti.u32) * (seed_x | ti.u32(1))
    lane_y = ti.cast(pixel_j + 1, ti.u32) * (seed_y | ti.u32(1))
    return uvec2(lane_x, lane_y)


@ti.func
def rng_next(state: uvec2):
    """Draw one uniform float in [0, 1) and advance the state.

    Args:
        state: The current sampler state.

    Returns:
        A tuple (value, next_state).
    """
    k = ti.u32(RNG_MULTIPLIER)
    next_state = state + uvec2(1, 1)
    qx = k * ((next_state.x >> ti.u32(1)) ^ next_state.y)
    qy = k * ((next_state.y >> ti.u32(1)) ^ next_state.x)
    n = k * (qx ^ (qy >> ti.u32(3)))
    value = ti.cast(n >> ti.u32(8), ti.f32) * _INV_2_POW_24
    return value, next_state


# =============================================================================
# Derived Samplers
# =============================================================================


@ti.func
def random_sphere_direction(state: uvec2):
    """Sample a direction uniformly on the unit sphere.

    Draws the height uniformly in [-1, 1) and the azimuth uniformly in
    [0, 2*pi), which is area-uniform on the sphere (Archimedes).

    Args:
        state: The current sampler state.

    Returns:
        A tuple (direction, next_state) with a unit-length direction.
    """
    r1, s = rng_next(state)
    r2, s = rng_next(s)
    up = r1 * 2.0 - 1.0
    over = ti.sqrt(ti.max(0.0, 1.0 - up * up))
    around = r2 * 2.0 * tm.pi
    direction = tm.normalize(vec3(ti.cos(around) * over, up, ti.sin(around) * over))
    return direction, s


@ti.func
def random_cos_weighted_hemisphere_direction(normal: vec3, state: uvec2):
    """Sample an approximately cosine-weighted direction around a normal.

    Offsets the normal by a uniform point on the unit sphere and normalizes
    the sum. The result always lies in the hemisphere of the normal.

    Args:
        normal: The unit surface normal.
        state: The current sampler state.

    Returns:
        A tuple (direction, next_state).
    """
    r1, s = rng_next(state)
    r2, s = rng_next(s)
    z = r1 * 2.0 - 1.0
    phi = r2 * 2.0 * tm.pi
    r = ti.sqrt(1.0 - z * z)
    direction = tm.normalize(normal + vec3(r * ti.cos(phi), r * ti.sin(phi), z))
    return direction, s


@ti.func
def tent_filter(x: ti.f32) -> ti.f32:
    """Remap a uniform sample in [0, 1) to a tent distribution on (-1, 1).

    Args:
        x: A uniform random value in [0, 1).

    Returns:
        A tent-distributed offset, peaked at 0.
    """
    result = 0.0
    if x < 0.5:
        result = ti.sqrt(2.0 * x) - 1.0
    else:
        result = 1.0 - ti.sqrt(2.0 - 2.0 * x)
    return result
