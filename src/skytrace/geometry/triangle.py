"""Triangle primitive with Moller-Trumbore ray-triangle intersection.

A triangle is defined by three vertices v0, v1, v2. Its geometric normal is
normalize(cross(v1 - v0, v2 - v0)), so counter-clockwise winding seen from
the front yields a normal pointing toward the viewer.

Single-sided triangles are back-face culled: a ray travelling in the same
general direction as the normal (negative determinant) never hits them.
Double-sided triangles accept hits from both sides. Unlike spheres, the
reported normal is never flipped toward the ray; front_face tells the caller
which side was hit.

The intersection solves

    origin + t * direction = v0 + u * e1 + v * e2

for (t, u, v) with Cramer's rule, where e1 = v1 - v0 and e2 = v2 - v0, and
accepts the hit when u >= 0, v >= 0, u + v <= 1 and t lies in [t_min, t_max].

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.geometry.triangle import Triangle, hit_triangle
    >>> tri = Triangle(
    ...     v0=ti.math.vec3(-1, 0, -5),
    ...     v1=ti.math.vec3(1, 0, -5),
    ...     v2=ti.math.vec3(0, 2, -5),
    ...     double_sided=0,
    ... )
    >>> # Use hit_triangle within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from .sphere import HitRecord

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Determinant magnitude below which the ray is treated as parallel
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Triangle:
    """A triangle defined by three vertices.

    Attributes:
        v0: First vertex (vec3).
        v1: Second vertex (vec3).
        v2: Third vertex (vec3).
        double_sided: 1 to accept hits on both faces, 0 to cull back faces.
    """

    v0: vec3
    v1: vec3
    v2: vec3
    double_sided: ti.i32


@ti.dataclass
class TriangleHitRecord:
    """Hit record for a triangle, including barycentric coordinates.

    Carries the same fields as HitRecord plus:

    Attributes:
        u: Barycentric weight of v1 at the hit point.
        v: Barycentric weight of v2 at the hit point.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    u: ti.f32
    v: ti.f32


@ti.func
def triangle_normal(tri: Triangle) -> vec3:
    """Compute the unit geometric normal of a triangle."""
    return tm.normalize(tm.cross(tri.v1 - tri.v0, tri.v2 - tri.v0))


@ti.func
def hit_triangle_uv(
    ray_origin: vec3,
    ray_direction: vec3,
    tri: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
) -> TriangleHitRecord:
    """Test for ray-triangle intersection and report barycentrics.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        tri: The triangle to test intersection against.
        t_min: Minimum t value accepted as a hit (inclusive).
        t_max: Maximum t value accepted as a hit (inclusive).

    Returns:
        A TriangleHitRecord. Check the hit field to determine if an
        intersection occurred.
    """
    edge1 = tri.v1 - tri.v0
    edge2 = tri.v2 - tri.v0
    pvec = tm.cross(ray_direction, edge2)
    det = tm.dot(edge1, pvec)

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0
    bary_u = 0.0
    bary_v = 0.0

    # det > 0: the ray opposes the normal (front face)
    # det < 0: the ray travels along the normal (back face)
    facing_ok = det > PARALLEL_EPSILON or (tri.double_sided == 1 and det < -PARALLEL_EPSILON)

    if facing_ok:
        inv_det = 1.0 / det
        tvec = ray_origin - tri.v0
        u = tm.dot(tvec, pvec) * inv_det

        if u >= 0.0 and u <= 1.0:
            qvec = tm.cross(tvec, edge1)
            v = tm.dot(ray_direction, qvec) * inv_det

            if v >= 0.0 and u + v <= 1.0:
                t = tm.dot(edge2, qvec) * inv_det

                if t >= t_min and t <= t_max:
                    did_hit = 1
                    hit_t = t
                    hit_point = ray_origin + t * ray_direction
                    hit_normal = triangle_normal(tri)
                    if tm.dot(hit_normal, ray_direction) < 0.0:
                        is_front_face = 1
                    bary_u = u
                    bary_v = v

    return TriangleHitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
        u=bary_u,
        v=bary_v,
    )


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    tri: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-triangle intersection.

    Same test as hit_triangle_uv, returning the primitive-independent
    HitRecord used by the scene-level query.
    """
    rec = hit_triangle_uv(ray_origin, ray_direction, tri, t_min, t_max)
    return HitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
    )
