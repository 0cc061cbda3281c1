"""Unit tests for triangle intersection.

Tests cover:
- Front-face hits with counter-clockwise winding
- Back-face culling for single-sided triangles
- Double-sided triangles hit from behind (normal not flipped)
- Edge, vertex and outside-of-triangle rays
- Parallel rays and t range checks
- Barycentric coordinates and the normal helper
"""

import math

import taichi as ti

# Counter-clockwise seen from +z, so the geometric normal is (0, 0, 1)
V0 = (-1.0, 0.0, -5.0)
V1 = (1.0, 0.0, -5.0)
V2 = (0.0, 2.0, -5.0)


def _hit(origin, direction, v0=V0, v1=V1, v2=V2, double_sided=0, t_min=0.001, t_max=1000.0):
    """Intersect one ray with one triangle and return the record as a dict."""
    from skytrace.geometry.triangle import Triangle, hit_triangle_uv, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())
    bary = ti.Vector.field(2, dtype=ti.f32, shape=())

    @ti.kernel
    def probe(
        o: vec3, d: vec3, a: vec3, b: vec3, c: vec3, sided: ti.i32, lo: ti.f32, hi: ti.f32
    ):
        tri = Triangle(v0=a, v1=b, v2=c, double_sided=sided)
        record = hit_triangle_uv(o, d, tri, lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        normal[None] = record.normal
        front_face[None] = record.front_face
        bary[None] = ti.math.vec2(record.u, record.v)

    probe(
        vec3(*origin),
        vec3(*direction),
        vec3(*v0),
        vec3(*v1),
        vec3(*v2),
        double_sided,
        t_min,
        t_max,
    )
    n = normal[None]
    uv = bary[None]
    return {
        "hit": hit[None],
        "t": t_val[None],
        "normal": (n[0], n[1], n[2]),
        "front_face": front_face[None],
        "u": uv[0],
        "v": uv[1],
    }


class TestTriangleIntersection:
    """Tests for ray-triangle intersection."""

    def test_front_face_hit(self):
        """Test a ray hitting the front of a single-sided triangle."""
        rec = _hit((0.0, 0.5, 0.0), (0.0, 0.0, -1.0))

        assert rec["hit"] == 1
        assert abs(rec["t"] - 5.0) < 1e-5
        assert abs(rec["normal"][2] - 1.0) < 1e-5
        assert rec["front_face"] == 1

    def test_back_face_culled_when_single_sided(self):
        """Test that a single-sided triangle is invisible from behind."""
        rec = _hit((0.0, 0.5, -10.0), (0.0, 0.0, 1.0))
        assert rec["hit"] == 0

    def test_double_sided_back_face_hit(self):
        """Test that a double-sided triangle is hit from behind without flipping the normal."""
        rec = _hit((0.0, 0.5, -10.0), (0.0, 0.0, 1.0), double_sided=1)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 5.0) < 1e-5
        # Normal follows the winding, not the ray
        assert abs(rec["normal"][2] - 1.0) < 1e-5
        assert rec["front_face"] == 0

    def test_double_sided_front_face_hit(self):
        """Test that double-sided triangles still report front-face hits."""
        rec = _hit((0.0, 0.5, 0.0), (0.0, 0.0, -1.0), double_sided=1)
        assert rec["hit"] == 1
        assert rec["front_face"] == 1

    def test_miss_outside_triangle(self):
        """Test a ray that passes the triangle's plane outside its edges."""
        rec = _hit((1.5, 1.5, 0.0), (0.0, 0.0, -1.0))
        assert rec["hit"] == 0

    def test_hit_on_vertex(self):
        """Test that a ray through a vertex counts as a hit."""
        rec = _hit((-1.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert rec["hit"] == 1
        assert abs(rec["u"]) < 1e-5
        assert abs(rec["v"]) < 1e-5

    def test_parallel_ray_misses(self):
        """Test that a ray parallel to the triangle's plane misses."""
        rec = _hit((-5.0, 0.5, -5.0), (1.0, 0.0, 0.0), double_sided=1)
        assert rec["hit"] == 0

    def test_triangle_behind_ray(self):
        """Test that a triangle behind the ray origin is not hit."""
        rec = _hit((0.0, 0.5, 0.0), (0.0, 0.0, 1.0), double_sided=1)
        assert rec["hit"] == 0

    def test_t_max_excludes_hit(self):
        """Test that hits beyond t_max are rejected."""
        rec = _hit((0.0, 0.5, 0.0), (0.0, 0.0, -1.0), t_max=4.0)
        assert rec["hit"] == 0

    def test_distant_origin_hit_distance(self):
        """Test t for a ray starting ten units in front of the triangle."""
        rec = _hit((0.5, 0.5, 5.0), (0.0, 0.0, -1.0))
        assert rec["hit"] == 1
        assert abs(rec["t"] - 10.0) < 1e-4

    def test_barycentric_coordinates(self):
        """Test that u weights v1 and v weights v2 at the hit point."""
        # Point v0 + 0.25 * (v1 - v0) + 0.5 * (v2 - v0) = (0.0, 1.0, -5.0)
        rec = _hit((0.0, 1.0, 0.0), (0.0, 0.0, -1.0))

        assert rec["hit"] == 1
        assert abs(rec["u"] - 0.25) < 1e-5
        assert abs(rec["v"] - 0.5) < 1e-5

    def test_clockwise_winding_flips_normal(self):
        """Test that reversing the winding flips the geometric normal."""
        rec = _hit((0.0, 0.5, 0.0), (0.0, 0.0, -1.0), v0=V0, v1=V2, v2=V1, double_sided=1)

        assert rec["hit"] == 1
        assert abs(rec["normal"][2] + 1.0) < 1e-5
        assert rec["front_face"] == 0

    def test_hit_triangle_matches_uv_variant(self):
        """Test that hit_triangle reports the same hit as hit_triangle_uv."""
        from skytrace.geometry.triangle import Triangle, hit_triangle, vec3

        t_val = ti.field(dtype=ti.f32, shape=())
        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            tri = Triangle(
                v0=vec3(-1.0, 0.0, -5.0),
                v1=vec3(1.0, 0.0, -5.0),
                v2=vec3(0.0, 2.0, -5.0),
                double_sided=0,
            )
            record = hit_triangle(vec3(0.0, 0.5, 0.0), vec3(0.0, 0.0, -1.0), tri, 0.001, 100.0)
            hit[None] = record.hit
            t_val[None] = record.t

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 5.0) < 1e-5


class TestTriangleHelpers:
    """Tests for the triangle normal helper."""

    def test_triangle_normal(self):
        """Test the geometric normal of a right triangle."""
        from skytrace.geometry.triangle import Triangle, triangle_normal, vec3

        normal = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            tri = Triangle(
                v0=vec3(0.0, 0.0, 0.0),
                v1=vec3(2.0, 0.0, 0.0),
                v2=vec3(0.0, 0.0, -2.0),
                double_sided=0,
            )
            normal[None] = triangle_normal(tri)

        test_kernel()
        n = normal[None]
        # cross((2, 0, 0), (0, 0, -2)) = (0, 4, 0)
        assert abs(n[1] - 1.0) < 1e-6
        assert abs(math.hypot(n[0], n[2])) < 1e-6
