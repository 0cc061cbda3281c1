"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (outward normal, back face)
- Ray tangent to sphere
- Inclusive t_min / t_max boundaries
- Degenerate (zero-length) ray directions
"""

import math

import taichi as ti


def _hit(origin, direction, center, radius, t_min=0.001, t_max=1000.0):
    """Intersect one ray with one sphere and return the record as a dict."""
    from skytrace.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def probe(o: vec3, d: vec3, c: vec3, r: ti.f32, lo: ti.f32, hi: ti.f32):
        record = hit_sphere(o, d, Sphere(center=c, radius=r), lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        front_face[None] = record.front_face

    probe(vec3(*origin), vec3(*direction), vec3(*center), radius, t_min, t_max)
    p = point[None]
    n = normal[None]
    return {
        "hit": hit[None],
        "t": t_val[None],
        "point": (p[0], p[1], p[2]),
        "normal": (n[0], n[1], n[2]),
        "front_face": front_face[None],
    }


def _close(a, b, tol=1e-5):
    return all(abs(x - y) < tol for x, y in zip(a, b))


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 4.0) < 1e-5
        assert _close(rec["point"], (0.0, 0.0, 1.0))
        assert _close(rec["normal"], (0.0, 0.0, 1.0))
        assert rec["front_face"] == 1

    def test_miss(self):
        """Test ray passing beside the sphere."""
        rec = _hit((2.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_sphere_behind_ray(self):
        """Test that a sphere behind the ray origin is not hit."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_inside_uses_far_root_with_outward_normal(self):
        """Test that a ray from inside hits the far side and the normal stays outward."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 2.0)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 2.0) < 1e-5
        assert _close(rec["point"], (0.0, 0.0, -2.0))
        # Outward normal points along the ray, so this is a back-face hit
        assert _close(rec["normal"], (0.0, 0.0, -1.0))
        assert rec["front_face"] == 0

    def test_tangent_ray(self):
        """Test a ray grazing the sphere at a single point."""
        rec = _hit((1.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 5.0) < 1e-3
        assert abs(rec["normal"][0] - 1.0) < 1e-3

    def test_t_max_is_inclusive(self):
        """Test that a hit exactly at t_max is accepted."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_max=4.0)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 4.0) < 1e-6

    def test_t_max_excludes_farther_hits(self):
        """Test that both roots beyond t_max are rejected."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_max=3.5)
        assert rec["hit"] == 0

    def test_near_root_below_t_min_falls_back_to_far_root(self):
        """Test that the far root is used when the near root is below t_min."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_min=4.5)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 6.0) < 1e-5
        assert rec["front_face"] == 0

    def test_hit_at_surface_skipped_by_epsilon(self):
        """Test that a ray leaving the surface does not re-hit it at t ~ 0."""
        rec = _hit((0.0, 0.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_normal_is_unit_length(self):
        """Test that the normal is normalized for an oblique hit."""
        rec = _hit((0.3, 0.4, 10.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 3.0)

        assert rec["hit"] == 1
        n = rec["normal"]
        assert abs(math.sqrt(n[0] ** 2 + n[1] ** 2 + n[2] ** 2) - 1.0) < 1e-5

    def test_unnormalized_direction(self):
        """Test that t is measured in units of the direction vector."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -2.0), (0.0, 0.0, 0.0), 1.0)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 2.0) < 1e-5
        assert _close(rec["point"], (0.0, 0.0, 1.0))

    def test_zero_direction_is_a_miss(self):
        """Test that a zero-length direction never reports a hit."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_large_sphere(self):
        """Test intersection with a large, distant ground sphere."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), (0.0, -100.5, -5.0), 100.0)

        assert rec["hit"] == 1
        expected_t = 100.5 - math.sqrt(100.0**2 - 5.0**2)
        assert abs(rec["t"] - expected_t) < 1e-3
        assert rec["normal"][1] > 0.99
