"""Unit tests for scene-level intersection.

Tests cover:
- Adding and counting primitives in the Taichi fields
- Closest-hit selection across spheres and triangles
- Material values copied into the hit record
- Tie-breaking in favour of the first primitive scanned
- Capacity limits
"""

import pytest
import taichi as ti

WHITE = (1.0, 1.0, 1.0)
BLACK = (0.0, 0.0, 0.0)


def _query(origin, direction, t_min=0.001, t_max=1e6):
    """Run intersect_scene for one ray and return the record as a dict."""
    from skytrace.scene.intersection import intersect_scene, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    color = ti.Vector.field(3, dtype=ti.f32, shape=())
    emissive = ti.Vector.field(3, dtype=ti.f32, shape=())
    kind = ti.field(dtype=ti.i32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def probe(o: vec3, d: vec3, lo: ti.f32, hi: ti.f32):
        rec = intersect_scene(o, d, lo, hi)
        hit[None] = rec.hit
        t_val[None] = rec.t
        color[None] = rec.color
        emissive[None] = rec.emissive
        kind[None] = rec.kind
        front_face[None] = rec.front_face

    probe(vec3(*origin), vec3(*direction), t_min, t_max)
    c = color[None]
    e = emissive[None]
    return {
        "hit": hit[None],
        "t": t_val[None],
        "color": (c[0], c[1], c[2]),
        "emissive": (e[0], e[1], e[2]),
        "kind": kind[None],
        "front_face": front_face[None],
    }


class TestSceneStorage:
    """Tests for adding primitives to the scene fields."""

    def test_add_sphere_returns_index(self):
        """Test that add_sphere returns consecutive indices."""
        from skytrace.scene.intersection import add_sphere, get_sphere_count

        assert add_sphere((0, 0, -1), 0.5, BLACK, WHITE, 1) == 0
        assert add_sphere((0, 0, -3), 0.5, BLACK, WHITE, 1) == 1
        assert get_sphere_count() == 2

    def test_add_triangle_returns_index(self):
        """Test that add_triangle returns consecutive indices."""
        from skytrace.scene.intersection import add_triangle, get_triangle_count

        assert add_triangle((-1, 0, -5), (1, 0, -5), (0, 1, -5), False, BLACK, WHITE, 1) == 0
        assert get_triangle_count() == 1

    def test_clear_scene(self):
        """Test that clear_scene resets both counts."""
        from skytrace.scene.intersection import (
            add_sphere,
            add_triangle,
            clear_scene,
            get_sphere_count,
            get_triangle_count,
        )

        add_sphere((0, 0, -1), 0.5, BLACK, WHITE, 1)
        add_triangle((-1, 0, -5), (1, 0, -5), (0, 1, -5), True, BLACK, WHITE, 1)
        clear_scene()

        assert get_sphere_count() == 0
        assert get_triangle_count() == 0

    def test_sphere_capacity(self):
        """Test that exceeding the sphere capacity raises RuntimeError."""
        from skytrace.scene.intersection import MAX_SPHERES, add_sphere, num_spheres

        num_spheres[None] = MAX_SPHERES
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            add_sphere((0, 0, -1), 0.5, BLACK, WHITE, 1)

    def test_triangle_capacity(self):
        """Test that exceeding the triangle capacity raises RuntimeError."""
        from skytrace.scene.intersection import MAX_TRIANGLES, add_triangle, num_triangles

        num_triangles[None] = MAX_TRIANGLES
        with pytest.raises(RuntimeError, match="Maximum number of triangles"):
            add_triangle((-1, 0, -5), (1, 0, -5), (0, 1, -5), False, BLACK, WHITE, 1)


class TestIntersectScene:
    """Tests for the closest-hit query."""

    def test_empty_scene_misses(self):
        """Test that an empty scene reports a miss with kind -1."""
        rec = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert rec["hit"] == 0
        assert rec["kind"] == -1

    def test_closest_sphere_wins(self):
        """Test that the nearer of two spheres is reported, regardless of order."""
        from skytrace.scene.intersection import add_sphere

        add_sphere((0, 0, -10), 1.0, BLACK, (0.0, 0.0, 1.0), 1)
        add_sphere((0, 0, -5), 1.0, BLACK, (1.0, 0.0, 0.0), 2)

        rec = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert rec["hit"] == 1
        assert abs(rec["t"] - 4.0) < 1e-4
        assert rec["color"] == pytest.approx((1.0, 0.0, 0.0))
        assert rec["kind"] == 2

    def test_triangle_in_front_of_sphere(self):
        """Test that a nearer triangle hides a sphere behind it."""
        from skytrace.scene.intersection import add_sphere, add_triangle

        add_sphere((0, 0, -10), 1.0, BLACK, WHITE, 1)
        add_triangle((-1, -1, -5), (1, -1, -5), (0, 1, -5), False, (0.5, 0.0, 2.0), WHITE, 0)

        rec = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert rec["hit"] == 1
        assert abs(rec["t"] - 5.0) < 1e-4
        assert rec["kind"] == 0
        assert rec["emissive"] == pytest.approx((0.5, 0.0, 2.0))

    def test_sphere_in_front_of_triangle(self):
        """Test that a triangle behind a sphere does not replace the sphere hit."""
        from skytrace.scene.intersection import add_sphere, add_triangle

        add_sphere((0, 0, -5), 1.0, BLACK, (0.2, 0.4, 0.6), 3)
        add_triangle((-1, -1, -10), (1, -1, -10), (0, 1, -10), True, BLACK, WHITE, 1)

        rec = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert rec["kind"] == 3
        assert rec["color"] == pytest.approx((0.2, 0.4, 0.6))

    def test_culled_triangle_is_transparent(self):
        """Test that a back-facing single-sided triangle lets the ray through."""
        from skytrace.scene.intersection import add_sphere, add_triangle

        # Clockwise seen from the camera, so the camera sees its back
        add_triangle((-1, -1, -5), (0, 1, -5), (1, -1, -5), False, BLACK, WHITE, 2)
        add_sphere((0, 0, -10), 1.0, BLACK, WHITE, 1)

        rec = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert rec["hit"] == 1
        assert rec["kind"] == 1
        assert abs(rec["t"] - 9.0) < 1e-4

    def test_equal_distance_keeps_first_primitive(self):
        """Test that an exact distance tie keeps the first primitive scanned."""
        from skytrace.scene.intersection import add_sphere

        add_sphere((0, 0, -5), 1.0, BLACK, (1.0, 0.0, 0.0), 1)
        add_sphere((0, 0, -5), 1.0, BLACK, (0.0, 1.0, 0.0), 2)

        rec = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert rec["kind"] == 1
        assert rec["color"] == pytest.approx((1.0, 0.0, 0.0))

    def test_t_min_skips_surface_at_origin(self):
        """Test that hits closer than t_min are ignored."""
        from skytrace.scene.intersection import add_sphere

        add_sphere((0, 0, -1), 1.0, BLACK, WHITE, 1)

        # Origin lies on the sphere surface; only the far side counts
        rec = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), t_min=0.001)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 2.0) < 1e-4
        assert rec["front_face"] == 0
