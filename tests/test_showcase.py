"""Tests for the showcase scene.

Tests cover:
- Primitive counts and scan order
- Material assignment, including the sun emission
- The default camera
"""

import pytest


class TestShowcaseScene:
    """Test the showcase scene factory."""

    def test_primitive_counts(self):
        """Test that the scene has six spheres and two triangles."""
        from skytrace.scene.showcase import create_showcase_scene

        scene, _ = create_showcase_scene()

        assert scene.get_sphere_count() == 6
        assert scene.get_triangle_count() == 2

    def test_sphere_materials(self):
        """Test the kind of each sphere in scan order."""
        from skytrace.scene.builder import MaterialKind
        from skytrace.scene.showcase import create_showcase_scene

        scene, _ = create_showcase_scene()
        kinds = [s.material.kind for s in scene.spheres]

        assert kinds == [
            MaterialKind.REFLECTIVE,
            MaterialKind.REFRACTIVE,
            MaterialKind.DIFFUSE,
            MaterialKind.DIFFUSE,
            MaterialKind.DIFFUSE,
            MaterialKind.DIFFUSE,
        ]

    def test_triangles(self):
        """Test sidedness and materials of the two triangles."""
        from skytrace.scene.builder import MaterialKind
        from skytrace.scene.showcase import create_showcase_scene

        scene, _ = create_showcase_scene()
        far, glow = scene.triangles

        assert far.double_sided is False
        assert far.material.kind is MaterialKind.DIFFUSE
        assert glow.double_sided is True
        assert glow.material.kind is MaterialKind.REFLECTIVE
        assert glow.material.emissive == (0.8, 0.0, 5.0)

    @pytest.mark.parametrize("intensity", [0.0, 2.5, -1.0])
    def test_sun_intensity(self, intensity):
        """Test that the sun sphere emits the requested intensity."""
        from skytrace.scene.showcase import create_showcase_scene

        scene, _ = create_showcase_scene(sun_intensity=intensity)
        sun = scene.spheres[-1]

        assert scene.sun_index == len(scene.spheres) - 1
        assert sun.radius == 10.0
        assert sun.material.emissive == (intensity, intensity, intensity)

    def test_params_override(self):
        """Test that ShowcaseParams control the sun and the field of view."""
        from skytrace.scene.showcase import ShowcaseParams, create_showcase_scene

        scene, camera = create_showcase_scene(
            sun_intensity=9.0, params=ShowcaseParams(sun_intensity=1.5, fov=45.0)
        )

        assert scene.spheres[-1].material.emissive == (1.5, 1.5, 1.5)
        assert camera.fov == 45.0

    def test_default_camera(self):
        """Test that the camera sits at the origin looking down -z."""
        from skytrace.scene.showcase import create_showcase_scene

        _, camera = create_showcase_scene()

        assert camera.lookfrom == (0.0, 0.0, 0.0)
        assert camera.lookat == (0.0, 0.0, -1.0)
        assert camera.vup == (0.0, 1.0, 0.0)
        assert camera.fov == 60.0

    def test_materials_by_name(self):
        """Test that the named material table covers every primitive."""
        from skytrace.scene.showcase import create_showcase_materials

        materials = create_showcase_materials(sun_intensity=3.0)

        assert set(materials) == {
            "ground",
            "center",
            "left",
            "right",
            "back",
            "sun",
            "far_triangle",
            "glow_triangle",
        }
        assert materials["sun"].emissive == (3.0, 3.0, 3.0)

    def test_scene_uploads(self):
        """Test that the showcase scene fits in the primitive fields."""
        from skytrace.scene.intersection import get_sphere_count, get_triangle_count
        from skytrace.scene.showcase import create_showcase_scene

        scene, _ = create_showcase_scene()
        scene.upload()

        assert get_sphere_count() == 6
        assert get_triangle_count() == 2
