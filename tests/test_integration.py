"""Integration tests for end-to-end rendering pipeline.

This module tests the complete rendering pipeline from scene creation through
final image output. It verifies that all components work together correctly
and that the output meets basic quality criteria.

Tests are designed to be fast (low resolution, few samples) while still
exercising the full pipeline.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


def _render_showcase(
    width: int,
    height: int,
    spp: int,
    frames: int,
    seed: int,
    sun_intensity: float = 0.0,
) -> npt.NDArray[np.float32]:
    from skytrace.core.config import RenderConfig
    from skytrace.core.progressive import ProgressiveRenderer
    from skytrace.scene.showcase import create_showcase_scene

    config = RenderConfig(spp=spp, max_recursion=8, sun_intensity=sun_intensity)
    scene, camera = create_showcase_scene(sun_intensity=config.sun_intensity)

    renderer = ProgressiveRenderer(width, height, config, seed=seed)
    renderer.set_scene(scene)
    renderer.set_camera(camera)
    renderer.render(frames)
    return renderer.get_image_numpy()


class TestShowcaseIntegration:
    """Integration tests for showcase rendering."""

    def test_showcase_end_to_end_renders_successfully(self) -> None:
        """Test that the complete showcase pipeline produces a plausible image."""
        image = _render_showcase(32, 18, spp=4, frames=2, seed=1)

        assert image.shape == (18, 32, 3)
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0
        # The sky fills the top of the frame
        assert image[0].mean() > 0.3

    def test_ground_is_yellow(self) -> None:
        """Test that the bottom rows are dominated by the yellow ground."""
        image = _render_showcase(32, 18, spp=8, frames=1, seed=2)

        bottom = image[-2:].reshape(-1, 3).mean(axis=0)
        assert bottom[0] > bottom[2]
        assert bottom[1] > bottom[2]

    def test_sun_brightens_image(self) -> None:
        """Test that a positive sun intensity adds light to the scene."""
        dark = _render_showcase(24, 16, spp=4, frames=1, seed=3, sun_intensity=0.0)
        bright = _render_showcase(24, 16, spp=4, frames=1, seed=3, sun_intensity=5.0)

        assert bright.mean() > dark.mean()

    def test_accumulation_converges(self) -> None:
        """Test that two independent renders agree better with more frames."""
        from skytrace.preview.export import compute_rmse

        short_a = _render_showcase(16, 12, spp=2, frames=1, seed=10)
        short_b = _render_showcase(16, 12, spp=2, frames=1, seed=11)
        long_a = _render_showcase(16, 12, spp=2, frames=16, seed=12)
        long_b = _render_showcase(16, 12, spp=2, frames=16, seed=13)

        assert compute_rmse(long_a, long_b) < compute_rmse(short_a, short_b)

    def test_render_and_save_from_config_file(self, tmp_path) -> None:
        """Test loading a JSON config, rendering and writing a PNG."""
        from PIL import Image

        from skytrace.core.config import load_render_config
        from skytrace.core.progressive import ProgressiveRenderer
        from skytrace.preview.export import save_png
        from skytrace.scene.showcase import create_showcase_scene

        config_path = tmp_path / "render.json"
        config_path.write_text(
            json.dumps({"spp": 2, "max_recursion": 4, "sun_intensity": 1.0}),
            encoding="utf-8",
        )
        config = load_render_config(config_path)

        scene, camera = create_showcase_scene(sun_intensity=config.sun_intensity)
        renderer = ProgressiveRenderer(20, 10, config, seed=4)
        renderer.set_scene(scene)
        renderer.set_camera(camera)
        renderer.render(2)

        output = tmp_path / "showcase.png"
        save_png(renderer, str(output), tone_map="reinhard")

        with Image.open(output) as img:
            assert img.size == (20, 10)

    def test_scene_round_trip_renders_identically(self) -> None:
        """Test that a serialized and restored scene renders the same frame."""
        from skytrace.core.config import RenderConfig
        from skytrace.core.progressive import ProgressiveRenderer
        from skytrace.scene.builder import Scene
        from skytrace.scene.showcase import create_showcase_scene

        scene, camera = create_showcase_scene()
        restored = Scene.from_dict(json.loads(json.dumps(scene.to_dict())))

        renderer = ProgressiveRenderer(12, 8, RenderConfig(spp=2), accumulate=False)
        renderer.set_camera(camera)

        renderer.set_scene(scene)
        renderer.render_frame((7, 8))
        first = renderer.get_image_numpy()

        renderer.set_scene(restored)
        renderer.render_frame((7, 8))
        second = renderer.get_image_numpy()

        assert np.array_equal(first, second)
