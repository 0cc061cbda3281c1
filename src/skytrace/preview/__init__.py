"""Preview module for image output.

Components:
    export: Tone mapping, gamma encoding and PNG export

The renderer's color buffer holds linear, unbounded radiance; tone mapping
maps it into a displayable range before it is quantized to 8 bits.

Example:
    >>> from skytrace.preview import save_png
    >>> from skytrace.core.progressive import ProgressiveRenderer
    >>> from skytrace.scene.showcase import create_showcase_scene
    >>>
    >>> scene, camera = create_showcase_scene()
    >>> renderer = ProgressiveRenderer(320, 240)
    >>> renderer.set_scene(scene)
    >>> renderer.set_camera(camera)
    >>> renderer.render(4)
    >>> save_png(renderer, "output.png", tone_map="reinhard", gamma=2.2)
"""

from skytrace.preview.export import (
    ToneMapMethod,
    apply_gamma,
    compute_rmse,
    image_to_uint8,
    process_image,
    save_png,
    save_png_from_array,
    tone_map_exposure,
    tone_map_reinhard,
)

__all__ = [
    # Tone mapping
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image",
    "ToneMapMethod",
    # Export functions
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
    "compute_rmse",
]
