"""Progressive renderer driving the frame kernel.

This module provides a convenient wrapper around the core integrator that
supports:
- Frame-by-frame rendering with a fresh seed pair per frame
- Optional running-average accumulation across frames
- Staged scene, camera and config changes applied between frames
- Progress callbacks and a cancellable generator interface

Changes requested while a frame is being rendered never affect that frame:
set_scene(), set_camera() and set_config() only stage the new value, and
the staged values are swapped in at the start of the next frame. Applying
a change also restarts accumulation, since frames of different scenes must
not be averaged.

A scene with a marked sun sphere (see Scene.mark_sun) has the sun's emission
rebound to the active config's sun_intensity whenever a config or scene
change is applied; the scene is then uploaded again.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from skytrace.core.config import RenderConfig
    >>> from skytrace.core.progressive import ProgressiveRenderer
    >>> from skytrace.scene.showcase import create_showcase_scene
    >>>
    >>> scene, camera = create_showcase_scene()
    >>> renderer = ProgressiveRenderer(320, 240, RenderConfig(spp=8), seed=7)
    >>> renderer.set_scene(scene)
    >>> renderer.set_camera(camera)
    >>> renderer.render(10)  # Average 10 frames of 8 spp
    >>> image = renderer.get_image_numpy()
"""

import logging
from collections.abc import Callable, Generator
from typing import Any

import numpy as np
import numpy.typing as npt

from skytrace.camera.pinhole import CameraFrame, PinholeCamera, build_camera_frame
from skytrace.core.config import RenderConfig
from skytrace.core.integrator import (
    clear_render_target,
    get_frame_count,
    get_image,
    get_image_numpy,
    render_frame,
    setup_render_target,
)
from skytrace.scene.builder import Scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (frames_rendered, target_frames)
ProgressCallback = Callable[[int, int], None]

_SEED_BOUND = 2**32


class ProgressiveRenderer:
    """A renderer that produces and optionally accumulates frames.

    The renderer maintains its own state for width/height, the active scene,
    camera and config, and delegates to the global integrator buffers (which
    are Taichi fields).

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        accumulate: Whether new frames are averaged with previous ones.
    """

    def __init__(
        self,
        width: int,
        height: int,
        config: RenderConfig | None = None,
        seed: int | None = None,
        accumulate: bool = True,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            config: Initial render parameters. Defaults to RenderConfig().
            seed: Seed of the generator that draws per-frame seed pairs.
                None draws fresh entropy from the operating system.
            accumulate: Whether new frames are averaged with previous ones.

        Raises:
            ValueError: If dimensions are invalid or the config is invalid.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self.accumulate = accumulate

        self._config = config if config is not None else RenderConfig()
        self._config.validate()
        self._camera: PinholeCamera | CameraFrame = PinholeCamera()
        self._scene: Scene | None = None
        self._rng = np.random.default_rng(seed)

        self._pending_config: RenderConfig | None = None
        self._pending_camera: PinholeCamera | CameraFrame | None = None
        self._pending_scene: Scene | None = None

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def config(self) -> RenderConfig:
        """Get the config used by the most recent (or next) frame."""
        return self._config

    @property
    def frame_count(self) -> int:
        """Get the number of frames averaged into the current image."""
        return get_frame_count()

    # =========================================================================
    # Staged Changes
    # =========================================================================

    def set_config(self, config: RenderConfig) -> None:
        """Stage new render parameters for the next frame.

        Raises:
            ValueError: If the config is invalid.
        """
        config.validate()
        self._pending_config = config

    def set_camera(self, camera: PinholeCamera | CameraFrame) -> None:
        """Stage a new camera for the next frame."""
        self._pending_camera = camera

    def set_scene(self, scene: Scene) -> None:
        """Stage a new scene; it is uploaded at the start of the next frame."""
        self._pending_scene = scene

    def has_pending_changes(self) -> bool:
        """Check whether any staged change is waiting for the next frame."""
        return (
            self._pending_config is not None
            or self._pending_camera is not None
            or self._pending_scene is not None
        )

    def _apply_pending(self) -> None:
        """Swap staged values in. Called only between frames."""
        if not self.has_pending_changes():
            return

        if self._pending_config is not None:
            self._config = self._pending_config
            self._pending_config = None
            logger.debug("Applied render config %s", self._config)
        if self._pending_camera is not None:
            self._camera = self._pending_camera
            self._pending_camera = None
            logger.debug("Applied camera %s", self._camera)
        scene_changed = False
        if self._pending_scene is not None:
            self._scene = self._pending_scene
            self._pending_scene = None
            scene_changed = True
        if self._scene is not None and self._scene.set_sun_intensity(self._config.sun_intensity):
            logger.debug("Rebound sun emission to %s", self._config.sun_intensity)
            scene_changed = True
        if scene_changed:
            self._scene.upload()

        clear_render_target()

    def _camera_frame(self) -> CameraFrame:
        # A prebuilt frame keeps its fov but follows the current aspect ratio
        if isinstance(self._camera, CameraFrame):
            return self._camera.resized(self._width, self._height)
        return build_camera_frame(self._camera, self._width, self._height)

    # =========================================================================
    # Rendering
    # =========================================================================

    def next_seed_pair(self) -> tuple[int, int]:
        """Draw a fresh pair of unsigned 32-bit frame seeds."""
        seeds = self._rng.integers(0, _SEED_BOUND, size=2, dtype=np.uint64)
        return int(seeds[0]), int(seeds[1])

    def reset(self) -> None:
        """Discard the accumulated image without changing the dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render_frame(self, seed_pair: tuple[int, int] | None = None) -> int:
        """Apply staged changes, then render one frame.

        Args:
            seed_pair: Explicit frame seeds. None draws the next pair from
                the renderer's generator.

        Returns:
            The number of frames in the current image after this frame.

        Raises:
            RuntimeError: If no scene has been set.
        """
        self._apply_pending()
        if self._scene is None:
            raise RuntimeError("No scene set. Call set_scene() before rendering.")

        if seed_pair is None:
            seed_pair = self.next_seed_pair()

        render_frame(
            self._config,
            self._camera_frame(),
            seed_pair,
            accumulate=self.accumulate,
        )
        return self.frame_count

    def render(
        self,
        num_frames: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render several frames with an optional progress callback.

        Args:
            num_frames: Number of frames to render.
            callback: Optional callback function called after each frame.
                Receives (frames_rendered, num_frames).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} frames")
            >>> renderer.render(10, callback=progress)
        """
        for done, target in self.render_progressive(num_frames):
            if callback is not None:
                callback(done, target)

    def render_progressive(self, num_frames: int = 1) -> Generator[tuple[int, int], None, None]:
        """Render frames one at a time, yielding progress after each.

        Stopping the iteration cancels the remaining frames; a frame that
        has started always completes.

        Args:
            num_frames: Number of frames to render.

        Yields:
            Tuple of (frames_rendered, num_frames).

        Example:
            >>> for current, target in renderer.render_progressive(10):
            ...     print(f"Progress: {current}/{target} frames")
        """
        for done in range(1, num_frames + 1):
            self.render_frame()
            yield (done, num_frames)

    # =========================================================================
    # Output
    # =========================================================================

    def get_image(self) -> Any:
        """Get the raw Taichi color buffer field.

        Note: This returns the full preallocated buffer. Use width/height
        properties to determine the active region.
        """
        return get_image()

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the linear rendered image, shape (height, width, 3), top row first."""
        return get_image_numpy()

    def save_image(self, filepath: str, gamma: float = 2.2, tone_map: str = "none") -> None:
        """Save the rendered image to a PNG file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
            gamma: Gamma correction value. Default 2.2 for sRGB.
            tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        """
        from skytrace.preview.export import save_png

        save_png(self, filepath, tone_map=tone_map, gamma=gamma)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"frames={self.frame_count})"
        )
