"""Image post-processing and export for rendered frames.

The renderer produces linear, unbounded radiance (a bright sun or a glowing
triangle easily exceeds 1, and a negative sun intensity can push values
below 0). This module maps such images to displayable 8-bit sRGB:

    1. Tone mapping ("none", "reinhard" or "exposure")
    2. Gamma encoding
    3. Clamping to [0, 1] and quantization

Supported formats:
    - PNG (8-bit sRGB via Pillow)

Example:
    >>> from skytrace.preview.export import save_png
    >>> from skytrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(320, 240)
    >>> renderer.render(4)
    >>> save_png(renderer, "output.png", tone_map="reinhard")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from skytrace.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)

# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]


# =============================================================================
# Tone Mapping
# =============================================================================


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Compress radiance with the global Reinhard operator c / (1 + c).

    Negative channels are clamped to zero first.
    """
    positive = np.maximum(image, 0.0)
    return (positive / (1.0 + positive)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Apply exposure-based tone mapping: 1 - exp(-c * exposure).

    Args:
        image: Linear image array of shape (H, W, 3).
        exposure: Exposure value. Higher values brighten the image.

    Returns:
        Tone mapped image in [0, 1).
    """
    positive = np.maximum(image, 0.0)
    return (1.0 - np.exp(-positive * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode a linear image in [0, 1] with gamma 1/gamma.

    Values are clamped to [0, 1] first so negative inputs never produce NaN.
    A gamma of 1.0 returns the input unchanged.
    """
    if gamma == 1.0:
        return image
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    return np.power(np.clip(image, 0.0, 1.0), 1.0 / gamma).astype(np.float32)


def process_image(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Run the full display pipeline on a linear image.

    Non-finite values are treated as black.

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).

    Returns:
        Processed image in [0, 1].

    Raises:
        ValueError: If the tone mapping method is unknown.
    """
    result = np.nan_to_num(np.asarray(image, dtype=np.float32), nan=0.0, posinf=0.0, neginf=0.0)

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


# =============================================================================
# Export
# =============================================================================


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float32 image to 8-bit sRGB.

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    return np.round(processed * 255.0).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> None:
    """Save a linear image array as an 8-bit sRGB PNG file.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.
        filepath: Output file path (should end in .png).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).
    """
    image_uint8 = image_to_uint8(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    PILImage.fromarray(image_uint8).save(filepath)
    logger.debug("Saved %dx%d image to %s", image_uint8.shape[1], image_uint8.shape[0], filepath)


def save_png(
    renderer: ProgressiveRenderer,
    filepath: str,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> None:
    """Save the renderer's current image as a PNG file.

    Args:
        renderer: The ProgressiveRenderer instance to save.
        filepath: Output file path (should end in .png).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).
    """
    save_png_from_array(
        renderer.get_image_numpy(),
        filepath,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
