"""Render configuration: the per-frame uniforms of the path tracer.

A RenderConfig bundles every value the render kernel reads besides the
scene, the camera and the seed pair. Each frame uses one config for all of
its pixels; a changed config takes effect from the next frame on.

Example:
    >>> from skytrace.core.config import RenderConfig
    >>> config = RenderConfig(spp=16, max_recursion=8)
    >>> config.validate()
    >>> RenderConfig.from_dict(config.to_dict()) == config
    True
"""

import json
import math
from dataclasses import asdict, dataclass, fields
from os import PathLike
from typing import Any


@dataclass(frozen=True)
class RenderConfig:
    """Per-frame render parameters.

    Attributes:
        spp: Samples (paths) traced per pixel per frame.
        max_recursion: Maximum number of bounces per path. A path that
            has not terminated after this many bounces contributes black.
        index_of_refraction: Index of refraction shared by every refractive
            surface.
        min_epsilon: Minimum hit distance, which keeps a scattered ray from
            re-hitting the surface it left.
        sky_intensity: Multiplier of the sky gradient seen by escaping rays.
        sun_intensity: Emission of the showcase scene's sun sphere.
    """

    spp: int = 100
    max_recursion: int = 25
    index_of_refraction: float = 1.3
    min_epsilon: float = 0.001
    sky_intensity: float = 1.0
    sun_intensity: float = 0.0

    def validate(self) -> None:
        """Check that every parameter is usable.

        Raises:
            ValueError: If any parameter is out of range.
        """
        if int(self.spp) != self.spp or self.spp < 1:
            raise ValueError(f"spp must be a positive integer, got {self.spp}")
        if int(self.max_recursion) != self.max_recursion or self.max_recursion < 1:
            raise ValueError(f"max_recursion must be a positive integer, got {self.max_recursion}")
        ior = self.index_of_refraction
        if not math.isfinite(ior) or ior <= 0.0:
            raise ValueError(f"index_of_refraction must be positive and finite, got {ior}")
        if not math.isfinite(self.min_epsilon) or self.min_epsilon < 0.0:
            raise ValueError(f"min_epsilon must be non-negative and finite, got {self.min_epsilon}")
        if not math.isfinite(self.sky_intensity):
            raise ValueError(f"sky_intensity must be finite, got {self.sky_intensity}")
        if not math.isfinite(self.sun_intensity):
            raise ValueError(f"sun_intensity must be finite, got {self.sun_intensity}")

    def to_dict(self) -> dict[str, Any]:
        """Export the config to a dictionary (for JSON serialization)."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        """Create a validated config from a dictionary.

        Missing keys take their default values.

        Args:
            data: Mapping of parameter names to values.

        Returns:
            The validated RenderConfig.

        Raises:
            ValueError: If the dictionary has unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown render config keys: {', '.join(unknown)}")
        config = cls(**data)
        config.validate()
        return config


def load_render_config(path: str | PathLike[str]) -> RenderConfig:
    """Load a RenderConfig from a JSON file.

    Args:
        path: Path to a JSON object of render parameters.

    Returns:
        The validated RenderConfig.

    Raises:
        ValueError: If the file does not hold a JSON object or the values
            are invalid.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Render config file must contain a JSON object: {path}")
    return RenderConfig.from_dict(data)
