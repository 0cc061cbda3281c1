"""Camera module for primary ray generation.

Components:
    pinhole: Pinhole (perspective) camera, its per-frame CameraFrame and the
        tent-filtered ray generation used by the render kernel

The camera is evaluated on the Python side once per frame; the resulting
CameraFrame is passed to the render kernel as arguments.
"""

from .pinhole import (
    CameraFrame,
    PinholeCamera,
    build_camera_frame,
    camera_ray_direction,
    jittered_ray_direction,
)

__all__ = [
    "PinholeCamera",
    "CameraFrame",
    "build_camera_frame",
    "camera_ray_direction",
    "jittered_ray_direction",
]
