#!/usr/bin/env python3
"""Render the showcase scene.

This script demonstrates end-to-end rendering of the showcase scene with the
skytrace path tracer. It builds the scene, configures the camera and render
parameters, renders a number of frames with accumulation, and writes a PNG.

Usage:
    python -m examples.render_showcase [options]

Options:
    --width WIDTH           Image width in pixels (default: 640)
    --height HEIGHT         Image height in pixels (default: 360)
    --frames FRAMES         Number of frames to accumulate (default: 4)
    --spp SPP               Samples per pixel per frame (default: 100)
    --max-recursion DEPTH   Maximum bounces per path (default: 25)
    --ior IOR               Index of refraction (default: 1.3)
    --sky INTENSITY         Sky intensity (default: 1.0)
    --sun INTENSITY         Sun intensity (default: 0.0)
    --config PATH           JSON render config (overrides the options above)
    --seed SEED             Seed for the per-frame seed generator
    --output OUTPUT         Output file path (default: showcase.png)
    --cpu                   Force the CPU backend
    --verbose               Log at DEBUG level

Example:
    python -m examples.render_showcase --width 320 --height 180 --frames 8 --sun 2
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_showcase")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the showcase scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=640, help="Image width in pixels")
    parser.add_argument("--height", type=int, default=360, help="Image height in pixels")
    parser.add_argument("--frames", type=int, default=4, help="Number of frames to accumulate")
    parser.add_argument("--spp", type=int, default=100, help="Samples per pixel per frame")
    parser.add_argument("--max-recursion", type=int, default=25, help="Maximum bounces per path")
    parser.add_argument("--ior", type=float, default=1.3, help="Index of refraction")
    parser.add_argument("--sky", type=float, default=1.0, help="Sky intensity")
    parser.add_argument("--sun", type=float, default=0.0, help="Sun intensity")
    parser.add_argument("--config", type=str, default=None, help="JSON render config file")
    parser.add_argument("--seed", type=int, default=None, help="Seed for frame seed generation")
    parser.add_argument("--output", type=str, default="showcase.png", help="Output file path")
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser.parse_args()


def render_showcase(args: argparse.Namespace) -> Path:
    """Render the showcase scene and save to file.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from skytrace.core.config import RenderConfig, load_render_config
    from skytrace.core.progressive import ProgressiveRenderer
    from skytrace.preview.export import save_png
    from skytrace.scene.showcase import create_showcase_scene

    if args.config is not None:
        config = load_render_config(args.config)
    else:
        config = RenderConfig(
            spp=args.spp,
            max_recursion=args.max_recursion,
            index_of_refraction=args.ior,
            sky_intensity=args.sky,
            sun_intensity=args.sun,
        )
    logger.info("Render config: %s", config)

    scene, camera = create_showcase_scene(sun_intensity=config.sun_intensity)
    logger.info(
        "Showcase scene: %d spheres, %d triangles",
        scene.get_sphere_count(),
        scene.get_triangle_count(),
    )

    renderer = ProgressiveRenderer(args.width, args.height, config, seed=args.seed)
    renderer.set_scene(scene)
    renderer.set_camera(camera)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        logger.info(
            "Frame %d/%d (%.1f%%) - %.2f frames/s",
            current,
            target,
            100.0 * current / target,
            current / elapsed if elapsed > 0 else 0.0,
        )

    renderer.render(args.frames, callback=progress_callback)

    output_file = Path(args.output)
    save_png(renderer, str(output_file), tone_map="reinhard", gamma=2.2)

    logger.info("Saved to: %s", output_file.absolute())
    logger.info("Total time: %.2fs", time.time() - start_time)
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        try:
            ti.init(arch=ti.gpu)
        except RuntimeError:
            logger.warning("GPU backend unavailable, falling back to CPU")
            ti.init(arch=ti.cpu)

    try:
        render_showcase(args)
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
