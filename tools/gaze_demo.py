"""Headless gaze run: a target orbits the demo character's head.

Prints the head and eye Euler angles (degrees) and the head's facing
direction for each frame.

Usage::

    python -m tools.gaze_demo [--frames 120] [--radius 1.5] [--config gaze_rig.json]
"""

from __future__ import annotations

import argparse
import logging
import math

import numpy as np

from gazerig.core.math_utils import quaternion_to_euler, rad_to_deg
from gazerig.core.state import GazeRigConfig, load_rig_config
from tools.headless_rig import make_demo_skeleton, make_headless_driver

logger = logging.getLogger(__name__)


def orbit_target(frame: int, frames: int, center: np.ndarray, radius: float) -> np.ndarray:
    """Point on a horizontal circle around *center* in front of the face."""
    angle = 2.0 * math.pi * frame / max(frames, 1)
    return center + np.array([
        radius * math.sin(angle),
        radius * math.cos(angle),
        0.25 * radius * math.sin(2.0 * angle),
    ])


def run_demo(frames: int, radius: float, rig: GazeRigConfig) -> list[tuple[np.ndarray, np.ndarray]]:
    """Drive the demo rig for *frames* frames; returns (head, eyes) Euler angles per frame."""
    names, transforms = make_demo_skeleton()
    driver, owner, bus = make_headless_driver(names, transforms, rig=rig)
    if not driver.ready:
        logger.error("Hierarchy not ready (phase %s)", driver.phase.name)
        return []

    head_cfg = driver.solver.head
    center = driver.overlay_node(head_cfg.joint_index).world_position

    history = []
    for frame in range(frames):
        result = driver.on_frame(orbit_target(frame, frames, center, radius))
        if result is None:
            continue
        head = np.degrees(quaternion_to_euler(result.head))
        eyes = np.degrees(quaternion_to_euler(result.eyes))
        facing = head_cfg.facing(result.head)
        history.append((head, eyes))
        print(
            f"frame {frame:4d}  head x={head[0]:7.2f} y={head[1]:7.2f} z={head[2]:7.2f}"
            f"  eyes x={eyes[0]:7.2f} y={eyes[1]:7.2f} z={eyes[2]:7.2f}"
            f"  facing ({facing[0]:5.2f}, {facing[1]:5.2f}, {facing[2]:5.2f})"
        )
    driver.dispose()
    return history


def main():
    parser = argparse.ArgumentParser(description="Headless gaze tracking demo")
    parser.add_argument("--frames", type=int, default=120, help="Number of frames to run")
    parser.add_argument("--radius", type=float, default=1.5, help="Target orbit radius")
    parser.add_argument("--config", type=str, help="Rig config name under assets/config/")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    rig = load_rig_config(args.config) if args.config else GazeRigConfig()
    logger.info("Head limit %.1f deg, eye limit %.1f deg",
                rad_to_deg(rig.head_max_rotation), rad_to_deg(rig.eye_max_rotation))
    run_demo(args.frames, args.radius, rig)


if __name__ == "__main__":
    main()
