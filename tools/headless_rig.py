"""Synthetic character skeleton for headless gaze runs.

Builds the flat (names, transforms) pair an asset loader would hand over for
a humanoid rig whose head and eyes match the default ``GazeRigConfig``
suffixes.

Usage::

    names, transforms = make_demo_skeleton()
    driver = make_headless_driver(names, transforms)
"""

from __future__ import annotations

from typing import Optional

from gazerig.core.events import EventBus
from gazerig.core.scene_graph import SceneNode
from gazerig.core.state import GazeRigConfig
from gazerig.coordination.frame_driver import FrameDriver
from gazerig.skeleton.transform import Transform

# (path segment, parent-relative translation); each entry nests under the previous
_SPINE_CHAIN: list[tuple[str, tuple[float, float, float]]] = [
    ("root_mob", (0.0, 0.0, 0.0)),
    ("pelvis_mob", (0.0, 0.0, 0.95)),
    ("spine01_mob", (0.0, 0.0, 0.08)),
    ("spine02_mob", (0.0, 0.0, 0.08)),
    ("spine03_mob", (0.0, 0.0, 0.08)),
    ("spine04_mob", (0.0, 0.0, 0.08)),
    ("spine05_mob", (0.0, 0.0, 0.08)),
    ("neck01_mob", (0.0, 0.0, 0.10)),
    ("neck02_mob", (0.0, 0.0, 0.05)),
    ("head01_mob", (0.0, 0.0, 0.06)),
]

# Children of head01_mob: (relative path, translation)
_FACE_JOINTS: list[tuple[str, tuple[float, float, float]]] = [
    ("FACIAL_C_FacialRoot_mob", (0.0, 0.04, 0.08)),
    ("FACIAL_C_FacialRoot_mob/FACIAL_L_Eye_mob", (0.032, 0.05, 0.03)),
    ("FACIAL_C_FacialRoot_mob/FACIAL_R_Eye_mob", (-0.032, 0.05, 0.03)),
    ("FACIAL_C_Jaw_mob", (0.0, 0.03, -0.02)),
]

# Side branches hanging off the spine: (parent segment, name, translation)
_LIMB_JOINTS: list[tuple[str, str, tuple[float, float, float]]] = [
    ("pelvis_mob", "thigh_l_mob", (0.09, 0.0, -0.05)),
    ("pelvis_mob", "thigh_r_mob", (-0.09, 0.0, -0.05)),
    ("spine05_mob", "clavicle_l_mob", (0.04, 0.02, 0.05)),
    ("spine05_mob", "clavicle_r_mob", (-0.04, 0.02, 0.05)),
]


def make_demo_skeleton() -> tuple[list[str], list[Transform]]:
    """Return parallel joint name and local transform lists, root first."""
    names: list[str] = []
    transforms: list[Transform] = []
    paths: dict[str, str] = {}

    prefix = ""
    for segment, offset in _SPINE_CHAIN:
        path = f"{prefix}{segment}"
        paths[segment] = path
        names.append(path)
        transforms.append(Transform.from_translation(*offset))
        prefix = path + "/"

    for parent, segment, offset in _LIMB_JOINTS:
        names.append(f"{paths[parent]}/{segment}")
        transforms.append(Transform.from_translation(*offset))

    head = paths["head01_mob"]
    for rel, offset in _FACE_JOINTS:
        names.append(f"{head}/{rel}")
        transforms.append(Transform.from_translation(*offset))

    return names, transforms


def make_headless_driver(
    names: list[str],
    transforms: list[Transform],
    rig: Optional[GazeRigConfig] = None,
    timeout: float = 5.0,
) -> tuple[FrameDriver, SceneNode, EventBus]:
    """Create a driver, build the hierarchy and wait until it is READY.

    The caller must keep the returned owner node alive.
    """
    bus = EventBus()
    owner = SceneNode(name="character")
    driver = FrameDriver(owner, bus, rig=rig)
    driver.begin_load(names, transforms)
    driver.wait_until_ready(timeout=timeout)
    return driver, owner, bus
