"""Rig configuration and per-run gaze state."""

from dataclasses import dataclass, field
from typing import Any, Optional

from gazerig.constants import (
    DEFAULT_REFERENCE_FORWARD,
    EYE_MAX_ROTATION,
    HEAD_JOINT_SUFFIX,
    HEAD_MAX_ROTATION,
    LEFT_EYE_JOINT_SUFFIX,
    RIGHT_EYE_JOINT_SUFFIX,
)
from gazerig.core.config_loader import load_config
from gazerig.core.math_utils import Vec3, as_vec3, deg_to_rad, rad_to_deg


@dataclass
class GazeRigConfig:
    """Which joints the gaze drives and how far they may turn.

    Joints are matched by name suffix; rotation limits are radians.
    """
    head_suffix: str = HEAD_JOINT_SUFFIX
    left_eye_suffix: str = LEFT_EYE_JOINT_SUFFIX
    right_eye_suffix: str = RIGHT_EYE_JOINT_SUFFIX
    reference_forward: tuple[float, float, float] = DEFAULT_REFERENCE_FORWARD
    head_max_rotation: float = HEAD_MAX_ROTATION
    eye_max_rotation: float = EYE_MAX_ROTATION

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GazeRigConfig":
        """Build from a JSON-style dict.

        Limits may be given as ``*_max_rotation`` (radians) or
        ``*_max_rotation_deg``; missing keys keep their defaults.
        """
        cfg = cls()
        for key in ("head_suffix", "left_eye_suffix", "right_eye_suffix"):
            if key in data:
                setattr(cfg, key, str(data[key]))
        if "reference_forward" in data:
            fwd = tuple(float(c) for c in data["reference_forward"])
            if len(fwd) != 3:
                raise ValueError(f"reference_forward needs 3 components, got {len(fwd)}")
            cfg.reference_forward = fwd
        for joint in ("head", "eye"):
            rad_key = f"{joint}_max_rotation"
            deg_key = f"{joint}_max_rotation_deg"
            if rad_key in data:
                setattr(cfg, rad_key, float(data[rad_key]))
            elif deg_key in data:
                setattr(cfg, rad_key, deg_to_rad(float(data[deg_key])))
        return cfg

    def to_dict(self) -> dict[str, Any]:
        return {
            "head_suffix": self.head_suffix,
            "left_eye_suffix": self.left_eye_suffix,
            "right_eye_suffix": self.right_eye_suffix,
            "reference_forward": list(self.reference_forward),
            "head_max_rotation_deg": rad_to_deg(self.head_max_rotation),
            "eye_max_rotation_deg": rad_to_deg(self.eye_max_rotation),
        }


def load_rig_config(name: str = "gaze_rig.json") -> GazeRigConfig:
    """Load a rig config from assets/config/."""
    return GazeRigConfig.from_dict(load_config(name))


@dataclass
class GazeState:
    """Mutable per-run state owned by the frame driver."""
    tracking_enabled: bool = True
    target: Optional[Vec3] = None
    frame_count: int = 0
    held_joints: set[int] = field(default_factory=set)

    def set_target(self, position) -> None:
        self.target = as_vec3(position)
