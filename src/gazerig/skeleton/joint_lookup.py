"""Resolve the head and eye joints of a loaded skeleton by name suffix."""

from dataclasses import dataclass
from typing import Optional, Sequence

from gazerig.core.state import GazeRigConfig


class JointIndexError(IndexError):
    """A joint the gaze rig needs is missing or out of range."""


@dataclass(frozen=True)
class GazeJointIndices:
    head: int
    left_eye: int
    right_eye: int

    def validate(self, count: int) -> None:
        for idx in (self.head, self.left_eye, self.right_eye):
            validate_index(idx, count)


def find_joint_index(names: Sequence[str], suffix: str) -> Optional[int]:
    """Return the first index whose joint name ends with *suffix*."""
    for i, name in enumerate(names):
        if name.endswith(suffix):
            return i
    return None


def validate_index(index: int, count: int) -> None:
    if not 0 <= index < count:
        raise JointIndexError(f"Joint index {index} outside transform array of {count}")


def resolve_gaze_joints(names: Sequence[str], rig: GazeRigConfig) -> GazeJointIndices:
    """Find the head, left-eye and right-eye joint indices.

    Raises:
        JointIndexError: any of the three joints is not present.
    """
    wanted = {
        "head": rig.head_suffix,
        "left_eye": rig.left_eye_suffix,
        "right_eye": rig.right_eye_suffix,
    }
    found = {}
    missing = []
    for role, suffix in wanted.items():
        idx = find_joint_index(names, suffix)
        if idx is None:
            missing.append(f"{role} (*{suffix})")
        else:
            found[role] = idx
    if missing:
        raise JointIndexError("Gaze joints not found: " + ", ".join(missing))
    return GazeJointIndices(**found)
