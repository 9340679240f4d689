"""Constrained look-at rotations for the head and eye joints.

Each frame the target (usually the viewer's position) is turned into a
direction from the joint's world position, the shortest-arc rotation from the
joint's rest-pose forward vector onto that direction is computed, and the
rotation is clamped per Euler axis before being written back as the joint's
local rotation.

The eyes share one gaze: each eye's direction to the target is computed
separately, the two are averaged and renormalized, and the same rotation is
written to both eye joints, so the eyes always stay parallel.

This module has ZERO GL imports; all math is done with NumPy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, MutableSequence

import numpy as np

from gazerig.constants import DEGENERATE_EPSILON
from gazerig.core.math_utils import (
    Mat4, Quat, Vec3,
    clamp_euler, euler_to_quaternion, normalize, quat_from_vectors,
    quat_rotate_vec3, quaternion_to_euler, transform_point,
)
from gazerig.core.state import GazeRigConfig
from gazerig.skeleton.joint_lookup import GazeJointIndices
from gazerig.skeleton.transform import Transform

logger = logging.getLogger(__name__)

# (joint_index, point in the joint's parent space) -> world-space point
WorldConverter = Callable[[int, Vec3], Vec3]


class DegenerateDirectionError(ArithmeticError):
    """Target and joint coincide, so there is no direction to look along."""


def identity_converter(index: int, point: Vec3) -> Vec3:
    """Treat joint-space points as already being in world space."""
    return np.array(point, dtype=np.float64)


def model_space_converter(model_matrix: Mat4) -> WorldConverter:
    """Convert a joint's translation as a point in the model's space.

    Ignores the joint's ancestry; only the model's world matrix is applied.
    """
    m = np.array(model_matrix, dtype=np.float64)

    def convert(index: int, point: Vec3) -> Vec3:
        return transform_point(m, point)

    return convert


@dataclass(frozen=True)
class JointGazeConfig:
    """Static per-joint gaze settings."""
    joint_index: int
    reference_forward: tuple[float, float, float]
    max_rotation: float

    def __post_init__(self):
        fwd = np.array(self.reference_forward, dtype=np.float64)
        if fwd.shape != (3,) or np.linalg.norm(fwd) < DEGENERATE_EPSILON:
            raise ValueError(f"Invalid reference forward vector: {self.reference_forward!r}")
        if self.max_rotation < 0:
            raise ValueError(f"max_rotation must be >= 0, got {self.max_rotation}")
        object.__setattr__(self, "reference_forward", tuple(float(c) for c in normalize(fwd)))

    @property
    def forward(self) -> Vec3:
        return np.array(self.reference_forward, dtype=np.float64)

    def facing(self, rotation: Quat) -> Vec3:
        """Direction the joint looks along under *rotation*, in its parent space."""
        return quat_rotate_vec3(rotation, self.forward)


def direction_to(origin: Vec3, target: Vec3) -> Vec3:
    """Unit vector from *origin* toward *target*.

    Raises:
        DegenerateDirectionError: the points coincide or are not finite.
    """
    delta = np.asarray(target, dtype=np.float64) - np.asarray(origin, dtype=np.float64)
    length = float(np.linalg.norm(delta))
    if not np.isfinite(length) or length < DEGENERATE_EPSILON:
        raise DegenerateDirectionError(f"No direction from {origin} to {target}")
    return delta / length


def limited_rotation(reference_forward: Vec3, direction: Vec3, max_rotation: float) -> Quat:
    """Rotation from *reference_forward* onto *direction*, clamped per Euler axis."""
    rotation = quat_from_vectors(reference_forward, direction)
    angles = clamp_euler(quaternion_to_euler(rotation), max_rotation)
    return euler_to_quaternion(angles)


def _joint_direction(
    joint_index: int,
    transforms: MutableSequence[Transform],
    target: Vec3,
    to_world: WorldConverter,
) -> Vec3:
    position = to_world(joint_index, transforms[joint_index].translation)
    return direction_to(position, target)


def _single_rotation(joint_index, transforms, target, reference_forward, max_rotation, to_world) -> Quat:
    direction = _joint_direction(joint_index, transforms, target, to_world)
    return limited_rotation(reference_forward, direction, max_rotation)


def _dual_rotation(left_index, right_index, transforms, target, reference_forward,
                   max_rotation, to_world) -> Quat:
    left = _joint_direction(left_index, transforms, target, to_world)
    right = _joint_direction(right_index, transforms, target, to_world)
    average = (left + right) / 2.0
    if np.linalg.norm(average) < DEGENERATE_EPSILON:
        raise DegenerateDirectionError("Eye directions cancel out")
    return limited_rotation(reference_forward, normalize(average), max_rotation)


def single_joint_look_at(
    joint_index: int,
    transforms: MutableSequence[Transform],
    target: Vec3,
    reference_forward: Vec3,
    max_rotation: float,
    to_world: WorldConverter = identity_converter,
) -> Quat:
    """Turn one joint toward *target* and write the clamped local rotation.

    When the target sits on the joint the joint keeps its current rotation.
    Returns the joint's rotation after the update.
    """
    transform = transforms[joint_index]
    try:
        rotation = _single_rotation(joint_index, transforms, target,
                                    reference_forward, max_rotation, to_world)
    except DegenerateDirectionError as e:
        logger.debug("Joint %d holds its rotation: %s", joint_index, e)
        return transform.rotation.copy()
    transform.rotation = rotation
    return rotation.copy()


def dual_joint_look_at(
    left_index: int,
    right_index: int,
    transforms: MutableSequence[Transform],
    target: Vec3,
    reference_forward: Vec3,
    max_rotation: float,
    to_world: WorldConverter = identity_converter,
) -> Quat:
    """Turn an eye pair toward *target* along their averaged direction.

    Both joints receive the identical rotation.  If either eye has no
    direction, or the two directions cancel, both eyes keep their current
    rotations and the left eye's rotation is returned.
    """
    try:
        rotation = _dual_rotation(left_index, right_index, transforms, target,
                                  reference_forward, max_rotation, to_world)
    except DegenerateDirectionError as e:
        logger.debug("Eyes %d/%d hold their rotation: %s", left_index, right_index, e)
        return transforms[left_index].rotation.copy()
    transforms[left_index].rotation = rotation
    transforms[right_index].rotation = rotation.copy()
    return rotation.copy()


@dataclass
class GazeResult:
    """Rotations written during one frame."""
    head: Quat
    eyes: Quat
    held: list[int] = field(default_factory=list)


class GazeSolver:
    """Runs the head look-at and the eye-pair look-at for one frame.

    The eye pair uses the left eye's reference forward and limit.
    """

    def __init__(
        self,
        head: JointGazeConfig,
        left_eye: JointGazeConfig,
        right_eye: JointGazeConfig,
    ) -> None:
        self.head = head
        self.left_eye = left_eye
        self.right_eye = right_eye
        if (left_eye.reference_forward != right_eye.reference_forward
                or left_eye.max_rotation != right_eye.max_rotation):
            logger.warning("Eye configs differ; using the left eye's forward and limit")

    @classmethod
    def from_rig(cls, indices: GazeJointIndices, rig: GazeRigConfig) -> "GazeSolver":
        fwd = rig.reference_forward
        return cls(
            head=JointGazeConfig(indices.head, fwd, rig.head_max_rotation),
            left_eye=JointGazeConfig(indices.left_eye, fwd, rig.eye_max_rotation),
            right_eye=JointGazeConfig(indices.right_eye, fwd, rig.eye_max_rotation),
        )

    @property
    def joint_indices(self) -> tuple[int, int, int]:
        return (self.head.joint_index, self.left_eye.joint_index, self.right_eye.joint_index)

    def solve(
        self,
        transforms: MutableSequence[Transform],
        target: Vec3,
        to_world: WorldConverter = identity_converter,
    ) -> GazeResult:
        """Update head and eye rotations in *transforms*.

        A joint whose computation fails this frame keeps its previous
        rotation; nothing is raised to the caller.
        """
        held: list[int] = []
        head_idx = self.head.joint_index
        try:
            head_rot = _single_rotation(head_idx, transforms, target, self.head.forward,
                                        self.head.max_rotation, to_world)
            transforms[head_idx].rotation = head_rot
        except ArithmeticError as e:
            logger.debug("Head joint %d holds its rotation: %s", head_idx, e)
            held.append(head_idx)

        left_idx = self.left_eye.joint_index
        right_idx = self.right_eye.joint_index
        try:
            eye_rot = _dual_rotation(left_idx, right_idx, transforms, target,
                                     self.left_eye.forward, self.left_eye.max_rotation,
                                     to_world)
            transforms[left_idx].rotation = eye_rot
            transforms[right_idx].rotation = eye_rot.copy()
        except ArithmeticError as e:
            logger.debug("Eye joints %d/%d hold their rotation: %s", left_idx, right_idx, e)
            held.extend((left_idx, right_idx))

        return GazeResult(
            head=transforms[head_idx].rotation.copy(),
            eyes=transforms[left_idx].rotation.copy(),
            held=held,
        )
