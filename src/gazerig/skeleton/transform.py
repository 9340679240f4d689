"""Local joint transform: translation, rotation quaternion, scale."""

from dataclasses import dataclass, field

import numpy as np

from gazerig.core.math_utils import (
    Mat4, Quat, Vec3,
    mat4_compose, quat_identity, quat_normalize, vec3,
)


@dataclass
class Transform:
    """Parent-relative joint transform.

    ``rotation`` is a unit quaternion [x, y, z, w].  The gaze solver rewrites
    it in place every frame; translation and scale are left alone.
    """
    translation: Vec3 = field(default_factory=vec3)
    rotation: Quat = field(default_factory=quat_identity)
    scale: Vec3 = field(default_factory=lambda: vec3(1, 1, 1))

    def __post_init__(self):
        self.translation = np.array(self.translation, dtype=np.float64)
        self.rotation = quat_normalize(np.array(self.rotation, dtype=np.float64))
        self.scale = np.array(self.scale, dtype=np.float64)

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    @classmethod
    def from_translation(cls, x: float, y: float, z: float) -> "Transform":
        return cls(translation=vec3(x, y, z))

    def copy(self) -> "Transform":
        return Transform(self.translation.copy(), self.rotation.copy(), self.scale.copy())

    def matrix(self) -> Mat4:
        """TRS matrix for this transform."""
        return mat4_compose(self.translation, self.rotation, self.scale)
