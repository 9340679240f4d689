"""Tests for gaze joint resolution and the Transform type."""

import numpy as np
import pytest

from gazerig.core.math_utils import quat_from_axis_angle, transform_point, vec3
from gazerig.core.state import GazeRigConfig
from gazerig.skeleton import (
    GazeJointIndices,
    JointIndexError,
    Transform,
    find_joint_index,
    resolve_gaze_joints,
)

HEAD = "root_mob/pelvis_mob/neck01_mob/head01_mob"
NAMES = [
    "root_mob",
    "root_mob/pelvis_mob",
    "root_mob/pelvis_mob/neck01_mob",
    HEAD,
    HEAD + "/FACIAL_C_FacialRoot_mob",
    HEAD + "/FACIAL_C_FacialRoot_mob/FACIAL_L_Eye_mob",
    HEAD + "/FACIAL_C_FacialRoot_mob/FACIAL_R_Eye_mob",
]


def test_find_joint_index_first_match():
    assert find_joint_index(["a/eye", "b/eye"], "eye") == 0


def test_find_joint_index_missing():
    assert find_joint_index(NAMES, "tail_mob") is None


def test_resolve_default_rig():
    idx = resolve_gaze_joints(NAMES, GazeRigConfig())
    assert idx == GazeJointIndices(head=3, left_eye=5, right_eye=6)


def test_head_suffix_needs_separator():
    # "/head01_mob" must not match "...superhead01_mob"
    names = ["root", "root/superhead01_mob"]
    assert find_joint_index(names, GazeRigConfig().head_suffix) is None


def test_resolve_missing_joint_lists_roles():
    with pytest.raises(JointIndexError) as exc:
        resolve_gaze_joints(NAMES[:5], GazeRigConfig())
    assert "left_eye" in str(exc.value)
    assert "right_eye" in str(exc.value)


def test_validate_against_short_transform_array():
    idx = GazeJointIndices(head=3, left_eye=5, right_eye=6)
    idx.validate(7)
    with pytest.raises(JointIndexError):
        idx.validate(6)


def test_joint_index_error_is_index_error():
    assert issubclass(JointIndexError, IndexError)


# ── Transform ─────────────────────────────────────────────────────────

class TestTransform:

    def test_identity(self):
        t = Transform.identity()
        np.testing.assert_array_equal(t.translation, [0, 0, 0])
        np.testing.assert_array_equal(t.rotation, [0, 0, 0, 1])
        np.testing.assert_array_equal(t.scale, [1, 1, 1])

    def test_rotation_normalized(self):
        t = Transform(rotation=[0.0, 0.0, 0.0, 2.0])
        np.testing.assert_array_equal(t.rotation, [0, 0, 0, 1])

    def test_copy_is_deep(self):
        t = Transform.from_translation(1, 2, 3)
        c = t.copy()
        c.translation[0] = 7.0
        assert t.translation[0] == 1.0

    def test_matrix(self):
        t = Transform(
            translation=vec3(1, 0, 0),
            rotation=quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2),
            scale=vec3(2, 2, 2),
        )
        p = transform_point(t.matrix(), vec3(1, 0, 0))
        np.testing.assert_array_almost_equal(p, [1, 2, 0])
