"""Skeleton model -- joint transforms, path-based hierarchy rebuild, joint lookup."""

from gazerig.skeleton.hierarchy import (
    HierarchyBuildError,
    JointHierarchy,
    JointNode,
    LengthMismatchError,
    OrphanJoint,
    build_hierarchy,
    parent_path,
)
from gazerig.skeleton.joint_lookup import (
    GazeJointIndices,
    JointIndexError,
    find_joint_index,
    resolve_gaze_joints,
)
from gazerig.skeleton.transform import Transform

__all__ = [
    "GazeJointIndices",
    "HierarchyBuildError",
    "JointHierarchy",
    "JointIndexError",
    "JointNode",
    "LengthMismatchError",
    "OrphanJoint",
    "Transform",
    "build_hierarchy",
    "find_joint_index",
    "parent_path",
    "resolve_gaze_joints",
]
