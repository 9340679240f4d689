"""Rebuild a joint tree from a flat, path-named joint list.

Asset loaders hand over skeletons as two parallel arrays: joint names whose
``/``-separated segments spell out the ancestry (``root/pelvis/spine01``) and
the matching local transforms.  ``build_hierarchy`` walks the arrays once,
resolves each joint's parent by dropping the last path segment, and returns a
``JointHierarchy`` whose nodes live in a single list indexed exactly like the
input.  Parent links are plain indices, so the tree has no reference cycles.

Joints whose parent path is not known at the time they are processed are
kept (descendants may still resolve against them) but left unattached; they
are reported as ``OrphanJoint`` diagnostics rather than raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from gazerig.constants import PATH_SEPARATOR
from gazerig.core.math_utils import Mat4, Vec3, mat4_identity, transform_point
from gazerig.core.scene_graph import SceneNode
from gazerig.skeleton.transform import Transform

logger = logging.getLogger(__name__)


class HierarchyBuildError(ValueError):
    """The joint list cannot produce a hierarchy."""


class LengthMismatchError(HierarchyBuildError):
    """Joint names and joint transforms differ in length."""

    def __init__(self, name_count: int, transform_count: int):
        super().__init__(
            f"The number of joint names ({name_count}) and transforms "
            f"({transform_count}) does not match"
        )
        self.name_count = name_count
        self.transform_count = transform_count


@dataclass(frozen=True)
class OrphanJoint:
    """A joint whose implied parent path was not found."""
    index: int
    name: str
    parent_name: str


@dataclass
class JointNode:
    """One joint in the rebuilt tree.

    ``parent`` and ``children`` are indices into ``JointHierarchy.nodes``.
    """
    index: int
    name: str
    local_transform: Transform
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)

    @property
    def short_name(self) -> str:
        """Last path segment of the joint name."""
        segments = split_path(self.name)
        return segments[-1] if segments else self.name


def split_path(name: str) -> list[str]:
    """Split a joint path into its non-empty segments."""
    return [s for s in name.split(PATH_SEPARATOR) if s]


def parent_path(name: str) -> str:
    """Joint path with its last segment removed (``""`` for top-level names)."""
    return PATH_SEPARATOR.join(split_path(name)[:-1])


class JointHierarchy:
    """Index-based joint tree produced by ``build_hierarchy``."""

    def __init__(self, nodes: list[JointNode], orphans: list[OrphanJoint]):
        self.nodes = nodes
        self.orphans = orphans
        self._orphan_indices = {o.index for o in orphans}

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def root(self) -> JointNode:
        return self.nodes[0]

    @property
    def parent_indices(self) -> list[Optional[int]]:
        return [n.parent for n in self.nodes]

    def node(self, index: int) -> JointNode:
        return self.nodes[index]

    def children_of(self, index: int) -> list[JointNode]:
        return [self.nodes[c] for c in self.nodes[index].children]

    def find(self, name: str) -> Optional[JointNode]:
        """Find the node with the given full path name."""
        for n in self.nodes:
            if n.name == name:
                return n
        return None

    def is_orphan(self, index: int) -> bool:
        return index in self._orphan_indices

    def ancestors(self, index: int) -> list[int]:
        """Indices from the parent of *index* up to the top of its subtree."""
        result = []
        parent = self.nodes[index].parent
        while parent is not None:
            result.append(parent)
            parent = self.nodes[parent].parent
        return result

    def depth(self, index: int) -> int:
        return len(self.ancestors(index))

    def traverse(self, callback: Callable[[JointNode], None], start: int = 0) -> None:
        """Visit *start* and its descendants depth-first, children in input order."""
        stack = [start]
        while stack:
            node = self.nodes[stack.pop()]
            callback(node)
            stack.extend(reversed(node.children))

    def _local(self, index: int, transforms: Optional[Sequence[Transform]]) -> Transform:
        if transforms is not None:
            return transforms[index]
        return self.nodes[index].local_transform

    def world_matrix(
        self,
        index: int,
        transforms: Optional[Sequence[Transform]] = None,
        model_matrix: Optional[Mat4] = None,
    ) -> Mat4:
        """Compose local matrices from the top of the chain down to *index*.

        *transforms* overrides the snapshot stored in the nodes (pass the live
        joint array to see the current pose); *model_matrix* places the whole
        skeleton in the world.
        """
        m = mat4_identity()
        for i in [index] + self.ancestors(index):
            m = self._local(i, transforms).matrix() @ m
        if model_matrix is not None:
            m = model_matrix @ m
        return m

    def local_to_world(
        self,
        index: int,
        point: Vec3,
        transforms: Optional[Sequence[Transform]] = None,
        model_matrix: Optional[Mat4] = None,
    ) -> Vec3:
        """Convert *point*, given in the parent space of joint *index*, to world space.

        Passing the joint's own translation yields the joint's world position.
        """
        parent = self.nodes[index].parent
        if parent is None:
            m = model_matrix if model_matrix is not None else mat4_identity()
        else:
            m = self.world_matrix(parent, transforms, model_matrix)
        return transform_point(m, point)

    def to_scene_nodes(self) -> list[SceneNode]:
        """Materialise the tree as scene nodes for a skeleton overlay.

        The list is indexed like the joints; element 0 is the overlay root.
        Orphans get nodes too, but they stay detached from the root's tree.
        """
        scene_nodes: list[SceneNode] = []
        for n in self.nodes:
            t = n.local_transform
            scene_nodes.append(
                SceneNode(name=n.name).set_pose(t.translation, t.rotation, t.scale)
            )
        for n in self.nodes:
            if n.parent is not None:
                scene_nodes[n.parent].add(scene_nodes[n.index])
        return scene_nodes


def build_hierarchy(
    names: Sequence[str],
    transforms: Sequence[Transform],
) -> JointHierarchy:
    """Build the joint tree in a single forward pass.

    Index 0 becomes the root.  Every later joint is attached to the joint
    whose full name equals its own name minus the last path segment; joints
    whose parent is unknown at that point become orphans.

    Raises:
        LengthMismatchError: ``len(names) != len(transforms)``.
        HierarchyBuildError: the joint list is empty.
    """
    if len(names) != len(transforms):
        raise LengthMismatchError(len(names), len(transforms))
    if not names:
        raise HierarchyBuildError("Cannot build a hierarchy from an empty joint list")

    lookup: dict[str, int] = {names[0]: 0}
    nodes = [JointNode(index=0, name=names[0], local_transform=transforms[0].copy())]
    orphans: list[OrphanJoint] = []

    for i in range(1, len(names)):
        name = names[i]
        node = JointNode(index=i, name=name, local_transform=transforms[i].copy())
        nodes.append(node)

        if name in lookup:
            logger.warning("Duplicate joint path %r (indices %d and %d)", name, lookup[name], i)
        lookup[name] = i

        parent_name = parent_path(name)
        parent = lookup.get(parent_name)
        if parent is None:
            logger.warning("Parent not found for joint %r (expected %r)", name, parent_name)
            orphans.append(OrphanJoint(index=i, name=name, parent_name=parent_name))
            continue
        node.parent = parent
        nodes[parent].children.append(i)

    logger.info("Built joint hierarchy: %d joints, %d orphans", len(nodes), len(orphans))
    return JointHierarchy(nodes, orphans)
