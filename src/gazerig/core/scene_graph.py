"""Scene nodes that place a character and carry its skeleton overlay.

A node owns its children but only weakly references its parent, so a
subtree never keeps an ancestor alive: dropping the last outside reference
to a character node frees it at once, overlay attached or not.
"""

import weakref
from typing import Optional

from gazerig.core.math_utils import (
    Mat4, Quat, Vec3,
    as_vec3, mat4_compose, mat4_identity, quat_identity, quat_normalize, vec3,
)


class SceneNode:
    """Named node with a position/quaternion/scale pose.

    ``world_matrix`` is a cache filled by ``update_world_matrix``;
    ``compute_world_matrix`` walks the ancestor chain on demand instead.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.children: list["SceneNode"] = []
        self._parent_ref: Optional[weakref.ref] = None

        self.position: Vec3 = vec3()
        self.quaternion: Quat = quat_identity()
        self.scale: Vec3 = vec3(1, 1, 1)
        self.world_matrix: Mat4 = mat4_identity()

    @property
    def parent(self) -> Optional["SceneNode"]:
        return self._parent_ref() if self._parent_ref is not None else None

    def add(self, child: "SceneNode") -> "SceneNode":
        """Attach *child*, detaching it from its current parent first."""
        previous = child.parent
        if previous is not None:
            previous.remove(child)
        child._parent_ref = weakref.ref(self)
        self.children.append(child)
        return self

    def remove(self, child: "SceneNode") -> "SceneNode":
        if child in self.children:
            self.children.remove(child)
            child._parent_ref = None
        return self

    def set_position(self, x: float, y: float, z: float) -> "SceneNode":
        self.position = vec3(x, y, z)
        return self

    def set_quaternion(self, q: Quat) -> "SceneNode":
        self.quaternion = quat_normalize(q.copy())
        return self

    def set_pose(self, position: Vec3, quaternion: Quat, scale: Vec3) -> "SceneNode":
        """Replace the whole local pose in one call."""
        self.position = as_vec3(position)
        self.quaternion = quat_normalize(quaternion.copy())
        self.scale = as_vec3(scale)
        return self

    @property
    def local_matrix(self) -> Mat4:
        return mat4_compose(self.position, self.quaternion, self.scale)

    def compute_world_matrix(self) -> Mat4:
        """Compose local matrices from the top-most ancestor down to this node.

        Reads live poses only; cached ``world_matrix`` values are ignored.
        """
        m = self.local_matrix
        node = self.parent
        while node is not None:
            m = node.local_matrix @ m
            node = node.parent
        return m

    def update_world_matrix(self) -> Mat4:
        """Refresh ``world_matrix`` for this node and every descendant.

        Returns this node's world matrix.
        """
        self.world_matrix = self.compute_world_matrix()
        stack = list(self.children)
        while stack:
            node = stack.pop()
            node.world_matrix = node.parent.world_matrix @ node.local_matrix
            stack.extend(node.children)
        return self.world_matrix

    @property
    def world_position(self) -> Vec3:
        """Translation of the cached world matrix."""
        return self.world_matrix[:3, 3].copy()

    def find(self, name: str) -> Optional["SceneNode"]:
        """First node named *name* in this subtree, depth-first."""
        stack = [self]
        while stack:
            node = stack.pop()
            if node.name == name:
                return node
            stack.extend(reversed(node.children))
        return None
