"""Tests for the path-name joint hierarchy builder."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from gazerig.core.math_utils import quat_from_axis_angle, vec3
from gazerig.core.scene_graph import SceneNode
from gazerig.skeleton.hierarchy import (
    HierarchyBuildError,
    LengthMismatchError,
    OrphanJoint,
    build_hierarchy,
    parent_path,
)
from gazerig.skeleton.transform import Transform


# ── Helpers ───────────────────────────────────────────────────────────

def _identities(n: int) -> list[Transform]:
    return [Transform.identity() for _ in range(n)]


def _build(names: list[str]):
    return build_hierarchy(names, _identities(len(names)))


# ── parent_path ───────────────────────────────────────────────────────

def test_parent_path_drops_last_segment():
    assert parent_path("root/pelvis/spine01") == "root/pelvis"


def test_parent_path_top_level():
    assert parent_path("root") == ""


def test_parent_path_ignores_empty_segments():
    assert parent_path("root//spine/") == "root"


# ── Scenarios ─────────────────────────────────────────────────────────

class TestChain:

    def test_three_node_chain(self):
        h = _build(["root", "root/spine", "root/spine/head"])
        assert len(h) == 3
        assert h.orphans == []
        assert h.root.name == "root"
        assert h.root.parent is None
        assert [n.name for n in h.children_of(0)] == ["root/spine"]
        assert [n.name for n in h.children_of(1)] == ["root/spine/head"]
        assert h.node(2).parent == 1
        assert h.depth(2) == 2

    def test_children_keep_input_order(self):
        h = _build(["root", "root/c", "root/a", "root/b"])
        assert [n.name for n in h.children_of(0)] == ["root/c", "root/a", "root/b"]

    def test_parent_indices(self):
        h = _build(["root", "root/a", "root/a/b", "root/c"])
        assert h.parent_indices == [None, 0, 1, 0]

    def test_short_name(self):
        h = _build(["root", "root/spine"])
        assert h.node(1).short_name == "spine"

    def test_traverse_depth_first(self):
        h = _build(["root", "root/a", "root/b", "root/a/x", "root/b/y"])
        visited = []
        h.traverse(lambda n: visited.append(n.name))
        assert visited == ["root", "root/a", "root/a/x", "root/b", "root/b/y"]


class TestOrphans:

    def test_missing_parent_reported(self):
        h = _build(["root", "root/headX", "root/missing/eye"])
        assert len(h) == 3
        assert h.orphans == [OrphanJoint(index=2, name="root/missing/eye", parent_name="root/missing")]
        node = h.find("root/missing/eye")
        assert node is not None
        assert node.parent is None
        assert h.is_orphan(2)
        assert [n.name for n in h.children_of(0)] == ["root/headX"]

    def test_orphan_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="gazerig.skeleton.hierarchy"):
            _build(["root", "root/missing/eye"])
        assert "root/missing/eye" in caplog.text

    def test_descendants_resolve_against_orphan(self):
        h = _build(["root", "root/a/b", "root/a/b/c"])
        assert [o.index for o in h.orphans] == [1]
        assert h.node(2).parent == 1
        assert h.ancestors(2) == [1]

    def test_child_before_parent_is_orphan(self):
        h = _build(["root", "root/a/b", "root/a"])
        assert [o.name for o in h.orphans] == ["root/a/b"]
        assert h.node(2).parent == 0

    def test_root_count_matches_orphans(self):
        names = ["root", "root/a", "x/y", "root/a/b", "z"]
        h = _build(names)
        roots = [n for n in h.nodes if n.parent is None]
        assert len(h) == len(names)
        assert len(roots) == 1 + len(h.orphans)
        for n in h.nodes[1:]:
            if not h.is_orphan(n.index):
                assert h.node(n.parent).name == parent_path(n.name)


class TestErrors:

    def test_length_mismatch(self):
        with pytest.raises(LengthMismatchError) as exc:
            build_hierarchy(["root", "root/a"], _identities(3))
        assert exc.value.name_count == 2
        assert exc.value.transform_count == 3

    def test_length_mismatch_is_build_error(self):
        with pytest.raises(HierarchyBuildError):
            build_hierarchy(["root"], [])

    def test_empty(self):
        with pytest.raises(HierarchyBuildError):
            build_hierarchy([], [])

    def test_duplicate_path_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="gazerig.skeleton.hierarchy"):
            h = _build(["root", "root/a", "root/a", "root/a/b"])
        assert "Duplicate" in caplog.text
        # later entry wins the lookup
        assert h.node(3).parent == 2


# ── Transforms ────────────────────────────────────────────────────────

class TestWorldSpace:

    def _rotated_pair(self):
        root = Transform(
            translation=vec3(0, 0, 1),
            rotation=quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2),
        )
        child = Transform.from_translation(0, 1, 0)
        return build_hierarchy(["root", "root/child"], [root, child]), [root, child]

    def test_local_to_world_follows_parent_chain(self):
        h, transforms = self._rotated_pair()
        p = h.local_to_world(1, transforms[1].translation)
        np.testing.assert_array_almost_equal(p, [-1, 0, 1])

    def test_root_position(self):
        h, transforms = self._rotated_pair()
        np.testing.assert_array_almost_equal(h.local_to_world(0, transforms[0].translation), [0, 0, 1])

    def test_model_matrix_applied(self):
        h, transforms = self._rotated_pair()
        model = np.eye(4)
        model[:3, 3] = [10, 0, 0]
        p = h.local_to_world(1, transforms[1].translation, model_matrix=model)
        np.testing.assert_array_almost_equal(p, [9, 0, 1])

    def test_live_transforms_override_snapshot(self):
        h, transforms = self._rotated_pair()
        live = [t.copy() for t in transforms]
        live[0].rotation = np.array([0.0, 0.0, 0.0, 1.0])
        p = h.local_to_world(1, live[1].translation, transforms=live)
        np.testing.assert_array_almost_equal(p, [0, 1, 1])

    def test_world_matrix_of_child(self):
        h, _ = self._rotated_pair()
        m = h.world_matrix(1)
        np.testing.assert_array_almost_equal(m[:3, 3], [-1, 0, 1])

    def test_snapshot_independent_of_input(self):
        names = ["root", "root/a"]
        transforms = _identities(2)
        h = build_hierarchy(names, transforms)
        transforms[1].translation[0] = 5.0
        assert h.node(1).local_transform.translation[0] == 0.0


class TestSceneOverlay:

    def test_overlay_matches_tree(self):
        names = ["root", "root/spine", "root/spine/head", "root/lost/eye"]
        transforms = [
            Transform.from_translation(0, 0, 1),
            Transform.from_translation(0, 0, 0.5),
            Transform.from_translation(0, 0.1, 0.2),
            Transform.identity(),
        ]
        h = build_hierarchy(names, transforms)
        nodes = h.to_scene_nodes()
        overlay = nodes[0]
        overlay.update_world_matrix()

        assert [n.name for n in nodes] == names
        assert overlay.find("root/spine/head") is nodes[2]
        np.testing.assert_array_almost_equal(
            nodes[2].world_position,
            h.local_to_world(2, transforms[2].translation),
        )
        assert overlay.find("root/lost/eye") is None
        assert nodes[3].parent is None

    def test_overlay_placed_under_owner(self):
        names = ["root", "root/head"]
        transforms = [Transform.from_translation(0, 0, 1), Transform.from_translation(0, 0, 0.5)]
        h = build_hierarchy(names, transforms)
        owner = SceneNode(name="character").set_position(2, 0, 0)
        nodes = h.to_scene_nodes()
        owner.add(nodes[0])
        owner.update_world_matrix()
        np.testing.assert_array_almost_equal(
            nodes[1].world_position,
            h.local_to_world(1, transforms[1].translation, model_matrix=owner.world_matrix),
        )
        np.testing.assert_array_almost_equal(nodes[1].world_position, [2, 0, 1.5])
