"""Per-frame gaze driver with a one-shot background hierarchy build.

Lifecycle::

    UNINITIALIZED --begin_load()--> BUILD_PENDING --build done--> READY
                                                 \\--build error--> FAILED

The hierarchy build runs on a ``concurrent.futures`` executor.  Its result
is picked up on the frame thread (inside ``on_frame``) and published in one
step: the overlay is attached to the owner, the hierarchy is stored and the
phase flips to READY together, so frame code never sees a half-attached tree.
The owner scene node is only weakly referenced; if it is gone when the build
finishes, the result is dropped.

Frames are no-ops until READY.  After that every frame turns the head and
the eye pair toward the latest target position.  Joint world positions come
from the live joint chain placed by the owner's world matrix, and the overlay
nodes are refreshed from the live pose after each solve.
"""

from __future__ import annotations

import logging
import weakref
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from enum import Enum, auto
from typing import MutableSequence, Optional, Sequence

from gazerig.animation.gaze import GazeResult, GazeSolver, WorldConverter
from gazerig.constants import BUILD_WORKERS
from gazerig.core.events import EventBus, EventType
from gazerig.core.math_utils import Mat4, Vec3
from gazerig.core.scene_graph import SceneNode
from gazerig.core.state import GazeRigConfig, GazeState
from gazerig.skeleton.hierarchy import JointHierarchy, build_hierarchy
from gazerig.skeleton.joint_lookup import JointIndexError, resolve_gaze_joints
from gazerig.skeleton.transform import Transform

logger = logging.getLogger(__name__)


class DriverPhase(Enum):
    UNINITIALIZED = auto()
    BUILD_PENDING = auto()
    READY = auto()
    FAILED = auto()
    DISPOSED = auto()


class FrameDriver:
    """Schedules the head and eye look-at once per rendered frame.

    Args:
        owner: Scene node the rebuilt skeleton overlay is attached to.
        event_bus: Bus for frame/target input and diagnostic output.
        rig: Joint suffixes, reference forward and rotation limits.
        executor: Executor for the hierarchy build.  A private single-thread
            pool is created (and shut down on ``dispose``) when omitted.
        converter: Local-to-world conversion override.  Defaults to the
            rebuilt hierarchy's parent chain placed by the owner's world
            matrix.
    """

    def __init__(
        self,
        owner: SceneNode,
        event_bus: EventBus,
        rig: Optional[GazeRigConfig] = None,
        executor: Optional[Executor] = None,
        converter: Optional[WorldConverter] = None,
    ) -> None:
        self._owner_ref = weakref.ref(owner)
        self.event_bus = event_bus
        self.rig = rig or GazeRigConfig()
        self._executor = executor
        self._owns_executor = executor is None
        self._converter = converter
        self._future: Optional[Future] = None

        self.phase = DriverPhase.UNINITIALIZED
        self.state = GazeState()
        self.transforms: Optional[MutableSequence[Transform]] = None
        self.hierarchy: Optional[JointHierarchy] = None
        self._overlay_nodes: list[SceneNode] = []
        self.solver: Optional[GazeSolver] = None

        event_bus.subscribe(EventType.TARGET_MOVED, self._on_target_moved)
        event_bus.subscribe(EventType.FRAME_UPDATE, self._on_frame_update)
        event_bus.subscribe(EventType.GAZE_TRACKING_TOGGLED, self._on_tracking_toggled)

    @property
    def ready(self) -> bool:
        return self.phase is DriverPhase.READY

    @property
    def owner(self) -> Optional[SceneNode]:
        return self._owner_ref()

    @property
    def overlay(self) -> Optional[SceneNode]:
        """Root of the skeleton overlay attached under the owner."""
        return self._overlay_nodes[0] if self._overlay_nodes else None

    def overlay_node(self, index: int) -> SceneNode:
        """Overlay node mirroring joint *index*."""
        return self._overlay_nodes[index]

    # ── Loading ──────────────────────────────────────────────────────

    def begin_load(self, names: Sequence[str], transforms: MutableSequence[Transform]) -> None:
        """Resolve the gaze joints and start the background hierarchy build.

        *transforms* is the live joint array; head and eye rotations are
        written into it every frame once the driver is READY.
        """
        if self.phase is not DriverPhase.UNINITIALIZED:
            raise RuntimeError(f"begin_load() called in phase {self.phase.name}")

        names = list(names)
        self.transforms = transforms

        try:
            indices = resolve_gaze_joints(names, self.rig)
            indices.validate(len(transforms))
            self.solver = GazeSolver.from_rig(indices, self.rig)
        except JointIndexError as e:
            logger.warning("Gaze tracking disabled: %s", e)
            self.state.tracking_enabled = False

        self.phase = DriverPhase.BUILD_PENDING
        self.event_bus.publish(EventType.LOADING_STARTED, joint_count=len(names))
        self._future = self._get_executor().submit(build_hierarchy, names, list(transforms))

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=BUILD_WORKERS, thread_name_prefix="hierarchy-build",
            )
        return self._executor

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the pending build finishes, then hand it over.

        Must be called from the frame thread.  Returns True when READY.
        """
        if self._future is not None:
            wait([self._future], timeout=timeout)
            self._poll_build()
        return self.ready

    def _poll_build(self) -> None:
        future = self._future
        if future is None or not future.done():
            return
        self._future = None

        owner = self._owner_ref()
        if owner is None:
            logger.warning("Owner node gone before the hierarchy build finished; discarding it")
            self._shutdown()
            return

        try:
            hierarchy = future.result()
        except Exception as e:
            logger.error("Hierarchy build failed: %s", e)
            self.phase = DriverPhase.FAILED
            self.event_bus.publish(EventType.BUILD_FAILED, error=e)
            return

        overlay_nodes = hierarchy.to_scene_nodes()
        owner.add(overlay_nodes[0])
        owner.update_world_matrix()
        self.hierarchy = hierarchy
        self._overlay_nodes = overlay_nodes
        self.phase = DriverPhase.READY

        for orphan in hierarchy.orphans:
            self.event_bus.publish(EventType.ORPHAN_JOINT, orphan=orphan)
        self.event_bus.publish(
            EventType.HIERARCHY_READY,
            hierarchy=hierarchy, orphan_count=len(hierarchy.orphans),
        )

    # ── Per-frame ────────────────────────────────────────────────────

    def set_target(self, position: Vec3) -> None:
        """Raises ValueError if *position* is not a 3-vector."""
        self.state.set_target(position)

    def _accept_target(self, position) -> None:
        try:
            self.state.set_target(position)
        except ValueError as e:
            logger.warning("Ignoring target %r, keeping the previous one: %s", position, e)

    def set_tracking_enabled(self, enabled: bool) -> None:
        if enabled and self.solver is None:
            logger.warning("Cannot enable gaze tracking: gaze joints were not resolved")
            return
        self.state.tracking_enabled = enabled

    def on_frame(self, target_position: Optional[Vec3] = None) -> Optional[GazeResult]:
        """Advance one frame.  Returns the frame's result, or None when idle."""
        if self.phase is DriverPhase.BUILD_PENDING:
            self._poll_build()
        if target_position is not None:
            self._accept_target(target_position)

        if self.phase is not DriverPhase.READY:
            return None
        owner = self._owner_ref()
        if owner is None:
            logger.info("Owner node gone; stopping gaze updates")
            self.dispose()
            return None
        if not self.state.tracking_enabled or self.solver is None or self.state.target is None:
            return None

        to_world = self._converter or self._chain_converter(owner.compute_world_matrix())
        result = self.solver.solve(self.transforms, self.state.target, to_world)
        self._sync_overlay()
        self.state.frame_count += 1
        self.state.held_joints = set(result.held)
        self.event_bus.publish(EventType.GAZE_UPDATED, result=result)
        return result

    def _chain_converter(self, placement: Mat4) -> WorldConverter:
        hierarchy, transforms = self.hierarchy, self.transforms

        def to_world(index: int, point: Vec3) -> Vec3:
            return hierarchy.local_to_world(index, point, transforms, placement)

        return to_world

    def _sync_overlay(self) -> None:
        """Copy the live joint pose onto the overlay and refresh its matrices."""
        for node, t in zip(self._overlay_nodes, self.transforms):
            node.set_pose(t.translation, t.rotation, t.scale)
        self._overlay_nodes[0].update_world_matrix()

    # ── Event handlers ───────────────────────────────────────────────

    def _on_target_moved(self, position: Vec3, **_) -> None:
        self._accept_target(position)

    def _on_frame_update(self, target_position: Optional[Vec3] = None, **_) -> None:
        self.on_frame(target_position)

    def _on_tracking_toggled(self, enabled: bool, **_) -> None:
        self.set_tracking_enabled(enabled)

    # ── Teardown ─────────────────────────────────────────────────────

    def dispose(self) -> None:
        """Drop any in-flight build, detach the overlay and stop listening."""
        if self.phase is DriverPhase.DISPOSED:
            return
        if self._future is not None:
            self._future.cancel()
            self._future = None
        overlay = self.overlay
        if overlay is not None and overlay.parent is not None:
            overlay.parent.remove(overlay)
        self._overlay_nodes = []
        self._shutdown()

    def _shutdown(self) -> None:
        self.event_bus.unsubscribe(EventType.TARGET_MOVED, self._on_target_moved)
        self.event_bus.unsubscribe(EventType.FRAME_UPDATE, self._on_frame_update)
        self.event_bus.unsubscribe(EventType.GAZE_TRACKING_TOGGLED, self._on_tracking_toggled)
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
        self.phase = DriverPhase.DISPOSED
