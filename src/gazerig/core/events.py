"""EventBus for decoupled publish/subscribe communication."""

from enum import Enum, auto
from typing import Any, Callable
from collections import defaultdict


class EventType(Enum):
    # Hierarchy build
    LOADING_STARTED = auto()      # data: joint_count (int)
    HIERARCHY_READY = auto()      # data: hierarchy (JointHierarchy), orphan_count (int)
    BUILD_FAILED = auto()         # data: error (Exception)
    ORPHAN_JOINT = auto()         # data: orphan (OrphanJoint)

    # Gaze target / frame events
    TARGET_MOVED = auto()         # data: position (Vec3)
    FRAME_UPDATE = auto()         # data: target_position (Vec3 | None)
    GAZE_UPDATED = auto()         # data: result (GazeResult)

    # Toggles
    GAZE_TRACKING_TOGGLED = auto()  # data: enabled (bool)


class EventBus:
    """Simple publish/subscribe event system."""

    def __init__(self):
        self._handlers: dict[EventType, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: Callable) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event_type: EventType, **data: Any) -> None:
        for handler in list(self._handlers[event_type]):
            handler(**data)

    def clear(self) -> None:
        self._handlers.clear()
