"""Game events and a simple publish/subscribe bus."""

from __future__ import annotations

import weakref
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from .ecs import Entity
from .geometry import Vector2i


class EventKind(Enum):
    OTHER = auto()
    TURN_END = auto()
    BOARD_READY = auto()
    BUMP = auto()
    HEALTH = auto()
    HEAL_POISON = auto()
    IMMUNITY = auto()
    REGENERATION = auto()
    POISON = auto()
    ATTACK = auto()
    HIT_PROJECTILE = auto()
    TRAVEL = auto()
    ASCEND = auto()
    PICK_ITEM = auto()
    USE_COLLECTABLE = auto()
    UPGRADE = auto()
    SPAWN = auto()
    WIN = auto()
    DEFEAT = auto()


@dataclass(frozen=True)
class GameEvent:
    """An event with the payload its kind carries.

    ``value`` is the health or poison change; ``animated`` tells whether a
    travel is shown as a walk.
    """

    kind: EventKind
    entity: Entity | None = None
    position: Vector2i | None = None
    value: int | None = None
    animated: bool | None = None


class Subscriber:
    """Receives every event published after it subscribed."""

    def __init__(self) -> None:
        self._queue: deque[Any] = deque()

    def _push(self, event: Any) -> None:
        self._queue.append(event)

    def read(self) -> list[Any]:
        """Return the pending events in publishing order and clear them."""
        events = list(self._queue)
        self._queue.clear()
        return events


class EventBus:
    """Delivers published events to all live subscribers."""

    def __init__(self) -> None:
        self._subscribers: weakref.WeakSet[Subscriber] = weakref.WeakSet()

    def subscribe(self) -> Subscriber:
        subscriber = Subscriber()
        self._subscribers.add(subscriber)
        return subscriber

    def publish(self, event: Any) -> None:
        for subscriber in list(self._subscribers):
            subscriber._push(event)