from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from detective_quest.errors import AllocationError

logger = logging.getLogger(__name__)


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"


class VisitKind(Enum):
    NO_CLUE = "no_clue"
    CLUE_FOUND = "clue_found"
    ALREADY_COLLECTED = "already_collected"


@dataclass(frozen=True)
class VisitOutcome:
    kind: VisitKind
    clue: Optional[str] = None


@dataclass(eq=False)
class Room:
    """A node of the mansion map. Children are owned; a room has one parent at most."""

    name: str
    clue: Optional[str] = None
    collected: bool = False
    left: Optional["Room"] = None
    right: Optional["Room"] = None

    def child(self, direction: Direction) -> Optional["Room"]:
        return self.left if direction is Direction.LEFT else self.right

    def exits(self) -> List[Direction]:
        return [d for d in Direction if self.child(d) is not None]


def create_room(name: str, clue: Optional[str] = None) -> Room:
    if not isinstance(name, str) or not name:
        raise ValueError("room name must be a non-empty string")
    try:
        return Room(name=name, clue=clue)
    except MemoryError as exc:
        raise AllocationError(f"room_allocation_failed: {name}", {"room": name}) from exc


def link(parent: Room, side: Direction, child: Room) -> None:
    # Callers keep the map acyclic; nothing is checked here.
    if side is Direction.LEFT:
        parent.left = child
    else:
        parent.right = child


def step(current: Room, direction: Direction) -> Optional[Room]:
    return current.child(direction)


def visit(room: Room) -> VisitOutcome:
    if room.clue is None:
        return VisitOutcome(VisitKind.NO_CLUE)
    if room.collected:
        return VisitOutcome(VisitKind.ALREADY_COLLECTED, room.clue)
    room.collected = True
    logger.debug("Collected clue %r in room %r", room.clue, room.name)
    return VisitOutcome(VisitKind.CLUE_FOUND, room.clue)


def iter_rooms(root: Optional[Room]) -> Iterator[Room]:
    """Pre-order walk: node, left subtree, right subtree."""
    stack = [root] if root is not None else []
    while stack:
        room = stack.pop()
        yield room
        if room.right is not None:
            stack.append(room.right)
        if room.left is not None:
            stack.append(room.left)


def release_rooms(root: Optional[Room]) -> int:
    """Tear the map down children-first. Returns the number of rooms released."""
    released = 0
    stack = [(root, False)] if root is not None else []
    while stack:
        room, expanded = stack.pop()
        if not expanded:
            stack.append((room, True))
            for child in (room.right, room.left):
                if child is not None:
                    stack.append((child, False))
            continue
        room.left = None
        room.right = None
        released += 1
    logger.debug("Released %d rooms", released)
    return released
