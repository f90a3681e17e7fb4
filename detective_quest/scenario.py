from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from detective_quest.errors import ScenarioError
from detective_quest.rooms import Direction, Room, create_room, link
from detective_quest.session import DEFAULT_THRESHOLD, Command
from detective_quest.suspects import DEFAULT_TABLE_SIZE, AssociationTable

logger = logging.getLogger(__name__)

DEFAULT_COMMANDS = {"left": "e", "right": "d", "quit": "s"}

# The default mansion:
#
#               Entrance Hall
#              /             \
#         Library           Living Room
#         /     \            /       \
#    Kitchen   Garden   Corridor   Workshop
MANSION: Dict[str, Any] = {
    "name": "mansion",
    "start": "hall",
    "rooms": [
        {"id": "hall", "name": "Entrance Hall", "left": "library", "right": "living_room"},
        {"id": "library", "name": "Library", "clue": "Dusty glove mark", "left": "kitchen", "right": "garden"},
        {
            "id": "living_room",
            "name": "Living Room",
            "clue": "Broken glass with footprints",
            "left": "corridor",
            "right": "workshop",
        },
        {"id": "kitchen", "name": "Kitchen", "clue": "Herbal tea residue"},
        {"id": "garden", "name": "Garden"},
        {"id": "corridor", "name": "Corridor", "clue": "Torn notes with initials A.B."},
        {"id": "workshop", "name": "Workshop", "clue": "Varnished wrench fragment"},
    ],
    "associations": [
        {"clue": "Dusty glove mark", "suspect": "Mr. Almeida"},
        {"clue": "Broken glass with footprints", "suspect": "Mrs. Beatriz"},
        {"clue": "Herbal tea residue", "suspect": "Miss Camila"},
        {"clue": "Torn notes with initials A.B.", "suspect": "Mrs. Beatriz"},
        {"clue": "Varnished wrench fragment", "suspect": "Mr. Almeida"},
    ],
    "accusation_threshold": DEFAULT_THRESHOLD,
    "table_size": DEFAULT_TABLE_SIZE,
    "commands": DEFAULT_COMMANDS,
}


@dataclass(frozen=True)
class Scenario:
    name: str
    start: str
    rooms: List[Dict[str, Any]]
    associations: List[Dict[str, str]]
    accusation_threshold: int = DEFAULT_THRESHOLD
    table_size: int = DEFAULT_TABLE_SIZE
    commands: Optional[Dict[str, str]] = None

    @staticmethod
    def load(path: Path) -> "Scenario":
        try:
            with path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ScenarioError(f"invalid scenario JSON in {path}: {exc}") from exc
        except OSError as exc:
            raise ScenarioError(f"cannot read scenario {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ScenarioError(f"scenario root must be an object: {path}")
        raw.setdefault("name", path.stem)
        return Scenario.from_dict(raw)

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "Scenario":
        rooms = raw.get("rooms")
        if not isinstance(rooms, list) or not rooms:
            raise ScenarioError("scenario must define a non-empty 'rooms' list")
        start = raw.get("start")
        if not isinstance(start, str) or not start:
            raise ScenarioError("scenario must name a 'start' room id")

        associations = raw.get("associations", [])
        if not isinstance(associations, list):
            raise ScenarioError("'associations' must be a list of {clue, suspect} objects")
        for item in associations:
            if not isinstance(item, dict) or not isinstance(item.get("clue"), str) or not isinstance(
                item.get("suspect"), str
            ):
                raise ScenarioError(f"invalid association entry: {item!r}")

        threshold = raw.get("accusation_threshold", DEFAULT_THRESHOLD)
        if not isinstance(threshold, int) or isinstance(threshold, bool) or threshold < 1:
            raise ScenarioError("accusation_threshold must be a positive integer")
        table_size = raw.get("table_size", DEFAULT_TABLE_SIZE)
        if not isinstance(table_size, int) or isinstance(table_size, bool) or table_size < 1:
            raise ScenarioError("table_size must be a positive integer")

        commands = dict(DEFAULT_COMMANDS)
        commands.update(raw.get("commands", {}) or {})
        keys = [commands.get(k) for k in ("left", "right", "quit")]
        if any(not isinstance(k, str) or len(k) != 1 for k in keys):
            raise ScenarioError("commands must map left/right/quit to single characters")
        if len({k.lower() for k in keys}) != 3:
            raise ScenarioError("command keys must be distinct")

        return Scenario(
            name=str(raw.get("name", "scenario")),
            start=start,
            rooms=[dict(room) for room in rooms],
            associations=[dict(item) for item in associations],
            accusation_threshold=threshold,
            table_size=table_size,
            commands=commands,
        )

    @staticmethod
    def default() -> "Scenario":
        return Scenario.from_dict(json.loads(json.dumps(MANSION)))

    def keymap(self) -> Dict[str, Command]:
        commands = self.commands or DEFAULT_COMMANDS
        return {
            commands["left"].lower(): Command.LEFT,
            commands["right"].lower(): Command.RIGHT,
            commands["quit"].lower(): Command.QUIT,
        }

    def build_map(self) -> Room:
        """Create every room, wire the children and return the start room.

        Raises ScenarioError unless the rooms reachable from start form a tree.
        """
        by_id: Dict[str, Room] = {}
        room_defs: Dict[str, Dict[str, Any]] = {}
        for room_def in self.rooms:
            room_id = room_def.get("id")
            if not isinstance(room_id, str) or not room_id:
                raise ScenarioError(f"room without an id: {room_def!r}")
            if room_id in by_id:
                raise ScenarioError(f"duplicate room id: {room_id}")
            clue = room_def.get("clue")
            if clue is not None and not isinstance(clue, str):
                raise ScenarioError(f"clue of room '{room_id}' must be a string")
            try:
                by_id[room_id] = create_room(room_def.get("name") or "", clue or None)
            except ValueError as exc:
                raise ScenarioError(f"room '{room_id}': {exc}") from exc
            room_defs[room_id] = room_def

        if self.start not in by_id:
            raise ScenarioError(f"start room not found: {self.start}")

        parents: Dict[str, str] = {}
        for room_id, room_def in room_defs.items():
            for side in Direction:
                child_id = room_def.get(side.value)
                if child_id is None:
                    continue
                if not isinstance(child_id, str):
                    raise ScenarioError(f"room '{room_id}' {side.value} link must be a room id string")
                if child_id not in by_id:
                    raise ScenarioError(f"room '{room_id}' links {side.value} to unknown room '{child_id}'")
                if child_id in parents:
                    raise ScenarioError(
                        f"room '{child_id}' has two parents: '{parents[child_id]}' and '{room_id}'"
                    )
                parents[child_id] = room_id
                link(by_id[room_id], side, by_id[child_id])

        reachable = set()
        stack = [self.start]
        while stack:
            room_id = stack.pop()
            if room_id in reachable:
                raise ScenarioError(f"cycle through room '{room_id}'")
            reachable.add(room_id)
            for side in Direction:
                child_id = room_defs[room_id].get(side.value)
                if child_id is not None:
                    stack.append(child_id)

        unreachable = sorted(set(by_id) - reachable)
        if unreachable:
            logger.warning("Scenario %s: rooms unreachable from start ignored: %s", self.name, ", ".join(unreachable))
        return by_id[self.start]

    def build_table(self) -> AssociationTable:
        table = AssociationTable(self.table_size)
        for item in self.associations:
            table.put(item["clue"], item["suspect"])
        return table
