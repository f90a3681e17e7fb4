"""Exploration session and accusation evaluation.

The session walks the room map from a designated start, feeding clues into the
ledger. A room is visited only on genuine entry: rejected moves and invalid
commands leave both the position and the ledger untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from detective_quest.journal import Journal
from detective_quest.ledger import ClueLedger
from detective_quest.rooms import Direction, Room, VisitKind, VisitOutcome, step, visit
from detective_quest.suspects import AssociationTable

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 2


class Command(Enum):
    LEFT = "left"
    RIGHT = "right"
    QUIT = "quit"
    INVALID = "invalid"


DEFAULT_KEYMAP: Dict[str, Command] = {
    "e": Command.LEFT,
    "d": Command.RIGHT,
    "s": Command.QUIT,
}

_DIRECTIONS = {Command.LEFT: Direction.LEFT, Command.RIGHT: Direction.RIGHT}


def parse_command(token: Optional[str], keymap: Optional[Mapping[str, Command]] = None) -> Command:
    keys = DEFAULT_KEYMAP if keymap is None else keymap
    text = (token or "").strip()
    if not text:
        return Command.INVALID
    return keys.get(text[0].lower(), Command.INVALID)


@dataclass(frozen=True)
class StepResult:
    command: Command
    status: str  # "moved", "rejected", "invalid", "ended"
    room: Room
    outcome: Optional[VisitOutcome] = None

    @property
    def moved(self) -> bool:
        return self.status == "moved"


class ExplorationSession:
    def __init__(
        self,
        start: Room,
        ledger: Optional[ClueLedger] = None,
        journal: Optional[Journal] = None,
    ) -> None:
        self.start = start
        self.current = start
        self.ledger = ledger if ledger is not None else ClueLedger()
        self.journal = journal if journal is not None else Journal()
        self.started = False
        self.ended = False

    def begin(self) -> VisitOutcome:
        if self.started:
            raise RuntimeError("session already started")
        self.started = True
        return self._enter(self.start)

    def apply(self, command: Command) -> StepResult:
        if not self.started:
            raise RuntimeError("session not started; call begin() first")
        if self.ended:
            raise RuntimeError("session already ended")

        if command is Command.QUIT:
            self.ended = True
            self.journal.emit(
                "session.ended",
                {"room": self.current.name, "clues": len(self.ledger)},
                source="session",
            )
            logger.info("Exploration ended in %r with %d distinct clues", self.current.name, len(self.ledger))
            return StepResult(command, "ended", self.current)

        direction = _DIRECTIONS.get(command)
        if direction is None:
            self.journal.emit("session.command_invalid", {"room": self.current.name}, source="session")
            return StepResult(command, "invalid", self.current)

        target = step(self.current, direction)
        if target is None:
            self.journal.emit(
                "session.move_rejected",
                {"room": self.current.name, "direction": direction.value},
                source="session",
            )
            return StepResult(command, "rejected", self.current)

        outcome = self._enter(target)
        return StepResult(command, "moved", target, outcome)

    def _enter(self, room: Room) -> VisitOutcome:
        self.current = room
        outcome = visit(room)
        self.journal.emit(
            "session.entered",
            {"room": room.name, "outcome": outcome.kind.value},
            source="session",
        )
        if outcome.kind is VisitKind.CLUE_FOUND:
            count = self.ledger.add(outcome.clue)
            self.journal.emit(
                "session.clue_collected",
                {"room": room.name, "clue": outcome.clue, "count": count},
                source="session",
            )
            logger.info("Clue found in %r: %r", room.name, outcome.clue)
        return outcome

    def collected_clues(self) -> List[Tuple[str, int]]:
        return list(self.ledger)

    def accuse(
        self,
        suspect_name: Optional[str],
        table: AssociationTable,
        threshold: int = DEFAULT_THRESHOLD,
    ) -> "AccusationResult":
        result = evaluate_accusation(self.ledger, table, suspect_name, threshold=threshold)
        self.journal.emit("accusation.evaluated", result.to_dict(), source="session")
        return result


class Verdict(Enum):
    SUSTAINED = "sustained"
    WEAK = "weak"
    NO_ACCUSATION = "no_accusation"


@dataclass(frozen=True)
class AccusationResult:
    verdict: Verdict
    suspect: Optional[str] = None
    count: Optional[int] = None
    threshold: int = DEFAULT_THRESHOLD

    @property
    def sustained(self) -> bool:
        return self.verdict is Verdict.SUSTAINED

    @property
    def made(self) -> bool:
        return self.verdict is not Verdict.NO_ACCUSATION

    def to_dict(self) -> Dict[str, object]:
        return {
            "verdict": self.verdict.value,
            "suspect": self.suspect,
            "count": self.count,
            "threshold": self.threshold,
            "sustained": self.sustained,
        }


def evaluate_accusation(
    ledger: ClueLedger,
    table: AssociationTable,
    suspect_name: Optional[str],
    threshold: int = DEFAULT_THRESHOLD,
) -> AccusationResult:
    name = (suspect_name or "").rstrip("\r\n")
    if not name:
        return AccusationResult(Verdict.NO_ACCUSATION, threshold=threshold)
    count = ledger.aggregate(name, table.lookup)
    verdict = Verdict.SUSTAINED if count >= threshold else Verdict.WEAK
    logger.info("Accusation of %r: %d clue(s), %s", name, count, verdict.value)
    return AccusationResult(verdict, suspect=name, count=count, threshold=threshold)
