from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from detective_quest.errors import AllocationError, ScenarioError
from detective_quest.rooms import Room, VisitKind, VisitOutcome, release_rooms
from detective_quest.scenario import DEFAULT_COMMANDS, Scenario
from detective_quest.session import Command, ExplorationSession, Verdict, parse_command

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detective Quest: explore the mansion, collect clues, accuse a suspect")
    parser.add_argument("--scenario", default=None, help="Path to scenario JSON (default: built-in mansion)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for diagnostics on stderr",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="Explore interactively and make an accusation")
    play.add_argument("--show-journal", action="store_true", help="Print the session event journal as JSON at the end")

    sub.add_parser("map", help="Print the mansion map")
    sub.add_parser("suspects", help="List clue to suspect associations")

    return parser


def _load_scenario(path: Optional[str]) -> Scenario:
    if path is None:
        return Scenario.default()
    return Scenario.load(Path(path))


def _report_visit(room: Room, outcome: VisitOutcome, out: TextIO) -> None:
    print(f"\nYou are in: {room.name}", file=out)
    if outcome.kind is VisitKind.CLUE_FOUND:
        print(f'Clue found: "{outcome.clue}"', file=out)
    elif outcome.kind is VisitKind.ALREADY_COLLECTED:
        print("The clue in this room was already collected.", file=out)
    else:
        print("No clue in this room.", file=out)


def run_game(scenario: Scenario, stdin: TextIO, out: TextIO, show_journal: bool = False) -> int:
    """Drive one full game on line-based streams. Returns the process exit status."""
    keys = scenario.commands or DEFAULT_COMMANDS
    left, right, quit_key = keys["left"], keys["right"], keys["quit"]
    keymap = scenario.keymap()

    start = scenario.build_map()
    table = scenario.build_table()
    session = ExplorationSession(start)

    print("=== Detective Quest - Mansion Investigation ===", file=out)
    print(f"Move with '{left}' (left) and '{right}' (right); stop exploring with '{quit_key}'.", file=out)
    print(f"Starting the investigation in the {start.name}.", file=out)

    _report_visit(start, session.begin(), out)
    while True:
        print(f"\nOptions: ({left}) left, ({right}) right, ({quit_key}) stop exploring", file=out)
        print("Choice: ", end="", file=out)
        line = stdin.readline()
        if not line:
            session.apply(Command.QUIT)
            print(file=out)
            break
        result = session.apply(parse_command(line, keymap))
        if result.status == "ended":
            print("You chose to stop exploring.", file=out)
            break
        if result.status == "moved":
            _report_visit(result.room, result.outcome, out)
        elif result.status == "rejected":
            print(f"There is no path to the {result.command.value} from here.", file=out)
        else:
            print(f"Invalid command. Use '{left}', '{right}' or '{quit_key}'.", file=out)

    print("\n=== COLLECTED CLUES (alphabetical) ===", file=out)
    clues = session.collected_clues()
    if not clues:
        print("No clues were collected during the investigation.", file=out)
    for clue, count in clues:
        print(f' - "{clue}" (times collected: {count})', file=out)

    suspects = table.suspects()
    print("\nName the suspect you want to accuse", end="", file=out)
    print(f" (e.g. \"{suspects[0]}\")." if suspects else ".", file=out)
    print("Accused: ", end="", file=out)
    verdict = session.accuse(stdin.readline(), table, threshold=scenario.accusation_threshold)

    if verdict.verdict is Verdict.NO_ACCUSATION:
        print("\nNo name given. Closing the case without an accusation.", file=out)
    else:
        print(f"\nYou accused: {verdict.suspect}", file=out)
        print(f"Collected clues pointing to {verdict.suspect}: {verdict.count}", file=out)
        if verdict.sustained:
            print(f"Result: ACCUSATION SUSTAINED! There is enough evidence (>= {verdict.threshold} clues).", file=out)
        else:
            print("Result: WEAK ACCUSATION. There are not enough clues to sustain it.", file=out)

    if show_journal:
        print(json.dumps(session.journal.iter_events(), indent=2), file=out)

    session.ledger.clear()
    table.teardown()
    release_rooms(start)
    print("\nClosing Detective Quest. Thanks for playing!", file=out)
    return 0


def render_map(root: Room) -> List[str]:
    lines: List[str] = []
    stack = [(root, 0, "")]
    while stack:
        room, depth, label = stack.pop()
        marker = f' [clue: "{room.clue}"]' if room.clue else ""
        lines.append(f"{'    ' * depth}{label}{room.name}{marker}")
        if room.right is not None:
            stack.append((room.right, depth + 1, "R: "))
        if room.left is not None:
            stack.append((room.left, depth + 1, "L: "))
    return lines


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        scenario = _load_scenario(args.scenario)

        if args.command == "play":
            raise SystemExit(run_game(scenario, sys.stdin, sys.stdout, show_journal=args.show_journal))

        if args.command == "map":
            print("\n".join(render_map(scenario.build_map())))
            return

        if args.command == "suspects":
            table = scenario.build_table()
            by_suspect: Dict[str, List[str]] = {}
            for clue, suspect in table.items():
                by_suspect.setdefault(suspect, []).append(clue)
            for suspect in table.suspects():
                print(suspect)
                for clue in sorted(by_suspect[suspect]):
                    print(f'  - "{clue}"')
            return
    except ScenarioError as exc:
        print(f"Scenario error: {exc}", file=sys.stderr)
        raise SystemExit(2)
    except AllocationError as exc:
        logger.critical("Out of memory: %s", exc)
        print(f"Fatal: {exc}", file=sys.stderr)
        raise SystemExit(1)

    raise SystemExit(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
