import pytest

from detective_quest.rooms import Direction, VisitKind, create_room, link
from detective_quest.session import (
    Command,
    ExplorationSession,
    Verdict,
    evaluate_accusation,
    parse_command,
)
from detective_quest.suspects import AssociationTable


@pytest.fixture
def hall():
    hall = create_room("Hall")
    link(hall, Direction.LEFT, create_room("Library", "glove mark"))
    link(hall, Direction.RIGHT, create_room("Parlor", "broken glass"))
    return hall


@pytest.fixture
def table():
    table = AssociationTable()
    table.put("glove mark", "Smith")
    table.put("broken glass", "Jones")
    return table


@pytest.fixture
def session(hall):
    session = ExplorationSession(hall)
    session.begin()
    return session


def test_walkthrough_weak_then_sustained(hall, table):
    session = ExplorationSession(hall)
    assert session.begin().kind is VisitKind.NO_CLUE

    result = session.apply(Command.LEFT)
    assert result.moved
    assert result.room.name == "Library"
    assert result.outcome.kind is VisitKind.CLUE_FOUND
    assert result.outcome.clue == "glove mark"
    assert session.collected_clues() == [("glove mark", 1)]

    verdict = evaluate_accusation(session.ledger, table, "Smith")
    assert verdict.count == 1
    assert verdict.verdict is Verdict.WEAK
    assert not verdict.sustained

    # A second, independent sighting of the same clue.
    session.ledger.add("glove mark")
    verdict = evaluate_accusation(session.ledger, table, "Smith")
    assert verdict.count == 2
    assert verdict.verdict is Verdict.SUSTAINED
    assert verdict.sustained


def test_rejected_move_keeps_position(session):
    session.apply(Command.LEFT)
    entered = len(session.journal.events_of("session.entered"))

    result = session.apply(Command.RIGHT)
    assert result.status == "rejected"
    assert result.room.name == "Library"
    assert session.current.name == "Library"
    assert result.outcome is None
    assert session.collected_clues() == [("glove mark", 1)]
    # No re-visit on a rejected move.
    assert len(session.journal.events_of("session.entered")) == entered
    assert session.journal.events_of("session.move_rejected")[-1]["payload"]["direction"] == "right"


def test_invalid_command_is_a_no_op(session):
    result = session.apply(Command.INVALID)
    assert result.status == "invalid"
    assert session.current.name == "Hall"
    assert len(session.journal.events_of("session.entered")) == 1


def test_quit_ends_session(session):
    result = session.apply(Command.QUIT)
    assert result.status == "ended"
    assert session.ended
    with pytest.raises(RuntimeError):
        session.apply(Command.LEFT)


def test_begin_is_required_and_runs_once(hall):
    session = ExplorationSession(hall)
    with pytest.raises(RuntimeError):
        session.apply(Command.LEFT)
    session.begin()
    with pytest.raises(RuntimeError):
        session.begin()


def test_clues_collected_in_entry_order(hall):
    link(hall.right, Direction.LEFT, create_room("Study", "ash"))
    session = ExplorationSession(hall)
    session.begin()
    session.apply(Command.RIGHT)
    session.apply(Command.LEFT)
    collected = [e["payload"]["clue"] for e in session.journal.events_of("session.clue_collected")]
    assert collected == ["broken glass", "ash"]
    assert session.collected_clues() == [("ash", 1), ("broken glass", 1)]


@pytest.mark.parametrize("name", ["", None, "\n", "\r\n"])
def test_empty_name_makes_no_accusation(session, table, name):
    session.apply(Command.LEFT)
    result = evaluate_accusation(session.ledger, table, name)
    assert result.verdict is Verdict.NO_ACCUSATION
    assert result.count is None
    assert not result.made
    assert not result.sustained


def test_accusation_names_are_exact(session, table):
    session.apply(Command.LEFT)
    session.ledger.add("glove mark")
    assert evaluate_accusation(session.ledger, table, "smith").verdict is Verdict.WEAK
    assert evaluate_accusation(session.ledger, table, "Smith\n").verdict is Verdict.SUSTAINED
    assert evaluate_accusation(session.ledger, table, "Smith\r\n").verdict is Verdict.SUSTAINED


@pytest.mark.parametrize("name", [" Smith", "Smith ", "   "])
def test_only_line_terminator_is_trimmed(session, table, name):
    session.apply(Command.LEFT)
    session.ledger.add("glove mark")
    result = evaluate_accusation(session.ledger, table, name)
    assert result.verdict is Verdict.WEAK
    assert result.suspect == name
    assert result.count == 0


def test_custom_threshold(session, table):
    session.apply(Command.LEFT)
    result = evaluate_accusation(session.ledger, table, "Smith", threshold=1)
    assert result.sustained
    assert result.to_dict() == {
        "verdict": "sustained",
        "suspect": "Smith",
        "count": 1,
        "threshold": 1,
        "sustained": True,
    }


def test_session_accuse_records_journal_event(session, table):
    session.apply(Command.RIGHT)
    result = session.accuse("Jones", table)
    assert result.count == 1
    event = session.journal.events_of("accusation.evaluated")[-1]
    assert event["payload"]["verdict"] == "weak"
    assert event["event_id"].startswith("EVT-")


@pytest.mark.parametrize(
    "token,expected",
    [
        ("e", Command.LEFT),
        ("E", Command.LEFT),
        (" d\n", Command.RIGHT),
        ("s", Command.QUIT),
        ("esquerda", Command.LEFT),
        ("", Command.INVALID),
        (None, Command.INVALID),
        ("x", Command.INVALID),
    ],
)
def test_parse_command_default_keys(token, expected):
    assert parse_command(token) is expected


def test_parse_command_custom_keymap():
    keymap = {"l": Command.LEFT, "r": Command.RIGHT, "q": Command.QUIT}
    assert parse_command("L", keymap) is Command.LEFT
    assert parse_command("q", keymap) is Command.QUIT
    assert parse_command("e", keymap) is Command.INVALID
