import pytest

from detective_quest.errors import TableReleasedError
from detective_quest.suspects import DEFAULT_TABLE_SIZE, AssociationTable, djb2


def test_djb2_known_values():
    assert djb2("") == 5381
    assert djb2("a") == 5381 * 33 + ord("a")
    assert djb2("glove mark") == djb2("glove mark")
    assert djb2("x" * 200) < 2 ** 64


def test_djb2_hashes_utf8_bytes():
    expected = 5381
    for byte in "chá".encode("utf-8"):
        expected = expected * 33 + byte
    assert djb2("chá") == expected


def test_default_size():
    assert AssociationTable().size == DEFAULT_TABLE_SIZE == 31


@pytest.mark.parametrize("size", [0, -3, True, 2.5, "31"])
def test_invalid_size_rejected(size):
    with pytest.raises(ValueError):
        AssociationTable(size)


def test_put_and_lookup():
    table = AssociationTable()
    table.put("glove mark", "Smith")
    table.put("broken glass", "Jones")

    assert table.lookup("glove mark") == "Smith"
    assert table.lookup("broken glass") == "Jones"
    assert table.lookup("Glove mark") is None
    assert table.lookup("nothing") is None
    assert "glove mark" in table
    assert "nothing" not in table


def test_most_recent_put_wins():
    table = AssociationTable()
    table.put("footprints", "Butler")
    table.put("footprints", "Governess")
    assert table.lookup("footprints") == "Governess"
    # The older entry stays in the chain, shadowed.
    assert len(table) == 2
    assert list(table.items()) == [("footprints", "Governess")]


def test_collisions_in_single_bucket():
    table = AssociationTable(1)
    pairs = {"a": "Ann", "b": "Bob", "c": "Cy", "d": "Di"}
    for clue, suspect in pairs.items():
        table.put(clue, suspect)
    for clue, suspect in pairs.items():
        assert table.bucket_of(clue) == 0
        assert table.lookup(clue) == suspect
    # Chain order is most-recently-inserted first.
    assert [clue for clue, _ in table.items()] == ["d", "c", "b", "a"]


def test_bucket_of_is_within_range():
    table = AssociationTable(7)
    for clue in ["one", "two", "three", "four", ""]:
        assert 0 <= table.bucket_of(clue) < 7
        assert table.bucket_of(clue) == djb2(clue) % 7


def test_suspects_are_sorted_and_distinct():
    table = AssociationTable()
    table.put("glove", "Smith")
    table.put("ash", "Smith")
    table.put("glass", "Jones")
    assert table.suspects() == ["Jones", "Smith"]


def test_teardown_releases_entries_and_blocks_further_use():
    table = AssociationTable(3)
    table.put("glove", "Smith")
    table.put("glass", "Jones")
    table.put("glove", "Brown")

    assert table.teardown() == 3
    assert table.released
    assert len(table) == 0
    with pytest.raises(TableReleasedError):
        table.lookup("glove")
    with pytest.raises(TableReleasedError):
        table.put("ash", "Smith")
    with pytest.raises(TableReleasedError):
        table.teardown()
