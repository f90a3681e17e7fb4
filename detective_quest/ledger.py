"""Ordered clue ledger.

A binary search tree keyed by exact clue text. Re-inserting a clue bumps its
counter instead of adding a node, so the tree holds one entry per distinct clue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

from detective_quest.errors import AllocationError

logger = logging.getLogger(__name__)

SuspectLookup = Callable[[str], Optional[str]]


@dataclass(eq=False)
class LedgerEntry:
    clue: str
    count: int = 1
    left: Optional["LedgerEntry"] = None
    right: Optional["LedgerEntry"] = None


def _new_entry(clue: str) -> LedgerEntry:
    try:
        return LedgerEntry(clue=clue)
    except MemoryError as exc:
        raise AllocationError(f"ledger_allocation_failed: {clue}", {"clue": clue}) from exc


def insert(root: Optional[LedgerEntry], clue: str) -> LedgerEntry:
    """Insert ``clue`` and return the root to keep using.

    The root only changes when the ledger was empty.
    """
    if root is None:
        return _new_entry(clue)

    node = root
    while True:
        if clue == node.clue:
            node.count += 1
            return root
        if clue < node.clue:
            if node.left is None:
                node.left = _new_entry(clue)
                return root
            node = node.left
        else:
            if node.right is None:
                node.right = _new_entry(clue)
                return root
            node = node.right


def find(root: Optional[LedgerEntry], clue: str) -> Optional[LedgerEntry]:
    node = root
    while node is not None:
        if clue == node.clue:
            return node
        node = node.left if clue < node.clue else node.right
    return None


def _walk(root: Optional[LedgerEntry]) -> Iterator[LedgerEntry]:
    """Left subtree, node, right subtree, with an explicit stack."""
    stack = []
    node = root
    while stack or node is not None:
        while node is not None:
            stack.append(node)
            node = node.left
        node = stack.pop()
        yield node
        node = node.right


def in_order(root: Optional[LedgerEntry]) -> Iterator[Tuple[str, int]]:
    for entry in _walk(root):
        yield entry.clue, entry.count


def aggregate_by_suspect(root: Optional[LedgerEntry], suspect: str, lookup: SuspectLookup) -> int:
    """Sum the counts of every entry whose clue resolves to ``suspect``.

    This is a full traversal, not a search: the tree is ordered by clue, not
    by suspect.
    """
    total = 0
    for entry in _walk(root):
        resolved = lookup(entry.clue)
        if resolved is not None and resolved == suspect:
            total += entry.count
    return total


def release(root: Optional[LedgerEntry]) -> int:
    """Unlink the ledger children-first. Returns the number of entries released."""
    released = 0
    stack = [(root, False)] if root is not None else []
    while stack:
        entry, expanded = stack.pop()
        if not expanded:
            stack.append((entry, True))
            for child in (entry.right, entry.left):
                if child is not None:
                    stack.append((child, False))
            continue
        entry.left = None
        entry.right = None
        released += 1
    return released


class ClueLedger:
    """Owns a ledger root for the duration of a session."""

    def __init__(self) -> None:
        self.root: Optional[LedgerEntry] = None
        self._distinct = 0

    def add(self, clue: str) -> int:
        """Record one sighting of ``clue`` and return its new count."""
        existing = find(self.root, clue)
        self.root = insert(self.root, clue)
        if existing is None:
            self._distinct += 1
            logger.debug("Ledger: new clue %r", clue)
            return 1
        logger.debug("Ledger: repeat clue %r (count=%d)", clue, existing.count)
        return existing.count

    def count_of(self, clue: str) -> int:
        entry = find(self.root, clue)
        return entry.count if entry is not None else 0

    def aggregate(self, suspect: str, lookup: SuspectLookup) -> int:
        return aggregate_by_suspect(self.root, suspect, lookup)

    @property
    def total(self) -> int:
        return sum(count for _, count in in_order(self.root))

    def clear(self) -> int:
        released = release(self.root)
        self.root = None
        self._distinct = 0
        return released

    def __iter__(self) -> Iterator[Tuple[str, int]]:
        return in_order(self.root)

    def __len__(self) -> int:
        return self._distinct

    def __contains__(self, clue: object) -> bool:
        return isinstance(clue, str) and find(self.root, clue) is not None

    def __bool__(self) -> bool:
        return self.root is not None
