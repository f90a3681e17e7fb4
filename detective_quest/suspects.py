from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Set, Tuple

from detective_quest.errors import AllocationError, TableReleasedError

logger = logging.getLogger(__name__)

DEFAULT_TABLE_SIZE = 31
_HASH_MASK = 0xFFFFFFFFFFFFFFFF


def djb2(text: str) -> int:
    """Classic ``hash * 33 + byte`` string hash over UTF-8, kept to 64 bits."""
    value = 5381
    for byte in text.encode("utf-8"):
        value = ((value << 5) + value + byte) & _HASH_MASK
    return value


@dataclass(eq=False)
class AssociationEntry:
    clue: str
    suspect: str
    next: Optional["AssociationEntry"] = None


class AssociationTable:
    """Clue -> suspect table with separate chaining.

    ``put`` prepends, so a lookup returns the suspect from the most recent
    ``put`` of that clue. Older entries stay in the chain, shadowed.
    """

    def __init__(self, size: int = DEFAULT_TABLE_SIZE) -> None:
        if not isinstance(size, int) or isinstance(size, bool) or size < 1:
            raise ValueError(f"table size must be a positive integer, got {size!r}")
        self.size = size
        self._buckets: Optional[List[Optional[AssociationEntry]]] = [None] * size
        self._entries = 0

    def _require_live(self) -> List[Optional[AssociationEntry]]:
        if self._buckets is None:
            raise TableReleasedError("association table used after teardown")
        return self._buckets

    def bucket_of(self, clue: str) -> int:
        return djb2(clue) % self.size

    def put(self, clue: str, suspect: str) -> None:
        buckets = self._require_live()
        index = self.bucket_of(clue)
        try:
            entry = AssociationEntry(clue=clue, suspect=suspect, next=buckets[index])
        except MemoryError as exc:
            raise AllocationError(f"table_allocation_failed: {clue}", {"clue": clue}) from exc
        if entry.next is not None:
            logger.debug("Bucket %d collision while adding %r", index, clue)
        buckets[index] = entry
        self._entries += 1

    def lookup(self, clue: str) -> Optional[str]:
        buckets = self._require_live()
        entry = buckets[self.bucket_of(clue)]
        while entry is not None:
            if entry.clue == clue:
                return entry.suspect
            entry = entry.next
        return None

    def items(self) -> Iterator[Tuple[str, str]]:
        """Yield live (clue, suspect) pairs, skipping shadowed entries."""
        for head in self._require_live():
            seen: Set[str] = set()
            entry = head
            while entry is not None:
                if entry.clue not in seen:
                    seen.add(entry.clue)
                    yield entry.clue, entry.suspect
                entry = entry.next

    def suspects(self) -> List[str]:
        return sorted({suspect for _, suspect in self.items()})

    def teardown(self) -> int:
        buckets = self._require_live()
        released = 0
        for index, entry in enumerate(buckets):
            while entry is not None:
                following = entry.next
                entry.next = None
                released += 1
                entry = following
            buckets[index] = None
        self._buckets = None
        self._entries = 0
        logger.debug("Association table released %d entries", released)
        return released

    @property
    def released(self) -> bool:
        return self._buckets is None

    def __contains__(self, clue: object) -> bool:
        return isinstance(clue, str) and self.lookup(clue) is not None

    def __len__(self) -> int:
        return self._entries
