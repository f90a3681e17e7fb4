from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Tuple


class Journal:
    """Append-only, in-memory event log for a single game."""

    def __init__(self) -> None:
        self._events: List[Dict[str, Any]] = []

    def emit(self, event_type: str, payload: Dict[str, Any], source: str) -> Dict[str, Any]:
        event = {
            "event_id": f"EVT-{uuid.uuid4().hex[:10]}",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": event_type,
            "source": source,
            "payload": dict(payload),
        }
        self._events.append(event)
        return event

    def iter_events(self) -> Iterable[Dict[str, Any]]:
        return list(self._events)

    def iter_events_from(self, start: int = 0) -> Iterator[Tuple[int, Dict[str, Any]]]:
        for idx in range(max(0, int(start)), len(self._events)):
            yield idx, self._events[idx]

    def events_of(self, event_type: str) -> List[Dict[str, Any]]:
        return [event for event in self._events if event["type"] == event_type]

    def __len__(self) -> int:
        return len(self._events)
