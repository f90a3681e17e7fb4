"""Exception hierarchy for Detective Quest.

Dead ends, already-collected clues and empty accusations are ordinary return
values. Only the conditions below are raised.

Error codes:
- DQ_ALLOCATION: storage for a room, ledger entry or table entry could not be obtained
- DQ_SCENARIO_INVALID: a scenario description is malformed or describes a non-tree map
- DQ_TABLE_RELEASED: the association table was used after teardown
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DetectiveQuestError(Exception):
    """Base class carrying a stable error code and optional details."""

    code: str = "DQ_INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else {}

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class AllocationError(DetectiveQuestError, MemoryError):
    """Fatal: no storage for a new node. There is no recovery path."""

    code = "DQ_ALLOCATION"


class ScenarioError(DetectiveQuestError, ValueError):
    code = "DQ_SCENARIO_INVALID"


class TableReleasedError(DetectiveQuestError, RuntimeError):
    code = "DQ_TABLE_RELEASED"
