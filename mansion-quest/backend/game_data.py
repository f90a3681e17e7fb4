"""
Scenario loading and phase constants for the mansion game backend.
"""
import os
from pathlib import Path

from detective_quest.scenario import Scenario

SCENARIO_ENV = "DETECTIVE_QUEST_SCENARIO"

# Game phases
PHASE_EXPLORATION = "exploration"
PHASE_ACCUSATION = "accusation"
PHASE_COMPLETE = "complete"

DIRECTIONS = {"left", "right", "quit"}


def load_scenario():
    """Scenario named by DETECTIVE_QUEST_SCENARIO, or the built-in mansion."""
    path = os.getenv(SCENARIO_ENV, "").strip()
    if path:
        return Scenario.load(Path(path))
    return Scenario.default()
