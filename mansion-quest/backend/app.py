"""Backend API for the mansion investigation game."""
import logging

from flask import Flask, jsonify, request
from flask_cors import CORS

from detective_quest.errors import DetectiveQuestError
from detective_quest.session import Command, ExplorationSession
from game_data import (
    DIRECTIONS, load_scenario,
    PHASE_EXPLORATION, PHASE_ACCUSATION, PHASE_COMPLETE
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

# In-memory game state (will reset on server restart)
game_state = {}


def reset_game():
    """Build a fresh map, table and session from the configured scenario."""
    global game_state
    scenario = load_scenario()
    session = ExplorationSession(scenario.build_map())
    game_state = {
        "scenario": scenario,
        "table": scenario.build_table(),
        "session": session,
        "phase": PHASE_EXPLORATION,
        "last_outcome": session.begin(),
        "accusation": None,
    }


def room_payload(room):
    return {
        "name": room.name,
        "exits": [d.value for d in room.exits()],
    }


def outcome_payload(outcome):
    if outcome is None:
        return None
    return {"kind": outcome.kind.value, "clue": outcome.clue}


@app.errorhandler(DetectiveQuestError)
def handle_game_error(exc):
    logger.error("Game error: %s", exc)
    return jsonify({"status": "error", **exc.to_dict()}), 500


@app.route('/api/game/new', methods=['POST'])
def new_game():
    """Start a new game."""
    reset_game()
    session = game_state["session"]
    return jsonify({
        "status": "success",
        "message": "New game started",
        "scenario": game_state["scenario"].name,
        "room": room_payload(session.current),
        "outcome": outcome_payload(game_state["last_outcome"]),
    })


@app.route('/api/game/state', methods=['GET'])
def get_state():
    """Get current game state."""
    session = game_state["session"]
    return jsonify({
        "phase": game_state["phase"],
        "room": room_payload(session.current),
        "clues_collected_count": session.ledger.total,
        "distinct_clues_count": len(session.ledger),
        "accusation": game_state["accusation"],
    })


@app.route('/api/game/move', methods=['POST'])
def move():
    """Move left or right, or quit exploring."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"status": "error", "message": "JSON object body required"}), 400

    direction = str(data.get("direction", "")).strip().lower()
    if direction not in DIRECTIONS:
        return jsonify({"status": "error", "message": "direction must be one of: left, right, quit"}), 400

    if game_state["phase"] != PHASE_EXPLORATION:
        return jsonify({"status": "error", "message": "Exploration is over"}), 400

    session = game_state["session"]
    result = session.apply(Command(direction))
    message = None
    if result.status == "ended":
        game_state["phase"] = PHASE_ACCUSATION
    elif result.status == "rejected":
        message = f"There is no path to the {direction} from here."
    else:
        game_state["last_outcome"] = result.outcome

    return jsonify({
        "status": "success",
        "result": result.status,
        "message": message,
        "phase": game_state["phase"],
        "room": room_payload(session.current),
        "outcome": outcome_payload(result.outcome),
    })


@app.route('/api/game/clues', methods=['GET'])
def get_clues():
    """Get collected clues in alphabetical order."""
    clues = [{"clue": clue, "count": count} for clue, count in game_state["session"].ledger]
    return jsonify({
        "clues": clues,
        "distinct_count": len(clues),
        "total_count": sum(item["count"] for item in clues),
    })


@app.route('/api/game/suspects', methods=['GET'])
def get_suspects():
    """Get list of all suspects (without revealing which clues point to them)."""
    return jsonify({"suspects": game_state["table"].suspects()})


@app.route('/api/game/accuse', methods=['POST'])
def accuse():
    """Make final accusation."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"status": "error", "message": "JSON object body required"}), 400

    if game_state["phase"] == PHASE_COMPLETE:
        return jsonify({"status": "error", "message": "Game already complete"}), 400
    if game_state["phase"] != PHASE_ACCUSATION:
        return jsonify({
            "status": "error",
            "message": "Finish exploring the mansion before making an accusation."
        }), 400

    suspect = data.get("suspect")
    if suspect is not None and not isinstance(suspect, str):
        return jsonify({"status": "error", "message": "suspect must be a string"}), 400

    result = game_state["session"].accuse(
        suspect,
        game_state["table"],
        threshold=game_state["scenario"].accusation_threshold,
    )
    game_state["accusation"] = result.to_dict()
    game_state["phase"] = PHASE_COMPLETE

    return jsonify({"status": "success", **result.to_dict()})


@app.route('/api/game/events', methods=['GET'])
def get_events():
    """Get the session event journal."""
    start = request.args.get("start", default=0, type=int)
    events = [event for _, event in game_state["session"].journal.iter_events_from(start)]
    return jsonify({"events": events})


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok", "service": "mansion-quest-backend"})


reset_game()


if __name__ == '__main__':
    app.run(debug=True, port=5001)
