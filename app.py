# app.py
import logging
import os
from typing import Dict, List, Optional
from uuid import uuid4

from dotenv import load_dotenv
from flask import Flask, jsonify, render_template, request

from game_logic import GameController, GameMode, Outcome

load_dotenv()

logger = logging.getLogger(__name__)

app = Flask(__name__)


def _parse_mode(value: Optional[str]) -> Optional[GameMode]:
    try:
        return GameMode(value)
    except ValueError:
        return None


DEFAULT_GAME_MODE = _parse_mode(os.getenv("TTT_DEFAULT_MODE", GameMode.AI.value))
if DEFAULT_GAME_MODE is None:
    logger.warning("Unknown TTT_DEFAULT_MODE=%r, falling back to AI", os.getenv("TTT_DEFAULT_MODE"))
    DEFAULT_GAME_MODE = GameMode.AI


class GameEntry:
    """A controller plus the game-over messages not yet sent to the page."""

    def __init__(self, mode: GameMode):
        self.game = GameController(mode)
        self.pending: List[str] = []
        self.game.subscribe(self._on_game_over)

    def _on_game_over(self, outcome: Outcome) -> None:
        self.pending.append(outcome.message)

    def pop_notification(self) -> Optional[str]:
        return self.pending.pop(0) if self.pending else None


# In-memory games store. Format: games[g_id] = GameEntry
games: Dict[str, GameEntry] = {}


@app.route("/")
def index():
    return render_template("index.html", modes=list(GameMode), default_mode=DEFAULT_GAME_MODE)


@app.route("/api/new", methods=["POST"])
def api_new():
    """
    Create a new game. Optional JSON body: {"mode": "AI" or "Human"}
    Returns: {"game_id": "...", "state": {...}}
    """
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        return jsonify({"error": "invalid body"}), 400
    mode = _parse_mode(body.get("mode", DEFAULT_GAME_MODE.value))
    if mode is None:
        return jsonify({"error": "invalid mode"}), 400

    g_id = str(uuid4())
    games[g_id] = GameEntry(mode)
    logger.info("Created game %s (mode=%s)", g_id, mode.value)
    return jsonify({"game_id": g_id, "state": serialize_game_state(games[g_id])})


@app.route("/api/state/<game_id>", methods=["GET"])
def api_state(game_id):
    entry = games.get(game_id)
    if not entry:
        return jsonify({"error": "game not found"}), 404
    return jsonify({"state": serialize_game_state(entry)})


@app.route("/api/move/<game_id>", methods=["POST"])
def api_move(game_id):
    """
    Human makes a move. In AI mode the AI's reply is already in the returned state.
    Body: {"index": 0-8}
    Returns: {"state": {...}, "ok": true/false} plus "game_over" when the game just ended
    """
    entry = games.get(game_id)
    if not entry:
        return jsonify({"error": "game not found"}), 404

    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        return jsonify({"error": "invalid body"}), 400
    idx = body.get("index")
    if idx is None or isinstance(idx, bool) or not isinstance(idx, int) or not 0 <= idx <= 8:
        return jsonify({"error": "invalid index"}), 400

    ok = entry.game.player_move(idx)
    response = {"ok": ok, "state": serialize_game_state(entry)}
    message = entry.pop_notification()
    if message is not None:
        response["game_over"] = message
    return jsonify(response)


@app.route("/api/mode/<game_id>", methods=["POST"])
def api_mode(game_id):
    """
    Change the game mode. Only accepted before the first move.
    Body: {"mode": "AI" or "Human"}
    """
    entry = games.get(game_id)
    if not entry:
        return jsonify({"error": "game not found"}), 404

    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        return jsonify({"error": "invalid body"}), 400
    mode = _parse_mode(body.get("mode"))
    if mode is None:
        return jsonify({"error": "invalid mode"}), 400

    ok = entry.game.set_mode(mode)
    return jsonify({"ok": ok, "state": serialize_game_state(entry)})


@app.route("/api/reset/<game_id>", methods=["POST"])
def api_reset(game_id):
    entry = games.get(game_id)
    if not entry:
        return jsonify({"error": "game not found"}), 404
    entry.game.reset()
    entry.pending.clear()
    return jsonify({"state": serialize_game_state(entry)})


# Helper to turn a game entry into JSON-able dict
def serialize_game_state(entry: GameEntry):
    state = entry.game.get_state()
    data = state.to_dict()
    data["mode_locked"] = state.outcome.is_over or not state.board.is_empty()
    return data


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("TTT_LOG_LEVEL", "INFO").upper(),
        format="[%(levelname)s] %(message)s",
    )
    # Use debug only during development
    app.run(debug=os.getenv("FLASK_DEBUG") == "1")
