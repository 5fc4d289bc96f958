#!/usr/bin/env python3
"""
game_logic.py

Tic-Tac-Toe game core.

Classes:
- Board: immutable 3x3 board value (row-major, indices 0-8).
- MinimaxAI: unbeatable AI, full-depth minimax over the remaining game tree.
- GameController: owns the game state (board, turn, mode, outcome), applies
  moves, triggers the AI and notifies listeners when a game ends.

Run this file to play in the terminal, either against the AI or hot-seat.
"""

from __future__ import annotations
import argparse
import logging
import math
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

BOARD_SIZE = 9

# Rows, columns, diagonals. Scanned in this order, so the first match wins.
WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


class InvalidMove(ValueError):
    """Raised by Board.apply for an out-of-range index or an occupied cell."""


# -------------------------
# Value types
# -------------------------
class Cell(Enum):
    EMPTY = ""
    X = "X"
    O = "O"


class Player(Enum):
    """The two sides. X always moves first."""
    X = "X"
    O = "O"

    @property
    def mark(self) -> Cell:
        return Cell(self.value)

    def opposite(self) -> "Player":
        return Player.O if self is Player.X else Player.X


class GameMode(Enum):
    AI = "AI"
    HUMAN = "Human"

    @property
    def label(self) -> str:
        return "Play against AI" if self is GameMode.AI else "Play against Human"


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating a board: in progress, won by a player, or drawn."""
    status: str
    winner: Optional[Player] = None

    IN_PROGRESS_STATUS = "in_progress"
    WON_STATUS = "won"
    DRAW_STATUS = "draw"

    @classmethod
    def won(cls, player: Player) -> "Outcome":
        return cls(cls.WON_STATUS, player)

    @property
    def is_over(self) -> bool:
        return self.status != self.IN_PROGRESS_STATUS

    @property
    def message(self) -> str:
        if self.status == self.WON_STATUS:
            return f"Winner: {self.winner.value}"
        if self.status == self.DRAW_STATUS:
            return "It's a Draw!"
        return ""

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "winner": self.winner.value if self.winner is not None else None,
        }


IN_PROGRESS = Outcome(Outcome.IN_PROGRESS_STATUS)
DRAW = Outcome(Outcome.DRAW_STATUS)


# -------------------------
# Board: immutable value
# -------------------------
class Board:
    __slots__ = ("_cells",)

    def __init__(self, cells: Optional[Iterable[Cell]] = None):
        cells = tuple(cells) if cells is not None else (Cell.EMPTY,) * BOARD_SIZE
        if len(cells) != BOARD_SIZE:
            raise ValueError(f"a board has exactly {BOARD_SIZE} cells, got {len(cells)}")
        if not all(isinstance(c, Cell) for c in cells):
            raise ValueError("board cells must be Cell values")
        self._cells: Tuple[Cell, ...] = cells

    @classmethod
    def from_list(cls, values: Sequence[Optional[str]]) -> "Board":
        """Build a board from 'X' / 'O' / '' (None and ' ' also mean empty)."""
        cells = []
        for v in values:
            if v is None or v in ("", " "):
                cells.append(Cell.EMPTY)
            elif v in ("X", "O"):
                cells.append(Cell(v))
            else:
                raise ValueError(f"unknown cell value: {v!r}")
        return cls(cells)

    def apply(self, index: int, player: Player) -> "Board":
        """Return a new board with player's mark at index. self is left untouched."""
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < BOARD_SIZE:
            raise InvalidMove(f"index {index!r} is outside 0-{BOARD_SIZE - 1}")
        if self._cells[index] is not Cell.EMPTY:
            raise InvalidMove(f"cell {index} is already taken by {self._cells[index].value}")
        cells = list(self._cells)
        cells[index] = player.mark
        return Board(cells)

    def is_full(self) -> bool:
        return Cell.EMPTY not in self._cells

    def is_empty(self) -> bool:
        return all(c is Cell.EMPTY for c in self._cells)

    def available_moves(self) -> List[int]:
        return [i for i, c in enumerate(self._cells) if c is Cell.EMPTY]

    def to_list(self) -> List[str]:
        return [c.value for c in self._cells]

    def __getitem__(self, index: int) -> Cell:
        return self._cells[index]

    def __len__(self) -> int:
        return BOARD_SIZE

    def __iter__(self):
        return iter(self._cells)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._cells == other._cells

    def __hash__(self) -> int:
        return hash(self._cells)

    def __repr__(self) -> str:
        return f"Board({''.join(c.value or '.' for c in self._cells)})"

    def __str__(self) -> str:
        def cell(i):
            v = self._cells[i].value
            return v if v != "" else str(i + 1)
        rows = [
            f" {cell(0)} | {cell(1)} | {cell(2)} ",
            "---+---+---",
            f" {cell(3)} | {cell(4)} | {cell(5)} ",
            "---+---+---",
            f" {cell(6)} | {cell(7)} | {cell(8)} ",
        ]
        return "\n".join(rows)


# -------------------------
# Outcome evaluation
# -------------------------
def _line_owner(cells: Sequence[Cell], line: Tuple[int, int, int]) -> Optional[Player]:
    a, b, c = line
    if cells[a] is not Cell.EMPTY and cells[a] is cells[b] is cells[c]:
        return Player(cells[a].value)
    return None


def winning_line(cells: Sequence[Cell]) -> Optional[Tuple[int, int, int]]:
    """Return the first completed line, or None."""
    for line in WIN_LINES:
        if _line_owner(cells, line) is not None:
            return line
    return None


def evaluate(cells: Sequence[Cell]) -> Outcome:
    """Win if any line is complete, draw if the board is full, else in progress.

    Accepts a Board or any sequence of 9 Cells (the search passes its scratch list).
    """
    for line in WIN_LINES:
        owner = _line_owner(cells, line)
        if owner is not None:
            return Outcome.won(owner)
    if Cell.EMPTY not in cells:
        return DRAW
    return IN_PROGRESS


# -------------------------
# Minimax AI implementation
# -------------------------
class MinimaxAI:
    WIN_SCORE = 10

    def __init__(self, ai_player: Player = Player.O):
        if not isinstance(ai_player, Player):
            raise ValueError("ai_player must be Player.X or Player.O")
        self.ai_player = ai_player
        self.human_player = ai_player.opposite()
        # positions scored by the last best_move call (debug only)
        self.positions_evaluated = 0

    def best_move(self, board: Board) -> Optional[int]:
        """
        Return the empty index with the highest minimax value for the AI,
        or None if the board is full. Ties go to the lowest index.
        The caller's board is never modified; the search works on a private copy.
        The search is unpruned: on an empty board it scores every game
        (about half a million positions) and takes a few seconds.
        """
        scratch = list(board)
        self.positions_evaluated = 0
        best_score = -math.inf
        best_move = None
        for index in range(BOARD_SIZE):
            if scratch[index] is not Cell.EMPTY:
                continue
            scratch[index] = self.ai_player.mark
            value = self._search(scratch, 0, False)
            scratch[index] = Cell.EMPTY
            if value > best_score:
                best_score = value
                best_move = index
        logger.debug(
            "AI (%s) evaluated %d positions. Best move: %s (score: %s)",
            self.ai_player.value, self.positions_evaluated, best_move, best_score,
        )
        return best_move

    def score(self, cells: Sequence[Cell], depth: int, maximizing: bool) -> int:
        """
        Minimax value of a position from the AI's point of view.
        +(10 - depth) for an AI win, (depth - 10) for a loss, 0 for a draw:
        faster wins and slower losses score better.
        """
        return self._search(list(cells), depth, maximizing)

    def _search(self, scratch: List[Cell], depth: int, maximizing: bool) -> int:
        self.positions_evaluated += 1
        outcome = evaluate(scratch)
        if outcome.status == Outcome.WON_STATUS:
            if outcome.winner is self.ai_player:
                return self.WIN_SCORE - depth
            return depth - self.WIN_SCORE
        if outcome.status == Outcome.DRAW_STATUS:
            return 0

        if maximizing:
            mark = self.ai_player.mark
            best = -math.inf
            pick = max
        else:
            mark = self.human_player.mark
            best = math.inf
            pick = min
        for index in range(BOARD_SIZE):
            if scratch[index] is Cell.EMPTY:
                scratch[index] = mark
                best = pick(best, self._search(scratch, depth + 1, not maximizing))
                scratch[index] = Cell.EMPTY
        return best


# -------------------------
# GameState / GameController
# -------------------------
@dataclass(frozen=True)
class GameState:
    """Read-only snapshot of a game."""
    board: Board
    turn: Player
    mode: GameMode
    outcome: Outcome

    @property
    def message(self) -> str:
        if self.outcome.is_over:
            return self.outcome.message
        return f"Next player: {self.turn.value}"

    def to_dict(self) -> dict:
        return {
            "board": self.board.to_list(),
            "turn": self.turn.value,
            "mode": self.mode.value,
            "outcome": self.outcome.to_dict(),
            "message": self.message,
            "available_moves": [] if self.outcome.is_over else self.board.available_moves(),
            "winning_line": list(winning_line(self.board) or []),
        }


GameOverListener = Callable[[Outcome], None]


class GameController:
    def __init__(self, mode: GameMode = GameMode.AI, ai: Optional[MinimaxAI] = None):
        if not isinstance(mode, GameMode):
            raise ValueError("mode must be a GameMode")
        self._mode = mode
        self._ai = ai if ai is not None else MinimaxAI(Player.O)
        self._listeners: List[GameOverListener] = []
        self._start()

    def _start(self) -> None:
        self._board = Board()
        self._turn = Player.X
        self._outcome = IN_PROGRESS
        self._maybe_ai_move()

    @property
    def mode(self) -> GameMode:
        return self._mode

    @property
    def ai(self) -> MinimaxAI:
        return self._ai

    def get_state(self) -> GameState:
        return GameState(board=self._board, turn=self._turn, mode=self._mode, outcome=self._outcome)

    def is_over(self) -> bool:
        return self._outcome.is_over

    def subscribe(self, listener: GameOverListener) -> None:
        """Register a callback fired once per game with the final Outcome.

        A listener that raises is logged and skipped; the move still counts.
        """
        self._listeners.append(listener)

    def unsubscribe(self, listener: GameOverListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def player_move(self, index: int) -> bool:
        """Play index for the side to move. Returns False (and changes nothing) if rejected."""
        if self._outcome.is_over:
            logger.debug("Rejected move %r: game already finished", index)
            return False
        if self._mode is GameMode.AI and self._turn is not self._ai.human_player:
            logger.debug("Rejected move %r: it is the AI's turn", index)
            return False
        if not self._place(index):
            return False
        self._maybe_ai_move()
        return True

    def set_mode(self, mode: GameMode) -> bool:
        """Change mode; only allowed before the first move of a game."""
        if not isinstance(mode, GameMode):
            return False
        if self._outcome.is_over or not self._board.is_empty():
            logger.debug("Rejected mode change to %s: game in progress", mode.value)
            return False
        self._mode = mode
        self._maybe_ai_move()
        return True

    def reset(self) -> None:
        """Clear the board and start over with X to move. The mode is kept."""
        logger.info("Game reset (mode=%s)", self._mode.value)
        self._start()

    def _place(self, index: int) -> bool:
        try:
            self._board = self._board.apply(index, self._turn)
        except InvalidMove as exc:
            logger.debug("Rejected move: %s", exc)
            return False
        self._outcome = evaluate(self._board)
        if self._outcome.is_over:
            logger.info("Game over: %s", self._outcome.message)
            for listener in list(self._listeners):
                try:
                    listener(self._outcome)
                except Exception:
                    logger.exception("Game-over listener %r failed", listener)
        else:
            self._turn = self._turn.opposite()
        return True

    def _maybe_ai_move(self) -> None:
        if self._mode is not GameMode.AI or self._outcome.is_over:
            return
        if self._turn is not self._ai.ai_player:
            return
        move = self._ai.best_move(self._board)
        assert move is not None, "in-progress board must have an empty cell"
        self._place(move)


# -------------------------
# Simple CLI demo / usage
# -------------------------
def play_cli(mode: GameMode = GameMode.AI, input_fn: Optional[Callable[[str], str]] = None) -> Outcome:
    """Play one game in the terminal. Returns the outcome (IN_PROGRESS if the player quit)."""
    input_fn = input_fn or input
    if mode is GameMode.AI:
        print("Tic-Tac-Toe CLI - You are X (enter 1-9), the AI plays O.")
    else:
        print("Tic-Tac-Toe CLI - Two players, X starts (enter 1-9).")
    game = GameController(mode)
    game.subscribe(lambda outcome: print(f"Result: {outcome.message}"))

    while not game.is_over():
        state = game.get_state()
        print(state.board)
        raw = input_fn(f"{state.message}. Move (1-9), 'r' to reset, 'q' to quit: ").strip().lower()
        if raw == "q":
            return state.outcome
        if raw == "r":
            game.reset()
            continue
        try:
            idx = int(raw) - 1
        except ValueError:
            print("Invalid input.")
            continue
        if idx not in range(BOARD_SIZE):
            print("Choose 1-9")
            continue
        if not game.player_move(idx):
            print("Invalid move (occupied or game over).")
            continue
        after = game.get_state().board
        for i in range(BOARD_SIZE):
            if i != idx and state.board[i] is not after[i]:
                print(f"AI ({game.ai.ai_player.value}) plays at {i + 1}")

    print(game.get_state().board)
    return game.get_state().outcome


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Tic-Tac-Toe in the terminal")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in GameMode],
        default=GameMode.AI.value,
        help="Play against the AI (default) or another human",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=os.getenv("TTT_LOG_LEVEL", "INFO").upper(),
        format="[%(levelname)s] %(message)s",
    )
    print("Running CLI demo. Press Ctrl+C to quit.")
    try:
        play_cli(GameMode(args.mode))
    except (KeyboardInterrupt, EOFError):
        print("\nExiting demo.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
