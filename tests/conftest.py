import pytest

from app import app, games
from game_logic import Board


def board_of(spec: str) -> Board:
    """Board from a 9-char string, '.' for empty: board_of('XX.OO....')."""
    return Board.from_list(["" if ch == "." else ch for ch in spec])


@pytest.fixture
def client():
    app.config["TESTING"] = True
    games.clear()
    with app.test_client() as c:
        yield c
    games.clear()
