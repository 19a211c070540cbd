"""
Pytest fixtures for Generals tests.
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.board import Board, Cell, Player, Position
from ..engine_core.clock import MatchClock, TimeoutPolicy
from ..engine_core.pieces import PieceType
from ..engine_core.reducer import Reducer
from ..engine_core.state import Match, MatchPhase
from ..presets import preset_for

START = 1000.0

# A short game between the Balanced Formation (alice) and the Spy Gambit
# (bob). Covers plain moves, attacker wins, defender wins, a Spy win in
# both roles and a tie.
SCRIPTED_MOVES = [
    ("alice", (5, 4), (4, 4)),  # Major forward
    ("bob", (2, 4), (3, 4)),    # 2nd Lieutenant forward
    ("alice", (4, 4), (3, 4)),  # Major beats 2nd Lieutenant
    ("bob", (2, 3), (3, 3)),    # Sergeant forward
    ("alice", (3, 4), (2, 4)),  # Major into the gap
    ("bob", (2, 2), (3, 2)),    # Spy forward
    ("alice", (2, 4), (1, 4)),  # Major loses to 1 Star General
    ("bob", (3, 3), (4, 3)),    # Sergeant forward
    ("alice", (5, 3), (4, 3)),  # Captain beats Sergeant
    ("bob", (3, 2), (4, 2)),    # Spy forward
    ("alice", (5, 2), (4, 2)),  # 2nd Lieutenant loses to defending Spy
    ("bob", (4, 2), (4, 3)),    # Spy beats Captain
    ("alice", (5, 1), (5, 2)),  # Sergeant sideways
    ("bob", (2, 0), (3, 0)),    # Private forward
    ("alice", (5, 0), (4, 0)),  # Private forward
    ("bob", (3, 0), (4, 0)),    # Private vs Private: tie
]


@pytest.fixture
def reducer() -> Reducer:
    return Reducer(timeout_policy=TimeoutPolicy.MORE_MATERIAL_WINS)


@pytest.fixture
def player1_pieces():
    return preset_for("Balanced Formation", Player.PLAYER1)


@pytest.fixture
def player2_pieces():
    return preset_for("Spy Gambit", Player.PLAYER2)


@pytest.fixture
def new_match() -> Match:
    """A match in the setup phase between alice (player1) and bob (player2)."""
    return Match(
        match_id="test_match",
        player1_id="alice",
        player2_id="bob",
        player1_username="Alice",
        player2_username="Bob",
        clock=MatchClock(limit_seconds=900.0),
        created_at=START,
    )


@pytest.fixture
def started_match(new_match, reducer, player1_pieces, player2_pieces) -> Match:
    """Both setups submitted; alice to move."""
    result = reducer.apply(new_match, Action.submit_setup("alice", player1_pieces, timestamp=START))
    assert result.success, result.error
    result = reducer.apply(result.new_state, Action.submit_setup("bob", player2_pieces, timestamp=START))
    assert result.success, result.error
    return result.new_state


@pytest.fixture
def scripted_moves():
    return list(SCRIPTED_MOVES)


@pytest.fixture
def played_match(started_match, reducer, scripted_moves):
    """
    The scripted game applied move by move.

    Returns (final match, [live board after each move]).
    """
    match = started_match
    boards = []
    for i, (player_id, origin, target) in enumerate(scripted_moves):
        action = Action.move(player_id, Position(*origin), Position(*target), timestamp=START + i + 1)
        result = reducer.apply(match, action)
        assert result.success, f"move {i}: {result.error}"
        match = result.new_state
        boards.append(match.board)
    return match, boards


@pytest.fixture
def make_board():
    """
    Build a board from {(row, col): (piece, player[, revealed])}.

    piece may be a PieceType or its wire name.
    """
    def _make(cells) -> Board:
        updates = {}
        for (row, col), entry in cells.items():
            piece, player = entry[0], entry[1]
            revealed = entry[2] if len(entry) > 2 else False
            updates[Position(row, col)] = Cell(
                piece=PieceType.parse(piece),
                player=Player(player),
                revealed=revealed,
            )
        return Board.empty().with_cells(updates)
    return _make


@pytest.fixture
def make_match(make_board):
    """Build a match already in the playing phase from a hand-made board."""
    def _make(cells, turn=Player.PLAYER1, clock_limit=900.0) -> Match:
        board = make_board(cells)
        return Match(
            match_id="custom_match",
            player1_id="alice",
            player2_id="bob",
            player1_username="Alice",
            player2_username="Bob",
            phase=MatchPhase.PLAYING,
            current_turn=turn,
            board=board,
            initial_board=board.hidden_copy(),
            player1_setup=True,
            player2_setup=True,
            clock=MatchClock(limit_seconds=clock_limit, turn_started_at=START),
            created_at=START,
            started_at=START,
        )
    return _make
