"""
Tests for setup validation.
"""

import pytest

from ..engine_core.board import Board, Player
from ..engine_core.setup import (
    PiecePlacement,
    place_setup,
    require_valid_setup,
    validate_setup,
)
from ..errors import SetupInvalid


def _replace(pieces, index, **changes):
    p = pieces[index]
    new = PiecePlacement(
        piece=changes.get("piece", p.piece),
        row=changes.get("row", p.row),
        col=changes.get("col", p.col),
    )
    return pieces[:index] + [new] + pieces[index + 1:]


class TestValidSetups:
    def test_canonical_setup_accepted(self, player1_pieces):
        result = validate_setup(player1_pieces, Player.PLAYER1)
        assert result.valid
        assert result.errors == []

    def test_player2_setup_accepted(self, player2_pieces):
        assert validate_setup(player2_pieces, Player.PLAYER2).valid

    def test_accepts_plain_dicts(self, player1_pieces):
        dicts = [p.to_dict() for p in player1_pieces]
        assert validate_setup(dicts, Player.PLAYER1).valid


class TestInvalidSetups:
    def test_too_few_pieces(self, player1_pieces):
        result = validate_setup(player1_pieces[:20], Player.PLAYER1)
        assert not result.valid
        assert "Expected 21 pieces, got 20" in result.errors

    def test_too_many_pieces(self, player1_pieces):
        extra = PiecePlacement(piece="Private", row=7, col=0)
        result = validate_setup(player1_pieces + [extra], Player.PLAYER1)
        assert not result.valid
        assert "Expected 21 pieces, got 22" in result.errors

    def test_two_flags(self, player1_pieces):
        index = next(i for i, p in enumerate(player1_pieces) if p.piece == "Private")
        pieces = _replace(player1_pieces, index, piece="Flag")
        result = validate_setup(pieces, Player.PLAYER1)
        assert not result.valid
        assert "Expected 1 x Flag, got 2" in result.errors
        assert "Expected 6 x Private, got 5" in result.errors

    def test_piece_in_opponent_half(self, player1_pieces):
        pieces = _replace(player1_pieces, 0, row=2)
        result = validate_setup(pieces, Player.PLAYER1)
        assert not result.valid
        assert any("rows 5-7" in e for e in result.errors)

    def test_piece_in_no_mans_land(self, player2_pieces):
        pieces = _replace(player2_pieces, 0, row=3)
        result = validate_setup(pieces, Player.PLAYER2)
        assert any("rows 0-2" in e for e in result.errors)

    def test_piece_off_board(self, player1_pieces):
        pieces = _replace(player1_pieces, 0, col=9)
        assert not validate_setup(pieces, Player.PLAYER1).valid

    def test_duplicate_square(self, player1_pieces):
        first = player1_pieces[0]
        pieces = _replace(player1_pieces, 1, row=first.row, col=first.col)
        result = validate_setup(pieces, Player.PLAYER1)
        assert not result.valid
        assert any("More than one piece" in e for e in result.errors)

    def test_unknown_piece_name(self, player1_pieces):
        pieces = _replace(player1_pieces, 0, piece="Admiral")
        result = validate_setup(pieces, Player.PLAYER1)
        assert not result.valid
        assert "Unknown piece types: Admiral" in result.errors

    def test_every_problem_is_reported(self, player1_pieces):
        pieces = _replace(player1_pieces[:20], 0, row=0)
        result = validate_setup(pieces, Player.PLAYER1)
        assert len(result.errors) >= 2

    def test_require_valid_setup_raises(self, player1_pieces):
        with pytest.raises(SetupInvalid) as exc_info:
            require_valid_setup(player1_pieces[:5], Player.PLAYER1)
        assert exc_info.value.code == "SETUP_INVALID"
        assert exc_info.value.errors


class TestPlaceSetup:
    def test_pieces_placed_hidden(self, player1_pieces):
        board = place_setup(Board.empty(), player1_pieces, Player.PLAYER1)
        assert board.count(Player.PLAYER1) == 21
        assert board.count(Player.PLAYER2) == 0
        assert all(not cell.revealed for _pos, cell in board.occupied())
