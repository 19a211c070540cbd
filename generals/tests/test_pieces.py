"""
Tests for the piece rank table.
"""

import pytest

from ..engine_core.pieces import (
    FLAG_RANK,
    OFFICERS,
    PIECES_PER_PLAYER,
    ROSTER,
    SPY_RANK,
    PieceType,
    is_flag,
    is_spy,
    rank_of,
)
from ..errors import InvariantViolation, UnknownPieceError


class TestRanks:
    def test_five_star_general_is_strongest(self):
        assert rank_of("5 Star General") == 1
        assert min(p.rank for p in OFFICERS) == 1

    def test_private_is_weakest_officer(self):
        assert rank_of(PieceType.PRIVATE) == 13
        assert OFFICERS[-1] is PieceType.PRIVATE

    def test_officer_ranks_are_unique_and_contiguous(self):
        assert sorted(p.rank for p in OFFICERS) == list(range(1, 14))

    def test_sentinel_ranks(self):
        assert rank_of("Spy") == SPY_RANK
        assert rank_of("Flag") == FLAG_RANK

    def test_spy_and_flag_predicates(self):
        assert is_spy("Spy")
        assert not is_spy("Private")
        assert is_flag(PieceType.FLAG)
        assert not is_flag("Spy")


class TestParsing:
    def test_wire_names_round_trip(self):
        assert PieceType.parse("2nd Lieutenant") is PieceType.SECOND_LIEUTENANT
        assert PieceType.parse(PieceType.COLONEL) is PieceType.COLONEL

    def test_unknown_piece_is_invariant_violation(self):
        with pytest.raises(UnknownPieceError):
            rank_of("Admiral")
        with pytest.raises(InvariantViolation):
            PieceType.parse("Hidden")

    def test_is_known_never_raises(self):
        assert PieceType.is_known("Major")
        assert not PieceType.is_known("Admiral")
        assert not PieceType.is_known(None)


class TestRoster:
    def test_roster_has_21_pieces(self):
        assert PIECES_PER_PLAYER == 21

    def test_roster_composition(self):
        assert ROSTER[PieceType.FLAG] == 1
        assert ROSTER[PieceType.SPY] == 2
        assert ROSTER[PieceType.PRIVATE] == 6
        for officer in OFFICERS:
            if officer is not PieceType.PRIVATE:
                assert ROSTER[officer] == 1
