"""
Tests for match statistics and achievements.
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.board import Player, Position
from ..stats import match_result, match_statistics
from .conftest import START


class TestMatchStatistics:
    def test_scripted_game_counts(self, played_match):
        match, _boards = played_match
        stats = match_statistics(match.initial_board, match.events, "alice", "bob")

        alice = stats.side(Player.PLAYER1)
        bob = stats.side(Player.PLAYER2)
        assert alice.pieces_eliminated == 2
        assert bob.pieces_eliminated == 3
        assert alice.pieces_lost == 4
        assert bob.pieces_lost == 3
        assert bob.spies_revealed == 2
        assert alice.spies_revealed == 0
        assert alice.min_pieces_remaining == 17
        assert bob.min_pieces_remaining == 18
        assert not alice.flag_captured and not bob.flag_captured
        assert stats.achievements == []

    def test_wire_records_give_same_numbers(self, played_match):
        match, _boards = played_match
        from_events = match_statistics(match.initial_board, match.events, "alice", "bob")
        from_records = match_statistics(
            match.initial_board, [e.to_dict() for e in match.events], "alice", "bob"
        )
        assert from_events.to_dict() == from_records.to_dict()

    def test_flawless_comeback(self, reducer, make_match):
        match = make_match({
            (7, 4): ("Flag", "player1"),
            (5, 0): ("Private", "player1"),
            (6, 4): ("5 Star General", "player2"),
            (0, 0): ("Flag", "player2"),
        }, turn=Player.PLAYER2)
        finished = reducer.apply(
            match, Action.move("bob", Position(6, 4), Position(7, 4), timestamp=START + 1)
        ).new_state

        stats = match_statistics(
            finished.initial_board, finished.events, "alice", "bob", winner=finished.winner
        )
        assert stats.winner == Player.PLAYER2
        assert stats.player2.flag_captured
        assert stats.player2.pieces_eliminated == 1
        assert stats.player1.pieces_lost == 1
        assert stats.achievements == ["perfectionist", "comeback_king"]

    def test_no_achievements_without_winner(self, played_match):
        match, _boards = played_match
        stats = match_statistics(match.initial_board, match.events, "alice", "bob", winner=None)
        assert stats.to_dict()["winner"] is None
        assert stats.achievements == []


class TestMatchResult:
    def test_surrender_result(self, reducer, played_match):
        match, _boards = played_match
        finished = reducer.apply(match, Action.surrender("bob", timestamp=START + 50)).new_state

        assert match_result(finished) == {
            "winner": "player1",
            "reason": "surrender",
            "duration_seconds": 50.0,
            "moves": 16,
        }

    def test_draw_result(self, reducer, new_match):
        finished = reducer.apply(new_match, Action.claim_timeout(timestamp=START + 400)).new_state
        result = match_result(finished)
        assert result["winner"] == "draw"
        assert result["reason"] == "timeout"
        assert result["moves"] == 0

    def test_unfinished_match(self, started_match):
        with pytest.raises(ValueError):
            match_result(started_match)
