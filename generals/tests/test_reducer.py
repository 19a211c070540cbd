"""
Tests for the reducer.

Tests:
- Setup phase transitions
- Action validation (phase, turn, participants)
- Moves and challenges
- Win conditions
- Clock expiry under each timeout policy
"""

import pytest

from ..engine_core.action import Action, ActionType
from ..engine_core.board import Player, Position
from ..engine_core.clock import TimeoutPolicy
from ..engine_core.combat import ChallengeWinner
from ..engine_core.events import MoveType
from ..engine_core.legality import legal_moves
from ..engine_core.pieces import PieceType
from ..engine_core.reducer import Reducer, apply_action
from ..engine_core.state import EndReason, MatchPhase
from ..errors import MoveIllegal
from .conftest import START


def move(player_id, origin, target, at=START + 1):
    return Action.move(player_id, Position(*origin), Position(*target), timestamp=at)


class TestSetupPhase:
    """Tests for setup submission."""

    def test_first_setup_keeps_setup_phase(self, reducer, new_match, player1_pieces):
        result = reducer.apply(new_match, Action.submit_setup("alice", player1_pieces, timestamp=START))

        assert result.success
        match = result.new_state
        assert match.phase == MatchPhase.SETUP
        assert match.player1_setup
        assert not match.player2_setup
        assert match.board.count(Player.PLAYER1) == 21

    def test_both_setups_start_the_game(self, started_match):
        assert started_match.phase == MatchPhase.PLAYING
        assert started_match.current_turn == Player.PLAYER1
        assert started_match.started_at == START
        assert started_match.clock.turn_started_at == START

    def test_initial_board_is_recorded_hidden(self, started_match):
        initial = started_match.initial_board
        assert initial is not None
        assert initial == started_match.board.hidden_copy()
        assert initial.count(Player.PLAYER1) == 21
        assert initial.count(Player.PLAYER2) == 21
        assert all(not cell.revealed for _pos, cell in initial.occupied())

    def test_invalid_setup_rejected(self, reducer, new_match, player1_pieces):
        result = reducer.apply(new_match, Action.submit_setup("alice", player1_pieces[:20]))

        assert not result.success
        assert result.error_code == "SETUP_INVALID"
        assert result.new_state is None
        assert not new_match.player1_setup

    def test_setup_in_wrong_rows_rejected(self, reducer, new_match, player2_pieces):
        # alice is player1 and must use rows 5-7
        result = reducer.apply(new_match, Action.submit_setup("alice", player2_pieces))
        assert not result.success
        assert result.error_code == "SETUP_INVALID"

    def test_resubmitting_setup_rejected(self, reducer, new_match, player1_pieces):
        first = reducer.apply(new_match, Action.submit_setup("alice", player1_pieces)).new_state
        result = reducer.apply(first, Action.submit_setup("alice", player1_pieces))

        assert not result.success
        assert result.error == "Setup already submitted"

    def test_setup_after_start_rejected(self, reducer, started_match, player1_pieces):
        result = reducer.apply(started_match, Action.submit_setup("alice", player1_pieces))
        assert not result.success
        assert result.error == "Game is not in setup phase"


class TestValidation:
    """Tests for rejected actions."""

    def test_non_participant_rejected(self, reducer, started_match):
        result = reducer.apply(started_match, move("carol", (5, 4), (4, 4)))
        assert not result.success
        assert result.error_code == "NOT_A_PARTICIPANT"

    def test_not_your_turn(self, reducer, started_match):
        result = reducer.apply(started_match, move("bob", (2, 4), (3, 4)))
        assert not result.success
        assert result.error_code == "MOVE_ILLEGAL"
        assert result.error_kind == "not_your_turn"
        assert result.error == "Not your turn"

    def test_move_during_setup(self, reducer, new_match):
        result = reducer.apply(new_match, move("alice", (5, 4), (4, 4)))
        assert not result.success
        assert result.error_kind == "wrong_phase"

    def test_rejected_move_changes_nothing(self, reducer, started_match):
        before = started_match.clone()
        result = reducer.apply(started_match, move("alice", (5, 4), (3, 4)))

        assert not result.success
        assert result.error_kind == "not_adjacent"
        assert started_match == before
        assert started_match.move_count == 0

    def test_finished_match_rejects_everything(self, reducer, started_match):
        finished = reducer.apply(started_match, Action.surrender("alice")).new_state

        for action in (
            move("bob", (2, 4), (3, 4)),
            Action.surrender("bob"),
            Action.claim_timeout(timestamp=START + 10_000),
        ):
            result = reducer.apply(finished, action)
            assert not result.success
            assert result.error_code == "MATCH_ALREADY_FINISHED"

    def test_raise_for_error_reraises_engine_error(self, reducer, started_match):
        result = reducer.apply(started_match, move("alice", (5, 4), (4, 5)))
        with pytest.raises(MoveIllegal) as exc_info:
            result.raise_for_error()
        assert exc_info.value is result.exception


class TestMoves:
    """Tests for accepted moves."""

    def test_plain_move(self, reducer, started_match):
        result = reducer.apply(started_match, move("alice", (5, 4), (4, 4), at=START + 5))

        assert result.success
        match = result.new_state
        event = result.event
        assert event.move_type == MoveType.MOVE
        assert event.sequence == 0
        assert event.piece == PieceType.MAJOR
        assert match.board[Position(4, 4)].piece == PieceType.MAJOR
        assert match.board[Position(5, 4)] is None
        assert not match.board[Position(4, 4)].revealed
        assert match.current_turn == Player.PLAYER2
        assert match.events == (event,)
        assert match.clock.player1_used == 5.0
        assert match.clock.turn_started_at == START + 5

    def test_original_match_untouched(self, reducer, started_match):
        reducer.apply(started_match, move("alice", (5, 4), (4, 4)))
        assert started_match.board[Position(5, 4)].piece == PieceType.MAJOR
        assert started_match.move_count == 0

    def test_private_captures_spy(self, reducer, make_match):
        match = make_match({
            (6, 0): ("Private", "player1"),
            (5, 0): ("Spy", "player2"),
            (7, 8): ("Flag", "player1"),
            (0, 8): ("Flag", "player2"),
        })
        result = reducer.apply(match, move("alice", (6, 0), (5, 0)))

        assert result.success
        assert result.event.challenge_result.winner == ChallengeWinner.ATTACKER
        board = result.new_state.board
        cell = board[Position(5, 0)]
        assert cell.piece == PieceType.PRIVATE
        assert cell.player == Player.PLAYER1
        assert cell.revealed
        assert board[Position(6, 0)] is None
        assert board.count(Player.PLAYER2) == 1
        assert result.new_state.phase == MatchPhase.PLAYING

    def test_defender_wins_leaves_defender_hidden(self, reducer, make_match):
        match = make_match({
            (4, 4): ("Captain", "player1"),
            (3, 4): ("Colonel", "player2"),
            (7, 8): ("Flag", "player1"),
            (0, 8): ("Flag", "player2"),
        })
        result = reducer.apply(match, move("alice", (4, 4), (3, 4)))

        board = result.new_state.board
        assert result.event.challenge_result.winner == ChallengeWinner.DEFENDER
        assert board[Position(4, 4)] is None
        assert board[Position(3, 4)].piece == PieceType.COLONEL
        assert not board[Position(3, 4)].revealed

    def test_tie_removes_both(self, reducer, make_match):
        match = make_match({
            (4, 4): ("Sergeant", "player1"),
            (3, 4): ("Sergeant", "player2"),
            (7, 8): ("Flag", "player1"),
            (0, 8): ("Flag", "player2"),
        })
        result = reducer.apply(match, move("alice", (4, 4), (3, 4)))

        board = result.new_state.board
        assert result.event.challenge_result.winner == ChallengeWinner.TIE
        assert board[Position(4, 4)] is None
        assert board[Position(3, 4)] is None
        assert board.count(Player.PLAYER1) == 1
        assert board.count(Player.PLAYER2) == 1

    def test_sequences_are_contiguous(self, played_match, scripted_moves):
        match, _boards = played_match
        assert [e.sequence for e in match.events] == list(range(len(scripted_moves)))
        assert [e.player_id for e in match.events] == [m[0] for m in scripted_moves]

    def test_scripted_game_material(self, played_match):
        match, _boards = played_match
        assert match.board.count(Player.PLAYER1) == 17
        assert match.board.count(Player.PLAYER2) == 18
        assert match.current_turn == Player.PLAYER1

    def test_apply_action_uses_default_reducer(self, started_match):
        result = apply_action(started_match, move("alice", (5, 4), (4, 4)))
        assert result.success


class TestWinConditions:
    """Tests for the ways a match ends."""

    def test_flag_captured(self, reducer, make_match):
        match = make_match({
            (7, 4): ("Flag", "player1"),
            (5, 0): ("Private", "player1"),
            (6, 4): ("5 Star General", "player2"),
            (0, 0): ("Flag", "player2"),
        }, turn=Player.PLAYER2)
        result = reducer.apply(match, move("bob", (6, 4), (7, 4)))

        assert result.success
        finished = result.new_state
        assert result.event.challenge_result.winner == ChallengeWinner.ATTACKER
        assert finished.phase == MatchPhase.FINISHED
        assert finished.winner == Player.PLAYER2
        assert finished.end_reason == EndReason.FLAG_CAPTURED
        assert finished.finished_at == START + 1

    def test_flag_losing_an_attack_ends_the_match(self, reducer, make_match):
        match = make_match({
            (4, 4): ("Flag", "player1"),
            (3, 4): ("Private", "player2"),
            (0, 8): ("Flag", "player2"),
        })
        result = reducer.apply(match, move("alice", (4, 4), (3, 4)))

        finished = result.new_state
        assert finished.winner == Player.PLAYER2
        assert finished.end_reason == EndReason.FLAG_CAPTURED

    def test_flag_captures_flag(self, reducer, make_match):
        match = make_match({
            (4, 4): ("Flag", "player1"),
            (3, 4): ("Flag", "player2"),
        })
        result = reducer.apply(match, move("alice", (4, 4), (3, 4)))

        assert result.new_state.winner == Player.PLAYER1
        assert result.new_state.end_reason == EndReason.FLAG_CAPTURED

    def test_flag_reaches_enemy_back_rank(self, reducer, make_match):
        match = make_match({
            (1, 0): ("Flag", "player1"),
            (0, 4): ("Private", "player2"),
            (0, 8): ("Flag", "player2"),
        })
        result = reducer.apply(match, move("alice", (1, 0), (0, 0)))

        finished = result.new_state
        assert finished.winner == Player.PLAYER1
        assert finished.end_reason == EndReason.FLAG_REACHED_BASE

    def test_player2_flag_reaches_row_seven(self, reducer, make_match):
        match = make_match({
            (6, 8): ("Flag", "player2"),
            (7, 0): ("Flag", "player1"),
        }, turn=Player.PLAYER2)
        result = reducer.apply(match, move("bob", (6, 8), (7, 8)))

        assert result.new_state.winner == Player.PLAYER2
        assert result.new_state.end_reason == EndReason.FLAG_REACHED_BASE

    def test_other_piece_on_back_rank_does_not_win(self, reducer, make_match):
        match = make_match({
            (1, 0): ("Private", "player1"),
            (7, 8): ("Flag", "player1"),
            (0, 8): ("Flag", "player2"),
        })
        result = reducer.apply(match, move("alice", (1, 0), (0, 0)))
        assert result.new_state.phase == MatchPhase.PLAYING

    def test_opponent_without_pieces_is_eliminated(self, reducer, make_match):
        match = make_match({
            (4, 4): ("Private", "player1"),
            (7, 8): ("Flag", "player1"),
        })
        result = reducer.apply(match, move("alice", (4, 4), (3, 4)))

        assert result.new_state.winner == Player.PLAYER1
        assert result.new_state.end_reason == EndReason.ELIMINATION

    def test_hemmed_in_side_keeps_playing(self, reducer, make_match):
        """A side whose every step is blocked by its own pieces can still challenge."""
        match = make_match({
            (0, 0): ("Flag", "player2"),
            (0, 1): ("Private", "player2"),
            (1, 0): ("Private", "player2"),
            (0, 2): ("Captain", "player1"),
            (2, 0): ("Major", "player1"),
            (2, 1): ("Sergeant", "player1"),
            (7, 8): ("Flag", "player1"),
        })
        result = reducer.apply(match, move("alice", (2, 1), (1, 1)))

        after = result.new_state
        assert after.phase == MatchPhase.PLAYING
        assert after.current_turn == Player.PLAYER2
        steps = legal_moves(after.board, Player.PLAYER2)
        assert steps
        assert all(after.board[target].player == Player.PLAYER1 for _origin, target in steps)

    def test_surrender(self, reducer, started_match):
        result = reducer.apply(started_match, Action.surrender("bob", timestamp=START + 30))

        finished = result.new_state
        assert finished.phase == MatchPhase.FINISHED
        assert finished.winner == Player.PLAYER1
        assert finished.end_reason == EndReason.SURRENDER
        assert finished.finished_at == START + 30

    def test_surrender_during_setup_rejected(self, reducer, new_match):
        result = reducer.apply(new_match, Action.surrender("alice"))
        assert not result.success
        assert result.error_kind == "wrong_phase"


class TestClock:
    """Tests for clock expiry."""

    @pytest.fixture
    def lopsided(self, make_match):
        # player1 on turn with more material than player2
        return make_match({
            (5, 0): ("Private", "player1"),
            (5, 1): ("Private", "player1"),
            (7, 8): ("Flag", "player1"),
            (0, 8): ("Flag", "player2"),
        }, clock_limit=10.0)

    def test_move_after_expiry_ends_match(self, lopsided):
        reducer = Reducer(timeout_policy=TimeoutPolicy.TIMED_OUT_PLAYER_LOSES)
        result = reducer.apply(lopsided, move("alice", (5, 0), (4, 0), at=START + 11))

        assert result.success
        assert result.event is None
        finished = result.new_state
        assert finished.end_reason == EndReason.TIMEOUT
        assert finished.winner == Player.PLAYER2
        assert finished.move_count == 0
        assert finished.board == lopsided.board

    def test_more_material_wins_even_when_timed_out(self, lopsided):
        reducer = Reducer(timeout_policy=TimeoutPolicy.MORE_MATERIAL_WINS)
        result = reducer.apply(lopsided, Action.claim_timeout(timestamp=START + 11))

        assert result.new_state.winner == Player.PLAYER1
        assert result.new_state.end_reason == EndReason.TIMEOUT

    def test_equal_material_draw(self, make_match):
        match = make_match({
            (7, 8): ("Flag", "player1"),
            (0, 8): ("Flag", "player2"),
        }, clock_limit=10.0)
        reducer = Reducer(timeout_policy=TimeoutPolicy.DRAW_ON_EQUAL_MATERIAL)
        result = reducer.apply(match, Action.claim_timeout(timestamp=START + 11))

        assert result.new_state.winner is None
        assert result.new_state.is_draw

    def test_equal_material_goes_against_timed_out_player(self, make_match):
        match = make_match({
            (7, 8): ("Flag", "player1"),
            (0, 8): ("Flag", "player2"),
        }, clock_limit=10.0)
        result = Reducer().apply(match, Action.claim_timeout(timestamp=START + 11))
        assert result.new_state.winner == Player.PLAYER2

    def test_claim_before_expiry_changes_nothing(self, reducer, lopsided):
        result = reducer.apply(lopsided, Action.claim_timeout(timestamp=START + 5))

        assert result.success
        assert result.new_state is lopsided

    def test_time_accumulates_across_turns(self, reducer, started_match):
        match = reducer.apply(started_match, move("alice", (5, 4), (4, 4), at=START + 4)).new_state
        match = reducer.apply(match, move("bob", (2, 4), (3, 4), at=START + 10)).new_state
        match = reducer.apply(match, move("alice", (5, 0), (4, 0), at=START + 13)).new_state

        assert match.clock.player1_used == 7.0
        assert match.clock.player2_used == 6.0


class TestSetupClock:
    """Tests for the setup deadline."""

    def test_before_deadline_changes_nothing(self, reducer, new_match):
        result = reducer.apply(new_match, Action.claim_timeout(timestamp=START + 100))
        assert result.new_state is new_match

    def test_only_submitter_wins(self, reducer, new_match, player2_pieces):
        match = reducer.apply(new_match, Action.submit_setup("bob", player2_pieces)).new_state
        result = reducer.apply(match, Action.claim_timeout(timestamp=START + 301))

        assert result.new_state.winner == Player.PLAYER2
        assert result.new_state.end_reason == EndReason.TIMEOUT

    def test_nobody_submitted_is_a_draw(self, reducer, new_match):
        result = reducer.apply(new_match, Action.claim_timeout(timestamp=START + 301))

        assert result.new_state.is_draw
        assert result.new_state.end_reason == EndReason.TIMEOUT


def test_action_factories():
    action = Action.move("alice", Position(5, 4), Position(4, 4), timestamp=1.0)
    assert action.action_type == ActionType.MOVE
    assert action.payload.player_id == "alice"
    assert Action.claim_timeout().payload.player_id is None
