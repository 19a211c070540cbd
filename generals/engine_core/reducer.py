"""
Reducer - Applies actions to match state.

The reducer is the single point of state mutation.
All match changes must go through apply_action().

Design principles:
- Pure function: (match, action) -> new match
- Validates before applying; a rejected action changes nothing
- Returns ActionResult with success/failure
- Delegates board changes to transition.apply_event, the same function
  the replay engine uses
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass

from ..errors import (
    GeneralsError,
    MatchAlreadyFinished,
    MoveErrorKind,
    MoveIllegal,
    NotAParticipant,
    SetupInvalid,
)
from .action import Action, ActionResult, ActionType
from .board import Board, Player
from .clock import DEFAULT_SETUP_CLOCK_SECONDS, TimeoutPolicy, timeout_winner
from .events import MoveEvent
from .legality import check_match_move, has_legal_move
from .setup import place_setup, require_valid_setup
from .state import EndReason, Match, MatchPhase
from .transition import apply_event, build_event

logger = logging.getLogger(__name__)


@dataclass
class Reducer:
    """
    Reducer applies actions to match state.

    Stateless - all state is in Match.
    Config decides how clock expiry is settled.
    """
    timeout_policy: TimeoutPolicy = TimeoutPolicy.MORE_MATERIAL_WINS
    setup_clock_seconds: float = DEFAULT_SETUP_CLOCK_SECONDS

    def apply(self, match: Match, action: Action) -> ActionResult:
        """
        Apply an action to the match.

        Returns ActionResult with new match or error. Invariant violations
        are not caught: they mean code and data disagree.
        """
        validation_error = self._validate_action(match, action)
        if validation_error:
            logger.info(
                "Rejected %s on match %s: %s",
                action.action_type.value, match.match_id, validation_error,
            )
            return ActionResult.failure_from(validation_error)

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        try:
            result = handler(match, action)
        except GeneralsError as e:
            logger.info(
                "Rejected %s on match %s: %s",
                action.action_type.value, match.match_id, e,
            )
            return ActionResult.failure_from(e)

        if result.success and result.new_state is not None and result.new_state.is_finished:
            finished = result.new_state
            logger.info(
                "Match %s finished: winner=%s reason=%s after %d moves",
                finished.match_id,
                finished.winner.value if finished.winner else "draw",
                finished.end_reason.value if finished.end_reason else None,
                finished.move_count,
            )
        return result

    def _validate_action(self, match: Match, action: Action) -> GeneralsError | None:
        """
        Validate that an action is allowed in the current state.

        Returns the error if invalid, None if valid.
        """
        if match.is_finished:
            return MatchAlreadyFinished(match.match_id)

        player_actions = {ActionType.SUBMIT_SETUP, ActionType.MOVE, ActionType.SURRENDER}
        if action.action_type in player_actions:
            if match.side_of(action.payload.player_id) is None:
                return NotAParticipant(
                    f"User {action.payload.player_id} is not playing in this match",
                    context={"match_id": match.match_id},
                )

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.SUBMIT_SETUP: self._handle_submit_setup,
            ActionType.MOVE: self._handle_move,
            ActionType.SURRENDER: self._handle_surrender,
            ActionType.CLAIM_TIMEOUT: self._handle_claim_timeout,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_submit_setup(self, match: Match, action: Action) -> ActionResult:
        """Handle a setup submission. Both setups in -> playing."""
        side = match.side_of(action.payload.player_id)
        if match.phase != MatchPhase.SETUP:
            raise SetupInvalid(["Game is not in setup phase"])
        if match.has_submitted_setup(side):
            raise SetupInvalid(["Setup already submitted"])

        placements = require_valid_setup(action.payload.pieces or [], side)
        board = place_setup(match.board, placements, side)
        now = _now(action)

        if side is Player.PLAYER1:
            new_match = match._copy_with(board=board, player1_setup=True)
        else:
            new_match = match._copy_with(board=board, player2_setup=True)
        changes = [f"{side.value} submitted setup"]

        if new_match.player1_setup and new_match.player2_setup:
            new_match = new_match._copy_with(
                phase=MatchPhase.PLAYING,
                current_turn=Player.PLAYER1,
                initial_board=board.hidden_copy(),
                started_at=now,
                clock=new_match.clock.start(now),
            )
            changes.append("Both setups submitted, game started")
            logger.info("Match %s started", match.match_id)

        return ActionResult.success_with_state(new_match, changes=changes)

    def _handle_move(self, match: Match, action: Action) -> ActionResult:
        """Handle a move: legality, combat, event, turn, win check."""
        side = match.side_of(action.payload.player_id)
        origin = action.payload.origin
        target = action.payload.target
        if origin is None or target is None:
            raise MoveIllegal(MoveErrorKind.OUT_OF_BOUNDS, "Move needs a from and a to square")

        now = _now(action)

        # A clock that ran out before the move arrived ends the match instead
        if match.phase == MatchPhase.PLAYING and match.current_turn == side:
            if match.clock.is_expired(side, now):
                return self._finish_by_timeout(match, side, now)

        check_match_move(match, side, origin, target)

        event = build_event(
            match.board,
            origin,
            target,
            player_id=action.payload.player_id,
            sequence=match.move_count,
            timestamp=now,
        )
        board = apply_event(match.board, event)

        new_match = match._copy_with(
            board=board,
            events=match.events + (event,),
            current_turn=side.opponent,
            clock=match.clock.charge(side, now),
        )

        winner, reason = self._check_game_end(board, event, side)
        if winner is not None:
            new_match = new_match._copy_with(
                phase=MatchPhase.FINISHED,
                winner=winner,
                end_reason=reason,
                finished_at=now,
            )

        logger.debug(
            "Match %s: %s %s %s -> %s",
            match.match_id, side.value, event.move_type.value, origin, target,
        )
        return ActionResult.success_with_state(
            new_match,
            changes=[_describe(side, event)],
            event=event,
        )

    def _handle_surrender(self, match: Match, action: Action) -> ActionResult:
        """Handle a concession. Only allowed once the game is being played."""
        side = match.side_of(action.payload.player_id)
        if match.phase != MatchPhase.PLAYING:
            raise MoveIllegal(
                MoveErrorKind.WRONG_PHASE,
                "Game is not active",
                context={"phase": match.phase.value},
            )
        now = _now(action)
        new_match = match._copy_with(
            phase=MatchPhase.FINISHED,
            winner=side.opponent,
            end_reason=EndReason.SURRENDER,
            finished_at=now,
        )
        return ActionResult.success_with_state(
            new_match, changes=[f"{side.value} surrendered"]
        )

    def _handle_claim_timeout(self, match: Match, action: Action) -> ActionResult:
        """
        Check the clocks and finish the match if one has run out.

        Succeeds without a state change when nobody has timed out.
        """
        now = _now(action)

        if match.phase == MatchPhase.SETUP:
            if now - match.created_at < self.setup_clock_seconds:
                return ActionResult.success_with_state(match)
            # Whoever submitted in time wins; nobody submitted is a draw
            if match.player1_setup != match.player2_setup:
                winner = Player.PLAYER1 if match.player1_setup else Player.PLAYER2
            else:
                winner = None
            new_match = match._copy_with(
                phase=MatchPhase.FINISHED,
                winner=winner,
                end_reason=EndReason.TIMEOUT,
                finished_at=now,
            )
            return ActionResult.success_with_state(
                new_match, changes=["Setup clock expired"]
            )

        if not match.clock.is_expired(match.current_turn, now):
            return ActionResult.success_with_state(match)
        return self._finish_by_timeout(match, match.current_turn, now)

    # =========================================================================
    # Game end
    # =========================================================================

    def _finish_by_timeout(self, match: Match, timed_out: Player, now: float) -> ActionResult:
        winner = timeout_winner(self.timeout_policy, timed_out, match.board)
        new_match = match._copy_with(
            phase=MatchPhase.FINISHED,
            winner=winner,
            end_reason=EndReason.TIMEOUT,
            finished_at=now,
            clock=match.clock.charge(timed_out, now),
        )
        return ActionResult.success_with_state(
            new_match, changes=[f"{timed_out.value} ran out of time"]
        )

    def _check_game_end(
        self, board: Board, event: MoveEvent, mover: Player
    ) -> tuple[Player | None, EndReason | None]:
        """
        Win conditions after an accepted move, in priority order:
        a Flag leaving the board, a Flag reaching the enemy back rank,
        then the side to move having no piece or no legal move.
        """
        if event.is_challenge:
            for side in (mover.opponent, mover):
                if not board.has_flag(side):
                    return side.opponent, EndReason.FLAG_CAPTURED

        if not event.is_challenge and event.piece is not None and event.piece.is_flag:
            if event.target.row == mover.enemy_back_rank:
                return mover, EndReason.FLAG_REACHED_BASE

        opponent = mover.opponent
        if board.count(opponent) == 0 or not has_legal_move(board, opponent):
            return mover, EndReason.ELIMINATION

        return None, None


def _now(action: Action) -> float:
    return action.timestamp if action.timestamp is not None else time.time()


def _describe(side: Player, event: MoveEvent) -> str:
    if event.challenge_result is None:
        return f"{side.value} moved {event.origin} -> {event.target}"
    return (
        f"{side.value} challenged {event.origin} -> {event.target}: "
        f"{event.challenge_result.winner.value} wins"
    )


def apply_action(match: Match, action: Action, reducer: Reducer | None = None) -> ActionResult:
    """
    Convenience function to apply an action.

    Uses a default Reducer unless one is given.
    """
    reducer = reducer or Reducer()
    return reducer.apply(match, action)
