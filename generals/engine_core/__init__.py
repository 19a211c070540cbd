"""
Engine Core - Deterministic match state management and combat resolution.

The engine is the runtime that:
1. Validates setups and moves
2. Resolves challenges between pieces
3. Applies actions to a Match via the reducer
4. Detects the end of the match
5. Replays a recorded event log to rebuild any board
"""

from .pieces import PieceType, rank_of, is_spy, is_flag, ROSTER, PIECES_PER_PLAYER
from .board import Board, Cell, Player, Position, ROWS, COLS
from .setup import PiecePlacement, SetupValidation, validate_setup, require_valid_setup
from .combat import ChallengeWinner, resolve_challenge
from .events import ChallengeResult, MoveEvent, MoveType
from .legality import check_move, check_match_move, is_legal_move, legal_moves
from .clock import MatchClock, TimeoutPolicy
from .state import Match, MatchPhase, EndReason
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer, apply_action
from .replay import ReplayLog, reconstruct_at, reconstruct_all, verify_events

__all__ = [
    "PieceType",
    "rank_of",
    "is_spy",
    "is_flag",
    "ROSTER",
    "PIECES_PER_PLAYER",
    "Board",
    "Cell",
    "Player",
    "Position",
    "ROWS",
    "COLS",
    "PiecePlacement",
    "SetupValidation",
    "validate_setup",
    "require_valid_setup",
    "ChallengeWinner",
    "resolve_challenge",
    "ChallengeResult",
    "MoveEvent",
    "MoveType",
    "check_move",
    "check_match_move",
    "is_legal_move",
    "legal_moves",
    "MatchClock",
    "TimeoutPolicy",
    "Match",
    "MatchPhase",
    "EndReason",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "apply_action",
    "ReplayLog",
    "reconstruct_at",
    "reconstruct_all",
    "verify_events",
]
