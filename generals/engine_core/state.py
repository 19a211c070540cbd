"""
Match State - the single source of truth for one game.

Design principles:
- Immutable-friendly: the reducer derives a new Match for every change
- Serializable: can be exported for replays and persisted by callers
- One Match per active game; nothing is shared between matches
- Once phase is FINISHED the match never changes again
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field, replace
from enum import Enum

from .board import Board, Player
from .clock import MatchClock
from .events import MoveEvent


class MatchPhase(str, Enum):
    """High-level match phases."""
    SETUP = "setup"
    PLAYING = "playing"
    FINISHED = "finished"


class EndReason(str, Enum):
    FLAG_CAPTURED = "flag_captured"
    FLAG_REACHED_BASE = "flag_reached_base"
    ELIMINATION = "elimination"
    TIMEOUT = "timeout"
    SURRENDER = "surrender"


@dataclass(frozen=True)
class Match:
    """
    Complete match state at a point in time.

    player1_id / player2_id are the external user IDs; the engine itself
    only reasons in terms of Player sides.
    """
    match_id: str
    player1_id: str
    player2_id: str
    player1_username: str = ""
    player2_username: str = ""

    phase: MatchPhase = MatchPhase.SETUP
    current_turn: Player = Player.PLAYER1
    board: Board = field(default_factory=Board)
    initial_board: Board | None = None
    player1_setup: bool = False
    player2_setup: bool = False

    winner: Player | None = None
    end_reason: EndReason | None = None

    # Append-only log of accepted moves
    events: tuple[MoveEvent, ...] = ()

    clock: MatchClock = field(default_factory=MatchClock)
    created_at: float = 0.0
    started_at: float | None = None
    finished_at: float | None = None

    @property
    def is_finished(self) -> bool:
        return self.phase == MatchPhase.FINISHED

    @property
    def is_draw(self) -> bool:
        return self.is_finished and self.winner is None

    @property
    def move_count(self) -> int:
        return len(self.events)

    def side_of(self, user_id: str | None) -> Player | None:
        """Which side a user plays, or None for spectators."""
        if user_id is None:
            return None
        if user_id == self.player1_id:
            return Player.PLAYER1
        if user_id == self.player2_id:
            return Player.PLAYER2
        return None

    def user_id_of(self, player: Player) -> str:
        return self.player1_id if player is Player.PLAYER1 else self.player2_id

    def username_of(self, player: Player) -> str:
        return self.player1_username if player is Player.PLAYER1 else self.player2_username

    def has_submitted_setup(self, player: Player) -> bool:
        return self.player1_setup if player is Player.PLAYER1 else self.player2_setup

    def _copy_with(self, **kwargs) -> Match:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def clone(self) -> Match:
        """Deep copy the match."""
        return deepcopy(self)
