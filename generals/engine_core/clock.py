"""
Match Clock - per-player time used, updated alongside accepted moves.

There is no timer thread. Expiry is checked when a move is submitted or
when something polls the match (claim_timeout). Times are in seconds.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum

from .board import Board, Player


DEFAULT_GAME_CLOCK_SECONDS = 900.0
DEFAULT_SETUP_CLOCK_SECONDS = 300.0


class TimeoutPolicy(str, Enum):
    """Who wins when the player on turn runs out of time."""
    TIMED_OUT_PLAYER_LOSES = "timed_out_player_loses"
    MORE_MATERIAL_WINS = "more_material_wins"
    DRAW_ON_EQUAL_MATERIAL = "draw_on_equal_material"


@dataclass(frozen=True)
class MatchClock:
    limit_seconds: float = DEFAULT_GAME_CLOCK_SECONDS
    player1_used: float = 0.0
    player2_used: float = 0.0
    turn_started_at: float | None = None

    def used(self, player: Player) -> float:
        return self.player1_used if player is Player.PLAYER1 else self.player2_used

    def running(self, now: float) -> float:
        """Seconds spent on the current turn so far."""
        if self.turn_started_at is None:
            return 0.0
        return max(0.0, now - self.turn_started_at)

    def remaining(self, player: Player, now: float, on_turn: bool) -> float:
        spent = self.used(player) + (self.running(now) if on_turn else 0.0)
        return max(0.0, self.limit_seconds - spent)

    def is_expired(self, player: Player, now: float) -> bool:
        """Whether the player on turn has used up their clock."""
        return self.remaining(player, now, on_turn=True) <= 0.0

    def start(self, now: float) -> MatchClock:
        return replace(self, turn_started_at=now)

    def charge(self, player: Player, now: float) -> MatchClock:
        """Add the finished turn to the player's total and start the next turn."""
        spent = self.running(now)
        if player is Player.PLAYER1:
            return replace(self, player1_used=self.player1_used + spent, turn_started_at=now)
        return replace(self, player2_used=self.player2_used + spent, turn_started_at=now)


def timeout_winner(policy: TimeoutPolicy, timed_out: Player, board: Board) -> Player | None:
    """
    Decide a timeout. Returns None for a draw.

    Material is the number of pieces still on the board.
    """
    if policy == TimeoutPolicy.TIMED_OUT_PLAYER_LOSES:
        return timed_out.opponent

    mine = board.count(timed_out)
    theirs = board.count(timed_out.opponent)
    if mine > theirs:
        return timed_out
    if theirs > mine:
        return timed_out.opponent
    if policy == TimeoutPolicy.DRAW_ON_EQUAL_MATERIAL:
        return None
    return timed_out.opponent
