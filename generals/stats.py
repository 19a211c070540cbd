"""
Match statistics and achievements derived from a finished match's log.

Everything here reads the event log; piece counts over time come from
replaying the log, so these numbers always agree with what was played.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable

from .engine_core.board import Board, Player
from .engine_core.combat import ChallengeWinner
from .engine_core.events import MoveEvent, coerce_events
from .engine_core.pieces import PIECES_PER_PLAYER, PieceType
from .engine_core.replay import iter_boards
from .engine_core.state import Match

# Winner fell to this many pieces or fewer
COMEBACK_THRESHOLD = 5


@dataclass
class SideStatistics:
    pieces_eliminated: int = 0
    spies_revealed: int = 0
    flag_captured: bool = False
    pieces_lost: int = 0
    min_pieces_remaining: int = PIECES_PER_PLAYER


@dataclass
class MatchStatistics:
    player1: SideStatistics = field(default_factory=SideStatistics)
    player2: SideStatistics = field(default_factory=SideStatistics)
    winner: Player | None = None
    achievements: list[str] = field(default_factory=list)

    def side(self, player: Player) -> SideStatistics:
        return self.player1 if player is Player.PLAYER1 else self.player2

    def to_dict(self) -> dict[str, Any]:
        return {
            "player1": asdict(self.player1),
            "player2": asdict(self.player2),
            "winner": self.winner.value if self.winner else None,
            "achievements": list(self.achievements),
        }


def match_statistics(
    initial_board: Board,
    events: Iterable[MoveEvent | dict[str, Any]],
    player1_id: str,
    player2_id: str,
    winner: Player | str | None = None,
) -> MatchStatistics:
    """
    Aggregate per-side statistics for a match.

    Achievements are awarded to the winner only:
    - perfectionist: the winner lost no piece
    - comeback_king: the winner was down to 5 pieces or fewer at some point
    """
    parsed = coerce_events(events)
    winner = Player(winner) if winner is not None else None
    stats = MatchStatistics(winner=winner)

    sides = {player1_id: Player.PLAYER1, player2_id: Player.PLAYER2}

    for event in parsed:
        result = event.challenge_result
        if result is None:
            continue
        attacker_side = sides.get(event.player_id)
        if attacker_side is None:
            continue
        attacker = stats.side(attacker_side)
        defender = stats.side(attacker_side.opponent)

        if result.winner == ChallengeWinner.ATTACKER:
            attacker.pieces_eliminated += 1
            defender.pieces_lost += 1
            if result.attacker is PieceType.SPY:
                attacker.spies_revealed += 1
            if result.defender is PieceType.FLAG:
                attacker.flag_captured = True
        elif result.winner == ChallengeWinner.DEFENDER:
            defender.pieces_eliminated += 1
            attacker.pieces_lost += 1
            if result.defender is PieceType.SPY:
                defender.spies_revealed += 1
            if result.attacker is PieceType.FLAG:
                defender.flag_captured = True
        else:
            attacker.pieces_lost += 1
            defender.pieces_lost += 1

    for board in iter_boards(initial_board, parsed):
        for player in Player:
            side = stats.side(player)
            side.min_pieces_remaining = min(side.min_pieces_remaining, board.count(player))

    if winner is not None:
        won = stats.side(winner)
        if won.pieces_lost == 0:
            stats.achievements.append("perfectionist")
        if won.min_pieces_remaining <= COMEBACK_THRESHOLD:
            stats.achievements.append("comeback_king")

    return stats


def match_result(match: Match) -> dict[str, Any]:
    """Summary of a finished match: winner (or draw), reason, duration, moves."""
    if not match.is_finished:
        raise ValueError(f"Match {match.match_id} is not finished")
    started = match.started_at if match.started_at is not None else match.created_at
    finished = match.finished_at if match.finished_at is not None else started
    return {
        "winner": match.winner.value if match.winner else "draw",
        "reason": match.end_reason.value if match.end_reason else None,
        "duration_seconds": max(0.0, finished - started),
        "moves": match.move_count,
    }
