"""
Move Legality - decides whether a proposed move may be played.

Used by:
1. The reducer, before any state change
2. Win detection (a player with no legal move is eliminated)
3. Clients that want to highlight reachable squares

A move is a single orthogonal step onto an empty square or an enemy piece.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from ..errors import MoveErrorKind, MoveIllegal
from .board import Board, Player, Position

if TYPE_CHECKING:
    from .state import Match


def check_move(board: Board, origin: Position, target: Position, player: Player) -> None:
    """
    Check the board-level movement rules.

    Raises MoveIllegal with the first rule broken.
    """
    if not origin.in_bounds or not target.in_bounds:
        raise MoveIllegal(
            MoveErrorKind.OUT_OF_BOUNDS,
            "Move out of bounds",
            context={"from": str(origin), "to": str(target)},
        )

    mover = board.get(origin)
    if mover is None or mover.player != player:
        raise MoveIllegal(
            MoveErrorKind.NO_PIECE,
            "Invalid piece selection",
            context={"from": str(origin)},
        )

    if origin.is_diagonal_to(target):
        raise MoveIllegal(
            MoveErrorKind.DIAGONAL_MOVE,
            "Pieces cannot move diagonally",
            context={"from": str(origin), "to": str(target)},
        )

    if origin.distance(target) != 1:
        raise MoveIllegal(
            MoveErrorKind.NOT_ADJACENT,
            "Invalid move - pieces can only move to adjacent squares",
            context={"from": str(origin), "to": str(target)},
        )

    occupant = board.get(target)
    if occupant is not None and occupant.player == player:
        raise MoveIllegal(
            MoveErrorKind.OWN_PIECE_BLOCKED,
            "Cannot attack your own piece",
            context={"to": str(target)},
        )


def is_legal_move(
    board: Board, origin: Position, target: Position, player: Player
) -> MoveIllegal | None:
    """Return None when the move is legal, otherwise the reason it is not."""
    try:
        check_move(board, origin, target, player)
    except MoveIllegal as e:
        return e
    return None


def check_match_move(match: Match, player: Player, origin: Position, target: Position) -> None:
    """Check phase and turn, then the board rules."""
    from .state import MatchPhase

    if match.phase != MatchPhase.PLAYING:
        raise MoveIllegal(
            MoveErrorKind.WRONG_PHASE,
            "Game is not active",
            context={"phase": match.phase.value},
        )
    if match.current_turn != player:
        raise MoveIllegal(MoveErrorKind.NOT_YOUR_TURN, "Not your turn")
    check_move(match.board, origin, target, player)


def legal_moves(board: Board, player: Player) -> list[tuple[Position, Position]]:
    """Every legal (origin, target) step for a player, row-major by origin."""
    moves = []
    for origin, _cell in board.pieces_of(player):
        for target in origin.neighbours():
            occupant = board.get(target)
            if occupant is None or occupant.player != player:
                moves.append((origin, target))
    return moves


def has_legal_move(board: Board, player: Player) -> bool:
    for origin, _cell in board.pieces_of(player):
        for target in origin.neighbours():
            occupant = board.get(target)
            if occupant is None or occupant.player != player:
                return True
    return False
