"""
Board Transition - the single relocate/remove/reveal function.

Both the live reducer and the replay engine call apply_event(). Nothing
else in the codebase moves pieces, so what was played and what a replay
shows cannot drift apart.
"""

from __future__ import annotations

from ..errors import InvariantViolation
from .board import Board, Cell, Player, Position
from .combat import ChallengeWinner, resolve_challenge
from .events import ChallengeResult, MoveEvent, MoveType


def build_event(
    board: Board,
    origin: Position,
    target: Position,
    player_id: str,
    sequence: int,
    timestamp: float | None = None,
) -> MoveEvent:
    """
    Describe a legal move as a log record, resolving combat if needed.

    The move must already have passed the legality checks.
    """
    mover = board.get(origin)
    if mover is None:
        raise InvariantViolation(f"No piece at {origin} to build an event from")
    defender = board.get(target)

    if defender is None:
        return MoveEvent(
            sequence=sequence,
            move_type=MoveType.MOVE,
            player_id=player_id,
            target=target,
            origin=origin,
            piece=mover.piece,
            timestamp=timestamp,
        )

    return MoveEvent(
        sequence=sequence,
        move_type=MoveType.CHALLENGE,
        player_id=player_id,
        target=target,
        origin=origin,
        piece=mover.piece,
        challenge_result=ChallengeResult(
            attacker=mover.piece,
            defender=defender.piece,
            winner=resolve_challenge(mover.piece, defender.piece),
        ),
        timestamp=timestamp,
    )


def apply_event(board: Board, event: MoveEvent) -> Board:
    """
    Apply one log record to a board and return the new board.

    - setup: place the piece, hidden, for the side owning that row
    - move: relocate silently
    - challenge, attacker wins: attacker relocates and is revealed
    - challenge, defender wins: attacker removed, defender untouched
    - challenge, tie: both squares emptied
    """
    if event.move_type == MoveType.SETUP:
        if event.piece is None:
            raise InvariantViolation(f"Setup event {event.sequence} has no piece")
        side = next((p for p in Player if event.target.row in p.home_rows), None)
        if side is None:
            raise InvariantViolation(
                f"Setup event {event.sequence}: row {event.target.row} is outside both home areas"
            )
        return board.with_cells({event.target: Cell(piece=event.piece, player=side)})

    mover = board.get(event.origin) if event.origin is not None else None
    if mover is None:
        raise InvariantViolation(
            f"Event {event.sequence}: no piece at origin {event.origin}"
        )

    if event.move_type == MoveType.MOVE:
        if board.get(event.target) is not None:
            raise InvariantViolation(
                f"Event {event.sequence}: move onto occupied square {event.target}"
            )
        return board.with_cells({event.origin: None, event.target: mover})

    result = event.challenge_result
    if result is None or board.get(event.target) is None:
        raise InvariantViolation(
            f"Event {event.sequence}: challenge without a defender at {event.target}"
        )

    if result.winner == ChallengeWinner.ATTACKER:
        return board.with_cells({event.origin: None, event.target: mover.reveal()})
    if result.winner == ChallengeWinner.DEFENDER:
        return board.with_cells({event.origin: None})
    return board.with_cells({event.origin: None, event.target: None})
