"""
Event Log - the immutable record of every accepted action.

The log is:
- Append-only and totally ordered by sequence (never by wall clock)
- The only input the replay engine needs besides the initial board
- Stored in a stable wire shape so old matches stay replayable:

    {moveType, playerId, fromRow?, fromCol?, toRow, toCol, piece?,
     challengeResult?: {attacker, defender, winner}, sequence, timestamp?}
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from ..errors import ReplayFormatError
from .board import Position
from .combat import ChallengeWinner
from .pieces import PieceType


class MoveType(str, Enum):
    SETUP = "setup"
    MOVE = "move"
    CHALLENGE = "challenge"


@dataclass(frozen=True)
class ChallengeResult:
    """Both piece types involved in a challenge and who won."""
    attacker: PieceType
    defender: PieceType
    winner: ChallengeWinner

    def to_dict(self) -> dict[str, str]:
        return {
            "attacker": self.attacker.value,
            "defender": self.defender.value,
            "winner": self.winner.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChallengeResult:
        return cls(
            attacker=PieceType.parse(data["attacker"]),
            defender=PieceType.parse(data["defender"]),
            winner=ChallengeWinner(data["winner"]),
        )


@dataclass(frozen=True)
class MoveEvent:
    """
    One log record.

    player_id is the external user ID of the player who acted.
    origin is absent only for setup records.
    timestamp is informational; ordering comes from sequence.
    """
    sequence: int
    move_type: MoveType
    player_id: str
    target: Position
    origin: Position | None = None
    piece: PieceType | None = None
    challenge_result: ChallengeResult | None = None
    timestamp: float | None = None

    @property
    def is_challenge(self) -> bool:
        return self.move_type == MoveType.CHALLENGE

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sequence": self.sequence,
            "moveType": self.move_type.value,
            "playerId": self.player_id,
            "toRow": self.target.row,
            "toCol": self.target.col,
        }
        if self.origin is not None:
            data["fromRow"] = self.origin.row
            data["fromCol"] = self.origin.col
        if self.piece is not None:
            data["piece"] = self.piece.value
        if self.challenge_result is not None:
            data["challengeResult"] = self.challenge_result.to_dict()
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], sequence: int | None = None) -> MoveEvent:
        """
        Parse a wire record.

        Records exported before sequence numbers existed take their
        position in the log as sequence.
        """
        try:
            move_type = MoveType(data["moveType"])
            origin = None
            if data.get("fromRow") is not None and data.get("fromCol") is not None:
                origin = Position(int(data["fromRow"]), int(data["fromCol"]))
            if move_type != MoveType.SETUP and origin is None:
                raise ReplayFormatError(f"{move_type.value} record has no origin square")
            challenge = data.get("challengeResult")
            if move_type == MoveType.CHALLENGE and not challenge:
                raise ReplayFormatError("challenge record has no challengeResult")
            seq = data.get("sequence", sequence)
            if seq is None:
                raise ReplayFormatError("record has no sequence number")
            return cls(
                sequence=int(seq),
                move_type=move_type,
                player_id=str(data.get("playerId", "")),
                target=Position(int(data["toRow"]), int(data["toCol"])),
                origin=origin,
                piece=PieceType.parse(data["piece"]) if data.get("piece") else None,
                challenge_result=ChallengeResult.from_dict(challenge) if challenge else None,
                timestamp=data.get("timestamp"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ReplayFormatError(f"Malformed event record: {e}") from e

    @classmethod
    def coerce(cls, event: MoveEvent | Mapping[str, Any], sequence: int) -> MoveEvent:
        if isinstance(event, MoveEvent):
            return event
        return cls.from_dict(event, sequence=sequence)


def coerce_events(events: Iterable[MoveEvent | Mapping[str, Any]]) -> list[MoveEvent]:
    """Parse a log, checking it is totally ordered by sequence."""
    parsed = [MoveEvent.coerce(e, i) for i, e in enumerate(events)]
    for previous, current in zip(parsed, parsed[1:]):
        if current.sequence <= previous.sequence:
            raise ReplayFormatError(
                f"Event log out of order: {current.sequence} follows {previous.sequence}"
            )
    return parsed
