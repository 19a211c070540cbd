"""
Piece Rank Table - the closed set of piece types and their combat ranks.

Rank ordering is total and fixed: lower number = stronger piece.
1 is the 5 Star General and 13 the Private. Spy and Flag sit outside the
officer hierarchy and carry sentinel ranks; their special interactions are
handled by the combat resolver, never by rank comparison alone.
"""

from __future__ import annotations
from collections import Counter
from enum import Enum

from ..errors import UnknownPieceError


SPY_RANK = 0
FLAG_RANK = 14


class PieceType(str, Enum):
    """A piece type. The value is the display/wire name."""
    FLAG = "Flag"
    SPY = "Spy"
    PRIVATE = "Private"
    SERGEANT = "Sergeant"
    SECOND_LIEUTENANT = "2nd Lieutenant"
    FIRST_LIEUTENANT = "1st Lieutenant"
    CAPTAIN = "Captain"
    MAJOR = "Major"
    LIEUTENANT_COLONEL = "Lieutenant Colonel"
    COLONEL = "Colonel"
    ONE_STAR_GENERAL = "1 Star General"
    TWO_STAR_GENERAL = "2 Star General"
    THREE_STAR_GENERAL = "3 Star General"
    FOUR_STAR_GENERAL = "4 Star General"
    FIVE_STAR_GENERAL = "5 Star General"

    @property
    def rank(self) -> int:
        return RANKS[self]

    @property
    def is_spy(self) -> bool:
        return self is PieceType.SPY

    @property
    def is_flag(self) -> bool:
        return self is PieceType.FLAG

    @property
    def short(self) -> str:
        """Two-character label for text boards."""
        return SHORT_LABELS[self]

    @classmethod
    def parse(cls, value: str | PieceType) -> PieceType:
        """
        Parse a wire name into a PieceType.

        Raises UnknownPieceError: an unknown name inside the engine means
        stored data and deployed code have drifted apart.
        """
        if isinstance(value, PieceType):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownPieceError(value) from None

    @classmethod
    def is_known(cls, value: object) -> bool:
        """Check a user-supplied name without raising."""
        return isinstance(value, str) and value in _BY_NAME


RANKS: dict[PieceType, int] = {
    PieceType.FIVE_STAR_GENERAL: 1,
    PieceType.FOUR_STAR_GENERAL: 2,
    PieceType.THREE_STAR_GENERAL: 3,
    PieceType.TWO_STAR_GENERAL: 4,
    PieceType.ONE_STAR_GENERAL: 5,
    PieceType.COLONEL: 6,
    PieceType.LIEUTENANT_COLONEL: 7,
    PieceType.MAJOR: 8,
    PieceType.CAPTAIN: 9,
    PieceType.FIRST_LIEUTENANT: 10,
    PieceType.SECOND_LIEUTENANT: 11,
    PieceType.SERGEANT: 12,
    PieceType.PRIVATE: 13,
    PieceType.SPY: SPY_RANK,
    PieceType.FLAG: FLAG_RANK,
}

SHORT_LABELS: dict[PieceType, str] = {
    PieceType.FLAG: "FL",
    PieceType.SPY: "SP",
    PieceType.PRIVATE: "PV",
    PieceType.SERGEANT: "SG",
    PieceType.SECOND_LIEUTENANT: "2L",
    PieceType.FIRST_LIEUTENANT: "1L",
    PieceType.CAPTAIN: "CP",
    PieceType.MAJOR: "MJ",
    PieceType.LIEUTENANT_COLONEL: "LC",
    PieceType.COLONEL: "CL",
    PieceType.ONE_STAR_GENERAL: "G1",
    PieceType.TWO_STAR_GENERAL: "G2",
    PieceType.THREE_STAR_GENERAL: "G3",
    PieceType.FOUR_STAR_GENERAL: "G4",
    PieceType.FIVE_STAR_GENERAL: "G5",
}

_BY_NAME = {p.value for p in PieceType}

# Officer hierarchy, strongest first
OFFICERS: tuple[PieceType, ...] = tuple(
    sorted((p for p in PieceType if not p.is_spy and not p.is_flag), key=lambda p: p.rank)
)

# The 21-piece roster each player places during setup
ROSTER: Counter[PieceType] = Counter({p: 1 for p in OFFICERS})
ROSTER[PieceType.PRIVATE] = 6
ROSTER[PieceType.SPY] = 2
ROSTER[PieceType.FLAG] = 1

PIECES_PER_PLAYER = sum(ROSTER.values())


def rank_of(piece: PieceType | str) -> int:
    """Combat rank of a piece type."""
    return PieceType.parse(piece).rank


def is_spy(piece: PieceType | str) -> bool:
    return PieceType.parse(piece).is_spy


def is_flag(piece: PieceType | str) -> bool:
    return PieceType.parse(piece).is_flag
