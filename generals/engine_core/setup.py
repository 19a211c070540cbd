"""
Setup Validator - checks a player's initial placement.

Validates that:
1. Exactly 21 pieces are placed
2. The pieces are exactly the canonical roster
3. Every piece sits on the board, inside the player's three back rows
4. No two pieces share a square

Setup is all-or-nothing: a placement is either applied whole or not at all.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..errors import SetupInvalid
from .board import Board, Cell, Player, Position
from .pieces import PieceType, ROSTER, PIECES_PER_PLAYER


@dataclass(frozen=True)
class PiecePlacement:
    """
    One entry of a submitted setup.

    piece is kept as the raw submitted name; the validator decides
    whether it names a real piece type.
    """
    piece: str
    row: int
    col: int

    @property
    def position(self) -> Position:
        return Position(self.row, self.col)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PiecePlacement:
        return cls(piece=str(data["piece"]), row=int(data["row"]), col=int(data["col"]))

    def to_dict(self) -> dict[str, Any]:
        return {"piece": self.piece, "row": self.row, "col": self.col}


@dataclass
class SetupValidation:
    """Result of validating a setup."""
    valid: bool
    errors: list[str] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        if not self.valid:
            raise SetupInvalid(self.errors)


def _coerce(pieces: Iterable[PiecePlacement | Mapping[str, Any]]) -> list[PiecePlacement]:
    return [
        p if isinstance(p, PiecePlacement) else PiecePlacement.from_dict(p)
        for p in pieces
    ]


def validate_setup(
    pieces: Iterable[PiecePlacement | Mapping[str, Any]],
    player: Player,
) -> SetupValidation:
    """
    Validate a proposed placement for one player.

    Returns SetupValidation listing every broken rule.
    """
    placements = _coerce(pieces)
    errors: list[str] = []

    if len(placements) != PIECES_PER_PLAYER:
        errors.append(
            f"Expected {PIECES_PER_PLAYER} pieces, got {len(placements)}"
        )

    unknown = sorted({p.piece for p in placements if not PieceType.is_known(p.piece)})
    if unknown:
        errors.append(f"Unknown piece types: {', '.join(unknown)}")

    counts = Counter(PieceType(p.piece) for p in placements if PieceType.is_known(p.piece))
    for piece_type in PieceType:
        expected = ROSTER[piece_type]
        actual = counts.get(piece_type, 0)
        if actual != expected:
            errors.append(
                f"Expected {expected} x {piece_type.value}, got {actual}"
            )

    allowed_rows = player.home_rows
    outside = [
        p for p in placements
        if not p.position.in_bounds or p.row not in allowed_rows
    ]
    if outside:
        squares = ", ".join(str(p.position) for p in outside)
        errors.append(
            f"Pieces must be placed in your area (rows {allowed_rows[0]}-{allowed_rows[-1]}): {squares}"
        )

    seen: set[Position] = set()
    duplicates: list[Position] = []
    for p in placements:
        if p.position in seen and p.position not in duplicates:
            duplicates.append(p.position)
        seen.add(p.position)
    if duplicates:
        errors.append(
            f"More than one piece on: {', '.join(str(pos) for pos in duplicates)}"
        )

    return SetupValidation(valid=not errors, errors=errors)


def require_valid_setup(
    pieces: Iterable[PiecePlacement | Mapping[str, Any]],
    player: Player,
) -> list[PiecePlacement]:
    """Validate and return the parsed placements, raising SetupInvalid on failure."""
    placements = _coerce(pieces)
    validate_setup(placements, player).raise_for_errors()
    return placements


def place_setup(board: Board, placements: Iterable[PiecePlacement], player: Player) -> Board:
    """Put an already validated placement on the board, every piece hidden."""
    return board.with_cells({
        p.position: Cell(piece=PieceType.parse(p.piece), player=player, revealed=False)
        for p in placements
    })
