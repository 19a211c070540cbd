"""Random setups for bot players."""

from __future__ import annotations
import random

from ..engine_core.board import COLS, Player, Position
from ..engine_core.pieces import ROSTER
from ..engine_core.setup import PiecePlacement


def random_setup(player: Player, rng: random.Random | None = None) -> list[PiecePlacement]:
    """
    The roster shuffled onto 21 of the player's 27 home squares.

    Always a valid setup; pass a seeded rng for a repeatable one.
    """
    rng = rng or random.Random()
    pieces = list(ROSTER.elements())
    rng.shuffle(pieces)
    squares = [Position(row, col) for row in player.home_rows for col in range(COLS)]
    chosen = sorted(rng.sample(squares, len(pieces)), key=lambda p: (p.row, p.col))
    return [
        PiecePlacement(piece=piece.value, row=pos.row, col=pos.col)
        for piece, pos in zip(pieces, chosen)
    ]
