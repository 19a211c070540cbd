"""
Built-in setup formations.

Formations are authored from Player 1's side (rows 5-7). preset_for()
mirrors them onto rows 0-2 for Player 2, keeping columns unchanged, so the
front line stays the front line.
"""

from __future__ import annotations
from dataclasses import dataclass

from .engine_core.board import Player
from .engine_core.setup import PiecePlacement


@dataclass(frozen=True)
class Preset:
    name: str
    description: str
    pieces: tuple[PiecePlacement, ...]

    def for_player(self, player: Player) -> list[PiecePlacement]:
        if player is Player.PLAYER1:
            return list(self.pieces)
        return [
            PiecePlacement(piece=p.piece, row=p.position.mirrored().row, col=p.col)
            for p in self.pieces
        ]


def _preset(name: str, description: str, rows: dict[int, dict[int, str]]) -> Preset:
    pieces = tuple(
        PiecePlacement(piece=piece, row=row, col=col)
        for row, cols in rows.items()
        for col, piece in cols.items()
    )
    return Preset(name=name, description=description, pieces=pieces)


AGGRESSIVE_FRONT = _preset(
    "Aggressive Front",
    "Strong offensive formation with flag protected by spies",
    {
        5: {
            0: "Major", 1: "Colonel", 2: "2 Star General", 3: "4 Star General",
            4: "5 Star General", 5: "3 Star General", 6: "1 Star General",
            7: "Lieutenant Colonel", 8: "Captain",
        },
        6: {
            0: "Private", 1: "Private", 2: "2nd Lieutenant", 3: "Spy",
            4: "1st Lieutenant", 5: "Spy", 6: "Sergeant", 7: "Private", 8: "Private",
        },
        7: {3: "Private", 4: "Flag", 5: "Private"},
    },
)

FORTRESS_DEFENSE = _preset(
    "Fortress Defense",
    "Defensive formation with flag heavily protected in the back",
    {
        5: {
            0: "Private", 1: "Private", 2: "Private", 3: "Sergeant",
            4: "2nd Lieutenant", 5: "1st Lieutenant", 6: "Captain", 7: "Private",
        },
        6: {
            0: "Private", 1: "Major", 2: "Lieutenant Colonel", 3: "Colonel",
            4: "1 Star General", 5: "2 Star General", 6: "3 Star General",
            7: "4 Star General", 8: "Private",
        },
        7: {2: "5 Star General", 3: "Spy", 4: "Flag", 5: "Spy"},
    },
)

BALANCED_FORMATION = _preset(
    "Balanced Formation",
    "Well-rounded setup with good offense and defense",
    {
        5: {
            0: "Private", 1: "Sergeant", 2: "2nd Lieutenant", 3: "Captain",
            4: "Major", 5: "Lieutenant Colonel", 6: "Colonel",
            7: "1 Star General", 8: "Private",
        },
        6: {
            0: "Private", 1: "1st Lieutenant", 2: "2 Star General",
            3: "3 Star General", 4: "4 Star General", 5: "5 Star General",
            6: "Spy", 7: "Private", 8: "Private",
        },
        7: {3: "Spy", 4: "Flag", 5: "Private"},
    },
)

SPY_GAMBIT = _preset(
    "Spy Gambit",
    "Aggressive formation focusing on spy tactics",
    {
        5: {
            0: "Private", 1: "Private", 2: "Spy", 3: "Sergeant",
            4: "2nd Lieutenant", 5: "1st Lieutenant", 6: "Spy", 7: "Private", 8: "Private",
        },
        6: {
            0: "Captain", 1: "Major", 2: "Lieutenant Colonel", 3: "Colonel",
            4: "1 Star General", 5: "2 Star General", 6: "3 Star General",
            7: "4 Star General", 8: "5 Star General",
        },
        7: {3: "Private", 4: "Flag", 5: "Private"},
    },
)

PRESETS: dict[str, Preset] = {
    p.name: p
    for p in (AGGRESSIVE_FRONT, FORTRESS_DEFENSE, BALANCED_FORMATION, SPY_GAMBIT)
}


def list_presets() -> list[Preset]:
    return list(PRESETS.values())


def get_preset(name: str) -> Preset:
    """Look up a formation by name (case-insensitive)."""
    for preset in PRESETS.values():
        if preset.name.lower() == name.lower():
            return preset
    raise KeyError(f"Unknown preset: {name}")


def preset_for(name: str, player: Player) -> list[PiecePlacement]:
    """A formation's placements for one side, ready for submit_setup."""
    return get_preset(name).for_player(player)
