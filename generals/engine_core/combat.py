"""
Combat Resolver - decides a challenge between two piece types.

Precedence (recorded event logs depend on it; do not reorder):
1. Flag: the non-Flag side always wins. Flag attacking Flag: attacker wins.
2. Spy / Private: a Private beats a Spy either way round; a Spy beats
   every other piece.
3. Rank: the lower rank number wins.
4. Same piece type: tie, both pieces leave the board.
"""

from __future__ import annotations
from enum import Enum

from .pieces import PieceType


class ChallengeWinner(str, Enum):
    ATTACKER = "attacker"
    DEFENDER = "defender"
    TIE = "tie"


def resolve_challenge(
    attacker: PieceType | str,
    defender: PieceType | str,
) -> ChallengeWinner:
    """Resolve a challenge. Unknown piece types raise UnknownPieceError."""
    attacker = PieceType.parse(attacker)
    defender = PieceType.parse(defender)

    if attacker.is_flag or defender.is_flag:
        if attacker.is_flag and defender.is_flag:
            return ChallengeWinner.ATTACKER
        return ChallengeWinner.DEFENDER if attacker.is_flag else ChallengeWinner.ATTACKER

    if attacker is not defender:
        if attacker.is_spy:
            if defender is PieceType.PRIVATE:
                return ChallengeWinner.DEFENDER
            return ChallengeWinner.ATTACKER
        if defender.is_spy:
            if attacker is PieceType.PRIVATE:
                return ChallengeWinner.ATTACKER
            return ChallengeWinner.DEFENDER

    if attacker.rank < defender.rank:
        return ChallengeWinner.ATTACKER
    if attacker.rank > defender.rank:
        return ChallengeWinner.DEFENDER
    return ChallengeWinner.TIE
