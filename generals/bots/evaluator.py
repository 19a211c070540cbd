"""
Move Evaluator - Scores candidate steps for bot decision-making.

A step is described by a handful of features:
- Challenge features (how likely the mover is to win, what it hits)
- Position features (towards or away from the enemy back rank)
- Threat features (enemy pieces that could take the mover afterwards)

Enemy pieces the bot's side has not seen are weighed against the enemy
pieces still unaccounted for, so a bot plays with the same information
a human in its seat would have.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from typing import Any

from ..engine_core.board import Board, Cell, Player, Position
from ..engine_core.combat import ChallengeWinner, resolve_challenge
from ..engine_core.pieces import OFFICERS, PieceType, ROSTER


@dataclass
class EvaluationWeights:
    """
    Weights for the move evaluator.

    Higher values = more importance. Negative values discourage a feature.
    Can be adjusted to create different play styles.
    """
    # Challenge-related
    attack: float = 8.0
    advantage: float = 5.0  # Times (win chance - loss chance)
    flag_attack: float = 100.0
    spy_strike: float = 7.0  # Spy challenging a known officer
    private_vs_spy: float = 5.0

    # Position-related
    forward: float = 2.0
    backward: float = -1.0
    winning_step: float = 200.0  # Flag stepping onto the enemy back rank

    # Safety-related
    safe: float = 3.0
    unsafe: float = -4.0
    exposed_officer: float = 0.0  # Captain or better left where it can be taken


@dataclass(frozen=True)
class MoveFeatures:
    """What the evaluator knows about one candidate step."""
    origin: Position
    target: Position
    piece: PieceType
    is_attack: bool = False
    target_piece: PieceType | None = None  # None when empty or unseen
    win_chance: float = 0.0
    loss_chance: float = 0.0
    forward_delta: int = 0
    reaches_enemy_back_rank: bool = False
    threats: tuple[PieceType | None, ...] = ()

    @property
    def advantage(self) -> float:
        return self.win_chance - self.loss_chance

    @property
    def is_safe(self) -> bool:
        return not self.threats

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": str(self.origin),
            "to": str(self.target),
            "piece": self.piece.value,
            "is_attack": self.is_attack,
            "target_piece": self.target_piece.value if self.target_piece else None,
            "win_chance": round(self.win_chance, 3),
            "loss_chance": round(self.loss_chance, 3),
            "is_safe": self.is_safe,
        }


def unseen_pool(board: Board, owner: Player) -> Counter[PieceType]:
    """
    Piece types an opponent of owner could still be facing unseen.

    The full roster minus owner's pieces that are on the board revealed.
    """
    revealed = Counter(cell.piece for _pos, cell in board.pieces_of(owner) if cell.revealed)
    return ROSTER - revealed


def challenge_odds(
    attacker: PieceType, defender: PieceType | None, pool: Counter[PieceType]
) -> tuple[float, float]:
    """
    (win, loss) chance for the attacker.

    defender=None means the defender is unseen and drawn from pool.
    """
    if defender is not None:
        winner = resolve_challenge(attacker, defender)
        return float(winner == ChallengeWinner.ATTACKER), float(winner == ChallengeWinner.DEFENDER)

    total = sum(pool.values())
    if total == 0:
        return 0.0, 0.0
    wins = losses = 0
    for piece, count in pool.items():
        winner = resolve_challenge(attacker, piece)
        if winner == ChallengeWinner.ATTACKER:
            wins += count
        elif winner == ChallengeWinner.DEFENDER:
            losses += count
    return wins / total, losses / total


class MoveEvaluator:
    """
    Scores steps using weighted features.

    Used by bots for 1-ply move selection:
    1. Generate legal steps
    2. Describe each step as MoveFeatures
    3. Score the features
    4. Select the best step

    omniscient=True lets the evaluator read hidden enemy pieces.
    """

    def __init__(self, weights: EvaluationWeights | None = None, omniscient: bool = False):
        self.weights = weights or EvaluationWeights()
        self.omniscient = omniscient

    def knows(self, cell: Cell, player: Player) -> bool:
        """Whether player may see what piece cell holds."""
        return self.omniscient or cell.player == player or cell.revealed

    def features(
        self, board: Board, player: Player, origin: Position, target: Position
    ) -> MoveFeatures:
        mover = board.get(origin)
        if mover is None or mover.player != player:
            raise ValueError(f"No {player.value} piece at {origin}")

        enemy = player.opponent
        pool = unseen_pool(board, enemy)
        occupant = board.get(target)

        target_piece = None
        win_chance = loss_chance = 0.0
        if occupant is not None:
            if self.knows(occupant, player):
                target_piece = occupant.piece
            win_chance, loss_chance = challenge_odds(mover.piece, target_piece, pool)

        # Player 1 advances towards row 0
        step = target.row - origin.row
        forward_delta = -step if player is Player.PLAYER1 else step

        return MoveFeatures(
            origin=origin,
            target=target,
            piece=mover.piece,
            is_attack=occupant is not None,
            target_piece=target_piece,
            win_chance=win_chance,
            loss_chance=loss_chance,
            forward_delta=forward_delta,
            reaches_enemy_back_rank=(
                mover.piece.is_flag and occupant is None and target.row == player.enemy_back_rank
            ),
            threats=self.threats(board, player, mover.piece, origin, target, pool),
        )

    def threats(
        self,
        board: Board,
        player: Player,
        piece: PieceType,
        origin: Position,
        target: Position,
        pool: Counter[PieceType],
    ) -> tuple[PieceType | None, ...]:
        """
        Enemy pieces next to target that would beat piece if they attacked it.

        Unseen enemies count when they would win more often than not;
        they appear as None.
        """
        found = []
        for square in target.neighbours():
            if square == origin:
                continue
            cell = board.get(square)
            if cell is None or cell.player == player:
                continue
            if self.knows(cell, player):
                if resolve_challenge(cell.piece, piece) == ChallengeWinner.ATTACKER:
                    found.append(cell.piece)
                continue
            # Odds of an unseen attacker are the mover's odds as defender
            total = sum(pool.values())
            beaten_by = sum(
                count for p, count in pool.items()
                if resolve_challenge(p, piece) == ChallengeWinner.ATTACKER
            )
            if total and beaten_by / total > 0.5:
                found.append(None)
        return tuple(found)

    def score(self, features: MoveFeatures) -> float:
        """Weighted sum of the features."""
        w = self.weights
        f = features
        score = 0.0

        if f.is_attack:
            score += w.attack + w.advantage * f.advantage
            if f.target_piece is PieceType.FLAG:
                score += w.flag_attack
            if (
                f.piece.is_spy
                and f.target_piece in OFFICERS
                and f.target_piece is not PieceType.PRIVATE
            ):
                score += w.spy_strike
            if f.piece is PieceType.PRIVATE and f.target_piece is PieceType.SPY:
                score += w.private_vs_spy

        if f.reaches_enemy_back_rank:
            score += w.winning_step

        if f.forward_delta > 0:
            score += w.forward
        elif f.forward_delta < 0:
            score += w.backward

        if f.is_safe:
            score += w.safe
        else:
            score += w.unsafe
            if f.piece in OFFICERS and f.piece.rank <= PieceType.CAPTAIN.rank:
                score += w.exposed_officer

        return score
