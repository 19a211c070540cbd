"""
Generals Bot - computer opponent for Game of the Generals.

The bot:
- Scores every legal step with one ply of lookahead
- Weighs steps by its behaviour (aggressive, defensive, passive, balanced)
- Plays more or less carefully depending on its difficulty
- Sees only what its own side may see, unless made omniscient

The bot does NOT:
- Search deeper than one step
- Remember pieces it saw before they were hidden again
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import random

from ..engine_core.action import Action
from ..engine_core.board import COLS, Player
from ..engine_core.pieces import OFFICERS, PieceType
from ..engine_core.setup import PiecePlacement
from ..engine_core.state import Match
from .evaluator import MoveEvaluator, MoveFeatures
from .formation import random_setup
from .personality import (
    DIFFICULTIES,
    PERSONALITIES,
    Behaviour,
    Difficulty,
    DifficultyProfile,
    Personality,
)
from .policy import BotDecision, BotPolicy

logger = logging.getLogger(__name__)

CENTRE_COL = COLS // 2


def _strength_gap(attacker: PieceType | None, defender: PieceType) -> int:
    """How many ranks a threatening officer outranks the mover by."""
    if attacker is None or attacker not in OFFICERS or defender not in OFFICERS:
        return 0
    return max(0, defender.rank - attacker.rank)


@dataclass
class GeneralsBot(BotPolicy):
    """
    Computer player with 1-ply heuristic move scoring.

    Usage:
        bot = GeneralsBot(behaviour=Behaviour.AGGRESSIVE, difficulty=Difficulty.HARD)
        decision = bot.select_move(match, legal_move_actions(match))
    """
    behaviour: Behaviour = Behaviour.BALANCED
    difficulty: Difficulty = Difficulty.MEDIUM
    omniscient: bool = False
    seed: int | None = None
    personality: Personality = None  # type: ignore
    evaluator: MoveEvaluator = None  # type: ignore
    rng: random.Random = None  # type: ignore

    def __post_init__(self):
        self.behaviour = Behaviour(self.behaviour)
        self.difficulty = Difficulty(self.difficulty)
        if self.personality is None:
            self.personality = PERSONALITIES[self.behaviour]
        if self.evaluator is None:
            self.evaluator = MoveEvaluator(self.personality.weights, omniscient=self.omniscient)
        if self.rng is None:
            self.rng = random.Random(self.seed)

    @property
    def profile(self) -> DifficultyProfile:
        return DIFFICULTIES[self.difficulty]

    def get_name(self) -> str:
        return f"{self.personality.name} Bot ({self.difficulty.value})"

    def select_move(self, match: Match, legal_actions: list[Action]) -> BotDecision:
        """
        Select the best-scoring step.

        Equal scores are broken at random.
        """
        if not legal_actions:
            raise ValueError("No legal moves available")

        player = match.current_turn
        best_action = best_features = None
        best_score = float("-inf")
        for action in legal_actions:
            features = self.evaluator.features(
                match.board, player, action.payload.origin, action.payload.target
            )
            score = self._score(features)
            if score > best_score or (score == best_score and self.rng.random() < 0.5):
                best_action, best_features, best_score = action, features, score

        logger.debug(
            "%s picked %s -> %s (score %.2f of %d moves)",
            self.get_name(), best_features.origin, best_features.target, best_score, len(legal_actions),
        )
        return BotDecision(
            action=best_action,
            explanation=self._explain(best_features),
            evaluated_moves=len(legal_actions),
            best_score=best_score,
            evaluation_details=best_features.to_dict(),
        )

    def select_setup(self, player: Player) -> list[PiecePlacement]:
        return random_setup(player, self.rng)

    def _score(self, features: MoveFeatures) -> float:
        profile = self.profile
        score = self.evaluator.score(features) * profile.score_scale
        if profile.noise:
            score += self.rng.uniform(-profile.noise, profile.noise)
        if profile.threat_penalty:
            for threat in features.threats:
                score -= profile.threat_penalty + _strength_gap(threat, features.piece)
        if profile.centre_penalty:
            score -= abs(features.target.col - CENTRE_COL) * profile.centre_penalty
        return score

    def _explain(self, features: MoveFeatures) -> str:
        if features.reaches_enemy_back_rank:
            return "Flag reaches the enemy back rank"
        if features.is_attack:
            target = features.target_piece.value if features.target_piece else "an unknown piece"
            return (
                f"{features.piece.value} challenges {target} "
                f"({features.win_chance:.0%} to win)"
            )
        if not features.is_safe:
            return f"{features.piece.value} advances into contact"
        return f"{features.piece.value} moves to a safe square"
