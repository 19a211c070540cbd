"""
Bot Personalities - Configurable play styles and difficulty levels.

A behaviour picks the evaluation weights:
- aggressive: challenges often, pushes forward
- defensive: challenges when it is likely to win, protects its officers
- passive: avoids challenges, keeps pieces out of reach
- balanced: somewhere in between

A difficulty decides how carefully those weights are followed.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .evaluator import EvaluationWeights


class Behaviour(str, Enum):
    AGGRESSIVE = "aggressive"
    DEFENSIVE = "defensive"
    PASSIVE = "passive"
    BALANCED = "balanced"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass
class Personality:
    """A bot play style."""
    name: str
    description: str = ""
    weights: EvaluationWeights = field(default_factory=EvaluationWeights)


@dataclass(frozen=True)
class DifficultyProfile:
    """
    How a difficulty bends the evaluator's scores.

    score_scale multiplies the score, noise adds uniform jitter in
    [-noise, noise], threat_penalty is charged per enemy piece that could
    take the mover afterwards, centre_penalty per column away from the
    centre file.
    """
    score_scale: float = 1.0
    noise: float = 0.0
    threat_penalty: float = 0.0
    centre_penalty: float = 0.0


# ============================================================================
# Predefined Personalities
# ============================================================================

BALANCED = Personality(
    name="Balanced",
    description="Trades when the odds are good, advances steadily",
    weights=EvaluationWeights(),
)


AGGRESSIVE = Personality(
    name="Aggressive",
    description="Challenges whenever it can and keeps pushing forward",
    weights=EvaluationWeights(
        attack=10.0,
        advantage=10.0,
        spy_strike=8.0,
        private_vs_spy=6.0,
        safe=1.0,
        unsafe=-1.0,
    ),
)


DEFENSIVE = Personality(
    name="Defensive",
    description="Picks safe squares and guards its senior officers",
    weights=EvaluationWeights(
        attack=6.0,
        advantage=5.0,
        spy_strike=6.0,
        private_vs_spy=5.0,
        forward=0.0,
        backward=0.0,
        safe=6.0,
        unsafe=-8.0,
        exposed_officer=-4.0,
    ),
)


PASSIVE = Personality(
    name="Passive",
    description="Avoids challenges and keeps out of reach",
    weights=EvaluationWeights(
        attack=-5.0,
        advantage=0.0,
        flag_attack=0.0,
        spy_strike=0.0,
        private_vs_spy=0.0,
        safe=6.0,
        unsafe=-8.0,
    ),
)


PERSONALITIES: dict[Behaviour, Personality] = {
    Behaviour.AGGRESSIVE: AGGRESSIVE,
    Behaviour.DEFENSIVE: DEFENSIVE,
    Behaviour.PASSIVE: PASSIVE,
    Behaviour.BALANCED: BALANCED,
}


DIFFICULTIES: dict[Difficulty, DifficultyProfile] = {
    Difficulty.EASY: DifficultyProfile(score_scale=0.5, noise=5.0),
    Difficulty.MEDIUM: DifficultyProfile(noise=2.0),
    Difficulty.HARD: DifficultyProfile(threat_penalty=8.0, centre_penalty=0.5),
}
