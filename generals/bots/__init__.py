"""
Bots module - computer opponents.

Provides:
- BotPolicy: Interface for bot decision-making
- MoveEvaluator: Scores candidate steps
- GeneralsBot: Behaviour- and difficulty-aware opponent
- random_setup: Random valid placements for bots
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, FirstLegalPolicy, legal_move_actions
from .evaluator import MoveEvaluator, MoveFeatures, EvaluationWeights
from .personality import Behaviour, Difficulty, Personality, PERSONALITIES, DIFFICULTIES
from .formation import random_setup
from .generals_bot import GeneralsBot

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
    "legal_move_actions",
    "MoveEvaluator",
    "MoveFeatures",
    "EvaluationWeights",
    "Behaviour",
    "Difficulty",
    "Personality",
    "PERSONALITIES",
    "DIFFICULTIES",
    "random_setup",
    "GeneralsBot",
]
