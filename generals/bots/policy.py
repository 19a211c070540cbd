"""
Bot Policy - Interface for bot decision-making.

A BotPolicy takes a match and the moves open to the side on turn and
returns a decision. Policies also choose their own setup.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
import random

from ..engine_core.action import Action
from ..engine_core.board import Player
from ..engine_core.legality import legal_moves
from ..engine_core.setup import PiecePlacement
from ..engine_core.state import Match, MatchPhase
from ..presets import preset_for
from .formation import random_setup


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Explanation (for UI/debugging)
    - Evaluation details (for debugging)
    """
    action: Action
    explanation: str = ""
    confidence: float = 1.0

    evaluated_moves: int = 0
    best_score: float = 0.0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


def legal_move_actions(match: Match, timestamp: float | None = None) -> list[Action]:
    """Every legal move for the side on turn, as actions ready for the reducer."""
    if match.phase != MatchPhase.PLAYING:
        return []
    player = match.current_turn
    user_id = match.user_id_of(player)
    return [
        Action.move(user_id, origin, target, timestamp=timestamp)
        for origin, target in legal_moves(match.board, player)
    ]


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects moves and lays out its pieces.
    """

    @abstractmethod
    def select_move(self, match: Match, legal_actions: list[Action]) -> BotDecision:
        """
        Select a move from the legal actions.

        Args:
            match: Current match, with the bot's side on turn
            legal_actions: List of legal moves to choose from

        Returns:
            BotDecision with the selected action
        """
        pass

    @abstractmethod
    def select_setup(self, player: Player) -> list[PiecePlacement]:
        """Choose an initial placement for player."""
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - selects moves uniformly at random.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_move(self, match: Match, legal_actions: list[Action]) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal moves available")

        action = self.rng.choice(legal_actions)
        return BotDecision(
            action=action,
            explanation="Selected randomly",
            confidence=1.0 / len(legal_actions),
            evaluated_moves=len(legal_actions),
        )

    def select_setup(self, player: Player) -> list[PiecePlacement]:
        return random_setup(player, self.rng)


class FirstLegalPolicy(BotPolicy):
    """
    First-legal policy - always selects the first legal move.

    Used for deterministic testing; sets up in the Balanced Formation.
    """

    def select_move(self, match: Match, legal_actions: list[Action]) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal moves available")

        return BotDecision(
            action=legal_actions[0],
            explanation="Selected first legal move",
            evaluated_moves=1,
        )

    def select_setup(self, player: Player) -> list[PiecePlacement]:
        return preset_for("Balanced Formation", player)
