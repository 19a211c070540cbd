"""
Match Manager - Creates and tracks matches.

LIFECYCLE:
1. A lobby fills up -> create_match() registers a Match in `setup`
2. Both players submit setups -> the reducer moves it to `playing`
3. Moves are applied one at a time; each accepted move replaces the
   stored Match with the reducer's new value
4. The match finishes -> it stays readable (replays, results) until
   cleanup_stale_matches() drops it

PERSISTENCE RULES:
- In-memory only; callers persist finished matches if they need to
- One Match value per active game, held by this manager and nowhere else
"""

from __future__ import annotations
import logging
import time
import uuid

from ..engine_core.clock import DEFAULT_GAME_CLOCK_SECONDS, MatchClock
from ..engine_core.state import Match
from ..errors import MatchNotFound

logger = logging.getLogger(__name__)


class MatchManager:
    """
    Manages matches.

    Responsibilities:
    - Create matches with a fresh ID and clock
    - Hand out the current Match value for a match ID
    - Store the new value after an accepted action
    - Clean up finished matches
    """

    def __init__(self, game_clock_seconds: float = DEFAULT_GAME_CLOCK_SECONDS):
        self._matches: dict[str, Match] = {}
        self.game_clock_seconds = game_clock_seconds

    def create_match(
        self,
        player1_id: str,
        player2_id: str,
        player1_username: str = "",
        player2_username: str = "",
        match_id: str | None = None,
        now: float | None = None,
    ) -> Match:
        """
        Create a new match in the setup phase.

        Args:
            player1_id: User ID of the first player (moves first, rows 5-7)
            player2_id: User ID of the second player (rows 0-2)
            match_id: Optional explicit ID (a new UUID otherwise)

        Returns:
            The new Match
        """
        if player1_id == player2_id:
            raise ValueError("A match needs two different players")

        match = Match(
            match_id=match_id or str(uuid.uuid4()),
            player1_id=player1_id,
            player2_id=player2_id,
            player1_username=player1_username or player1_id,
            player2_username=player2_username or player2_id,
            clock=MatchClock(limit_seconds=self.game_clock_seconds),
            created_at=time.time() if now is None else now,
        )
        self._matches[match.match_id] = match
        logger.info(
            "Created match %s: %s vs %s", match.match_id, player1_id, player2_id
        )
        return match

    def get_match(self, match_id: str) -> Match:
        """Get a match by ID. Raises MatchNotFound."""
        match = self._matches.get(match_id)
        if match is None:
            raise MatchNotFound(match_id)
        return match

    def update(self, match: Match) -> Match:
        """Store the new value of a match produced by the reducer."""
        if match.match_id not in self._matches:
            raise MatchNotFound(match.match_id)
        self._matches[match.match_id] = match
        return match

    def end_match(self, match_id: str) -> Match | None:
        """Forget a match. Returns the last stored value, if any."""
        return self._matches.pop(match_id, None)

    def list_active_matches(self) -> list[str]:
        """List IDs of matches that are not finished."""
        return [
            mid for mid, match in self._matches.items()
            if not match.is_finished
        ]

    def list_matches(self) -> list[str]:
        return list(self._matches)

    def cleanup_stale_matches(self, max_age_seconds: int = 3600, now: float | None = None) -> list[str]:
        """
        Drop finished matches older than max_age.

        Called periodically to free memory. Returns the removed IDs.
        """
        current_time = time.time() if now is None else now
        to_remove = []

        for match_id, match in self._matches.items():
            age = current_time - match.created_at
            if age > max_age_seconds and match.is_finished:
                to_remove.append(match_id)

        for match_id in to_remove:
            self.end_match(match_id)
        if to_remove:
            logger.info("Cleaned up %d stale matches", len(to_remove))
        return to_remove
