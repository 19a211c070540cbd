"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Keeps matches in the MatchManager
3. Applies fog of war to everything it returns
4. Formats responses for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.).
Rejected requests raise the engine's GeneralsError subclasses; the HTTP
layer maps their codes to status codes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Tuple, Union
import logging
import time

from .schemas import (
    BoardResponse,
    ClockInfo,
    MatchListResponse,
    MatchResponse,
    MatchResultResponse,
    MatchStatus,
    MoveEventInfo,
    MoveResponse,
    PiecePlacementInfo,
    PresetInfo,
    PresetListResponse,
    ReplayResponse,
    SetupResponse,
    SideStatisticsInfo,
)
from ..bots import Behaviour, BotPolicy, Difficulty, GeneralsBot, legal_move_actions
from ..config import EngineConfig
from ..engine_core.action import Action, ActionResult
from ..engine_core.board import HIDDEN_PIECE, Board, Player, Position
from ..engine_core.events import MoveEvent, MoveType
from ..engine_core.replay import reconstruct_at
from ..engine_core.reducer import Reducer
from ..engine_core.setup import PiecePlacement
from ..engine_core.state import Match, MatchPhase
from ..errors import (
    InvariantViolation,
    NotAParticipant,
    ReplayDivergence,
    ReplayFormatError,
    ReplayUnavailable,
    SetupInvalid,
)
from ..presets import list_presets, preset_for
from ..replay_file import ReplayFile, replay_file_from_match
from ..session import MatchManager
from ..stats import match_result, match_statistics

logger = logging.getLogger(__name__)

Square = Union[Position, Tuple[int, int]]


def _square(value: Square) -> Position:
    if isinstance(value, Position):
        return value
    row, col = value
    return Position(int(row), int(col))


def _placements(pieces: Iterable[Any]) -> list[PiecePlacement]:
    out = []
    for p in pieces:
        if isinstance(p, PiecePlacement):
            out.append(p)
        elif isinstance(p, PiecePlacementInfo):
            out.append(PiecePlacement(piece=p.piece, row=p.row, col=p.col))
        else:
            out.append(PiecePlacement.from_dict(p))
    return out


def _event_info(
    event: MoveEvent, match: Match | None = None, viewer: Player | None = None
) -> MoveEventInfo:
    """
    One log record as viewer may see it.

    While a match is in play a player only learns the names of enemy
    pieces that now stand revealed; the challenge winner is always shown.
    """
    data = event.to_dict()
    if match is None or viewer is None or match.is_finished or event.move_type == MoveType.SETUP:
        return MoveEventInfo.model_validate(data)

    mover = match.side_of(event.player_id)
    standing = match.board.get(event.target)
    enemy_shown = standing is not None and standing.player != viewer and standing.revealed
    if mover != viewer and not enemy_shown:
        if "piece" in data:
            data["piece"] = HIDDEN_PIECE
        if "challengeResult" in data:
            data["challengeResult"] = {**data["challengeResult"], "attacker": HIDDEN_PIECE}
    elif mover == viewer and "challengeResult" in data and not enemy_shown:
        data["challengeResult"] = {**data["challengeResult"], "defender": HIDDEN_PIECE}
    return MoveEventInfo.model_validate(data)


@dataclass
class MatchService:
    """
    Main API service for game clients.

    Usage:
        service = MatchService()

        match = service.create_match("alice", "bob")
        service.submit_setup(match.match_id, "alice", pieces)
        service.submit_move(match.match_id, "alice", (5, 4), (4, 4))
    """
    config: EngineConfig = field(default_factory=EngineConfig.from_env)
    match_manager: MatchManager | None = None
    reducer: Reducer | None = None

    # match_id -> computer opponent (always player2)
    bots: dict[str, BotPolicy] = field(default_factory=dict)

    def __post_init__(self):
        if self.match_manager is None:
            self.match_manager = MatchManager(game_clock_seconds=self.config.game_clock_seconds)
        if self.reducer is None:
            self.reducer = Reducer(
                timeout_policy=self.config.timeout_policy,
                setup_clock_seconds=self.config.setup_clock_seconds,
            )

    # =========================================================================
    # Match lifecycle
    # =========================================================================

    def create_match(
        self,
        player1_id: str,
        player2_id: str,
        player1_username: str | None = None,
        player2_username: str | None = None,
        now: float | None = None,
    ) -> MatchResponse:
        """Create a new match in the setup phase."""
        match = self.match_manager.create_match(
            player1_id,
            player2_id,
            player1_username=player1_username or "",
            player2_username=player2_username or "",
            now=now,
        )
        return self._match_to_response(match, viewer=None, now=now)

    def submit_setup(
        self,
        match_id: str,
        player_id: str,
        pieces: Iterable[PiecePlacement | PiecePlacementInfo | Mapping[str, Any]],
        now: float | None = None,
    ) -> SetupResponse:
        """
        Submit one player's initial placement.

        The match starts once both players have submitted.
        """
        match = self.match_manager.get_match(match_id)
        action = Action.submit_setup(player_id, _placements(pieces), timestamp=now)
        new_match = self._apply(match, action).new_state
        return SetupResponse(
            match_id=match_id,
            success=True,
            status=MatchStatus(new_match.phase.value),
            game_started=new_match.phase == MatchPhase.PLAYING,
            match=self._match_to_response(new_match, viewer=new_match.side_of(player_id), now=now),
        )

    def submit_preset(
        self, match_id: str, player_id: str, preset_name: str, now: float | None = None
    ) -> SetupResponse:
        """Submit a built-in formation as this player's setup."""
        match = self.match_manager.get_match(match_id)
        side = match.side_of(player_id) or Player.PLAYER1
        try:
            placements = preset_for(preset_name, side)
        except KeyError as e:
            raise SetupInvalid([e.args[0]], context={"preset": preset_name}) from None
        return self.submit_setup(match_id, player_id, placements, now=now)

    def submit_move(
        self,
        match_id: str,
        player_id: str,
        origin: Square,
        target: Square,
        now: float | None = None,
    ) -> MoveResponse:
        """
        Apply a move for the player on turn.

        Returns the mover's view of the board and the logged event.
        """
        match = self.match_manager.get_match(match_id)
        action = Action.move(player_id, _square(origin), _square(target), timestamp=now)
        result = self._apply(match, action)
        return self._move_response(result, viewer=result.new_state.side_of(player_id))

    # =========================================================================
    # Computer opponents
    # =========================================================================

    def create_bot_match(
        self,
        player_id: str,
        player_username: str | None = None,
        behaviour: Behaviour | str = Behaviour.BALANCED,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        seed: int | None = None,
        now: float | None = None,
    ) -> MatchResponse:
        """
        Create a match against a computer opponent.

        The human plays player1. The bot takes player2 and submits its
        setup straight away, so the match starts on the human's setup.
        """
        bot = GeneralsBot(behaviour=behaviour, difficulty=difficulty, seed=seed)
        bot_id = f"bot:{bot.behaviour.value}:{bot.difficulty.value}"
        match = self.match_manager.create_match(
            player_id,
            bot_id,
            player1_username=player_username or "",
            player2_username=bot.get_name(),
            now=now,
        )
        self.bots[match.match_id] = bot
        action = Action.submit_setup(bot_id, bot.select_setup(Player.PLAYER2), timestamp=now)
        new_match = self._apply(match, action).new_state
        logger.info("Created match %s against %s", match.match_id, bot.get_name())
        return self._match_to_response(new_match, viewer=Player.PLAYER1, now=now)

    def play_bot_move(self, match_id: str, now: float | None = None) -> MoveResponse:
        """
        Let the computer opponent take its turn.

        The response is the human player's view. When it is not the bot's
        turn, or the match is not in play, nothing changes and event is null.
        """
        bot = self.bots.get(match_id)
        if bot is None:
            raise NotAParticipant(
                f"Match {match_id} has no computer opponent", context={"match_id": match_id}
            )
        match = self.match_manager.get_match(match_id)
        legal = legal_move_actions(match, timestamp=now)
        if match.current_turn is not Player.PLAYER2 or not legal:
            return self._move_response(ActionResult.success_with_state(match), viewer=Player.PLAYER1)

        decision = bot.select_move(match, legal)
        logger.debug("Bot in %s: %s", match_id, decision.explanation)
        result = self._apply(match, decision.action)
        return self._move_response(result, viewer=Player.PLAYER1)

    def surrender(self, match_id: str, player_id: str, now: float | None = None) -> MatchResponse:
        match = self.match_manager.get_match(match_id)
        new_match = self._apply(match, Action.surrender(player_id, timestamp=now)).new_state
        return self._match_to_response(new_match, viewer=None, now=now)

    def claim_timeout(
        self, match_id: str, viewer_id: str | None = None, now: float | None = None
    ) -> MatchResponse:
        """Check the clocks; finishes the match if the player on turn ran out."""
        match = self.match_manager.get_match(match_id)
        new_match = self._apply(match, Action.claim_timeout(timestamp=now)).new_state
        return self._match_to_response(new_match, viewer=new_match.side_of(viewer_id), now=now)

    def get_match(self, match_id: str, viewer_id: str | None = None) -> MatchResponse:
        """
        Get a match as viewer_id may see it.

        Players see their own pieces and revealed enemy pieces. Spectators
        and anyone looking at a finished match see the whole board.
        """
        match = self.match_manager.get_match(match_id)
        return self._match_to_response(match, viewer=match.side_of(viewer_id))

    def list_active_matches(self) -> MatchListResponse:
        matches = self.match_manager.list_active_matches()
        return MatchListResponse(matches=matches, count=len(matches))

    def cleanup_stale_matches(self, now: float | None = None) -> list[str]:
        removed = self.match_manager.cleanup_stale_matches(
            max_age_seconds=self.config.stale_match_seconds, now=now
        )
        for match_id in removed:
            self.bots.pop(match_id, None)
        return removed

    # =========================================================================
    # Replays and results
    # =========================================================================

    def get_replay(self, match_id: str) -> ReplayResponse:
        """The starting board and move log of a finished match."""
        match = self._finished_match(match_id)
        return ReplayResponse(
            match_id=match_id,
            initial_board=match.initial_board.to_rows(),
            events=[_event_info(e) for e in match.events],
        )

    def export_replay(self, match_id: str, exported_at: datetime | None = None) -> ReplayFile:
        """A portable replay file for a finished match."""
        return replay_file_from_match(self._finished_match(match_id), exported_at=exported_at)

    def reconstruct_at(
        self,
        initial_board: list[list[Mapping[str, Any] | None]] | Board,
        events: Iterable[MoveEvent | Mapping[str, Any]],
        index: int,
        verify: bool = False,
    ) -> BoardResponse:
        """
        Rebuild the board after events[0..index]. Pure; touches no match.

        Client-supplied data that cannot be replayed is reported as a
        ReplayFormatError.
        """
        try:
            board = initial_board if isinstance(initial_board, Board) else Board.from_rows(initial_board)
            rebuilt = reconstruct_at(board, events, index, verify=verify)
        except ReplayDivergence as e:
            logger.warning("Replay diverged from the combat rules: %s", e)
            raise ReplayFormatError(
                str(e), context={"sequence": e.sequence, "recorded": e.recorded, "expected": e.expected}
            ) from e
        except (IndexError, KeyError, TypeError, ValueError, InvariantViolation) as e:
            logger.info("Rejected replay request: %s", e)
            raise ReplayFormatError(f"Cannot replay log: {e}") from e
        return BoardResponse(index=index, board=rebuilt.to_rows())

    def get_result(self, match_id: str) -> MatchResultResponse:
        """Winner, reason, duration and per-side statistics of a finished match."""
        match = self._finished_match(match_id)
        summary = match_result(match)
        stats = match_statistics(
            match.initial_board,
            match.events,
            match.player1_id,
            match.player2_id,
            winner=match.winner,
        )
        return MatchResultResponse(
            match_id=match_id,
            winner=summary["winner"],
            reason=summary["reason"],
            duration_seconds=summary["duration_seconds"],
            moves=summary["moves"],
            player1=SideStatisticsInfo(**stats.to_dict()["player1"]),
            player2=SideStatisticsInfo(**stats.to_dict()["player2"]),
            achievements=stats.achievements,
        )

    def list_presets(self) -> PresetListResponse:
        presets = [
            PresetInfo(
                name=p.name,
                description=p.description,
                pieces=[PiecePlacementInfo(**pl.to_dict()) for pl in p.pieces],
            )
            for p in list_presets()
        ]
        return PresetListResponse(presets=presets, count=len(presets))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _apply(self, match: Match, action: Action) -> ActionResult:
        """Run an action through the reducer and store the new match."""
        result = self.reducer.apply(match, action)
        if not result.success:
            result.raise_for_error()
        if result.new_state is not match:
            self.match_manager.update(result.new_state)
        return result

    def _move_response(self, result: ActionResult, viewer: Player | None) -> MoveResponse:
        new_match = result.new_state
        if new_match.is_finished:
            viewer = None
        return MoveResponse(
            match_id=new_match.match_id,
            board=new_match.board.view_for(viewer),
            event=_event_info(result.event, new_match, viewer) if result.event else None,
            match_status=MatchStatus(new_match.phase.value),
            current_turn=new_match.current_turn.value,
            winner=new_match.winner.value if new_match.winner else None,
            end_reason=new_match.end_reason.value if new_match.end_reason else None,
        )

    def _finished_match(self, match_id: str) -> Match:
        match = self.match_manager.get_match(match_id)
        if not match.is_finished or match.initial_board is None:
            raise ReplayUnavailable(
                f"Match {match_id} has not finished a game yet",
                context={"match_id": match_id, "phase": match.phase.value},
            )
        return match

    def _match_to_response(
        self, match: Match, viewer: Player | None, now: float | None = None
    ) -> MatchResponse:
        now = time.time() if now is None else now
        board_viewer = None if match.is_finished else viewer
        playing = match.phase == MatchPhase.PLAYING
        clock = match.clock
        return MatchResponse(
            match_id=match.match_id,
            status=MatchStatus(match.phase.value),
            current_turn=match.current_turn.value,
            player1_id=match.player1_id,
            player2_id=match.player2_id,
            player1_username=match.player1_username,
            player2_username=match.player2_username,
            player1_setup=match.player1_setup,
            player2_setup=match.player2_setup,
            viewer_side=viewer.value if viewer else None,
            board=self._board_for(match, viewer, board_viewer),
            winner=match.winner.value if match.winner else None,
            end_reason=match.end_reason.value if match.end_reason else None,
            move_count=match.move_count,
            last_move=_event_info(match.events[-1], match, board_viewer) if match.events else None,
            clock=ClockInfo(
                limit_seconds=clock.limit_seconds,
                player1_remaining=clock.remaining(
                    Player.PLAYER1, now, on_turn=playing and match.current_turn is Player.PLAYER1
                ),
                player2_remaining=clock.remaining(
                    Player.PLAYER2, now, on_turn=playing and match.current_turn is Player.PLAYER2
                ),
            ),
            created_at=match.created_at,
        )

    @staticmethod
    def _board_for(match: Match, viewer: Player | None, board_viewer: Player | None):
        # During setup a spectator must not see either placement
        if match.phase == MatchPhase.SETUP and viewer is None:
            return Board.empty().to_rows()
        return match.board.view_for(board_viewer)
