"""
Portable replay files.

A replay file is a JSON document holding everything needed to watch a
match again offline: usernames, the initial board, the move log and some
metadata. Keys are camelCase on disk; Python code uses snake_case names.

    {
      "version": "1.0",
      "exportedAt": "2026-01-01T12:00:00+00:00",
      "player1Username": "...", "player2Username": "...",
      "initialBoard": [[{"piece", "player", "revealed"} | null, ...], ...],
      "moves": [{moveType, playerId, fromRow, fromCol, toRow, toCol, ...}],
      "gameMetadata": {createdAt, duration, moveCount, isWin, isDraw, reason}
    }
"""

from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from .engine_core.board import Board
from .engine_core.events import MoveEvent, coerce_events
from .engine_core.replay import ReplayLog
from .engine_core.state import Match
from .errors import InvariantViolation, ReplayFormatError, ReplayUnavailable

REPLAY_FILE_VERSION = "1.0"


class GameMetadata(BaseModel):
    created_at: float = Field(0.0, alias="createdAt")
    duration: float = Field(0.0, description="Seconds from game start to finish")
    move_count: int = Field(0, alias="moveCount")
    is_win: bool = Field(False, alias="isWin")
    is_draw: bool = Field(False, alias="isDraw")
    reason: Optional[str] = None

    model_config = {"populate_by_name": True}


class ReplayFile(BaseModel):
    """A complete exported match."""
    version: str = REPLAY_FILE_VERSION
    exported_at: str = Field(..., alias="exportedAt")
    player1_username: str = Field("", alias="player1Username")
    player2_username: str = Field("", alias="player2Username")
    initial_board: list[list[Optional[dict[str, Any]]]] = Field(..., alias="initialBoard")
    moves: list[dict[str, Any]] = Field(default_factory=list)
    game_metadata: GameMetadata = Field(default_factory=GameMetadata, alias="gameMetadata")

    model_config = {"populate_by_name": True}

    def board(self) -> Board:
        """The initial board. Bad cells in a file are a format error, not a crash."""
        try:
            return Board.from_rows(self.initial_board)
        except (KeyError, TypeError, ValueError, InvariantViolation) as e:
            raise ReplayFormatError(f"Invalid initialBoard: {e}") from e

    def events(self) -> list[MoveEvent]:
        try:
            return coerce_events(self.moves)
        except InvariantViolation as e:
            raise ReplayFormatError(f"Invalid moves: {e}") from e

    def replay_log(self) -> ReplayLog:
        return ReplayLog(initial_board=self.board(), events=tuple(self.events()))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def replay_file_from_match(match: Match, exported_at: datetime | None = None) -> ReplayFile:
    """Export a match. The initial board must exist, i.e. setup has completed."""
    if match.initial_board is None:
        raise ReplayUnavailable(
            f"Match {match.match_id} has no initial board yet",
            context={"match_id": match.match_id},
        )
    exported_at = exported_at or datetime.now(timezone.utc)
    started = match.started_at if match.started_at is not None else match.created_at
    ended = match.finished_at if match.finished_at is not None else started

    return ReplayFile(
        version=REPLAY_FILE_VERSION,
        exported_at=exported_at.isoformat(),
        player1_username=match.player1_username,
        player2_username=match.player2_username,
        initial_board=match.initial_board.to_rows(),
        moves=[event.to_dict() for event in match.events],
        game_metadata=GameMetadata(
            created_at=match.created_at,
            duration=max(0.0, ended - started),
            move_count=match.move_count,
            is_win=match.is_finished and match.winner is not None,
            is_draw=match.is_draw,
            reason=match.end_reason.value if match.end_reason else None,
        ),
    )


def parse_replay_file(data: dict[str, Any] | str) -> ReplayFile:
    """Parse and check a replay document (dict or JSON text)."""
    try:
        if isinstance(data, str):
            replay = ReplayFile.model_validate_json(data)
        else:
            replay = ReplayFile.model_validate(data)
    except ValidationError as e:
        raise ReplayFormatError(
            f"Invalid replay file: {e.error_count()} problem(s)",
            context={"errors": [err["msg"] for err in e.errors()]},
        ) from e
    # Parse once up front so a bad file fails on load rather than mid-replay
    replay.board()
    replay.events()
    return replay


def load_replay_file(path: str | Path) -> ReplayFile:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ReplayFormatError(f"Cannot read replay file {path}: {e}") from e
    return parse_replay_file(text)


def dump_replay_file(replay: ReplayFile, path: str | Path) -> Path:
    path = Path(path)
    path.write_text(replay.to_json(), encoding="utf-8")
    return path
