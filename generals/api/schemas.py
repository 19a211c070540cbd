"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between game clients and the engine.
All responses include explicit types for OpenAPI schema generation.

Move records keep the stable camelCase wire shape used by stored matches
and replay files (moveType, playerId, fromRow, ...). Everything else is
snake_case.

Error Codes:
- MATCH_NOT_FOUND: Match does not exist or has been cleaned up
- MATCH_ALREADY_FINISHED: Match is over; no further changes are accepted
- SETUP_INVALID: Submitted placement broke the setup rules
- MOVE_ILLEGAL: Move broke the movement rules (see details.kind)
- NOT_A_PARTICIPANT: Requesting user is not playing in this match
- REPLAY_FORMAT_ERROR: Replay file or event log could not be parsed
- REPLAY_UNAVAILABLE: Replay requested before the match finished
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..bots.personality import Behaviour, Difficulty


# =============================================================================
# Enums
# =============================================================================

class MatchStatus(str, Enum):
    """Match phase values."""
    SETUP = "setup"
    PLAYING = "playing"
    FINISHED = "finished"


class ErrorCode(str, Enum):
    """Structured error codes."""
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    MATCH_ALREADY_FINISHED = "MATCH_ALREADY_FINISHED"
    SETUP_INVALID = "SETUP_INVALID"
    MOVE_ILLEGAL = "MOVE_ILLEGAL"
    NOT_A_PARTICIPANT = "NOT_A_PARTICIPANT"
    REPLAY_FORMAT_ERROR = "REPLAY_FORMAT_ERROR"
    REPLAY_UNAVAILABLE = "REPLAY_UNAVAILABLE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CellInfo(BaseModel):
    """An occupied square. piece is "Hidden" when the viewer may not see it."""
    piece: str
    player: str
    revealed: bool = False


BoardRows = list[list[Optional[CellInfo]]]


class PiecePlacementInfo(BaseModel):
    """One piece of a setup."""
    piece: str = Field(..., description="Piece type name, e.g. \"2nd Lieutenant\"")
    row: int
    col: int


class ChallengeResultInfo(BaseModel):
    attacker: str
    defender: str
    winner: str = Field(..., description="attacker, defender or tie")


class MoveEventInfo(BaseModel):
    """One record of the move log, in its stored wire shape."""
    sequence: int
    move_type: str = Field(..., alias="moveType", description="setup, move or challenge")
    player_id: str = Field(..., alias="playerId")
    from_row: Optional[int] = Field(None, alias="fromRow")
    from_col: Optional[int] = Field(None, alias="fromCol")
    to_row: int = Field(..., alias="toRow")
    to_col: int = Field(..., alias="toCol")
    piece: Optional[str] = None
    challenge_result: Optional[ChallengeResultInfo] = Field(None, alias="challengeResult")
    timestamp: Optional[float] = None

    model_config = {"populate_by_name": True}


class ClockInfo(BaseModel):
    """Remaining game clock per player, in seconds."""
    limit_seconds: float
    player1_remaining: float
    player2_remaining: float


# =============================================================================
# Request Models
# =============================================================================

class CreateMatchRequest(BaseModel):
    """Request to create a match between two paired players."""
    player1_id: str = Field(..., description="Moves first, places on rows 5-7")
    player2_id: str = Field(..., description="Places on rows 0-2")
    player1_username: Optional[str] = None
    player2_username: Optional[str] = None


class CreateBotMatchRequest(BaseModel):
    """Request to start a match against a computer opponent."""
    player_id: str = Field(..., description="The human player; always player1")
    player_username: Optional[str] = None
    behaviour: Behaviour = Field(Behaviour.BALANCED, description="Bot play style")
    difficulty: Difficulty = Field(Difficulty.MEDIUM, description="How carefully the bot plays")
    seed: Optional[int] = Field(None, description="Seed for a repeatable bot")


class SetupRequest(BaseModel):
    """Submit an initial placement, either explicit pieces or a preset name."""
    player_id: str
    pieces: Optional[list[PiecePlacementInfo]] = Field(
        None, description="Exactly 21 placements inside your three back rows"
    )
    preset: Optional[str] = Field(None, description="Name of a built-in formation")


class MoveRequest(BaseModel):
    """Move one piece one square orthogonally."""
    player_id: str
    from_row: int
    from_col: int
    to_row: int
    to_col: int


class SurrenderRequest(BaseModel):
    player_id: str


class ClaimTimeoutRequest(BaseModel):
    now: Optional[float] = Field(None, description="Override the server clock (testing)")


class ReconstructRequest(BaseModel):
    """Rebuild the board after events[0..index] of a recorded match."""
    initial_board: list[list[Optional[dict[str, Any]]]]
    events: list[dict[str, Any]] = Field(default_factory=list)
    index: int = Field(-1, ge=-1, description="-1 for the starting board")
    verify: bool = Field(False, description="Re-check every challenge against the rules")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class MatchResponse(BaseModel):
    """Match state as one viewer is allowed to see it."""
    match_id: str
    status: MatchStatus
    current_turn: str
    player1_id: str
    player2_id: str
    player1_username: str = ""
    player2_username: str = ""
    player1_setup: bool = False
    player2_setup: bool = False
    viewer_side: Optional[str] = Field(None, description="player1, player2 or null for spectators")
    board: BoardRows = Field(default_factory=list)
    winner: Optional[str] = None
    end_reason: Optional[str] = None
    move_count: int = 0
    last_move: Optional[MoveEventInfo] = None
    clock: Optional[ClockInfo] = None
    created_at: float = 0.0
    api_version: str = "v1"


class SetupResponse(BaseModel):
    """Response after a setup submission."""
    match_id: str
    success: bool
    status: MatchStatus
    game_started: bool = False
    match: MatchResponse
    api_version: str = "v1"


class MoveResponse(BaseModel):
    """
    Response after a move.

    event is null when the mover's clock had already run out; the match
    then ends by timeout instead of applying the move.
    """
    match_id: str
    board: BoardRows
    event: Optional[MoveEventInfo] = None
    match_status: MatchStatus
    current_turn: str
    winner: Optional[str] = None
    end_reason: Optional[str] = None
    api_version: str = "v1"


class ReplayResponse(BaseModel):
    """The starting board and the full move log of a finished match."""
    match_id: str
    initial_board: BoardRows
    events: list[MoveEventInfo] = Field(default_factory=list)
    api_version: str = "v1"


class BoardResponse(BaseModel):
    """A reconstructed board."""
    index: int
    board: BoardRows
    api_version: str = "v1"


class SideStatisticsInfo(BaseModel):
    pieces_eliminated: int = 0
    spies_revealed: int = 0
    flag_captured: bool = False
    pieces_lost: int = 0
    min_pieces_remaining: int = 21


class MatchResultResponse(BaseModel):
    """Summary of a finished match."""
    match_id: str
    winner: str = Field(..., description="player1, player2 or draw")
    reason: Optional[str] = None
    duration_seconds: float = 0.0
    moves: int = 0
    player1: SideStatisticsInfo = Field(default_factory=SideStatisticsInfo)
    player2: SideStatisticsInfo = Field(default_factory=SideStatisticsInfo)
    achievements: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class MatchListResponse(BaseModel):
    """Response listing active matches."""
    matches: list[str]
    count: int


class PresetInfo(BaseModel):
    name: str
    description: str
    pieces: list[PiecePlacementInfo]


class PresetListResponse(BaseModel):
    presets: list[PresetInfo]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
