"""
API Module - Game client interface.

Exposes the engine via REST and WebSocket for game clients.
A client:
1. Creates a match once two players are paired
2. Submits each player's setup
3. Submits moves and receives its own fog-of-war view back
4. Listens on the match WebSocket for the opponent's moves
5. Fetches the replay and result once the match is finished

Matches live in memory for as long as the service runs.
"""

from .schemas import (
    # Requests
    CreateMatchRequest,
    CreateBotMatchRequest,
    SetupRequest,
    MoveRequest,
    ReconstructRequest,
    # Responses
    MatchResponse,
    SetupResponse,
    MoveResponse,
    ReplayResponse,
    BoardResponse,
    MatchResultResponse,
    ErrorResponse,
    # Shared
    CellInfo,
    MoveEventInfo,
    PiecePlacementInfo,
    ErrorCode,
)
from .service import MatchService
from .app import create_app

__all__ = [
    # Requests
    "CreateMatchRequest",
    "CreateBotMatchRequest",
    "SetupRequest",
    "MoveRequest",
    "ReconstructRequest",
    # Responses
    "MatchResponse",
    "SetupResponse",
    "MoveResponse",
    "ReplayResponse",
    "BoardResponse",
    "MatchResultResponse",
    "ErrorResponse",
    # Shared
    "CellInfo",
    "MoveEventInfo",
    "PiecePlacementInfo",
    "ErrorCode",
    # Service
    "MatchService",
    "create_app",
]
