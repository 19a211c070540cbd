"""
FastAPI Application - REST + WebSocket API for game clients.

Endpoints:
    POST   /api/v1/matches                      Create a match
    GET    /api/v1/matches                      List active matches
    GET    /api/v1/matches/{id}                 Match state (fog of war by viewer_id)
    POST   /api/v1/matches/{id}/setup           Submit a setup (pieces or preset)
    POST   /api/v1/matches/{id}/moves           Submit a move
    POST   /api/v1/matches/{id}/surrender       Concede
    POST   /api/v1/matches/{id}/timeout         Check the clocks
    POST   /api/v1/bot-matches                  Create a match against the computer
    POST   /api/v1/matches/{id}/bot-move        Let the computer take its turn
    GET    /api/v1/matches/{id}/replay          Initial board + move log (finished only)
    GET    /api/v1/matches/{id}/replay/export   Portable replay file (finished only)
    GET    /api/v1/matches/{id}/result          Result and statistics (finished only)
    POST   /api/v1/replay/reconstruct           Rebuild the board at any point of a log
    GET    /api/v1/presets                      Built-in formations
    WS     /api/v1/matches/{id}/ws              Real-time state updates

All responses are JSON with explicit Pydantic schemas. Engine errors are
returned as ErrorResponse with a status code chosen from the error code.
"""

from typing import Optional
import json
import logging

from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import EngineConfig
from ..errors import GeneralsError
from .service import MatchService
from .schemas import (
    # Request models
    CreateMatchRequest,
    CreateBotMatchRequest,
    SetupRequest,
    MoveRequest,
    SurrenderRequest,
    ClaimTimeoutRequest,
    ReconstructRequest,
    # Response models
    MatchResponse,
    SetupResponse,
    MoveResponse,
    ReplayResponse,
    BoardResponse,
    MatchResultResponse,
    MatchListResponse,
    PresetListResponse,
    ErrorResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.MATCH_NOT_FOUND: 404,
    ErrorCode.MATCH_ALREADY_FINISHED: 409,
    ErrorCode.REPLAY_UNAVAILABLE: 409,
    ErrorCode.NOT_A_PARTICIPANT: 403,
}


def create_app(service: Optional[MatchService] = None, config: Optional[EngineConfig] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional MatchService instance (creates new if not provided)
        config: Optional EngineConfig (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    config = config or (service.config if service else EngineConfig.from_env())

    app = FastAPI(
        title="Generals Engine API",
        description="""
Game of the Generals rules engine - authoritative setup validation,
combat resolution, match state and replays.

## Error Codes

| Code | Status | Description |
|------|--------|-------------|
| `MATCH_NOT_FOUND` | 404 | Match does not exist |
| `MATCH_ALREADY_FINISHED` | 409 | Match is over |
| `REPLAY_UNAVAILABLE` | 409 | Match has not finished yet |
| `NOT_A_PARTICIPANT` | 403 | User is not playing in this match |
| `SETUP_INVALID` | 400 | Placement broke the setup rules |
| `MOVE_ILLEGAL` | 400 | Move broke the movement rules |
| `REPLAY_FORMAT_ERROR` | 400 | Log or replay file could not be replayed |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    api_service = service or MatchService(config=config)
    app.state.service = api_service

    # WebSocket connections: match_id -> [(socket, viewer_id)]
    ws_connections: dict[str, list[tuple[WebSocket, Optional[str]]]] = {}

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(GeneralsError)
    async def handle_engine_error(request: Request, exc: GeneralsError) -> JSONResponse:
        try:
            code = ErrorCode(exc.code)
        except ValueError:
            code = ErrorCode.INTERNAL_ERROR
        status_code = STATUS_BY_CODE.get(code, 400)
        logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc)
        return make_error_response(code, exc.message, status_code=status_code, details=exc.to_dict())

    async def broadcast_to_match(match_id: str):
        """Send every connection for a match its own view of the new state."""
        if match_id not in ws_connections:
            return
        dead_connections = []
        for ws, viewer_id in ws_connections[match_id]:
            try:
                view = api_service.get_match(match_id, viewer_id)
                await ws.send_json({
                    "type": "game_over" if view.status == "finished" else "state_update",
                    "payload": view.model_dump(mode="json", by_alias=True),
                })
            except (GeneralsError, RuntimeError, WebSocketDisconnect):
                dead_connections.append((ws, viewer_id))
        for conn in dead_connections:
            ws_connections[match_id].remove(conn)

    # =========================================================================
    # Match Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/matches",
        response_model=MatchResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Create a match",
    )
    async def create_match(body: CreateMatchRequest):
        """Create a match in the setup phase for two paired players."""
        try:
            return api_service.create_match(
                body.player1_id,
                body.player2_id,
                player1_username=body.player1_username,
                player2_username=body.player2_username,
            )
        except ValueError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e))

    @app.get(
        "/api/v1/matches",
        response_model=MatchListResponse,
        tags=["Matches"],
        summary="List active matches",
    )
    async def list_matches() -> MatchListResponse:
        return api_service.list_active_matches()

    @app.get(
        "/api/v1/matches/{match_id}",
        response_model=MatchResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Get match state",
    )
    async def get_match(
        match_id: str,
        viewer_id: Optional[str] = Query(None, description="User ID of the viewer"),
    ) -> MatchResponse:
        """
        Get the match as `viewer_id` may see it.

        Unrevealed enemy pieces come back as `"Hidden"`.
        """
        return api_service.get_match(match_id, viewer_id)

    @app.post(
        "/api/v1/matches/{match_id}/setup",
        response_model=SetupResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid setup"},
            403: {"model": ErrorResponse, "description": "Not a participant"},
            404: {"model": ErrorResponse, "description": "Match not found"},
        },
        tags=["Game Loop"],
        summary="Submit a setup",
    )
    async def submit_setup(match_id: str, body: SetupRequest):
        """
        Submit your 21 pieces, or name a built-in formation.

        **Request Body:**
        ```json
        {"player_id": "alice", "preset": "Balanced Formation"}
        ```
        """
        if body.preset:
            response = api_service.submit_preset(match_id, body.player_id, body.preset)
        elif body.pieces is not None:
            response = api_service.submit_setup(match_id, body.player_id, body.pieces)
        else:
            return make_error_response(
                ErrorCode.VALIDATION_ERROR, "Provide either pieces or preset"
            )
        await broadcast_to_match(match_id)
        return response

    @app.post(
        "/api/v1/matches/{match_id}/moves",
        response_model=MoveResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Illegal move"},
            403: {"model": ErrorResponse, "description": "Not a participant"},
            404: {"model": ErrorResponse, "description": "Match not found"},
            409: {"model": ErrorResponse, "description": "Match finished"},
        },
        tags=["Game Loop"],
        summary="Submit a move",
    )
    async def submit_move(match_id: str, body: MoveRequest) -> MoveResponse:
        """Move one piece one square; moving onto an enemy piece is a challenge."""
        response = api_service.submit_move(
            match_id,
            body.player_id,
            (body.from_row, body.from_col),
            (body.to_row, body.to_col),
        )
        await broadcast_to_match(match_id)
        return response

    @app.post(
        "/api/v1/matches/{match_id}/surrender",
        response_model=MatchResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Concede the match",
    )
    async def surrender(match_id: str, body: SurrenderRequest) -> MatchResponse:
        response = api_service.surrender(match_id, body.player_id)
        await broadcast_to_match(match_id)
        return response

    @app.post(
        "/api/v1/matches/{match_id}/timeout",
        response_model=MatchResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Check the match clocks",
    )
    async def claim_timeout(
        match_id: str,
        body: Optional[ClaimTimeoutRequest] = None,
        viewer_id: Optional[str] = Query(None),
    ) -> MatchResponse:
        """Finish the match if the player on turn has run out of time."""
        now = body.now if body else None
        response = api_service.claim_timeout(match_id, viewer_id=viewer_id, now=now)
        await broadcast_to_match(match_id)
        return response

    # =========================================================================
    # Computer Opponent Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/bot-matches",
        response_model=MatchResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Computer Opponent"],
        summary="Play against the computer",
    )
    async def create_bot_match(body: CreateBotMatchRequest):
        """
        Create a match against a computer opponent.

        The bot has already placed its pieces; submit your setup to start.
        """
        try:
            return api_service.create_bot_match(
                body.player_id,
                player_username=body.player_username,
                behaviour=body.behaviour,
                difficulty=body.difficulty,
                seed=body.seed,
            )
        except ValueError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e))

    @app.post(
        "/api/v1/matches/{match_id}/bot-move",
        response_model=MoveResponse,
        responses={
            403: {"model": ErrorResponse, "description": "No computer opponent"},
            404: {"model": ErrorResponse, "description": "Match not found"},
        },
        tags=["Computer Opponent"],
        summary="Let the computer move",
    )
    async def play_bot_move(match_id: str) -> MoveResponse:
        """Play the bot's turn and return the human player's view."""
        response = api_service.play_bot_move(match_id)
        await broadcast_to_match(match_id)
        return response

    # =========================================================================
    # Replay Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/matches/{match_id}/replay",
        response_model=ReplayResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Replays"],
        summary="Initial board and move log",
    )
    async def get_replay(match_id: str) -> ReplayResponse:
        return api_service.get_replay(match_id)

    @app.get(
        "/api/v1/matches/{match_id}/replay/export",
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Replays"],
        summary="Download a portable replay file",
    )
    async def export_replay(match_id: str) -> JSONResponse:
        replay = api_service.export_replay(match_id)
        return JSONResponse(
            content=json.loads(replay.to_json()),
            headers={"Content-Disposition": f'attachment; filename="replay-{match_id}.json"'},
        )

    @app.get(
        "/api/v1/matches/{match_id}/result",
        response_model=MatchResultResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Replays"],
        summary="Match result and statistics",
    )
    async def get_result(match_id: str) -> MatchResultResponse:
        return api_service.get_result(match_id)

    @app.post(
        "/api/v1/replay/reconstruct",
        response_model=BoardResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Replays"],
        summary="Rebuild the board at a point of a log",
    )
    async def reconstruct(body: ReconstructRequest) -> BoardResponse:
        return api_service.reconstruct_at(
            body.initial_board, body.events, body.index, verify=body.verify
        )

    @app.get(
        "/api/v1/presets",
        response_model=PresetListResponse,
        tags=["Setup"],
        summary="List built-in formations",
    )
    async def list_presets() -> PresetListResponse:
        return api_service.list_presets()

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/matches/{match_id}/ws")
    async def websocket_endpoint(
        websocket: WebSocket, match_id: str, viewer_id: Optional[str] = None
    ):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Match state changed (viewer's own fog-of-war view)
        - game_over: Match finished (full board)
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        try:
            initial = api_service.get_match(match_id, viewer_id)
        except GeneralsError as e:
            await websocket.send_json({"type": "error", "payload": e.to_dict()})
            await websocket.close()
            return

        ws_connections.setdefault(match_id, []).append((websocket, viewer_id))

        try:
            await websocket.send_json({
                "type": "state_update",
                "payload": initial.model_dump(mode="json", by_alias=True),
            })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                    if message.get("type") == "ping":
                        await websocket.send_json({"type": "pong"})
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })

        except WebSocketDisconnect:
            pass
        finally:
            conns = ws_connections.get(match_id, [])
            if (websocket, viewer_id) in conns:
                conns.remove((websocket, viewer_id))

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="generals-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Generals Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn generals.api.app:app
app = create_app()
