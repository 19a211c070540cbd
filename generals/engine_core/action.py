"""
Action System - Actions, payloads, and results.

Actions represent:
1. Player actions (submit setup, move, surrender)
2. System actions (claim a timeout once a clock has run out)

All match state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import GeneralsError, MoveIllegal
from .board import Position
from .events import MoveEvent
from .setup import PiecePlacement


class ActionType(Enum):
    """Types of actions in the system."""
    # Player actions
    SUBMIT_SETUP = "submit_setup"
    MOVE = "move"
    SURRENDER = "surrender"

    # System actions
    CLAIM_TIMEOUT = "claim_timeout"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types have different payload shapes.
    This is a generic container; validation happens in the reducer.
    """
    # External user ID of the acting player (None for system actions)
    player_id: str | None = None

    # For setup
    pieces: list[PiecePlacement] | None = None

    # For moves
    origin: Position | None = None
    target: Position | None = None


@dataclass
class Action:
    """
    A complete action to be applied to the match state.

    Actions are:
    - Validated before application
    - Applied atomically by the reducer
    - Stamped with the time they were received (drives the clock)
    """
    action_type: ActionType
    payload: ActionPayload
    timestamp: float | None = None

    @classmethod
    def submit_setup(
        cls, player_id: str, pieces: list[PiecePlacement], timestamp: float | None = None
    ) -> Action:
        """Factory for setup submission."""
        return cls(
            action_type=ActionType.SUBMIT_SETUP,
            payload=ActionPayload(player_id=player_id, pieces=list(pieces)),
            timestamp=timestamp,
        )

    @classmethod
    def move(
        cls,
        player_id: str,
        origin: Position,
        target: Position,
        timestamp: float | None = None,
    ) -> Action:
        """Factory for a move (plain or challenge)."""
        return cls(
            action_type=ActionType.MOVE,
            payload=ActionPayload(player_id=player_id, origin=origin, target=target),
            timestamp=timestamp,
        )

    @classmethod
    def surrender(cls, player_id: str, timestamp: float | None = None) -> Action:
        """Factory for a concession."""
        return cls(
            action_type=ActionType.SURRENDER,
            payload=ActionPayload(player_id=player_id),
            timestamp=timestamp,
        )

    @classmethod
    def claim_timeout(cls, timestamp: float | None = None) -> Action:
        """Factory for a clock check."""
        return cls(
            action_type=ActionType.CLAIM_TIMEOUT,
            payload=ActionPayload(),
            timestamp=timestamp,
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Errors (if failed), with the original exception for callers that re-raise
    - The event appended to the log, if any
    """
    success: bool
    new_state: Any | None = None  # Match
    error: str | None = None
    error_code: str | None = None
    error_kind: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    exception: GeneralsError | None = None

    event: MoveEvent | None = None

    # Human-readable changes for logs and clients
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code, details=details or {})

    @classmethod
    def failure_from(cls, exc: GeneralsError) -> ActionResult:
        """Create a failure result from a recoverable engine error."""
        return cls(
            success=False,
            error=exc.message,
            error_code=exc.code,
            error_kind=exc.kind.value if isinstance(exc, MoveIllegal) else None,
            details=exc.to_dict(),
            exception=exc,
        )

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        event: MoveEvent | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            event=event,
        )

    def raise_for_error(self) -> None:
        """Re-raise the engine error behind a failed result."""
        if self.success:
            return
        if self.exception is not None:
            raise self.exception
        raise GeneralsError(self.error or "Action failed", code=self.error_code)
