"""
Generals Error Hierarchy

Every engine error carries a machine-readable code, a human-readable
message and optional context, so the service and HTTP layers can report
them uniformly.

Two classes of failure:
- Recoverable (GeneralsError subclasses): rejected user input. The engine
  makes no state change and the caller reports the reason.
- InvariantViolation: deployed code and data disagree (unknown piece type,
  a log that contradicts the combat rules). These must fail loudly.

Usage:
    from generals.errors import MoveIllegal, MoveErrorKind

    try:
        check_move(board, origin, target, player)
    except MoveIllegal as e:
        logger.info("Rejected move: %s (%s)", e.message, e.kind.value)
"""

from __future__ import annotations
from enum import Enum
from typing import Any

__all__ = [
    "GeneralsError",
    "SetupInvalid",
    "MoveErrorKind",
    "MoveIllegal",
    "MatchNotFound",
    "MatchAlreadyFinished",
    "NotAParticipant",
    "ReplayFormatError",
    "ReplayUnavailable",
    "InvariantViolation",
    "UnknownPieceError",
    "ReplayDivergence",
]


class GeneralsError(Exception):
    """Base exception for recoverable engine errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for the caller
    """
    code: str = "GENERALS_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class SetupInvalid(GeneralsError):
    """A proposed initial placement was rejected.

    Attributes:
        errors: Every rule the placement broke, in check order
    """
    code: str = "SETUP_INVALID"

    def __init__(self, errors: list[str], context: dict[str, Any] | None = None):
        self.errors = list(errors)
        message = errors[0] if len(errors) == 1 else f"Setup invalid: {'; '.join(errors)}"
        super().__init__(message, context=context)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class MoveErrorKind(str, Enum):
    """Specific reasons a move request is rejected."""
    NOT_YOUR_TURN = "not_your_turn"
    WRONG_PHASE = "wrong_phase"
    OUT_OF_BOUNDS = "out_of_bounds"
    DIAGONAL_MOVE = "diagonal_move"
    NOT_ADJACENT = "not_adjacent"
    OWN_PIECE_BLOCKED = "own_piece_blocked"
    NO_PIECE = "no_piece"


class MoveIllegal(GeneralsError):
    """A move request broke the movement rules.

    Attributes:
        kind: Which rule was broken
    """
    code: str = "MOVE_ILLEGAL"

    def __init__(
        self,
        kind: MoveErrorKind,
        message: str,
        context: dict[str, Any] | None = None,
    ):
        self.kind = kind
        super().__init__(message, context=context)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["kind"] = self.kind.value
        return data


class MatchNotFound(GeneralsError):
    """No match is registered under the given ID."""
    code: str = "MATCH_NOT_FOUND"

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found", context={"match_id": match_id})


class MatchAlreadyFinished(GeneralsError):
    """A mutation was attempted on a finished match."""
    code: str = "MATCH_ALREADY_FINISHED"

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(
            f"Match {match_id} is already finished", context={"match_id": match_id}
        )


class NotAParticipant(GeneralsError):
    """The requesting user is not one of the two players."""
    code: str = "NOT_A_PARTICIPANT"


class ReplayFormatError(GeneralsError):
    """A replay file or event record could not be parsed."""
    code: str = "REPLAY_FORMAT_ERROR"


class ReplayUnavailable(GeneralsError):
    """The match has no replay to give out yet."""
    code: str = "REPLAY_UNAVAILABLE"


# =============================================================================
# Programming errors
# =============================================================================


class InvariantViolation(AssertionError):
    """Internal invariant broken: code and data disagree.

    Subclasses AssertionError on purpose so generic handlers for user
    errors never swallow it.
    """


class UnknownPieceError(InvariantViolation):
    """A piece name outside the closed set of piece types reached the engine."""

    def __init__(self, name: object):
        self.name = name
        super().__init__(f"Unknown piece type: {name!r}")


class ReplayDivergence(InvariantViolation):
    """A recorded challenge outcome contradicts the combat rules."""

    def __init__(self, sequence: int, recorded: str, expected: str):
        self.sequence = sequence
        self.recorded = recorded
        self.expected = expected
        super().__init__(
            f"Event {sequence}: log records winner={recorded!r} "
            f"but the combat rules give {expected!r}"
        )
