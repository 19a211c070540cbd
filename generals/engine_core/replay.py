"""
Deterministic Replay Engine - rebuilds the board at any point of a match.

Given the initial board and the ordered event log, the board after event n
is obtained by starting from a fully hidden copy of the initial board and
applying events 0..n with transition.apply_event, the same function live
play uses. Replaying the same inputs always yields the same boards.

The replay engine never touches live match state; it only works on copies.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Union

from ..errors import ReplayDivergence
from .board import Board
from .combat import resolve_challenge
from .events import MoveEvent, coerce_events
from .transition import apply_event


EventLike = Union[MoveEvent, Mapping[str, Any]]


def verify_event(event: MoveEvent) -> None:
    """Re-run combat for a challenge record and compare with what was logged."""
    result = event.challenge_result
    if result is None:
        return
    expected = resolve_challenge(result.attacker, result.defender)
    if expected != result.winner:
        raise ReplayDivergence(event.sequence, result.winner.value, expected.value)


def verify_events(events: Iterable[EventLike]) -> list[MoveEvent]:
    """Check every challenge in a log against the combat rules."""
    parsed = coerce_events(events)
    for event in parsed:
        verify_event(event)
    return parsed


def iter_boards(
    initial_board: Board,
    events: Iterable[EventLike],
    verify: bool = False,
) -> Iterator[Board]:
    """Yield the board after each event in order."""
    board = initial_board.hidden_copy()
    for event in coerce_events(events):
        if verify:
            verify_event(event)
        board = apply_event(board, event)
        yield board


def reconstruct_at(
    initial_board: Board,
    events: Iterable[EventLike],
    index: int,
    verify: bool = False,
) -> Board:
    """
    Board state after applying events[0..index].

    index == -1 returns the starting board with every piece hidden.
    Raises IndexError for an index past the end of the log.
    """
    parsed = coerce_events(events)
    if index < -1 or index >= len(parsed):
        raise IndexError(
            f"Replay index {index} out of range for a log of {len(parsed)} events"
        )

    board = initial_board.hidden_copy()
    for event in parsed[: index + 1]:
        if verify:
            verify_event(event)
        board = apply_event(board, event)
    return board


def reconstruct_all(
    initial_board: Board,
    events: Iterable[EventLike],
    verify: bool = False,
) -> list[Board]:
    """Every board of the match: the starting board, then one per event."""
    boards = [initial_board.hidden_copy()]
    boards.extend(iter_boards(initial_board, events, verify=verify))
    return boards


@dataclass(frozen=True)
class ReplayLog:
    """An initial board plus its event log - everything a replay needs."""
    initial_board: Board
    events: tuple[MoveEvent, ...]

    @classmethod
    def from_events(cls, initial_board: Board, events: Iterable[EventLike]) -> ReplayLog:
        return cls(initial_board=initial_board, events=tuple(coerce_events(events)))

    def __len__(self) -> int:
        return len(self.events)

    def board_at(self, index: int, verify: bool = False) -> Board:
        return reconstruct_at(self.initial_board, self.events, index, verify=verify)

    @property
    def final_board(self) -> Board:
        return self.board_at(len(self.events) - 1)

    def boards(self) -> list[Board]:
        return reconstruct_all(self.initial_board, self.events)

    def verify(self) -> None:
        verify_events(self.events)
