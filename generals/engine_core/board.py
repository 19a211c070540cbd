"""
Board Model - the 9x8 grid of optional piece cells.

Design principles:
- Immutable-friendly: every change returns a new Board
- Serializable: rows of {piece, player, revealed} dicts (the wire format
  stored with matches and replay files)
- Comparable: two boards are equal when every cell is equal, which is what
  the replay determinism checks rely on

Coordinates are (row, col). Row 0 is Player 2's back rank, row 7 is
Player 1's back rank.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterator, Mapping

from .pieces import PieceType


ROWS = 8
COLS = 9
HIDDEN_PIECE = "Hidden"


class Player(str, Enum):
    """The two sides of a match."""
    PLAYER1 = "player1"
    PLAYER2 = "player2"

    @property
    def opponent(self) -> Player:
        return Player.PLAYER2 if self is Player.PLAYER1 else Player.PLAYER1

    @property
    def home_rows(self) -> tuple[int, ...]:
        """The three back-most rows this player may place pieces in."""
        return (5, 6, 7) if self is Player.PLAYER1 else (0, 1, 2)

    @property
    def back_rank(self) -> int:
        return 7 if self is Player.PLAYER1 else 0

    @property
    def enemy_back_rank(self) -> int:
        """The row this player's Flag must reach to win."""
        return self.opponent.back_rank


@dataclass(frozen=True)
class Position:
    """A (row, col) coordinate, not necessarily on the board."""
    row: int
    col: int

    @property
    def in_bounds(self) -> bool:
        return 0 <= self.row < ROWS and 0 <= self.col < COLS

    def distance(self, other: Position) -> int:
        """Manhattan distance."""
        return abs(self.row - other.row) + abs(self.col - other.col)

    def is_diagonal_to(self, other: Position) -> bool:
        return self.row != other.row and self.col != other.col

    def neighbours(self) -> Iterator[Position]:
        """Orthogonal neighbours that lie on the board."""
        for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            pos = Position(self.row + dr, self.col + dc)
            if pos.in_bounds:
                yield pos

    def mirrored(self) -> Position:
        """Same square seen from the other side's rows."""
        return Position(ROWS - 1 - self.row, self.col)

    def __str__(self) -> str:
        return f"({self.row},{self.col})"


@dataclass(frozen=True)
class Cell:
    """An occupied square."""
    piece: PieceType
    player: Player
    revealed: bool = False

    def reveal(self) -> Cell:
        """Return the cell with its piece revealed. Revealing is one-way."""
        if self.revealed:
            return self
        return replace(self, revealed=True)

    def hidden(self) -> Cell:
        """Return the cell as it stood before any engagement."""
        if not self.revealed:
            return self
        return replace(self, revealed=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "piece": self.piece.value,
            "player": self.player.value,
            "revealed": self.revealed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Cell:
        return cls(
            piece=PieceType.parse(data["piece"]),
            player=Player(data["player"]),
            revealed=bool(data.get("revealed", False)),
        )


def _empty_grid() -> tuple[tuple[Cell | None, ...], ...]:
    return tuple(tuple(None for _ in range(COLS)) for _ in range(ROWS))


@dataclass(frozen=True)
class Board:
    """
    The full grid. cells[row][col] is a Cell or None.

    Never mutated in place: use with_cells() to derive a new board.
    """
    cells: tuple[tuple[Cell | None, ...], ...] = field(default_factory=_empty_grid)

    @classmethod
    def empty(cls) -> Board:
        return cls()

    def get(self, pos: Position) -> Cell | None:
        """Cell at pos. Off-board positions read as empty."""
        if not pos.in_bounds:
            return None
        return self.cells[pos.row][pos.col]

    def __getitem__(self, pos: Position) -> Cell | None:
        return self.get(pos)

    def with_cells(self, updates: Mapping[Position, Cell | None]) -> Board:
        """Return a new board with the given squares replaced."""
        if not updates:
            return self
        rows = [list(row) for row in self.cells]
        for pos, cell in updates.items():
            if not pos.in_bounds:
                raise ValueError(f"Position {pos} is off the board")
            rows[pos.row][pos.col] = cell
        return Board(cells=tuple(tuple(row) for row in rows))

    def occupied(self) -> Iterator[tuple[Position, Cell]]:
        """Every occupied square, row-major."""
        for r, row in enumerate(self.cells):
            for c, cell in enumerate(row):
                if cell is not None:
                    yield Position(r, c), cell

    def pieces_of(self, player: Player) -> list[tuple[Position, Cell]]:
        return [(pos, cell) for pos, cell in self.occupied() if cell.player == player]

    def count(self, player: Player) -> int:
        """Number of pieces a player still has on the board."""
        return len(self.pieces_of(player))

    def find(self, piece: PieceType, player: Player) -> list[Position]:
        return [
            pos for pos, cell in self.pieces_of(player) if cell.piece == piece
        ]

    def has_flag(self, player: Player) -> bool:
        return bool(self.find(PieceType.FLAG, player))

    def hidden_copy(self) -> Board:
        """Copy with every revealed flag reset - the pre-game knowledge state."""
        return Board(
            cells=tuple(
                tuple(cell.hidden() if cell else None for cell in row)
                for row in self.cells
            )
        )

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_rows(self) -> list[list[dict[str, Any] | None]]:
        """Wire format: board[row][col] -> cell dict or None."""
        return [
            [cell.to_dict() if cell else None for cell in row]
            for row in self.cells
        ]

    @classmethod
    def from_rows(cls, rows: list[list[Mapping[str, Any] | None]]) -> Board:
        if len(rows) != ROWS or any(len(row) != COLS for row in rows):
            raise ValueError(f"Board must be {ROWS} rows of {COLS} cells")
        return cls(
            cells=tuple(
                tuple(Cell.from_dict(cell) if cell else None for cell in row)
                for row in rows
            )
        )

    def view_for(self, viewer: Player | None) -> list[list[dict[str, Any] | None]]:
        """
        Board as one player is allowed to see it.

        Opponent pieces that have not been revealed are masked as "Hidden".
        viewer=None means an omniscient view (spectators, finished matches).
        """
        if viewer is None:
            return self.to_rows()
        rows = []
        for row in self.cells:
            out = []
            for cell in row:
                if cell is None:
                    out.append(None)
                elif cell.player == viewer or cell.revealed:
                    out.append(cell.to_dict())
                else:
                    out.append({
                        "piece": HIDDEN_PIECE,
                        "player": cell.player.value,
                        "revealed": False,
                    })
            rows.append(out)
        return rows

    def render(self, viewer: Player | None = None, hide_unrevealed: bool = False) -> str:
        """
        Plain-text board for logs and the CLI.

        Masked pieces print as ??: the opponent's unrevealed pieces when a
        viewer is given, or every unrevealed piece with hide_unrevealed.
        """
        lines = ["    " + " ".join(f"{c:>3}" for c in range(COLS))]
        for r, row in enumerate(self.cells):
            labels = []
            for cell in row:
                if cell is None:
                    labels.append("  .")
                    continue
                side = "+" if cell.player == Player.PLAYER1 else "-"
                masked = hide_unrevealed or (viewer is not None and cell.player != viewer)
                if masked and not cell.revealed:
                    labels.append(f"{side}??")
                else:
                    labels.append(f"{side}{cell.piece.short}")
            lines.append(f"{r:>3} " + " ".join(labels))
        return "\n".join(lines)
