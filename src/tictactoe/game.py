"""Board state and rules for classic 3x3 tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union


class Mark(str, Enum):
    """The two player symbols. ``X`` always moves first."""

    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Mark":
        return Mark.O if self is Mark.X else Mark.X


Cell = Optional[Mark]
Line = Tuple[int, int, int]

BOARD_SIZE = 9

# Canonical order: rows, then columns, then the two diagonals.
WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


# ---------- Board ----------


@dataclass
class Board:
    # None for empty, otherwise the Mark occupying the cell
    cells: List[Cell] = field(default_factory=lambda: [None] * BOARD_SIZE)
    # Cleared by the session once the game is concluded
    active: bool = True

    def apply_move(self, cell_index: int, mark: Mark) -> bool:
        """Place ``mark`` if the move is legal; report success instead of raising."""
        if not self.active:
            return False
        if not isinstance(cell_index, int) or isinstance(cell_index, bool):
            return False
        if not 0 <= cell_index < BOARD_SIZE:
            return False
        if self.cells[cell_index] is not None:
            return False
        self.cells[cell_index] = mark
        return True

    def is_full(self) -> bool:
        return all(c is not None for c in self.cells)

    def empty_cells(self) -> List[int]:
        return [i for i, c in enumerate(self.cells) if c is None]

    def mark_count(self) -> int:
        return BOARD_SIZE - len(self.empty_cells())

    def reset(self) -> None:
        self.cells = [None] * BOARD_SIZE
        self.active = True

    def copy(self) -> "Board":
        return Board(cells=self.cells.copy(), active=self.active)


# ---------- Result ----------


class Outcome(str, Enum):
    ONGOING = "ongoing"
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True)
class Result:
    outcome: Outcome
    winner: Optional[Mark] = None
    line: Tuple[int, ...] = ()

    @classmethod
    def ongoing(cls) -> "Result":
        return cls(Outcome.ONGOING)

    @classmethod
    def draw(cls) -> "Result":
        return cls(Outcome.DRAW)

    @classmethod
    def win(cls, mark: Mark, line: Line) -> "Result":
        return cls(Outcome.WIN, winner=mark, line=tuple(line))

    @property
    def is_terminal(self) -> bool:
        return self.outcome is not Outcome.ONGOING


# ---------- Rules ----------


def evaluate(board: Union[Board, Sequence[Cell]]) -> Result:
    """
    Classify a position without touching it.

    The first winning line in canonical order is reported, so a board where
    one mark completes two lines at once highlights the earlier line.
    """
    cells = board.cells if isinstance(board, Board) else board
    for line in WINNING_LINES:
        a, b, c = line
        v = cells[a]
        if v is not None and v == cells[b] == cells[c]:
            return Result.win(Mark(v), line)
    if all(c is not None for c in cells):
        return Result.draw()
    return Result.ongoing()
