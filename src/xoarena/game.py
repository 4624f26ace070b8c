"""Core rules for XOArena: immutable 3x3 boards, move legality and outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class Cell(str, Enum):
    EMPTY = " "
    X = "X"
    O = "O"


Player = Cell  # only Cell.X or Cell.O
Board = Tuple[Cell, ...]
Line = Tuple[int, int, int]

BOARD_CELLS = 9

# Table order is the tie-break when a (malformed) board completes two lines.
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

CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)


class IllegalMoveError(ValueError):
    """Raised when a move targets an occupied or out-of-range cell."""

    def __init__(self, position: object, reason: str = "Illegal move") -> None:
        super().__init__(f"{reason}: {position!r}")
        self.position = position


class Status(str, Enum):
    ONGOING = "ongoing"
    WON = "won"
    DRAW = "draw"


@dataclass(frozen=True)
class Outcome:
    status: Status
    winner: Optional[Player] = None
    line: Optional[Line] = None

    @classmethod
    def won(cls, winner: Player, line: Line) -> "Outcome":
        return cls(Status.WON, winner, line)

    @property
    def is_over(self) -> bool:
        return self.status is not Status.ONGOING


ONGOING = Outcome(Status.ONGOING)
DRAW = Outcome(Status.DRAW)


# ---------- Board construction ----------


def empty_board() -> Board:
    return (Cell.EMPTY,) * BOARD_CELLS


def board_from_cells(values: Iterable[object]) -> Board:
    """
    Build a board from 9 loose values: Cell members, 'X'/'O' (any case),
    or '', ' ', '.', '_', None for empty squares.
    """
    cells: List[Cell] = []
    for value in values:
        if isinstance(value, Cell):
            cells.append(value)
        elif value is None or value in ("", " ", ".", "_"):
            cells.append(Cell.EMPTY)
        elif isinstance(value, str) and value.upper() in ("X", "O"):
            cells.append(Cell(value.upper()))
        else:
            raise ValueError(f"Unknown cell value {value!r}")
    if len(cells) != BOARD_CELLS:
        raise ValueError(f"A board needs {BOARD_CELLS} cells, got {len(cells)}")
    return tuple(cells)


def format_board(board: Board) -> str:
    rows = []
    for r in range(3):
        row = board[r * 3 : r * 3 + 3]
        rows.append(" ".join(c.value if c is not Cell.EMPTY else "." for c in row))
    return "\n".join(rows)


# ---------- Rules ----------


def is_legal_move(board: Board, position: int) -> bool:
    if not isinstance(position, int) or isinstance(position, bool):
        return False
    return 0 <= position < BOARD_CELLS and board[position] is Cell.EMPTY


def apply_move(board: Board, position: int, player: Player) -> Board:
    """Return a new board with ``player`` placed at ``position``."""
    if player is Cell.EMPTY:
        raise IllegalMoveError(position, "Cannot place an empty mark")
    if not is_legal_move(board, position):
        if isinstance(position, int) and 0 <= position < BOARD_CELLS:
            raise IllegalMoveError(position, "Cell already occupied")
        raise IllegalMoveError(position, "Position out of range")
    cells = list(board)
    cells[position] = player
    return tuple(cells)


def evaluate(board: Board) -> Outcome:
    for line in WINNING_LINES:
        a, b, c = line
        v = board[a]
        if v is not Cell.EMPTY and v == board[b] == board[c]:
            return Outcome.won(v, line)
    if all(c is not Cell.EMPTY for c in board):
        return DRAW
    return ONGOING


def legal_moves(board: Board) -> List[int]:
    return [i for i, c in enumerate(board) if c is Cell.EMPTY]


def next_player(player: Player) -> Player:
    if player is Cell.X:
        return Cell.O
    if player is Cell.O:
        return Cell.X
    raise ValueError("Empty cell has no next player")


def is_well_formed(board: Board) -> bool:
    """X always moves first, so X may lead O by at most one mark."""
    x_cnt = sum(1 for c in board if c is Cell.X)
    o_cnt = sum(1 for c in board if c is Cell.O)
    return len(board) == BOARD_CELLS and x_cnt - o_cnt in (0, 1)


def side_to_move(board: Board) -> Player:
    x_cnt = sum(1 for c in board if c is Cell.X)
    o_cnt = sum(1 for c in board if c is Cell.O)
    return Cell.X if x_cnt <= o_cnt else Cell.O
