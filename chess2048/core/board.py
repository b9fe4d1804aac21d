"""8x8 board model with wire (de)serialization.

Row 0 is Black's back rank, row 7 is White's. The wire shape is an 8x8
list of ``{"player", "value", "type"}`` dicts with ``None`` fields for
empty cells, the snapshot shape storage and transport collaborators use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .pieces import EMPTY, Cell, Side, classify

logger = logging.getLogger(__name__)

BOARD_SIZE = 8

# Back rank layout by file, shared by both sides.
BACK_RANK_VALUES = (16, 4, 8, 32, 32, 8, 4, 16)
PAWN_VALUE = 2


class InvalidBoardError(ValueError):
    """Raised when a wire snapshot does not describe a valid board."""


@dataclass(frozen=True, order=True)
class Position:
    row: int
    col: int

    def in_bounds(self) -> bool:
        return 0 <= self.row < BOARD_SIZE and 0 <= self.col < BOARD_SIZE

    def to_wire(self) -> Dict[str, int]:
        return {"row": self.row, "col": self.col}

    @classmethod
    def from_wire(cls, raw: Any) -> "Position":
        if not isinstance(raw, dict):
            raise InvalidBoardError(f"Position must be an object, got {raw!r}")
        row, col = raw.get("row"), raw.get("col")
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in (row, col)):
            raise InvalidBoardError(f"Position needs integer row and col, got {raw!r}")
        return cls(row, col)


class Board:
    def __init__(self, cells: Optional[List[List[Cell]]] = None):
        """Initialize from a grid of cells, or an empty board."""
        if cells is None:
            cells = [[EMPTY] * BOARD_SIZE for _ in range(BOARD_SIZE)]
        self.cells = cells

    def at(self, pos: Position) -> Cell:
        return self.cells[pos.row][pos.col]

    def set(self, pos: Position, cell: Cell):
        self.cells[pos.row][pos.col] = cell

    def clear(self, pos: Position):
        self.cells[pos.row][pos.col] = EMPTY

    def copy(self) -> "Board":
        # Cells are immutable, copying the rows is enough.
        return Board([list(row) for row in self.cells])

    def positions(self) -> Iterator[Position]:
        for r in range(BOARD_SIZE):
            for c in range(BOARD_SIZE):
                yield Position(r, c)

    def pieces(self, side: Optional[Side] = None) -> Iterator[Tuple[Position, Cell]]:
        """Yield (position, cell) for occupied cells, optionally only one side's."""
        for pos in self.positions():
            cell = self.at(pos)
            if cell.is_empty:
                continue
            if side is None or cell.owner is side:
                yield pos, cell

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.cells == other.cells

    def __repr__(self) -> str:
        return f"Board({self.to_wire()!r})"

    def to_wire(self) -> List[List[Dict[str, Any]]]:
        return [
            [
                {
                    "player": cell.owner.value if cell.owner else None,
                    "value": cell.value,
                    "type": cell.kind.value if cell.kind else None,
                }
                for cell in row
            ]
            for row in self.cells
        ]

    @classmethod
    def from_wire(cls, raw: Any) -> "Board":
        """Build a board from its wire snapshot. The tile value is authoritative for the kind."""
        if not isinstance(raw, list) or len(raw) != BOARD_SIZE:
            raise InvalidBoardError(f"Board must have {BOARD_SIZE} rows")
        cells = []
        for r, row in enumerate(raw):
            if not isinstance(row, list) or len(row) != BOARD_SIZE:
                raise InvalidBoardError(f"Row {r} must have {BOARD_SIZE} cells")
            cells.append([_cell_from_wire(r, c, entry) for c, entry in enumerate(row)])
        return cls(cells)


def _cell_from_wire(row: int, col: int, entry: Any) -> Cell:
    if not isinstance(entry, dict):
        raise InvalidBoardError(f"Cell ({row},{col}) must be an object")
    player = entry.get("player")
    value = entry.get("value")
    kind = entry.get("type")
    if player is None and value is None:
        return EMPTY
    if player is None or value is None:
        raise InvalidBoardError(f"Cell ({row},{col}) is half-empty: {entry!r}")
    try:
        owner = Side(player)
    except ValueError:
        raise InvalidBoardError(f"Cell ({row},{col}) has unknown player {player!r}")
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidBoardError(f"Cell ({row},{col}) has invalid value {value!r}")
    derived = classify(value)
    if kind is not None and kind != derived.value:
        logger.warning("Cell (%d,%d): type %r disagrees with value %d, using %s",
                       row, col, kind, value, derived.value)
    return Cell.piece(owner, value)


def empty_board() -> Board:
    return Board()


def initial_standard_setup() -> Board:
    """Return the starting formation: pawns on the near rank, heavy pieces in the center files."""
    board = Board()
    for side in (Side.WHITE, Side.BLACK):
        for col in range(BOARD_SIZE):
            board.set(Position(side.pawn_rank, col), Cell.piece(side, PAWN_VALUE))
            board.set(Position(side.back_rank, col), Cell.piece(side, BACK_RANK_VALUES[col]))
    return board

