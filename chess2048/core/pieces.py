"""Sides, piece kinds and the value -> kind classifier."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Side(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Side":
        return Side.BLACK if self is Side.WHITE else Side.WHITE

    @property
    def forward(self) -> int:
        """Row step towards the opponent's back rank."""
        return -1 if self is Side.WHITE else 1

    @property
    def back_rank(self) -> int:
        return 7 if self is Side.WHITE else 0

    @property
    def pawn_rank(self) -> int:
        return 6 if self is Side.WHITE else 1


class PieceKind(str, Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"


# (upper bound inclusive, kind); anything above the last bound is a queen
KIND_THRESHOLDS = (
    (2, PieceKind.PAWN),
    (4, PieceKind.KNIGHT),
    (8, PieceKind.BISHOP),
    (16, PieceKind.ROOK),
)


def classify(value: int) -> PieceKind:
    """Map a tile value to the piece kind it moves as."""
    for bound, kind in KIND_THRESHOLDS:
        if value <= bound:
            return kind
    return PieceKind.QUEEN


@dataclass(frozen=True)
class Cell:
    owner: Optional[Side] = None
    value: Optional[int] = None
    kind: Optional[PieceKind] = None

    def __post_init__(self):
        filled = (self.owner is not None, self.value is not None, self.kind is not None)
        if any(filled) and not all(filled):
            raise ValueError(f"Cell must be fully empty or fully occupied: {self!r}")
        if self.value is not None:
            if self.value <= 0:
                raise ValueError(f"Piece value must be positive, got {self.value}")
            if self.kind is not classify(self.value):
                raise ValueError(f"Kind {self.kind} does not match value {self.value}")

    @classmethod
    def piece(cls, owner: Side, value: int) -> "Cell":
        return cls(owner=owner, value=value, kind=classify(value))

    @classmethod
    def empty(cls) -> "Cell":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.owner is None


EMPTY = Cell.empty()
