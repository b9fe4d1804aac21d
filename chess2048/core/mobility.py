"""Legal destination enumeration and any-move detection (brute force over the 64 squares)."""

from __future__ import annotations

from typing import List

from .board import Board, Position
from .pieces import Side
from .rules import MoveOutcome, classify_move


def legal_destinations(board: Board, src: Position) -> List[Position]:
    """All squares the piece on src may move to, in row-major order."""
    if not src.in_bounds():
        return []
    side = board.at(src).owner
    if side is None:
        return []
    return [
        dst for dst in board.positions()
        if classify_move(board, side, src, dst) is not MoveOutcome.ILLEGAL
    ]


def has_any_legal_move(board: Board, side: Side) -> bool:
    return any(legal_destinations(board, pos) for pos, _ in board.pieces(side))
