"""Move legality: classifies a candidate move as a move, merge, capture or illegal."""

from __future__ import annotations

from enum import Enum

from .board import Board, Position
from .pieces import Cell, PieceKind, Side


class MoveOutcome(str, Enum):
    MOVE = "move"
    MERGE = "merge"
    CAPTURE = "capture"
    ILLEGAL = "illegal"


SLIDING_KINDS = (PieceKind.BISHOP, PieceKind.ROOK, PieceKind.QUEEN)


def classify_move(board: Board, side_to_move: Side, src: Position, dst: Position) -> MoveOutcome:
    """Decide what playing src -> dst for side_to_move would do.

    Equal-value opposing pieces always merge; they are never captured.
    """
    if not (src.in_bounds() and dst.in_bounds()) or src == dst:
        return MoveOutcome.ILLEGAL

    piece = board.at(src)
    if piece.owner is not side_to_move:
        return MoveOutcome.ILLEGAL

    target = board.at(dst)
    is_capture = target.owner is side_to_move.opponent

    if not _shape_allows(board, piece, src, dst, is_capture):
        return MoveOutcome.ILLEGAL
    if piece.kind in SLIDING_KINDS and not _path_clear(board, src, dst):
        return MoveOutcome.ILLEGAL

    if target.is_empty:
        return MoveOutcome.MOVE
    if target.owner is side_to_move:
        return MoveOutcome.ILLEGAL
    if target.value == piece.value:
        return MoveOutcome.MERGE
    return MoveOutcome.CAPTURE


def _shape_allows(board: Board, piece: Cell, src: Position, dst: Position, is_capture: bool) -> bool:
    dr = dst.row - src.row
    dc = dst.col - src.col

    if piece.kind is PieceKind.PAWN:
        return _pawn_allows(board, piece.owner, src, dst, is_capture)
    if piece.kind is PieceKind.KNIGHT:
        return (abs(dr), abs(dc)) in ((2, 1), (1, 2))
    if piece.kind is PieceKind.BISHOP:
        return abs(dr) == abs(dc)
    if piece.kind is PieceKind.ROOK:
        return dr == 0 or dc == 0
    # queen
    return dr == 0 or dc == 0 or abs(dr) == abs(dc)


def _pawn_allows(board: Board, side: Side, src: Position, dst: Position, is_capture: bool) -> bool:
    step = side.forward
    dr = dst.row - src.row
    dc = dst.col - src.col

    # Pawns only take diagonally, never straight ahead.
    if is_capture:
        return dr == step and abs(dc) == 1
    if dc != 0:
        return False
    if dr == step:
        return True
    if dr == 2 * step and src.row == side.pawn_rank:
        between = Position(src.row + step, src.col)
        return board.at(between).is_empty and board.at(dst).is_empty
    return False


def _path_clear(board: Board, src: Position, dst: Position) -> bool:
    """True if every square strictly between src and dst is empty."""
    dr = dst.row - src.row
    dc = dst.col - src.col
    step_r = (dr > 0) - (dr < 0)
    step_c = (dc > 0) - (dc < 0)

    r, c = src.row + step_r, src.col + step_c
    while (r, c) != (dst.row, dst.col):
        if not board.at(Position(r, c)).is_empty:
            return False
        r += step_r
        c += step_c
    return True
