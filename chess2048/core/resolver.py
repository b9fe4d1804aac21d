"""Applies classified moves to a board: relocation, merge arithmetic and pawn promotion."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from chess2048.config import CONFIG

from .board import Board, Position
from .pieces import Cell, PieceKind
from .rules import MoveOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Action:
    """What a resolved move did, for the caller's presentation and replay."""

    kind: MoveOutcome
    cells: Tuple[Position, ...]
    promoted: bool = False
    message: Optional[str] = None

    def to_wire(self) -> dict:
        return {
            "type": self.kind.value,
            "cells": [p.to_wire() for p in self.cells],
            "promoted": self.promoted,
            "message": self.message,
        }

    @classmethod
    def from_wire(cls, raw: dict) -> "Action":
        try:
            kind = MoveOutcome(raw["type"])
            cells = tuple(Position.from_wire(p) for p in raw["cells"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed action {raw!r}") from exc
        return cls(kind=kind, cells=cells, promoted=bool(raw.get("promoted", False)), message=raw.get("message"))


def apply_move(
    board: Board,
    src: Position,
    dst: Position,
    outcome: MoveOutcome,
    promotion_value: Optional[int] = None,
) -> Action:
    """Mutate board according to an outcome produced by classify_move on the same board.

    No re-validation is done here.
    """
    if outcome is MoveOutcome.ILLEGAL:
        raise ValueError(f"Cannot apply an illegal move {src} -> {dst}")

    piece = board.at(src)
    cells = (src, dst)

    if outcome is MoveOutcome.MERGE:
        board.set(dst, Cell.piece(piece.owner, piece.value * 2))
        board.clear(src)
        return Action(kind=outcome, cells=cells)

    board.set(dst, piece)
    board.clear(src)

    if piece.kind is PieceKind.PAWN and dst.row == piece.owner.opponent.back_rank:
        value = promotion_value if promotion_value is not None else CONFIG.rules.promotion_value
        board.set(dst, Cell.piece(piece.owner, value))
        message = f"{piece.owner.value} pawn promoted to {value}!"
        logger.info(message)
        return Action(kind=outcome, cells=cells, promoted=True, message=message)

    return Action(kind=outcome, cells=cells)
