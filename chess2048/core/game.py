"""Game state and the move-attempt pipeline: classify, resolve, evaluate, flip the turn.

States are immutable; a successful attempt returns a new state built on a
copy of the board, so a rejected attempt can never leave a trace.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Union

from .board import Board, Position, initial_standard_setup
from .outcome import GameResult, evaluate, evaluate_time_expiry, material_scores
from .pieces import Side
from .resolver import Action, apply_move
from .rules import MoveOutcome, classify_move

logger = logging.getLogger(__name__)


class RejectReason(str, Enum):
    GAME_OVER = "game_over"
    OUT_OF_BOUNDS = "out_of_bounds"
    EMPTY_SQUARE = "empty_square"
    WRONG_SIDE = "wrong_side"
    ILLEGAL_MOVE = "illegal_move"


REJECT_MESSAGES = {
    RejectReason.GAME_OVER: "The game is over.",
    RejectReason.OUT_OF_BOUNDS: "Coordinates must be between 0 and 7.",
    RejectReason.EMPTY_SQUARE: "There is no piece on that square.",
    RejectReason.WRONG_SIDE: "It is not your turn.",
    RejectReason.ILLEGAL_MOVE: "Illegal move.",
}


@dataclass(frozen=True)
class GameState:
    board: Board
    side_to_move: Side = Side.WHITE
    result: Optional[GameResult] = None
    last_action: Optional[Action] = None

    @property
    def is_over(self) -> bool:
        return self.result is not None

    def to_payload(self) -> Dict[str, Any]:
        """Snapshot in the shape storage and sync collaborators exchange."""
        return {
            "board": self.board.to_wire(),
            "currentPlayer": self.side_to_move.value,
            "gameOver": self.is_over,
            "result": self.result.to_wire() if self.result else None,
            "scores": {side.value: score for side, score in material_scores(self.board).items()},
            "lastAction": self.last_action.to_wire() if self.last_action else None,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], target_tile: Optional[int] = None) -> "GameState":
        """Restore a snapshot.

        A stored result is taken as is. A finished game without one gets its
        result re-derived from the board.
        """
        board = Board.from_wire(payload.get("board"))
        try:
            side = Side(payload.get("currentPlayer", Side.WHITE.value))
        except ValueError:
            raise ValueError(f"Unknown currentPlayer {payload.get('currentPlayer')!r}")
        raw_result = payload.get("result")
        raw_action = payload.get("lastAction")
        if raw_result is not None and not isinstance(raw_result, dict):
            raise ValueError(f"result must be an object, got {raw_result!r}")
        if raw_action is not None and not isinstance(raw_action, dict):
            raise ValueError(f"lastAction must be an object, got {raw_action!r}")
        result = None
        if raw_result is not None:
            result = GameResult.from_wire(raw_result)
        elif payload.get("gameOver"):
            # the winning move does not flip the turn, so the mover is still current
            result = evaluate(board, side, target_tile=target_tile) or evaluate_time_expiry(board)
        last_action = Action.from_wire(raw_action) if raw_action is not None else None
        return cls(board=board, side_to_move=side, result=result, last_action=last_action)


@dataclass(frozen=True)
class MoveApplied:
    state: GameState
    action: Action

    @property
    def result(self) -> Optional[GameResult]:
        return self.state.result

    @property
    def next_side(self) -> Side:
        return self.state.side_to_move

    @property
    def board(self) -> Board:
        return self.state.board


@dataclass(frozen=True)
class MoveRejected:
    reason: RejectReason

    @property
    def message(self) -> str:
        return REJECT_MESSAGES[self.reason]


MoveAttempt = Union[MoveApplied, MoveRejected]


def new_game() -> GameState:
    return GameState(board=initial_standard_setup(), side_to_move=Side.WHITE)


def attempt_move(
    state: GameState,
    src: Position,
    dst: Position,
    target_tile: Optional[int] = None,
    promotion_value: Optional[int] = None,
) -> MoveAttempt:
    """Try to play src -> dst for the side to move."""
    reason = _precheck(state, src, dst)
    if reason is None:
        outcome = classify_move(state.board, state.side_to_move, src, dst)
        if outcome is MoveOutcome.ILLEGAL:
            reason = RejectReason.ILLEGAL_MOVE
    if reason is not None:
        logger.debug("Rejected %s -> %s for %s: %s", src, dst, state.side_to_move.value, reason.value)
        return MoveRejected(reason)

    board = state.board.copy()
    action = apply_move(board, src, dst, outcome, promotion_value=promotion_value)
    result = evaluate(board, state.side_to_move, target_tile=target_tile)
    if result is not None:
        logger.info(result.message)
        next_side = state.side_to_move
    else:
        next_side = state.side_to_move.opponent
    return MoveApplied(
        state=GameState(board=board, side_to_move=next_side, result=result, last_action=action),
        action=action,
    )


def _precheck(state: GameState, src: Position, dst: Position) -> Optional[RejectReason]:
    if state.is_over:
        return RejectReason.GAME_OVER
    if not (src.in_bounds() and dst.in_bounds()):
        return RejectReason.OUT_OF_BOUNDS
    owner = state.board.at(src).owner
    if owner is None:
        return RejectReason.EMPTY_SQUARE
    if owner is not state.side_to_move:
        return RejectReason.WRONG_SIDE
    return None


def expire_clock(state: GameState) -> GameState:
    """Apply a clock running out. Already finished games are left as they are."""
    if state.is_over:
        return state
    result = evaluate_time_expiry(state.board)
    logger.info(result.message)
    return replace(state, result=result)

