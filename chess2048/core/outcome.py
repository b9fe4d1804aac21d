"""Win/draw evaluation run after every move and on clock expiry."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from chess2048.config import CONFIG

from .board import Board
from .mobility import has_any_legal_move
from .pieces import Side


class ResultReason(str, Enum):
    TARGET_REACHED = "target_reached"
    ALL_PIECES_CAPTURED = "all_pieces_captured"
    OPPONENT_IMMOBILIZED = "opponent_immobilized"
    TIME_EXPIRED = "time_expired"
    SCORE_TIE = "score_tie"


@dataclass(frozen=True)
class GameResult:
    winner: Optional[Side]
    reason: ResultReason
    scores: Dict[Side, int] = field(default_factory=dict)
    # the tile value that ended the game, for TARGET_REACHED
    tile: Optional[int] = None
    # the side left without moves, for immobilization
    stuck: Optional[Side] = None

    @property
    def draw(self) -> bool:
        return self.winner is None

    @property
    def message(self) -> str:
        white = self.scores.get(Side.WHITE, 0)
        black = self.scores.get(Side.BLACK, 0)
        if self.reason is ResultReason.TARGET_REACHED:
            return f"{self.winner.name} wins by reaching {self.tile}!"
        if self.reason is ResultReason.ALL_PIECES_CAPTURED:
            return f"{self.winner.name} wins (captured all pieces)!"
        if self.reason is ResultReason.OPPONENT_IMMOBILIZED:
            mine, theirs = self.scores[self.winner], self.scores[self.winner.opponent]
            return f"{self.winner.name} wins by score ({mine} vs {theirs}) - {self.stuck.value} has no moves."
        if self.reason is ResultReason.TIME_EXPIRED:
            mine, theirs = self.scores[self.winner], self.scores[self.winner.opponent]
            return f"{self.winner.name} wins on time by score ({mine} vs {theirs})."
        if self.stuck is None:
            return f"DRAW on time by score ({white} vs {black})."
        return f"DRAW by score ({white} vs {black}) - no moves left."

    def to_wire(self) -> dict:
        return {
            "winner": self.winner.value if self.winner else None,
            "draw": self.draw,
            "reason": self.reason.value,
            "message": self.message,
            "scores": {side.value: score for side, score in self.scores.items()},
            "tile": self.tile,
            "stuck": self.stuck.value if self.stuck else None,
        }

    @classmethod
    def from_wire(cls, raw: dict) -> "GameResult":
        """Rebuild a stored result; message and draw are derived, so they are not read back."""
        try:
            winner = Side(raw["winner"]) if raw.get("winner") is not None else None
            reason = ResultReason(raw["reason"])
            scores = {Side(side): int(score) for side, score in (raw.get("scores") or {}).items()}
            stuck = Side(raw["stuck"]) if raw.get("stuck") is not None else None
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed result {raw!r}") from exc
        if winner is None and reason is not ResultReason.SCORE_TIE:
            raise ValueError(f"Result {reason.value} needs a winner")
        if set(scores) != {Side.WHITE, Side.BLACK}:
            raise ValueError(f"Result needs scores for both sides, got {raw.get('scores')!r}")
        if reason is ResultReason.TARGET_REACHED and not isinstance(raw.get("tile"), int):
            raise ValueError("A target_reached result needs the winning tile")
        if reason is ResultReason.OPPONENT_IMMOBILIZED and stuck is None:
            raise ValueError("An opponent_immobilized result needs the stuck side")
        return cls(winner, reason, scores, tile=raw.get("tile"), stuck=stuck)


def material_scores(board: Board) -> Dict[Side, int]:
    """Sum of tile values owned by each side."""
    scores = {Side.WHITE: 0, Side.BLACK: 0}
    for _, cell in board.pieces():
        scores[cell.owner] += cell.value
    return scores


def evaluate(board: Board, side_just_moved: Side, target_tile: Optional[int] = None) -> Optional[GameResult]:
    """Check terminal conditions in priority order; None means play continues.

    The target check looks at every tile on the board, whichever side owns it.
    """
    target = target_tile if target_tile is not None else CONFIG.rules.target_tile
    scores = material_scores(board)

    tile = next((cell.value for _, cell in board.pieces() if cell.value >= target), None)
    if tile is not None:
        return GameResult(side_just_moved, ResultReason.TARGET_REACHED, scores, tile=tile)

    opponent = side_just_moved.opponent
    if next(board.pieces(opponent), None) is None:
        return GameResult(side_just_moved, ResultReason.ALL_PIECES_CAPTURED, scores)

    if not has_any_legal_move(board, opponent):
        return _compare_scores(scores, ResultReason.OPPONENT_IMMOBILIZED, stuck=opponent)

    return None


def evaluate_time_expiry(board: Board) -> GameResult:
    """Decide a game whose clock ran out on material alone."""
    return _compare_scores(material_scores(board), ResultReason.TIME_EXPIRED)


def _compare_scores(scores: Dict[Side, int], reason: ResultReason, stuck: Optional[Side] = None) -> GameResult:
    white, black = scores[Side.WHITE], scores[Side.BLACK]
    if white > black:
        return GameResult(Side.WHITE, reason, scores, stuck=stuck)
    if black > white:
        return GameResult(Side.BLACK, reason, scores, stuck=stuck)
    return GameResult(None, ResultReason.SCORE_TIE, scores, stuck=stuck)
