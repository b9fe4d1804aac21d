from typing import Any, Dict, List, Optional

from chess2048.config import CONFIG
from chess2048.core.board import Position
from chess2048.core.game import GameState, MoveApplied, MoveAttempt, attempt_move, expire_clock, new_game
from chess2048.core.mobility import legal_destinations
from chess2048.core.outcome import GameResult, material_scores
from chess2048.core.pieces import Side


class Game:
    """Owns one game's state between moves. Callers serialize access to it."""

    def __init__(self, target_tile: Optional[int] = None):
        self.target_tile = target_tile or CONFIG.rules.target_tile
        self.state = new_game()
        self.history = []

    def reset(self):
        self.state = new_game()
        self.history.clear()

    def load(self, payload: Dict[str, Any]):
        """Replace the current game with a stored snapshot."""
        self.state = GameState.from_payload(payload, target_tile=self.target_tile)
        self.history.clear()

    def make_move(self, src: Position, dst: Position) -> MoveAttempt:
        attempt = attempt_move(self.state, src, dst, target_tile=self.target_tile)
        if isinstance(attempt, MoveApplied):
            self.state = attempt.state
            self.history.append(attempt.action)
        return attempt

    def legal_destinations(self, src: Position) -> List[Position]:
        if self.state.is_over:
            return []
        return legal_destinations(self.state.board, src)

    def expire_clock(self) -> GameResult:
        self.state = expire_clock(self.state)
        return self.state.result

    @property
    def turn(self) -> Side:
        return self.state.side_to_move

    @property
    def result(self) -> Optional[GameResult]:
        return self.state.result

    def scores(self) -> Dict[Side, int]:
        return material_scores(self.state.board)

    def state_payload(self) -> Dict[str, Any]:
        return self.state.to_payload()
