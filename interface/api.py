"""FastAPI REST interface for the rule engine."""

import logging
import threading

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from chess2048.config import CONFIG
from chess2048.core.board import Position
from chess2048.core.game import MoveRejected
from chess2048.main import Game

logging.basicConfig(level=CONFIG.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")

# Shared game instance; every request holds the lock so moves apply one at a time.
game = Game()
_game_lock = threading.Lock()


class PositionModel(BaseModel):
    row: int
    col: int

    def to_position(self) -> Position:
        return Position(self.row, self.col)


class SnapshotRequest(BaseModel):
    # cells and players are checked by the engine so bad values surface as 400s
    board: List[List[Dict[str, Any]]]
    currentPlayer: str = "white"
    gameOver: bool = False
    result: Optional[Dict[str, Any]] = None
    lastAction: Optional[Dict[str, Any]] = None


class MoveRequest(BaseModel):
    src: PositionModel = Field(alias="from")
    dst: PositionModel = Field(alias="to")


def _board_payload() -> Dict[str, Any]:
    payload = game.state_payload()
    payload["is_game_over"] = game.result is not None
    payload["message"] = game.result.message if game.result else None
    return payload


@app.get("/board")
def get_board():
    with _game_lock:
        return _board_payload()


@app.post("/position")
def set_position(req: SnapshotRequest):
    with _game_lock:
        try:
            game.load(req.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid position: {e}")
        return _board_payload()


@app.post("/move")
def make_move(req: MoveRequest):
    with _game_lock:
        attempt = game.make_move(req.src.to_position(), req.dst.to_position())
        if isinstance(attempt, MoveRejected):
            raise HTTPException(
                status_code=400,
                detail={"reason": attempt.reason.value, "message": attempt.message},
            )
        payload = _board_payload()
        payload["action"] = attempt.action.to_wire()
        return payload


@app.post("/moves")
def list_moves(req: PositionModel):
    with _game_lock:
        destinations = game.legal_destinations(req.to_position())
        return {"from": req.model_dump(), "moves": [p.to_wire() for p in destinations]}


@app.post("/timeout")
def time_expired():
    with _game_lock:
        result = game.expire_clock()
        logger.info("Clock expired: %s", result.message)
        return _board_payload()


@app.post("/reset")
def reset_board():
    with _game_lock:
        game.reset()
        return _board_payload()
