"""Core rule engine: pieces, board, legality, resolution, mobility and win evaluation."""

from .board import Board, InvalidBoardError, Position, empty_board, initial_standard_setup
from .game import GameState, MoveApplied, MoveRejected, RejectReason, attempt_move, expire_clock, new_game
from .mobility import has_any_legal_move, legal_destinations
from .outcome import GameResult, ResultReason, evaluate, evaluate_time_expiry, material_scores
from .pieces import Cell, PieceKind, Side, classify
from .resolver import Action, apply_move
from .rules import MoveOutcome, classify_move
