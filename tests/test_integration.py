"""
Integration test suite for the Chess 2048 rule engine.

Tests components working together end-to-end:
- Scripted games through the Game holder (merge, promotion, game over)
- Deterministic self-play with invariant checks after every move
- Configuration loading from TOML
- FastAPI REST API integration
"""

import logging

import pytest

from chess2048.config import CONFIG, Config, apply_env_overrides
from chess2048.core.board import Board, Position, empty_board
from chess2048.core.game import MoveApplied, MoveRejected, RejectReason
from chess2048.core.outcome import ResultReason
from chess2048.core.pieces import Cell, PieceKind, Side, classify
from chess2048.core.rules import MoveOutcome, classify_move
from chess2048.main import Game


def P(row, col):
    return Position(row, col)


# ════════════════════════════════════════════════════════════════════════════
#  SCRIPTED GAMES
# ════════════════════════════════════════════════════════════════════════════


class TestScriptedGames:
    def test_opening_merge(self):
        game = Game()
        assert isinstance(game.make_move(P(6, 4), P(4, 4)), MoveApplied)
        assert isinstance(game.make_move(P(1, 3), P(3, 3)), MoveApplied)

        attempt = game.make_move(P(4, 4), P(3, 3))
        assert attempt.action.kind is MoveOutcome.MERGE
        assert game.state.board.at(P(3, 3)) == Cell.piece(Side.WHITE, 4)
        assert game.state.board.at(P(3, 3)).kind is PieceKind.KNIGHT
        assert game.turn is Side.BLACK
        assert game.scores() == {Side.WHITE: 138, Side.BLACK: 134}
        assert len(game.history) == 3

    def test_turns_alternate(self):
        game = Game()
        game.make_move(P(6, 0), P(5, 0))
        attempt = game.make_move(P(6, 1), P(5, 1))
        assert isinstance(attempt, MoveRejected)
        assert attempt.reason is RejectReason.WRONG_SIDE
        assert game.turn is Side.BLACK

    def test_promotion_through_game(self):
        game = Game()
        board = empty_board()
        board.set(P(1, 0), Cell.piece(Side.WHITE, 2))
        board.set(P(3, 7), Cell.piece(Side.BLACK, 2))
        game.load({"board": board.to_wire(), "currentPlayer": "white"})

        attempt = game.make_move(P(1, 0), P(0, 0))
        assert attempt.action.promoted
        assert game.state.board.at(P(0, 0)) == Cell.piece(Side.WHITE, 32)
        assert game.result is None
        assert game.turn is Side.BLACK

    def test_blocked_pawn_ends_game_on_score(self):
        game = Game()
        board = empty_board()
        board.set(P(6, 4), Cell.piece(Side.WHITE, 2))
        board.set(P(5, 4), Cell.piece(Side.BLACK, 2))
        board.set(P(7, 0), Cell.piece(Side.WHITE, 16))
        game.load({"board": board.to_wire(), "currentPlayer": "white"})

        attempt = game.make_move(P(7, 0), P(7, 1))
        assert attempt.result.reason is ResultReason.OPPONENT_IMMOBILIZED
        assert attempt.result.winner is Side.WHITE
        assert game.legal_destinations(P(7, 1)) == []

    def test_reset_clears_history(self):
        game = Game()
        game.make_move(P(6, 4), P(4, 4))
        game.reset()
        assert game.history == []
        assert game.turn is Side.WHITE
        assert game.result is None

    def test_clock_expiry(self):
        game = Game()
        game.make_move(P(6, 4), P(4, 4))
        game.make_move(P(1, 3), P(3, 3))
        game.make_move(P(4, 4), P(3, 3))  # white merge, black down a pawn
        result = game.expire_clock()
        assert result.winner is Side.WHITE
        assert result.reason is ResultReason.TIME_EXPIRED
        assert game.make_move(P(1, 0), P(2, 0)).reason is RejectReason.GAME_OVER

    def test_custom_target_tile(self):
        game = Game(target_tile=64)
        board = empty_board()
        board.set(P(4, 4), Cell.piece(Side.WHITE, 32))
        board.set(P(4, 0), Cell.piece(Side.BLACK, 32))
        board.set(P(0, 0), Cell.piece(Side.BLACK, 2))
        game.load({"board": board.to_wire(), "currentPlayer": "white"})
        attempt = game.make_move(P(4, 4), P(4, 0))
        assert attempt.result.reason is ResultReason.TARGET_REACHED
        assert attempt.result.message == "WHITE wins by reaching 64!"


# ════════════════════════════════════════════════════════════════════════════
#  DETERMINISTIC SELF-PLAY
# ════════════════════════════════════════════════════════════════════════════


def _first_legal_move(game):
    for src, _cell in game.state.board.pieces(game.turn):
        destinations = game.legal_destinations(src)
        if destinations:
            return src, destinations[-1]
    return None


class TestSelfPlay:
    def test_invariants_hold_every_move(self):
        game = Game()
        for _ in range(200):
            if game.result is not None:
                break
            move = _first_legal_move(game)
            assert move is not None, "side to move has no move but game is not over"
            before = game.state.board.copy()
            mover = game.turn
            outcome = classify_move(before, mover, *move)
            attempt = game.make_move(*move)
            assert isinstance(attempt, MoveApplied)
            assert attempt.action.kind is outcome

            board = game.state.board
            src, dst = move
            assert board.at(src).is_empty
            moved = before.at(src)
            if outcome is MoveOutcome.MERGE:
                assert board.at(dst) == Cell.piece(mover, moved.value * 2)
            elif not attempt.action.promoted:
                assert board.at(dst) == moved
            for _pos, cell in board.pieces():
                assert cell.kind is classify(cell.value)

    def test_self_play_is_deterministic(self):
        def play():
            game = Game()
            for _ in range(60):
                if game.result is not None:
                    break
                game.make_move(*_first_legal_move(game))
            return game.state_payload()

        assert play() == play()


# ════════════════════════════════════════════════════════════════════════════
#  CONFIGURATION
# ════════════════════════════════════════════════════════════════════════════


class TestConfig:
    def test_defaults(self):
        cfg = Config()
        assert cfg.rules.target_tile == 512
        assert cfg.rules.promotion_value == 32
        assert cfg.log_level == "INFO"

    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = Config.load_from_toml(str(tmp_path / "nope.toml"))
        assert cfg == Config()

    def test_load_from_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            'log_level = "debug"\n'
            "[rules]\n"
            "target_tile = 1024\n"
            "unknown_rule = 1\n"
            "[ui]\n"
            "engine_name = \"Merge Chess\"\n"
        )
        cfg = Config.load_from_toml(str(path))
        assert cfg.rules.target_tile == 1024
        assert cfg.rules.promotion_value == 32
        assert cfg.ui.engine_name == "Merge Chess"
        assert cfg.log_level == "DEBUG"
        assert not hasattr(cfg.rules, "unknown_rule")

    def test_global_config_drives_default_target(self, monkeypatch):
        monkeypatch.setattr(CONFIG.rules, "target_tile", 64)
        game = Game()
        assert game.target_tile == 64

    def test_invalid_rule_values_fall_back_with_warning(self, tmp_path, caplog):
        path = tmp_path / "config.toml"
        path.write_text("[rules]\ntarget_tile = \"big\"\npromotion_value = 16\n")
        with caplog.at_level(logging.WARNING, logger="chess2048.config"):
            cfg = Config.load_from_toml(str(path))
        assert cfg.rules.target_tile == 512
        assert cfg.rules.promotion_value == 32
        assert "target_tile" in caplog.text
        assert "promotion_value" in caplog.text

    def test_promotion_value_must_stay_a_queen(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[rules]\ntarget_tile = 0\npromotion_value = 64\n")
        cfg = Config.load_from_toml(str(path))
        assert cfg.rules.target_tile == 512
        assert cfg.rules.promotion_value == 64

    def test_bool_rule_values_rejected(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[rules]\ntarget_tile = true\npromotion_value = true\n")
        cfg = Config.load_from_toml(str(path))
        assert cfg.rules == Config().rules

    def test_env_overrides_target_tile(self, monkeypatch):
        monkeypatch.setenv("CHESS2048_TARGET_TILE", "1024")
        cfg = apply_env_overrides(Config())
        assert cfg.rules.target_tile == 1024

    def test_env_override_not_an_integer(self, monkeypatch, caplog):
        monkeypatch.setenv("CHESS2048_TARGET_TILE", "abc")
        with caplog.at_level(logging.WARNING, logger="chess2048.config"):
            cfg = apply_env_overrides(Config())
        assert cfg.rules.target_tile == 512
        assert "CHESS2048_TARGET_TILE" in caplog.text

    def test_env_override_not_positive(self, monkeypatch, caplog):
        monkeypatch.setenv("CHESS2048_TARGET_TILE", "-8")
        with caplog.at_level(logging.WARNING, logger="chess2048.config"):
            cfg = apply_env_overrides(Config())
        assert cfg.rules.target_tile == 512
        assert "non-positive" in caplog.text

    def test_env_unset_leaves_config_alone(self, monkeypatch):
        monkeypatch.delenv("CHESS2048_TARGET_TILE", raising=False)
        cfg = Config()
        cfg.rules.target_tile = 64
        assert apply_env_overrides(cfg).rules.target_tile == 64


# ════════════════════════════════════════════════════════════════════════════
#  REST API INTEGRATION
# ════════════════════════════════════════════════════════════════════════════


class TestAPIIntegration:
    """Tests FastAPI REST API endpoints."""

    @pytest.fixture(autouse=True)
    def setup_client(self):
        from fastapi.testclient import TestClient
        from interface.api import app, game

        self.client = TestClient(app)
        # Reset state before each test
        game.reset()

    def test_get_board_initial(self):
        response = self.client.get("/board")
        assert response.status_code == 200
        data = response.json()
        assert data["currentPlayer"] == "white"
        assert data["is_game_over"] is False
        assert data["gameOver"] is False
        assert data["result"] is None
        assert data["board"][7][3] == {"player": "white", "value": 32, "type": "queen"}
        assert data["scores"] == {"white": 136, "black": 136}

    def test_post_move_valid(self):
        response = self.client.post("/move", json={"from": {"row": 6, "col": 4}, "to": {"row": 4, "col": 4}})
        assert response.status_code == 200
        data = response.json()
        assert data["currentPlayer"] == "black"
        assert data["board"][4][4]["player"] == "white"
        assert data["action"]["type"] == "move"
        assert data["action"]["cells"] == [{"row": 6, "col": 4}, {"row": 4, "col": 4}]

    def test_post_move_illegal(self):
        response = self.client.post("/move", json={"from": {"row": 6, "col": 4}, "to": {"row": 3, "col": 4}})
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "illegal_move"

    def test_post_move_wrong_side(self):
        response = self.client.post("/move", json={"from": {"row": 1, "col": 4}, "to": {"row": 2, "col": 4}})
        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "It is not your turn."

    def test_post_move_out_of_bounds(self):
        response = self.client.post("/move", json={"from": {"row": 6, "col": 4}, "to": {"row": 9, "col": 4}})
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "out_of_bounds"

    def test_list_moves(self):
        response = self.client.post("/moves", json={"row": 7, "col": 1})
        assert response.status_code == 200
        assert response.json()["moves"] == [{"row": 5, "col": 0}, {"row": 5, "col": 2}]

    def test_set_position_valid(self):
        board = empty_board()
        board.set(P(1, 0), Cell.piece(Side.WHITE, 2))
        board.set(P(3, 7), Cell.piece(Side.BLACK, 8))
        response = self.client.post("/position", json={"board": board.to_wire(), "currentPlayer": "white"})
        assert response.status_code == 200

        response = self.client.post("/move", json={"from": {"row": 1, "col": 0}, "to": {"row": 0, "col": 0}})
        data = response.json()
        assert data["action"]["promoted"] is True
        assert data["board"][0][0] == {"player": "white", "value": 32, "type": "queen"}
        assert Board.from_wire(data["board"]).at(P(0, 0)).kind is PieceKind.QUEEN

    def test_set_position_invalid(self):
        wire = empty_board().to_wire()[:7]
        response = self.client.post("/position", json={"board": wire, "currentPlayer": "white"})
        assert response.status_code == 400

    def test_set_position_string_value_rejected(self):
        wire = empty_board().to_wire()
        wire[4][4] = {"player": "white", "value": "2", "type": "pawn"}
        response = self.client.post("/position", json={"board": wire, "currentPlayer": "white"})
        assert response.status_code == 400
        assert "invalid value" in response.json()["detail"]

    def test_set_position_unknown_player_rejected(self):
        wire = empty_board().to_wire()
        wire[4][4] = {"player": "red", "value": 2, "type": "pawn"}
        response = self.client.post("/position", json={"board": wire, "currentPlayer": "white"})
        assert response.status_code == 400
        assert "unknown player" in response.json()["detail"]

    def test_set_position_unknown_current_player_rejected(self):
        response = self.client.post(
            "/position", json={"board": empty_board().to_wire(), "currentPlayer": "green"}
        )
        assert response.status_code == 400

    def test_timeout_snapshot_reloads_with_same_result(self):
        board = empty_board()
        board.set(P(4, 4), Cell.piece(Side.WHITE, 2))
        board.set(P(3, 4), Cell.piece(Side.BLACK, 8))
        self.client.post("/position", json={"board": board.to_wire(), "currentPlayer": "black"})
        expired = self.client.post("/timeout").json()
        assert expired["result"]["reason"] == "time_expired"

        snapshot = {k: expired[k] for k in ("board", "currentPlayer", "gameOver", "result", "lastAction")}
        reloaded = self.client.post("/position", json=snapshot).json()
        assert reloaded["result"] == expired["result"]
        assert reloaded["message"] == "BLACK wins on time by score (8 vs 2)."

    def test_set_position_finished_game(self):
        board = empty_board()
        board.set(P(3, 3), Cell.piece(Side.BLACK, 512))
        board.set(P(6, 6), Cell.piece(Side.WHITE, 2))
        response = self.client.post(
            "/position", json={"board": board.to_wire(), "currentPlayer": "black", "gameOver": True}
        )
        data = response.json()
        assert data["is_game_over"] is True
        assert data["result"]["winner"] == "black"
        assert data["message"] == "BLACK wins by reaching 512!"

    def test_timeout_then_move_rejected(self):
        response = self.client.post("/timeout")
        assert response.status_code == 200
        data = response.json()
        assert data["result"]["draw"] is True
        assert data["result"]["reason"] == "score_tie"

        response = self.client.post("/move", json={"from": {"row": 6, "col": 4}, "to": {"row": 4, "col": 4}})
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "game_over"

    def test_reset_board(self):
        self.client.post("/move", json={"from": {"row": 6, "col": 4}, "to": {"row": 4, "col": 4}})
        response = self.client.post("/reset")
        assert response.status_code == 200
        assert response.json()["currentPlayer"] == "white"
        assert response.json()["board"][6][4]["player"] == "white"

    def test_full_api_game_flow(self):
        r = self.client.get("/board")
        assert r.json()["currentPlayer"] == "white"

        self.client.post("/move", json={"from": {"row": 6, "col": 4}, "to": {"row": 4, "col": 4}})
        self.client.post("/move", json={"from": {"row": 1, "col": 3}, "to": {"row": 3, "col": 3}})
        r = self.client.post("/move", json={"from": {"row": 4, "col": 4}, "to": {"row": 3, "col": 3}})
        assert r.json()["action"]["type"] == "merge"
        assert r.json()["board"][3][3] == {"player": "white", "value": 4, "type": "knight"}

        r = self.client.get("/board")
        assert r.json()["scores"] == {"white": 138, "black": 134}
