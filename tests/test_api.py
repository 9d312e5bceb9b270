"""Tests for the FastAPI tic-tac-toe interface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.scores import MemoryScoreStore
from tictactoe.ui import app

from conftest import ManualScheduler


client = TestClient(app)


@pytest.fixture(autouse=True)
def quiet_backend(monkeypatch):
    scheduler = ManualScheduler()
    monkeypatch.setattr(ui, "SCHEDULER", scheduler)
    monkeypatch.setattr(ui, "SCORE_STORE", MemoryScoreStore())
    monkeypatch.setattr(ui, "AI_THINK_DELAY", 0.0)
    return scheduler


def new_game(**payload):
    response = client.post("/api/game", json=payload)
    assert response.status_code == 200
    return response.json()


def move(game_id, cell_index):
    response = client.post(f"/api/game/{game_id}/move", json={"cellIndex": cell_index})
    assert response.status_code == 200
    return response.json()


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "<title>Tic-Tac-Toe</title>" in response.text


def test_create_two_player_game():
    state = new_game(mode="pvp", playerXName="Ana", playerOName="")
    assert state["stage"] == "playing"
    assert state["mode"] == "pvp"
    assert state["labels"] == {"X": "Ana", "O": "Player O"}
    assert state["cells"] == [""] * 9
    assert state["currentPlayer"] == {"mark": "X", "name": "Ana"}
    assert state["inputEnabled"] is True
    assert state["aiPending"] is False


def test_first_move_and_ai_reply(quiet_backend):
    state = new_game(mode="ai")
    game_id = state["id"]
    assert state["labels"]["O"] == "Computer"

    state = move(game_id, 0)
    assert state["cells"][0] == "X"
    assert state["aiPending"] is True
    assert state["inputEnabled"] is False
    assert state["currentPlayer"]["mark"] == "O"

    quiet_backend.run_pending()

    follow_up = client.get(f"/api/game/{game_id}").json()
    assert follow_up["aiPending"] is False
    assert follow_up["cells"][4] == "O"
    assert follow_up["currentPlayer"]["mark"] == "X"
    assert follow_up["inputEnabled"] is True


def test_occupied_cell_is_ignored():
    game_id = new_game(mode="pvp")["id"]
    move(game_id, 0)

    state = move(game_id, 0)

    assert state["cells"][0] == "X"
    assert state["currentPlayer"]["mark"] == "O"


def test_out_of_range_cell_is_rejected():
    game_id = new_game(mode="pvp")["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"cellIndex": 9})
    assert response.status_code == 422


def test_unknown_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404
    assert client.post("/api/game/missing/reset").status_code == 404


def test_win_then_scores_reset():
    game_id = new_game(mode="pvp")["id"]
    for cell in (0, 3, 1, 4):
        move(game_id, cell)
    state = move(game_id, 2)

    assert state["stage"] == "concluded"
    assert state["winningLine"] == [0, 1, 2]
    assert state["result"] == {"outcome": "win", "winner": "X", "winnerName": "Player X"}
    assert state["scores"] == {"X": 1, "O": 0, "draw": 0}

    unconfirmed = client.post(f"/api/game/{game_id}/scores/reset", json={})
    assert unconfirmed.json()["scores"]["X"] == 1

    confirmed = client.post(f"/api/game/{game_id}/scores/reset", json={"confirm": True})
    assert confirmed.json()["scores"] == {"X": 0, "O": 0, "draw": 0}


def test_reset_clears_board_and_keeps_scores():
    game_id = new_game(mode="pvp")["id"]
    for cell in (0, 3, 1, 4, 2):
        move(game_id, cell)

    state = client.post(f"/api/game/{game_id}/reset").json()

    assert state["stage"] == "playing"
    assert state["cells"] == [""] * 9
    assert state["winningLine"] == []
    assert state["result"] is None
    assert state["scores"]["X"] == 1


def test_back_to_setup_and_start_again():
    game_id = new_game(mode="ai")["id"]
    move(game_id, 0)

    state = client.post(f"/api/game/{game_id}/setup", json={"confirm": True}).json()
    assert state["stage"] == "setup"
    assert state["cells"] == [""] * 9
    assert state["aiPending"] is False

    state = client.post(
        f"/api/game/{game_id}/start",
        json={"mode": "pvp", "playerXName": "Ana", "playerOName": "Bo"},
    ).json()
    assert state["stage"] == "playing"
    assert state["mode"] == "pvp"
    assert state["labels"] == {"X": "Ana", "O": "Bo"}


def test_bad_ai_delay_setting_falls_back_to_default(caplog):
    assert ui.read_ai_delay("0.25") == 0.25
    assert ui.read_ai_delay(None) == ui.DEFAULT_AI_DELAY
    assert ui.read_ai_delay("soon") == ui.DEFAULT_AI_DELAY
    assert ui.read_ai_delay("-1") == ui.DEFAULT_AI_DELAY
    assert "TICTACTOE_AI_DELAY" in caplog.text


def test_registry_drops_oldest_sessions(monkeypatch):
    monkeypatch.setattr(ui, "SESSIONS", {})
    monkeypatch.setattr(ui, "MAX_SESSIONS", 2)
    first = new_game(mode="ai")["id"]
    move(first, 0)
    second = new_game(mode="pvp")["id"]
    third = new_game(mode="pvp")["id"]

    assert list(ui.SESSIONS) == [second, third]
    assert client.get(f"/api/game/{first}").status_code == 404


def test_page_remembers_dismissed_result():
    page = client.get("/").text
    assert "modalEl.classList.toggle('hidden', modalDismissed)" in page
    assert "dismissModal()" in page
