"""FastAPI-powered browser front end for tic-tac-toe."""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from .game import BOARD_SIZE, Mark, Result
from .scheduler import Scheduler, ThreadingScheduler
from .scores import JsonScoreStore, ScoreLedger, ScoreStore
from .session import (
    DEFAULT_AI_DELAY,
    GameMode,
    GameSession,
    Presenter,
    SessionConfig,
    Stage,
)

logger = logging.getLogger(__name__)

MAX_SESSIONS = 256


def read_ai_delay(raw: Optional[str]) -> float:
    """Parse ``TICTACTOE_AI_DELAY``; bad or negative values fall back to the default."""
    if raw is None or not raw.strip():
        return DEFAULT_AI_DELAY
    try:
        delay = float(raw)
    except ValueError:
        logger.warning("Ignoring TICTACTOE_AI_DELAY=%r; using %s", raw, DEFAULT_AI_DELAY)
        return DEFAULT_AI_DELAY
    if delay < 0:
        logger.warning("Ignoring negative TICTACTOE_AI_DELAY=%r", raw)
        return DEFAULT_AI_DELAY
    return delay


AI_THINK_DELAY: float = read_ai_delay(os.environ.get("TICTACTOE_AI_DELAY"))
SCORES_PATH = os.environ.get("TICTACTOE_SCORES_PATH", "~/.tictactoe/scores.json")
SCORE_STORE: ScoreStore = JsonScoreStore(SCORES_PATH)
SCHEDULER: Scheduler = ThreadingScheduler()


@dataclass
class BoardView(Presenter):
    """Keeps whatever the session last rendered so it can be sent as JSON."""

    stage: Stage = Stage.SETUP
    labels: Dict[str, str] = field(default_factory=dict)
    cells: List[str] = field(default_factory=lambda: [""] * BOARD_SIZE)
    turn: Optional[Dict[str, str]] = None
    scores: Dict[str, int] = field(default_factory=lambda: ScoreLedger().as_dict())
    highlight: List[int] = field(default_factory=list)
    result: Optional[Dict[str, Optional[str]]] = None
    input_enabled: bool = False

    def render_stage(self, stage: Stage) -> None:
        self.stage = stage

    def render_labels(self, names: Dict[Mark, str]) -> None:
        self.labels = {mark.value: name for mark, name in names.items()}

    def clear_board(self) -> None:
        self.cells = [""] * BOARD_SIZE
        self.highlight = []
        self.result = None

    def render_cell(self, index: int, mark: Mark) -> None:
        self.cells[index] = mark.value

    def render_turn(self, mark: Mark, name: str) -> None:
        self.turn = {"mark": mark.value, "name": name}

    def render_scores(self, ledger: ScoreLedger) -> None:
        self.scores = ledger.as_dict()

    def highlight_line(self, line: tuple) -> None:
        self.highlight = list(line)

    def show_result(self, result: Result, winner_name: Optional[str]) -> None:
        self.result = {
            "outcome": result.outcome.value,
            "winner": result.winner.value if result.winner else None,
            "winnerName": winner_name,
        }

    def set_input_enabled(self, enabled: bool) -> None:
        self.input_enabled = enabled


@dataclass
class WebSession:
    """A game session paired with the view it renders into."""

    session: GameSession
    view: BoardView


SESSIONS: Dict[str, WebSession] = {}
app = FastAPI(title="Tic-Tac-Toe", description="Tic-tac-toe against a friend or a minimax AI")


class StartRequest(BaseModel):
    """Setup screen payload."""

    model_config = ConfigDict(populate_by_name=True)

    mode: GameMode = GameMode.AI
    player_x_name: str = Field(default="", alias="playerXName", max_length=40)
    player_o_name: str = Field(default="", alias="playerOName", max_length=40)

    def to_config(self) -> SessionConfig:
        return SessionConfig(
            mode=self.mode, name_x=self.player_x_name, name_o=self.player_o_name
        )


class MoveRequest(BaseModel):
    """Request payload for claiming a cell."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=BOARD_SIZE - 1)


class ConfirmRequest(BaseModel):
    confirm: bool = False


def _create_session() -> Tuple[str, WebSession]:
    view = BoardView()
    session = GameSession(
        store=SCORE_STORE,
        presenter=view,
        scheduler=SCHEDULER,
        ai_delay=AI_THINK_DELAY,
    )
    game_id = uuid.uuid4().hex
    entry = WebSession(session=session, view=view)
    SESSIONS[game_id] = entry
    logger.debug("Created session %s", game_id)
    _evict_old_sessions()
    return game_id, entry


def _evict_old_sessions() -> None:
    """Drop the oldest sessions once the registry is over ``MAX_SESSIONS``."""
    while len(SESSIONS) > MAX_SESSIONS:
        game_id = next(iter(SESSIONS))
        entry = SESSIONS.pop(game_id)
        # Cancels any AI reply still waiting on a timer
        entry.session.return_to_setup(confirmed=True)
        logger.debug("Evicted session %s", game_id)


def _get_session(game_id: str) -> WebSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _serialize_session(game_id: str, entry: WebSession) -> Dict[str, object]:
    session, view = entry.session, entry.view
    with session.lock:
        config = session.config
        return {
            "id": game_id,
            "stage": view.stage.value,
            "mode": config.mode.value if config else None,
            "labels": dict(view.labels),
            "cells": list(view.cells),
            "currentPlayer": view.turn,
            "scores": dict(view.scores),
            "winningLine": list(view.highlight),
            "result": dict(view.result) if view.result else None,
            "inputEnabled": view.input_enabled,
            "aiPending": session.ai_pending,
        }


@app.post("/api/game")
def create_game(request: StartRequest) -> Dict[str, object]:
    game_id, entry = _create_session()
    entry.session.start_session(request.to_config())
    return _serialize_session(game_id, entry)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    entry = _get_session(game_id)
    return _serialize_session(game_id, entry)


@app.post("/api/game/{game_id}/start")
def start_game(game_id: str, request: StartRequest) -> Dict[str, object]:
    entry = _get_session(game_id)
    entry.session.start_session(request.to_config())
    return _serialize_session(game_id, entry)


@app.post("/api/game/{game_id}/move")
def make_move(game_id: str, request: MoveRequest) -> Dict[str, object]:
    entry = _get_session(game_id)
    # Out-of-turn or occupied cells are stray clicks; the view simply stays put.
    entry.session.submit_move(request.cell_index)
    return _serialize_session(game_id, entry)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    entry = _get_session(game_id)
    entry.session.reset_session()
    return _serialize_session(game_id, entry)


@app.post("/api/game/{game_id}/scores/reset")
def reset_scores(game_id: str, request: ConfirmRequest) -> Dict[str, object]:
    entry = _get_session(game_id)
    entry.session.reset_scores(confirmed=request.confirm)
    return _serialize_session(game_id, entry)


@app.post("/api/game/{game_id}/setup")
def back_to_setup(game_id: str, request: ConfirmRequest) -> Dict[str, object]:
    entry = _get_session(game_id)
    entry.session.return_to_setup(confirmed=request.confirm)
    return _serialize_session(game_id, entry)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: 2rem;
        width: min(520px, 100%);
      }
      h1 {
        margin: 0 0 1.25rem;
        text-align: center;
        letter-spacing: 0.06em;
      }
      .hidden {
        display: none !important;
      }
      .mode-picker,
      .controls,
      .scores {
        display: flex;
        flex-wrap: wrap;
        gap: 0.75rem;
        justify-content: center;
        margin-bottom: 1rem;
      }
      .names {
        display: flex;
        flex-direction: column;
        gap: 0.6rem;
        margin-bottom: 1.25rem;
      }
      button,
      input[type='text'] {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        font-family: inherit;
      }
      button {
        cursor: pointer;
      }
      button.active {
        background: #3a66ff;
        color: white;
      }
      .status {
        text-align: center;
        font-weight: 600;
        margin-bottom: 1rem;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.5rem;
        margin: 0 auto 1.25rem;
        width: min(330px, 100%);
      }
      .cell {
        aspect-ratio: 1;
        font-size: 2.6rem;
        font-weight: 700;
        border-radius: 14px;
        background: #eef1ff;
      }
      .cell.x {
        color: #3a66ff;
      }
      .cell.o {
        color: #ff4d6d;
      }
      .cell.winner {
        background: #c7f5d9;
      }
      .board.disabled .cell {
        cursor: default;
      }
      .score {
        text-align: center;
        min-width: 6rem;
      }
      .score strong {
        display: block;
        font-size: 1.5rem;
      }
      .modal {
        position: fixed;
        inset: 0;
        background: rgba(10, 20, 40, 0.45);
        display: flex;
        align-items: center;
        justify-content: center;
      }
      .modal .card {
        background: white;
        border-radius: 18px;
        padding: 2rem;
        text-align: center;
        min-width: 260px;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic-Tac-Toe</h1>

      <section id=\"setup\">
        <div class=\"mode-picker\">
          <button id=\"modePvp\" type=\"button\">Two players</button>
          <button id=\"modeAi\" type=\"button\" class=\"active\">Against the computer</button>
        </div>
        <div class=\"names\">
          <input id=\"nameX\" type=\"text\" maxlength=\"40\" placeholder=\"Player X name\" />
          <input id=\"nameO\" type=\"text\" maxlength=\"40\" placeholder=\"Player O name\" class=\"hidden\" />
        </div>
        <div class=\"controls\">
          <button id=\"startButton\" type=\"button\">Start game</button>
        </div>
      </section>

      <section id=\"game\" class=\"hidden\">
        <div id=\"status\" class=\"status\"></div>
        <div id=\"board\" class=\"board\"></div>
        <div class=\"scores\">
          <div class=\"score\"><span id=\"labelX\">X</span><strong id=\"scoreX\">0</strong></div>
          <div class=\"score\"><span>Draws</span><strong id=\"scoreDraw\">0</strong></div>
          <div class=\"score\"><span id=\"labelO\">O</span><strong id=\"scoreO\">0</strong></div>
        </div>
        <div class=\"controls\">
          <button id=\"resetButton\" type=\"button\">New round</button>
          <button id=\"resetScoresButton\" type=\"button\">Clear scores</button>
          <button id=\"setupButton\" type=\"button\">Back to setup</button>
        </div>
      </section>
    </main>

    <div id=\"modal\" class=\"modal hidden\">
      <div class=\"card\">
        <h2 id=\"modalTitle\"></h2>
        <p id=\"modalMessage\"></p>
        <button id=\"modalButton\" type=\"button\">Play again</button>
      </div>
    </div>

    <script>
      const setupEl = document.getElementById('setup');
      const gameEl = document.getElementById('game');
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const modalEl = document.getElementById('modal');
      const nameXInput = document.getElementById('nameX');
      const nameOInput = document.getElementById('nameO');
      const modePvpButton = document.getElementById('modePvp');
      const modeAiButton = document.getElementById('modeAi');

      let mode = 'ai';
      let gameId = null;
      let gameState = null;
      let aiPollHandle = null;
      let isRequestPending = false;
      let modalDismissed = false;

      const cells = [];
      for (let i = 0; i < 9; i += 1) {
        const cell = document.createElement('button');
        cell.type = 'button';
        cell.classList.add('cell');
        cell.addEventListener('click', () => sendMove(i));
        boardEl.appendChild(cell);
        cells.push(cell);
      }

      function setMode(next) {
        mode = next;
        modePvpButton.classList.toggle('active', mode === 'pvp');
        modeAiButton.classList.toggle('active', mode === 'ai');
        nameOInput.classList.toggle('hidden', mode === 'ai');
      }

      async function post(path, body = {}) {
        const response = await fetch(path, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify(body),
        });
        if (!response.ok) {
          throw new Error('Request failed');
        }
        return response.json();
      }

      function stopAiPolling() {
        if (aiPollHandle !== null) {
          window.clearTimeout(aiPollHandle);
          aiPollHandle = null;
        }
      }

      function ensureAiPolling() {
        if (aiPollHandle !== null) return;
        aiPollHandle = window.setTimeout(pollAiState, 250);
      }

      async function pollAiState() {
        aiPollHandle = null;
        if (!gameId) return;
        try {
          const response = await fetch(`/api/game/${gameId}`);
          if (response.ok) {
            setState(await response.json());
          }
        } catch (error) {
          console.error('Polling failed', error);
        }
      }

      async function startGame() {
        if (isRequestPending) return;
        isRequestPending = true;
        modalDismissed = false;
        const body = {
          mode,
          playerXName: nameXInput.value.trim(),
          playerOName: mode === 'ai' ? '' : nameOInput.value.trim(),
        };
        try {
          const path = gameId ? `/api/game/${gameId}/start` : '/api/game';
          setState(await post(path, body));
        } catch (error) {
          statusEl.textContent = 'Unable to start the game.';
        } finally {
          isRequestPending = false;
        }
      }

      async function sendMove(cellIndex) {
        if (!gameState || !gameState.inputEnabled || isRequestPending) return;
        if (gameState.cells[cellIndex]) return;
        isRequestPending = true;
        try {
          setState(await post(`/api/game/${gameId}/move`, { cellIndex }));
        } catch (error) {
          console.error('Move failed', error);
        } finally {
          isRequestPending = false;
        }
      }

      function dismissModal() {
        modalDismissed = true;
        modalEl.classList.add('hidden');
      }

      async function resetRound() {
        modalDismissed = false;
        modalEl.classList.add('hidden');
        setState(await post(`/api/game/${gameId}/reset`));
      }

      async function resetScores() {
        const confirm = window.confirm('Clear the scoreboard?');
        setState(await post(`/api/game/${gameId}/scores/reset`, { confirm }));
      }

      async function backToSetup() {
        const confirm = window.confirm('Return to setup? The current game will be lost.');
        if (!confirm) return;
        modalEl.classList.add('hidden');
        setState(await post(`/api/game/${gameId}/setup`, { confirm }));
      }

      function render() {
        const inSetup = gameState.stage === 'setup';
        setupEl.classList.toggle('hidden', !inSetup);
        gameEl.classList.toggle('hidden', inSetup);

        gameState.cells.forEach((value, index) => {
          const cell = cells[index];
          cell.textContent = value;
          cell.classList.toggle('x', value === 'X');
          cell.classList.toggle('o', value === 'O');
          cell.classList.toggle('winner', gameState.winningLine.includes(index));
        });
        boardEl.classList.toggle('disabled', !gameState.inputEnabled);

        document.getElementById('labelX').textContent = gameState.labels.X || 'X';
        document.getElementById('labelO').textContent = gameState.labels.O || 'O';
        document.getElementById('scoreX').textContent = gameState.scores.X;
        document.getElementById('scoreO').textContent = gameState.scores.O;
        document.getElementById('scoreDraw').textContent = gameState.scores.draw;

        const turn = gameState.currentPlayer;
        if (gameState.stage === 'playing' && turn) {
          statusEl.textContent = gameState.aiPending
            ? `${turn.name} is thinking…`
            : `${turn.name} (${turn.mark}) to move`;
        } else {
          statusEl.textContent = '';
        }

        const result = gameState.result;
        if (result) {
          document.getElementById('modalTitle').textContent =
            result.outcome === 'draw' ? 'Draw!' : 'Victory!';
          document.getElementById('modalMessage').textContent =
            result.outcome === 'draw'
              ? 'Nobody won this time.'
              : `${result.winnerName} (${result.winner}) wins.`;
          modalEl.classList.toggle('hidden', modalDismissed);
        } else {
          modalEl.classList.add('hidden');
        }
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        render();
        if (gameState.aiPending) {
          ensureAiPolling();
        } else {
          stopAiPolling();
        }
      }

      modePvpButton.addEventListener('click', () => setMode('pvp'));
      modeAiButton.addEventListener('click', () => setMode('ai'));
      document.getElementById('startButton').addEventListener('click', startGame);
      document.getElementById('resetButton').addEventListener('click', resetRound);
      document.getElementById('modalButton').addEventListener('click', resetRound);
      document.getElementById('resetScoresButton').addEventListener('click', resetScores);
      document.getElementById('setupButton').addEventListener('click', backToSetup);
      modalEl.addEventListener('click', (event) => {
        if (event.target === modalEl) dismissModal();
      });
      document.addEventListener('keydown', (event) => {
        if (event.key === 'Escape') dismissModal();
      });
    </script>
  </body>
</html>
"""
