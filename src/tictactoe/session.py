"""Turn sequencing, scoring and the hooks a front end renders from."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional

from .ai import MinimaxAI
from .game import Board, Mark, Outcome, Result, evaluate
from .scheduler import ScheduledCall, Scheduler, ThreadingScheduler
from .scores import MemoryScoreStore, ScoreLedger, ScoreStore

logger = logging.getLogger(__name__)

DEFAULT_AI_DELAY = 0.5
AI_PLAYER_NAME = "Computer"


class Stage(str, Enum):
    SETUP = "setup"
    PLAYING = "playing"
    CONCLUDED = "concluded"


class GameMode(str, Enum):
    PVP = "pvp"
    AI = "ai"


def default_name(mark: Mark) -> str:
    return f"Player {mark.value}"


@dataclass(frozen=True)
class SessionConfig:
    """Choices made on the setup screen; fixed for the life of a session."""

    mode: GameMode = GameMode.PVP
    name_x: str = ""
    name_o: str = ""

    @property
    def ai_mark(self) -> Optional[Mark]:
        # The computer always takes the second mark
        return Mark.O if self.mode is GameMode.AI else None

    @property
    def names(self) -> Dict[Mark, str]:
        return {Mark.X: self.name_x, Mark.O: self.name_o}

    def name_for(self, mark: Mark) -> str:
        return self.names[mark]

    def normalized(self) -> "SessionConfig":
        """Fill blank names with generated labels."""
        mode = GameMode(self.mode)
        name_x = (self.name_x or "").strip() or default_name(Mark.X)
        name_o = (self.name_o or "").strip()
        if not name_o:
            name_o = AI_PLAYER_NAME if mode is GameMode.AI else default_name(Mark.O)
        return replace(self, mode=mode, name_x=name_x, name_o=name_o)


class Presenter:
    """Render hooks the session drives. Every hook is a no-op by default."""

    def render_stage(self, stage: Stage) -> None:
        pass

    def render_labels(self, names: Dict[Mark, str]) -> None:
        pass

    def clear_board(self) -> None:
        pass

    def render_cell(self, index: int, mark: Mark) -> None:
        pass

    def render_turn(self, mark: Mark, name: str) -> None:
        pass

    def render_scores(self, ledger: ScoreLedger) -> None:
        pass

    def highlight_line(self, line: tuple) -> None:
        pass

    def show_result(self, result: Result, winner_name: Optional[str]) -> None:
        pass

    def set_input_enabled(self, enabled: bool) -> None:
        pass


class GameSession:
    """
    Owns the live board, the turn and the score ledger for one game window.

    Every state change happens under ``lock``; the computer's reply runs from
    a scheduler callback and checks the generation token it was scheduled
    with, so a reset or return to setup makes any pending reply a no-op.
    """

    def __init__(
        self,
        store: Optional[ScoreStore] = None,
        presenter: Optional[Presenter] = None,
        scheduler: Optional[Scheduler] = None,
        ai_delay: float = DEFAULT_AI_DELAY,
    ) -> None:
        self.store: ScoreStore = store if store is not None else MemoryScoreStore()
        self.presenter = presenter if presenter is not None else Presenter()
        self.scheduler: Scheduler = (
            scheduler if scheduler is not None else ThreadingScheduler()
        )
        self.ai_delay = ai_delay

        self.lock = threading.RLock()
        self._board = Board()
        self._current = Mark.X
        self._stage = Stage.SETUP
        self._config: Optional[SessionConfig] = None
        self._ai: Optional[MinimaxAI] = None
        self._result = Result.ongoing()
        self._generation = 0
        self._pending: Optional[ScheduledCall] = None
        self._scores = self._load_scores()

        self.presenter.render_stage(self._stage)
        self.presenter.render_scores(self.scores)

    # ---- read-only views ----

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def board(self) -> Board:
        return self._board.copy()

    @property
    def current_mark(self) -> Mark:
        return self._current

    @property
    def scores(self) -> ScoreLedger:
        return self._scores.model_copy()

    @property
    def config(self) -> Optional[SessionConfig]:
        return self._config

    @property
    def result(self) -> Result:
        return self._result

    @property
    def ai_pending(self) -> bool:
        return self._pending is not None

    @property
    def is_ai_turn(self) -> bool:
        return self._ai is not None and self._current is self._ai.player

    # ---- inbound events ----

    def start_session(self, config: SessionConfig) -> bool:
        with self.lock:
            if self._stage is not Stage.SETUP:
                logger.debug("Ignoring start request outside setup (%s)", self._stage.value)
                return False
            config = config.normalized()
            self._config = config
            self._ai = MinimaxAI(player=config.ai_mark) if config.ai_mark else None
            self._clear_board()
            self._stage = Stage.PLAYING
            logger.info(
                "Session started: %s (X) vs %s (O), mode=%s",
                config.name_x,
                config.name_o,
                config.mode.value,
            )
            self.presenter.render_stage(self._stage)
            self.presenter.render_labels(config.names)
            self.presenter.render_scores(self.scores)
            self._begin_turns(config)
            return True

    def submit_move(self, cell_index: int) -> bool:
        """Human move. Stray input (wrong stage, AI's turn, bad cell) is ignored."""
        with self.lock:
            config = self._config
            if config is None or self._stage is not Stage.PLAYING:
                return False
            if self.ai_pending or self.is_ai_turn:
                return False
            return self._play(cell_index, config)

    def request_ai_move(self) -> bool:
        with self.lock:
            ai, config = self._ai, self._config
            if ai is None or config is None or self._stage is not Stage.PLAYING:
                return False
            if self._current is not ai.player:
                return False
            self._cancel_pending()
            move = ai.find_best_move(self._board.copy())
            if move is None or not self._play(move, config):
                return False
            if self._stage is Stage.PLAYING:
                self.presenter.set_input_enabled(True)
            return True

    def reset_session(self) -> bool:
        with self.lock:
            config = self._config
            if config is None or self._stage is Stage.SETUP:
                return False
            self._clear_board()
            self._stage = Stage.PLAYING
            logger.info("Board reset")
            self.presenter.render_stage(self._stage)
            self._begin_turns(config)
            return True

    def reset_scores(self, confirmed: bool = False) -> bool:
        if not confirmed:
            return False
        with self.lock:
            self._scores.clear()
            self._save_scores()
            logger.info("Scores cleared")
            self.presenter.render_scores(self.scores)
            return True

    def return_to_setup(self, confirmed: bool = False) -> bool:
        if not confirmed:
            return False
        with self.lock:
            self._clear_board()
            self._stage = Stage.SETUP
            self._config = None
            self._ai = None
            logger.info("Returned to setup")
            self.presenter.set_input_enabled(False)
            self.presenter.render_stage(self._stage)
            return True

    # ---- turn flow ----

    def _begin_turns(self, config: SessionConfig) -> None:
        self.presenter.render_turn(self._current, config.name_for(self._current))
        if self.is_ai_turn:
            self._schedule_ai_move()
        else:
            self.presenter.set_input_enabled(True)

    def _play(self, cell_index: int, config: SessionConfig) -> bool:
        mark = self._current
        if not self._board.apply_move(cell_index, mark):
            return False
        self.presenter.render_cell(cell_index, mark)
        self._settle(config)
        return True

    def _settle(self, config: SessionConfig) -> None:
        result = evaluate(self._board)
        if result.is_terminal:
            self._conclude(result, config)
            return
        self._current = self._current.opponent
        self.presenter.render_turn(self._current, config.name_for(self._current))
        if self.is_ai_turn:
            self._schedule_ai_move()

    def _conclude(self, result: Result, config: SessionConfig) -> None:
        self._result = result
        self._board.active = False
        self._stage = Stage.CONCLUDED
        self.presenter.set_input_enabled(False)
        self.presenter.render_stage(self._stage)

        winner_name: Optional[str] = None
        if result.outcome is Outcome.WIN and result.winner is not None:
            winner_name = config.name_for(result.winner)
            self.presenter.highlight_line(result.line)
            logger.info("%s (%s) wins on %s", winner_name, result.winner.value, result.line)
        else:
            logger.info("Game drawn")

        # Other sessions may share the store; count on top of what it holds now.
        self._refresh_scores()
        self._scores.record(result)
        self._save_scores()
        self.presenter.render_scores(self.scores)
        self.presenter.show_result(result, winner_name)

    def _schedule_ai_move(self) -> None:
        self.presenter.set_input_enabled(False)
        generation = self._generation
        self._pending = self.scheduler.call_later(
            self.ai_delay, lambda: self._run_scheduled_ai_move(generation)
        )

    def _run_scheduled_ai_move(self, generation: int) -> None:
        with self.lock:
            if generation != self._generation:
                logger.debug("Dropping AI move scheduled for an earlier board")
                return
            self._pending = None
            self.request_ai_move()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _clear_board(self) -> None:
        self._cancel_pending()
        self._generation += 1
        self._board.reset()
        self._current = Mark.X
        self._result = Result.ongoing()
        self.presenter.clear_board()

    # ---- persistence ----
    # ---- persistence ----

    def _load_scores(self) -> ScoreLedger:
        try:
            ledger = self.store.load_scores()
        except Exception:
            logger.warning("Could not load scores; starting from zero", exc_info=True)
            return ScoreLedger()
        return ledger if ledger is not None else ScoreLedger()

    def _refresh_scores(self) -> None:
        try:
            ledger = self.store.load_scores()
        except Exception:
            logger.warning("Could not reload scores; using the in-memory copy", exc_info=True)
            return
        if ledger is not None:
            self._scores = ledger

    def _save_scores(self) -> None:
        try:
            self.store.save_scores(self._scores)
        except Exception:
            logger.warning("Could not save scores; keeping them in memory", exc_info=True)
