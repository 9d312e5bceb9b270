"""Full-depth minimax opponent for 3x3 tic-tac-toe."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .game import Board, Mark, Outcome, evaluate

logger = logging.getLogger(__name__)

WIN_SCORE = 10


@dataclass
class MinimaxAI:
    """AI player that searches the whole remaining game tree.

    Scores favour quick wins and slow losses: a win found ``depth`` plies below
    the candidate move is worth ``10 - depth``, a loss ``depth - 10``.
    """

    player: Mark = Mark.O

    @property
    def opponent(self) -> Mark:
        return self.player.opponent

    # ---- public API ----

    def find_best_move(self, board: Board) -> Optional[int]:
        best_move: Optional[int] = None
        best_score: Optional[int] = None
        for cell, score in self.score_moves(board):
            # Strict comparison keeps the lowest index among equal scores
            if best_score is None or score > best_score:
                best_move, best_score = cell, score
        if best_move is not None:
            logger.debug(
                "%s chooses cell %d (score %d)", self.player.value, best_move, best_score
            )
        return best_move

    def score_moves(self, board: Board) -> List[Tuple[int, int]]:
        """Minimax score for every empty cell, in index order."""
        work = board.copy()
        scored: List[Tuple[int, int]] = []
        for cell in work.empty_cells():
            work.cells[cell] = self.player
            score = self.minimax(work, 0, False)
            work.cells[cell] = None
            scored.append((cell, score))
        return scored

    # ---- core search ----

    def minimax(self, board: Board, depth: int, is_maximizing: bool) -> int:
        result = evaluate(board)
        if result.outcome is Outcome.WIN:
            if result.winner == self.player:
                return WIN_SCORE - depth
            return depth - WIN_SCORE
        if result.outcome is Outcome.DRAW:
            return 0

        cells = board.cells
        if is_maximizing:
            value = -WIN_SCORE - 1
            for i in range(len(cells)):
                if cells[i] is None:
                    cells[i] = self.player
                    value = max(value, self.minimax(board, depth + 1, False))
                    cells[i] = None
        else:
            value = WIN_SCORE + 1
            for i in range(len(cells)):
                if cells[i] is None:
                    cells[i] = self.opponent
                    value = min(value, self.minimax(board, depth + 1, True))
                    cells[i] = None
        return value
