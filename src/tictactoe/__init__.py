"""Tic-tac-toe package exposing game rules, the minimax AI, and the web application."""

from .ai import MinimaxAI
from .game import Board, Mark, Result, evaluate
from .session import GameSession, SessionConfig
from .ui import app

__all__ = [
    "Board",
    "GameSession",
    "Mark",
    "MinimaxAI",
    "Result",
    "SessionConfig",
    "app",
    "evaluate",
]
