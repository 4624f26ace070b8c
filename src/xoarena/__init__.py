"""XOArena package exposing the board engine, AI strategies, and the web application."""

from .ai import AIPlayer, Difficulty, NoLegalMoveError, choose_move
from .analysis import detect_pattern, heatmap
from .game import (
    Cell,
    IllegalMoveError,
    Outcome,
    Status,
    apply_move,
    evaluate,
    is_legal_move,
    legal_moves,
    next_player,
)
from .ui import app

__all__ = [
    "AIPlayer",
    "Cell",
    "Difficulty",
    "IllegalMoveError",
    "NoLegalMoveError",
    "Outcome",
    "Status",
    "app",
    "apply_move",
    "choose_move",
    "detect_pattern",
    "evaluate",
    "heatmap",
    "is_legal_move",
    "legal_moves",
    "next_player",
]
