"""AI opponents for XOArena: random, rule-based and exhaustive alpha-beta minimax."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, Union

from .game import (
    CENTER,
    CORNERS,
    Board,
    Cell,
    Player,
    Status,
    apply_move,
    evaluate,
    format_board,
    legal_moves,
    next_player,
    side_to_move,
)

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class NoLegalMoveError(RuntimeError):
    """Raised when an AI move is requested on a board with no empty cell."""


class Chooser(Protocol):
    """Anything with ``random.Random.choice``'s signature."""

    def choice(self, seq: Sequence[int]) -> int: ...


WIN_SCORE = 10


@dataclass(frozen=True)
class SearchResult:
    move: int
    score: float
    nodes: int


# ---- public API ----


def choose_move(
    board: Board,
    ai_player: Player,
    difficulty: Union[Difficulty, str],
    rng: Optional[Chooser] = None,
) -> int:
    """Pick a move for ``ai_player``; the board itself is left untouched."""
    if not legal_moves(board):
        raise NoLegalMoveError("No valid moves available")
    difficulty = Difficulty(difficulty)
    chooser: Chooser = random if rng is None else rng  # type: ignore[assignment]

    if difficulty is Difficulty.EASY:
        return easy_move(board, chooser)
    if difficulty is Difficulty.MEDIUM:
        return medium_move(board, ai_player, chooser)
    if difficulty is Difficulty.HARD:
        return search(board, ai_player).move
    raise ValueError(f"Unsupported difficulty {difficulty!r}")


def easy_move(board: Board, rng: Chooser) -> int:
    return rng.choice(legal_moves(board))


def medium_move(board: Board, ai_player: Player, rng: Chooser) -> int:
    """Win, block, center, random corner, then anything."""
    win = find_winning_move(board, ai_player)
    if win is not None:
        return win
    block = find_winning_move(board, next_player(ai_player))
    if block is not None:
        return block
    if board[CENTER] is Cell.EMPTY:
        return CENTER
    corners = [pos for pos in CORNERS if board[pos] is Cell.EMPTY]
    if corners:
        return rng.choice(corners)
    return easy_move(board, rng)


def find_winning_move(board: Board, player: Player) -> Optional[int]:
    """Lowest empty index that completes a line for ``player``."""
    for pos in legal_moves(board):
        outcome = evaluate(apply_move(board, pos, player))
        if outcome.status is Status.WON and outcome.winner is player:
            return pos
    return None


def search(board: Board, ai_player: Player, prune: bool = True) -> SearchResult:
    """Exhaustive minimax from ``board`` with ``ai_player`` to move.

    Ties between root moves go to the lowest index: the incumbent is only
    replaced on a strictly better score.
    """
    searcher = _Search(ai_player=ai_player, prune=prune)
    scored = searcher.score_root(board)
    if not scored:
        raise NoLegalMoveError("No valid moves available")

    best_move, best_score = scored[0]
    for move, score in scored[1:]:
        if score > best_score:
            best_move, best_score = move, score

    logger.debug(
        "search %s prune=%s -> move %d score %s (%d nodes)\n%s",
        ai_player.value,
        prune,
        best_move,
        best_score,
        searcher.nodes,
        format_board(board),
    )
    return SearchResult(move=best_move, score=best_score, nodes=searcher.nodes)


def move_scores(
    board: Board, ai_player: Player, prune: bool = True
) -> Dict[int, float]:
    """Minimax score of every legal move for ``ai_player``."""
    return dict(_Search(ai_player=ai_player, prune=prune).score_root(board))


# ---- core search ----


@dataclass
class _Search:
    ai_player: Player
    prune: bool = True
    nodes: int = 0

    @property
    def opponent(self) -> Player:
        return next_player(self.ai_player)

    def score_root(self, board: Board) -> List[Tuple[int, float]]:
        # Every root move gets a full window so its score is exact.
        scored = []
        for move in legal_moves(board):
            child = apply_move(board, move, self.ai_player)
            scored.append((move, self.minimax(child, 0, False, -math.inf, math.inf)))
        return scored

    def minimax(
        self,
        board: Board,
        depth: int,
        maximizing: bool,
        alpha: float,
        beta: float,
    ) -> float:
        self.nodes += 1

        outcome = evaluate(board)
        if outcome.status is Status.WON:
            if outcome.winner is self.ai_player:
                return WIN_SCORE - depth
            return depth - WIN_SCORE
        if outcome.status is Status.DRAW:
            return 0

        if maximizing:
            value = -math.inf
            for move in legal_moves(board):
                child = apply_move(board, move, self.ai_player)
                score = self.minimax(child, depth + 1, False, alpha, beta)
                value = max(value, score)
                if self.prune:
                    alpha = max(alpha, value)
                    if beta <= alpha:
                        break
        else:
            value = math.inf
            for move in legal_moves(board):
                child = apply_move(board, move, self.opponent)
                score = self.minimax(child, depth + 1, True, alpha, beta)
                value = min(value, score)
                if self.prune:
                    beta = min(beta, value)
                    if beta <= alpha:
                        break
        return value


# ---- player wrapper ----


@dataclass
class AIPlayer:
    """AI seat in a game session.

      - AIPlayer(player=Cell.O, difficulty=Difficulty.HARD)
      - choose(board) -> cell index
    """

    player: Player
    difficulty: Difficulty = Difficulty.MEDIUM
    rng: Optional[Chooser] = field(default=None, repr=False)

    def choose(self, board: Board) -> int:
        if side_to_move(board) is not self.player:
            raise ValueError("It is not this AI player's turn")
        return choose_move(board, self.player, self.difficulty, self.rng)
