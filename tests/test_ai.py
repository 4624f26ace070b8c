"""Tests for the XOArena AI strategies."""

import logging
import random

import pytest

from xoarena.ai import (
    AIPlayer,
    Difficulty,
    NoLegalMoveError,
    choose_move,
    find_winning_move,
    move_scores,
    search,
)
from xoarena.game import (
    Cell,
    Status,
    apply_move,
    board_from_cells,
    empty_board,
    evaluate,
    legal_moves,
    next_player,
)


class ScriptedChooser:
    """Stand-in random source that always picks the first candidate."""

    def __init__(self):
        self.seen = []

    def choice(self, seq):
        self.seen.append(list(seq))
        return seq[0]


def test_easy_is_reproducible_with_seeded_rng():
    board = board_from_cells("X___O____")
    picks = [
        choose_move(board, Cell.X, Difficulty.EASY, random.Random(7))
        for _ in range(3)
    ]
    expected = random.Random(7).choice(legal_moves(board))
    assert picks == [expected] * 3
    assert expected in legal_moves(board)


def test_easy_draws_from_legal_moves_only():
    chooser = ScriptedChooser()
    board = board_from_cells("XO_XO____")
    assert choose_move(board, Cell.X, "easy", chooser) == 2
    assert chooser.seen == [[2, 5, 6, 7, 8]]


def test_medium_prefers_win_over_block():
    # O completes the middle row at 5; X threatens 8 on the bottom row.
    board = board_from_cells("___OO_XX_")
    assert choose_move(board, Cell.O, Difficulty.MEDIUM) == 5


def test_medium_blocks_opponent():
    board = board_from_cells("XX__O____")
    assert choose_move(board, Cell.O, Difficulty.MEDIUM) == 2


def test_medium_picks_lowest_winning_index():
    # X wins at 2 (top row) and at 6 (left column)
    board = board_from_cells("XX_X_O_OO")
    assert find_winning_move(board, Cell.X) == 2
    assert choose_move(board, Cell.X, Difficulty.MEDIUM) == 2


def test_medium_takes_center():
    board = board_from_cells("X________")
    assert choose_move(board, Cell.O, Difficulty.MEDIUM) == 4


def test_medium_takes_random_corner():
    chooser = ScriptedChooser()
    board = board_from_cells("X___O___X")
    assert choose_move(board, Cell.O, Difficulty.MEDIUM, chooser) == 2
    assert chooser.seen == [[2, 6]]


def test_medium_falls_back_to_remaining_edges():
    # Center and corners are filled and neither side threatens a line.
    chooser = ScriptedChooser()
    board = board_from_cells("X_OOXXX_O")
    assert evaluate(board).status is Status.ONGOING
    assert choose_move(board, Cell.O, Difficulty.MEDIUM, chooser) == 1
    assert chooser.seen == [[1, 7]]


def test_search_logs_board(caplog):
    board = board_from_cells("XX_OO____")
    with caplog.at_level(logging.DEBUG, logger="xoarena.ai"):
        search(board, Cell.X)
    assert "X X .\nO O .\n. . ." in caplog.text


def test_find_winning_move_none():
    assert find_winning_move(empty_board(), Cell.X) is None


def test_hard_takes_immediate_win():
    board = board_from_cells("XX_OO____")
    result = search(board, Cell.X)
    assert result.move == 2
    assert result.score == 10
    assert choose_move(board, Cell.X, Difficulty.HARD) == 2


def test_hard_blocks_immediate_loss():
    board = board_from_cells("XX__O____")
    assert choose_move(board, Cell.O, Difficulty.HARD) == 2


def test_hard_prefers_fastest_win():
    # X can win now at 2, or set up slower wins elsewhere.
    board = board_from_cells("XX_O_O___")
    scores = move_scores(board, Cell.X)
    assert scores[2] == max(scores.values()) == 10
    assert search(board, Cell.X).move == 2


def test_hard_vs_hard_is_a_draw():
    board = empty_board()
    player = Cell.X
    while not evaluate(board).is_over:
        board = apply_move(board, choose_move(board, player, Difficulty.HARD), player)
        player = next_player(player)
    assert evaluate(board).status is Status.DRAW


def _never_loses(board, ai, to_move):
    outcome = evaluate(board)
    if outcome.is_over:
        assert outcome.winner is not next_player(ai), board
        return
    if to_move is ai:
        move = choose_move(board, ai, Difficulty.HARD)
        _never_loses(apply_move(board, move, ai), ai, next_player(ai))
        return
    for move in legal_moves(board):
        _never_loses(apply_move(board, move, to_move), ai, ai)


def test_hard_never_loses_as_second_player():
    _never_loses(empty_board(), Cell.O, Cell.X)


def test_hard_never_loses_as_first_player():
    _never_loses(empty_board(), Cell.X, Cell.X)


def _sample_boards():
    for first in (0, 1, 4):
        opened = apply_move(empty_board(), first, Cell.X)
        for reply in legal_moves(opened):
            yield apply_move(opened, reply, Cell.O)
    yield board_from_cells("X_O_X__O_")
    yield board_from_cells("XO__X___O")
    yield board_from_cells("_X_OX_O__")


@pytest.mark.parametrize("board", list(_sample_boards()))
def test_alpha_beta_matches_plain_minimax(board):
    pruned = search(board, Cell.X, prune=True)
    plain = search(board, Cell.X, prune=False)
    assert (pruned.move, pruned.score) == (plain.move, plain.score)
    assert move_scores(board, Cell.X) == move_scores(board, Cell.X, prune=False)
    assert pruned.nodes <= plain.nodes


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_full_board_has_no_move(difficulty):
    board = board_from_cells("XOXXOOOXX")
    with pytest.raises(NoLegalMoveError):
        choose_move(board, Cell.O, difficulty)


def test_unknown_difficulty_rejected():
    with pytest.raises(ValueError):
        choose_move(empty_board(), Cell.X, "impossible")


def test_choose_move_does_not_touch_board():
    board = board_from_cells("X___O____")
    snapshot = tuple(board)
    for difficulty in Difficulty:
        choose_move(board, Cell.X, difficulty, random.Random(1))
    assert board == snapshot


def test_ai_player_checks_turn():
    ai = AIPlayer(player=Cell.O, difficulty=Difficulty.HARD)
    with pytest.raises(ValueError):
        ai.choose(empty_board())
    assert ai.choose(board_from_cells("X________")) == 4


def test_ai_player_uses_injected_rng():
    chooser = ScriptedChooser()
    ai = AIPlayer(player=Cell.X, difficulty=Difficulty.EASY, rng=chooser)
    assert ai.choose(empty_board()) == 0
    assert chooser.seen == [list(range(9))]
