"""Unit tests for the board model and rules."""

from tictactoe.game import WINNING_LINES, Board, Mark, Outcome, Result, evaluate

X, O, _ = Mark.X, Mark.O, None


def test_apply_move_places_mark():
    board = Board()
    assert board.apply_move(4, X)
    assert board.cells[4] is X
    assert board.empty_cells() == [0, 1, 2, 3, 5, 6, 7, 8]


def test_apply_move_rejects_invalid_moves_without_mutation():
    board = Board()
    board.apply_move(0, X)
    before = board.cells.copy()

    assert not board.apply_move(0, O)
    assert not board.apply_move(-1, O)
    assert not board.apply_move(9, O)
    assert not board.apply_move("3", O)
    assert board.cells == before


def test_inactive_board_rejects_moves():
    board = Board()
    board.active = False
    assert not board.apply_move(0, X)
    assert board.cells[0] is None


def test_is_full_and_reset():
    board = Board(cells=[X, O, X, X, O, O, O, X, X], active=False)
    assert board.is_full()

    board.reset()
    assert not board.is_full()
    assert board.active
    assert board.mark_count() == 0


def test_copy_is_independent():
    board = Board()
    clone = board.copy()
    clone.apply_move(0, X)
    assert board.cells[0] is None


def test_every_line_wins_for_its_mark():
    for line in WINNING_LINES:
        for mark in (X, O):
            cells = [None] * 9
            for i in line:
                cells[i] = mark
            assert evaluate(cells) == Result.win(mark, line)


def test_first_line_in_canonical_order_is_reported():
    # X owns both the top row and the left column
    board = Board(cells=[X, X, X, X, O, O, X, O, O])
    assert evaluate(board).line == (0, 1, 2)

    # Left column comes before the main diagonal
    board = Board(cells=[X, O, O, X, X, _, X, O, X])
    assert evaluate(board).line == (0, 3, 6)


def test_full_board_without_line_is_draw():
    result = evaluate([X, O, X, X, O, O, O, X, X])
    assert result.outcome is Outcome.DRAW
    assert result.winner is None
    assert result.is_terminal


def test_open_board_without_line_is_ongoing():
    assert evaluate(Board()) == Result.ongoing()
    result = evaluate([X, O, X, _, O, _, _, X, _])
    assert result.outcome is Outcome.ONGOING
    assert not result.is_terminal


def test_win_on_last_cell_beats_draw():
    result = evaluate([X, O, X, O, X, O, O, X, X])
    assert result == Result.win(X, (0, 4, 8))


def test_evaluate_does_not_touch_board():
    board = Board(cells=[X, X, X, _, O, O, _, _, _])
    evaluate(board)
    assert board.cells == [X, X, X, _, O, O, _, _, _]
    assert board.active
