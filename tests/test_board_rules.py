"""
Tests for the pure board helpers: slide-and-merge, rotation and status checks.
"""

import pytest

from grid_engine import (
    Direction,
    GameStatus,
    InvalidConfig,
    InvalidDirection,
    determine_game_status,
    get_board_size,
    get_empty_cells,
    has_adjacent_equal,
    is_tile_value,
    parse_direction,
    rotate,
    rotate_clockwise,
    slide_and_merge_line,
    slide_board,
)


class TestSlideAndMergeLine:
    """Single line reduced towards index 0."""

    def test_pairs_merge_and_score(self):
        assert slide_and_merge_line([2, 2, 4, 4]) == ([4, 8, 0, 0], 12)

    def test_merged_tile_does_not_merge_again(self):
        assert slide_and_merge_line([2, 2, 2, 2]) == ([4, 4, 0, 0], 8)
        assert slide_and_merge_line([4, 4, 8, 0]) == ([8, 8, 0, 0], 8)
        assert slide_and_merge_line([8, 4, 4, 0]) == ([8, 8, 0, 0], 8)

    def test_odd_run_merges_leading_pair(self):
        assert slide_and_merge_line([2, 2, 2, 0]) == ([4, 2, 0, 0], 4)

    def test_gaps_are_compacted_before_merging(self):
        assert slide_and_merge_line([0, 2, 0, 2]) == ([4, 0, 0, 0], 4)
        assert slide_and_merge_line([0, 0, 0, 8]) == ([8, 0, 0, 0], 0)

    def test_no_change(self):
        assert slide_and_merge_line([2, 4, 8, 16]) == ([2, 4, 8, 16], 0)
        assert slide_and_merge_line([0, 0, 0, 0]) == ([0, 0, 0, 0], 0)

    def test_input_not_mutated(self):
        line = [2, 2, 0, 4]
        slide_and_merge_line(line)
        assert line == [2, 2, 0, 4]


class TestRotation:
    """The single clockwise rotation primitive."""

    def test_quarter_turn_clockwise(self):
        assert rotate_clockwise([[1, 2], [3, 4]]) == [[3, 1], [4, 2]]

    def test_four_turns_are_identity(self):
        board = [[1, 2, 3], [4, 5, 6], [7, 8, 9]]
        assert rotate(board, 4) == board

    @pytest.mark.parametrize("turns", [0, 1, 2, 3])
    def test_inverse_restores_orientation(self, turns):
        board = [[1, 2, 3], [4, 5, 6], [7, 8, 9]]
        assert rotate(rotate(board, turns), 4 - turns) == board

    def test_rotate_returns_copy(self):
        board = [[1, 2], [3, 4]]
        rotated = rotate(board, 0)
        rotated[0][0] = 99
        assert board[0][0] == 1


class TestSlideBoard:
    """Each direction reduced to a slide to the left and restored."""

    BOARD = [
        [2, 0, 0, 2],
        [0, 4, 0, 0],
        [0, 4, 0, 0],
        [8, 0, 0, 8],
    ]

    def test_left(self):
        assert slide_board(self.BOARD, Direction.LEFT) == ([
            [4, 0, 0, 0],
            [4, 0, 0, 0],
            [4, 0, 0, 0],
            [16, 0, 0, 0],
        ], 20)

    def test_right(self):
        assert slide_board(self.BOARD, Direction.RIGHT) == ([
            [0, 0, 0, 4],
            [0, 0, 0, 4],
            [0, 0, 0, 4],
            [0, 0, 0, 16],
        ], 20)

    def test_up(self):
        assert slide_board(self.BOARD, Direction.UP) == ([
            [2, 8, 0, 2],
            [8, 0, 0, 8],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
        ], 8)

    def test_down(self):
        assert slide_board(self.BOARD, Direction.DOWN) == ([
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [2, 0, 0, 2],
            [8, 8, 0, 8],
        ], 8)

    def test_merge_priority_is_nearest_the_edge(self):
        column = [
            [2, 0, 0, 0],
            [2, 0, 0, 0],
            [2, 0, 0, 0],
            [0, 0, 0, 0],
        ]
        down, _ = slide_board(column, Direction.DOWN)
        up, _ = slide_board(column, Direction.UP)
        assert [row[0] for row in down] == [0, 0, 2, 4]
        assert [row[0] for row in up] == [4, 2, 0, 0]

    def test_settled_board_is_unchanged(self):
        board = [[2, 4], [4, 2]]
        for direction in Direction:
            assert slide_board(board, direction) == (board, 0)


class TestStatusChecks:

    def test_adjacent_equal_ignores_empty_pairs(self, empty_board):
        assert not has_adjacent_equal(empty_board)
        empty_board[3][3] = 2
        assert not has_adjacent_equal(empty_board)

    def test_adjacent_equal_horizontal_and_vertical(self, empty_board):
        empty_board[1][1] = empty_board[1][2] = 8
        assert has_adjacent_equal(empty_board)
        board = [[2, 4], [2, 8]]
        assert has_adjacent_equal(board)

    def test_checkerboard_is_lost(self, checkerboard):
        assert determine_game_status(checkerboard) == GameStatus.LOST

    def test_target_wins_even_with_empty_cells(self, empty_board):
        empty_board[2][1] = 2048
        assert determine_game_status(empty_board) == GameStatus.WON

    def test_target_wins_on_a_locked_board(self, checkerboard):
        checkerboard[0][0] = 2048
        assert determine_game_status(checkerboard) == GameStatus.WON

    def test_custom_target(self, empty_board):
        empty_board[0][0] = 32
        assert determine_game_status(empty_board, target_value=32) == GameStatus.WON
        assert determine_game_status(empty_board) == GameStatus.IN_PROGRESS

    def test_full_board_with_merge_is_in_progress(self, checkerboard):
        checkerboard[0][1] = 2
        assert determine_game_status(checkerboard) == GameStatus.IN_PROGRESS


class TestHelpers:

    def test_board_size_requires_square(self):
        assert get_board_size([[0, 0], [0, 0]]) == 2
        with pytest.raises(InvalidConfig):
            get_board_size([[0, 0], [0]])
        with pytest.raises(InvalidConfig):
            get_board_size([])

    def test_empty_cells_row_major(self):
        assert get_empty_cells([[2, 0], [0, 4]]) == [(0, 1), (1, 0)]

    @pytest.mark.parametrize("value, expected", [
        (2, True), (4, True), (2048, True), (0, False), (1, False),
        (3, False), (6, False), (-2, False), (True, False), (2.0, False),
    ])
    def test_is_tile_value(self, value, expected):
        assert is_tile_value(value) is expected

    @pytest.mark.parametrize("raw, expected", [
        (Direction.UP, Direction.UP),
        ("left", Direction.LEFT),
        ("RIGHT", Direction.RIGHT),
        (" down ", Direction.DOWN),
    ])
    def test_parse_direction(self, raw, expected):
        assert parse_direction(raw) is expected

    @pytest.mark.parametrize("raw", ["diagonal", "", None, 3, "ArrowLeft"])
    def test_parse_direction_rejects_unknown(self, raw):
        with pytest.raises(InvalidDirection):
            parse_direction(raw)
