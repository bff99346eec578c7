# grid_engine.py
# This file holds the core logic of the tile merge puzzle: pure board helpers
# and the GridEngine that owns the state of a single game.

import logging
import random
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

import grid_config

logger = logging.getLogger(__name__)

Grid = List[List[int]]


# --- Errors ---

class EngineError(ValueError):
    """Base class for every error raised by the engine."""


class InvalidConfig(EngineError):
    """Raised when an engine is built from an unusable size, target value or grid."""


class InvalidDirection(EngineError):
    """Raised when a move is requested in a direction other than the four accepted ones."""


# --- Enums and results ---

class GameStatus(str, Enum):
    """Represents the current progress state of the game."""
    IN_PROGRESS = "IN_PROGRESS"
    WON = "WON"
    LOST = "LOST"


class Direction(str, Enum):
    """Represents the possible move directions."""
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


# Clockwise quarter turns that reduce each direction to a slide to the left.
_ROTATIONS = {
    Direction.LEFT: 0,
    Direction.RIGHT: 2,
    Direction.UP: 3,
    Direction.DOWN: 1,
}


class MoveResult(NamedTuple):
    """Outcome of a single call to GridEngine.move."""
    grid: Grid
    score: int
    moved: bool
    status: GameStatus
    score_gained: int


# --- Board Helper Functions ---

def get_board_size(board: Grid) -> int:
    """
    Gets the size (N) of an N x N board.
    Args:
        board (Grid): The game board.
    Returns:
        int: The dimension of the board.
    Raises:
        InvalidConfig: If the board is not square or empty.
    """
    if not board or not all(len(row) == len(board) for row in board):
        raise InvalidConfig("Board must be a non-empty square matrix.")
    return len(board)


def copy_board(board: Grid) -> Grid:
    return [list(row) for row in board]


def get_empty_cells(board: Grid) -> List[Tuple[int, int]]:
    """
    Get coordinates of empty (0-value) cells in the given board.
    Args:
        board (Grid): The board to check.
    Returns:
        List[Tuple[int, int]]: List of (row, col) tuples for empty cells, in row-major order.
    """
    n = get_board_size(board)
    empty_cells = []
    for row in range(n):
        for col in range(n):
            if board[row][col] == 0:
                empty_cells.append((row, col))
    return empty_cells


def is_tile_value(value: int) -> bool:
    """True for a power of two that is at least 2."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value >= 2 and value & (value - 1) == 0


def contains_value(board: Grid, value: int) -> bool:
    return any(value in row for row in board)


# --- Board Transformations ---

def rotate_clockwise(board: Grid) -> Grid:
    """
    Rotates a board a quarter turn clockwise: new[c][N-1-r] = old[r][c].
    Args:
        board (Grid): The board to rotate.
    Returns:
        Grid: A new rotated board.
    """
    n = get_board_size(board)
    rotated = [[0] * n for _ in range(n)]
    for r in range(n):
        for c in range(n):
            rotated[c][n - 1 - r] = board[r][c]
    return rotated


def rotate(board: Grid, turns: int) -> Grid:
    """Applies rotate_clockwise `turns` times (mod 4) to a copy of the board."""
    rotated = copy_board(board)
    for _ in range(turns % 4):
        rotated = rotate_clockwise(rotated)
    return rotated


# --- Line Manipulation (Core Move Logic) ---

def slide_and_merge_line(line: List[int]) -> Tuple[List[int], int]:
    """
    Slides a single line to the left and merges equal neighbours once.

    Zeros are compacted out first. The line is then scanned left to right and
    each pair of equal neighbours is replaced by its sum; the scan moves past
    the merged value, so a tile takes part in at most one merge per move
    ([2, 2, 2, 2] becomes [4, 4, 0, 0]). The result is padded with zeros on
    the right back to the original length.
    Args:
        line (List[int]): The line to process.
    Returns:
        Tuple[List[int], int]: The processed line and the score gained from merges.
    """
    n = len(line)
    tiles = [value for value in line if value != 0]
    score_gained = 0

    i = 0
    while i < len(tiles) - 1:
        if tiles[i] == tiles[i + 1]:
            tiles[i] *= 2
            score_gained += tiles[i]
            del tiles[i + 1]
        i += 1

    tiles += [0] * (n - len(tiles))
    return tiles, score_gained


def slide_and_merge_grid(board: Grid) -> Tuple[Grid, int]:
    """
    Applies slide_and_merge_line to every row of a board.
    Args:
        board (Grid): The board to process.
    Returns:
        Tuple[Grid, int]: The processed board and the total score gained.
    """
    processed_board = []
    total_score_gained = 0
    for row in board:
        new_row, score_from_row = slide_and_merge_line(row)
        processed_board.append(new_row)
        total_score_gained += score_from_row
    return processed_board, total_score_gained


def slide_board(board: Grid, direction: Direction) -> Tuple[Grid, int]:
    """
    Slides a whole board in the given direction without spawning a tile.

    The board is rotated so the direction becomes "left", every row is slid
    and merged, and the inverse rotation restores the original axes.
    Args:
        board (Grid): The board to slide.
        direction (Direction): The direction to slide towards.
    Returns:
        Tuple[Grid, int]: The new board and the score gained.
    """
    turns = _ROTATIONS[direction]
    processed_board, score_gained = slide_and_merge_grid(rotate(board, turns))
    return rotate(processed_board, 4 - turns), score_gained


# --- Game State Checks ---

def has_adjacent_equal(board: Grid) -> bool:
    """
    Checks whether two horizontally or vertically adjacent tiles hold the same value.
    Empty cells never count as a possible merge.
    """
    n = get_board_size(board)
    for r in range(n):
        for c in range(n):
            value = board[r][c]
            if value == 0:
                continue
            if c + 1 < n and board[r][c + 1] == value:
                return True
            if r + 1 < n and board[r + 1][c] == value:
                return True
    return False


def determine_game_status(board: Grid, target_value: int = grid_config.DEFAULT_TARGET_VALUE) -> GameStatus:
    """
    Determines the current progress state of the game based on the board.
    Args:
        board (Grid): The current game board.
        target_value (int): The tile value that signifies a win.
    Returns:
        GameStatus: WON if any tile equals target_value, LOST if the board is
                    full and nothing can merge, IN_PROGRESS otherwise.
    """
    if contains_value(board, target_value):
        return GameStatus.WON
    if not get_empty_cells(board) and not has_adjacent_equal(board):
        return GameStatus.LOST
    return GameStatus.IN_PROGRESS


def parse_direction(direction) -> Direction:
    """
    Resolves a Direction member or its string value ("left", "UP", ...) to a Direction.
    Raises:
        InvalidDirection: For anything else.
    """
    if isinstance(direction, Direction):
        return direction
    if isinstance(direction, str):
        try:
            return Direction(direction.strip().lower())
        except ValueError:
            pass
    raise InvalidDirection(
        f"Invalid direction {direction!r}; expected one of: "
        + ", ".join(d.value for d in Direction)
    )


def _validate_settings(size, target_value) -> None:
    if isinstance(size, bool) or not isinstance(size, int) or size < grid_config.MIN_BOARD_SIZE:
        raise InvalidConfig(f"Board size must be an integer >= {grid_config.MIN_BOARD_SIZE}, got {size!r}.")
    if isinstance(target_value, bool) or not isinstance(target_value, int) or target_value <= 0:
        raise InvalidConfig(f"Target value must be a positive integer, got {target_value!r}.")


# --- Engine ---

class GridEngine:
    """
    Owns the grid and score of one game and applies moves to them.

    The engine is not thread-safe; callers that share one instance between
    threads must serialize access. Reaching WON or LOST does not block further
    moves, deciding that is up to the caller.

    Args:
        size (int): Dimension of the N x N grid, at least 2.
        target_value (int): Tile value that wins the game.
        rng: Source of randomness for spawning, anything with choice() and
             random(). Defaults to a fresh random.Random().
    Raises:
        InvalidConfig: If size or target_value are out of range.
    """

    def __init__(self, size: int = grid_config.DEFAULT_BOARD_SIZE,
                 target_value: int = grid_config.DEFAULT_TARGET_VALUE,
                 rng: Optional[random.Random] = None) -> None:
        _validate_settings(size, target_value)
        self._setup([[0] * size for _ in range(size)], 0, target_value, rng)

        for _ in range(grid_config.INITIAL_TILES):
            self.spawn_tile()
        logger.debug("New %dx%d game, target %d", size, size, target_value)

    @classmethod
    def from_grid(cls, grid: Grid, score: int = 0,
                  target_value: int = grid_config.DEFAULT_TARGET_VALUE,
                  rng: Optional[random.Random] = None) -> "GridEngine":
        """
        Rebuilds an engine from a previously observed grid and score. No tiles are spawned.
        Raises:
            InvalidConfig: If the grid is not square, too small, holds a value
                           that is neither 0 nor a tile, or the score is negative.
        """
        size = get_board_size(grid)
        _validate_settings(size, target_value)
        for row in grid:
            for value in row:
                if value != 0 and not is_tile_value(value):
                    raise InvalidConfig(f"Cell value {value!r} is neither empty (0) nor a power of two >= 2.")
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise InvalidConfig(f"Score must be a non-negative integer, got {score!r}.")

        engine = object.__new__(cls)
        engine._setup(copy_board(grid), score, target_value, rng)
        return engine

    def _setup(self, grid: Grid, score: int, target_value: int,
               rng: Optional[random.Random]) -> None:
        """Assigns the state shared by both constructors; inputs are already validated."""
        self.size = len(grid)
        self.target_value = target_value
        self._rng = rng if rng is not None else random.Random()
        self._grid: Grid = grid
        self._score = score

    # -- accessors ------------------------------------------------------------

    def get_grid(self) -> Grid:
        """Returns a copy of the grid; changing it does not affect the engine."""
        return copy_board(self._grid)

    def get_score(self) -> int:
        return self._score

    def get_empty_cells(self) -> List[Tuple[int, int]]:
        return get_empty_cells(self._grid)

    def max_tile(self) -> int:
        return max(max(row) for row in self._grid)

    # -- spawning -------------------------------------------------------------

    def spawn_tile(self) -> Optional[Tuple[int, int]]:
        """
        Places a 2 (90%) or a 4 (10%) on a uniformly chosen empty cell.
        Returns:
            Optional[Tuple[int, int]]: The cell that received the tile, or None
                                       if the grid was full (a no-op).
        """
        empty_cells = get_empty_cells(self._grid)
        if not empty_cells:
            return None

        row, col = self._rng.choice(empty_cells)
        value = 2 if self._rng.random() < grid_config.SPAWN_TWO_PROBABILITY else 4
        self._grid[row][col] = value
        logger.debug("Spawned %d at (%d, %d)", value, row, col)
        return row, col

    # -- moves ----------------------------------------------------------------

    def move(self, direction) -> MoveResult:
        """
        Slides and merges every tile towards `direction`.

        If the grid changed, the score gained from merges is added and one new
        tile is spawned. Otherwise grid and score stay as they were and no
        tile is spawned.
        Args:
            direction (Direction | str): LEFT, RIGHT, UP or DOWN.
        Returns:
            MoveResult: The grid snapshot, score, whether the move changed the
                        grid, the game status and the score gained.
        Raises:
            InvalidDirection: If direction is not one of the four directions.
        """
        direction = parse_direction(direction)
        new_grid, score_gained = slide_board(self._grid, direction)
        moved = new_grid != self._grid

        if moved:
            self._grid = new_grid
            self._score += score_gained
            self.spawn_tile()

        status = self.status()
        logger.debug("Move %s: moved=%s gained=%d score=%d",
                     direction.value, moved, score_gained, self._score)
        if moved and status != GameStatus.IN_PROGRESS:
            logger.info("Game reached %s with score %d", status.value, self._score)

        return MoveResult(
            grid=self.get_grid(),
            score=self._score,
            moved=moved,
            status=status,
            score_gained=score_gained,
        )

    def can_move(self, direction) -> bool:
        """Dry run: True if moving towards `direction` would change the grid."""
        new_grid, _ = slide_board(self._grid, parse_direction(direction))
        return new_grid != self._grid

    def available_moves(self) -> List[Direction]:
        return [direction for direction in Direction if self.can_move(direction)]

    # -- status ---------------------------------------------------------------

    def merge_possible(self) -> bool:
        return has_adjacent_equal(self._grid)

    def status(self) -> GameStatus:
        return determine_game_status(self._grid, self.target_value)
