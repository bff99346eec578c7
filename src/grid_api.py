import logging
from typing import Annotated, List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, field_validator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import grid_config
import grid_engine

logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="Tile Merge Engine API",
    description="A stateless API over the tile merge engine. "\
                "Keep your game state (board, score, target_value) on the client side.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

MESSAGE_NOT_MOVED = "Move did not change the board."
MESSAGE_WON = "Congratulations! You reached the target tile!"
MESSAGE_LOST = "Game over. No more moves."

# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game."""
    size: int = Field(
        default=grid_config.DEFAULT_BOARD_SIZE,
        gt=1, # Board size must be at least 2x2
        le=grid_config.MAX_BOARD_SIZE,
        description="Size of the N x N game board (e.g., 4 for a 4x4 board)."
    )
    target_value: int = Field(
        default=grid_config.DEFAULT_TARGET_VALUE,
        gt=0,
        description="The tile value to reach for winning the game (e.g., 2048)."
    )

# Rows and columns are both capped so an oversized board is rejected during validation.
BoardRow = Annotated[List[int], Field(max_length=grid_config.MAX_BOARD_SIZE)]

class GameStateRequest(BaseModel):
    """A game state held by the client."""
    board: List[BoardRow] = Field(
        ...,
        max_length=grid_config.MAX_BOARD_SIZE,
        description="The N x N game board, represented as a list of lists."
    )
    score: int = Field(..., ge=0, description="Current score of the game.")
    target_value: int = Field(..., gt=0, description="The target tile for this game instance.")

class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    board: List[List[int]] = Field(..., description="The N x N game board, represented as a list of lists.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    status: grid_engine.GameStatus = Field(
        ...,
        description="Current status of the game (IN_PROGRESS, WON, LOST)."
    )
    target_value: int = Field(..., gt=0, description="The tile value required to win this game instance.")
    board_size: int = Field(..., gt=0, description="The dimension N of the N x N board.")
    available_moves: List[grid_engine.Direction] = Field(
        default_factory=list,
        description="Directions that would change the board from this state."
    )

class MoveRequestData(GameStateRequest):
    """Data required to make a move."""
    direction: grid_engine.Direction = Field(
        ...,
        description="Direction of the move (left, right, up, down), case-insensitive."
    )

    @field_validator("direction", mode="before")
    @classmethod
    def resolve_direction(cls, value):
        # InvalidDirection is a ValueError, so pydantic reports it as a 422.
        return grid_engine.parse_direction(value)

class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and whether the board changed."""
    moved: bool = Field(
        ...,
        description="True if the move changed the board, False otherwise."
    )
    score_gained: int = Field(..., ge=0, description="Score added by this move.")
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g. if the move changed nothing or the game ended."
    )


def _state_data(engine: grid_engine.GridEngine) -> dict:
    return dict(
        board=engine.get_grid(),
        score=engine.get_score(),
        status=engine.status(),
        target_value=engine.target_value,
        board_size=engine.size,
        available_moves=engine.available_moves(),
    )


def _engine_from_request(request_data: GameStateRequest) -> grid_engine.GridEngine:
    try:
        return grid_engine.GridEngine.from_grid(
            request_data.board, request_data.score, request_data.target_value
        )
    except grid_engine.InvalidConfig as e:
        raise HTTPException(status_code=400, detail=f"Invalid game state in request: {str(e)}")

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New Game")
@limiter.limit(grid_config.RATE_LIMIT)
async def start_new_game(request: Request, settings: NewGameSettings):
    """
    Initializes a new game based on the provided settings (size and target_value).

    - **size**: Dimension of the N x N board (e.g., 4 for 4x4). Default is 4.
    - **target_value**: Tile value to reach to win (e.g., 2048). Default is 2048.

    Returns the initial game state, including the board with two random tiles,
    score (0) and status (IN_PROGRESS unless the target is already on the board).
    """
    try:
        engine = grid_engine.GridEngine(settings.size, settings.target_value)
    except grid_engine.EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error in /game/new: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")

    return GameStateData(**_state_data(engine))


@app.post("/game/status", response_model=GameStateData, summary="Evaluate a Game State")
@limiter.limit(grid_config.RATE_LIMIT)
async def game_status(request: Request, request_data: GameStateRequest):
    """
    Reports the status and available moves of a client-held game state without moving.
    """
    engine = _engine_from_request(request_data)
    return GameStateData(**_state_data(engine))


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(grid_config.RATE_LIMIT)
async def make_move(request: Request, request_data: MoveRequestData):
    """
    Processes a player's move in the game.

    Requires the current `board` state, `score`, the `direction` of the move,
    and the `target_value` for this game instance.

    The API will:
    1. Slide and merge the tiles towards the direction.
    2. If the move changed the board, add a new random tile (2 or 4).
    3. Determine the new game status (IN_PROGRESS, WON, LOST).

    Returns the updated game state, whether the move changed the board, and an optional message.
    """
    engine = _engine_from_request(request_data)

    try:
        result = engine.move(request_data.direction)
    except grid_engine.EngineError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.error(f"Unexpected error in /game/move: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")

    message_for_client: Optional[str] = None
    if not result.moved:
        message_for_client = MESSAGE_NOT_MOVED
    if result.status == grid_engine.GameStatus.WON:
        message_for_client = MESSAGE_WON
    elif result.status == grid_engine.GameStatus.LOST:
        message_for_client = MESSAGE_LOST

    return MoveResponseData(
        **_state_data(engine),
        moved=result.moved,
        score_gained=result.score_gained,
        message=message_for_client,
    )
