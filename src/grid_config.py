# grid_config.py
# Default settings shared by the engine and the HTTP API.

# --- Board settings ---
DEFAULT_BOARD_SIZE = 4
MIN_BOARD_SIZE = 2
MAX_BOARD_SIZE = 16  # largest board the HTTP API will build or accept
DEFAULT_TARGET_VALUE = 2048  # For testing, can be set lower e.g. 32 or 64

# --- Tile spawning ---
INITIAL_TILES = 2
SPAWN_TWO_PROBABILITY = 0.9  # otherwise a 4 is spawned

# --- API settings ---
RATE_LIMIT = "100/minute"
