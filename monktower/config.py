"""Fixed game parameters."""

BOARD_SIZE = 8
VIEW_RANGE = 5

LEVEL_COUNT = 20

MAX_WEAPONS = 4
MAX_COLLECTABLES = 4