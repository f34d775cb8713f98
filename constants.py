# Schedule Constants
GAMES_PER_MATCH_OPTIONS = (5, 7, 11)
ROUND_OPTIONS = (3, 5, 7)
DEFAULT_GAMES_PER_MATCH = 7
DEFAULT_NUM_ROUNDS = 3

# Validation Constants
MAX_PLAYERS = 40
# Minimum round count -> the player count that must be exceeded
ROUND_PLAYER_THRESHOLDS = ((3, 11), (5, 19), (7, 31))

# Rating Constants
RATING_WINDOW = 5  # Number of recent sessions kept in previous5ratio
MAX_SESSION_RATING = 5.0
RATING_DECIMALS = 3

# Level -> seed history for newly created players
LEVEL_OPTIONS = ("A", "B", "C")
DEFAULT_LEVEL = "B"
LEVEL_SEED_RATIOS = {
    "A": [1.0] * RATING_WINDOW,
    "B": [2.5] * RATING_WINDOW,
    "C": [5.0] * RATING_WINDOW,
}

# User-facing Messages
CONFLICT_MESSAGE = (
    "Warning: Duplicate partners detected (highlighted in red). Please swap players."
)
SCHEDULE_EXISTS_NOTICE = (
    "The matches have already been generated. You need to reset the matches "
    "in order for this player to be included in the matches."
)
