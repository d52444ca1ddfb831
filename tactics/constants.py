"""
Constants for the blunder discovery pipeline.
"""

# Blunder thresholds
MAX_CENTIPAWNS = 300  # Minimum evaluation drop (cp) for a move to count as a blunder
MAX_MATE_IN = 5  # Mate horizon in plies
MATE_BLUNDER_SEVERITY = 10000  # Severity assigned when the mover walks into a short mate

# Engine search settings
MOVE_TIME_MS = 1000
MAX_DEPTH = 25  # Depth cap, only sent to the engine when asked for

# Plies below this are treated as opening book and never evaluated
MIN_MOVES = 12

# Database retry settings - exponential backoff for handling extended outages
DB_MAX_RETRIES = 12
DB_RETRY_BASE_DELAY = 5  # seconds (initial delay)
DB_RETRY_MAX_DELAY = 60  # seconds (cap on delay between retries)
