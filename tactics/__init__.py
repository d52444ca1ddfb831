"""
Chess blunder discovery package.

Usage:
    python -m tactics --help
    pgn-extract -Wepd ... | db-extract | python -m tactics --engine stockfish
    python -m tactics --engine /usr/local/bin/stockfish --no-store games.csv
"""

from tactics.constants import (
    MAX_CENTIPAWNS,
    MAX_MATE_IN,
    MATE_BLUNDER_SEVERITY,
    MOVE_TIME_MS,
    MAX_DEPTH,
    MIN_MOVES,
    DB_MAX_RETRIES,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_MAX_DELAY,
)

__all__ = [
    # Constants
    'MAX_CENTIPAWNS',
    'MAX_MATE_IN',
    'MATE_BLUNDER_SEVERITY',
    'MOVE_TIME_MS',
    'MAX_DEPTH',
    'MIN_MOVES',
    'DB_MAX_RETRIES',
    'DB_RETRY_BASE_DELAY',
    'DB_RETRY_MAX_DELAY',
    # Pipeline pieces (import from their modules when needed)
    # - EngineSession, parse_info, read_move_records, BlunderClassifier, save_finding
]
