"""
Entry point for running the tactics package as a module.

Usage:
    python -m tactics --help
    python -m tactics --engine stockfish < games.csv
"""

from tactics.cli import main

if __name__ == "__main__":
    main()
