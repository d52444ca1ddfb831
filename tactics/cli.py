"""
Command-line interface for blunder discovery.

Reads ply,fen,move records (pgn-extract EPD output flattened to CSV) from a
file or stdin, evaluates every move past the opening with a UCI engine and
stores confirmed blunders.
"""

import argparse
import os
import sys
import traceback
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from tactics import database
from tactics.classifier import BlunderClassifier, ClassifierConfig, Finding
from tactics.constants import (
    MAX_CENTIPAWNS,
    MAX_DEPTH,
    MAX_MATE_IN,
    MIN_MOVES,
    MOVE_TIME_MS,
)
from tactics.epd import InputFormatError, read_move_records
from tactics.evaluation import EvaluationParseError
from tactics.uci import EngineError, EngineSession


def parse_option(text: str) -> tuple[str, str]:
    """Split a NAME=VALUE engine option."""
    name, sep, value = text.partition("=")
    name = name.strip()
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{text}'")
    return name, value.strip()


def print_sink(finding: Finding) -> bool:
    """Sink for --no-store: report the finding instead of saving it."""
    print(f"Blunder: {finding.fen} {finding.played_move} cp={finding.centipawns} "
          f"dm={finding.mate_distance} bm={finding.best_move} severity={finding.severity}")
    return True


def print_progress(games: int):
    print(f"Games: {games}", end='\r', flush=True)


def run(args) -> BlunderClassifier:
    """Start the engine, stream the input through the classifier, shut down."""
    config = ClassifierConfig(
        min_ply=args.min_ply,
        max_centipawns=args.max_centipawns,
        max_mate_in=args.max_mate_in,
        movetime_ms=args.movetime,
        depth=args.depth,
    )
    sink = print_sink if args.no_store else database.save_finding

    print(f"Starting engine: {args.engine}")
    with EngineSession.popen(args.engine) as session:
        engine_name = session.initialize()
        if engine_name:
            print(engine_name)
        if args.option:
            for name, value in args.option:
                session.set_option(name, value)
            session.is_ready()

        classifier = BlunderClassifier(session, sink, config, on_game=print_progress)
        if args.input:
            with open(args.input, "r", encoding="utf-8", newline="") as f:
                classifier.run(read_move_records(f))
        else:
            sys.stdin.reconfigure(encoding="utf-8", newline="")
            classifier.run(read_move_records(sys.stdin))

    return classifier


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Find blunders in a stream of played moves using a UCI engine",
        epilog="Input records are 'ply,fen,move' lines, e.g. from "
               "pgn-extract -Wepd ... | db-extract"
    )
    parser.add_argument("input", nargs="?", default=None,
                        help="CSV file of ply,fen,move records (default: stdin)")
    parser.add_argument("--engine", "-e", type=str,
                        default=os.environ.get("TACTICS_ENGINE", "stockfish"),
                        help="Chess engine full path (default: $TACTICS_ENGINE or 'stockfish')")
    parser.add_argument("--movetime", "-t", type=int, default=MOVE_TIME_MS,
                        help=f"Engine think time per search in ms (default: {MOVE_TIME_MS})")
    parser.add_argument("--depth", "-d", type=int, default=None,
                        help=f"Optional search depth cap, e.g. {MAX_DEPTH} (default: none)")
    parser.add_argument("--max-centipawns", type=int, default=MAX_CENTIPAWNS,
                        help=f"Evaluation drop that counts as a blunder (default: {MAX_CENTIPAWNS})")
    parser.add_argument("--max-mate-in", type=int, default=MAX_MATE_IN,
                        help=f"Mate horizon in plies (default: {MAX_MATE_IN})")
    parser.add_argument("--min-ply", type=int, default=MIN_MOVES,
                        help=f"First ply to evaluate; earlier plies are skipped (default: {MIN_MOVES})")
    parser.add_argument("--option", "-o", type=parse_option, action="append", metavar="NAME=VALUE",
                        help="UCI option to set on the engine (repeatable), e.g. Threads=4")
    parser.add_argument("--no-store", action="store_true",
                        help="Print findings instead of saving them to the database")

    args = parser.parse_args()

    if args.movetime <= 0:
        print("Error: --movetime must be positive")
        sys.exit(1)
    if args.depth is not None and args.depth <= 0:
        print("Error: --depth must be positive")
        sys.exit(1)
    if args.max_centipawns <= 0 or args.max_mate_in <= 0:
        print("Error: --max-centipawns and --max-mate-in must be positive")
        sys.exit(1)
    if args.input and not Path(args.input).exists():
        print(f"Error: Input file not found: {args.input}")
        sys.exit(1)
    if not args.no_store and not database.DB_ENABLED:
        print("Error: Database not configured. Set DATABASE_URL (or SQLUSER, SQLPASS, "
              "SQLIP, SQLPORT) in .env, or use --no-store.")
        sys.exit(1)

    try:
        classifier = run(args)
    except (EngineError, EvaluationParseError, InputFormatError) as e:
        print(f"\nError: {e}")
        sys.exit(1)
    except SQLAlchemyError as e:
        print(f"\nError: Database failure: {e}")
        traceback.print_exc()
        sys.exit(1)

    print(f"\nGames: {classifier.state.games}, flagged: {classifier.flagged}, "
          f"recorded: {classifier.recorded}, already recorded: {classifier.duplicates}")


if __name__ == "__main__":
    main()
