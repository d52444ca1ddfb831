"""
Move stream decoding.

Input comes from pgn-extract's EPD output flattened to CSV, one played move
per line:

    ply,fen,move[,...]

Example:
    12,r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4,d2d3
"""

import csv
from dataclasses import dataclass
from typing import Iterator, TextIO

import chess

FILES = "abcdefgh"
RANKS = "12345678"
PROMOTIONS = "qrbn"


class InputFormatError(ValueError):
    """A move record could not be decoded. The upstream generator is broken."""


@dataclass(frozen=True)
class MoveRecord:
    """One played move and the position it was played from."""
    ply: int
    fen: str
    move: str


def read_move_records(stream: TextIO) -> Iterator[MoveRecord]:
    """
    Yield MoveRecords from CSV text until the stream ends.

    Fields beyond the third are ignored. Blank lines are skipped.

    Raises:
        InputFormatError: a record has fewer than 3 fields, a non-integer ply,
            or the input is not valid UTF-8
    """
    reader = csv.reader(stream)
    while True:
        try:
            record = next(reader)
        except StopIteration:
            return
        except UnicodeDecodeError as e:
            raise InputFormatError(f"Input is not valid UTF-8: {e}") from e
        if not record:
            continue
        if len(record) < 3:
            raise InputFormatError(
                f"Line {reader.line_num}: records have {len(record)} items: {record}"
            )
        try:
            ply = int(record[0])
        except ValueError:
            raise InputFormatError(
                f"Line {reader.line_num}: ply is not an integer: {record[0]!r}"
            ) from None
        yield MoveRecord(ply=ply, fen=record[1], move=record[2])


def is_uci_move(move: str) -> bool:
    """True for long algebraic moves like 'e2e4' or 'e7e8q'."""
    if len(move) not in (4, 5):
        return False
    if move[0] not in FILES or move[1] not in RANKS or move[2] not in FILES or move[3] not in RANKS:
        return False
    return len(move) == 4 or move[4] in PROMOTIONS


def normalize_move(fen: str, move: str) -> str:
    """
    Return move in the engine's (UCI) notation.

    UCI moves pass through untouched. SAN moves ('e4', 'Nxf7+') are resolved
    against the position.

    Raises:
        InputFormatError: the move cannot be read in this position
    """
    if is_uci_move(move):
        return move
    try:
        board = chess.Board(fen)
        return board.parse_san(move).uci()
    except ValueError as e:
        raise InputFormatError(f"Cannot read move {move!r} in position {fen}: {e}") from e
