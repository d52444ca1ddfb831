"""
Score extraction from UCI 'info' lines.
"""

from dataclasses import dataclass

# Scores are stored in int(11) columns
SCORE_LIMIT = 2**31 - 1


class EvaluationParseError(ValueError):
    """An info line carried a cp/mate value that is not a usable integer."""


@dataclass(frozen=True)
class Evaluation:
    """Engine verdict for one search."""
    best_move: str  # Engine's chosen move, empty if it reported none
    centipawns: int = 0  # From the side to move's perspective
    mate_in: int = 0  # Plies to forced mate, negative if the side to move is mated, 0 = none

    @classmethod
    def from_search(cls, best_move: str, info_line: str) -> "Evaluation":
        centipawns, mate_in = parse_info(info_line)
        return cls(best_move=best_move, centipawns=centipawns, mate_in=mate_in)


def _is_int_token(token: str) -> bool:
    digits = token[1:] if token.startswith("-") else token
    return digits != "" and all(c in "0123456789" for c in digits)


def _tagged_value(tokens: list[str], tag: str) -> int:
    """
    First integer that follows a space-delimited tag, or 0.

    Matches ' <tag> <int> ': the tag needs a token before it and the value a
    token after it, so 'cp 35' at the very end of a line does not count.
    """
    for i in range(1, len(tokens) - 2):
        if tokens[i] == tag and _is_int_token(tokens[i + 1]):
            value = int(tokens[i + 1])
            if abs(value) > SCORE_LIMIT:
                raise EvaluationParseError(f"{tag} value out of range: {tokens[i + 1]}")
            return value
    return 0


def parse_info(line: str | None) -> tuple[int, int]:
    """
    Parse centipawn and mate values from an engine info line.

    Returns (centipawns, mate_in). Either defaults to 0 when absent, and an
    empty line gives (0, 0).

    Example:
        >>> parse_info("info depth 20 score cp -35 nodes 1000 pv e2e4")
        (-35, 0)
    """
    if not line:
        return 0, 0
    tokens = line.split(" ")
    return _tagged_value(tokens, "cp"), _tagged_value(tokens, "mate")
