"""
Blunder classification over a stream of played moves.

Each side keeps its own memory of the last evaluation it produced. A move is
flagged when it drops that side's evaluation sharply (or walks into a short
forced mate), and only recorded once a second, unrestricted search confirms
that a clearly better move existed.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from tactics.constants import (
    MAX_CENTIPAWNS,
    MAX_MATE_IN,
    MATE_BLUNDER_SEVERITY,
    MOVE_TIME_MS,
    MIN_MOVES,
)
from tactics.epd import MoveRecord, normalize_move
from tactics.evaluation import Evaluation
from tactics.uci import EngineSession


@dataclass
class ClassifierConfig:
    """Thresholds and search settings for blunder detection."""
    min_ply: int = MIN_MOVES  # First ply evaluated (baseline), earlier plies are skipped
    max_centipawns: int = MAX_CENTIPAWNS  # Evaluation drop that counts as a blunder
    max_mate_in: int = MAX_MATE_IN  # Mate horizon in plies
    movetime_ms: int = MOVE_TIME_MS
    depth: Optional[int] = None  # Depth cap, not sent when None


@dataclass
class TurnState:
    """Per-side evaluation memory, cleared at each game's baseline ply."""
    white_to_move: bool = True
    last_white_cp: int = 0
    last_black_cp: int = 0
    games: int = 0

    def previous(self) -> int:
        return self.last_white_cp if self.white_to_move else self.last_black_cp

    def record(self, centipawns: int):
        if self.white_to_move:
            self.last_white_cp = centipawns
        else:
            self.last_black_cp = centipawns

    def new_game(self):
        """Forget both sides' scores from the previous game."""
        self.last_white_cp = 0
        self.last_black_cp = 0

    def flip(self) -> bool:
        """Pass the move to the other side. Returns True if it is now white's turn."""
        self.white_to_move = not self.white_to_move
        return self.white_to_move


@dataclass(frozen=True)
class Finding:
    """A confirmed blunder, as stored by the sink."""
    fen: str
    played_move: str
    centipawns: int
    mate_distance: int
    best_move: str
    severity: int


FindingSink = Callable[[Finding], bool]


def evaluate_move(session: EngineSession, fen: str, move: str | None,
                  config: ClassifierConfig) -> Evaluation:
    """
    Search fen, restricted to move if given, and parse the final info line.

    With move=None the engine picks its own best move.
    """
    session.set_position(fen)
    best_move, info = session.search(movetime=config.movetime_ms, depth=config.depth,
                                     searchmoves=move or None)
    return Evaluation.from_search(best_move, info)


def classify(prev_cp: int, cur_cp: int, mate_in: int,
             max_centipawns: int = MAX_CENTIPAWNS,
             max_mate_in: int = MAX_MATE_IN) -> int:
    """
    Severity of a played move, 0 if it is not a blunder.

    A mate against the mover within the horizon scores MATE_BLUNDER_SEVERITY.
    Otherwise the move must leave the mover worse than even, worse than
    before, and at least max_centipawns down on its previous evaluation.
    """
    if mate_in < 0:
        if mate_in >= -max_mate_in:
            return MATE_BLUNDER_SEVERITY
        return 0
    if cur_cp < 0 and cur_cp < prev_cp and prev_cp - cur_cp >= max_centipawns:
        return prev_cp - cur_cp
    return 0


def confirm(played_move: str, played_cp: int, best: Evaluation,
            max_centipawns: int = MAX_CENTIPAWNS,
            max_mate_in: int = MAX_MATE_IN) -> bool:
    """
    Check that a flagged blunder had a concretely better alternative.

    The engine's best move must differ from the one played and either be
    winning by at least max_centipawns more, or force mate inside the horizon.
    """
    if best.best_move == played_move:
        return False
    if best.centipawns > 0 and best.centipawns - played_cp >= max_centipawns:
        return True
    return 0 < best.mate_in < max_mate_in


class BlunderClassifier:
    """
    Streaming state machine over MoveRecords.

    Records must arrive in ply order. The session is used synchronously for
    at most two searches per record.
    """

    def __init__(self, session: EngineSession, sink: FindingSink = None,
                 config: ClassifierConfig = None,
                 on_game: Callable[[int], None] = None):
        self.session = session
        self.sink = sink
        self.config = config or ClassifierConfig()
        self.on_game = on_game
        self.state = TurnState()
        self.flagged = 0
        self.recorded = 0
        self.duplicates = 0

    def process(self, record: MoveRecord) -> Finding | None:
        """Handle one played move. Returns the Finding if a blunder was confirmed."""
        config = self.config
        if record.ply < config.min_ply:
            return None

        played = normalize_move(record.fen, record.move)
        evaluation = evaluate_move(self.session, record.fen, played, config)

        if record.ply == config.min_ply:
            self.state.new_game()
            self.state.record(evaluation.centipawns)
            if self.state.flip():
                self.state.games += 1
                if self.on_game:
                    self.on_game(self.state.games)
            return None

        prev_cp = self.state.previous()
        self.state.record(evaluation.centipawns)

        finding = None
        severity = classify(prev_cp, evaluation.centipawns, evaluation.mate_in,
                            config.max_centipawns, config.max_mate_in)
        if severity > 0:
            self.flagged += 1
            best = evaluate_move(self.session, record.fen, None, config)
            if confirm(played, evaluation.centipawns, best,
                       config.max_centipawns, config.max_mate_in):
                finding = Finding(
                    fen=record.fen,
                    played_move=record.move,
                    centipawns=evaluation.centipawns,
                    mate_distance=evaluation.mate_in,
                    best_move=best.best_move,
                    severity=severity,
                )
                self._emit(finding)

        self.state.flip()
        return finding

    def _emit(self, finding: Finding):
        if self.sink is None:
            return
        if self.sink(finding):
            self.recorded += 1
        else:
            self.duplicates += 1

    def run(self, records: Iterable[MoveRecord]) -> int:
        """Process every record. Returns the number of confirmed findings."""
        found = 0
        for record in records:
            if self.process(record) is not None:
                found += 1
        return found
