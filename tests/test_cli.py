"""Tests for tactics.cli module."""

import argparse
import io
import sys
import pytest
from unittest.mock import patch

from tactics.classifier import Finding
from tactics.cli import main, parse_option, print_sink
from tactics.uci import EngineError, EngineSession

WHITE_FEN = "r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"
BLACK_FEN = "r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/3P1N2/PPP2PPP/RNBQK2R b KQkq - 0 4"

SCRIPTED_ENGINE = """Stockfish 17 by the Stockfish developers
id name Stockfish 17
uciok
info depth 10 score cp 50 nodes 100 pv d2d3
bestmove d2d3
info depth 10 score cp 20 nodes 100 pv c6d4
bestmove c6d4
info depth 10 score cp -400 nodes 100 pv g1h3
bestmove g1h3
info depth 10 score cp 80 nodes 100 pv d2d4
bestmove d2d4
"""


def run_main(argv):
    with patch.object(sys, "argv", ["chess-tactics"] + argv):
        main()


@pytest.fixture
def games_csv(tmp_path):
    path = tmp_path / "games.csv"
    path.write_text(
        f"3,{WHITE_FEN},a2a3\n"
        f"12,{WHITE_FEN},d2d3\n"
        f"13,{BLACK_FEN},c6d4\n"
        f"14,{WHITE_FEN},g1h3\n"
    )
    return path


class TestParseOption:
    """Tests for parse_option function."""

    def test_name_value(self):
        assert parse_option("Threads=4") == ("Threads", "4")

    def test_value_may_contain_equals(self):
        assert parse_option("SyzygyPath=/tb=5") == ("SyzygyPath", "/tb=5")

    def test_missing_value_separator(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_option("Threads")

    def test_missing_name(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_option("=4")


class TestPrintSink:
    """Tests for the --no-store sink."""

    def test_prints_and_accepts(self, capsys):
        finding = Finding(fen=WHITE_FEN, played_move="g1h3", centipawns=-400,
                          mate_distance=0, best_move="d2d4", severity=450)
        assert print_sink(finding) is True
        output = capsys.readouterr().out
        assert "g1h3" in output
        assert "severity=450" in output


class TestMain:
    """Tests for the main entry point."""

    def test_finds_blunder_with_no_store(self, games_csv, capsys):
        engine_in = io.StringIO()
        session = EngineSession(engine_in, io.StringIO(SCRIPTED_ENGINE))
        with patch("tactics.cli.EngineSession.popen", return_value=session) as popen:
            run_main(["--engine", "/opt/stockfish", "--no-store", str(games_csv)])

        popen.assert_called_once_with("/opt/stockfish")
        output = capsys.readouterr().out
        assert "Stockfish 17" in output
        assert "Blunder:" in output
        assert "severity=450" in output
        assert "flagged: 1, recorded: 1" in output

        commands = engine_in.getvalue().splitlines()
        assert commands[0] == "uci"
        assert commands[-1] == "quit"
        # Warm-up ply 3 never reached the engine
        assert "searchmoves a2a3" not in engine_in.getvalue()
        assert "go movetime 1000 searchmoves g1h3" in commands
        assert commands.count("go movetime 1000") == 1

    def test_engine_options_are_sent(self, games_csv, capsys):
        engine_in = io.StringIO()
        session = EngineSession(engine_in, io.StringIO("uciok\nreadyok\n"))
        games_csv.write_text("")
        with patch("tactics.cli.EngineSession.popen", return_value=session):
            run_main(["--no-store", "-o", "Threads=2", "-o", "Hash=64", str(games_csv)])

        assert engine_in.getvalue() == (
            "uci\nsetoption name Threads value 2\nsetoption name Hash value 64\nisready\nquit\n"
        )

    def test_engine_failure_exits(self, games_csv, capsys):
        with patch("tactics.cli.EngineSession.popen", side_effect=EngineError("Failed to start engine nope")):
            with pytest.raises(SystemExit) as exc_info:
                run_main(["--engine", "nope", "--no-store", str(games_csv)])

        assert exc_info.value.code == 1
        assert "Error: Failed to start engine nope" in capsys.readouterr().out

    def test_engine_dying_mid_stream_exits(self, games_csv, capsys):
        engine_in = io.StringIO()
        session = EngineSession(engine_in, io.StringIO("uciok\ninfo depth 1 score cp 5 nodes 1 pv d2d3\n"))
        with patch("tactics.cli.EngineSession.popen", return_value=session):
            with pytest.raises(SystemExit) as exc_info:
                run_main(["--no-store", str(games_csv)])

        assert exc_info.value.code == 1
        assert "Engine output closed unexpectedly" in capsys.readouterr().out
        # Session still shut down
        assert engine_in.getvalue().endswith("quit\n")

    def test_malformed_input_exits(self, games_csv, capsys):
        games_csv.write_text(f"12,{WHITE_FEN}\n")
        session = EngineSession(io.StringIO(), io.StringIO("uciok\n"))
        with patch("tactics.cli.EngineSession.popen", return_value=session):
            with pytest.raises(SystemExit) as exc_info:
                run_main(["--no-store", str(games_csv)])

        assert exc_info.value.code == 1
        assert "records have 2 items" in capsys.readouterr().out

    def test_non_utf8_input_exits(self, games_csv, capsys):
        games_csv.write_bytes(f"12,{WHITE_FEN},".encode() + b"\xe9\xff\n")
        session = EngineSession(io.StringIO(), io.StringIO("uciok\n"))
        with patch("tactics.cli.EngineSession.popen", return_value=session):
            with pytest.raises(SystemExit) as exc_info:
                run_main(["--no-store", str(games_csv)])

        assert exc_info.value.code == 1
        assert "Error: Input is not valid UTF-8" in capsys.readouterr().out

    def test_missing_input_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run_main(["--no-store", str(tmp_path / "missing.csv")])
        assert exc_info.value.code == 1
        assert "Input file not found" in capsys.readouterr().out

    def test_database_required_unless_no_store(self, games_csv, capsys):
        with patch("tactics.database.DB_ENABLED", False):
            with pytest.raises(SystemExit) as exc_info:
                run_main([str(games_csv)])
        assert exc_info.value.code == 1
        assert "Database not configured" in capsys.readouterr().out

    def test_rejects_non_positive_movetime(self, games_csv, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run_main(["--no-store", "--movetime", "0", str(games_csv)])
        assert exc_info.value.code == 1
