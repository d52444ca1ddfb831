"""
Line-protocol session with a UCI chess engine subprocess.

The session is strictly half-duplex: each command is written, then output is
consumed until the command's terminating line shows up. Only one exchange is
ever outstanding and the session must only be driven from one thread.
"""

import subprocess
from pathlib import Path

from tactics.constants import MOVE_TIME_MS

MOVE_CHARS = set("abcdefghijklmnopqrstuvwxyz0123456789")


class EngineError(Exception):
    """The engine could not be started or broke the protocol."""


class EngineTerminatedError(EngineError):
    """The engine's pipes closed (or a write failed) mid-session."""


def _move_token(token: str) -> str:
    """Leading run of lowercase letters and digits, e.g. 'e7e8q' from 'e7e8q\\r'."""
    end = 0
    while end < len(token) and token[end] in MOVE_CHARS:
        end += 1
    return token[:end]


def parse_bestmove(line: str) -> str:
    """
    Extract the chosen move from a 'bestmove' line.

    Returns an empty string when the engine reports no usable move
    (e.g. 'bestmove (none)' in a mated position).
    """
    parts = line.split()
    if len(parts) < 2 or parts[0] != "bestmove":
        return ""
    return _move_token(parts[1])


class EngineSession:
    """
    Command/response channel over an engine's stdin/stdout.

    stdin is any writable text stream and stdout any readable text stream
    with readline(), so tests can drive the session with io.StringIO.
    """

    def __init__(self, stdin, stdout, process: subprocess.Popen = None):
        self.stdin = stdin
        self.stdout = stdout
        self.process = process
        self.engine_name = None

    @classmethod
    def popen(cls, command: Path | str | list) -> "EngineSession":
        """Start an engine process and wrap its pipes.

        command can be:
        - Path or str: path to a native executable
        - list: full argument vector, e.g. ["java", "-jar", "engine.jar"]
        """
        args = command if isinstance(command, list) else [str(command)]
        try:
            process = subprocess.Popen(
                args,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            raise EngineError(f"Failed to start engine {args[0]}: {e}") from e
        return cls(process.stdin, process.stdout, process)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.quit()
        return False

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _send(self, command: str):
        try:
            self.stdin.write(command + "\n")
            self.stdin.flush()
        except (OSError, ValueError) as e:
            raise EngineTerminatedError(f"Writing '{command}' to engine: {e}") from e

    def _readline(self) -> str:
        try:
            line = self.stdout.readline()
        except (OSError, ValueError) as e:
            raise EngineTerminatedError(f"Reading engine output: {e}") from e
        if line == "":
            raise EngineTerminatedError("Engine output closed unexpectedly")
        return line.rstrip("\r\n")

    def _read_until(self, is_terminal) -> tuple[str, str]:
        """
        Consume output until is_terminal(line) holds.

        Returns (terminal_line, last_info_line). Every 'info' line overwrites
        the previous one, so only the deepest report before the terminal line
        survives. Everything else is discarded.
        """
        last_info = ""
        while True:
            line = self._readline()
            if is_terminal(line):
                return line, last_info
            if line.startswith("info"):
                last_info = line
            elif line.startswith("id name "):
                self.engine_name = line[len("id name "):]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def initialize(self) -> str | None:
        """Send 'uci' and wait for 'uciok'. Returns the engine's reported name, if any."""
        self._send("uci")
        self._read_until(lambda line: line == "uciok")
        return self.engine_name

    def set_option(self, name: str, value):
        """Send a setoption command. UCI gives no acknowledgement."""
        if isinstance(value, bool):
            value = "true" if value else "false"
        self._send(f"setoption name {name} value {value}")

    def is_ready(self):
        """Block until the engine answers 'isready' with 'readyok'."""
        self._send("isready")
        self._read_until(lambda line: line == "readyok")

    def set_position(self, fen: str):
        """Set the position to search. No response is expected."""
        self._send(f"position fen {fen}")

    def search(self, movetime: int = MOVE_TIME_MS, depth: int = None,
               searchmoves: str = None) -> tuple[str, str]:
        """
        Run a fixed-time search and wait for its result.

        Args:
            movetime: Think time in milliseconds (enforced by the engine)
            depth: Optional depth cap
            searchmoves: Restrict the search to this single move

        Returns:
            (best_move, last_info_line)
        """
        command = f"go movetime {movetime}"
        if depth is not None:
            command += f" depth {depth}"
        if searchmoves:
            command += f" searchmoves {searchmoves}"
        self._send(command)

        line, last_info = self._read_until(lambda line: line.startswith("bestmove"))
        return parse_bestmove(line), last_info

    def quit(self, timeout: float = 2.0):
        """Ask the engine to exit, killing it if it does not go quietly."""
        try:
            self._send("quit")
        except EngineTerminatedError:
            pass  # Already gone

        if self.process is None:
            return
        try:
            self.process.stdin.close()
        except OSError:
            pass
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()
