"""
Engine session: drives one Stockfish process over UCI.

The session is a small state machine. It is IDLE between requests;
set_position() and run() move it to AWAITING_POSITION or
AWAITING_ANALYSIS, send the matching commands, and suspend until the
handler for that state sees the line that completes the request.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import sys
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TextIO

from .analysis import AnalysisAggregator, AnalysisResult
from .channel import ProcessChannel
from .config import EngineConfig
from .exceptions import EngineError, EngineStartupError, InvalidRequestError, SessionBusyError
from .framing import LineFramer
from .parsers import LineSchema, is_bestmove_line, parse_info_line, parse_position_line

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    """What the session is waiting for."""

    IDLE = "idle"
    AWAITING_POSITION = "awaiting_position"
    AWAITING_ANALYSIS = "awaiting_analysis"


class EngineSession:
    """
    One engine process and the adapter state attached to it.

    Requests must be awaited one at a time. Independent sessions (each
    with its own process) can run side by side.

    Usage:
        async with EngineSession(EngineConfig(threads=4)) as session:
            fen = await session.set_position("", "e2e4 e7e5")
            moves = await session.run(20)
    """

    def __init__(
        self, config: EngineConfig | None = None, diagnostic: TextIO | None = None
    ) -> None:
        """Initialize the session.

        Args:
            config: Engine configuration. Uses defaults if not provided.
            diagnostic: Stream for engine stderr and verbose echo
                (sys.stderr if not given).
        """
        self._config = config or EngineConfig()
        self._diagnostic = diagnostic
        try:
            self._schema = LineSchema(self._config.line_schema)
        except ValueError as e:
            raise InvalidRequestError(
                f"Unknown line schema {self._config.line_schema!r}"
            ) from e
        self._channel: ProcessChannel | None = None
        self._framer = LineFramer()
        self._mode = Mode.IDLE
        self._pending: asyncio.Future[Any] | None = None
        self._position: str | None = None
        self._analysis = AnalysisAggregator()
        self._handlers: dict[Mode, Callable[[str], None]] = {
            Mode.IDLE: self._handle_idle,
            Mode.AWAITING_POSITION: self._handle_position,
            Mode.AWAITING_ANALYSIS: self._handle_analysis,
        }

    @property
    def path(self) -> Path:
        """Get the engine binary path."""
        return self._config.stockfish_path

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def verbose(self) -> bool:
        return self._config.verbose

    @property
    def position(self) -> str | None:
        """Last position reported by the engine."""
        return self._position

    @property
    def max_depth(self) -> int:
        """Deepest depth seen by the current or last analysis."""
        return self._analysis.max_depth

    def is_alive(self) -> bool:
        """Check if the engine process is running."""
        return self._channel is not None and self._channel.is_alive()

    async def start(self) -> None:
        """Launch the engine and send the startup options.

        Raises:
            EngineStartupError: If the engine cannot be launched.
        """
        if self._channel is not None:
            raise EngineError("Engine already started")

        argv = self._config.command()
        logger.info(f"Starting engine from {self._config.stockfish_path}")
        try:
            self._channel = await ProcessChannel.spawn(
                argv,
                on_output=self.feed,
                diagnostic=self._diagnostic,
                on_exit=self._on_exit,
            )
        except FileNotFoundError as e:
            raise EngineStartupError(
                f"Engine binary not found at {self._config.stockfish_path}"
            ) from e
        except OSError as e:
            raise EngineStartupError(f"Failed to start engine: {e}") from e

        self._configure()
        logger.info(f"Engine started (pid {self._channel.pid})")

    def _configure(self) -> None:
        self._send(f"setoption name MultiPV value {self._config.multipv}")
        if self._config.threads is not None:
            self._send(f"setoption name Threads value {self._config.threads}")
        if self._config.hash_mb is not None:
            self._send(f"setoption name Hash value {self._config.hash_mb}")
        self._send("setoption name UCI_ShowWDL value true")

    async def set_position(self, fen: str = "", moves: str | Sequence[str] = "") -> str:
        """Set up a position and get the engine's resolved FEN.

        Args:
            fen: Base position; the starting position when empty.
            moves: Moves to play from the base position, in UCI notation,
                either space separated or as a sequence.

        Returns:
            The FEN of the resulting position.
        """
        if not isinstance(fen, str):
            raise InvalidRequestError(f"FEN must be a string, got {fen!r}")
        if isinstance(moves, str):
            move_list = moves.split()
        elif isinstance(moves, Sequence) and all(isinstance(move, str) for move in moves):
            move_list = list(moves)
        else:
            raise InvalidRequestError(
                f"Moves must be a string or a sequence of strings, got {moves!r}"
            )

        future = self._begin(Mode.AWAITING_POSITION)
        command = f"position fen {fen}" if fen else "position startpos"
        if move_list:
            command += " moves " + " ".join(move_list)

        self._send(command)
        self._send("d")
        return await future

    async def run(self, depth: int = 1) -> AnalysisResult:
        """Search the current position to a fixed depth.

        Args:
            depth: Number of plies to search.

        Returns:
            Every candidate move the engine evaluated, with its latest
            evaluation, ordered by ascending score.
        """
        if not isinstance(depth, int) or depth < 1:
            raise InvalidRequestError(f"Depth must be a positive integer, got {depth!r}")

        future = self._begin(Mode.AWAITING_ANALYSIS)
        self._analysis = AnalysisAggregator()
        self._send(f"go depth {depth}")
        return await future

    def quit(self) -> None:
        """Send stop and quit to the engine without waiting for it to exit."""
        if self._channel is None or not self._channel.is_alive():
            return
        self._channel.terminate()
        logger.info("Engine quit requested")

    async def wait_closed(self) -> int | None:
        """Wait for the engine process to exit."""
        if self._channel is None:
            return None
        returncode = await self._channel.wait_closed()
        self._channel.close()
        return returncode

    async def __aenter__(self) -> EngineSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.quit()
        await self.wait_closed()

    def feed(self, data: bytes) -> None:
        """Handle a chunk of engine stdout.

        Complete lines are dispatched in order to the handler for the
        current mode; the mode can change between two lines of one chunk.
        """
        for line in self._framer.feed(data):
            logger.debug(f"Recv: {line}")
            if self.verbose:
                self._echo(line)
            self._handlers[self._mode](line)

    def _begin(self, mode: Mode) -> asyncio.Future[Any]:
        """Enter a waiting mode with a fresh completion future."""
        if self._channel is None:
            raise EngineError("Engine not started")
        if self._mode is not Mode.IDLE:
            raise SessionBusyError(f"Request already in flight ({self._mode.value})")

        self._pending = asyncio.get_running_loop().create_future()
        self._mode = mode
        return self._pending

    def _complete(self, result: Any) -> None:
        """Return to IDLE and resolve the in-flight request."""
        future, self._pending = self._pending, None
        self._mode = Mode.IDLE
        if future is not None and not future.done():
            future.set_result(result)

    def _handle_idle(self, line: str) -> None:
        pass

    def _handle_position(self, line: str) -> None:
        fen = parse_position_line(line)
        if fen is None:
            return
        self._position = fen
        self._complete(fen)

    def _handle_analysis(self, line: str) -> None:
        if is_bestmove_line(line):
            self._complete(self._analysis.result())
            return

        parsed = parse_info_line(line, self._schema)
        if parsed is not None:
            self._analysis.observe(*parsed)

    def _send(self, command: str) -> None:
        if self._channel is None:
            raise EngineError("Engine not started")
        self._channel.send(command)

    def _echo(self, line: str) -> None:
        stream = self._diagnostic if self._diagnostic is not None else sys.stderr
        stream.write(line + "\n")

    def _on_exit(self, returncode: int | None) -> None:
        if returncode == 0 and self._pending is None:
            logger.info("Engine process exited")
            return
        logger.warning(f"Engine process exited with code {returncode}")
        if self._pending is not None:
            logger.error(f"Engine exited while {self._mode.value}; request will not complete")
