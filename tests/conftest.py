"""Pytest configuration for adapter tests."""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Add the src directory to the Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

FAKE_ENGINE = Path(__file__).parent / "fixtures" / "fake_engine.py"


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run tests against a real Stockfish binary",
    )
    parser.addoption(
        "--stockfish",
        action="store",
        default=None,
        help="Stockfish binary for integration tests (overrides STOCKFISH_PATH)",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers and export the engine path."""
    config.addinivalue_line(
        "markers", "integration: test drives a real Stockfish binary (needs --integration)"
    )
    stockfish = config.getoption("--stockfish", default=None)
    if stockfish:
        os.environ["STOCKFISH_PATH"] = stockfish


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless --integration is passed."""
    if config.getoption("--integration", default=False):
        return
    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# Sample FEN positions for testing
STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
AFTER_E4_E5_FEN = "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"
MATE_IN_1_FEN = "6k1/5ppp/8/8/8/8/8/4R2K w - - 0 1"  # Re1-e8#
MATE_IN_8_FEN = "7k/8/8/8/3R4/8/3K4/8 w - - 0 1"
DRAWN_FEN = "8/4k3/8/8/2K5/8/8/8 w - - 0 1"

# Output of `d`, as Stockfish prints it
DISPLAY_OUTPUT = (
    "\n"
    " +---+---+---+---+---+---+---+---+\n"
    " | r | n | b | q | k | b | n | r | 8\n"
    " +---+---+---+---+---+---+---+---+\n"
    "   a   b   c   d   e   f   g   h\n"
    "\n"
    f"Fen: {STARTING_FEN}\n"
    "Key: 8F8F01D4562F59FB\n"
    "Checkers: \n"
)

# A short `go depth 2` transcript with three candidates
SEARCH_OUTPUT = (
    "info string NNUE evaluation using nn-b1a57edbea57.nnue\n"
    "info depth 1 seldepth 2 multipv 1 score cp 30 wdl 60 930 10 nodes 20 nps 10000 "
    "hashfull 0 tbhits 0 time 2 pv e2e4\n"
    "info depth 1 seldepth 2 multipv 2 score cp 10 wdl 40 950 10 nodes 40 nps 10000 "
    "hashfull 0 tbhits 0 time 2 pv d2d4\n"
    "info depth 1 seldepth 2 multipv 3 score cp -15 wdl 10 950 40 nodes 60 nps 10000 "
    "hashfull 0 tbhits 0 time 2 pv g1f3\n"
    "info depth 2 currmove e2e4 currmovenumber 1\n"
    "info depth 2 seldepth 3 multipv 1 score cp 25 wdl 55 935 10 nodes 90 nps 10000 "
    "hashfull 0 tbhits 0 time 3 pv d2d4 d7d5\n"
    "info depth 2 seldepth 3 multipv 2 score cp 20 wdl 50 940 10 nodes 120 nps 10000 "
    "hashfull 0 tbhits 0 time 3 pv e2e4 e7e5\n"
    "bestmove d2d4 ponder d7d5\n"
)


class FakeChannel:
    """In-memory stand-in for ProcessChannel.

    Commands are recorded; scripted replies are delivered on the next
    loop iteration, as a real pipe would.
    """

    pid = 4242

    def __init__(
        self,
        on_output: Callable[[bytes], None],
        responses: dict[str, list[bytes]],
        on_exit: Callable[[int | None], None] | None = None,
    ) -> None:
        self.sent: list[str] = []
        self.alive = True
        self._on_output = on_output
        self._responses = responses
        self._on_exit = on_exit

    def is_alive(self) -> bool:
        return self.alive

    def send(self, command: str) -> None:
        self.sent.append(command)
        loop = asyncio.get_running_loop()
        for chunk in self._responses.get(command, []):
            loop.call_soon(self._on_output, chunk)

    def emit(self, data: bytes) -> None:
        self._on_output(data)

    def terminate(self) -> None:
        self.send("stop")
        self.send("quit")

    def exit(self, returncode: int = 0) -> None:
        self.alive = False
        if self._on_exit is not None:
            self._on_exit(returncode)

    async def wait_closed(self) -> int | None:
        self.alive = False
        return 0

    def close(self) -> None:
        pass


class FakeEngineHarness:
    """Replaces ProcessChannel.spawn and scripts the engine's replies."""

    def __init__(self) -> None:
        self.responses: dict[str, list[bytes]] = {}
        self.channel: FakeChannel | None = None
        self.argv: list[str] = []

    def respond(self, command: str, *chunks: bytes) -> None:
        """Reply to an exact command with the given stdout chunks."""
        self.responses[command] = list(chunks)

    async def spawn(self, argv, *, on_output, diagnostic=None, on_exit=None) -> FakeChannel:
        self.argv = list(argv)
        self.channel = FakeChannel(on_output, self.responses, on_exit)
        return self.channel


@pytest.fixture
def starting_fen() -> str:
    """Starting position FEN."""
    return STARTING_FEN


@pytest.fixture
def mate_in_1_fen() -> str:
    """White to move, Re1-e8 mates."""
    return MATE_IN_1_FEN


@pytest.fixture
def engine_config():
    """Create a test engine configuration."""
    from stockfish_adapter.config import EngineConfig

    return EngineConfig(stockfish_path=Path("stockfish"), threads=1, hash_mb=16)


@pytest.fixture
def fake_engine(monkeypatch) -> FakeEngineHarness:
    """Patch process spawning with an in-memory engine."""
    from stockfish_adapter.channel import ProcessChannel

    harness = FakeEngineHarness()
    monkeypatch.setattr(ProcessChannel, "spawn", harness.spawn)
    return harness


@pytest.fixture
def script_engine_config():
    """Configuration that launches the python-chess fake engine script."""
    from stockfish_adapter.config import EngineConfig

    def make(*args: str, **kwargs):
        return EngineConfig(
            stockfish_path=Path(sys.executable),
            engine_args=[str(FAKE_ENGINE), *args],
            threads=None,
            hash_mb=None,
            **kwargs,
        )

    return make


@pytest.fixture
def stockfish_available() -> bool:
    """Check if Stockfish binary is available."""
    stockfish_path = os.environ.get("STOCKFISH_PATH", "stockfish")
    return shutil.which(stockfish_path) is not None
