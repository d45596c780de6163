"""
Configuration for a Stockfish adapter session.

All configuration can be set via environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env_int(name: str) -> int | None:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return None
    return int(value)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    """Configuration for a single engine session."""

    stockfish_path: Path = field(
        default_factory=lambda: Path(os.environ.get("STOCKFISH_PATH", "stockfish"))
    )
    engine_args: list[str] = field(default_factory=list)  # Extra argv after the binary
    threads: int | None = field(default_factory=lambda: _env_int("STOCKFISH_THREADS"))
    hash_mb: int | None = field(default_factory=lambda: _env_int("STOCKFISH_HASH"))
    multipv: int = field(default_factory=lambda: int(os.environ.get("STOCKFISH_MULTIPV", "250")))
    verbose: bool = field(default_factory=lambda: _env_flag("STOCKFISH_VERBOSE"))
    line_schema: str = field(
        default_factory=lambda: os.environ.get("STOCKFISH_LINE_SCHEMA", "keyed")
    )

    def command(self) -> list[str]:
        """Get the argv used to launch the engine."""
        return [str(self.stockfish_path), *self.engine_args]
