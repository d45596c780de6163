"""
Command-line driver: set a position, analyze it, print the candidates.

    python -m stockfish_adapter --fen "7k/8/8/8/3R4/8/3K4/8 w - - 0 1" --depth 20
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from .config import EngineConfig
from .exceptions import AdapterError
from .session import EngineSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockfish_adapter",
        description="Analyze a chess position with a Stockfish process.",
    )
    parser.add_argument("--engine", type=Path, help="Path to the engine binary")
    parser.add_argument("--fen", default="", help="Base position (starting position if omitted)")
    parser.add_argument("--moves", nargs="*", default=[], help="UCI moves to play first")
    parser.add_argument("--depth", type=int, default=20, help="Search depth in plies")
    parser.add_argument("--threads", type=int, help="Engine search threads")
    parser.add_argument("--hash", type=int, dest="hash_mb", help="Hash table size in MB")
    parser.add_argument("--verbose", action="store_true", help="Echo engine output to stderr")
    return parser


def config_from_args(args: argparse.Namespace) -> EngineConfig:
    config = EngineConfig()
    if args.engine is not None:
        config.stockfish_path = args.engine
    if args.threads is not None:
        config.threads = args.threads
    if args.hash_mb is not None:
        config.hash_mb = args.hash_mb
    if args.verbose:
        config.verbose = True
    return config


async def analyze(config: EngineConfig, fen: str, moves: list[str], depth: int) -> int:
    async with EngineSession(config) as session:
        position = await session.set_position(fen, moves)
        print(position)

        candidates = await session.run(depth)
        for move, evaluation in candidates:
            print(move, *evaluation.as_tuple())
        print(len(candidates))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    try:
        return asyncio.run(analyze(config_from_args(args), args.fen, args.moves, args.depth))
    except AdapterError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
