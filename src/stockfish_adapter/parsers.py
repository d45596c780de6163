"""
Parsers for the engine's textual output.

Three inbound line shapes matter to the adapter:

    Fen: rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    info depth 10 seldepth 13 multipv 1 score cp 35 wdl 71 910 19 nodes ... pv e2e4 e7e5
    bestmove e2e4 ponder e7e5

The first answers the `d` command, the second streams candidate
evaluations during `go`, the third ends the search.

Info lines can be read with one of two schemas. The keyed schema finds
each field by the literal marker preceding it and tolerates optional
tokens such as `upperbound`. The positional schema reads the fixed token
offsets of the classic Stockfish layout and is kept for engines whose
output is known to match it exactly.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

import chess
import chess.engine

logger = logging.getLogger(__name__)

POSITION_MARKER = "Fen:"
INFO_MARKER = "info"
DEPTH_MARKER = "depth"
BESTMOVE_MARKER = "bestmove"

# Mate-in-N is reported as +/-(MATE_SCORE - N)
MATE_SCORE = 100_000

# Token offsets of the classic layout:
# info depth D seldepth S multipv M score cp X wdl W D L nodes N nps N hashfull H tbhits T time T pv MOVE
POSITIONAL_DEPTH = 2
POSITIONAL_SCORE_KIND = 8
POSITIONAL_SCORE = 9
POSITIONAL_WDL = slice(11, 14)
POSITIONAL_MOVE = 25


class LineSchema(enum.Enum):
    """How fields are located in an info line."""

    KEYED = "keyed"
    POSITIONAL = "positional"


@dataclass(frozen=True)
class MoveEvaluation:
    """Evaluation of one candidate move."""

    score: int  # Centipawns from the engine's point of view, mate encoded via MATE_SCORE
    win: int = 0  # Per-mille
    draw: int = 0
    loss: int = 0
    depth: int = 0  # Depth of the line that produced this record
    mate: int | None = None  # Signed moves to mate, when the engine reported one

    @property
    def is_mate(self) -> bool:
        return self.mate is not None

    def pov_score(self) -> chess.engine.Score:
        """Get the score as a python-chess Score."""
        if self.mate is not None:
            return chess.engine.Mate(self.mate)
        return chess.engine.Cp(self.score)

    def wdl(self) -> chess.engine.Wdl:
        """Get the win/draw/loss triple as a python-chess Wdl."""
        return chess.engine.Wdl(self.win, self.draw, self.loss)

    def as_tuple(self) -> tuple[int, int, int, int]:
        """Get (score, win, draw, loss)."""
        return (self.score, self.win, self.draw, self.loss)


def first_token(line: str) -> str:
    """Get the first whitespace-delimited token of a line, or ''."""
    tokens = line.split(None, 1)
    return tokens[0] if tokens else ""


def parse_position_line(line: str) -> str | None:
    """Extract the FEN from a position report line.

    Returns:
        The position string, or None if the line is not a position report.
    """
    parts = line.split(None, 1)
    if not parts or parts[0] != POSITION_MARKER:
        return None
    if len(parts) == 1:
        return ""
    return parts[1].strip()


def is_bestmove_line(line: str) -> bool:
    """Check whether a line marks the end of a search."""
    return first_token(line) == BESTMOVE_MARKER


def parse_info_line(
    line: str, schema: LineSchema = LineSchema.KEYED
) -> tuple[str, MoveEvaluation] | None:
    """Parse a candidate-evaluation info line.

    Args:
        line: A single line of engine output.
        schema: How to locate fields in the line.

    Returns:
        (move, evaluation) or None when the line is not a complete
        candidate evaluation (other info lines, short or malformed lines).
    """
    tokens = line.split()
    if len(tokens) < 2 or tokens[0] != INFO_MARKER or tokens[1] != DEPTH_MARKER:
        return None

    try:
        if schema is LineSchema.POSITIONAL:
            parsed = _parse_positional(tokens)
        else:
            parsed = _parse_keyed(tokens)
    except (ValueError, IndexError):
        logger.debug(f"Skipping malformed info line: {line}")
        return None

    if parsed is None:
        return None

    move = parsed[0]
    if not _is_uci_move(move):
        logger.debug(f"Skipping info line with unexpected move token: {move}")
        return None
    return parsed


def _parse_keyed(tokens: list[str]) -> tuple[str, MoveEvaluation] | None:
    if "pv" not in tokens or "score" not in tokens or "wdl" not in tokens:
        return None

    depth = int(tokens[tokens.index(DEPTH_MARKER) + 1])

    idx = tokens.index("score")
    score, mate = _score(tokens[idx + 1], tokens[idx + 2])

    idx = tokens.index("wdl")
    win, draw, loss = (int(t) for t in tokens[idx + 1 : idx + 4])

    idx = tokens.index("pv")
    if idx + 1 >= len(tokens):
        return None
    move = tokens[idx + 1]

    return move, MoveEvaluation(
        score=score, win=win, draw=draw, loss=loss, depth=depth, mate=mate
    )


def _parse_positional(tokens: list[str]) -> tuple[str, MoveEvaluation] | None:
    if len(tokens) <= POSITIONAL_MOVE:
        return None

    depth = int(tokens[POSITIONAL_DEPTH])
    score, mate = _score(tokens[POSITIONAL_SCORE_KIND], tokens[POSITIONAL_SCORE])
    win, draw, loss = (int(t) for t in tokens[POSITIONAL_WDL])

    return tokens[POSITIONAL_MOVE], MoveEvaluation(
        score=score, win=win, draw=draw, loss=loss, depth=depth, mate=mate
    )


def _score(kind: str, value: str) -> tuple[int, int | None]:
    """Convert a `cp N` / `mate N` pair to (score, mate)."""
    if kind == "cp":
        return int(value), None
    if kind == "mate":
        mate = int(value)
        score = chess.engine.Mate(mate).score(mate_score=MATE_SCORE)
        return int(score), mate
    raise ValueError(f"Unknown score kind: {kind}")


def _is_uci_move(token: str) -> bool:
    try:
        chess.Move.from_uci(token)
    except ValueError:
        return False
    return True
