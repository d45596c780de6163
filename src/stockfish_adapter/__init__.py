"""
Stockfish UCI adapter

Drives a Stockfish process over the UCI text protocol and turns its
streamed output into a resolved position and a scored list of candidate
moves.
"""

from .analysis import AnalysisAggregator, AnalysisResult
from .channel import ProcessChannel
from .config import EngineConfig
from .exceptions import (
    AdapterError,
    EngineError,
    EngineStartupError,
    InvalidRequestError,
    SessionBusyError,
)
from .framing import LineFramer
from .parsers import MATE_SCORE, LineSchema, MoveEvaluation, parse_info_line, parse_position_line
from .session import EngineSession, Mode

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Config
    "EngineConfig",
    # Session
    "EngineSession",
    "Mode",
    "ProcessChannel",
    "LineFramer",
    # Results
    "AnalysisAggregator",
    "AnalysisResult",
    "MoveEvaluation",
    "MATE_SCORE",
    # Parsing
    "LineSchema",
    "parse_info_line",
    "parse_position_line",
    # Exceptions
    "AdapterError",
    "EngineError",
    "EngineStartupError",
    "InvalidRequestError",
    "SessionBusyError",
]
