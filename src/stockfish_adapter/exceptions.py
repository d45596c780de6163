"""
Exception hierarchy for the Stockfish adapter.

Every error raised by the adapter derives from AdapterError so callers
can catch the whole family in one place.
"""

from __future__ import annotations


class AdapterError(Exception):
    """Base exception for all adapter errors."""


# =============================================================================
# Engine Exceptions
# =============================================================================


class EngineError(AdapterError):
    """Base exception for engine-related errors."""


class EngineStartupError(EngineError):
    """Engine process could not be launched."""


class SessionBusyError(EngineError):
    """A request was issued while another one is still in flight."""


# =============================================================================
# Request Exceptions
# =============================================================================


class InvalidRequestError(AdapterError):
    """Request arguments were rejected before reaching the engine."""
