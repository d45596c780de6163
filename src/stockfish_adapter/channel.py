"""
Process channel for the engine subprocess.

Owns the child process and its three pipes: commands go out on stdin,
raw output chunks arrive on stdout, and stderr is passed through to the
host's diagnostic stream untouched.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import subprocess
import sys
from collections.abc import Callable, Sequence
from typing import TextIO

logger = logging.getLogger(__name__)

STDOUT_FD = 1
STDERR_FD = 2


class _EngineProtocol(asyncio.SubprocessProtocol):
    """Routes pipe callbacks from the event loop to the channel."""

    def __init__(
        self,
        on_output: Callable[[bytes], None],
        diagnostic: TextIO,
        exited: asyncio.Future[int | None],
        on_exit: Callable[[int | None], None] | None,
    ) -> None:
        self._on_output = on_output
        self._diagnostic = diagnostic
        self._exited = exited
        self._on_exit = on_exit
        self._stderr_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.transport: asyncio.SubprocessTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def pipe_data_received(self, fd: int, data: bytes) -> None:
        if fd == STDOUT_FD:
            self._on_output(data)
        elif fd == STDERR_FD:
            # Partial multi-byte sequences stay in the decoder until completed.
            text = self._stderr_decoder.decode(data)
            if text:
                self._diagnostic.write(text)
                self._diagnostic.flush()

    def pipe_connection_lost(self, fd: int, exc: Exception | None) -> None:
        if fd == STDERR_FD:
            text = self._stderr_decoder.decode(b"", final=True)
            if text:
                self._diagnostic.write(text)
                self._diagnostic.flush()

    def process_exited(self) -> None:
        returncode = self.transport.get_returncode() if self.transport else None
        if not self._exited.done():
            self._exited.set_result(returncode)
        if self._on_exit is not None:
            self._on_exit(returncode)


class ProcessChannel:
    """
    Byte pipes to a running engine process.

    Create with ProcessChannel.spawn(); the constructor only wraps an
    already running transport.

    Usage:
        channel = await ProcessChannel.spawn(["stockfish"], on_output=handle)
        channel.send("go depth 10")
        ...
        channel.terminate()
    """

    def __init__(
        self,
        transport: asyncio.SubprocessTransport,
        exited: asyncio.Future[int | None],
    ) -> None:
        self._transport = transport
        self._exited = exited

    @classmethod
    async def spawn(
        cls,
        argv: Sequence[str],
        *,
        on_output: Callable[[bytes], None],
        diagnostic: TextIO | None = None,
        on_exit: Callable[[int | None], None] | None = None,
    ) -> ProcessChannel:
        """Launch the engine process.

        Args:
            argv: Executable and arguments.
            on_output: Called with every stdout chunk, in arrival order.
            diagnostic: Where stderr is copied (sys.stderr if not given).
            on_exit: Called once with the return code when the process exits.

        Raises:
            OSError: If the executable cannot be launched.
        """
        loop = asyncio.get_running_loop()
        exited: asyncio.Future[int | None] = loop.create_future()
        stream = diagnostic if diagnostic is not None else sys.stderr

        transport, _ = await loop.subprocess_exec(
            lambda: _EngineProtocol(on_output, stream, exited, on_exit),
            *argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        logger.debug(f"Spawned engine process {transport.get_pid()}: {' '.join(argv)}")
        return cls(transport, exited)

    @property
    def pid(self) -> int:
        return self._transport.get_pid()

    @property
    def returncode(self) -> int | None:
        """Exit code, or None while the process is running."""
        return self._transport.get_returncode()

    def is_alive(self) -> bool:
        """Check if the engine process is running."""
        return not self._exited.done() and self._transport.get_returncode() is None

    def send(self, command: str) -> None:
        """Write one command line to the engine."""
        stdin = self._transport.get_pipe_transport(0)
        if stdin is None or stdin.is_closing():
            logger.warning(f"Engine stdin closed, dropping command: {command}")
            return
        stdin.write((command + "\n").encode("utf-8"))  # type: ignore[attr-defined]
        logger.debug(f"Sent: {command}")

    def terminate(self) -> None:
        """Ask the engine to stop searching and exit.

        Does not wait for the process to go away; see wait_closed().
        """
        self.send("stop")
        self.send("quit")

    async def wait_closed(self) -> int | None:
        """Wait for the process to exit and return its exit code."""
        return await asyncio.shield(self._exited)

    def close(self) -> None:
        """Release the transport, killing the process if still running."""
        self._transport.close()
