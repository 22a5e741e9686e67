"""Supervision of the application dev server.

The server is started in its own process group so that SIGTERM/SIGKILL reach
the whole tree (``npm run dev`` forks node children that would otherwise keep
the port bound after the smoke run).
"""

import asyncio
import logging
import os
import re
import signal
import sys
from collections import deque
from collections.abc import Mapping, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_LOG_CAPACITY = 2000
DEFAULT_GRACE_S = 0.5
DRAIN_TIMEOUT_S = 5.0

_LINE_SPLIT = re.compile(r"\r?\n")


class LogRingBuffer:
    """Bounded buffer of non-blank output lines; oldest lines are evicted first."""

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY):
        self._lines: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._lines.maxlen or 0

    def push(self, chunk: bytes | str | None) -> None:
        if chunk is None:
            return
        text = chunk.decode("utf-8", errors="replace") if isinstance(chunk, bytes) else str(chunk)
        for line in _LINE_SPLIT.split(text):
            if line.strip():
                self._lines.append(line)

    def tail(self, n: int) -> list[str]:
        if n <= 0:
            return []
        return list(self._lines)[-n:]

    def __len__(self) -> int:
        return len(self._lines)


class ServerHandle:
    """A running supervised server. Use as an async context manager or call stop()."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        log: LogRingBuffer,
        grace_s: float = DEFAULT_GRACE_S,
    ):
        self.process = process
        self.log = log
        self.grace_s = grace_s
        self._readers = [
            asyncio.create_task(self._pump(process.stdout)),
            asyncio.create_task(self._pump(process.stderr)),
        ]
        self._watcher = asyncio.create_task(self._watch_exit())
        self._stopped = False

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def is_running(self) -> bool:
        return self.process.returncode is None

    def tail(self, n: int) -> list[str]:
        return self.log.tail(n)

    async def _pump(self, stream: asyncio.StreamReader | None) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(4096)
            if not chunk:
                break
            self.log.push(chunk)

    async def _watch_exit(self) -> None:
        code = await self.process.wait()
        # Let the pumps flush what the child wrote before exiting.
        await asyncio.gather(*self._readers, return_exceptions=True)
        self.log.push(f"(dev server exited with code {code})")
        logger.info(f"Dev server (pid {self.pid}) exited with code {code}")

    def _signal(self, sig: signal.Signals) -> None:
        try:
            if sys.platform != "win32":
                # Session leader: its pid is the process group id.
                os.killpg(self.pid, sig)
            elif self.process.returncode is None:
                if sig == signal.SIGTERM:
                    self.process.terminate()
                else:
                    self.process.kill()
        except ProcessLookupError:
            pass

    async def stop(self) -> None:
        """Terminate gracefully, then force-kill after the grace period."""
        if self._stopped:
            return
        self._stopped = True

        logger.info(f"Stopping dev server (pid {self.pid})")
        self._signal(signal.SIGTERM)
        try:
            await asyncio.wait_for(asyncio.shield(self._watcher), timeout=self.grace_s)
        except asyncio.TimeoutError:
            logger.warning(f"Dev server still alive {self.grace_s}s after SIGTERM, sending SIGKILL")
            self._signal(getattr(signal, "SIGKILL", signal.SIGTERM))

        try:
            await asyncio.wait_for(self._watcher, timeout=DRAIN_TIMEOUT_S)
        except asyncio.TimeoutError:
            # A process outside the group still holds the pipes open.
            logger.warning("Dev server output did not close after SIGKILL, abandoning readers")
            for reader in self._readers:
                reader.cancel()

    async def __aenter__(self) -> "ServerHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


class ServerSupervisor:
    """Spawns the application server with a forced port and development mode."""

    def __init__(
        self,
        command: Sequence[str],
        log_capacity: int = DEFAULT_LOG_CAPACITY,
        grace_s: float = DEFAULT_GRACE_S,
    ):
        self.command = list(command)
        self.log_capacity = log_capacity
        self.grace_s = grace_s

    async def start_server(
        self,
        cwd: Path,
        env: Mapping[str, str],
        port: int,
        skip: bool = False,
    ) -> ServerHandle | None:
        """Spawn the server, or return None when an external instance is used."""
        if skip:
            logger.info("SKIP_SERVER set, assuming an externally managed server")
            return None

        child_env = {
            **os.environ,
            **env,
            "NODE_ENV": "development",
            "PORT": str(port),
        }
        logger.info(f"Starting dev server: {' '.join(self.command)} (port {port})")
        process = await asyncio.create_subprocess_exec(
            *self.command,
            cwd=str(cwd),
            env=child_env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=sys.platform != "win32",
        )
        return ServerHandle(process, LogRingBuffer(self.log_capacity), grace_s=self.grace_s)
