"""Driver process lifecycle management."""

import asyncio
import os
import signal
import sys
from enum import Enum
from typing import IO

import structlog

from wiredriver.config import settings
from wiredriver.protocol.errors import ConfigError, StateError
from wiredriver.utils.logging import get_logger

PUMP_CHUNK_SIZE = 64 * 1024


class DriverState(str, Enum):
    """Lifecycle states of a driver process."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class DriverProcess:
    """
    Owns one external driver process and the copies of its output.

    stdout and stderr are pumped by two asyncio tasks into a log file
    (truncated on start) or into this process's own standard streams.
    """

    def __init__(
        self,
        name: str,
        stop_timeout: float | None = None,
        pump_join_timeout: float | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.name = name
        self.stop_timeout = settings.stop_timeout if stop_timeout is None else stop_timeout
        self.pump_join_timeout = (
            settings.pump_join_timeout if pump_join_timeout is None else pump_join_timeout
        )
        self.state = DriverState.IDLE
        self._logger = logger or get_logger(__name__)
        self._process: asyncio.subprocess.Process | None = None
        self._log_file: IO[bytes] | None = None
        self._pumps: list[asyncio.Task[None]] = []

    @property
    def pid(self) -> int | None:
        """PID of the child, None when not running."""
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> int | None:
        """Exit code of the child once it has exited."""
        return self._process.returncode if self._process else None

    @property
    def is_running(self) -> bool:
        return self.state == DriverState.RUNNING

    def begin(self) -> None:
        """
        Enter the STARTING state.

        Raises:
            StateError: If the process is not idle
        """
        if self.state != DriverState.IDLE:
            raise StateError(f"{self.name} start failed: {self.name} already running")
        self.state = DriverState.STARTING

    def abort(self) -> None:
        """Return to IDLE after a start sequence failed before launch."""
        if self.state == DriverState.STARTING:
            self.state = DriverState.IDLE

    async def launch(
        self,
        argv: list[str],
        env: dict[str, str] | None = None,
        log_file: str | None = None,
    ) -> None:
        """
        Launch the child process. Must be called in the STARTING state.

        Args:
            argv: Executable followed by its arguments
            env: Variables added to this process's environment
            log_file: File receiving the child's stdout/stderr, None for the terminal

        Raises:
            StateError: If begin() was not called
            ConfigError: If the executable or the log file cannot be opened
        """
        if self.state != DriverState.STARTING:
            raise StateError(f"{self.name} start failed: not in starting state")

        error_prefix = f"{self.name} start failed: "
        child_env = os.environ.copy()
        if env:
            child_env.update(env)

        self._logger.info("Launching driver", name=self.name, argv=argv, log_file=log_file)

        try:
            self._process = await asyncio.create_subprocess_exec(
                *argv,
                env=child_env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self.state = DriverState.IDLE
            raise ConfigError(error_prefix + str(e)) from e

        self.state = DriverState.RUNNING

        if log_file:
            try:
                fd = os.open(log_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o640)
                self._log_file = os.fdopen(fd, "wb")
            except OSError as e:
                await self.stop()
                raise ConfigError(error_prefix + f"unable to open log file: {e}") from e
            stdout_sink: IO[bytes] = self._log_file
            stderr_sink: IO[bytes] = self._log_file
        else:
            stdout_sink = sys.stdout.buffer
            stderr_sink = sys.stderr.buffer

        assert self._process.stdout is not None and self._process.stderr is not None
        self._pumps = [
            asyncio.create_task(self._pump(self._process.stdout, stdout_sink)),
            asyncio.create_task(self._pump(self._process.stderr, stderr_sink)),
        ]

        self._logger.info("Driver launched", name=self.name, pid=self._process.pid)

    async def _pump(self, stream: asyncio.StreamReader, sink: IO[bytes]) -> None:
        """Copy a child stream into sink until EOF."""
        try:
            while True:
                chunk = await stream.read(PUMP_CHUNK_SIZE)
                if not chunk:
                    break
                sink.write(chunk)
                sink.flush()
        except (OSError, ValueError) as e:
            # Output copying is best-effort
            self._logger.debug("Output copy stopped", name=self.name, error=str(e))

    async def stop(self) -> None:
        """
        Stop the child process and release its resources.

        Signal delivery and log file errors are logged, not raised.

        Raises:
            StateError: If the process is not running
        """
        if self.state != DriverState.RUNNING or self._process is None:
            raise StateError(f"stop failed: {self.name} not running")

        self.state = DriverState.STOPPING
        process = self._process
        self._logger.info("Stopping driver", name=self.name, pid=process.pid)

        try:
            await self._terminate(process)
            await self._join_pumps()
            if self._log_file is not None:
                try:
                    self._log_file.close()
                except OSError as e:
                    self._logger.warning(
                        "Error closing driver log file", name=self.name, error=str(e)
                    )
        finally:
            self._log_file = None
            self._process = None
            self._pumps = []
            self.state = DriverState.IDLE

        self._logger.info("Driver stopped", name=self.name, returncode=process.returncode)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            self._logger.debug(
                "Driver already exited", name=self.name, returncode=process.returncode
            )
            return

        try:
            process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            self._logger.debug("Driver process already terminated", pid=process.pid)
            return
        except OSError as e:
            self._logger.warning("Error signalling driver", name=self.name, error=str(e))

        try:
            await asyncio.wait_for(process.wait(), timeout=self.stop_timeout)
        except TimeoutError:
            self._logger.warning("Driver required force kill", name=self.name, pid=process.pid)
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

    async def _join_pumps(self) -> None:
        if not self._pumps:
            return
        _, pending = await asyncio.wait(self._pumps, timeout=self.pump_join_timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self._logger.warning(
                "Driver output copy did not finish", name=self.name, pending=len(pending)
            )
