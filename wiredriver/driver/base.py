"""Driver lifecycle shared by every driver kind."""

from contextlib import AbstractAsyncContextManager, nullcontext
from dataclasses import dataclass, field
from enum import Enum
from types import TracebackType
from typing import Any

import structlog
from pydantic import TypeAdapter

from wiredriver.commands.session import Session
from wiredriver.config import settings
from wiredriver.driver.ports import wait_for_port
from wiredriver.driver.process import DriverProcess, DriverState
from wiredriver.models import Capabilities, SessionInfo, Status
from wiredriver.protocol.transport import Transport
from wiredriver.utils.logging import get_logger


class DriverKind(str, Enum):
    """The families of driver processes."""

    CHROME = "chrome"
    FIREFOX = "firefox"


@dataclass
class LaunchSpec:
    """Everything needed to launch and reach a driver process."""

    argv: list[str]
    port: int
    url: str
    env: dict[str, str] = field(default_factory=dict)
    log_file: str | None = None


_session_list = TypeAdapter(list[SessionInfo])


class WebDriver:
    """
    A driver process plus the transport used to talk to it.

    Subclasses provide the kind-specific launch details through _prepare
    and release kind-specific resources in _cleanup.
    """

    kind: DriverKind
    process_name: str

    def __init__(
        self,
        start_timeout: float,
        stop_timeout: float,
        transport: Transport | None = None,
        poll_interval: float | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._logger = logger or get_logger(__name__)
        self.start_timeout = start_timeout
        self.poll_interval = settings.poll_interval if poll_interval is None else poll_interval
        self.transport = transport or Transport(logger=self._logger)
        self.process = DriverProcess(
            self.process_name,
            stop_timeout=stop_timeout,
            logger=self._logger,
        )
        self.port: int | None = None

    @property
    def state(self) -> DriverState:
        return self.process.state

    @property
    def url(self) -> str:
        return self.transport.url

    def _start_guard(self) -> AbstractAsyncContextManager[Any]:
        """Context held for the whole start sequence."""
        return nullcontext()

    async def _prepare(self) -> LaunchSpec:
        raise NotImplementedError

    def _cleanup(self) -> None:
        """Release kind-specific resources after the process is gone."""
        pass

    async def start(self) -> None:
        """
        Launch the driver and wait until it accepts connections.

        Raises:
            StateError: If the driver is already running
            ConfigError: If the driver cannot be prepared or launched
            DriverTimeoutError: If the driver does not listen within start_timeout
        """
        self.process.begin()
        try:
            async with self._start_guard():
                spec = await self._prepare()
                self.port = spec.port
                await self.process.launch(spec.argv, env=spec.env, log_file=spec.log_file)
                await wait_for_port(
                    spec.port,
                    self.start_timeout,
                    interval=self.poll_interval,
                    logger=self._logger,
                )
        except BaseException:
            if self.process.is_running:
                await self.process.stop()
            self.process.abort()
            self._cleanup()
            raise

        self.transport.url = spec.url
        self._logger.info(
            "Driver started",
            kind=self.kind.value,
            port=spec.port,
            url=spec.url,
            pid=self.process.pid,
        )

    async def stop(self) -> None:
        """
        Stop the driver process.

        Raises:
            StateError: If the driver is not running
        """
        try:
            await self.process.stop()
        finally:
            self._cleanup()
        self._logger.info("Driver stopped", kind=self.kind.value, port=self.port)

    async def close(self) -> None:
        """Stop the driver if it runs and close the transport."""
        try:
            if self.process.is_running:
                await self.stop()
        finally:
            await self.transport.aclose()

    async def __aenter__(self) -> "WebDriver":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def status(self) -> Status:
        """Query the server's status."""
        _, value = await self.transport.do("GET", "/status")
        return Status.model_validate(value or {})

    async def new_session(
        self,
        desired: Capabilities | None = None,
        required: Capabilities | None = None,
    ) -> Session:
        """
        Create a new session.

        The server creates the session that most closely matches the desired
        and required capabilities; required capabilities must all be met.
        """
        body = {
            "desiredCapabilities": desired or {},
            "requiredCapabilities": required or {},
        }
        session_id, value = await self.transport.do("POST", "/session", body=body)
        capabilities = value if isinstance(value, dict) else {}
        self._logger.info("Session created", session_id=session_id)
        return Session(self.transport, session_id, capabilities)

    async def sessions(self) -> list[Session]:
        """Return the currently active sessions."""
        _, value = await self.transport.do("GET", "/sessions")
        return [
            Session(self.transport, info.id, info.capabilities or {})
            for info in _session_list.validate_python(value or [])
        ]
