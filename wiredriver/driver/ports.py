"""Port allocation and readiness probing for driver processes."""

import asyncio
import socket
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from wiredriver.config import settings
from wiredriver.protocol.errors import DriverTimeoutError
from wiredriver.utils.logging import get_logger

LOOPBACK = "127.0.0.1"
MAX_PORT = 65535


def _listen(port: int) -> socket.socket:
    return socket.create_server((LOOPBACK, port))


def get_free_port() -> int:
    """Get a free port by binding to port 0."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((LOOPBACK, 0))
        port: int = s.getsockname()[1]
        return port


class PortAllocator:
    """
    Resolves a loopback port for a driver process.

    Concurrent instances are serialized through an advisory lock: a listener
    held on a fixed port (conventionally base - 1). The port found by
    find_free_port is released before returning, so a child may still lose
    the race for it.
    """

    def __init__(
        self,
        interval: float | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.interval = settings.poll_interval if interval is None else interval
        self._logger = logger or get_logger(__name__)

    @asynccontextmanager
    async def lock(self, port: int, timeout: float) -> AsyncIterator[None]:
        """
        Hold the advisory lock on a port for the duration of the block.

        Args:
            port: Port used as mutex
            timeout: Seconds to wait for the lock

        Raises:
            DriverTimeoutError: If the lock is not acquired in time
        """
        loop = asyncio.get_running_loop()
        start = loop.time()
        while True:
            try:
                listener = _listen(port)
                break
            except OSError:
                pass
            if loop.time() - start > timeout:
                raise DriverTimeoutError("timeout expired trying to lock mutex port")
            self._logger.debug("Port lock busy, retrying", port=port)
            await asyncio.sleep(self.interval)

        self._logger.debug("Acquired port lock", port=port)
        try:
            yield
        finally:
            listener.close()
            self._logger.debug("Released port lock", port=port)

    def find_free_port(self, base: int) -> int:
        """
        Return the first port >= base that can be bound.

        Args:
            base: Lowest acceptable port

        Raises:
            OSError: If no port up to 65535 can be bound
        """
        for port in range(base, MAX_PORT + 1):
            try:
                listener = _listen(port)
            except OSError:
                continue
            listener.close()
            self._logger.debug("Found free port", base=base, port=port)
            return port
        raise OSError(f"no free port at or above {base}")


async def wait_for_port(
    port: int,
    timeout: float,
    interval: float | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> None:
    """
    Wait until something accepts TCP connections on a loopback port.

    Args:
        port: Port to probe
        timeout: Maximum wait time in seconds
        interval: Delay between attempts

    Raises:
        DriverTimeoutError: If nothing listens before the timeout
    """
    logger = logger or get_logger(__name__)
    interval = settings.poll_interval if interval is None else interval
    loop = asyncio.get_running_loop()
    start = loop.time()

    while True:
        remaining = max(timeout - (loop.time() - start), 0.0)
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(LOOPBACK, port), timeout=remaining
            )
        except (OSError, TimeoutError):
            pass
        else:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
            logger.debug("Port is accepting connections", port=port)
            return

        if loop.time() - start > timeout:
            raise DriverTimeoutError("start failed: timeout expired")
        await asyncio.sleep(interval)
