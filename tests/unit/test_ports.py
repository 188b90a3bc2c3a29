"""Tests for port allocation and readiness waiting."""

import asyncio
import socket
import time

import pytest

from wiredriver.driver import ports
from wiredriver.driver.ports import LOOPBACK, PortAllocator, get_free_port, wait_for_port
from wiredriver.protocol.errors import DriverTimeoutError

INTERVAL = 0.05


def listen(port: int) -> socket.socket:
    return socket.create_server((LOOPBACK, port))


def test_get_free_port() -> None:
    """Test the OS hands out a bindable port."""
    port = get_free_port()

    assert 0 < port <= 65535
    listen(port).close()


def test_find_free_port_not_below_base() -> None:
    """Test the allocator never returns a port below the base."""
    allocator = PortAllocator(interval=INTERVAL)
    base = get_free_port()

    assert allocator.find_free_port(base) >= base


def test_find_free_port_skips_bound_ports() -> None:
    """Test ports with a listener are skipped."""
    allocator = PortAllocator(interval=INTERVAL)
    first = allocator.find_free_port(get_free_port())

    with listen(first):
        second = allocator.find_free_port(first)
        assert second > first


@pytest.mark.asyncio
async def test_serialized_allocations_differ() -> None:
    """Test allocations made under the lock, each bound by its owner, never repeat."""
    allocator = PortAllocator(interval=INTERVAL)
    lock_port = get_free_port()
    base = lock_port + 1
    owners: list[socket.socket] = []
    try:
        for _ in range(3):
            async with allocator.lock(lock_port, timeout=1.0):
                port = allocator.find_free_port(base)
                owners.append(listen(port))
        allocated = [s.getsockname()[1] for s in owners]
        assert len(set(allocated)) == 3
        assert min(allocated) >= base
    finally:
        for s in owners:
            s.close()


@pytest.mark.asyncio
async def test_lock_timeout() -> None:
    """Test waiting for a held lock fails after the timeout."""
    allocator = PortAllocator(interval=INTERVAL)
    lock_port = get_free_port()

    with listen(lock_port):
        with pytest.raises(DriverTimeoutError, match="lock mutex port"):
            async with allocator.lock(lock_port, timeout=0.2):
                pass


@pytest.mark.asyncio
async def test_lock_serializes_holders() -> None:
    """Test a second holder waits until the first releases the lock."""
    allocator = PortAllocator(interval=INTERVAL)
    lock_port = get_free_port()
    events: list[str] = []

    async def hold(name: str, duration: float) -> None:
        async with allocator.lock(lock_port, timeout=2.0):
            events.append(f"{name}-in")
            await asyncio.sleep(duration)
            events.append(f"{name}-out")

    first = asyncio.create_task(hold("a", 0.2))
    await asyncio.sleep(0.05)
    await asyncio.gather(first, hold("b", 0))

    assert events == ["a-in", "a-out", "b-in", "b-out"]


@pytest.mark.asyncio
async def test_wait_times_out_on_unbound_port() -> None:
    """Test waiting on a port nobody listens on."""
    port = get_free_port()
    start = time.monotonic()

    with pytest.raises(DriverTimeoutError, match="start failed: timeout expired"):
        await wait_for_port(port, timeout=0.3, interval=INTERVAL)

    elapsed = time.monotonic() - start
    assert 0.3 <= elapsed < 0.3 + 4 * INTERVAL


@pytest.mark.asyncio
async def test_wait_bounds_a_hanging_connect(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test a connect attempt that never completes cannot outlast the timeout."""

    async def hang(host: str, port: int) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        await asyncio.sleep(3600)
        raise AssertionError("unreachable")

    monkeypatch.setattr(ports.asyncio, "open_connection", hang)
    start = time.monotonic()

    with pytest.raises(DriverTimeoutError, match="start failed: timeout expired"):
        await wait_for_port(get_free_port(), timeout=0.3, interval=INTERVAL)

    elapsed = time.monotonic() - start
    assert elapsed < 0.3 + 4 * INTERVAL


@pytest.mark.asyncio
async def test_wait_succeeds_when_listener_appears() -> None:
    """Test waiting succeeds shortly after a listener shows up."""
    port = get_free_port()
    server: asyncio.Server | None = None

    async def open_later() -> float:
        nonlocal server
        await asyncio.sleep(0.2)
        server = await asyncio.start_server(lambda r, w: w.close(), LOOPBACK, port)
        return time.monotonic()

    opener = asyncio.create_task(open_later())
    try:
        await wait_for_port(port, timeout=5.0, interval=INTERVAL)
        done = time.monotonic()
        opened = await opener
        assert done - opened < 4 * INTERVAL
    finally:
        if server is not None:
            server.close()
            await server.wait_closed()
