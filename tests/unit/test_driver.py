"""Tests for driver process supervision."""

import os
from pathlib import Path

import httpx
import pytest

from wiredriver.driver import ChromeDriver, DriverKind, DriverState, FirefoxDriver
from wiredriver.driver.process import DriverProcess
from wiredriver.driver.profile import ProfileBuilder, parse_user_prefs
from wiredriver.models import ChromeDriverConfig, FirefoxDriverConfig
from wiredriver.protocol.errors import ConfigError, DriverTimeoutError, StateError
from wiredriver.protocol.transport import Transport

INTERVAL = 0.05


def chrome_config(tmp_path: Path, **kwargs: object) -> ChromeDriverConfig:
    values: dict[str, object] = {
        "port": 0,
        "log_path": str(tmp_path / "chromedriver.log"),
        "log_file": str(tmp_path / "chromedriver.out"),
        "start_timeout": 10.0,
        "stop_timeout": 3.0,
    }
    values.update(kwargs)
    return ChromeDriverConfig.model_validate(values)


@pytest.mark.asyncio
async def test_stop_before_start() -> None:
    """Test stopping an idle process is a state error."""
    process = DriverProcess("testdriver")

    with pytest.raises(StateError, match="not running"):
        await process.stop()
    assert process.state == DriverState.IDLE


@pytest.mark.asyncio
async def test_chromedriver_start_stop(fake_chromedriver: str, tmp_path: Path) -> None:
    """Test a full start/stop cycle with output captured in the log file."""
    driver = ChromeDriver(fake_chromedriver, chrome_config(tmp_path), poll_interval=INTERVAL)

    await driver.start()
    try:
        assert driver.kind == DriverKind.CHROME
        assert driver.state == DriverState.RUNNING
        assert driver.port
        assert driver.url == f"http://127.0.0.1:{driver.port}"
        assert driver.process.pid is not None
    finally:
        await driver.stop()

    assert driver.state == DriverState.IDLE
    output = (tmp_path / "chromedriver.out").read_text()
    assert f"Starting ChromeDriver on port {driver.port}" in output
    assert f"-port={driver.port}" in output
    assert "-http-threads=4" in output
    assert "shutting down" in output
    await driver.close()


@pytest.mark.asyncio
async def test_double_start(fake_chromedriver: str, tmp_path: Path) -> None:
    """Test a second start without stop is a state error and leaves the first running."""
    driver = ChromeDriver(fake_chromedriver, chrome_config(tmp_path), poll_interval=INTERVAL)

    await driver.start()
    try:
        with pytest.raises(StateError, match="already running"):
            await driver.start()
        assert driver.state == DriverState.RUNNING
    finally:
        await driver.stop()

    with pytest.raises(StateError):
        await driver.stop()


@pytest.mark.asyncio
async def test_restart_after_stop(fake_chromedriver: str, tmp_path: Path) -> None:
    """Test a stopped driver can be started again."""
    driver = ChromeDriver(fake_chromedriver, chrome_config(tmp_path), poll_interval=INTERVAL)

    async with driver:
        assert driver.state == DriverState.RUNNING
    assert driver.state == DriverState.IDLE

    async with driver:
        assert driver.state == DriverState.RUNNING
    assert driver.state == DriverState.IDLE


@pytest.mark.asyncio
async def test_start_timeout(silent_chromedriver: str, tmp_path: Path) -> None:
    """Test a driver that never listens fails to start and is cleaned up."""
    driver = ChromeDriver(
        silent_chromedriver,
        chrome_config(tmp_path, start_timeout=0.3),
        poll_interval=INTERVAL,
    )

    with pytest.raises(DriverTimeoutError, match="timeout expired"):
        await driver.start()

    assert driver.state == DriverState.IDLE
    assert driver.process.pid is None
    assert driver.url == ""


@pytest.mark.asyncio
async def test_missing_binary(tmp_path: Path) -> None:
    """Test launching a binary that does not exist."""
    driver = ChromeDriver(str(tmp_path / "nope"), chrome_config(tmp_path))

    with pytest.raises(ConfigError, match="chromedriver start failed"):
        await driver.start()
    assert driver.state == DriverState.IDLE


@pytest.mark.asyncio
async def test_unwritable_log_path(fake_chromedriver: str, tmp_path: Path) -> None:
    """Test the log path is checked before launching."""
    config = chrome_config(tmp_path, log_path=str(tmp_path / "missing" / "chromedriver.log"))
    driver = ChromeDriver(fake_chromedriver, config)

    with pytest.raises(ConfigError, match="unable to write in log path"):
        await driver.start()
    assert driver.state == DriverState.IDLE


def test_chromedriver_args(tmp_path: Path) -> None:
    """Test the chromedriver command line."""
    config = chrome_config(tmp_path, url_base="/wd/hub", threads=8)
    driver = ChromeDriver("/usr/bin/chromedriver", config)

    assert driver._build_args(9515) == [
        "/usr/bin/chromedriver",
        "-port=9515",
        f"-log-path={tmp_path / 'chromedriver.log'}",
        "-http-threads=8",
        "-url-base=/wd/hub",
    ]


@pytest.mark.asyncio
async def test_firefox_start_stop(
    fake_firefox: str, xpi_path: str, port_base: int, tmp_path: Path
) -> None:
    """Test firefox gets a profile with the allocated port, deleted on stop."""
    config = FirefoxDriverConfig(
        start_timeout=10.0,
        stop_timeout=3.0,
        log_file=str(tmp_path / "firefox.out"),
        log_dir=str(tmp_path / "logs"),
    )
    driver = FirefoxDriver(
        fake_firefox, xpi_path, config, poll_interval=INTERVAL, port_base=port_base
    )

    await driver.start()
    try:
        profile = Path(driver.profile_path or "")
        assert driver.kind == DriverKind.FIREFOX
        assert driver.port is not None and driver.port >= port_base
        assert driver.url == f"http://127.0.0.1:{driver.port}/hub"
        assert (profile / "extensions" / "fxdriver@googlecode.com" / "install.rdf").is_file()

        prefs = parse_user_prefs((profile / "user.js").read_text())
        assert prefs["webdriver_firefox_port"] == driver.port
        assert prefs["webdriver.log.driver.file"] == os.path.join(tmp_path / "logs", "driver.log")
        assert prefs["browser.startup.homepage"] == "about:blank"
    finally:
        await driver.close()

    assert not profile.exists()
    assert driver.profile_path is None
    assert f"firefox listening on {driver.port}" in (tmp_path / "firefox.out").read_text()


@pytest.mark.asyncio
async def test_firefox_keeps_profile(
    fake_firefox: str, xpi_path: str, port_base: int, tmp_path: Path
) -> None:
    """Test the profile survives stop when deletion is disabled."""
    config = FirefoxDriverConfig(
        start_timeout=10.0,
        stop_timeout=3.0,
        log_file=str(tmp_path / "firefox.out"),
        prefs={"browser.startup.homepage": "about:blank"},
        delete_profile_on_close=False,
    )
    driver = FirefoxDriver(
        fake_firefox, xpi_path, config, poll_interval=INTERVAL, port_base=port_base
    )

    async with driver:
        profile = Path(driver.profile_path or "")

    assert profile.is_dir()
    prefs = parse_user_prefs((profile / "user.js").read_text())
    assert set(prefs) == {"browser.startup.homepage", "webdriver_firefox_port"}


@pytest.mark.asyncio
async def test_firefox_bad_pref_aborts_start(
    fake_firefox: str, xpi_path: str, port_base: int
) -> None:
    """Test a profile failure leaves the driver idle."""
    config = FirefoxDriverConfig(prefs={"dom.max_script_run_time": 1.5})
    driver = FirefoxDriver(fake_firefox, xpi_path, config, port_base=port_base)

    with pytest.raises(TypeError, match="dom.max_script_run_time"):
        await driver.start()
    assert driver.state == DriverState.IDLE
    assert driver.profile_path is None


@pytest.mark.asyncio
async def test_new_session_follows_redirect() -> None:
    """Test session creation through the POST /session redirect."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST":
            return httpx.Response(303, headers={"Location": "http://driver/session/abc"})
        return httpx.Response(
            200, json={"sessionId": "abc", "status": 0, "value": {"browserName": "chrome"}}
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    driver = ChromeDriver("chromedriver", transport=Transport("http://driver", client=client))

    session = await driver.new_session({"platform": "LINUX"})

    assert session.id == "abc"
    assert session.get_capabilities() == {"browserName": "chrome"}
    assert requests[0].url.path == "/session"
    assert requests[1].method == "GET"
    await client.aclose()


@pytest.mark.asyncio
async def test_status_and_sessions() -> None:
    """Test server status and session listing."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/status":
            value: object = {"build": {"version": "2.45"}, "os": {"name": "Linux"}}
        else:
            value = [{"id": "s1", "capabilities": {"browserName": "chrome"}}, {"id": "s2"}]
        return httpx.Response(200, json={"sessionId": None, "status": 0, "value": value})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    driver = ChromeDriver("chromedriver", transport=Transport("http://driver", client=client))

    status = await driver.status()
    sessions = await driver.sessions()

    assert status.build.version == "2.45"
    assert [s.id for s in sessions] == ["s1", "s2"]
    assert sessions[1].capabilities == {}
    assert sessions[0].transport is driver.transport
    await client.aclose()


@pytest.mark.asyncio
async def test_firefox_missing_binary(xpi_path: str, port_base: int, tmp_path: Path) -> None:
    """Test a failed launch removes the profile it built."""
    profiles = tmp_path / "profiles"
    profiles.mkdir()
    driver = FirefoxDriver(
        str(tmp_path / "no-firefox"),
        xpi_path,
        FirefoxDriverConfig(prefs={}),
        port_base=port_base,
        profile_builder=ProfileBuilder(base_dir=str(profiles)),
    )

    with pytest.raises(ConfigError, match="firefox start failed"):
        await driver.start()

    assert driver.state == DriverState.IDLE
    assert list(profiles.iterdir()) == []
