"""Firefox process management through the WebDriver extension."""

import shutil
from contextlib import AbstractAsyncContextManager, nullcontext
from typing import Any

import structlog

from wiredriver.config import settings
from wiredriver.driver.base import DriverKind, LaunchSpec, WebDriver
from wiredriver.driver.ports import LOOPBACK, PortAllocator
from wiredriver.driver.profile import ProfileBuilder, default_prefs, log_dir_prefs
from wiredriver.models import FirefoxDriverConfig
from wiredriver.protocol.transport import Transport

PORT_PREF = "webdriver_firefox_port"


class FirefoxDriver(WebDriver):
    """
    Drives Firefox through the WebDriver extension (webdriver.xpi).

    Every start builds a temporary profile with the extension installed.
    When no port is configured, the first free port from the base port
    upwards is used; base port - 1 is held as a mutex while starting so
    concurrent instances do not pick the same port.
    """

    kind = DriverKind.FIREFOX
    process_name = "firefox"

    def __init__(
        self,
        firefox_path: str,
        xpi_path: str,
        config: FirefoxDriverConfig | None = None,
        transport: Transport | None = None,
        poll_interval: float | None = None,
        port_base: int | None = None,
        profile_builder: ProfileBuilder | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.firefox_path = firefox_path
        self.xpi_path = xpi_path
        self.config = config or FirefoxDriverConfig()
        self.prefs: dict[str, Any] = (
            dict(self.config.prefs) if self.config.prefs is not None else default_prefs()
        )
        self.port_base = settings.firefox_port_base if port_base is None else port_base
        self.profile_path: str | None = None
        super().__init__(
            start_timeout=self.config.start_timeout,
            stop_timeout=self.config.stop_timeout,
            transport=transport,
            poll_interval=poll_interval,
            logger=logger,
        )
        self._ports = PortAllocator(interval=self.poll_interval, logger=self._logger)
        self._profiles = profile_builder or ProfileBuilder(logger=self._logger)
        if self.config.log_dir:
            self.set_log_dir(self.config.log_dir)

    def set_log_dir(self, path: str) -> None:
        """Send the extension's logs (jsconsole, driver, profiler, browser) to path."""
        self.prefs.update(log_dir_prefs(path))

    def _start_guard(self) -> AbstractAsyncContextManager[Any]:
        if self.config.port:
            return nullcontext()
        return self._ports.lock(self.port_base - 1, self.config.lock_port_timeout)

    async def _prepare(self) -> LaunchSpec:
        port = self.config.port or self._ports.find_free_port(self.port_base)
        prefs = dict(self.prefs)
        prefs[PORT_PREF] = port
        self.profile_path = self._profiles.build(self.xpi_path, prefs)

        return LaunchSpec(
            argv=[self.firefox_path, "-no-remote", "-profile", self.profile_path],
            port=port,
            url=f"http://{LOOPBACK}:{port}/hub",
            env=self.config.env,
            log_file=self.config.log_file,
        )

    def _cleanup(self) -> None:
        if self.profile_path is None or not self.config.delete_profile_on_close:
            return
        shutil.rmtree(self.profile_path, ignore_errors=True)
        self._logger.debug("Cleaned up profile dir", path=self.profile_path)
        self.profile_path = None
