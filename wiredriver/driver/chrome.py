"""chromedriver process management."""

import os

import structlog

from wiredriver.driver.base import DriverKind, LaunchSpec, WebDriver
from wiredriver.driver.ports import LOOPBACK, get_free_port
from wiredriver.models import ChromeDriverConfig
from wiredriver.protocol.errors import ConfigError
from wiredriver.protocol.transport import Transport

START_ERROR = "chromedriver start failed: "


class ChromeDriver(WebDriver):
    """Drives Chrome through a standalone chromedriver binary."""

    kind = DriverKind.CHROME
    process_name = "chromedriver"

    def __init__(
        self,
        path: str,
        config: ChromeDriverConfig | None = None,
        transport: Transport | None = None,
        poll_interval: float | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.path = path
        self.config = config or ChromeDriverConfig()
        super().__init__(
            start_timeout=self.config.start_timeout,
            stop_timeout=self.config.stop_timeout,
            transport=transport,
            poll_interval=poll_interval,
            logger=logger,
        )

    def _build_args(self, port: int) -> list[str]:
        """Build chromedriver command line arguments."""
        args = [
            self.path,
            f"-port={port}",
            f"-log-path={self.config.log_path}",
            f"-http-threads={self.config.threads}",
        ]
        if self.config.url_base:
            args.append(f"-url-base={self.config.url_base}")
        return args

    def _check_log_path(self) -> None:
        if not self.config.log_path:
            return
        try:
            fd = os.open(self.config.log_path, os.O_WRONLY | os.O_CREAT, 0o664)
        except OSError as e:
            raise ConfigError(START_ERROR + f"unable to write in log path: {e}") from e
        os.close(fd)

    async def _prepare(self) -> LaunchSpec:
        self._check_log_path()
        port = self.config.port or get_free_port()
        return LaunchSpec(
            argv=self._build_args(port),
            port=port,
            url=f"http://{LOOPBACK}:{port}{self.config.url_base}",
            env=self.config.env,
            log_file=self.config.log_file,
        )
