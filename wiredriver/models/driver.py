"""Per-instance driver configuration models."""

from typing import Any

from pydantic import BaseModel, Field

from wiredriver.config import settings


class ChromeDriverConfig(BaseModel):
    """Configuration for a standalone chromedriver instance."""

    port: int = Field(
        default_factory=lambda: settings.chromedriver_port,
        ge=0,
        le=65535,
        description="Port chromedriver listens on, 0 picks a free one",
    )
    url_base: str = Field(
        default_factory=lambda: settings.chromedriver_url_base,
        description="URL path prefix for all incoming requests",
    )
    threads: int = Field(
        default_factory=lambda: settings.chromedriver_threads,
        ge=1,
        description="Number of threads handling HTTP requests",
    )
    log_path: str = Field(
        default_factory=lambda: settings.chromedriver_log_path,
        description="Path of the chromedriver server log",
    )
    log_file: str | None = Field(
        default=None,
        description="File receiving chromedriver stdout/stderr, None sends it to the terminal",
    )
    start_timeout: float = Field(default_factory=lambda: settings.start_timeout, gt=0)
    stop_timeout: float = Field(default_factory=lambda: settings.stop_timeout, gt=0)
    env: dict[str, str] = Field(default_factory=dict)


class FirefoxDriverConfig(BaseModel):
    """Configuration for a Firefox instance driven through the WebDriver extension."""

    port: int = Field(
        default=0,
        ge=0,
        le=65535,
        description="Port the extension listens on, 0 allocates one behind the port lock",
    )
    lock_port_timeout: float = Field(
        default_factory=lambda: settings.lock_port_timeout,
        gt=0,
        description="How long to wait for the port-1 lock",
    )
    start_timeout: float = Field(default_factory=lambda: settings.start_timeout, gt=0)
    stop_timeout: float = Field(default_factory=lambda: settings.stop_timeout, gt=0)
    log_file: str | None = Field(
        default=None,
        description="File receiving firefox stdout/stderr, None sends it to the terminal",
    )
    prefs: dict[str, Any] | None = Field(
        default=None,
        description="Firefox preferences, None uses the default table",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory receiving the extension logs (jsconsole, driver, profiler, browser)",
    )
    delete_profile_on_close: bool = True
    env: dict[str, str] = Field(default_factory=dict)
