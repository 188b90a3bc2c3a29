"""Driver process supervision."""

from wiredriver.driver.base import DriverKind, LaunchSpec, WebDriver
from wiredriver.driver.chrome import ChromeDriver
from wiredriver.driver.firefox import FirefoxDriver
from wiredriver.driver.ports import PortAllocator, get_free_port, wait_for_port
from wiredriver.driver.process import DriverProcess, DriverState
from wiredriver.driver.profile import ProfileBuilder, default_prefs, parse_user_prefs

__all__ = [
    "DriverKind",
    "LaunchSpec",
    "WebDriver",
    "ChromeDriver",
    "FirefoxDriver",
    "PortAllocator",
    "get_free_port",
    "wait_for_port",
    "DriverProcess",
    "DriverState",
    "ProfileBuilder",
    "default_prefs",
    "parse_user_prefs",
]
