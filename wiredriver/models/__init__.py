"""Data models for wiredriver."""

from wiredriver.models.driver import ChromeDriverConfig, FirefoxDriverConfig
from wiredriver.models.protocol import (
    Build,
    ElementReference,
    Envelope,
    ErrorDetail,
    OSInfo,
    SessionInfo,
    StackFrame,
    Status,
)
from wiredriver.models.session import (
    Capabilities,
    Cookie,
    FindElementStrategy,
    GeoLocation,
    HTML5CacheStatus,
    LogEntry,
    LogLevel,
    MouseButton,
    Position,
    ScreenOrientation,
    Size,
)

__all__ = [
    "ChromeDriverConfig",
    "FirefoxDriverConfig",
    "Build",
    "ElementReference",
    "Envelope",
    "ErrorDetail",
    "OSInfo",
    "SessionInfo",
    "StackFrame",
    "Status",
    "Capabilities",
    "Cookie",
    "FindElementStrategy",
    "GeoLocation",
    "HTML5CacheStatus",
    "LogEntry",
    "LogLevel",
    "MouseButton",
    "Position",
    "ScreenOrientation",
    "Size",
]
