"""Session command payload models."""

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, Field

Capabilities = dict[str, Any]


class FindElementStrategy(str, Enum):
    """Locator strategies understood by the server."""

    CLASS_NAME = "class name"
    CSS_SELECTOR = "css selector"
    ID = "id"
    NAME = "name"
    LINK_TEXT = "link text"
    PARTIAL_LINK_TEXT = "partial link text"
    TAG_NAME = "tag name"
    XPATH = "xpath"


class LogLevel(str, Enum):
    """Levels used by the server-side log facility."""

    ALL = "ALL"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    SEVERE = "SEVERE"
    OFF = "OFF"


class HTML5CacheStatus(IntEnum):
    """Status of the HTML5 application cache."""

    UNCACHED = 0
    IDLE = 1
    CHECKING = 2
    DOWNLOADING = 3
    UPDATE_READY = 4
    OBSOLETE = 5


class MouseButton(IntEnum):
    """Mouse buttons for click/buttondown/buttonup."""

    LEFT = 0
    MIDDLE = 1
    RIGHT = 2


class ScreenOrientation(str, Enum):
    """Screen orientation of a mobile session."""

    LANDSCAPE = "LANDSCAPE"
    PORTRAIT = "PORTRAIT"


class Size(BaseModel):
    """Width and height in pixels."""

    width: int = 0
    height: int = 0


class Position(BaseModel):
    """X/Y coordinates in pixels."""

    x: int = 0
    y: int = 0


class Cookie(BaseModel):
    """A browser cookie."""

    name: str
    value: str = ""
    path: str | None = None
    domain: str | None = None
    secure: bool = False
    expiry: int | None = None


class GeoLocation(BaseModel):
    """Physical location reported to the browser."""

    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0


class LogEntry(BaseModel):
    """A single entry of a server-side log."""

    timestamp: int = Field(default=0)
    level: str = ""
    message: str = ""
