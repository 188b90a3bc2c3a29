"""Session, window and element commands."""

from wiredriver.commands.element import WebElement
from wiredriver.commands.session import Session
from wiredriver.commands.window import WindowHandle

__all__ = [
    "WebElement",
    "Session",
    "WindowHandle",
]
