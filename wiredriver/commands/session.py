"""Session commands of the JSON Wire Protocol."""

import base64
from typing import Any

from wiredriver.commands.decode import decode
from wiredriver.commands.element import WebElement
from wiredriver.commands.window import WindowHandle
from wiredriver.models import (
    Capabilities,
    Cookie,
    ElementReference,
    FindElementStrategy,
    GeoLocation,
    HTML5CacheStatus,
    LogEntry,
    MouseButton,
    ScreenOrientation,
)
from wiredriver.protocol.transport import Transport

LOCAL_STORAGE = "local_storage"
SESSION_STORAGE = "session_storage"


class Session:
    """
    A server-side automation context.

    All commands go through the transport of the driver that created the
    session. Nothing serializes concurrent commands on one session.
    """

    def __init__(
        self,
        transport: Transport,
        session_id: str,
        capabilities: Capabilities | None = None,
    ) -> None:
        self.transport = transport
        self._id = session_id
        self.capabilities: Capabilities = capabilities or {}

    @property
    def id(self) -> str:
        """Server-issued session id."""
        return self._id

    def __repr__(self) -> str:
        return f"Session(id={self._id!r})"

    async def _do(self, method: str, command: str, *params: Any, body: Any = None) -> Any:
        _, value = await self.transport.do(
            method, "/session/{}" + command, self._id, *params, body=body
        )
        return value

    def get_capabilities(self) -> Capabilities:
        """Capabilities negotiated when the session was created."""
        return self.capabilities

    async def delete(self) -> None:
        """Delete the session."""
        await self._do("DELETE", "")

    # Timeouts

    async def set_timeouts(self, timeout_type: str, ms: int) -> None:
        """
        Configure how long an operation may run before it is aborted.

        Args:
            timeout_type: "script", "implicit" or "page load"
            ms: Timeout in milliseconds
        """
        await self._do("POST", "/timeouts", body={"type": timeout_type, "ms": ms})

    async def set_timeouts_async_script(self, ms: int) -> None:
        """Set how long scripts run by execute_script_async may run."""
        await self._do("POST", "/timeouts/async_script", body={"ms": ms})

    async def set_timeouts_implicit_wait(self, ms: int) -> None:
        """Set how long element searches poll the page before giving up."""
        await self._do("POST", "/timeouts/implicit_wait", body={"ms": ms})

    # Windows

    def get_current_window_handle(self) -> WindowHandle:
        """Handle addressing whichever window currently has focus."""
        return WindowHandle(self, "current")

    async def window_handle(self) -> WindowHandle:
        """Retrieve the current window handle."""
        return WindowHandle(self, decode(str, await self._do("GET", "/window_handle")))

    async def window_handles(self) -> list[WindowHandle]:
        """Retrieve all window handles available to the session."""
        handles = decode(list[str], await self._do("GET", "/window_handles"))
        return [WindowHandle(self, h) for h in handles]

    async def focus_on_window(self, name: str) -> None:
        """Change focus to another window, by name attribute or handle."""
        await self._do("POST", "/window", body={"name": name})

    async def close_current_window(self) -> None:
        await self._do("DELETE", "/window")

    async def focus_on_frame(self, frame_id: str | int | WebElement | None) -> None:
        """
        Change focus to another frame on the page.

        None selects the default content.

        Raises:
            TypeError: If frame_id is not a str, int, WebElement or None
        """
        if isinstance(frame_id, WebElement):
            target: Any = frame_id.to_json()
        elif frame_id is None or isinstance(frame_id, str):
            target = frame_id
        elif isinstance(frame_id, int) and not isinstance(frame_id, bool):
            target = frame_id
        else:
            raise TypeError("invalid frame, must be str|int|None|WebElement")
        await self._do("POST", "/frame", body={"id": target})

    async def focus_parent_frame(self) -> None:
        await self._do("POST", "/frame/parent")

    # Navigation

    async def get_url(self) -> str:
        """Retrieve the URL of the current page."""
        return decode(str, await self._do("GET", "/url"))

    async def url(self, url: str) -> None:
        """Navigate to a new URL."""
        await self._do("POST", "/url", body={"url": url})

    async def forward(self) -> None:
        await self._do("POST", "/forward")

    async def back(self) -> None:
        await self._do("POST", "/back")

    async def refresh(self) -> None:
        await self._do("POST", "/refresh")

    async def source(self) -> str:
        """Get the current page source."""
        return decode(str, await self._do("GET", "/source"))

    async def title(self) -> str:
        return decode(str, await self._do("GET", "/title"))

    # Scripts

    async def execute_script(self, script: str, args: list[Any] | None = None) -> Any:
        """
        Run a synchronous script in the currently selected frame.

        The script is a function body; args are available through the
        arguments object. Returns the raw value returned by the function.
        """
        return await self._do("POST", "/execute", body={"script": script, "args": args or []})

    async def execute_script_async(self, script: str, args: list[Any] | None = None) -> Any:
        """
        Run an asynchronous script in the currently selected frame.

        The script signals completion by calling the callback passed as its
        last argument; the value given to the callback is returned.
        """
        return await self._do(
            "POST", "/execute_async", body={"script": script, "args": args or []}
        )

    async def screenshot(self) -> bytes:
        """Take a screenshot of the current page, PNG encoded."""
        data = decode(str, await self._do("GET", "/screenshot"))
        return base64.b64decode(data)

    # IME

    async def ime_available_engines(self) -> list[str]:
        return decode(list[str], await self._do("GET", "/ime/available_engines"))

    async def ime_active_engine(self) -> str:
        return decode(str, await self._do("GET", "/ime/active_engine"))

    async def is_ime_activated(self) -> bool:
        """Whether IME input is active at the moment (not if it's available)."""
        return decode(bool, await self._do("GET", "/ime/activated"))

    async def ime_deactivate(self) -> None:
        await self._do("POST", "/ime/deactivate")

    async def ime_activate(self, engine: str) -> None:
        await self._do("POST", "/ime/activate", body={"engine": engine})

    # Cookies

    async def get_cookies(self) -> list[Cookie]:
        """Retrieve all cookies visible to the current page."""
        return decode(list[Cookie], await self._do("GET", "/cookie"))

    async def set_cookie(self, cookie: Cookie) -> None:
        await self._do("POST", "/cookie", body={"cookie": cookie.model_dump(exclude_none=True)})

    async def delete_cookies(self) -> None:
        """Delete all cookies visible to the current page."""
        await self._do("DELETE", "/cookie")

    async def delete_cookie_by_name(self, name: str) -> None:
        await self._do("DELETE", "/cookie/{}", name)

    # Elements

    def web_element_from_id(self, element_id: str) -> WebElement:
        return WebElement(self, element_id)

    async def find_element(self, using: FindElementStrategy, value: str) -> WebElement:
        """Search for an element on the page, starting from the document root."""
        body = {"using": using.value, "value": value}
        ref = decode(ElementReference, await self._do("POST", "/element", body=body))
        return WebElement(self, ref.element)

    async def find_elements(self, using: FindElementStrategy, value: str) -> list[WebElement]:
        """Search for multiple elements on the page, starting from the document root."""
        body = {"using": using.value, "value": value}
        refs = decode(list[ElementReference], await self._do("POST", "/elements", body=body))
        return [WebElement(self, ref.element) for ref in refs]

    async def get_active_element(self) -> WebElement:
        """Get the element on the page that currently has focus."""
        ref = decode(ElementReference, await self._do("POST", "/element/active"))
        return WebElement(self, ref.element)

    async def send_keys_on_active_element(self, sequence: str) -> None:
        await self._do("POST", "/keys", body={"value": list(sequence)})

    # Orientation

    async def get_orientation(self) -> ScreenOrientation:
        return decode(ScreenOrientation, await self._do("GET", "/orientation"))

    async def set_orientation(self, orientation: ScreenOrientation) -> None:
        await self._do("POST", "/orientation", body={"orientation": orientation.value})

    # Alerts

    async def get_alert_text(self) -> str:
        return decode(str, await self._do("GET", "/alert_text"))

    async def set_alert_text(self, text: str) -> None:
        """Send keystrokes to a prompt() dialog."""
        await self._do("POST", "/alert_text", body={"text": text})

    async def accept_alert(self) -> None:
        await self._do("POST", "/accept_alert")

    async def dismiss_alert(self) -> None:
        await self._do("POST", "/dismiss_alert")

    # Mouse

    async def move_to(
        self,
        element: WebElement | None = None,
        xoffset: int | None = None,
        yoffset: int | None = None,
    ) -> None:
        """
        Move the mouse.

        Offsets are relative to the element's top-left corner, or to the
        current mouse position when no element is given.
        """
        body: dict[str, Any] = {}
        if element is not None:
            body["element"] = element.id
        if xoffset is not None:
            body["xoffset"] = xoffset
        if yoffset is not None:
            body["yoffset"] = yoffset
        await self._do("POST", "/moveto", body=body)

    async def click(self, button: MouseButton = MouseButton.LEFT) -> None:
        """Click a mouse button at the current mouse position."""
        await self._do("POST", "/click", body={"button": int(button)})

    async def button_down(self, button: MouseButton = MouseButton.LEFT) -> None:
        await self._do("POST", "/buttondown", body={"button": int(button)})

    async def button_up(self, button: MouseButton = MouseButton.LEFT) -> None:
        await self._do("POST", "/buttonup", body={"button": int(button)})

    async def double_click(self) -> None:
        await self._do("POST", "/doubleclick")

    # Touch

    async def touch_click(self, element: WebElement) -> None:
        """Single tap on the touch enabled device."""
        await self._do("POST", "/touch/click", body={"element": element.id})

    async def touch_down(self, x: int, y: int) -> None:
        await self._do("POST", "/touch/down", body={"x": x, "y": y})

    async def touch_up(self, x: int, y: int) -> None:
        await self._do("POST", "/touch/up", body={"x": x, "y": y})

    async def touch_move(self, x: int, y: int) -> None:
        await self._do("POST", "/touch/move", body={"x": x, "y": y})

    async def touch_scroll(self, element: WebElement, xoffset: int, yoffset: int) -> None:
        body = {"element": element.id, "xoffset": xoffset, "yoffset": yoffset}
        await self._do("POST", "/touch/scroll", body=body)

    async def touch_double_click(self, element: WebElement) -> None:
        await self._do("POST", "/touch/doubleclick", body={"element": element.id})

    async def touch_long_click(self, element: WebElement) -> None:
        await self._do("POST", "/touch/longclick", body={"element": element.id})

    async def touch_flick(
        self, element: WebElement, xoffset: int, yoffset: int, speed: int
    ) -> None:
        """Flick starting at element, moving by the offsets at speed pixels per second."""
        body = {"element": element.id, "xoffset": xoffset, "yoffset": yoffset, "speed": speed}
        await self._do("POST", "/touch/flick", body=body)

    async def touch_flick_anywhere(self, xspeed: int, yspeed: int) -> None:
        await self._do("POST", "/touch/flick", body={"xspeed": xspeed, "yspeed": yspeed})

    # Geolocation

    async def get_geo_location(self) -> GeoLocation:
        return decode(GeoLocation, await self._do("GET", "/location"))

    async def set_geo_location(self, location: GeoLocation) -> None:
        await self._do("POST", "/location", body={"location": location.model_dump()})

    # Web storage

    async def _storage_get_keys(self, storage: str) -> list[str]:
        return decode(list[str], await self._do("GET", "/{}", storage))

    async def _storage_set_key(self, storage: str, key: str, value: str) -> None:
        await self._do("POST", "/{}", storage, body={"key": key, "value": value})

    async def _storage_clear(self, storage: str) -> None:
        await self._do("DELETE", "/{}", storage)

    async def _storage_get_key(self, storage: str, key: str) -> str | None:
        return decode(str | None, await self._do("GET", "/{}/key/{}", storage, key))

    async def _storage_remove_key(self, storage: str, key: str) -> None:
        await self._do("DELETE", "/{}/key/{}", storage, key)

    async def _storage_size(self, storage: str) -> int:
        return decode(int, await self._do("GET", "/{}/size", storage))

    async def local_storage_get_keys(self) -> list[str]:
        return await self._storage_get_keys(LOCAL_STORAGE)

    async def local_storage_set_key(self, key: str, value: str) -> None:
        await self._storage_set_key(LOCAL_STORAGE, key, value)

    async def local_storage_clear(self) -> None:
        await self._storage_clear(LOCAL_STORAGE)

    async def local_storage_get_key(self, key: str) -> str | None:
        return await self._storage_get_key(LOCAL_STORAGE, key)

    async def local_storage_remove_key(self, key: str) -> None:
        await self._storage_remove_key(LOCAL_STORAGE, key)

    async def local_storage_size(self) -> int:
        return await self._storage_size(LOCAL_STORAGE)

    async def session_storage_get_keys(self) -> list[str]:
        return await self._storage_get_keys(SESSION_STORAGE)

    async def session_storage_set_key(self, key: str, value: str) -> None:
        await self._storage_set_key(SESSION_STORAGE, key, value)

    async def session_storage_clear(self) -> None:
        await self._storage_clear(SESSION_STORAGE)

    async def session_storage_get_key(self, key: str) -> str | None:
        return await self._storage_get_key(SESSION_STORAGE, key)

    async def session_storage_remove_key(self, key: str) -> None:
        await self._storage_remove_key(SESSION_STORAGE, key)

    async def session_storage_size(self) -> int:
        return await self._storage_size(SESSION_STORAGE)

    # Logs and application cache

    async def log(self, log_type: str) -> list[LogEntry]:
        """Get the log for a given log type. The log buffer is reset after each request."""
        return decode(list[LogEntry], await self._do("POST", "/log", body={"type": log_type}))

    async def log_types(self) -> list[str]:
        return decode(list[str], await self._do("GET", "/log/types"))

    async def get_html5_cache_status(self) -> HTML5CacheStatus:
        return decode(HTML5CacheStatus, await self._do("GET", "/application_cache/status"))
