"""Element commands."""

from typing import TYPE_CHECKING, Any

from wiredriver.commands.decode import decode
from wiredriver.models import ElementReference, FindElementStrategy, Position, Size

if TYPE_CHECKING:
    from wiredriver.commands.session import Session


class WebElement:
    """
    A DOM element located by the server.

    Two WebElement objects may refer to the same DOM node under different
    ids; only the server can tell (see equal()).
    """

    def __init__(self, session: "Session", element_id: str) -> None:
        self.session = session
        self.id = element_id

    def __repr__(self) -> str:
        return f"WebElement(session={self.session.id!r}, id={self.id!r})"

    def to_json(self) -> dict[str, str]:
        """Wire representation used when passing the element as an argument."""
        return {"ELEMENT": self.id}

    async def _do(self, method: str, command: str, *params: Any, body: Any = None) -> Any:
        _, value = await self.session.transport.do(
            method,
            "/session/{}/element/{}" + command,
            self.session.id,
            self.id,
            *params,
            body=body,
        )
        return value

    async def find_element(self, using: FindElementStrategy, value: str) -> "WebElement":
        """Search for an element on the page, starting from this element."""
        body = {"using": using.value, "value": value}
        ref = decode(ElementReference, await self._do("POST", "/element", body=body))
        return WebElement(self.session, ref.element)

    async def find_elements(
        self, using: FindElementStrategy, value: str
    ) -> list["WebElement"]:
        """Search for multiple elements on the page, starting from this element."""
        body = {"using": using.value, "value": value}
        refs = decode(list[ElementReference], await self._do("POST", "/elements", body=body))
        return [WebElement(self.session, ref.element) for ref in refs]

    async def click(self) -> None:
        await self._do("POST", "/click")

    async def submit(self) -> None:
        """Submit a FORM element (or the form containing this element)."""
        await self._do("POST", "/submit")

    async def text(self) -> str:
        """Returns the visible text for the element."""
        return decode(str, await self._do("GET", "/text"))

    async def send_keys(self, sequence: str) -> None:
        """Send a sequence of key strokes to the element."""
        await self._do("POST", "/value", body={"value": list(sequence)})

    async def name(self) -> str:
        """Query for the element's tag name."""
        return decode(str, await self._do("GET", "/name"))

    async def clear(self) -> None:
        await self._do("POST", "/clear")

    async def is_selected(self) -> bool:
        return decode(bool, await self._do("GET", "/selected"))

    async def is_enabled(self) -> bool:
        return decode(bool, await self._do("GET", "/enabled"))

    async def get_attribute(self, name: str) -> str | None:
        return decode(str | None, await self._do("GET", "/attribute/{}", name))

    async def equal(self, other: "WebElement") -> bool:
        """Test if two element ids refer to the same DOM element."""
        return decode(bool, await self._do("GET", "/equal/{}", other.id))

    async def is_displayed(self) -> bool:
        return decode(bool, await self._do("GET", "/displayed"))

    async def get_location(self) -> Position:
        """Location of the element's top-left corner on the page."""
        return decode(Position, await self._do("GET", "/location"))

    async def get_location_in_view(self) -> Position:
        """Location on screen once the element has been scrolled into view."""
        return decode(Position, await self._do("GET", "/location_in_view"))

    async def size(self) -> Size:
        return decode(Size, await self._do("GET", "/size"))

    async def get_css_property(self, name: str) -> str:
        return decode(str, await self._do("GET", "/css/{}", name))
