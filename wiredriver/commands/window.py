"""Window commands."""

from typing import TYPE_CHECKING

from wiredriver.commands.decode import decode
from wiredriver.models import Position, Size

if TYPE_CHECKING:
    from wiredriver.commands.session import Session


class WindowHandle:
    """A window of a session, addressed by its server-side handle."""

    def __init__(self, session: "Session", handle_id: str) -> None:
        self.session = session
        self.id = handle_id

    def __repr__(self) -> str:
        return f"WindowHandle(session={self.session.id!r}, id={self.id!r})"

    async def set_size(self, size: Size) -> None:
        body = {"width": size.width, "height": size.height}
        await self.session.transport.do(
            "POST", "/session/{}/window/{}/size", self.session.id, self.id, body=body
        )

    async def get_size(self) -> Size:
        _, value = await self.session.transport.do(
            "GET", "/session/{}/window/{}/size", self.session.id, self.id
        )
        return decode(Size, value)

    async def set_position(self, position: Position) -> None:
        body = {"x": position.x, "y": position.y}
        await self.session.transport.do(
            "POST", "/session/{}/window/{}/position", self.session.id, self.id, body=body
        )

    async def get_position(self) -> Position:
        _, value = await self.session.transport.do(
            "GET", "/session/{}/window/{}/position", self.session.id, self.id
        )
        return decode(Position, value)

    async def maximize(self) -> None:
        """Maximize the window if not already maximized."""
        await self.session.transport.do(
            "POST", "/session/{}/window/{}/maximize", self.session.id, self.id
        )
