"""HTTP transport for the JSON Wire Protocol."""

import json
from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from wiredriver.config import settings
from wiredriver.models.protocol import Envelope
from wiredriver.protocol.errors import ProtocolError, TransportError, parse_error
from wiredriver.utils.logging import get_logger

ALLOWED_METHODS = frozenset({"GET", "POST", "DELETE"})
REDIRECT_STATUSES = frozenset({302, 303})

# The protocol only ever redirects once, after POST /session
MAX_REDIRECTS = 3

LOG_BODY_LIMIT = 1024

REQUEST_HEADERS = {
    "Accept": "application/json",
    "Accept-Charset": "utf-8",
}
JSON_CONTENT_TYPE = "application/json;charset=utf-8"


def _body_head(content: bytes) -> str:
    text = content[:LOG_BODY_LIMIT].decode("utf-8", errors="replace")
    if len(content) > LOG_BODY_LIMIT:
        text += f" ...{len(content) - LOG_BODY_LIMIT} more bytes"
    return text


class Transport:
    """Sends commands to a driver and decodes the response envelope."""

    def __init__(
        self,
        url: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.url = url
        self._client = client
        self._timeout = settings.request_timeout if timeout is None else timeout
        self._logger = logger or get_logger(__name__)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            # POST redirects are handled by hand, see do()
            self._client = httpx.AsyncClient(
                follow_redirects=False,
                timeout=self._timeout,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    def build_url(self, url_format: str, *params: Any) -> str:
        """Substitute positional ids into a path template and prefix the base URL."""
        quoted = [quote(str(p), safe="") for p in params]
        return self.url + url_format.format(*quoted)

    async def do(
        self,
        method: str,
        url_format: str,
        *params: Any,
        body: Any = None,
    ) -> tuple[str, Any]:
        """
        Send a command to the driver.

        Args:
            method: HTTP method, one of GET, POST, DELETE
            url_format: Path template with {} placeholders (e.g. "/session/{}/url")
            params: Values substituted into the template, in order
            body: JSON-serializable request body, only sent with POST

        Returns:
            Tuple of session id (meaningful for session creation only) and
            the undecoded response value
        """
        if method not in ALLOWED_METHODS:
            raise ProtocolError(f"invalid method: {method}")

        url = self.build_url(url_format, *params)
        response = await self._send(method, url, body)

        redirects = 0
        # POST /session answers with a redirect to the new session; GET
        # redirects are only followed as part of that chain
        follow = method == "POST"
        while follow and response.status_code in REDIRECT_STATUSES:
            redirects += 1
            if redirects > MAX_REDIRECTS:
                raise ProtocolError(f"too many redirects (last: {response.url})")
            location = response.headers.get("Location")
            if not location:
                raise ProtocolError("redirect response without Location header")
            self._logger.debug("Following redirect", location=location)
            response = await self._send("GET", str(response.url.join(location)), None)

        return self._decode(response)

    async def _send(self, method: str, url: str, body: Any) -> httpx.Response:
        headers = dict(REQUEST_HEADERS)
        content: bytes | None = None
        if method == "POST":
            content = json.dumps({} if body is None else body).encode("utf-8")
            headers["Content-Type"] = JSON_CONTENT_TYPE

        self._logger.debug(">> request", method=method, url=url)
        try:
            response = await self._get_client().request(
                method, url, content=content, headers=headers
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        self._logger.debug(
            "<< response",
            status=response.status_code,
            body=_body_head(response.content),
        )
        return response

    def _decode(self, response: httpx.Response) -> tuple[str, Any]:
        try:
            envelope = Envelope.model_validate_json(response.content)
        except ValidationError as e:
            if response.status_code == 200:
                raise ProtocolError("error: response must be a JSON object") from e
            envelope = Envelope()

        if response.status_code >= 400 or envelope.status != 0:
            raise parse_error(response.status_code, envelope)

        return envelope.session_id_str, envelope.value
