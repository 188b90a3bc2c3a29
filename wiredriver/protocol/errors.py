"""Error types and JSON Wire Protocol error classification."""

import json
from enum import IntEnum
from typing import Any

from pydantic import ValidationError

from wiredriver.models.protocol import Envelope, ErrorDetail, StackFrame


class WireDriverError(Exception):
    """Base class for all wiredriver errors."""

    pass


class StateError(WireDriverError):
    """Operation not allowed in the driver's current lifecycle state."""

    pass


class ConfigError(WireDriverError):
    """Invalid configuration, extension archive or profile."""

    pass


class PreferenceTypeError(ConfigError, TypeError):
    """A preference value cannot be written to user.js."""

    pass


class ProtocolError(WireDriverError):
    """The server reply does not follow the wire protocol."""

    pass


class TransportError(WireDriverError):
    """The HTTP request could not be completed."""

    pass


class DriverTimeoutError(WireDriverError, TimeoutError):
    """A bounded wait expired."""

    pass


class StatusCode(IntEnum):
    """Status codes of the JSON Wire Protocol."""

    SUCCESS = 0
    NO_SUCH_DRIVER = 6
    NO_SUCH_ELEMENT = 7
    NO_SUCH_FRAME = 8
    UNKNOWN_COMMAND = 9
    STALE_ELEMENT_REFERENCE = 10
    ELEMENT_NOT_VISIBLE = 11
    INVALID_ELEMENT_STATE = 12
    UNKNOWN_ERROR = 13
    ELEMENT_IS_NOT_SELECTABLE = 15
    JAVASCRIPT_ERROR = 17
    XPATH_LOOKUP_ERROR = 19
    TIMEOUT = 21
    NO_SUCH_WINDOW = 23
    INVALID_COOKIE_DOMAIN = 24
    UNABLE_TO_SET_COOKIE = 25
    UNEXPECTED_ALERT_OPEN = 26
    NO_ALERT_OPEN_ERROR = 27
    SCRIPT_TIMEOUT = 28
    INVALID_ELEMENT_COORDINATES = 29
    IME_NOT_AVAILABLE = 30
    IME_ENGINE_ACTIVATION_FAILED = 31
    INVALID_SELECTOR = 32
    SESSION_NOT_CREATED_EXCEPTION = 33
    MOVE_TARGET_OUT_OF_BOUNDS = 34


STATUS_CODE_TEXT: dict[int, str] = {
    0: "The command executed successfully.",
    6: "A session is either terminated or not started.",
    7: "An element could not be located on the page using the given search parameters.",
    8: "A request to switch to a frame could not be satisfied because the frame could not be found.",
    9: (
        "The requested resource could not be found, or a request was received using "
        "an HTTP method that is not supported by the mapped resource."
    ),
    10: "An element command failed because the referenced element is no longer attached to the DOM.",
    11: "An element command could not be completed because the element is not visible on the page.",
    12: (
        "An element command could not be completed because the element is in an invalid "
        "state (e.g. attempting to click a disabled element)."
    ),
    13: "An unknown server-side error occurred while processing the command.",
    15: "An attempt was made to select an element that cannot be selected.",
    17: "An error occurred while executing user supplied JavaScript.",
    19: "An error occurred while searching for an element by XPath.",
    21: "An operation did not complete before its timeout expired.",
    23: (
        "A request to switch to a different window could not be satisfied because "
        "the window could not be found."
    ),
    24: "An illegal attempt was made to set a cookie under a different domain than the current page.",
    25: "A request to set a cookie's value could not be satisfied.",
    26: "A modal dialog was open, blocking this operation.",
    27: "An attempt was made to operate on a modal dialog when one was not open.",
    28: "A script did not complete before its timeout expired.",
    29: "The coordinates provided to an interactions operation are invalid.",
    30: "IME was not available.",
    31: "An IME engine could not be started.",
    32: "Argument was an invalid selector (e.g. XPath/CSS).",
    33: "A new session could not be created.",
    34: "Target provided for a move action is out of bounds.",
}

HTTP_ERROR_TYPES: dict[int, str] = {
    # chromedriver may answer 200 on errors
    200: "",
    400: "400: Missing Command Parameters",
    404: "404: Unknown command/Resource Not Found",
    405: "405: Invalid Command Method",
    500: "500: Failed Command",
    501: "501: Unimplemented Command",
}

UNKNOWN_HTTP_ERROR = "Unknown error"

# Status code used when the server gave no usable status
STATUS_NOT_SPECIFIED = -1

TIMEOUT_STATUS_CODES = frozenset({StatusCode.TIMEOUT, StatusCode.SCRIPT_TIMEOUT})


def status_text(code: int) -> str | None:
    """Description of a protocol status code, None if unknown."""
    return STATUS_CODE_TEXT.get(code)


def http_error_type(http_status: int) -> str:
    """Error category for an HTTP status code."""
    return HTTP_ERROR_TYPES.get(http_status, UNKNOWN_HTTP_ERROR)


class CommandError(WireDriverError):
    """A command failed on the server side."""

    def __init__(
        self,
        status_code: int,
        error_type: str = "",
        message: str = "",
        screen: str | None = None,
        class_name: str | None = None,
        stack_trace: list[StackFrame] | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.message = message
        self.screen = screen
        self.class_name = class_name
        self.stack_trace = stack_trace or []
        super().__init__(self.render())

    def render(self) -> str:
        """Human readable form of the error."""
        text = f"{self.error_type}: " if self.error_type else ""
        if self.status_code == STATUS_NOT_SPECIFIED:
            return text + "status code not specified"

        description = status_text(self.status_code)
        if description is not None:
            return text + f"{description}: {self.message}"
        return text + f"unknown status code ({self.status_code}): {self.message}"

    def __str__(self) -> str:
        return self.render()


class CommandTimeoutError(CommandError, DriverTimeoutError):
    """The server reported an operation or script timeout."""

    pass


def _raw_message(value: Any) -> str:
    # The value's JSON text; a bare string keeps its quotes
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False)


def parse_error(http_status: int, envelope: Envelope) -> CommandError:
    """
    Build the error for a failed response.

    Args:
        http_status: HTTP status code of the response
        envelope: Decoded response envelope (empty if the body was not JSON)

    Returns:
        CommandError, or CommandTimeoutError for timeout status codes
    """
    error_type = http_error_type(http_status)

    if envelope.status == StatusCode.SUCCESS:
        return CommandError(STATUS_NOT_SPECIFIED, error_type)

    error_cls = (
        CommandTimeoutError if envelope.status in TIMEOUT_STATUS_CODES else CommandError
    )

    try:
        detail = ErrorDetail.model_validate(envelope.value)
    except ValidationError:
        # Some servers (firefox) return a bare string instead of an object
        return error_cls(envelope.status, error_type, _raw_message(envelope.value))

    return error_cls(
        envelope.status,
        error_type,
        detail.message,
        screen=detail.screen,
        class_name=detail.class_name,
        stack_trace=detail.stack_trace,
    )
