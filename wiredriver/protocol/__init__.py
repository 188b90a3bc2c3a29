"""JSON Wire Protocol transport and errors."""

from wiredriver.protocol.errors import (
    CommandError,
    CommandTimeoutError,
    ConfigError,
    DriverTimeoutError,
    PreferenceTypeError,
    ProtocolError,
    StateError,
    StatusCode,
    TransportError,
    WireDriverError,
    parse_error,
    status_text,
)
from wiredriver.protocol.transport import Transport

__all__ = [
    "CommandError",
    "CommandTimeoutError",
    "ConfigError",
    "DriverTimeoutError",
    "PreferenceTypeError",
    "ProtocolError",
    "StateError",
    "StatusCode",
    "TransportError",
    "WireDriverError",
    "parse_error",
    "status_text",
    "Transport",
]
