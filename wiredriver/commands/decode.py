"""Decoding of command values into their expected shapes."""

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from wiredriver.protocol.errors import ProtocolError

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def decode(tp: type[T] | Any, value: Any) -> T:
    """
    Validate a raw response value against the type a command expects.

    Raises:
        ProtocolError: If the value does not have the expected shape
    """
    try:
        result: T = _adapter(tp).validate_python(value)
    except ValidationError as e:
        raise ProtocolError(f"unexpected response value: {e}") from e
    return result
