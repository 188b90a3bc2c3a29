"""JSON Wire Protocol envelope and server payload models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class Envelope(BaseModel):
    """The {sessionId, status, value} object wrapping every response."""

    session_id: Any = Field(default=None, alias="sessionId")
    status: int = 0
    value: Any = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def session_id_str(self) -> str:
        """Session id as a plain string, empty when the server sent none."""
        if self.session_id is None:
            return ""
        return str(self.session_id).strip('{}"')


class _WirePayload(BaseModel):
    """Payload where an explicit JSON null means the field was not sent."""

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_is_absent(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name is not None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class StackFrame(_WirePayload):
    """A single frame of a server-side stack trace."""

    file_name: str = Field(default="", alias="fileName")
    class_name: str = Field(default="", alias="className")
    method_name: str = Field(default="", alias="methodName")
    line_number: int = Field(default=0, alias="lineNumber")


class ErrorDetail(_WirePayload):
    """Structured diagnostic carried in the value of a failed response."""

    message: str = ""
    screen: str | None = None
    class_name: str | None = Field(default=None, alias="class")
    stack_trace: list[StackFrame] = Field(default_factory=list, alias="stackTrace")


class Build(BaseModel):
    """Server build details."""

    version: str = ""
    revision: str = ""
    time: str = ""


class OSInfo(BaseModel):
    """Server operating system details."""

    arch: str = ""
    name: str = ""
    version: str = ""


class Status(BaseModel):
    """Server status as returned by GET /status."""

    build: Build = Field(default_factory=Build)
    os: OSInfo = Field(default_factory=OSInfo)


class ElementReference(BaseModel):
    """Wire representation of a located element."""

    element: str = Field(alias="ELEMENT")

    model_config = ConfigDict(populate_by_name=True)


class SessionInfo(BaseModel):
    """An entry of GET /sessions."""

    id: str
    capabilities: dict[str, Any] | None = None
