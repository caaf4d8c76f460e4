from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter

from code_assistant_mcp.models.base import CamelModel
from code_assistant_mcp.models.project import GeneratedProject

# Client to server


class PingEnvelope(CamelModel):
    type: Literal["ping"]


class HelpEnvelope(CamelModel):
    type: Literal["help"]


class ToolsEnvelope(CamelModel):
    type: Literal["tools"]


class MessageEnvelope(CamelModel):
    type: Literal["message"]
    content: str


class CommandData(CamelModel):
    input: str


class CommandEnvelope(CamelModel):
    type: Literal["command"]
    data: CommandData

    @property
    def content(self) -> str:
        return self.data.input


ClientEnvelope = Annotated[
    PingEnvelope | HelpEnvelope | ToolsEnvelope | MessageEnvelope | CommandEnvelope,
    Field(discriminator="type"),
]

CLIENT_ENVELOPE_ADAPTER: TypeAdapter[ClientEnvelope] = TypeAdapter(ClientEnvelope)


def parse_client_envelope(raw: str | bytes) -> ClientEnvelope:
    """Decode a client message.

    Raises:
        pydantic.ValidationError: If `raw` is not JSON or not one of the known envelope types.
    """

    return CLIENT_ENVELOPE_ADAPTER.validate_json(raw)


# Server to client


class ServerEnvelope(CamelModel):
    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ToolInfo(CamelModel):
    name: str
    description: str


class ConnectedEnvelope(ServerEnvelope):
    type: Literal["connected"] = "connected"
    message: str
    tools: list[ToolInfo]


class PongEnvelope(ServerEnvelope):
    type: Literal["pong"] = "pong"


class ThinkingEnvelope(ServerEnvelope):
    type: Literal["thinking"] = "thinking"
    message: str


class ExecutingEnvelope(ServerEnvelope):
    type: Literal["executing"] = "executing"
    tool: str
    params: dict[str, Any]


class ProgressEnvelope(ServerEnvelope):
    type: Literal["progress"] = "progress"
    message: str


class ResponseEnvelope(ServerEnvelope):
    type: Literal["response"] = "response"
    status: Literal["success", "error"]
    content: str
    tool: str | None = None
    project: GeneratedProject | None = None

    @classmethod
    def error(cls, content: str, tool: str | None = None) -> "ResponseEnvelope":
        return cls(status="error", content=content, tool=tool)


class ErrorEnvelope(ServerEnvelope):
    type: Literal["error"] = "error"
    message: str
