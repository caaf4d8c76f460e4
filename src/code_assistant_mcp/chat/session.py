from collections.abc import Awaitable, Callable
from logging import Logger
from typing import TypeAlias

from fastmcp.utilities.logging import get_logger
from pydantic import ValidationError

from code_assistant_mcp.chat.dispatcher import ToolDispatcher, ToolOutcome
from code_assistant_mcp.chat.envelopes import (
    CommandEnvelope,
    ConnectedEnvelope,
    ErrorEnvelope,
    ExecutingEnvelope,
    HelpEnvelope,
    MessageEnvelope,
    PingEnvelope,
    PongEnvelope,
    ProgressEnvelope,
    ResponseEnvelope,
    ServerEnvelope,
    ThinkingEnvelope,
    ToolInfo,
    ToolsEnvelope,
    parse_client_envelope,
)
from code_assistant_mcp.chat.formatting import format_help, format_tools_list
from code_assistant_mcp.chat.intent import IntentResolver, ResolvedIntent
from code_assistant_mcp.servers.shared.tools import GENERATE_CODE, TOOL_SPECS

SendEnvelope: TypeAlias = Callable[[ServerEnvelope], Awaitable[None]]

CONNECTED_MESSAGE = "Connected to the Code Assistant"
THINKING_MESSAGE = "Understanding your request..."
GENERATING_MESSAGE = "Generating code with AI... This may take 30-60 seconds."


def list_tools() -> list[ToolInfo]:
    return [ToolInfo(name=spec.name, description=spec.description) for spec in TOOL_SPECS.values()]


class ChatSession:
    """Handle the messages of one client connection, one message at a time.

    Every failure while handling a message is reported to the client and the session keeps going.
    """

    resolver: IntentResolver
    dispatcher: ToolDispatcher
    send: SendEnvelope
    logger: Logger

    def __init__(self, resolver: IntentResolver, dispatcher: ToolDispatcher, send: SendEnvelope, logger: Logger | None = None):
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.send = send
        self.logger = logger or get_logger(name=__name__)

    async def start(self) -> None:
        await self.send(ConnectedEnvelope(message=CONNECTED_MESSAGE, tools=list_tools()))

    async def handle_raw(self, raw: str | bytes) -> None:
        try:
            envelope = parse_client_envelope(raw)
        except ValidationError as e:
            self.logger.warning(f"Rejected a malformed client message: {e.error_count()} validation errors")
            await self.send(ErrorEnvelope(message=f"Invalid message: {e.errors(include_url=False)[0]['msg']}"))
            return

        if isinstance(envelope, PingEnvelope):
            await self.send(PongEnvelope())
        elif isinstance(envelope, HelpEnvelope):
            await self.send(ResponseEnvelope(status="success", content=format_help()))
        elif isinstance(envelope, ToolsEnvelope):
            await self.send(ResponseEnvelope(status="success", content=format_tools_list()))
        elif isinstance(envelope, MessageEnvelope | CommandEnvelope):
            await self.handle_text(envelope.content)

    async def handle_text(self, text: str) -> None:
        """Run a chat message through intent resolution, the tool, and the formatter.

        Failures of the resolver or the tool are sent to the client as error responses. Failures to send
        propagate to the caller, which owns the connection.
        """

        command: str = text.strip().lower()

        if command == "help":
            await self.send(ResponseEnvelope(status="success", content=format_help()))
            return

        if command == "tools":
            await self.send(ResponseEnvelope(status="success", content=format_tools_list()))
            return

        await self.send(ThinkingEnvelope(message=THINKING_MESSAGE))

        try:
            intent: ResolvedIntent = await self.resolver.resolve(text)
        except Exception as e:
            await self.send_error(error=e)
            return

        await self.send(ExecutingEnvelope(tool=intent.tool, params=intent.parameters))

        if intent.tool == GENERATE_CODE:
            await self.send(ProgressEnvelope(message=GENERATING_MESSAGE))

        try:
            outcome: ToolOutcome = await self.dispatcher.dispatch(intent.tool, intent.parameters)
        except Exception as e:
            await self.send_error(error=e, tool=intent.tool)
            return

        await self.send(ResponseEnvelope(status="success", tool=outcome.tool, content=outcome.content, project=outcome.project))

    async def send_error(self, error: Exception, tool: str | None = None) -> None:
        self.logger.exception(f"Failed to handle message for tool {tool}", exc_info=error)
        await self.send(ResponseEnvelope.error(content=str(error), tool=tool))
