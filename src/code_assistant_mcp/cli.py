import sys
from logging import Logger
from pathlib import Path
from typing import Literal

import anyio
import click
from dotenv import find_dotenv, load_dotenv
from fastmcp.utilities.logging import configure_logging, get_logger

from code_assistant_mcp.chat.dispatcher import ToolDispatcher
from code_assistant_mcp.chat.intent import IntentClassifier, IntentResolver
from code_assistant_mcp.chat.terminal import TerminalChat
from code_assistant_mcp.chat.web import DEFAULT_HOST, create_app, run_web
from code_assistant_mcp.clients.models import get_model_client
from code_assistant_mcp.projects.storage import get_output_dir
from code_assistant_mcp.utilities.setup import SetupCheck, run_setup_checks

logger: Logger = get_logger(name=__name__)

CHECK_COLORS = {"ok": "green", "warning": "yellow", "error": "red"}
CHECK_MARKS = {"ok": "✓", "warning": "!", "error": "✗"}


def build_chat_components() -> tuple[IntentResolver, ToolDispatcher]:
    model_client = get_model_client()

    resolver = IntentResolver(classifier=IntentClassifier(model_client=model_client))
    dispatcher = ToolDispatcher.from_model_client(model_client=model_client)

    return resolver, dispatcher


@click.group()
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]), default="INFO", help="The log level")
def cli(log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]):
    _ = load_dotenv(find_dotenv(usecwd=True), override=False)
    configure_logging(level=log_level)


@cli.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
def mcp(mcp_transport: Literal["stdio", "streamable-http"]):
    """Run the MCP server exposing the four tools."""

    # Imported here so the server is built after the .env file is loaded.
    from code_assistant_mcp.main import mcp as mcp_server

    mcp_server.run(transport=mcp_transport)


@cli.command()
@click.option("--host", default=DEFAULT_HOST, help="The host to listen on")
@click.option("--port", type=int, default=None, help="The port to listen on. Defaults to PORT, WEB_PORT, then 3001")
@click.option(
    "--static-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="A directory with a browser UI to serve at /",
)
def web(host: str, port: int | None, static_dir: Path | None):
    """Run the websocket chat server."""

    resolver, dispatcher = build_chat_components()

    run_web(create_app(resolver=resolver, dispatcher=dispatcher, static_dir=static_dir), host=host, port=port)


@cli.command()
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Where generated projects are saved. Defaults to GENERATED_PROJECTS_DIR, then ~/Desktop/generated-projects",
)
def chat(output_dir: Path | None):
    """Chat with the assistant in the terminal."""

    resolver, dispatcher = build_chat_components()

    terminal_chat = TerminalChat(resolver=resolver, dispatcher=dispatcher, output_dir=output_dir or get_output_dir())

    anyio.run(terminal_chat.run)


@cli.command()
def verify():
    """Check that the environment is ready to run the assistant."""

    checks: list[SetupCheck] = run_setup_checks(Path.cwd())

    for check in checks:
        click.secho(f"{CHECK_MARKS[check.status]} {check.name}: {check.detail}", fg=CHECK_COLORS[check.status])

    if any(check.status == "error" for check in checks):
        click.secho("\nSetup incomplete. Fix the errors above.", fg="red")
        sys.exit(1)

    click.secho("\nAll checks passed.", fg="green")


if __name__ == "__main__":
    cli()
