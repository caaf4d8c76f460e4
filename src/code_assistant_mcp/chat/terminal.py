from functools import partial
from logging import Logger
from pathlib import Path
from typing import Any

import click
from anyio import to_thread
from fastmcp.utilities.logging import get_logger

from code_assistant_mcp.chat.dispatcher import ToolDispatcher, ToolOutcome
from code_assistant_mcp.chat.formatting import format_help, format_tool_help, format_tools_list
from code_assistant_mcp.chat.intent import IntentResolver, ResolvedIntent
from code_assistant_mcp.models.project import GeneratedProject
from code_assistant_mcp.projects.runner import ProjectRunner, RunOutcome
from code_assistant_mcp.projects.storage import save_project
from code_assistant_mcp.servers.shared.tools import TOOL_SPECS, get_tool_spec, is_present

EXIT_COMMANDS = frozenset({"exit", "quit"})

BANNER = "Code Assistant. Describe what you want, or type `help`, `tools`, or `exit`."


class TerminalChat:
    """An interactive prompt loop over the same resolver, dispatcher, and formatters as the web chat."""

    resolver: IntentResolver
    dispatcher: ToolDispatcher
    runner: ProjectRunner
    output_dir: Path
    logger: Logger

    def __init__(
        self,
        resolver: IntentResolver,
        dispatcher: ToolDispatcher,
        output_dir: Path,
        runner: ProjectRunner | None = None,
        logger: Logger | None = None,
    ):
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.output_dir = output_dir
        self.runner = runner or ProjectRunner()
        self.logger = logger or get_logger(name=__name__)

    async def prompt(self, text: str, **kwargs: Any) -> Any:  # pyright: ignore[reportAny]
        return await to_thread.run_sync(partial(click.prompt, text, **kwargs))  # pyright: ignore[reportAny]

    async def confirm(self, text: str) -> bool:
        return await to_thread.run_sync(partial(click.confirm, text, default=True))

    async def run(self) -> None:
        click.secho(BANNER, fg="cyan")

        try:
            while True:
                text: str = (await self.prompt("\nYou", prompt_suffix="> ")).strip()

                if text.lower() in EXIT_COMMANDS:
                    break

                if text:
                    await self.handle(text)
        finally:
            self.runner.stop_all_servers()

    async def handle(self, text: str) -> None:
        command: str = text.lower()

        if command == "help":
            click.echo(format_help())
            return

        if command.startswith("help "):
            tool: str = command.removeprefix("help ").strip()
            if spec := TOOL_SPECS.get(tool):
                click.echo(format_tool_help(spec))
            else:
                click.secho(f"Unknown tool: {tool}. Type `tools` to list the tools.", fg="yellow")
            return

        if command == "tools":
            click.echo(format_tools_list())
            return

        try:
            intent: ResolvedIntent = await self.resolver.resolve(text)

            click.secho(f"Using {intent.tool}...", fg="cyan")

            params: dict[str, Any] = await self.fill_missing_params(intent)
            outcome: ToolOutcome = await self.dispatcher.dispatch(intent.tool, params)

            click.echo(outcome.content)

            if outcome.project is not None:
                await self.offer_to_save(outcome.project)

        except Exception as e:
            self.logger.debug(f"Failed to handle {text!r}", exc_info=True)
            click.secho(f"Error: {e}", fg="red")

    async def fill_missing_params(self, intent: ResolvedIntent) -> dict[str, Any]:
        """Ask for each required parameter the message did not provide."""

        params: dict[str, Any] = dict(intent.parameters)
        spec = get_tool_spec(intent.tool)

        for name in spec.missing_params(params):
            if name in spec.one_of_params and any(is_present(params.get(other)) for other in spec.one_of_params):
                continue

            params[name] = await self.prompt(f"{name}")

        return params

    async def offer_to_save(self, project: GeneratedProject) -> None:
        if not await self.confirm(f"Save {project.project_name} to {self.output_dir}?"):
            return

        project_dir: Path = await save_project(project, output_dir=self.output_dir)

        click.secho(f"Saved to {project_dir}", fg="green")

        if not await self.confirm("Open the project?"):
            return

        run_outcome: RunOutcome = await self.runner.run_project(project, project_dir=project_dir, framework=project.summary.framework)

        click.echo(run_outcome.message)
