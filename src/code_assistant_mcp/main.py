from logging import Logger
from typing import Literal

import click
from fastmcp import FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import get_logger

from code_assistant_mcp.clients.models import ModelClient, get_model_client
from code_assistant_mcp.servers.best_practices import BestPracticesServer
from code_assistant_mcp.servers.bugs import BugDetectorServer
from code_assistant_mcp.servers.commit import GitHubCommitServer
from code_assistant_mcp.servers.generate import CodeGeneratorServer

logger: Logger = get_logger(name=__name__)

mcp: FastMCP[None] = FastMCP[None](name="Code Assistant MCP")

mcp.add_middleware(middleware=LoggingMiddleware(include_payloads=True, logger=logger))

model_client: ModelClient = get_model_client()

code_generator_server: CodeGeneratorServer = CodeGeneratorServer(model_client=model_client, logger=logger)
_ = code_generator_server.register_tools(fastmcp=mcp)

bug_detector_server: BugDetectorServer = BugDetectorServer(model_client=model_client, logger=logger)
_ = bug_detector_server.register_tools(fastmcp=mcp)

best_practices_server: BestPracticesServer = BestPracticesServer(model_client=model_client, logger=logger)
_ = best_practices_server.register_tools(fastmcp=mcp)

github_commit_server: GitHubCommitServer = GitHubCommitServer(logger=logger)
_ = github_commit_server.register_tools(fastmcp=mcp)


@click.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
def run_mcp(mcp_transport: Literal["stdio", "streamable-http"]):
    mcp.run(transport=mcp_transport)


if __name__ == "__main__":
    run_mcp()
