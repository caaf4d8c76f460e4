import threading
import webbrowser
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from logging import Logger
from pathlib import Path
from subprocess import CalledProcessError
from typing import Any, Literal

import anyio
from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field

from code_assistant_mcp.models.project import ProjectPayload

ProjectType = Literal["web-static", "react", "nodejs", "python", "unknown"]

DEFAULT_START_PORT = 8080
MAX_PORT_ATTEMPTS = 100
SERVER_HOST = "127.0.0.1"

EDITOR_COMMAND = "code"


class RunOutcome(BaseModel):
    """How a project was opened for the user."""

    kind: Literal["web", "editor", "manual"]
    path: Path
    url: str | None = None
    port: int | None = None
    message: str = Field(description="Instructions shown to the user.")


class QuietRequestHandler(SimpleHTTPRequestHandler):
    logger: Logger = get_logger(name=__name__)

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        self.logger.debug(format % args)


def detect_project_type(project: ProjectPayload, framework: str | None = None) -> ProjectType:
    paths: list[str] = [path.lower() for path in project.file_paths()]

    if "index.html" in paths:
        return "web-static"

    if any(path.endswith("package.json") for path in paths) and (framework or "").lower() == "react":
        return "react"

    if "package.json" in paths and any(path.endswith((".js", ".ts")) for path in paths):
        return "nodejs"

    if any(path.endswith(".py") for path in paths):
        return "python"

    return "unknown"


def bind_static_server(directory: Path, start_port: int = DEFAULT_START_PORT) -> ThreadingHTTPServer:
    """Bind a static file server to the first free port at or after `start_port`."""

    handler = partial(QuietRequestHandler, directory=str(directory))

    for port in range(start_port, start_port + MAX_PORT_ATTEMPTS):
        try:
            return ThreadingHTTPServer((SERVER_HOST, port), handler)
        except OSError:
            continue

    msg = f"No free port between {start_port} and {start_port + MAX_PORT_ATTEMPTS - 1}"
    raise OSError(msg)


class ProjectRunner:
    """Open saved projects: serve static web projects locally, open everything else in the editor."""

    start_port: int
    servers: dict[str, ThreadingHTTPServer]
    logger: Logger

    def __init__(self, start_port: int = DEFAULT_START_PORT, logger: Logger | None = None):
        self.start_port = start_port
        self.servers = {}
        self.logger = logger or get_logger(name=__name__)

    async def run_project(self, project: ProjectPayload, project_dir: Path, framework: str | None = None) -> RunOutcome:
        project_type: ProjectType = detect_project_type(project, framework=framework)

        self.logger.info(f"Project {project.project_name} detected as {project_type}")

        if project_type == "web-static":
            return self.serve_static(name=project.project_name, directory=project_dir)

        return await self.open_in_editor(project_dir)

    def serve_static(self, name: str, directory: Path) -> RunOutcome:
        """Serve `directory` over HTTP in a background thread and open it in the browser."""

        _ = self.stop_server(name)

        server: ThreadingHTTPServer = bind_static_server(directory, start_port=self.start_port)
        port: int = server.server_address[1]

        threading.Thread(target=server.serve_forever, name=f"static-{name}", daemon=True).start()
        self.servers[name] = server

        url = f"http://localhost:{port}"

        self.logger.info(f"Serving {directory} at {url}")

        self.open_in_browser(url)

        return RunOutcome(
            kind="web",
            path=directory,
            url=url,
            port=port,
            message=f"Project running at {url}\n\nThe server keeps running until you stop it.",
        )

    async def open_in_editor(self, project_dir: Path) -> RunOutcome:
        try:
            _ = await anyio.run_process([EDITOR_COMMAND, str(project_dir)])
        except (FileNotFoundError, CalledProcessError):
            self.logger.warning(f"Could not run `{EDITOR_COMMAND}`, falling back to manual instructions")

            return RunOutcome(
                kind="manual",
                path=project_dir,
                message=(
                    f"Project saved to: {project_dir}\n\n"
                    f"The `{EDITOR_COMMAND}` command was not found in PATH. To open the project manually:\n"
                    "1. Open VS Code\n"
                    "2. File -> Open Folder\n"
                    f"3. Navigate to: {project_dir}"
                ),
            )

        return RunOutcome(
            kind="editor",
            path=project_dir,
            message=f"Project opened in VS Code\n\nPath: {project_dir}",
        )

    def open_in_browser(self, url: str) -> None:
        if not webbrowser.open(url):
            self.logger.warning(f"Could not open a browser automatically. Please visit: {url}")

    def stop_server(self, name: str) -> bool:
        if (server := self.servers.pop(name, None)) is None:
            return False

        server.shutdown()
        server.server_close()

        self.logger.info(f"Stopped server for {name}")

        return True

    def stop_all_servers(self) -> None:
        for name in list(self.servers):
            _ = self.stop_server(name)
