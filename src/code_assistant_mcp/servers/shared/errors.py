from collections.abc import Sequence
from pathlib import Path

ExtraInfoType = dict[str, str | None]


class ServerError(Exception):
    """A request error from the Code Assistant server."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class MissingParametersError(ServerError):
    """A request is missing one or more required parameters."""

    def __init__(self, tool: str, missing: Sequence[str]):
        self.tool: str = tool
        self.missing: list[str] = list(missing)
        super().__init__(message=f"Missing required parameters: {', '.join(self.missing)}", extra_info={"tool": tool})


class UnknownToolError(ServerError):
    """A request names a tool that does not exist."""

    def __init__(self, tool: str):
        super().__init__(message=f"Unknown tool: {tool}")


class LocalPathNotFoundError(ServerError):
    """A local path referenced by a request does not exist."""

    def __init__(self, path: Path | str, tried: Sequence[Path | str] | None = None):
        self.path: str = str(path)
        message = f"Path does not exist: {path}"
        if tried and len(tried) > 1:
            message = "File not found. Tried: " + ", ".join(str(tried_path) for tried_path in tried)
        super().__init__(message=message)


class LocalPathPermissionError(ServerError):
    """A local path referenced by a request cannot be read."""

    def __init__(self, path: Path | str):
        self.path: str = str(path)
        super().__init__(
            message=f"Permission denied to read: {path}. Paste the code directly instead, or grant read access to the file."
        )


class InvalidProjectPathError(ServerError):
    """A generated project contains a file path that cannot be written as given."""

    def __init__(self, path: str, reason: str = "Paths must be relative and stay inside the project."):
        self.path: str = path
        super().__init__(message=f"Invalid project file path: {path}. {reason}")


class UnreadableSourceFileError(ServerError):
    """A source file exists but is not UTF-8 text."""

    def __init__(self, path: Path | str):
        self.path: str = str(path)
        super().__init__(message=f"Cannot decode {path} as UTF-8 text. Paste the code directly instead.")


class NoFilesToCommitError(ServerError):
    """A local directory has no files left to commit once ignored files are skipped."""

    def __init__(self, path: Path | str):
        self.path: str = str(path)
        super().__init__(message=f"No files to commit in: {path}")


class UnrecognizedRequestError(ServerError):
    """A chat message could not be mapped to any tool."""

    def __init__(self):
        super().__init__(message='Could not understand your request. Try being more specific or use "help" to see examples.')
