import os
from pathlib import Path, PurePosixPath

from anyio import Path as AsyncPath
from anyio import open_file
from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel

from code_assistant_mcp.models.project import ProjectFile, ProjectPayload
from code_assistant_mcp.servers.shared.errors import (
    InvalidProjectPathError,
    LocalPathNotFoundError,
    LocalPathPermissionError,
    UnreadableSourceFileError,
)

logger = get_logger(__name__)

IGNORED_NAMES: frozenset[str] = frozenset(
    {
        ".git",
        "node_modules",
        ".DS_Store",
        "dist",
        "build",
        ".env",
        ".env.local",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "__pycache__",
    }
)


DEFAULT_OUTPUT_DIR = "~/Desktop/generated-projects"


def get_output_dir() -> Path:
    """The directory generated projects are saved under, from GENERATED_PROJECTS_DIR."""

    return Path(os.getenv("GENERATED_PROJECTS_DIR") or DEFAULT_OUTPUT_DIR).expanduser()


class LocalFile(BaseModel):
    """A file found under a local directory."""

    path: Path
    relative_path: str


class SourceFile(BaseModel):
    """A source file read from disk for analysis."""

    path: Path
    content: str


def to_relative_parts(relative_path: str) -> tuple[str, ...]:
    """Split a project-relative path.

    The path must already be in normal form, so that reading the project back yields the same path.

    Raises:
        InvalidProjectPathError: If the path escapes the project directory or is not in normal form.
    """

    pure_path = PurePosixPath(relative_path)

    if pure_path.is_absolute() or ".." in pure_path.parts or not pure_path.parts:
        raise InvalidProjectPathError(path=relative_path)

    if "\\" in relative_path or pure_path.as_posix() != relative_path:
        raise InvalidProjectPathError(path=relative_path, reason="Paths must use single `/` separators without `.` segments.")

    return pure_path.parts


def get_project_dir(project: ProjectPayload, output_dir: Path) -> Path:
    if len(to_relative_parts(project.project_name)) != 1:
        raise InvalidProjectPathError(path=project.project_name)

    return output_dir / project.project_name


async def save_project(project: ProjectPayload, output_dir: Path) -> Path:
    """Write the files of a project under `output_dir/<project_name>` and return the project directory."""

    project_dir: Path = get_project_dir(project=project, output_dir=output_dir)

    # Validate every path before anything is written.
    seen_paths: set[str] = set()
    for file in project.files:
        if file.path in seen_paths:
            raise InvalidProjectPathError(path=file.path, reason="The project contains this path more than once.")
        seen_paths.add(file.path)

    targets: list[tuple[Path, ProjectFile]] = [(project_dir.joinpath(*to_relative_parts(file.path)), file) for file in project.files]

    await AsyncPath(project_dir).mkdir(parents=True, exist_ok=True)

    for target, file in targets:
        await AsyncPath(target.parent).mkdir(parents=True, exist_ok=True)

        async with await open_file(target, "w", encoding="utf-8", newline="") as f:
            _ = await f.write(file.content)

    logger.info(f"Saved {len(targets)} files of project {project.project_name} to {project_dir}")

    return project_dir


async def read_project(project_dir: Path) -> ProjectPayload:
    """Read a project directory back into a payload. Files are ordered by relative path."""

    if not project_dir.is_dir():
        raise LocalPathNotFoundError(path=project_dir)

    files: list[ProjectFile] = []

    for local_file in collect_files(project_dir, ignored_names=frozenset()):
        async with await open_file(local_file.path, encoding="utf-8", newline="") as f:
            content: str = await f.read()

        files.append(ProjectFile(path=local_file.relative_path, content=content))

    return ProjectPayload(project_name=project_dir.name, files=files)


def collect_files(local_path: Path, ignored_names: frozenset[str] = IGNORED_NAMES) -> list[LocalFile]:
    """Recursively list the files under `local_path`, skipping ignored files and directories."""

    if not local_path.exists():
        raise LocalPathNotFoundError(path=local_path)

    if local_path.is_file():
        return [LocalFile(path=local_path, relative_path=local_path.name)]

    files: list[LocalFile] = []

    for directory, directory_names, file_names in os.walk(local_path):
        directory_names[:] = sorted(name for name in directory_names if name not in ignored_names)

        for file_name in sorted(file_names):
            if file_name in ignored_names:
                continue

            path = Path(directory) / file_name
            files.append(LocalFile(path=path, relative_path=path.relative_to(local_path).as_posix()))

    return sorted(files, key=lambda file: file.relative_path)


async def read_source_file(root_directory: Path, file_name: str) -> SourceFile:
    """Read `file_name` relative to `root_directory`, falling back to the `src/` directory.

    Raises:
        LocalPathNotFoundError: If no candidate path exists. The error lists every path that was tried.
        LocalPathPermissionError: If a candidate exists but cannot be read.
        UnreadableSourceFileError: If a candidate is not UTF-8 text.
    """

    candidates: list[Path] = [root_directory / file_name]

    if not file_name.replace("\\", "/").startswith("src/") and not Path(file_name).is_absolute():
        candidates.append(root_directory / "src" / file_name)

    for candidate in candidates:
        try:
            async with await open_file(candidate, encoding="utf-8") as f:
                content: str = await f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            continue
        except PermissionError as e:
            raise LocalPathPermissionError(path=candidate) from e
        except UnicodeDecodeError as e:
            raise UnreadableSourceFileError(path=candidate) from e

        logger.info(f"Read source file {candidate}")

        return SourceFile(path=candidate, content=content)

    raise LocalPathNotFoundError(path=candidates[0], tried=candidates)
