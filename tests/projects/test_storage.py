import os
from pathlib import Path

import pytest

from code_assistant_mcp.models.project import ProjectFile, ProjectPayload
from code_assistant_mcp.projects.storage import (
    collect_files,
    get_output_dir,
    read_project,
    read_source_file,
    save_project,
    to_relative_parts,
)
from code_assistant_mcp.servers.shared.errors import (
    InvalidProjectPathError,
    LocalPathNotFoundError,
    LocalPathPermissionError,
    UnreadableSourceFileError,
)


@pytest.fixture
def project() -> ProjectPayload:
    return ProjectPayload(
        project_name="todo-app",
        files=[
            ProjectFile(path="README.md", content="# Todo\n"),
            ProjectFile(path="src/index.js", content="console.log('a');\r\nconsole.log('b');\n"),
            ProjectFile(path="src/components/List.js", content=""),
        ],
    )


async def test_save_and_read_project(tmp_path: Path, project: ProjectPayload):
    project_dir = await save_project(project, output_dir=tmp_path)

    assert project_dir == tmp_path / "todo-app"
    assert (project_dir / "src" / "components" / "List.js").is_file()

    read_back = await read_project(project_dir)

    assert read_back.project_name == "todo-app"
    assert {file.path: file.content for file in read_back.files} == {file.path: file.content for file in project.files}


@pytest.mark.parametrize("path", ["../escape.txt", "/etc/passwd", "src/../../escape.txt", ""])
def test_to_relative_parts_rejects_escaping_paths(path: str):
    with pytest.raises(InvalidProjectPathError):
        _ = to_relative_parts(path)


def test_to_relative_parts_accepts_normal_paths():
    assert to_relative_parts("src/app/main.py") == ("src", "app", "main.py")


@pytest.mark.parametrize("path", ["./index.html", "src//a.js", "src/", "src\\app\\main.py", "src/./a.js"])
def test_to_relative_parts_rejects_paths_not_in_normal_form(path: str):
    with pytest.raises(InvalidProjectPathError, match="single `/` separators"):
        _ = to_relative_parts(path)


async def test_save_project_writes_nothing_when_a_path_is_invalid(tmp_path: Path):
    project = ProjectPayload(
        project_name="bad",
        files=[ProjectFile(path="ok.txt", content="ok"), ProjectFile(path="../escape.txt", content="no")],
    )

    with pytest.raises(InvalidProjectPathError):
        _ = await save_project(project, output_dir=tmp_path)

    assert not (tmp_path / "bad").exists()
    assert not (tmp_path / "escape.txt").exists()


async def test_save_project_rejects_nested_project_name(tmp_path: Path):
    project = ProjectPayload(project_name="a/b", files=[ProjectFile(path="ok.txt", content="ok")])

    with pytest.raises(InvalidProjectPathError):
        _ = await save_project(project, output_dir=tmp_path)


def test_collect_files_skips_ignored_names(tmp_path: Path):
    (tmp_path / "node_modules" / "left-pad").mkdir(parents=True)
    (tmp_path / "node_modules" / "left-pad" / "index.js").write_text("")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "HEAD").write_text("")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "index.js").write_text("")
    (tmp_path / "README.md").write_text("")
    (tmp_path / ".env").write_text("SECRET=1")

    assert [file.relative_path for file in collect_files(tmp_path)] == ["README.md", "src/index.js"]


def test_collect_files_single_file(tmp_path: Path):
    file = tmp_path / "app.py"
    file.write_text("print('hi')")

    assert [file.relative_path for file in collect_files(file)] == ["app.py"]


def test_collect_files_missing_path(tmp_path: Path):
    with pytest.raises(LocalPathNotFoundError, match="Path does not exist"):
        _ = collect_files(tmp_path / "missing")


async def test_read_source_file(tmp_path: Path):
    (tmp_path / "app.py").write_text("print('hi')\n")

    source_file = await read_source_file(tmp_path, "app.py")

    assert source_file.path == tmp_path / "app.py"
    assert source_file.content == "print('hi')\n"


async def test_read_source_file_falls_back_to_src(tmp_path: Path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "server.js").write_text("const x = 1;\n")

    source_file = await read_source_file(tmp_path, "server.js")

    assert source_file.path == tmp_path / "src" / "server.js"


async def test_read_source_file_lists_tried_paths(tmp_path: Path):
    with pytest.raises(LocalPathNotFoundError) as exc_info:
        _ = await read_source_file(tmp_path, "missing.js")

    assert str(exc_info.value) == f"File not found. Tried: {tmp_path / 'missing.js'}, {tmp_path / 'src' / 'missing.js'}"


def test_get_output_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("GENERATED_PROJECTS_DIR", str(tmp_path))

    assert get_output_dir() == tmp_path


def test_get_output_dir_default(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("GENERATED_PROJECTS_DIR", raising=False)

    assert get_output_dir() == Path("~/Desktop/generated-projects").expanduser()


async def test_save_and_read_project_keeps_paths(tmp_path: Path):
    project = ProjectPayload(
        project_name="site",
        files=[ProjectFile(path="index.html", content="<h1>Hi</h1>"), ProjectFile(path="src/a.js", content="")],
    )

    read_back = await read_project(await save_project(project, output_dir=tmp_path))

    assert read_back.file_paths() == project.file_paths()


async def test_save_project_rejects_paths_not_in_normal_form(tmp_path: Path):
    project = ProjectPayload(project_name="site", files=[ProjectFile(path="./index.html", content="<h1>Hi</h1>")])

    with pytest.raises(InvalidProjectPathError, match=r"Invalid project file path: \./index\.html"):
        _ = await save_project(project, output_dir=tmp_path)

    assert not (tmp_path / "site").exists()


async def test_save_project_rejects_duplicate_paths(tmp_path: Path):
    project = ProjectPayload(
        project_name="site",
        files=[ProjectFile(path="index.html", content="first"), ProjectFile(path="index.html", content="second")],
    )

    with pytest.raises(InvalidProjectPathError, match="more than once"):
        _ = await save_project(project, output_dir=tmp_path)

    assert not (tmp_path / "site").exists()


async def test_read_source_file_not_utf8(tmp_path: Path):
    (tmp_path / "a.js").write_bytes(b"\xff\xfe\x00bad")

    with pytest.raises(UnreadableSourceFileError) as exc_info:
        _ = await read_source_file(tmp_path, "a.js")

    assert str(exc_info.value) == f"Cannot decode {tmp_path / 'a.js'} as UTF-8 text. Paste the code directly instead."


@pytest.mark.skipif(not hasattr(os, "geteuid") or os.geteuid() == 0, reason="root can read any file")
async def test_read_source_file_permission_denied(tmp_path: Path):
    source = tmp_path / "secret.js"
    source.write_text("const x = 1;\n")
    source.chmod(0o000)

    try:
        with pytest.raises(LocalPathPermissionError, match="Paste the code directly instead"):
            _ = await read_source_file(tmp_path, "secret.js")
    finally:
        source.chmod(0o644)
