import pytest

from code_assistant_mcp.servers.shared.errors import MissingParametersError, UnknownToolError
from code_assistant_mcp.servers.shared.tools import TOOL_SPECS, get_tool_spec, is_present, require_params


@pytest.mark.parametrize(
    ("tool", "params", "expected"),
    [
        ("generate-code", {"description": "a todo app", "language": "javascript"}, []),
        ("generate-code", {"description": "  ", "language": None}, ["description", "language"]),
        ("detect-bugs", {"language": "python", "fileName": "app.py"}, []),
        ("detect-bugs", {"language": "python", "code": "x = 1"}, []),
        ("detect-bugs", {"code": ""}, ["language", "code", "fileName"]),
        ("check-best-practices", {"language": "python"}, ["code"]),
        ("github-commit", {"localPath": ".", "repo": "demo"}, ["branch"]),
    ],
)
def test_missing_params(tool: str, params: dict[str, str | None], expected: list[str]):
    assert TOOL_SPECS[tool].missing_params(params) == expected


def test_is_present():
    assert is_present(False) is True
    assert is_present(0) is True
    assert is_present(" ") is False
    assert is_present(None) is False


def test_require_params():
    with pytest.raises(MissingParametersError) as exc_info:
        require_params("github-commit", {})

    assert str(exc_info.value) == "Missing required parameters: localPath, repo, branch (tool: github-commit)"


def test_get_tool_spec_unknown():
    with pytest.raises(UnknownToolError, match="Unknown tool: deploy"):
        _ = get_tool_spec("deploy")
