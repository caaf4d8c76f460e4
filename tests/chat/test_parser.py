from pathlib import Path

import pytest

from code_assistant_mcp.chat.parser import CommandParser, split_file_path


@pytest.fixture
def parser() -> CommandParser:
    return CommandParser()


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Generate a todo app in React", "generate-code"),
        ("Generate a bug tracker in Python", "generate-code"),
        ("Detect bugs in file: src/server.js", "detect-bugs"),
        ("Find issues in this code: ```x = 1```", "detect-bugs"),
        ("Check best practices for code: const x = 5", "check-best-practices"),
        ("Review code quality: print('hi')", "check-best-practices"),
        ("Commit to github repo: my-repo branch: main", "github-commit"),
        ("push code to https://github.com/octo/hello-world", "github-commit"),
        ("What's the weather like?", None),
    ],
)
def test_parse_command(parser: CommandParser, text: str, expected: str | None):
    assert parser.parse_command(text) == expected


class TestGenerateCode:
    def test_extract_params(self, parser: CommandParser):
        params = parser.extract_params("Generate a todo app in React with tests", "generate-code")

        assert params == {
            "description": "a todo app in React with tests",
            "language": "javascript",
            "framework": "react",
            "includeTests": True,
        }

    def test_extract_params_with_language(self, parser: CommandParser):
        params = parser.extract_params("Create a REST API in Python using FastAPI", "generate-code")

        assert params == {"description": "a REST API in Python using FastAPI", "language": "python", "framework": "fastapi"}


class TestDetectBugs:
    def test_file_with_directory(self, parser: CommandParser):
        params = parser.extract_params("Detect bugs in file: src/server.js language: javascript", "detect-bugs")

        assert params == {"language": "javascript", "rootDirectory": "src", "fileName": "server.js"}

    def test_absolute_path(self, parser: CommandParser):
        params = parser.extract_params("Find issues in /Users/me/project/app.py language: python", "detect-bugs")

        assert params == {"language": "python", "rootDirectory": "/Users/me/project", "fileName": "app.py"}

    def test_fenced_code(self, parser: CommandParser):
        text = "Find bugs in this code:\n```js\nfunction f(x) { return x.tostring(); }\n```"

        params = parser.extract_params(text, "detect-bugs")

        assert params == {"language": "javascript", "code": "function f(x) { return x.tostring(); }"}

    def test_no_code_or_file(self, parser: CommandParser):
        params = parser.extract_params("Detect bugs please", "detect-bugs")

        assert params == {"language": "javascript"}
        assert parser.validate_params("detect-bugs", params) == ["code", "fileName"]


class TestCheckBestPractices:
    def test_code_after_label(self, parser: CommandParser):
        params = parser.extract_params("Check best practices for code: const x = 5 language: javascript", "check-best-practices")

        assert params == {"code": "const x = 5", "language": "javascript"}

    def test_strict_mode(self, parser: CommandParser):
        params = parser.extract_params("Review code quality in strict mode: ```print('hello')``` language: python", "check-best-practices")

        assert params == {"code": "print('hello')", "language": "python", "strictMode": True}


class TestGitHubCommit:
    def test_extract_params(self, parser: CommandParser):
        text = 'Commit to github repo: my-repo branch: dev message: "Initial commit" path: ./my-app'

        params = parser.extract_params(text, "github-commit")

        assert params == {"localPath": "./my-app", "repo": "my-repo", "branch": "dev", "message": "Initial commit"}

    def test_github_url_and_defaults(self, parser: CommandParser):
        params = parser.extract_params("push code to https://github.com/octo/hello-world.git", "github-commit")

        assert params == {"localPath": str(Path.cwd()), "repo": "hello-world", "owner": "octo", "branch": "main"}

    def test_missing_repo(self, parser: CommandParser):
        params = parser.extract_params("git commit my changes", "github-commit")

        assert parser.validate_params("github-commit", params) == ["repo"]


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("server.js", {"fileName": "server.js"}),
        ("src/server.js", {"rootDirectory": "src", "fileName": "server.js"}),
        ("/app.py", {"rootDirectory": "/", "fileName": "app.py"}),
        ("C:\\code\\app.py", {"rootDirectory": "C:/code", "fileName": "app.py"}),
    ],
)
def test_split_file_path(path: str, expected: dict[str, str]):
    assert split_file_path(path) == expected


def test_get_tool_help(parser: CommandParser):
    spec = parser.get_tool_help("github-commit")

    assert spec is not None
    assert spec.required_params == ["localPath", "repo", "branch"]
    assert parser.get_tool_help("deploy") is None
