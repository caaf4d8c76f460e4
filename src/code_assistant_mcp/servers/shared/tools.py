from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from code_assistant_mcp.servers.shared.errors import MissingParametersError, UnknownToolError

GENERATE_CODE = "generate-code"
DETECT_BUGS = "detect-bugs"
CHECK_BEST_PRACTICES = "check-best-practices"
GITHUB_COMMIT = "github-commit"


class ToolSpec(BaseModel):
    """How a tool is described to users and which parameters it needs."""

    name: str
    title: str
    description: str
    keywords: list[str]
    required_params: list[str] = Field(description="Parameters that must all be present.")
    one_of_params: list[str] = Field(default_factory=list, description="Parameters of which at least one must be present.")
    optional_params: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)

    def missing_params(self, params: Mapping[str, Any]) -> list[str]:
        """Return the names of the required parameters absent from `params`, in declaration order."""

        missing: list[str] = [name for name in self.required_params if not is_present(params.get(name))]

        if self.one_of_params and not any(is_present(params.get(name)) for name in self.one_of_params):
            missing.extend(self.one_of_params)

        return missing


def is_present(value: Any) -> bool:  # pyright: ignore[reportAny]
    if value is None:
        return False

    if isinstance(value, str):
        return bool(value.strip())

    return True


TOOL_SPECS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in [
        ToolSpec(
            name=GENERATE_CODE,
            title="Code Generator",
            description="Generate complete projects with code",
            keywords=["generate", "create", "build", "make", "code", "project", "app"],
            required_params=["description", "language"],
            optional_params=["framework", "includeTests"],
            examples=[
                "Generate a todo app in React",
                "Create a REST API in Python using FastAPI",
                "Build a calculator app in JavaScript",
            ],
        ),
        ToolSpec(
            name=DETECT_BUGS,
            title="Bug Detector",
            description="Analyze code for bugs and errors",
            keywords=["detect", "find", "bugs", "errors", "issues", "analyze", "check bugs"],
            required_params=["language"],
            one_of_params=["code", "fileName"],
            optional_params=["rootDirectory"],
            examples=[
                "Detect bugs in file: src/server.js language: javascript",
                "Find issues in file: /Users/me/project/app.py language: python",
            ],
        ),
        ToolSpec(
            name=CHECK_BEST_PRACTICES,
            title="Best Practices Checker",
            description="Review code for best practices",
            keywords=["best practices", "review", "code quality", "standards", "check code"],
            required_params=["code", "language"],
            optional_params=["framework", "strictMode"],
            examples=[
                "Check best practices for code: ```const x = 5``` language: javascript",
                "Review code quality language: python code: print('hello')",
            ],
        ),
        ToolSpec(
            name=GITHUB_COMMIT,
            title="GitHub Commit",
            description="Commit and push code to GitHub",
            keywords=["commit", "push", "github", "git", "upload"],
            required_params=["localPath", "repo", "branch"],
            optional_params=["message", "owner"],
            examples=[
                'Commit to github repo: my-repo branch: main message: "Initial commit"',
                "Push code to repository: test-app branch: dev path: ./test-app",
            ],
        ),
    ]
}


def get_tool_spec(tool: str) -> ToolSpec:
    if spec := TOOL_SPECS.get(tool):
        return spec

    raise UnknownToolError(tool=tool)


def require_params(tool: str, params: Mapping[str, Any]) -> None:
    """Raise a MissingParametersError naming every required parameter missing from `params`."""

    if missing := get_tool_spec(tool).missing_params(params):
        raise MissingParametersError(tool=tool, missing=missing)
