import json
from collections.abc import Sequence
from logging import Logger, getLogger
from typing import Any

import pytest
from pydantic import BaseModel
from typing_extensions import override

from code_assistant_mcp.clients.errors.github import ResourceNotFoundError
from code_assistant_mcp.clients.github import BranchHead, GitHubCommitClient, RepositoryInfo, TreeEntry
from code_assistant_mcp.clients.models import GenerationSettings, ModelClient

ENVIRONMENT_VARIABLES = (
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "GITHUB_TOKEN",
    "GITHUB_PERSONAL_ACCESS_TOKEN",
    "GITHUB_OWNER",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """Tests never see the credentials of the machine running them."""

    for env_var in ENVIRONMENT_VARIABLES:
        monkeypatch.delenv(env_var, raising=False)


class ModelCall(BaseModel):
    prompt: str
    settings: GenerationSettings
    action: str


class FakeModelClient(ModelClient):
    """A model client that answers with canned responses, in order."""

    def __init__(self, responses: Sequence[str | dict[str, Any]] = (), logger: Logger | None = None):
        self.default_model = "fake-model"
        self.logger = logger or getLogger(__name__)
        self.responses: list[str] = [response if isinstance(response, str) else json.dumps(response) for response in responses]
        self.calls: list[ModelCall] = []

    @override
    async def _generate(self, prompt: str, settings: GenerationSettings, action: str) -> str | None:
        self.calls.append(ModelCall(prompt=prompt, settings=settings, action=action))

        if not self.responses:
            msg = f"No canned response left for {action}"
            raise AssertionError(msg)

        return self.responses.pop(0)


class FakeGitHubCommitClient(GitHubCommitClient):
    """An in-memory GitHub that records every write."""

    def __init__(
        self,
        repository: RepositoryInfo | None = None,
        branches: dict[str, BranchHead] | None = None,
        login: str = "octocat",
    ):
        super().__init__(githubkit_client=None, logger=getLogger(__name__))
        self.repository = repository
        self.branches: dict[str, BranchHead] = branches if branches is not None else {}
        self.login = login
        self.blobs: list[bytes] = []
        self.trees: list[tuple[list[TreeEntry], str | None]] = []
        self.commits: list[tuple[str, str, list[str]]] = []
        self.created_branches: list[tuple[str, str]] = []
        self.updated_branches: list[tuple[str, str]] = []
        self.seeded: list[tuple[str, bytes]] = []

    @override
    async def get_authenticated_login(self) -> str:
        return self.login

    @override
    async def get_repository(self, owner: str, repo: str) -> RepositoryInfo:
        if self.repository is None or (self.repository.owner, self.repository.name) != (owner, repo):
            raise ResourceNotFoundError(action="Get repository", resource=f"/repos/{owner}/{repo}")

        return self.repository

    @override
    async def get_branch_head(self, owner: str, repo: str, branch: str) -> BranchHead | None:
        return self.branches.get(branch)

    @override
    async def seed_empty_repository(self, owner: str, repo: str, path: str, content: bytes, message: str) -> str:
        assert self.repository is not None
        self.seeded.append((path, content))
        self.branches[self.repository.default_branch] = BranchHead(commit_sha="seed-commit", tree_sha="seed-tree")
        return "seed-commit"

    @override
    async def create_blob(self, owner: str, repo: str, content: bytes) -> str:
        self.blobs.append(content)
        return f"blob-{len(self.blobs)}"

    @override
    async def create_tree(self, owner: str, repo: str, entries: Sequence[TreeEntry], base_tree: str | None = None) -> str:
        self.trees.append((list(entries), base_tree))
        return f"tree-{len(self.trees)}"

    @override
    async def create_commit(self, owner: str, repo: str, message: str, tree: str, parents: Sequence[str]) -> str:
        self.commits.append((message, tree, list(parents)))
        return f"commit-{len(self.commits)}"

    @override
    async def update_branch(self, owner: str, repo: str, branch: str, sha: str) -> None:
        self.updated_branches.append((branch, sha))

    @override
    async def create_branch(self, owner: str, repo: str, branch: str, sha: str) -> None:
        self.created_branches.append((branch, sha))


def generated_project_response(project_name: str = "todo-app") -> dict[str, Any]:
    return {
        "projectName": project_name,
        "files": [
            {"path": "README.md", "content": "# Todo App\n"},
            {"path": "package.json", "content": '{"name": "todo-app"}\n'},
            {"path": "src/index.js", "content": "console.log('todo');\n"},
            {"path": "src/components/List.js", "content": "export const List = () => null;\n"},
        ],
        "setup": {"install": ["npm install"], "run": ["npm start"], "test": []},
        "notes": "Requires Node 18.",
    }


def bug_analysis_response() -> dict[str, Any]:
    return {
        "summary": {"totalIssues": 1, "critical": 1, "warning": 0, "info": 0},
        "issues": [
            {
                "severity": "Critical",
                "type": "TypeError",
                "line": 2,
                "description": "`tostring` is not a function.",
                "suggestion": "Use `toString()`.",
                "codeSnippet": "return x.tostring();",
            }
        ],
        "overallAssessment": "One crash on every call.",
    }


def dump_for_snapshot(basemodel: BaseModel, /, exclude_keys: list[str] | None = None, **dump_kwargs: Any) -> dict[str, Any]:
    dumped: dict[str, Any] = basemodel.model_dump(mode="json", **dump_kwargs)

    return {key: value for key, value in dumped.items() if key not in (exclude_keys or [])}
