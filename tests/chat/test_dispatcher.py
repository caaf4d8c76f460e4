from pathlib import Path

import pytest

from code_assistant_mcp.chat.dispatcher import ToolDispatcher
from code_assistant_mcp.clients.github import BranchHead, RepositoryInfo
from code_assistant_mcp.models.analysis import BestPracticesReview, BugReport
from code_assistant_mcp.models.commit import CommitResult
from code_assistant_mcp.servers.best_practices import BestPracticesServer
from code_assistant_mcp.servers.bugs import BugDetectorServer
from code_assistant_mcp.servers.commit import GitHubCommitServer
from code_assistant_mcp.servers.generate import CodeGeneratorServer
from code_assistant_mcp.servers.shared.errors import MissingParametersError, UnknownToolError
from tests.conftest import FakeGitHubCommitClient, FakeModelClient, bug_analysis_response, generated_project_response


def dispatcher_for(model_client: FakeModelClient, github_client: FakeGitHubCommitClient | None = None) -> ToolDispatcher:
    return ToolDispatcher(
        code_generator=CodeGeneratorServer(model_client=model_client),
        bug_detector=BugDetectorServer(model_client=model_client),
        best_practices=BestPracticesServer(model_client=model_client),
        github_commit=GitHubCommitServer(github_client=github_client or FakeGitHubCommitClient()),
    )


async def test_dispatch_generate_code():
    model_client = FakeModelClient(responses=[generated_project_response()])

    outcome = await dispatcher_for(model_client).dispatch(
        "generate-code", {"description": "a todo app", "language": "javascript", "includeTests": True}
    )

    assert outcome.tool == "generate-code"
    assert outcome.project is not None
    assert outcome.project.summary.has_tests is True
    assert outcome.content.startswith("# 🎉 Project Generated Successfully!")


async def test_dispatch_detect_bugs():
    model_client = FakeModelClient(responses=[bug_analysis_response()])

    outcome = await dispatcher_for(model_client).dispatch("detect-bugs", {"language": "javascript", "code": "x.tostring()"})

    assert isinstance(outcome.result, BugReport)
    assert outcome.project is None
    assert "### 🔴 Issue 1: TypeError" in outcome.content


async def test_dispatch_check_best_practices():
    model_client = FakeModelClient(responses=["Looks fine."])

    outcome = await dispatcher_for(model_client).dispatch(
        "check-best-practices", {"code": "x = 1", "language": "python", "strictMode": True}
    )

    assert isinstance(outcome.result, BestPracticesReview)
    assert outcome.result.strict_mode is True
    assert outcome.content == "# ✅ Best Practices Review: python [strict]\n\nLooks fine.\n"


async def test_dispatch_github_commit(tmp_path: Path):
    (tmp_path / "README.md").write_text("# Demo\n")

    github_client = FakeGitHubCommitClient(
        repository=RepositoryInfo(owner="octocat", name="demo", default_branch="main", html_url="https://github.com/octocat/demo", can_push=True),
        branches={"main": BranchHead(commit_sha="c0", tree_sha="t0")},
    )

    outcome = await dispatcher_for(FakeModelClient(), github_client=github_client).dispatch(
        "github-commit", {"localPath": str(tmp_path), "repo": "demo", "branch": "main", "message": "Add readme"}
    )

    assert isinstance(outcome.result, CommitResult)
    assert outcome.result.files_committed == 1
    assert "**Message:** Add readme" in outcome.content


async def test_dispatch_missing_params():
    model_client = FakeModelClient()

    with pytest.raises(MissingParametersError) as exc_info:
        _ = await dispatcher_for(model_client).dispatch("github-commit", {"localPath": "."})

    assert exc_info.value.missing == ["repo", "branch"]
    assert model_client.calls == []


async def test_dispatch_unknown_tool():
    with pytest.raises(UnknownToolError, match="Unknown tool: deploy"):
        _ = await dispatcher_for(FakeModelClient()).dispatch("deploy", {})


def test_from_model_client():
    dispatcher = ToolDispatcher.from_model_client(model_client=FakeModelClient())

    assert dispatcher.code_generator.model_client is dispatcher.bug_detector.model_client
