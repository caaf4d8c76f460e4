from collections.abc import Mapping
from logging import Logger
from typing import Any

from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field

from code_assistant_mcp.chat.formatting import (
    format_best_practices_review,
    format_bug_report,
    format_commit_result,
    format_generated_project,
)
from code_assistant_mcp.clients.models import ModelClient, get_model_client
from code_assistant_mcp.models.analysis import BestPracticesReview, BugReport
from code_assistant_mcp.models.base import CamelModel
from code_assistant_mcp.models.commit import CommitResult
from code_assistant_mcp.models.project import GeneratedProject
from code_assistant_mcp.servers.best_practices import BestPracticesServer
from code_assistant_mcp.servers.bugs import BugDetectorServer
from code_assistant_mcp.servers.commit import GitHubCommitServer
from code_assistant_mcp.servers.generate import DEFAULT_LANGUAGE, CodeGeneratorServer
from code_assistant_mcp.servers.shared.errors import UnknownToolError
from code_assistant_mcp.servers.shared.tools import CHECK_BEST_PRACTICES, DETECT_BUGS, GENERATE_CODE, GITHUB_COMMIT, require_params


class GenerateCodeParams(CamelModel):
    description: str
    language: str = DEFAULT_LANGUAGE
    framework: str | None = None
    include_tests: bool = False


class DetectBugsParams(CamelModel):
    language: str
    code: str | None = None
    file_name: str | None = None
    root_directory: str | None = None


class CheckBestPracticesParams(CamelModel):
    code: str
    language: str
    framework: str | None = None
    strict_mode: bool = False


class GitHubCommitParams(CamelModel):
    local_path: str
    repo: str
    branch: str
    message: str | None = None
    owner: str | None = None


class ToolOutcome(BaseModel):
    """The result of a tool call and its rendering for the chat."""

    tool: str
    content: str = Field(description="The markdown shown to the user.")
    result: BaseModel

    @property
    def project(self) -> GeneratedProject | None:
        return self.result if isinstance(self.result, GeneratedProject) else None


class ToolDispatcher:
    """Run a tool by name with a flat parameter bag and format its result."""

    code_generator: CodeGeneratorServer
    bug_detector: BugDetectorServer
    best_practices: BestPracticesServer
    github_commit: GitHubCommitServer
    logger: Logger

    def __init__(
        self,
        code_generator: CodeGeneratorServer,
        bug_detector: BugDetectorServer,
        best_practices: BestPracticesServer,
        github_commit: GitHubCommitServer,
        logger: Logger | None = None,
    ):
        self.code_generator = code_generator
        self.bug_detector = bug_detector
        self.best_practices = best_practices
        self.github_commit = github_commit
        self.logger = logger or get_logger(name=__name__)

    @classmethod
    def from_model_client(cls, model_client: ModelClient | None = None, logger: Logger | None = None) -> "ToolDispatcher":
        model_client = model_client or get_model_client()

        return cls(
            code_generator=CodeGeneratorServer(model_client=model_client, logger=logger),
            bug_detector=BugDetectorServer(model_client=model_client, logger=logger),
            best_practices=BestPracticesServer(model_client=model_client, logger=logger),
            github_commit=GitHubCommitServer(logger=logger),
            logger=logger,
        )

    async def dispatch(self, tool: str, params: Mapping[str, Any]) -> ToolOutcome:
        """Validate `params` for `tool`, run it, and format the result.

        Raises:
            UnknownToolError: If `tool` is not one of the four tools.
            MissingParametersError: If required parameters are missing.
        """

        require_params(tool, params)

        self.logger.info(f"Dispatching {tool} with parameters {sorted(params)}")

        if tool == GENERATE_CODE:
            generate_params = GenerateCodeParams.model_validate(params)
            project: GeneratedProject = await self.code_generator.generate_code(
                description=generate_params.description,
                language=generate_params.language,
                framework=generate_params.framework,
                include_tests=generate_params.include_tests,
            )
            return ToolOutcome(tool=tool, content=format_generated_project(project), result=project)

        if tool == DETECT_BUGS:
            detect_params = DetectBugsParams.model_validate(params)
            report: BugReport = await self.bug_detector.detect_bugs(
                language=detect_params.language,
                code=detect_params.code,
                file_name=detect_params.file_name,
                root_directory=detect_params.root_directory,
            )
            return ToolOutcome(tool=tool, content=format_bug_report(report), result=report)

        if tool == CHECK_BEST_PRACTICES:
            review_params = CheckBestPracticesParams.model_validate(params)
            review: BestPracticesReview = await self.best_practices.check_best_practices(
                code=review_params.code,
                language=review_params.language,
                framework=review_params.framework,
                strict_mode=review_params.strict_mode,
            )
            return ToolOutcome(tool=tool, content=format_best_practices_review(review), result=review)

        if tool == GITHUB_COMMIT:
            commit_params = GitHubCommitParams.model_validate(params)
            commit: CommitResult = await self.github_commit.github_commit(
                local_path=commit_params.local_path,
                repo=commit_params.repo,
                branch=commit_params.branch,
                message=commit_params.message,
                owner=commit_params.owner,
            )
            return ToolOutcome(tool=tool, content=format_commit_result(commit), result=commit)

        raise UnknownToolError(tool=tool)
