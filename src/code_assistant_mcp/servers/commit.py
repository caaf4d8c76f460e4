import asyncio
import os
from datetime import UTC, datetime
from logging import Logger
from pathlib import Path
from typing import Any

from anyio import Path as AsyncPath
from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.tools.tool_transform import TransformedTool
from fastmcp.utilities.logging import get_logger

from code_assistant_mcp.clients.errors.base import RequestError
from code_assistant_mcp.clients.errors.github import PermissionDeniedError, ResourceNotFoundError
from code_assistant_mcp.clients.github import BranchHead, GitHubCommitClient, RepositoryInfo, TreeEntry
from code_assistant_mcp.models.commit import CommitResult
from code_assistant_mcp.projects.storage import LocalFile, collect_files
from code_assistant_mcp.servers.shared.annotations import BRANCH, LOCAL_PATH, LOCAL_PATH_ARG_TRANSFORM, MESSAGE, OWNER, REPO
from code_assistant_mcp.servers.shared.errors import LocalPathNotFoundError, NoFilesToCommitError
from code_assistant_mcp.servers.shared.tools import GITHUB_COMMIT, require_params


def default_commit_message() -> str:
    return f"Auto-commit: {datetime.now(tz=UTC).isoformat()}"


def commit_url(owner: str, repo: str, sha: str) -> str:
    return f"https://github.com/{owner}/{repo}/commit/{sha}"


class GitHubCommitServer:
    github_client: GitHubCommitClient
    logger: Logger

    def __init__(self, github_client: GitHubCommitClient | None = None, logger: Logger | None = None):
        self.logger = logger or get_logger(name=__name__)
        self.github_client = github_client or GitHubCommitClient(logger=self.logger)

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        github_commit_tool = TransformedTool.from_tool(
            tool=Tool.from_function(fn=self.github_commit, name=GITHUB_COMMIT),
            description="Commit every file of a local directory to a branch of an existing GitHub repository in a single commit.",
            transform_args={
                "local_path": LOCAL_PATH_ARG_TRANSFORM,
            },
        )

        _ = fastmcp.add_tool(tool=github_commit_tool)

        return fastmcp

    async def resolve_owner(self, owner: str | None) -> str:
        """Use the provided owner, then GITHUB_OWNER, then the login of the token's user."""

        if owner:
            return owner

        if env_owner := os.getenv("GITHUB_OWNER"):
            return env_owner

        return await self.github_client.get_authenticated_login()

    async def get_pushable_repository(self, owner: str, repo: str) -> RepositoryInfo:
        try:
            repository: RepositoryInfo = await self.github_client.get_repository(owner=owner, repo=repo)
        except ResourceNotFoundError as e:
            raise ResourceNotFoundError(
                action="Get repository",
                resource=f"{owner}/{repo}",
                extra_info={"hint": "Create the repository on GitHub first."},
            ) from e

        if not repository.can_push:
            raise PermissionDeniedError(
                action="Commit",
                resource=f"{owner}/{repo}",
                message="The GitHub token does not have push access to this repository.",
            )

        return repository

    async def read_files(self, files: list[LocalFile]) -> list[bytes]:
        return [await AsyncPath(file.path).read_bytes() for file in files]

    async def github_commit(
        self,
        local_path: LOCAL_PATH,
        repo: REPO,
        branch: BRANCH,
        message: MESSAGE = None,
        owner: OWNER = None,
    ) -> CommitResult:
        """Commit the files under `local_path` to `branch`, creating the branch if it does not exist."""

        require_params(GITHUB_COMMIT, {"localPath": local_path, "repo": repo, "branch": branch})

        path = Path(local_path).expanduser()

        if not path.exists():
            raise LocalPathNotFoundError(path=local_path)

        owner = await self.resolve_owner(owner=owner)
        repository: RepositoryInfo = await self.get_pushable_repository(owner=owner, repo=repo)

        files: list[LocalFile] = collect_files(path)

        if not files:
            raise NoFilesToCommitError(path=local_path)

        contents: list[bytes] = await self.read_files(files)
        message = message or default_commit_message()

        self.logger.info(f"Committing {len(files)} files from {path} to {owner}/{repo}@{branch}")

        branch_head: BranchHead | None = await self.github_client.get_branch_head(owner=owner, repo=repo, branch=branch)
        created_branch: bool = branch_head is None

        if branch_head is None and branch != repository.default_branch:
            branch_head = await self.github_client.get_branch_head(owner=owner, repo=repo, branch=repository.default_branch)

        if branch_head is None:
            self.logger.info(f"Repository {owner}/{repo} is empty, seeding {repository.default_branch} with {files[0].relative_path}")

            _ = await self.github_client.seed_empty_repository(
                owner=owner, repo=repo, path=files[0].relative_path, content=contents[0], message=message
            )

            branch_head = await self.github_client.get_branch_head(owner=owner, repo=repo, branch=repository.default_branch)

            if branch_head is None:
                raise RequestError(action="Seed empty repository", message=f"{repository.default_branch} has no commits after seeding.")

            if branch == repository.default_branch:
                created_branch = False

        blob_shas: list[str] = await asyncio.gather(
            *[self.github_client.create_blob(owner=owner, repo=repo, content=content) for content in contents]
        )

        tree_sha: str = await self.github_client.create_tree(
            owner=owner,
            repo=repo,
            entries=[TreeEntry(path=file.relative_path, sha=sha) for file, sha in zip(files, blob_shas, strict=True)],
            base_tree=branch_head.tree_sha,
        )

        commit_sha: str = await self.github_client.create_commit(
            owner=owner, repo=repo, message=message, tree=tree_sha, parents=[branch_head.commit_sha]
        )

        if created_branch:
            await self.github_client.create_branch(owner=owner, repo=repo, branch=branch, sha=commit_sha)
        else:
            await self.github_client.update_branch(owner=owner, repo=repo, branch=branch, sha=commit_sha)

        self.logger.info(f"Committed {commit_sha} to {owner}/{repo}@{branch}")

        return CommitResult(
            owner=owner,
            repo=repo,
            branch=branch,
            sha=commit_sha,
            message=message,
            url=commit_url(owner=owner, repo=repo, sha=commit_sha),
            files_committed=len(files),
            created_branch=created_branch,
        )
