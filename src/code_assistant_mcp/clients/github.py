import os
from collections.abc import Awaitable, Callable, Collection, Sequence
from logging import Logger
from typing import Any, Literal, Self, TypeVar, overload

from fastmcp.utilities.logging import get_logger
from githubkit import GitHub as GitHubKit
from githubkit.auth.token import TokenAuthStrategy
from githubkit.exception import GitHubException as GitHubKitGitHubException
from githubkit.exception import RequestFailed as GitHubKitRequestFailed
from githubkit.response import Response as GitHubKitResponse
from githubkit.versions.v2022_11_28.models import FullRepository as GitHubKitFullRepository
from pydantic import BaseModel, Field

from code_assistant_mcp.clients.errors.base import MissingConfigurationError, RequestError
from code_assistant_mcp.clients.errors.github import PermissionDeniedError, ResourceNotFoundError
from code_assistant_mcp.servers.shared.utility import encode_content

NOT_FOUND_ERROR = 404
CONFLICT_ERROR = 409
UNAUTHORIZED_ERRORS = (401, 403)

GITHUB_TOKEN_VARIABLES = ("GITHUB_TOKEN", "GITHUB_PERSONAL_ACCESS_TOKEN")

FILE_MODE = "100644"

GITHUBKIT_RESPONSE_TYPE = BaseModel | Sequence[BaseModel]

T = TypeVar("T", bound=GITHUBKIT_RESPONSE_TYPE)


def get_github_token() -> str:
    for env_var in GITHUB_TOKEN_VARIABLES:
        if os.environ.get(env_var):
            return os.environ[env_var]

    raise MissingConfigurationError(variables=GITHUB_TOKEN_VARIABLES, purpose="commit to GitHub")


def get_githubkit_client() -> GitHubKit[Any]:
    # No automatic retries
    return GitHubKit[TokenAuthStrategy](auth=TokenAuthStrategy(token=get_github_token()), auto_retry=False)


class RepositoryInfo(BaseModel):
    """The parts of a repository needed to commit to it."""

    owner: str = Field(description="The owner of the repository.")
    name: str = Field(description="The name of the repository.")
    default_branch: str = Field(description="The default branch of the repository.")
    html_url: str = Field(description="The URL of the repository on GitHub.")
    can_push: bool = Field(description="Whether the authenticated user can push to the repository.")

    @classmethod
    def from_full_repository(cls, repository: GitHubKitFullRepository) -> Self:
        return cls(
            owner=repository.owner.login,
            name=repository.name,
            default_branch=repository.default_branch,
            html_url=repository.html_url,
            can_push=bool(repository.permissions and repository.permissions.push),
        )


class BranchHead(BaseModel):
    """The commit a branch points at and that commit's tree."""

    commit_sha: str
    tree_sha: str


class TreeEntry(BaseModel):
    path: str
    sha: str
    mode: str = FILE_MODE
    type: Literal["blob"] = "blob"


class GitHubCommitClient:
    _githubkit_client: GitHubKit[Any] | None
    logger: Logger

    log_requests: bool
    log_responses: bool
    log_on_error: bool

    def __init__(
        self,
        githubkit_client: GitHubKit[Any] | None = None,
        logger: Logger | None = None,
        log_requests: bool = True,
        log_responses: bool = False,
        log_on_error: bool = True,
    ):
        self._githubkit_client = githubkit_client
        self.logger = logger or get_logger(__name__)
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.log_on_error = log_on_error

    @property
    def githubkit_client(self) -> GitHubKit[Any]:
        """The GitHub client. Created on first use so that a missing token only fails the requests that need it."""

        if self._githubkit_client is None:
            self._githubkit_client = get_githubkit_client()

        return self._githubkit_client

    def _get_loggers(
        self, log_request: bool | None = None
    ) -> tuple[Callable[[str], Any], Callable[[str], Any], Callable[[BaseException | str], Any]]:
        log_request = self.log_requests if log_request is None else log_request
        request_logger = self.logger.info if log_request else self.logger.debug
        response_logger = self.logger.info if self.log_responses else self.logger.debug
        error_logger = self.logger.exception if self.log_on_error else self.logger.debug
        return request_logger, response_logger, error_logger

    @overload
    async def _perform_rest_request(
        self,
        action: str,
        error_on_not_found: Literal[False] = False,
        *,
        log_request: bool | None = None,
        not_found_status_codes: Collection[int] = (NOT_FOUND_ERROR,),
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None: ...

    @overload
    async def _perform_rest_request(
        self,
        action: str,
        error_on_not_found: Literal[True] = True,
        *,
        log_request: bool | None = None,
        not_found_status_codes: Collection[int] = (NOT_FOUND_ERROR,),
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T: ...

    async def _perform_rest_request(
        self,
        action: str,
        error_on_not_found: bool = False,
        *,
        log_request: bool | None = None,
        not_found_status_codes: Collection[int] = (NOT_FOUND_ERROR,),
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None:
        """Call a githubkit REST method and return its parsed data.

        Args:
            action: A short description of the request, used in logs and errors.
            error_on_not_found: Raise instead of returning None when the resource does not exist.
            log_request: Overrides `log_requests` for this call.
            not_found_status_codes: The status codes that mean the resource does not exist.

        Raises:
            ResourceNotFoundError: If the resource does not exist and error_on_not_found is True.
            PermissionDeniedError: If GitHub rejects the token for this request.
            RequestError: If the request fails for any other reason.
        """

        request_logger, response_logger, error_logger = self._get_loggers(log_request=log_request)

        request_logger(f"{action}: calling {method.__name__} with {request_args}")

        try:
            response: GitHubKitResponse[T] = await method(**request_args)
        except GitHubKitRequestFailed as e:
            status_code = e.response.status_code

            if status_code in not_found_status_codes:
                if error_on_not_found:
                    raise ResourceNotFoundError(action=action, resource=e.request.url.path) from e

                return None

            error_logger(f"{action}: {method.__name__} failed with status {status_code}: {e}")

            if status_code in UNAUTHORIZED_ERRORS:
                raise PermissionDeniedError(action=action, resource=e.request.url.path, message=str(e)) from e

            raise RequestError(action=action, message=str(e)) from e
        except GitHubKitGitHubException as e:
            error_logger(f"{action}: {method.__name__} failed: {e}")

            raise RequestError(action=action, message=str(e)) from e

        parsed_data: T = response.parsed_data

        response_logger(f"{action}: {method.__name__} returned {parsed_data}")

        return parsed_data

    async def get_authenticated_login(self) -> str:
        """Get the login of the user the token belongs to."""

        user = await self._perform_rest_request(
            action="Get authenticated user",
            error_on_not_found=True,
            method=self.githubkit_client.rest.users.async_get_authenticated,
        )

        return user.login

    async def get_repository(self, owner: str, repo: str) -> RepositoryInfo:
        """Get a repository, including whether the authenticated user can push to it.

        Raises:
            ResourceNotFoundError: If the repository does not exist or is not visible to the token.
        """

        repository = await self._perform_rest_request(
            action="Get repository",
            error_on_not_found=True,
            method=self.githubkit_client.rest.repos.async_get,
            owner=owner,
            repo=repo,
        )

        return RepositoryInfo.from_full_repository(repository=repository)

    async def get_branch_head(self, owner: str, repo: str, branch: str) -> BranchHead | None:
        """Get the head commit of a branch. Returns None if the branch does not exist or the repository is empty."""

        git_ref = await self._perform_rest_request(
            action="Get branch ref",
            error_on_not_found=False,
            # GitHub answers 409 when the repository has no commits at all.
            not_found_status_codes=(NOT_FOUND_ERROR, CONFLICT_ERROR),
            method=self.githubkit_client.rest.git.async_get_ref,
            owner=owner,
            repo=repo,
            ref=f"heads/{branch}",
        )

        if git_ref is None:
            return None

        commit = await self._perform_rest_request(
            action="Get branch head commit",
            error_on_not_found=True,
            method=self.githubkit_client.rest.git.async_get_commit,
            owner=owner,
            repo=repo,
            commit_sha=git_ref.object_.sha,
        )

        return BranchHead(commit_sha=commit.sha, tree_sha=commit.tree.sha)

    async def seed_empty_repository(self, owner: str, repo: str, path: str, content: bytes, message: str) -> str:
        """Create the first commit of an empty repository with a single file. Returns the commit sha.

        The Git Data API cannot create blobs in a repository without commits, the Contents API can.
        """

        file_commit = await self._perform_rest_request(
            action="Seed empty repository",
            error_on_not_found=True,
            method=self.githubkit_client.rest.repos.async_create_or_update_file_contents,
            owner=owner,
            repo=repo,
            path=path,
            message=message,
            content=encode_content(content),
        )

        if not (sha := file_commit.commit.sha):
            raise RequestError(action="Seed empty repository", message="GitHub did not return the created commit.")

        return sha

    async def create_blob(self, owner: str, repo: str, content: bytes) -> str:
        """Upload file content as a blob. Returns the blob sha."""

        blob = await self._perform_rest_request(
            action="Create blob",
            log_request=False,
            error_on_not_found=True,
            method=self.githubkit_client.rest.git.async_create_blob,
            owner=owner,
            repo=repo,
            content=encode_content(content),
            encoding="base64",
        )

        return blob.sha

    async def create_tree(self, owner: str, repo: str, entries: Sequence[TreeEntry], base_tree: str | None = None) -> str:
        """Create a tree from blob entries, layered on top of `base_tree` when provided. Returns the tree sha."""

        request_args: dict[str, Any] = {"tree": [entry.model_dump() for entry in entries]}

        if base_tree is not None:
            request_args["base_tree"] = base_tree

        tree = await self._perform_rest_request(
            action="Create tree",
            error_on_not_found=True,
            method=self.githubkit_client.rest.git.async_create_tree,
            owner=owner,
            repo=repo,
            **request_args,  # pyright: ignore[reportAny]
        )

        return tree.sha

    async def create_commit(self, owner: str, repo: str, message: str, tree: str, parents: Sequence[str]) -> str:
        """Create a commit object. Returns the commit sha."""

        commit = await self._perform_rest_request(
            action="Create commit",
            error_on_not_found=True,
            method=self.githubkit_client.rest.git.async_create_commit,
            owner=owner,
            repo=repo,
            message=message,
            tree=tree,
            parents=list(parents),
        )

        return commit.sha

    async def update_branch(self, owner: str, repo: str, branch: str, sha: str) -> None:
        """Move an existing branch to `sha`. Only fast-forwards are accepted."""

        _ = await self._perform_rest_request(
            action="Update branch",
            error_on_not_found=True,
            method=self.githubkit_client.rest.git.async_update_ref,
            owner=owner,
            repo=repo,
            ref=f"heads/{branch}",
            sha=sha,
            force=False,
        )

    async def create_branch(self, owner: str, repo: str, branch: str, sha: str) -> None:
        """Create a branch pointing at `sha`."""

        _ = await self._perform_rest_request(
            action="Create branch",
            error_on_not_found=True,
            method=self.githubkit_client.rest.git.async_create_ref,
            owner=owner,
            repo=repo,
            ref=f"refs/heads/{branch}",
            sha=sha,
        )
