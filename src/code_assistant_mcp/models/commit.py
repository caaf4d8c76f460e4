from pydantic import Field

from code_assistant_mcp.models.base import CamelModel


class CommitResult(CamelModel):
    """The result of pushing a local directory to GitHub."""

    success: bool = True
    owner: str
    repo: str
    branch: str
    sha: str = Field(description="The SHA of the new commit.")
    message: str = Field(description="The commit message.")
    url: str = Field(description="The URL of the commit on github.com.")
    files_committed: int
    created_branch: bool = Field(default=False, description="Whether the branch was created by this commit.")
