from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator

from code_assistant_mcp.models.base import CamelModel

Severity = Literal["critical", "warning", "info"]


class BugIssue(CamelModel):
    """A single issue found in the analyzed code."""

    severity: Severity = Field(description="One of critical, warning or info.")
    type: str = Field(description="The kind of bug, e.g. null pointer, memory leak, logic error.")
    line: str = Field(default="", description="The line number or range.")
    description: str = Field(description="A detailed description of the issue.")
    suggestion: str = Field(default="", description="How to fix the issue.")
    code_snippet: str = Field(default="", description="The relevant code snippet.")

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, value: Any) -> Any:  # pyright: ignore[reportAny]
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("line", mode="before")
    @classmethod
    def line_as_text(cls, value: Any) -> Any:  # pyright: ignore[reportAny]
        return str(value) if isinstance(value, int) else value


class BugSummary(CamelModel):
    total_issues: int = 0
    critical: int = 0
    warning: int = 0
    info: int = 0


class BugAnalysis(CamelModel):
    """A bug analysis produced by the model."""

    summary: BugSummary = Field(description="Counts of issues by severity.")
    issues: list[BugIssue] = Field(default_factory=list, description="The issues found, most severe first.")
    overall_assessment: str = Field(default="", description="A general assessment of code quality and bug risk.")


class BugReport(BugAnalysis):
    """The result of the bug detector."""

    success: bool = True
    language: str
    file_path: str | None = None
    file_name: str | None = None
    lines_of_code: int
    analyzed_at: datetime


class BestPracticesReview(CamelModel):
    """The result of the best-practices checker."""

    success: bool = True
    language: str
    framework: str | None = None
    strict_mode: bool = False
    review: str
    reviewed_at: datetime
