from pathlib import PurePosixPath

from code_assistant_mcp.models.analysis import BestPracticesReview, BugReport
from code_assistant_mcp.models.commit import CommitResult
from code_assistant_mcp.models.project import FileTreeNode, GeneratedProject
from code_assistant_mcp.servers.shared.tools import TOOL_SPECS, ToolSpec

PREVIEW_FILES = 3
PREVIEW_CHARACTERS = 300
TRUNCATION_MARKER = "... (truncated)"

FILE_LANGUAGES: dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "html": "html",
    "css": "css",
    "json": "json",
    "md": "markdown",
    "yml": "yaml",
    "yaml": "yaml",
    "sh": "bash",
}

SEVERITY_ICONS: dict[str, str] = {"critical": "🔴", "warning": "⚠️", "info": "ℹ️"}

TOOL_ICONS: dict[str, str] = {
    "generate-code": "💻",
    "detect-bugs": "🐛",
    "check-best-practices": "✅",
    "github-commit": "🚀",
}

CONNECTOR = "├── "
LAST_CONNECTOR = "└── "
CONTINUATION = "│   "
LAST_CONTINUATION = "    "


def get_file_language(path: str) -> str:
    """The code fence label for a file, or an empty string for unknown extensions."""

    return FILE_LANGUAGES.get(PurePosixPath(path).suffix.removeprefix(".").lower(), "")


def format_file_tree(node: FileTreeNode) -> str:
    """Render a tree with box-drawing connectors. The root node itself is not rendered."""

    return "".join(_format_tree_children(node, prefix=""))


def _format_tree_children(node: FileTreeNode, prefix: str) -> list[str]:
    lines: list[str] = []

    for index, child in enumerate(node.children):
        is_last: bool = index == len(node.children) - 1
        name: str = child.name + "/" if child.type == "directory" else child.name

        lines.append(f"{prefix}{LAST_CONNECTOR if is_last else CONNECTOR}{name}\n")

        if child.type == "directory":
            lines.extend(_format_tree_children(child, prefix=prefix + (LAST_CONTINUATION if is_last else CONTINUATION)))

    return lines


def preview_content(content: str) -> str:
    if len(content) > PREVIEW_CHARACTERS:
        return content[:PREVIEW_CHARACTERS] + "\n" + TRUNCATION_MARKER

    return content


def _command_block(title: str, commands: list[str]) -> list[str]:
    if not commands:
        return []

    return [f"**{title}:**", "```bash", *commands, "```", ""]


def format_generated_project(project: GeneratedProject) -> str:
    lines: list[str] = [
        "# 🎉 Project Generated Successfully!",
        "",
        f"**Project Name:** {project.project_name}",
        f"**Total Files:** {project.summary.total_files}",
        f"**Language:** {project.summary.language}",
    ]

    if project.summary.framework:
        lines.append(f"**Framework:** {project.summary.framework}")

    lines.extend(["", "## 📁 File Structure", "", "```", format_file_tree(project.file_structure).rstrip("\n"), "```", ""])

    lines.extend(["## 📄 Generated Files", ""])

    for file in project.files[:PREVIEW_FILES]:
        lines.append(f"### {file.path}")
        if file.description:
            lines.extend([f"*{file.description}*", ""])
        lines.extend([f"```{get_file_language(file.path)}", preview_content(file.content), "```", ""])

    if len(project.files) > PREVIEW_FILES:
        lines.extend([f"*... and {len(project.files) - PREVIEW_FILES} more files*", ""])

    setup = project.setup_instructions

    lines.extend(["## 🚀 Setup Instructions", ""])

    if setup.prerequisites:
        lines.extend(["**Prerequisites:**", *[f"- {prerequisite}" for prerequisite in setup.prerequisites], ""])

    lines.extend(_command_block("Install", setup.install_commands))
    lines.extend(_command_block("Run", setup.run_commands))
    lines.extend(_command_block("Test", setup.test_commands))

    if project.additional_notes:
        lines.extend(["## 📝 Additional Notes", "", project.additional_notes, ""])

    return "\n".join(lines).rstrip("\n") + "\n"


def format_bug_report(report: BugReport) -> str:
    lines: list[str] = ["# 🐛 Bug Analysis Results", ""]

    if report.file_name:
        lines.append(f"**File:** {report.file_name}")

    lines.extend(
        [
            f"**Language:** {report.language}",
            f"**Lines of Code:** {report.lines_of_code}",
            "",
            "## 📊 Summary",
            "",
            f"- **Total Issues:** {report.summary.total_issues}",
            f"- **Critical:** {report.summary.critical} {SEVERITY_ICONS['critical']}",
            f"- **Warning:** {report.summary.warning} {SEVERITY_ICONS['warning']}",
            f"- **Info:** {report.summary.info} {SEVERITY_ICONS['info']}",
            "",
        ]
    )

    if not report.issues:
        lines.extend(["## ✅ No Issues Found!", "", "Your code looks good!", ""])

    else:
        lines.extend(["## 🔍 Issues Found", ""])

        for number, issue in enumerate(report.issues, start=1):
            lines.extend(
                [
                    f"### {SEVERITY_ICONS[issue.severity]} Issue {number}: {issue.type}",
                    f"**Severity:** {issue.severity}",
                    f"**Line:** {issue.line or 'n/a'}",
                    "",
                    f"**Description:** {issue.description}",
                    "",
                ]
            )

            if issue.code_snippet:
                lines.extend(["**Code:**", f"```{report.language}", issue.code_snippet, "```", ""])

            if issue.suggestion:
                lines.extend([f"**Suggestion:** {issue.suggestion}", ""])

            lines.extend(["---", ""])

    if report.overall_assessment:
        lines.extend(["## 📋 Overall Assessment", "", report.overall_assessment, ""])

    return "\n".join(lines).rstrip("\n") + "\n"


def format_best_practices_review(review: BestPracticesReview) -> str:
    heading: str = f"# ✅ Best Practices Review: {review.language}"

    if review.framework:
        heading += f" ({review.framework})"

    if review.strict_mode:
        heading += " [strict]"

    return f"{heading}\n\n{review.review.strip()}\n"


def format_commit_result(result: CommitResult) -> str:
    lines: list[str] = [
        "# 🚀 Successfully Committed to GitHub!",
        "",
        f"**Repository:** {result.owner}/{result.repo}",
        f"**Branch:** {result.branch}" + (" (created)" if result.created_branch else ""),
        f"**Commit SHA:** `{result.sha}`",
        f"**Message:** {result.message}",
        f"**Files Committed:** {result.files_committed}",
        "",
        f"**View commit:** [{result.url}]({result.url})",
    ]

    return "\n".join(lines) + "\n"


def format_tool_help(spec: ToolSpec) -> str:
    lines: list[str] = [f"### {TOOL_ICONS.get(spec.name, '🔧')} {spec.title} (`{spec.name}`)", spec.description, ""]

    required: list[str] = [*spec.required_params]
    if spec.one_of_params:
        required.append(" or ".join(spec.one_of_params))

    lines.append("**Required:** " + ", ".join(required))

    if spec.optional_params:
        lines.append("**Optional:** " + ", ".join(spec.optional_params))

    if spec.examples:
        lines.extend(["", "**Examples:**", *[f'- "{example}"' for example in spec.examples]])

    return "\n".join(lines) + "\n"


def format_help() -> str:
    sections: list[str] = ["# 📚 Help & Examples\n", "## Available Tools\n"]

    sections.extend(format_tool_help(spec) for spec in TOOL_SPECS.values())

    sections.append(
        "---\n\n"
        "**Special Commands:**\n"
        "- `help` - Show this help\n"
        "- `tools` - List available tools\n\n"
        "Just describe what you want in natural language!\n"
    )

    return "\n".join(sections)


def format_tools_list() -> str:
    lines: list[str] = ["# 🛠️ Available Tools", ""]

    for number, spec in enumerate(TOOL_SPECS.values(), start=1):
        lines.extend([f"## {TOOL_ICONS.get(spec.name, '🔧')} {number}. {spec.name}", spec.description, ""])

    lines.extend(["---", "", "Type the name of any tool or just describe what you want to do!"])

    return "\n".join(lines) + "\n"
