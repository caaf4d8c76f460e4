from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.tools.tool_transform import TransformedTool

from code_assistant_mcp.clients.models import GenerationSettings
from code_assistant_mcp.models.analysis import BugAnalysis, BugReport
from code_assistant_mcp.projects.storage import SourceFile, read_source_file
from code_assistant_mcp.sampling.extract import object_in_text_instructions
from code_assistant_mcp.sampling.prompts import EXPERT_REVIEWER, JSON_ONLY, PromptBuilder
from code_assistant_mcp.servers.base import ModelServer
from code_assistant_mcp.servers.shared.annotations import (
    FILE_NAME,
    FILE_NAME_ARG_TRANSFORM,
    LANGUAGE,
    OPTIONAL_CODE,
    ROOT_DIRECTORY,
    ROOT_DIRECTORY_ARG_TRANSFORM,
)
from code_assistant_mcp.servers.shared.tools import DETECT_BUGS, is_present, require_params
from code_assistant_mcp.servers.shared.utility import count_lines

ANALYSIS_SETTINGS = GenerationSettings(
    system_instruction=PromptBuilder().add_prompt_section(EXPERT_REVIEWER).add_prompt_section(JSON_ONLY).render_text(),
    temperature=0.3,
    top_k=40,
    top_p=0.95,
)


class BugDetectorServer(ModelServer):
    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        detect_bugs_tool = TransformedTool.from_tool(
            tool=Tool.from_function(fn=self.detect_bugs, name=DETECT_BUGS),
            description="Analyze code for potential bugs, errors, and security issues. "
            + "Provide the code directly, or a `fileName` (and optionally a `rootDirectory`) to read it from disk.",
            transform_args={
                "file_name": FILE_NAME_ARG_TRANSFORM,
                "root_directory": ROOT_DIRECTORY_ARG_TRANSFORM,
            },
        )

        _ = fastmcp.add_tool(tool=detect_bugs_tool)

        return fastmcp

    def build_prompt(self, code: str, language: str, file_name: str | None) -> str:
        context: dict[str, str] = {"language": language}

        if file_name:
            context["file"] = file_name

        return (
            PromptBuilder()
            .add_text_section(title="Task", text="Analyze the following code for potential bugs, errors, and issues.")
            .add_yaml_section(title="Context", obj=context)
            .add_code_section(title="Code", code=code, language=language)
            .add_text_section(
                title="Response Schema",
                text=[
                    "List the issues most severe first. Severity is one of critical, warning or info.",
                    object_in_text_instructions(BugAnalysis),
                ],
            )
            .render_text()
        )

    async def detect_bugs(
        self,
        language: LANGUAGE,
        code: OPTIONAL_CODE = None,
        file_name: FILE_NAME = None,
        root_directory: ROOT_DIRECTORY = None,
    ) -> BugReport:
        """Analyze code for bugs. Code provided inline takes precedence over `file_name`."""

        require_params(DETECT_BUGS, {"language": language, "code": code, "fileName": file_name})

        source_file: SourceFile | None = None

        if not is_present(code) and file_name:
            source_file = await read_source_file(root_directory=Path(root_directory or Path.cwd()).expanduser(), file_name=file_name)
            code = source_file.content

        code = code or ""

        self.logger.info(f"Detecting bugs in {count_lines(code)} lines of {language}")

        analysis: BugAnalysis = await self.model_client.generate_object(
            prompt=self.build_prompt(code=code, language=language, file_name=file_name if source_file else None),
            response_model=BugAnalysis,
            settings=ANALYSIS_SETTINGS,
            action="Detect bugs",
        )

        return BugReport(
            language=language,
            file_path=str(source_file.path) if source_file else None,
            file_name=file_name if source_file else None,
            lines_of_code=count_lines(code),
            summary=analysis.summary,
            issues=analysis.issues,
            overall_assessment=analysis.overall_assessment,
            analyzed_at=datetime.now(tz=UTC),
        )
