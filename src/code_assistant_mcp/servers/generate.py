from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.tools.tool_transform import TransformedTool

from code_assistant_mcp.clients.models import GenerationSettings
from code_assistant_mcp.models.project import GeneratedProject, GeneratedProjectResponse
from code_assistant_mcp.sampling.extract import object_in_text_instructions
from code_assistant_mcp.sampling.prompts import EXPERT_DEVELOPER, JSON_ONLY, PromptBuilder
from code_assistant_mcp.servers.base import ModelServer
from code_assistant_mcp.servers.shared.annotations import DESCRIPTION, FRAMEWORK, INCLUDE_TESTS, INCLUDE_TESTS_ARG_TRANSFORM, LANGUAGE
from code_assistant_mcp.servers.shared.tools import GENERATE_CODE, get_tool_spec, require_params

DEFAULT_LANGUAGE = "javascript"

GENERATION_SETTINGS = GenerationSettings(
    system_instruction=PromptBuilder().add_prompt_section(EXPERT_DEVELOPER).add_prompt_section(JSON_ONLY).render_text(),
    temperature=0.3,
    top_k=20,
    top_p=0.9,
    json_response=True,
)

PROJECT_RULES = """
- Escape all quotes and newlines in file content.
- Keep file content simple and functional.
- Include README.md as the first file.
- Include the dependency manifest of the language, for example package.json or requirements.txt.
- Use between 5 and 10 files in total.
- Use relative paths with `/` separators. Never use absolute paths or `..`.
"""


class CodeGeneratorServer(ModelServer):
    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        generate_code_tool = TransformedTool.from_tool(
            tool=Tool.from_function(fn=self.generate_code, name=GENERATE_CODE),
            description=get_tool_spec(GENERATE_CODE).description + " from a natural-language description.",
            transform_args={
                "include_tests": INCLUDE_TESTS_ARG_TRANSFORM,
            },
        )

        _ = fastmcp.add_tool(tool=generate_code_tool)

        return fastmcp

    def build_prompt(self, description: str, language: str, framework: str | None, include_tests: bool) -> str:
        requirements: dict[str, str] = {"description": description, "language": language}

        if framework:
            requirements["framework"] = framework

        requirements["tests"] = "Include unit tests" if include_tests else "No tests needed"

        return (
            PromptBuilder()
            .add_text_section(title="Task", text="Generate a complete, production-ready project based on the following requirements.")
            .add_yaml_section(title="Requirements", obj=requirements)
            .add_text_section(title="Rules", text=PROJECT_RULES)
            .add_text_section(title="Response Schema", text=object_in_text_instructions(GeneratedProjectResponse))
            .render_text()
        )

    async def generate_code(
        self,
        description: DESCRIPTION,
        language: LANGUAGE = DEFAULT_LANGUAGE,
        framework: FRAMEWORK = None,
        include_tests: INCLUDE_TESTS = False,
    ) -> GeneratedProject:
        """Generate a complete project, with setup instructions, from a description."""

        require_params(GENERATE_CODE, {"description": description, "language": language})

        self.logger.info(f"Generating a {language} project: {description}")

        response: GeneratedProjectResponse = await self.model_client.generate_object(
            prompt=self.build_prompt(description=description, language=language, framework=framework, include_tests=include_tests),
            response_model=GeneratedProjectResponse,
            settings=GENERATION_SETTINGS,
            action="Generate code",
        )

        project = GeneratedProject.from_response(response, language=language, framework=framework, include_tests=include_tests)

        self.logger.info(f"Generated project {project.project_name} with {project.summary.total_files} files")

        return project
