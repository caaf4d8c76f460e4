from datetime import UTC, datetime
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.tools.tool_transform import TransformedTool

from code_assistant_mcp.clients.models import GenerationSettings
from code_assistant_mcp.models.analysis import BestPracticesReview
from code_assistant_mcp.sampling.prompts import MARKDOWN_RESPONSE, PromptBuilder, PromptSection
from code_assistant_mcp.servers.base import ModelServer
from code_assistant_mcp.servers.shared.annotations import CODE, FRAMEWORK, LANGUAGE, STRICT_MODE, STRICT_MODE_ARG_TRANSFORM
from code_assistant_mcp.servers.shared.tools import CHECK_BEST_PRACTICES, require_params

EXPERT_STANDARDS_REVIEWER = PromptSection(
    title="Who you are",
    section="""
You are a senior engineer reviewing code against the established best practices and coding standards of its language
and framework. You are specific: every finding names the code it applies to and shows how to improve it.
""",
)

REVIEW_SETTINGS = GenerationSettings(
    system_instruction=PromptBuilder().add_prompt_section(EXPERT_STANDARDS_REVIEWER).add_prompt_section(MARKDOWN_RESPONSE).render_text(),
    temperature=0.3,
    top_k=40,
    top_p=0.95,
)

REVIEW_AREAS = """
- Naming and readability
- Structure and organization
- Error handling
- Security
- Performance
- Testing and testability
- Idioms of the language and framework
"""

STRICT_MODE_INSTRUCTIONS = "Report every deviation from best practices, including minor and stylistic ones."
LENIENT_MODE_INSTRUCTIONS = "Focus on the deviations that matter most. Skip minor stylistic nits."


class BestPracticesServer(ModelServer):
    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        check_best_practices_tool = TransformedTool.from_tool(
            tool=Tool.from_function(fn=self.check_best_practices, name=CHECK_BEST_PRACTICES),
            description="Check code against best practices and coding standards and return a markdown review.",
            transform_args={
                "strict_mode": STRICT_MODE_ARG_TRANSFORM,
            },
        )

        _ = fastmcp.add_tool(tool=check_best_practices_tool)

        return fastmcp

    def build_prompt(self, code: str, language: str, framework: str | None, strict_mode: bool) -> str:
        context: dict[str, str] = {"language": language}

        if framework:
            context["framework"] = framework

        return (
            PromptBuilder()
            .add_text_section(title="Task", text="Review the following code for best practices.")
            .add_yaml_section(title="Context", obj=context)
            .add_code_section(title="Code", code=code, language=language)
            .add_text_section(
                title="Review Areas",
                text=[
                    "Cover each of the following areas that applies to the code:",
                    REVIEW_AREAS,
                    STRICT_MODE_INSTRUCTIONS if strict_mode else LENIENT_MODE_INSTRUCTIONS,
                    "End with a short list of the most important improvements.",
                ],
            )
            .render_text()
        )

    async def check_best_practices(
        self,
        code: CODE,
        language: LANGUAGE,
        framework: FRAMEWORK = None,
        strict_mode: STRICT_MODE = False,
    ) -> BestPracticesReview:
        """Review code against the best practices of its language and framework."""

        require_params(CHECK_BEST_PRACTICES, {"code": code, "language": language})

        self.logger.info(f"Checking best practices for {language} code (strict: {strict_mode})")

        review: str = await self.model_client.generate_text(
            prompt=self.build_prompt(code=code, language=language, framework=framework, strict_mode=strict_mode),
            settings=REVIEW_SETTINGS,
            action="Check best practices",
        )

        return BestPracticesReview(
            language=language,
            framework=framework,
            strict_mode=strict_mode,
            review=review.strip(),
            reviewed_at=datetime.now(tz=UTC),
        )
