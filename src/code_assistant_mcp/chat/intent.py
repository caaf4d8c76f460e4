from logging import Logger
from typing import Any, Literal

from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field

from code_assistant_mcp.chat.parser import CommandParser
from code_assistant_mcp.clients.errors.models import ModelResponseError
from code_assistant_mcp.clients.models import GenerationSettings, ModelClient
from code_assistant_mcp.sampling.extract import object_in_text_instructions
from code_assistant_mcp.sampling.prompts import JSON_ONLY, PromptBuilder, PromptSection
from code_assistant_mcp.servers.shared.errors import UnrecognizedRequestError
from code_assistant_mcp.servers.shared.tools import TOOL_SPECS

INTENT_ANALYST = PromptSection(
    title="Who you are",
    section="""
You are an assistant that interprets user requests and maps each of them to exactly one tool.
""",
)

CLASSIFIER_SETTINGS = GenerationSettings(
    system_instruction=PromptBuilder().add_prompt_section(INTENT_ANALYST).add_prompt_section(JSON_ONLY).render_text(),
    temperature=0.3,
    json_response=True,
)

CLASSIFIER_EXAMPLES = """
- "Create a calculator in React" -> {"tool": "generate-code", "parameters": {"description": "calculator", "language": "javascript", "framework": "react"}}
- "Check this code for bugs: function test() { return x; }" -> {"tool": "detect-bugs", "parameters": {"code": "function test() { return x; }", "language": "javascript"}}
- "Review my Python code: print('hello')" -> {"tool": "check-best-practices", "parameters": {"code": "print('hello')", "language": "python"}}
"""


class ModelIntent(BaseModel):
    """The tool the model picked for a message."""

    tool: str = Field(description="The name of the tool.")
    parameters: dict[str, Any] = Field(default_factory=dict, description="The parameters extracted from the message.")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="How confident the model is, from 0 to 1.")


class ResolvedIntent(BaseModel):
    tool: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    source: Literal["parser", "model"]


class IntentClassifier:
    """Ask the language model which tool a message is for, in a single call."""

    model_client: ModelClient
    logger: Logger

    def __init__(self, model_client: ModelClient, logger: Logger | None = None):
        self.model_client = model_client
        self.logger = logger or get_logger(name=__name__)

    def build_prompt(self, text: str) -> str:
        tools: list[dict[str, Any]] = [
            {
                "name": spec.name,
                "description": spec.description,
                "required": spec.required_params,
                "one_of": spec.one_of_params or None,
                "optional": spec.optional_params,
            }
            for spec in TOOL_SPECS.values()
        ]

        return (
            PromptBuilder()
            .add_yaml_section(title="Available Tools", obj={"tools": [{k: v for k, v in tool.items() if v} for tool in tools]})
            .add_text_section(title="User Message", text=text)
            .add_text_section(
                title="Task",
                text=[
                    "Pick the tool for the user message and extract its parameters using the parameter names above.",
                    "For code generation, identify the language and framework from context.",
                ],
            )
            .add_text_section(title="Examples", text=CLASSIFIER_EXAMPLES)
            .add_text_section(title="Response Schema", text=object_in_text_instructions(ModelIntent))
            .render_text()
        )

    async def analyze(self, text: str) -> ResolvedIntent:
        """Classify `text`.

        Raises:
            ModelResponseError: If the model output cannot be decoded or names a tool that does not exist.
        """

        intent: ModelIntent = await self.model_client.generate_object(
            prompt=self.build_prompt(text),
            response_model=ModelIntent,
            settings=CLASSIFIER_SETTINGS,
            action="Analyze intent",
        )

        if intent.tool not in TOOL_SPECS:
            self.logger.warning(f"The model picked an unknown tool: {intent.tool}")
            raise ModelResponseError(
                action="Analyze intent",
                message=f'Unknown tool: {intent.tool}. Try being more specific or use "help" to see examples.',
            )

        self.logger.info(f"The model picked {intent.tool} with confidence {intent.confidence}")

        return ResolvedIntent(tool=intent.tool, parameters=intent.parameters, source="model")


class IntentResolver:
    """Map a chat message to a tool with the keyword parser, falling back to the model classifier."""

    parser: CommandParser
    classifier: IntentClassifier | None
    logger: Logger

    def __init__(self, parser: CommandParser | None = None, classifier: IntentClassifier | None = None, logger: Logger | None = None):
        self.parser = parser or CommandParser()
        self.classifier = classifier
        self.logger = logger or get_logger(name=__name__)

    async def resolve(self, text: str) -> ResolvedIntent:
        """Resolve `text` to a tool and its parameters.

        Raises:
            UnrecognizedRequestError: If the parser does not match and no classifier is configured.
        """

        if tool := self.parser.parse_command(text):
            self.logger.info(f"Resolved {tool} with the keyword parser")
            return ResolvedIntent(tool=tool, parameters=self.parser.extract_params(text, tool), source="parser")

        if self.classifier is None:
            raise UnrecognizedRequestError

        return await self.classifier.analyze(text)
